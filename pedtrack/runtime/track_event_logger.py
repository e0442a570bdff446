import json
from pathlib import Path
from typing import Any, Dict, Sequence

from pedtrack.perception.tracking.track import TrackView


class TrackEventLogger:
    def __init__(self, run_dir: Path):
        self.log_path = Path(run_dir) / "track_events.jsonl"
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_path.touch(exist_ok=True)
        self.created = 0
        self.deleted = 0

    def log(self, frame_idx: int, timestamp_s: float, created_ids: Sequence[int], deleted_ids: Sequence[int], tracks: Sequence[TrackView] = ()):
        """Append one event per created / deleted track id."""
        if not created_ids and not deleted_ids:
            return
        by_id = {t.track_id: t for t in tracks}
        with open(self.log_path, "a") as f:
            for tid in deleted_ids:
                f.write(json.dumps(self._event(frame_idx, timestamp_s, "deleted", tid, None)) + "\n")
                self.deleted += 1
            for tid in created_ids:
                f.write(json.dumps(self._event(frame_idx, timestamp_s, "created", tid, by_id.get(tid))) + "\n")
                self.created += 1

    @staticmethod
    def _event(frame_idx: int, timestamp_s: float, kind: str, track_id: int, view) -> Dict[str, Any]:
        event: Dict[str, Any] = {
            "frame": frame_idx,
            "time_s": round(timestamp_s, 3),
            "event": kind,
            "track_id": int(track_id),
        }
        if view is not None:
            event["bbox"] = [round(float(v), 2) for v in view.bbox]
            event["score"] = round(view.max_confidence, 4)
        return event
