"""
Recorded per-frame detections, one JSON object per line:

    {"frame": 12, "detections": [{"bbox": [x, y, w, h], "score": 37.5}, ...]}

Frames are 1-based. A frame without a line has no detections.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Generator, Iterable, List, Mapping, Optional, Sequence, Tuple

from pedtrack.inputs.base_input import BaseInput
from pedtrack.utils.logger import get_logger
from pedtrack.utils.types import Detection, FramePacket


class DetectionReplay(BaseInput):
    def __init__(self, path: str | Path, frame_rate: float = 30.0, max_frames: Optional[int] = None):
        self.path = Path(path)
        self.frame_rate = frame_rate
        self.logger = get_logger(__name__)
        if not self.path.exists():
            raise FileNotFoundError(f"Detection file not found: {self.path}")
        self._by_frame = self._load(self.path)
        last = max(self._by_frame) if self._by_frame else 0
        self.frame_count = min(last, max_frames) if max_frames is not None else last
        self.logger.info("Loaded detections: %s frames=%d", self.path, self.frame_count)

    @staticmethod
    def _load(path: Path) -> Dict[int, List[Detection]]:
        by_frame: Dict[int, List[Detection]] = {}
        with path.open("r", encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                    frame = int(record["frame"])
                    dets = [Detection.from_dict(d) for d in record.get("detections", [])]
                except (json.JSONDecodeError, KeyError, TypeError, ValueError) as exc:
                    raise ValueError(f"{path}:{line_no}: malformed detection record: {exc}") from exc
                if frame < 1:
                    raise ValueError(f"{path}:{line_no}: frame numbers start at 1, got {frame}")
                by_frame.setdefault(frame, []).extend(dets)
        return by_frame

    def detections_for(self, frame_id: int) -> List[Detection]:
        return list(self._by_frame.get(frame_id, []))

    def start(self) -> None:
        return

    def frames(self) -> Generator[Tuple[int, FramePacket], None, None]:
        """Frame-less packets; the payload is the frame's detection list."""
        for frame_id in range(1, self.frame_count + 1):
            yield frame_id, FramePacket(frame=self.detections_for(frame_id), timestamp=frame_id / self.frame_rate)

    def stop(self) -> None:
        return

    @staticmethod
    def write(path: str | Path, frames: Mapping[int, Sequence[Detection]] | Iterable[Tuple[int, Sequence[Detection]]]) -> Path:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        items = frames.items() if isinstance(frames, Mapping) else frames
        with out.open("w", encoding="utf-8") as f:
            for frame_id, dets in sorted(items, key=lambda kv: kv[0]):
                f.write(json.dumps({"frame": int(frame_id), "detections": [d.to_dict() for d in dets]}) + "\n")
        return out


class DetectionRecorder:
    """Appends each processed frame's detections in the replay format."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("", encoding="utf-8")

    def record(self, frame_id: int, detections: Sequence[Detection]) -> None:
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps({"frame": int(frame_id), "detections": [d.to_dict() for d in detections]}) + "\n")
