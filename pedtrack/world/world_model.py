from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from pedtrack.perception.tracking.track import TrackView
from pedtrack.utils.types import Detection


@dataclass
class RuntimeStats:
    fps: float = 0.0
    stages_ms: Dict[str, float] = field(default_factory=dict)


@dataclass
class WorldModel:
    """
    Canonical per-frame state object handed to rendering and metrics.
    """

    frame_id: int
    frame: Any  # numpy.ndarray (OpenCV frame), None when replaying detections only
    detections: List[Detection] = field(default_factory=list)  # after preprocessing
    raw_detection_count: int = 0
    tracks: List[TrackView] = field(default_factory=list)
    created_ids: List[int] = field(default_factory=list)
    deleted_ids: List[int] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    runtime: RuntimeStats = field(default_factory=RuntimeStats)

    @property
    def confirmed_tracks(self) -> List[TrackView]:
        return [t for t in self.tracks if t.is_confirmed]

    def summary(self) -> str:
        return (
            f"frame={self.frame_id} "
            f"detections={len(self.detections)}/{self.raw_detection_count} "
            f"tracks={len(self.tracks)} "
            f"confirmed={len(self.confirmed_tracks)} "
            f"created={self.created_ids} "
            f"deleted={self.deleted_ids}"
        )

    def to_metrics(self) -> Dict[str, Any]:
        return {
            "frame_id": self.frame_id,
            "fps": self.runtime.fps,
            "stages_ms": self.runtime.stages_ms,
            "warnings": self.warnings,
            "raw_detection_count": self.raw_detection_count,
            "detection_count": len(self.detections),
            "track_count": len(self.tracks),
            "confirmed_count": len(self.confirmed_tracks),
            "created_ids": self.created_ids,
            "deleted_ids": self.deleted_ids,
            "tracks": [t.to_dict() for t in self.tracks],
        }
