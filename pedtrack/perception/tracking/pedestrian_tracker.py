from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from pedtrack.perception.detection.preprocess import validate_detections
from pedtrack.perception.tracking.assignment import AssignmentResult, assign_detections_to_tracks
from pedtrack.perception.tracking.cost import build_cost_matrix
from pedtrack.perception.tracking.motion import MotionNoise
from pedtrack.perception.tracking.track import TrackView
from pedtrack.perception.tracking.track_store import TrackStore
from pedtrack.utils.logger import get_logger
from pedtrack.utils.types import Detection


@dataclass(frozen=True)
class TrackerConfig:
    gating_thresh: float = 0.9  # max 1 - overlap before a pairing is gated out
    gating_cost: float = 100.0  # gated cells become 1 + gating_cost
    cost_of_non_assignment: float = 10.0  # lower = more new tracks / fragmentation
    time_window_size: int = 16
    confidence_thresh: float = 2.0
    age_thresh: int = 8
    vis_thresh: float = 0.6
    motion: MotionNoise = field(default_factory=MotionNoise)

    def __post_init__(self):
        if not 0.0 <= self.gating_thresh <= 1.0:
            raise ValueError(f"gating_thresh must be in [0, 1], got {self.gating_thresh}")
        if self.gating_cost <= 0:
            raise ValueError(f"gating_cost must be > 0, got {self.gating_cost}")
        if self.cost_of_non_assignment <= 0:
            raise ValueError(f"cost_of_non_assignment must be > 0, got {self.cost_of_non_assignment}")
        # Gated cells must stay more expensive than giving up on a track.
        if self.cost_of_non_assignment >= 1.0 + self.gating_cost:
            raise ValueError(
                f"cost_of_non_assignment ({self.cost_of_non_assignment}) must be below "
                f"1 + gating_cost ({1.0 + self.gating_cost})"
            )
        if self.time_window_size < 1:
            raise ValueError(f"time_window_size must be >= 1, got {self.time_window_size}")
        if self.age_thresh < 1:
            raise ValueError(f"age_thresh must be >= 1, got {self.age_thresh}")
        if not 0.0 <= self.vis_thresh <= 1.0:
            raise ValueError(f"vis_thresh must be in [0, 1], got {self.vis_thresh}")

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any] | None) -> "TrackerConfig":
        cfg = cfg or {}
        defaults = cls()
        return cls(
            gating_thresh=float(cfg.get("gating_thresh", defaults.gating_thresh)),
            gating_cost=float(cfg.get("gating_cost", defaults.gating_cost)),
            cost_of_non_assignment=float(cfg.get("cost_of_non_assignment", defaults.cost_of_non_assignment)),
            time_window_size=int(cfg.get("time_window_size", defaults.time_window_size)),
            confidence_thresh=float(cfg.get("confidence_thresh", defaults.confidence_thresh)),
            age_thresh=int(cfg.get("age_thresh", defaults.age_thresh)),
            vis_thresh=float(cfg.get("vis_thresh", defaults.vis_thresh)),
            motion=MotionNoise.from_dict(cfg.get("motion") or {}),
        )


@dataclass
class TrackingResult:
    frame_index: int
    tracks: List[TrackView] = field(default_factory=list)
    created_ids: List[int] = field(default_factory=list)
    deleted_ids: List[int] = field(default_factory=list)
    assignment: AssignmentResult = field(default_factory=AssignmentResult)

    def confirmed(self) -> List[TrackView]:
        return [t for t in self.tracks if t.is_confirmed]


class PedestrianTracker:
    """
    Per-frame multi-pedestrian tracking loop:
    predict -> cost -> assign -> update assigned -> update unassigned -> delete lost -> create.
    The TrackStore is the only state carried between frames.
    """

    def __init__(self, cfg: TrackerConfig | None = None):
        self.cfg = cfg or TrackerConfig()
        self.store = TrackStore(
            time_window_size=self.cfg.time_window_size,
            age_thresh=self.cfg.age_thresh,
            vis_thresh=self.cfg.vis_thresh,
            confidence_thresh=self.cfg.confidence_thresh,
            motion_noise=self.cfg.motion,
        )
        self.frame_index = 0
        self.logger = get_logger(__name__)

    def update(self, detections: Sequence[Detection]) -> TrackingResult:
        """
        Process one frame of detections. A malformed detection set raises ValueError before any
        track is touched.
        """
        detections = list(detections)
        validate_detections(detections)
        self.frame_index += 1

        self.store.predict_all()

        cost = build_cost_matrix(
            self.store.predicted_bboxes(),
            [d.bbox for d in detections],
            gating_thresh=self.cfg.gating_thresh,
            gating_cost=self.cfg.gating_cost,
        )
        assignment = assign_detections_to_tracks(
            cost,
            self.cfg.cost_of_non_assignment,
            forbidden_above=self.cfg.gating_thresh,
        )

        self.store.update_assigned(assignment.matches, detections)
        self.store.update_unassigned(assignment.unassigned_tracks)
        deleted = self.store.delete_lost()
        created = self.store.create(detections, assignment.unassigned_detections)

        return TrackingResult(
            frame_index=self.frame_index,
            tracks=self.views(),
            created_ids=[t.track_id for t in created],
            deleted_ids=[t.track_id for t in deleted],
            assignment=assignment,
        )

    def views(self) -> List[TrackView]:
        return [t.view(self.cfg.age_thresh, self.cfg.confidence_thresh) for t in self.store]
