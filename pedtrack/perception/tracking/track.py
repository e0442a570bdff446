from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from pedtrack.perception.tracking.geometry import recenter
from pedtrack.perception.tracking.motion import ConstantVelocityKalman, MotionNoise
from pedtrack.utils.types import BBox, Detection

SIZE_SMOOTHING_FRAMES = 4


def color_for_id(track_id: int) -> Tuple[int, int, int]:
    """Stable BGR color per id (render only)."""
    rng = np.random.default_rng(track_id)
    b, g, r = rng.integers(40, 256, size=3)
    return int(b), int(g), int(r)


def window_confidence(scores: List[float], window: int) -> Tuple[float, float]:
    """(max, mean) over the last `window` scores."""
    recent = scores[-min(window, len(scores)):]
    return float(max(recent)), float(sum(recent) / len(recent))


@dataclass
class Track:
    """One hypothesized pedestrian. Owned and mutated by the TrackStore only."""

    track_id: int
    kalman: ConstantVelocityKalman
    bboxes: List[BBox]
    scores: List[float]
    age: int = 1
    total_visible_count: int = 1
    confidence: Tuple[float, float] = (0.0, 0.0)
    predicted_bbox: Optional[BBox] = None
    color: Tuple[int, int, int] = (255, 200, 0)

    @classmethod
    def from_detection(cls, track_id: int, detection: Detection, noise: MotionNoise | None = None) -> "Track":
        bbox = tuple(float(v) for v in detection.bbox)
        score = float(detection.score)
        return cls(
            track_id=track_id,
            kalman=ConstantVelocityKalman(detection.centroid, noise),
            bboxes=[bbox],
            scores=[score],
            age=1,
            total_visible_count=1,
            confidence=(score, score),
            predicted_bbox=bbox,
            color=color_for_id(track_id),
        )

    @property
    def bbox(self) -> BBox:
        return self.bboxes[-1]

    @property
    def visibility(self) -> float:
        return self.total_visible_count / self.age

    @property
    def max_confidence(self) -> float:
        return self.confidence[0]

    def predict(self) -> BBox:
        """Predicted box for this frame: last box size, centered on the filter's prediction."""
        self.predicted_bbox = recenter(self.bbox, self.kalman.predict())
        return self.predicted_bbox

    def update_assigned(self, detection: Detection, time_window: int) -> None:
        centroid = detection.centroid
        self.kalman.correct(centroid)

        # Average the size over the last few boxes plus this detection to damp detector jitter.
        recent = self.bboxes[-min(len(self.bboxes), SIZE_SMOOTHING_FRAMES):]
        w = (sum(b[2] for b in recent) + detection.bbox[2]) / (len(recent) + 1)
        h = (sum(b[3] for b in recent) + detection.bbox[3]) / (len(recent) + 1)
        self.bboxes.append(recenter((0.0, 0.0, w, h), centroid))

        self.scores.append(float(detection.score))
        self.age += 1
        self.total_visible_count += 1
        self.confidence = window_confidence(self.scores, time_window)

    def update_unassigned(self, time_window: int) -> None:
        # No correction: the filter keeps coasting on its own prediction.
        self.bboxes.append(self.predicted_bbox if self.predicted_bbox is not None else self.bbox)
        self.scores.append(0.0)
        self.age += 1
        self.confidence = window_confidence(self.scores, time_window)

    def is_lost(self, age_thresh: int, vis_thresh: float, confidence_thresh: float) -> bool:
        young_and_rarely_seen = self.age <= age_thresh and self.visibility <= vis_thresh
        return young_and_rarely_seen or self.max_confidence <= confidence_thresh

    def is_confirmed(self, age_thresh: int, confidence_thresh: float) -> bool:
        """Presentation filter only; deletion uses `is_lost`."""
        established = self.age >= age_thresh or self.max_confidence >= confidence_thresh
        return established and self.age >= age_thresh / 2

    def view(self, age_thresh: int, confidence_thresh: float) -> "TrackView":
        return TrackView(
            track_id=self.track_id,
            bbox=self.bbox,
            confidence=self.confidence,
            age=self.age,
            total_visible_count=self.total_visible_count,
            visibility=self.visibility,
            is_confirmed=self.is_confirmed(age_thresh, confidence_thresh),
            velocity_px_per_frame=self.kalman.velocity,
            color=self.color,
        )


@dataclass(frozen=True)
class TrackView:
    """Read-only per-frame snapshot of a track handed to downstream consumers."""

    track_id: int
    bbox: BBox
    confidence: Tuple[float, float]
    age: int
    total_visible_count: int
    visibility: float
    is_confirmed: bool
    velocity_px_per_frame: Optional[Tuple[float, float]] = None
    color: Tuple[int, int, int] = field(default=(255, 200, 0))

    @property
    def max_confidence(self) -> float:
        return self.confidence[0]

    @property
    def mean_confidence(self) -> float:
        return self.confidence[1]

    def to_dict(self) -> dict:
        return {
            "id": self.track_id,
            "bbox": [round(float(v), 2) for v in self.bbox],
            "confidence": [round(self.confidence[0], 4), round(self.confidence[1], 4)],
            "age": self.age,
            "visible": self.total_visible_count,
            "confirmed": self.is_confirmed,
            "velocity": None
            if self.velocity_px_per_frame is None
            else [round(float(v), 3) for v in self.velocity_px_per_frame],
        }
