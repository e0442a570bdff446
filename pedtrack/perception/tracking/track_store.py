from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from pedtrack.perception.tracking.motion import MotionNoise
from pedtrack.perception.tracking.track import Track
from pedtrack.utils.logger import get_logger
from pedtrack.utils.types import BBox, Detection


class TrackStore:
    """
    Owns the live tracks, in creation order, and applies the per-frame lifecycle rules.
    Indices handed out by `predicted_bboxes` stay valid until `delete_lost` runs.
    """

    def __init__(
        self,
        time_window_size: int = 16,
        age_thresh: int = 8,
        vis_thresh: float = 0.6,
        confidence_thresh: float = 2.0,
        motion_noise: MotionNoise | None = None,
    ):
        self.time_window_size = time_window_size
        self.age_thresh = age_thresh
        self.vis_thresh = vis_thresh
        self.confidence_thresh = confidence_thresh
        self.motion_noise = motion_noise or MotionNoise()
        self.logger = get_logger(__name__)

        self._tracks: List[Track] = []
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __getitem__(self, index: int) -> Track:
        return self._tracks[index]

    @property
    def next_id(self) -> int:
        return self._next_id

    def predict_all(self) -> List[BBox]:
        return [t.predict() for t in self._tracks]

    def predicted_bboxes(self) -> List[BBox]:
        return [t.predicted_bbox for t in self._tracks]

    def update_assigned(self, matches: Sequence[Tuple[int, int]], detections: Sequence[Detection]) -> None:
        for track_idx, det_idx in matches:
            self._tracks[track_idx].update_assigned(detections[det_idx], self.time_window_size)

    def update_unassigned(self, track_indices: Sequence[int]) -> None:
        for track_idx in track_indices:
            self._tracks[track_idx].update_unassigned(self.time_window_size)

    def delete_lost(self) -> List[Track]:
        if not self._tracks:
            return []
        kept: List[Track] = []
        lost: List[Track] = []
        for t in self._tracks:
            if t.is_lost(self.age_thresh, self.vis_thresh, self.confidence_thresh):
                lost.append(t)
            else:
                kept.append(t)
        self._tracks = kept
        for t in lost:
            self.logger.debug(
                "Track deleted: %d age=%d visibility=%.2f max_conf=%.2f",
                t.track_id,
                t.age,
                t.visibility,
                t.max_confidence,
            )
        return lost

    def create(self, detections: Sequence[Detection], detection_indices: Sequence[int]) -> List[Track]:
        created: List[Track] = []
        for det_idx in detection_indices:
            track = Track.from_detection(self._next_id, detections[det_idx], self.motion_noise)
            self._next_id += 1
            self._tracks.append(track)
            created.append(track)
            self.logger.debug("New track created: %d score=%.2f", track.track_id, track.scores[0])
        return created
