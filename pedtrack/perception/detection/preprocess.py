"""
Detector-side filtering applied before detections reach the tracker:
region of interest, calibrated scale check and non-maximum suppression.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import List, Sequence

import numpy as np

from pedtrack.perception.tracking.geometry import bbox_overlap_ratio, box_inside
from pedtrack.utils.types import ROI, Detection


def validate_detections(detections: Sequence[Detection]) -> None:
    """Reject the whole set if any box or score is unusable."""
    for i, det in enumerate(detections):
        if len(det.bbox) != 4:
            raise ValueError(f"Detection {i} needs 4 box values, got {det.bbox}")
        values = list(det.bbox) + [det.score]
        if not all(math.isfinite(float(v)) for v in values):
            raise ValueError(f"Detection {i} has non-finite values: bbox={det.bbox} score={det.score}")
        if det.bbox[2] <= 0 or det.bbox[3] <= 0:
            raise ValueError(f"Detection {i} has non-positive size: bbox={det.bbox}")


def filter_by_roi(detections: Sequence[Detection], roi: ROI) -> List[Detection]:
    if roi is None:
        return list(detections)
    return [d for d in detections if box_inside(d.bbox, roi)]


class ScaleTable:
    """
    Expected pedestrian height (px) indexed by the image row of the feet.
    Entry n is the height of an adult standing with feet on row n.
    """

    def __init__(self, heights: Sequence[float] | np.ndarray):
        self.heights = np.asarray(heights, dtype=np.float64).reshape(-1)
        if self.heights.size == 0:
            raise ValueError("Scale table is empty")

    def __len__(self) -> int:
        return int(self.heights.size)

    @classmethod
    def load(cls, path: str | Path) -> "ScaleTable":
        table_path = Path(path)
        if not table_path.exists():
            raise FileNotFoundError(f"Scale table not found: {table_path.resolve()}")
        if table_path.suffix == ".npy":
            return cls(np.load(table_path))
        delimiter = "," if table_path.suffix == ".csv" else None
        return cls(np.loadtxt(table_path, delimiter=delimiter, ndmin=1))

    def expected_height(self, foot_row: float) -> float:
        if not math.isfinite(foot_row):
            raise ValueError(f"Foot row must be finite, got {foot_row}")
        row = int(min(len(self) - 1, max(0, round(foot_row))))
        return float(self.heights[row])

    def is_plausible(self, detection: Detection, tolerance: float) -> bool:
        height = detection.bbox[3]
        expected = self.expected_height(detection.foot_row)
        return abs(expected - height) <= expected * tolerance

    def filter(self, detections: Sequence[Detection], tolerance: float = 0.3) -> List[Detection]:
        return [d for d in detections if self.is_plausible(d, tolerance)]


def select_strongest(
    detections: Sequence[Detection],
    overlap_threshold: float = 0.6,
    ratio_type: str = "min",
) -> List[Detection]:
    """Greedy NMS: highest score first, drop anything overlapping a kept box above the threshold."""
    if len(detections) <= 1:
        return list(detections)

    scores = np.array([d.score for d in detections], dtype=np.float64)
    order = np.argsort(-scores, kind="stable")
    overlap = bbox_overlap_ratio([d.bbox for d in detections], [d.bbox for d in detections], ratio_type)

    suppressed = np.zeros(len(detections), dtype=bool)
    keep: List[int] = []
    for i in order:
        if suppressed[i]:
            continue
        keep.append(int(i))
        suppressed |= overlap[i] > overlap_threshold

    # Keep the detector's original ordering for the survivors.
    return [detections[i] for i in sorted(keep)]


class DetectionPreprocessor:
    """ROI -> scale check -> NMS, configured from the `preprocess` config section."""

    def __init__(
        self,
        roi: ROI = None,
        scale_table: ScaleTable | None = None,
        scale_tolerance: float = 0.3,
        nms_overlap: float | None = 0.6,
        nms_ratio_type: str = "min",
    ):
        self.roi = roi
        self.scale_table = scale_table
        self.scale_tolerance = scale_tolerance
        self.nms_overlap = nms_overlap
        self.nms_ratio_type = nms_ratio_type

    @classmethod
    def from_dict(cls, cfg: dict | None) -> "DetectionPreprocessor":
        cfg = cfg or {}
        roi = cfg.get("roi")
        table_path = cfg.get("scale_table")
        nms_cfg = cfg.get("nms") or {}
        nms_enabled = bool(nms_cfg.get("enabled", True))
        return cls(
            roi=tuple(float(v) for v in roi) if roi else None,
            scale_table=ScaleTable.load(table_path) if table_path else None,
            scale_tolerance=float(cfg.get("scale_tolerance", 0.3)),
            nms_overlap=float(nms_cfg.get("overlap_threshold", 0.6)) if nms_enabled else None,
            nms_ratio_type=str(nms_cfg.get("ratio_type", "min")),
        )

    def __call__(self, detections: Sequence[Detection]) -> List[Detection]:
        out = filter_by_roi(detections, self.roi)
        if self.scale_table is not None:
            out = self.scale_table.filter(out, self.scale_tolerance)
        if self.nms_overlap is not None:
            out = select_strongest(out, self.nms_overlap, self.nms_ratio_type)
        return out
