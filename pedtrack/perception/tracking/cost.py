from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from pedtrack.perception.tracking.geometry import as_boxes, bbox_overlap_ratio


def gated_cost_value(gating_cost: float) -> float:
    """Value written into gated cells: always above the soft cost ceiling of 1."""
    return 1.0 + float(gating_cost)


def build_cost_matrix(
    predicted_boxes: Iterable[Sequence[float]] | np.ndarray,
    detection_boxes: Iterable[Sequence[float]] | np.ndarray,
    gating_thresh: float,
    gating_cost: float,
) -> np.ndarray:
    """
    (M tracks) x (N detections) association cost.

    cost = 1 - overlap ratio (intersection over the smaller area), so 0 means the boxes coincide.
    Cells whose cost exceeds `gating_thresh` are replaced by 1 + gating_cost.
    """
    pred = as_boxes(predicted_boxes)
    dets = as_boxes(detection_boxes)
    cost = 1.0 - bbox_overlap_ratio(pred, dets, ratio_type="min")
    cost[cost > gating_thresh] = gated_cost_value(gating_cost)
    return cost
