from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from pedtrack.utils.types import BBox, Point

RATIO_TYPES = ("min", "union")


def as_boxes(boxes: Iterable[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Coerce to a float (K, 4) array of [x, y, w, h] rows."""
    arr = np.asarray(list(boxes) if not isinstance(boxes, np.ndarray) else boxes, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 4), dtype=np.float64)
    return arr.reshape(-1, 4)


def recenter(bbox: BBox, center: Point) -> BBox:
    """Keep the box size, move it so its center sits on `center`."""
    _, _, w, h = bbox
    cx, cy = center
    return (float(cx - w / 2.0), float(cy - h / 2.0), float(w), float(h))


def bbox_overlap_ratio(
    boxes_a: Iterable[Sequence[float]] | np.ndarray,
    boxes_b: Iterable[Sequence[float]] | np.ndarray,
    ratio_type: str = "min",
) -> np.ndarray:
    """
    Pairwise overlap ratio between two sets of [x, y, w, h] boxes.

    ratio_type:
      "min"   -> intersection / min(area_a, area_b)
      "union" -> intersection / (area_a + area_b - intersection)

    Returns an (M, N) array in [0, 1].
    """
    if ratio_type not in RATIO_TYPES:
        raise ValueError(f"Unknown ratio_type {ratio_type!r}, expected one of {RATIO_TYPES}")

    a = as_boxes(boxes_a)
    b = as_boxes(boxes_b)
    if a.shape[0] == 0 or b.shape[0] == 0:
        return np.zeros((a.shape[0], b.shape[0]), dtype=np.float64)

    ax1, ay1 = a[:, 0:1], a[:, 1:2]
    ax2, ay2 = ax1 + a[:, 2:3], ay1 + a[:, 3:4]
    bx1, by1 = b[:, 0], b[:, 1]
    bx2, by2 = bx1 + b[:, 2], by1 + b[:, 3]

    iw = np.clip(np.minimum(ax2, bx2) - np.maximum(ax1, bx1), 0.0, None)
    ih = np.clip(np.minimum(ay2, by2) - np.maximum(ay1, by1), 0.0, None)
    inter = iw * ih

    area_a = (a[:, 2] * a[:, 3])[:, None]
    area_b = (b[:, 2] * b[:, 3])[None, :]
    if ratio_type == "min":
        denom = np.minimum(area_a, area_b)
    else:
        denom = area_a + area_b - inter

    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = np.where(denom > 0, inter / denom, 0.0)
    return np.clip(ratio, 0.0, 1.0)


def box_inside(bbox: BBox, region: BBox) -> bool:
    x, y, w, h = bbox
    rx, ry, rw, rh = region
    return x >= rx and y >= ry and x + w <= rx + rw and y + h <= ry + rh
