"""
Rectangular min-cost assignment with a per-row / per-column cost for staying unassigned.

The (M x N) problem is padded to a square (M + N) x (M + N) matrix:

    | cost (M x N)              | track-unassigned (M x M) |
    | detection-unassigned (NxN)| zeros (N x M)            |

Unassigned blocks carry `cost_of_non_assignment` on their diagonal only, so every row and column
always has a finite option and the problem is feasible. Forbidden cells get a sentinel strictly
larger than (M + N) * cost_of_non_assignment, the total of leaving everything unassigned, so no
optimal solution can ever use one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from scipy.optimize import linear_sum_assignment


@dataclass
class AssignmentResult:
    matches: List[Tuple[int, int]] = field(default_factory=list)  # (track_idx, detection_idx)
    unassigned_tracks: List[int] = field(default_factory=list)
    unassigned_detections: List[int] = field(default_factory=list)


def forbidden_sentinel(num_tracks: int, num_detections: int, cost_of_non_assignment: float) -> float:
    return (num_tracks + num_detections) * float(cost_of_non_assignment) + 1.0


def assign_detections_to_tracks(
    cost: np.ndarray,
    cost_of_non_assignment: float,
    forbidden_above: Optional[float] = None,
) -> AssignmentResult:
    """
    Solve the assignment for an (M tracks x N detections) cost matrix.

    Non-finite cells are forbidden. When `forbidden_above` is given, cells with a cost above it are
    forbidden too (the tracker passes its gating threshold so gated pairs can never be matched,
    whatever the non-assignment cost).
    """
    cost = np.asarray(cost, dtype=np.float64)
    if cost.ndim != 2:
        raise ValueError(f"Cost matrix must be 2-D, got shape {cost.shape}")
    if np.isnan(cost).any():
        raise ValueError("Cost matrix contains NaN")
    if not np.isfinite(cost_of_non_assignment) or cost_of_non_assignment < 0:
        raise ValueError(f"cost_of_non_assignment must be finite and >= 0, got {cost_of_non_assignment}")

    num_tracks, num_dets = cost.shape
    if num_tracks == 0 or num_dets == 0:
        return AssignmentResult(
            matches=[],
            unassigned_tracks=list(range(num_tracks)),
            unassigned_detections=list(range(num_dets)),
        )

    forbidden = ~np.isfinite(cost)
    if forbidden_above is not None:
        forbidden |= cost > forbidden_above

    sentinel = forbidden_sentinel(num_tracks, num_dets, cost_of_non_assignment)
    size = num_tracks + num_dets
    padded = np.zeros((size, size), dtype=np.float64)

    padded[:num_tracks, :num_dets] = np.where(forbidden, sentinel, cost)

    track_block = np.full((num_tracks, num_tracks), sentinel)
    np.fill_diagonal(track_block, cost_of_non_assignment)
    padded[:num_tracks, num_dets:] = track_block

    det_block = np.full((num_dets, num_dets), sentinel)
    np.fill_diagonal(det_block, cost_of_non_assignment)
    padded[num_tracks:, :num_dets] = det_block

    rows, cols = linear_sum_assignment(padded)

    result = AssignmentResult()
    matched_tracks = set()
    matched_dets = set()
    for r, c in zip(rows, cols):
        if r < num_tracks and c < num_dets and not forbidden[r, c]:
            result.matches.append((int(r), int(c)))
            matched_tracks.add(int(r))
            matched_dets.add(int(c))

    result.unassigned_tracks = [i for i in range(num_tracks) if i not in matched_tracks]
    result.unassigned_detections = [j for j in range(num_dets) if j not in matched_dets]
    return result
