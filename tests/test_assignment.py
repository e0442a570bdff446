import numpy as np
import pytest

from pedtrack.perception.tracking.assignment import assign_detections_to_tracks
from pedtrack.perception.tracking.cost import gated_cost_value


def check_partition(result, num_tracks, num_dets):
    tracks = [t for t, _ in result.matches] + result.unassigned_tracks
    dets = [d for _, d in result.matches] + result.unassigned_detections
    assert sorted(tracks) == list(range(num_tracks))
    assert sorted(dets) == list(range(num_dets))


def test_picks_minimum_total_cost():
    cost = np.array([[0.1, 0.8], [0.2, 0.3]])
    result = assign_detections_to_tracks(cost, 10)
    assert sorted(result.matches) == [(0, 0), (1, 1)]
    assert result.unassigned_tracks == []
    assert result.unassigned_detections == []


def test_prefers_non_assignment_when_cheaper():
    cost = np.array([[0.8]])
    result = assign_detections_to_tracks(cost, 0.3)
    assert result.matches == []
    assert result.unassigned_tracks == [0]
    assert result.unassigned_detections == [0]


def test_no_tracks_or_no_detections():
    result = assign_detections_to_tracks(np.zeros((0, 2)), 10)
    assert result.matches == [] and result.unassigned_tracks == [] and result.unassigned_detections == [0, 1]
    result = assign_detections_to_tracks(np.zeros((3, 0)), 10)
    assert result.matches == [] and result.unassigned_tracks == [0, 1, 2] and result.unassigned_detections == []


def test_every_index_lands_in_exactly_one_set():
    rng = np.random.default_rng(0)
    for num_tracks, num_dets in [(1, 1), (3, 5), (6, 2), (7, 7)]:
        cost = rng.random((num_tracks, num_dets))
        cost[cost > 0.7] = gated_cost_value(100)
        result = assign_detections_to_tracks(cost, 0.5)
        check_partition(result, num_tracks, num_dets)
        assert len({t for t, _ in result.matches}) == len(result.matches)
        assert len({d for _, d in result.matches}) == len(result.matches)


def test_gated_pairs_never_matched():
    rng = np.random.default_rng(7)
    gating_thresh, gating_cost = 0.9, 100.0
    for cost_of_non_assignment in (0.5, 10.0, 60.0, 100.0):
        for _ in range(20):
            raw = rng.random((4, 5)) * 1.0
            cost = raw.copy()
            cost[cost > gating_thresh] = gated_cost_value(gating_cost)
            result = assign_detections_to_tracks(cost, cost_of_non_assignment, forbidden_above=gating_thresh)
            for t, d in result.matches:
                assert raw[t, d] <= gating_thresh
            check_partition(result, 4, 5)


def test_ties_are_deterministic():
    cost = np.zeros((3, 3))
    first = assign_detections_to_tracks(cost, 10)
    second = assign_detections_to_tracks(cost, 10)
    assert first.matches == second.matches
    assert len(first.matches) == 3


def test_nan_costs_are_rejected():
    with pytest.raises(ValueError):
        assign_detections_to_tracks(np.array([[np.nan]]), 10)


def test_infinite_cells_are_forbidden():
    cost = np.array([[np.inf, 0.2]])
    result = assign_detections_to_tracks(cost, 10)
    assert result.matches == [(0, 1)]
    assert result.unassigned_detections == [0]
