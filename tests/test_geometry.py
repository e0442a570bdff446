import numpy as np
import pytest

from pedtrack.perception.tracking.geometry import bbox_overlap_ratio, box_inside, recenter
from pedtrack.utils.types import Detection


def test_overlap_ratio_min_and_union():
    a = [(0, 0, 10, 10)]
    b = [(5, 0, 10, 10)]
    assert bbox_overlap_ratio(a, b, "min")[0, 0] == pytest.approx(0.5)
    assert bbox_overlap_ratio(a, b, "union")[0, 0] == pytest.approx(50 / 150)


def test_overlap_ratio_min_is_one_for_contained_box():
    big = [(0, 0, 10, 10)]
    small = [(2, 2, 4, 4)]
    assert bbox_overlap_ratio(big, small, "min")[0, 0] == pytest.approx(1.0)
    assert bbox_overlap_ratio(big, small, "union")[0, 0] == pytest.approx(16 / 100)


def test_overlap_ratio_is_pairwise_and_zero_when_disjoint():
    ratio = bbox_overlap_ratio([(0, 0, 10, 10), (100, 100, 5, 5)], [(0, 0, 10, 10), (50, 50, 1, 1), (101, 101, 2, 2)])
    assert ratio.shape == (2, 3)
    assert ratio[0, 0] == pytest.approx(1.0)
    assert ratio[0, 1] == 0.0
    assert ratio[1, 2] == pytest.approx(1.0)


def test_overlap_ratio_empty_inputs():
    assert bbox_overlap_ratio([], [(0, 0, 1, 1)] * 3).shape == (0, 3)
    assert bbox_overlap_ratio(np.zeros((2, 4)) + 1, []).shape == (2, 0)


def test_overlap_ratio_rejects_unknown_type():
    with pytest.raises(ValueError):
        bbox_overlap_ratio([(0, 0, 1, 1)], [(0, 0, 1, 1)], "iou")


def test_recenter_keeps_size():
    box = recenter((0, 0, 20, 40), (100, 100))
    assert box == (90.0, 80.0, 20.0, 40.0)
    assert Detection(box, 1.0).centroid == (100.0, 100.0)


def test_box_inside():
    roi = (40, 95, 400, 140)
    assert box_inside((50, 100, 20, 40), roi)
    assert not box_inside((30, 100, 20, 40), roi)
    assert not box_inside((420, 100, 30, 40), roi)
