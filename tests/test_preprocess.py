import numpy as np
import pytest

from pedtrack.perception.detection.preprocess import (
    DetectionPreprocessor,
    ScaleTable,
    filter_by_roi,
    select_strongest,
    validate_detections,
)
from pedtrack.utils.types import Detection


def test_validate_detections_fails_fast():
    validate_detections([Detection((0, 0, 10, 20), 3.0)])
    validate_detections([])
    with pytest.raises(ValueError):
        validate_detections([Detection((0, 0, 10, 20), float("nan"))])
    with pytest.raises(ValueError):
        validate_detections([Detection((0, float("inf"), 10, 20), 1.0)])
    with pytest.raises(ValueError):
        validate_detections([Detection((0, 0, -1, 20), 1.0)])


def test_roi_keeps_only_boxes_fully_inside():
    dets = [Detection((50, 100, 20, 40), 1.0), Detection((30, 100, 20, 40), 1.0)]
    assert filter_by_roi(dets, (40, 95, 400, 140)) == [dets[0]]
    assert filter_by_roi(dets, None) == dets


def test_scale_table_rejects_implausible_heights():
    table = ScaleTable(np.full(200, 50.0))
    plausible = Detection((10, 100, 20, 50), 1.0)  # feet on row 150
    too_tall = Detection((10, 70, 20, 80), 1.0)
    assert table.filter([plausible, too_tall], tolerance=0.3) == [plausible]


def test_scale_table_clamps_foot_row():
    table = ScaleTable(np.arange(100, dtype=float) + 1)
    assert table.expected_height(10_000) == 100.0
    assert table.expected_height(-5) == 1.0
    with pytest.raises(ValueError):
        table.expected_height(float("nan"))


def test_scale_table_loads_from_disk(tmp_path):
    np.save(tmp_path / "scale.npy", np.linspace(10, 100, 50))
    (tmp_path / "scale.csv").write_text("10\n20\n30\n", encoding="utf-8")
    assert len(ScaleTable.load(tmp_path / "scale.npy")) == 50
    assert ScaleTable.load(tmp_path / "scale.csv").expected_height(1) == 20.0
    with pytest.raises(FileNotFoundError):
        ScaleTable.load(tmp_path / "missing.npy")


def test_select_strongest_suppresses_contained_weaker_box():
    strong = Detection((1, 1, 8, 16), 9.0)
    weak = Detection((0, 0, 10, 20), 5.0)
    apart = Detection((100, 0, 10, 20), 1.0)
    assert select_strongest([weak, strong, apart], overlap_threshold=0.6) == [strong, apart]


def test_preprocessor_chain_from_config():
    pre = DetectionPreprocessor.from_dict({"roi": [0, 0, 200, 200], "nms": {"overlap_threshold": 0.6}})
    dets = [
        Detection((10, 10, 20, 40), 5.0),
        Detection((11, 11, 18, 36), 2.0),
        Detection((190, 10, 20, 40), 8.0),
    ]
    assert pre(dets) == [dets[0]]


def test_preprocessor_can_disable_nms():
    pre = DetectionPreprocessor.from_dict({"nms": {"enabled": False}})
    dets = [Detection((10, 10, 20, 40), 5.0), Detection((11, 11, 18, 36), 2.0)]
    assert pre(dets) == dets
