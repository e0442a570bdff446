from pathlib import Path

import pytest

from pedtrack.perception.tracking.pedestrian_tracker import TrackerConfig
from pedtrack.utils.config import get, load_yaml, section

CONFIG = Path(__file__).resolve().parents[1] / "configs" / "tracking.yaml"


def test_default_tracker_config():
    cfg = TrackerConfig()
    assert (cfg.gating_thresh, cfg.gating_cost, cfg.cost_of_non_assignment) == (0.9, 100.0, 10.0)
    assert (cfg.time_window_size, cfg.confidence_thresh, cfg.age_thresh, cfg.vis_thresh) == (16, 2.0, 8, 0.6)


def test_shipped_config_loads():
    cfg = load_yaml(CONFIG)
    tracker_cfg = TrackerConfig.from_dict(section(cfg, "tracking"))
    assert tracker_cfg.gating_thresh == 0.9
    assert tracker_cfg.motion.measurement_var == 100.0
    assert get(cfg, "preprocess.nms.overlap_threshold") == 0.6


def test_get_walks_dotted_paths():
    cfg = {"a": {"b": {"c": 3}}, "x": None}
    assert get(cfg, "a.b.c") == 3
    assert get(cfg, "a.missing", "d") == "d"
    assert section(cfg, "x") == {}


def test_missing_config_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_yaml(tmp_path / "nope.yaml")


def test_partial_tracking_section_keeps_defaults():
    cfg = TrackerConfig.from_dict({"age_thresh": 4})
    assert cfg.age_thresh == 4
    assert cfg.cost_of_non_assignment == 10.0
