from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import yaml


def load_yaml(path: str | Path) -> Dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path.resolve()}")
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping: {config_path}")
    return data


def get(cfg: Dict[str, Any], key: str, default: Any = None) -> Any:
    """
    Dot-access helper:
      get(cfg, "tracking.gating_thresh", 0.9)
    """
    cur: Any = cfg
    for part in key.split("."):
        if not isinstance(cur, dict) or part not in cur:
            return default
        cur = cur[part]
    return cur


def section(cfg: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Like `get`, but always hands back a dict (empty when missing or null)."""
    value = get(cfg, key, None)
    return value if isinstance(value, dict) else {}
