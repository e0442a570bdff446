#!/usr/bin/env python3
"""
Fit expected pedestrian height as a linear function of the foot row from annotated boxes.

Input CSV rows: x,y,w,h (a header line is allowed). Output: one expected height per image row.
"""
import argparse
from pathlib import Path

import numpy as np


def fit_scale_table(boxes: np.ndarray, rows: int) -> np.ndarray:
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    if boxes.shape[0] < 2:
        raise ValueError("Need at least two annotated boxes to fit a scale table")
    foot = boxes[:, 1] + boxes[:, 3]
    height = boxes[:, 3]
    slope, intercept = np.polyfit(foot, height, 1)
    table = slope * np.arange(rows, dtype=np.float64) + intercept
    return np.clip(table, 1.0, None)


def main():
    parser = argparse.ArgumentParser(description="Build a pedestrian scale table from annotations")
    parser.add_argument("annotations", help="CSV with x,y,w,h per annotated pedestrian")
    parser.add_argument("--rows", type=int, required=True, help="Image height in pixels")
    parser.add_argument("--out", default="configs/ped_scale_table.npy")
    args = parser.parse_args()

    path = Path(args.annotations)
    if not path.exists():
        raise FileNotFoundError(f"Missing: {path}")
    first_field = path.read_text(encoding="utf-8").split("\n", 1)[0].split(",")[0].strip()
    try:
        float(first_field)
        skip = 0
    except ValueError:
        skip = 1
    boxes = np.loadtxt(path, delimiter=",", skiprows=skip, ndmin=2)
    table = fit_scale_table(boxes, args.rows)

    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    np.save(out, table)
    print(f"Saved {len(table)} rows to {out} (row 0: {table[0]:.1f}px, row {len(table) - 1}: {table[-1]:.1f}px)")


if __name__ == "__main__":
    main()
