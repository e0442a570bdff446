#!/usr/bin/env python3
import json
import sys
from collections import defaultdict
from pathlib import Path
from statistics import mean, median


def safe_mean(xs):
    xs = [x for x in xs if x is not None]
    return mean(xs) if xs else None


def pct(n, d):
    return (100.0 * n / d) if d else 0.0


def track_lifetimes(events):
    """Frames between creation and deletion per track id (still-open tracks are skipped)."""
    born = {}
    lifetimes = {}
    for ev in events:
        tid = ev.get("track_id")
        if ev.get("event") == "created":
            born[tid] = ev.get("frame", 0)
        elif ev.get("event") == "deleted" and tid in born:
            lifetimes[tid] = ev.get("frame", 0) - born[tid]
    return lifetimes


def main():
    if len(sys.argv) < 2:
        print("Usage: python scripts/summarize_run.py results/run_YYYYMMDD_HHMMSS")
        sys.exit(1)

    run_dir = Path(sys.argv[1])
    metrics_path = run_dir / "metrics.json"
    if not metrics_path.exists():
        raise FileNotFoundError(f"Missing: {metrics_path}")

    m = json.loads(metrics_path.read_text())
    frames = m.get("frames", [])
    n = len(frames)
    if n == 0:
        print("No frames found in metrics.json")
        return

    events = []
    events_path = run_dir / "track_events.jsonl"
    if events_path.exists():
        events = [json.loads(line) for line in events_path.read_text().splitlines() if line.strip()]

    fps_vals = [f.get("fps") for f in frames if f.get("fps") is not None]
    stage_ms = defaultdict(list)
    for f in frames:
        for stage, ms in (f.get("stages_ms") or {}).items():
            stage_ms[stage].append(ms)

    live = [f.get("track_count", 0) for f in frames]
    confirmed = [f.get("confirmed_count", 0) for f in frames]
    raw_dets = [f.get("raw_detection_count", 0) for f in frames]
    kept_dets = [f.get("detection_count", 0) for f in frames]
    rejected = sum(1 for f in frames if any("rejected" in w for w in f.get("warnings", [])))

    created = sum(len(f.get("created_ids", [])) for f in frames)
    deleted = sum(len(f.get("deleted_ids", [])) for f in frames)
    lifetimes = track_lifetimes(events)
    short_lived = sum(1 for v in lifetimes.values() if v <= 1)

    print("\n================ PEDTRACK RUN SUMMARY ================")
    print(f"Run dir: {run_dir}")
    print(f"Frames: {n}")
    if fps_vals:
        print(f"FPS  avg={mean(fps_vals):.2f}  med={median(fps_vals):.2f}  min={min(fps_vals):.2f}  max={max(fps_vals):.2f}")
    else:
        print("FPS: (missing)")

    print("\nLatency (ms) (avg):")
    for stage, vals in stage_ms.items():
        sm = safe_mean(vals)
        print(f"  {stage:12s}: {sm:.2f}" if sm is not None else f"  {stage:12s}: (missing)")

    print("\nDetections:")
    print(f"  raw avg/frame:  {safe_mean(raw_dets):.2f}")
    print(f"  kept avg/frame: {safe_mean(kept_dets):.2f} ({pct(sum(kept_dets), sum(raw_dets)):.1f}% of raw)")
    print(f"  rejected frames: {rejected}")

    print("\nTracks:")
    print(f"  created: {created}  deleted: {deleted}")
    print(f"  live avg/frame: {safe_mean(live):.2f}  max: {max(live)}")
    print(f"  confirmed avg/frame: {safe_mean(confirmed):.2f}  max: {max(confirmed)}")
    if lifetimes:
        vals = list(lifetimes.values())
        print(f"  lifetime (frames): avg={mean(vals):.1f}  med={median(vals):.1f}  max={max(vals)}")
        print(f"  deleted after <= 1 frame: {short_lived} ({pct(short_lived, len(vals)):.1f}%)")
    print("======================================================\n")


if __name__ == "__main__":
    main()
