from __future__ import annotations

import argparse
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import cv2
except ImportError:  # pragma: no cover
    cv2 = None

from rich.console import Console
from tqdm import tqdm

from pedtrack.inputs.detection_replay import DetectionRecorder, DetectionReplay
from pedtrack.inputs.video_input import VideoInput
from pedtrack.runtime.orchestrator import Orchestrator
from pedtrack.runtime.track_event_logger import TrackEventLogger
from pedtrack.utils.config import get, load_yaml
from pedtrack.utils.logger import setup_logger
from pedtrack.visualization.overlay import draw_detections, draw_hud, draw_roi, draw_tracks, draw_world_text


def make_run_dir(base_dir: str | Path) -> Path:
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_dir = Path(base_dir) / f"run_{ts}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="pedtrack - pedestrian tracking from a moving camera")
    parser.add_argument("--config", default="configs/tracking.yaml", help="Path to YAML config")
    parser.add_argument("--input", default=None, help="Path to input video")
    parser.add_argument("--detections", default=None, help="Replay detections from a JSON Lines file instead of running the detector")
    parser.add_argument("--max-frames", type=int, default=None, help="Stop after this many frames")
    parser.add_argument("--record-detections", action="store_true", help="Save the detector output as detections.jsonl")
    return parser


def render_frame(wm, roi, show_detections: bool):
    render = wm.frame
    if show_detections:
        render = draw_detections(render, wm.detections)
    render = draw_tracks(render, wm.tracks)
    render = draw_roi(render, roi)
    render = draw_world_text(render, wm)
    return draw_hud(render, wm.runtime.fps, wm.runtime.stages_ms, wm.warnings)


def main(argv: Optional[list] = None):
    args = build_parser().parse_args(argv)
    if args.input is None and args.detections is None:
        raise SystemExit("Provide --input (video) and/or --detections (replay file)")

    cfg: Dict[str, Any] = load_yaml(args.config)

    output_base = get(cfg, "runtime.output_dir", "results")
    run_dir = make_run_dir(output_base)
    logger = setup_logger(log_dir=run_dir, level=get(cfg, "runtime.log_level", "INFO"))

    console = Console()
    console.print(f"[bold]pedtrack[/bold] run dir: {run_dir}")

    max_frames = args.max_frames if args.max_frames is not None else get(cfg, "runtime.max_frames", None)
    vin = VideoInput(args.input, max_frames=max_frames) if args.input else None
    replay = DetectionReplay(args.detections, max_frames=max_frames) if args.detections else None
    if vin is not None:
        logger.info("Input video: %s", args.input)
    if replay is not None:
        logger.info("Replaying detections: %s", args.detections)

    orchestrator = Orchestrator(cfg, logger) if replay is not None else Orchestrator.with_yolo(cfg, logger)
    events = TrackEventLogger(run_dir)
    recorder = DetectionRecorder(run_dir / "detections.jsonl") if args.record_detections and replay is None else None

    out_video_path = run_dir / "output.mp4"
    save_video = bool(get(cfg, "runtime.save_video", True)) and vin is not None and vin.meta is not None
    save_metrics = bool(get(cfg, "runtime.save_metrics", True))
    overlay_enabled = bool(get(cfg, "runtime.overlay.enabled", True))
    show_detections = bool(get(cfg, "runtime.overlay.show_detections", False))

    writer = None
    if save_video:
        if cv2 is None:
            raise ImportError("opencv-python is required to save video output")
        fourcc = cv2.VideoWriter_fourcc(*"mp4v")
        writer = cv2.VideoWriter(str(out_video_path), fourcc, vin.meta.fps, (vin.meta.width, vin.meta.height))
        if not writer.isOpened():
            raise RuntimeError("Could not open VideoWriter (mp4v). Try a different codec/container.")

    metrics: Dict[str, Any] = {
        "input": {
            "video": args.input,
            "detections": args.detections,
            "meta": vin.meta.__dict__ if vin is not None and vin.meta else {},
        },
        "tracking": get(cfg, "tracking", {}),
        "frames": [],
    }

    fps = vin.fps if vin is not None else replay.frame_rate
    if vin is not None:
        source = vin.frames()
        total = vin.meta.frame_count if vin.meta and vin.meta.frame_count > 0 else None
    else:
        source = replay.frames()
        total = replay.frame_count

    for frame_id, packet in tqdm(source, total=total, desc="Tracking"):
        if vin is not None:
            frame = packet.frame
            detections = replay.detections_for(frame_id) if replay is not None else None
        else:
            frame = None
            detections = packet.frame

        wm = orchestrator.process_frame(frame_id, frame, detections=detections)
        events.log(frame_id, frame_id / fps, wm.created_ids, wm.deleted_ids, wm.tracks)
        if recorder is not None:
            recorder.record(frame_id, wm.detections)

        if writer is not None:
            render = render_frame(wm, orchestrator.preprocess.roi, show_detections) if overlay_enabled else wm.frame
            writer.write(render)

        if save_metrics:
            metrics["frames"].append(wm.to_metrics())

    if vin is not None:
        vin.stop()
    if writer is not None:
        writer.release()
        logger.info("Saved video: %s", out_video_path)

    if save_metrics:
        metrics["summary"] = {
            "frames": len(metrics["frames"]),
            "tracks_created": events.created,
            "tracks_deleted": events.deleted,
            "next_track_id": orchestrator.tracker.store.next_id,
        }
        metrics_path = run_dir / "metrics.json"
        metrics_path.write_text(json.dumps(metrics, indent=2), encoding="utf-8")
        logger.info("Saved metrics: %s", metrics_path)

    console.print(f"[green]Done.[/green] tracks created={events.created} deleted={events.deleted}")
    logger.info("Done.")
    return run_dir


if __name__ == "__main__":
    main()
