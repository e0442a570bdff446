from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from pedtrack.perception.detection.preprocess import DetectionPreprocessor, validate_detections
from pedtrack.perception.tracking.pedestrian_tracker import PedestrianTracker, TrackerConfig
from pedtrack.utils.config import get, section
from pedtrack.utils.timing import FPSMeter, StageTimer
from pedtrack.utils.types import Detection
from pedtrack.world.world_model import RuntimeStats, WorldModel


class Orchestrator:
    """
    Per-frame runtime: detect -> preprocess -> track, producing a WorldModel.
    The detector is optional when detections are supplied by the caller (e.g. a replay file).
    """

    def __init__(self, cfg: Dict[str, Any], logger, detector: Any = None):
        self.cfg = cfg
        self.logger = logger
        self.fps_meter = FPSMeter(smoothing=float(get(cfg, "runtime.fps_smoothing", 0.9)))
        self.detector = detector
        self.conf_thres = float(get(cfg, "detector.conf_thres", 0.25))
        self.preprocess = DetectionPreprocessor.from_dict(section(cfg, "preprocess"))
        self.tracker = PedestrianTracker(TrackerConfig.from_dict(section(cfg, "tracking")))
        self.summary_interval = int(get(cfg, "runtime.summary_interval", 30))
        self._last_tracks: List[Any] = []

    @classmethod
    def with_yolo(cls, cfg: Dict[str, Any], logger) -> "Orchestrator":
        from pedtrack.perception.detection.yolo import YOLOPersonDetector

        det_cfg = section(cfg, "detector")
        detector = YOLOPersonDetector(
            model_name=det_cfg.get("model", "yolov8n.pt"),
            device=det_cfg.get("device"),
            resize_ratio=float(det_cfg.get("resize_ratio", 1.0)),
        )
        return cls(cfg, logger, detector=detector)

    def process_frame(self, frame_id: int, frame: Any, detections: Optional[Sequence[Detection]] = None) -> WorldModel:
        warnings: List[str] = []
        timer = StageTimer()

        # Stage: detection
        with timer.stage("detection"):
            if detections is None:
                if self.detector is None:
                    raise RuntimeError("No detector configured and no detections supplied")
                detections = self.detector.infer(frame, conf_thres=self.conf_thres)
            raw = list(detections)

        # Stage: validation + ROI / scale / NMS
        rejected: Optional[ValueError] = None
        kept: List[Detection] = []
        with timer.stage("preprocess"):
            try:
                validate_detections(raw)
            except ValueError as exc:
                rejected = exc
            else:
                kept = self.preprocess(raw)

        # Stage: tracking
        created: List[int] = []
        deleted: List[int] = []
        with timer.stage("tracking"):
            if rejected is None:
                try:
                    result = self.tracker.update(kept)
                except ValueError as exc:
                    rejected = exc
            if rejected is not None:
                self.logger.warning("Frame %d: detection set rejected: %s", frame_id, rejected)
                warnings.append(f"WARNING: detections rejected ({rejected})")
                tracks = self._last_tracks
            else:
                tracks = result.tracks
                created = result.created_ids
                deleted = result.deleted_ids
                self._last_tracks = tracks

        fps = self.fps_meter.tick()
        target = float(get(self.cfg, "runtime.target_fps", 0) or 0)
        if target and fps < target * 0.6:
            warnings.append(f"FPS low ({fps:.1f} < {target:.0f})")

        wm = WorldModel(
            frame_id=frame_id,
            frame=frame,
            detections=kept,
            raw_detection_count=len(raw),
            tracks=tracks,
            created_ids=created,
            deleted_ids=deleted,
            warnings=warnings,
            runtime=RuntimeStats(fps=fps, stages_ms=timer.stages_ms),
        )
        if self.summary_interval > 0 and frame_id % self.summary_interval == 0:
            self.logger.info("[TRACK] %s", wm.summary())
        return wm
