from __future__ import annotations

from typing import List

import numpy as np
import torch
from ultralytics import YOLO

try:
    import cv2
except ImportError:  # pragma: no cover
    cv2 = None

from pedtrack.utils.types import Detection

PERSON_CLASS_ID = 0  # COCO


class YOLOPersonDetector:
    """
    YOLOv8 wrapper producing class-agnostic pedestrian candidates as [x, y, w, h] + score.
    Frames can be upscaled before inference so distant people are large enough to detect;
    boxes are mapped back to the original frame coordinates.
    """

    def __init__(self, model_name: str = "yolov8n.pt", device: str | None = None, resize_ratio: float = 1.0):
        if device is None:
            if torch.cuda.is_available():
                device = "cuda"
            elif torch.backends.mps.is_available():
                device = "mps"
            else:
                device = "cpu"
        self.device = device
        self.resize_ratio = float(resize_ratio)
        self.model = YOLO(model_name)
        self.model.to(self.device)

    def infer(self, frame: np.ndarray, conf_thres: float = 0.25) -> List[Detection]:
        """
        Run YOLO inference on a single frame.
        """
        image = frame
        if self.resize_ratio != 1.0:
            if cv2 is None:
                raise ImportError("opencv-python is required to resize frames before detection")
            image = cv2.resize(frame, None, fx=self.resize_ratio, fy=self.resize_ratio, interpolation=cv2.INTER_NEAREST)

        results = self.model(
            image,
            device=self.device,
            conf=conf_thres,
            classes=[PERSON_CLASS_ID],
            verbose=False,
        )[0]

        detections: List[Detection] = []

        if results.boxes is None:
            return detections

        for box in results.boxes:
            if int(box.cls.item()) != PERSON_CLASS_ID:
                continue

            x1, y1, x2, y2 = (v / self.resize_ratio for v in box.xyxy[0].tolist())
            w, h = x2 - x1, y2 - y1
            if w <= 0 or h <= 0:
                continue

            detections.append(Detection(bbox=(float(x1), float(y1), float(w), float(h)), score=float(box.conf.item())))

        return detections
