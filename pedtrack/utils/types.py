from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

# (x, y, width, height) in image pixels, (x, y) is the top-left corner.
BBox = Tuple[float, float, float, float]
Point = Tuple[float, float]


@dataclass
class FramePacket:
    frame: object
    timestamp: float
    sensor_id: str = "camera_front"


@dataclass(frozen=True)
class Detection:
    """One candidate pedestrian from the external detector."""

    bbox: BBox
    score: float

    @property
    def centroid(self) -> Point:
        x, y, w, h = self.bbox
        return (x + w / 2.0, y + h / 2.0)

    @property
    def foot_row(self) -> float:
        return self.bbox[1] + self.bbox[3]

    def to_dict(self) -> dict:
        return {"bbox": [float(v) for v in self.bbox], "score": float(self.score)}

    @classmethod
    def from_dict(cls, data: dict) -> "Detection":
        bbox = data.get("bbox")
        if bbox is None or len(bbox) != 4:
            raise ValueError(f"Detection needs a 4-element bbox, got {bbox!r}")
        if "score" not in data:
            raise ValueError(f"Detection needs a score, got {data!r}")
        return cls(bbox=tuple(float(v) for v in bbox), score=float(data["score"]))


# Region of interest, same layout as BBox.
ROI = Optional[BBox]
