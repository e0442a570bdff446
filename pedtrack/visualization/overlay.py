from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

try:
    import cv2
except ImportError:  # pragma: no cover
    cv2 = None

from pedtrack.perception.tracking.track import TrackView
from pedtrack.utils.types import ROI, Detection


def track_opacity(mean_confidence: float) -> float:
    """Fill opacity grows with the track's mean detection score."""
    return min(0.5, max(0.1, mean_confidence / 3.0))


def _int_box(bbox) -> tuple:
    x, y, w, h = bbox
    return int(round(x)), int(round(y)), int(round(x + w)), int(round(y + h))


def draw_hud(frame: Any, fps: float, stages_ms: Dict[str, float], warnings: Optional[List[str]] = None):
    """Minimal HUD overlay with FPS and stage timings."""
    if cv2 is None:
        return frame

    render = frame.copy()
    y = 25
    cv2.putText(render, f"pedtrack | FPS: {fps:5.1f}", (15, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2)
    y += 24

    for name, ms in list(stages_ms.items())[:4]:
        cv2.putText(render, f"{name}: {ms:5.1f} ms", (15, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (220, 220, 220), 1)
        y += 18

    if warnings:
        y += 6
        for w in warnings[:3]:
            cv2.putText(render, w, (15, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 0, 255), 1)
            y += 20

    return render


def draw_detections(frame: Any, detections: Sequence[Detection]) -> Any:
    if cv2 is None:
        return frame
    render = frame.copy()
    for det in detections:
        x1, y1, x2, y2 = _int_box(det.bbox)
        color = (0, 255, 0)
        cv2.rectangle(render, (x1, y1), (x2, y2), color, 1)
        cv2.putText(render, f"{det.score:.2f}", (x1, y1 - 4), cv2.FONT_HERSHEY_SIMPLEX, 0.4, color, 1)
    return render


def draw_tracks(frame: Any, tracks: Sequence[TrackView], confirmed_only: bool = True) -> Any:
    """Filled, semi-transparent box per track, labeled with id and mean confidence."""
    if cv2 is None:
        return frame
    render = frame.copy()

    for tr in tracks:
        if confirmed_only and not tr.is_confirmed:
            continue
        x1, y1, x2, y2 = _int_box(tr.bbox)
        overlay = render.copy()
        cv2.rectangle(overlay, (x1, y1), (x2, y2), tr.color, -1)
        alpha = track_opacity(tr.mean_confidence)
        render = cv2.addWeighted(overlay, alpha, render, 1 - alpha, 0)
        cv2.rectangle(render, (x1, y1), (x2, y2), tr.color, 1)
        label = f"ID {tr.track_id} | {tr.mean_confidence:.2f}"
        cv2.putText(render, label, (x1, max(10, y1 - 6)), cv2.FONT_HERSHEY_SIMPLEX, 0.45, tr.color, 1)

    return render


def draw_roi(frame: Any, roi: ROI) -> Any:
    if cv2 is None or roi is None:
        return frame
    x1, y1, x2, y2 = _int_box(roi)
    cv2.rectangle(frame, (x1, y1), (x2, y2), (0, 0, 255), 2)
    return frame


def draw_world_text(frame: Any, world: Any) -> Any:
    if cv2 is None or world is None:
        return frame
    cv2.putText(
        frame,
        f"tracks={len(world.tracks)} confirmed={len(world.confirmed_tracks)} dets={len(world.detections)}",
        (15, frame.shape[0] - 15),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.5,
        (255, 255, 0),
        1,
    )
    return frame
