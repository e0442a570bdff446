import numpy as np
import pytest

from pedtrack.perception.tracking.track import TrackView
from pedtrack.visualization.overlay import draw_roi, draw_tracks, track_opacity


def view(confirmed):
    return TrackView(
        track_id=1,
        bbox=(10.0, 10.0, 20.0, 40.0),
        confidence=(3.0, 1.5),
        age=8,
        total_visible_count=8,
        visibility=1.0,
        is_confirmed=confirmed,
        color=(0, 200, 255),
    )


def test_opacity_is_clamped():
    assert track_opacity(0.0) == 0.1
    assert track_opacity(0.9) == pytest.approx(0.3)
    assert track_opacity(30.0) == 0.5


def test_only_confirmed_tracks_are_drawn():
    frame = np.zeros((100, 100, 3), dtype=np.uint8)
    assert not draw_tracks(frame, [view(False)]).any()
    out = draw_tracks(frame, [view(True)])
    assert out.shape == frame.shape
    assert out[30, 20].any()
    assert not frame.any()


def test_roi_outline():
    frame = np.zeros((100, 100, 3), dtype=np.uint8)
    out = draw_roi(frame, (10, 10, 50, 50))
    assert out[10, 30, 2] == 255
