import pytest

from pedtrack.perception.tracking.track import window_confidence
from pedtrack.perception.tracking.track_store import TrackStore
from pedtrack.utils.types import Detection


def make_store(**kwargs):
    params = dict(time_window_size=16, age_thresh=8, vis_thresh=0.6, confidence_thresh=2.0)
    params.update(kwargs)
    return TrackStore(**params)


def test_create_initializes_single_frame_history():
    store = make_store()
    dets = [Detection((10, 20, 30, 60), 12.0), Detection((200, 20, 30, 60), 7.0)]
    created = store.create(dets, [0, 1])
    assert [t.track_id for t in created] == [1, 2]
    for t, d in zip(created, dets):
        assert t.age == 1
        assert t.total_visible_count == 1
        assert t.bboxes == [d.bbox]
        assert t.scores == [d.score]
        assert t.confidence == (d.score, d.score)
        assert t.predicted_bbox == d.bbox
    assert store.next_id == 3


def test_assigned_update_smooths_size_and_recenters():
    store = make_store()
    store.create([Detection((0, 0, 10, 20), 5.0)], [0])
    store.predict_all()
    store.update_assigned([(0, 0)], [Detection((100, 100, 20, 40), 9.0)])
    track = store[0]
    # mean of the previous box (10x20) and the detection (20x40), centered on (110, 120)
    assert track.bbox == pytest.approx((102.5, 105.0, 15.0, 30.0))
    assert track.age == 2
    assert track.total_visible_count == 2
    assert track.scores == [5.0, 9.0]
    assert track.confidence == pytest.approx((9.0, 7.0))


def test_size_smoothing_uses_at_most_four_previous_boxes():
    store = make_store()
    store.create([Detection((0, 0, 10, 10), 5.0)], [0])
    track = store[0]
    track.bboxes = [(0, 0, 100, 100), (0, 0, 10, 10), (0, 0, 10, 10), (0, 0, 10, 10), (0, 0, 10, 10)]
    track.scores = [5.0] * 5
    track.age = track.total_visible_count = 5
    store.predict_all()
    store.update_assigned([(0, 0)], [Detection((0, 0, 20, 20), 5.0)])
    assert track.bbox[2] == pytest.approx((4 * 10 + 20) / 5)


def test_unassigned_update_coasts_on_prediction():
    store = make_store()
    store.create([Detection((0, 0, 10, 20), 5.0)], [0])
    predicted = store.predict_all()[0]
    store.update_unassigned([0])
    track = store[0]
    assert track.bbox == predicted
    assert track.scores == [5.0, 0.0]
    assert track.age == 2
    assert track.total_visible_count == 1
    assert track.confidence == pytest.approx((5.0, 2.5))


def test_confidence_window_only_sees_recent_scores():
    assert window_confidence([9.0, 1.0, 2.0, 3.0], 3) == pytest.approx((3.0, 2.0))
    assert window_confidence([4.0], 16) == (4.0, 4.0)


def test_young_rarely_seen_track_is_deleted():
    store = make_store()
    store.create([Detection((0, 0, 10, 20), 5.0)], [0])
    store.predict_all()
    store.update_unassigned([0])  # age 2, visibility 0.5
    lost = store.delete_lost()
    assert [t.track_id for t in lost] == [1]
    assert len(store) == 0


def test_weak_track_is_deleted_regardless_of_age():
    store = make_store()
    store.create([Detection((0, 0, 10, 20), 50.0)], [0])
    track = store[0]
    track.age = track.total_visible_count = 40
    track.confidence = (2.0, 1.0)
    assert [t.track_id for t in store.delete_lost()] == [1]


def test_old_track_with_all_zero_window_is_deleted():
    store = make_store()
    store.create([Detection((0, 0, 10, 20), 5.0)], [0])
    track = store[0]
    track.age = 9
    track.total_visible_count = 1
    track.scores = [0.0] * 9
    track.confidence = (0.0, 0.0)
    assert len(store.delete_lost()) == 1


def test_old_strong_track_survives_low_visibility():
    store = make_store()
    store.create([Detection((0, 0, 10, 20), 5.0)], [0])
    track = store[0]
    track.age = 20
    track.total_visible_count = 2
    track.confidence = (5.0, 0.5)
    assert store.delete_lost() == []
    assert len(store) == 1


def test_ids_are_not_reused_after_deletion():
    store = make_store()
    store.create([Detection((0, 0, 10, 20), 5.0)], [0])
    store[0].confidence = (0.0, 0.0)
    assert [t.track_id for t in store.delete_lost()] == [1]
    created = store.create([Detection((0, 0, 10, 20), 5.0)], [0])
    assert created[0].track_id == 2
