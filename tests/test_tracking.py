from __future__ import annotations

import pytest

from clipframe.models import FaceBox, FaceFrame, FaceTrack
from clipframe.framing.tracking import box_at_time, build_face_tracks, intersection_over_union


def _box(t: float, x: float, y: float = 200.0, size: float = 120.0, score: float = 0.95) -> FaceBox:
    return FaceBox(t=t, x=x, y=y, w=size, h=size, score=score)


def test_build_face_tracks_links_detections_by_proximity() -> None:
    frames = [
        FaceFrame(t=0.0, boxes=[_box(0.0, 300), _box(0.0, 1400)]),
        FaceFrame(t=0.33, boxes=[_box(0.33, 1410), _box(0.33, 305)]),
        FaceFrame(t=0.66, boxes=[_box(0.66, 310), _box(0.66, 1420), _box(0.66, 800)]),
    ]

    tracks = build_face_tracks(frames)

    assert [track.track_id for track in tracks] == ["track_0", "track_1"]
    assert [sample.x for sample in tracks[0].samples] == [300, 305, 310]
    assert [sample.x for sample in tracks[1].samples] == [1400, 1410, 1420]


def test_build_face_tracks_ignores_low_confidence_and_far_jumps() -> None:
    frames = [
        FaceFrame(t=0.0, boxes=[_box(0.0, 300), _box(0.0, 900, score=0.3)]),
        FaceFrame(t=0.33, boxes=[_box(0.33, 900, score=0.3)]),
        FaceFrame(t=0.66, boxes=[_box(0.66, 700)]),
        FaceFrame(t=1.0, boxes=[_box(1.0, 705)]),
    ]

    tracks = build_face_tracks(frames)

    assert len(tracks) == 1
    assert [sample.t for sample in tracks[0].samples] == [0.66, 1.0]


def test_box_at_time_interpolates_inside_short_gaps() -> None:
    track = FaceTrack(track_id="track_0", samples=[_box(0.0, 100), _box(0.6, 160)])

    box = box_at_time(track, 0.3)

    assert box is not None
    assert box.t == 0.3
    assert box.x == pytest.approx(130.0)


def test_box_at_time_holds_then_releases_across_long_gaps() -> None:
    track = FaceTrack(track_id="track_0", samples=[_box(0.0, 100), _box(2.0, 400)])

    held = box_at_time(track, 0.5)

    assert held is not None
    assert held.x == 100
    assert box_at_time(track, 1.0) is None
    assert box_at_time(track, 2.0).x == 400
    assert box_at_time(track, -1.0) is None


def test_intersection_over_union() -> None:
    first = FaceBox(t=0.0, x=0, y=0, w=10, h=10)
    second = FaceBox(t=0.0, x=5, y=0, w=10, h=10)

    assert intersection_over_union(first, second) == pytest.approx(50 / 150)
    assert intersection_over_union(first, FaceBox(t=0.0, x=50, y=50, w=10, h=10)) == 0.0
