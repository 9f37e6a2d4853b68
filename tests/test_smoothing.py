from __future__ import annotations

from clipframe.framing.smoothing import apply_pan_limits, dedupe_by_time, ease_segment_edges, smooth_keyframes
from clipframe.models import CropKeyframe


def _kf(t: float, x: float, y: float = 0.0) -> CropKeyframe:
    return CropKeyframe(t=t, x=x, y=y, w=607, h=1080)


def test_smooth_keyframes_averages_neighbours() -> None:
    smoothed = smooth_keyframes([_kf(0.0, 0), _kf(0.5, 30), _kf(1.0, 0)], radius=1)

    assert [frame.x for frame in smoothed] == [15, 10, 15]


def test_smooth_keyframes_leaves_short_paths_alone() -> None:
    single = [_kf(0.0, 42)]

    assert smooth_keyframes(single, radius=2) == single
    assert smooth_keyframes([_kf(0.0, 0), _kf(1.0, 90)], radius=0)[1].x == 90


def test_apply_pan_limits_caps_speed() -> None:
    limited = apply_pan_limits([_kf(0.0, 0), _kf(1.0, 1000), _kf(2.0, 1000)], max_pan_px_per_second=600)

    assert [frame.x for frame in limited] == [0, 600, 1000]


def test_ease_segment_edges_damps_motion_near_edges() -> None:
    eased = ease_segment_edges([_kf(0.0, 0), _kf(0.5, 100), _kf(5.0, 100)], 0.0, 10.0, ease_seconds=1.0)

    assert [frame.x for frame in eased] == [0, 50, 100]


def test_ease_segment_edges_never_exceeds_pan_limit() -> None:
    frames = [_kf(0.0, 0), _kf(0.2, 0), _kf(0.5, 600), _kf(0.8, 600), _kf(1.0, 600)]
    limited = apply_pan_limits(frames, max_pan_px_per_second=600)

    eased = ease_segment_edges(limited, 0.0, 1.0, ease_seconds=0.25, max_pan_px_per_second=600)

    for previous, current in zip(eased, eased[1:]):
        assert abs(current.x - previous.x) <= 600 * (current.t - previous.t) + 1


def test_dedupe_by_time_drops_crowded_keyframes() -> None:
    kept = dedupe_by_time([_kf(0.0, 0), _kf(0.05, 10), _kf(0.2, 20)], min_delta_seconds=0.1)

    assert [frame.t for frame in kept] == [0.0, 0.2]
