from __future__ import annotations

from dataclasses import replace

from clipframe.models import CropKeyframe


def smooth_keyframes(keyframes: list[CropKeyframe], radius: int = 2) -> list[CropKeyframe]:
    """Symmetric moving average of x/y over ``radius`` neighbours on each side."""

    if len(keyframes) < 2 or radius <= 0:
        return list(keyframes)

    smoothed: list[CropKeyframe] = []
    for idx, frame in enumerate(keyframes):
        neighbours = keyframes[max(0, idx - radius) : idx + radius + 1]
        smoothed.append(
            replace(
                frame,
                x=round(sum(item.x for item in neighbours) / len(neighbours)),
                y=round(sum(item.y for item in neighbours) / len(neighbours)),
            )
        )
    return smoothed


def apply_pan_limits(keyframes: list[CropKeyframe], max_pan_px_per_second: float) -> list[CropKeyframe]:
    """Step each keyframe toward its target by at most ``max_pan * dt`` pixels."""

    if len(keyframes) < 2:
        return list(keyframes)

    limited = [keyframes[0]]
    for frame in keyframes[1:]:
        previous = limited[-1]
        max_delta = _max_delta(previous.t, frame.t, max_pan_px_per_second)
        limited.append(
            replace(
                frame,
                x=_step_toward(previous.x, frame.x, max_delta),
                y=_step_toward(previous.y, frame.y, max_delta),
            )
        )
    return limited


def ease_segment_edges(
    keyframes: list[CropKeyframe],
    start_seconds: float,
    end_seconds: float,
    ease_seconds: float,
    max_pan_px_per_second: float | None = None,
) -> list[CropKeyframe]:
    """Damp movement to zero as keyframes approach either clip edge.

    The first keyframe is kept as is; each later one moves from its eased
    predecessor by ``influence`` of the remaining distance, where influence
    ramps linearly from 0 at an edge to 1 at ``ease_seconds`` away. When
    ``max_pan_px_per_second`` is given the eased step is capped again so
    catching up after an edge never outruns the pan limit.
    """

    if not keyframes or ease_seconds <= 0:
        return list(keyframes)

    eased: list[CropKeyframe] = []
    for frame in keyframes:
        if not eased:
            eased.append(frame)
            continue

        from_start = _clamp((frame.t - start_seconds) / ease_seconds, 0.0, 1.0)
        from_end = _clamp((end_seconds - frame.t) / ease_seconds, 0.0, 1.0)
        influence = min(from_start, from_end)

        previous = eased[-1]
        delta_x = (frame.x - previous.x) * influence
        delta_y = (frame.y - previous.y) * influence
        if max_pan_px_per_second is not None:
            limit = _max_delta(previous.t, frame.t, max_pan_px_per_second)
            delta_x = _clamp(delta_x, -limit, limit)
            delta_y = _clamp(delta_y, -limit, limit)

        eased.append(replace(frame, x=round(previous.x + delta_x), y=round(previous.y + delta_y)))
    return eased


def dedupe_by_time(keyframes: list[CropKeyframe], min_delta_seconds: float = 0.1) -> list[CropKeyframe]:
    """Drop keyframes closer than ``min_delta_seconds`` to the last kept one."""

    if not keyframes:
        return []

    kept = [keyframes[0]]
    for frame in keyframes[1:]:
        if frame.t - kept[-1].t >= min_delta_seconds:
            kept.append(frame)
    return kept


def _max_delta(previous_t: float, t: float, max_pan_px_per_second: float) -> float:
    return max(0.0, max_pan_px_per_second) * max(0.001, t - previous_t)


def _step_toward(current: float, target: float, max_delta: float) -> float:
    if abs(target - current) <= max_delta:
        return target
    return current + max_delta if target > current else current - max_delta


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))
