from __future__ import annotations

from clipframe.models import Axis, CropKeyframe

_MIN_SEGMENT_SECONDS = 0.001


def build_piecewise_expr(keyframes: list[CropKeyframe], axis: Axis, time_offset: float = 0.0) -> str:
    """Encode one axis of a crop path as a piecewise-linear ``t`` expression.

    ``lt(t,t0)*v0 + between(t,ti,ti+1)*(vi+slope*(t-ti)) ... + gte(t,tN)*vN``.
    ``time_offset`` is subtracted from every keyframe time so the expression
    can run on clip-relative time. The string is meant for the compositor's
    expression evaluator and is never evaluated here.
    """

    if axis not in ("x", "y"):
        raise ValueError(f"Unsupported axis: {axis!r}")
    if not keyframes:
        return "0"

    times = [frame.t - time_offset for frame in keyframes]
    values = [float(getattr(frame, axis)) for frame in keyframes]

    parts = [f"lt(t,{times[0]:.3f})*{values[0]:.0f}"]
    for idx in range(len(keyframes) - 1):
        ta, tb = times[idx], times[idx + 1]
        va, vb = values[idx], values[idx + 1]
        slope = (vb - va) / max(_MIN_SEGMENT_SECONDS, tb - ta)
        parts.append(f"between(t,{ta:.3f},{tb:.3f})*({va:.0f}+({slope:.6f})*(t-{ta:.3f}))")
    parts.append(f"gte(t,{times[-1]:.3f})*{values[-1]:.0f}")

    return "+".join(parts)
