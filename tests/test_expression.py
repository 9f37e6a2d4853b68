from __future__ import annotations

import pytest

from clipframe.framing.expression import build_piecewise_expr
from clipframe.models import CropKeyframe


def test_build_piecewise_expr_encodes_linear_segments() -> None:
    keyframes = [
        CropKeyframe(t=10.0, x=100, y=0, w=607, h=1080),
        CropKeyframe(t=12.0, x=200, y=0, w=607, h=1080),
    ]

    expr = build_piecewise_expr(keyframes, "x", time_offset=10.0)

    assert expr == (
        "lt(t,0.000)*100"
        "+between(t,0.000,2.000)*(100+(50.000000)*(t-0.000))"
        "+gte(t,2.000)*200"
    )


def test_build_piecewise_expr_uses_requested_axis() -> None:
    keyframes = [
        CropKeyframe(t=0.0, x=100, y=10, w=607, h=1080),
        CropKeyframe(t=1.0, x=100, y=30, w=607, h=1080),
    ]

    assert build_piecewise_expr(keyframes, "y").startswith("lt(t,0.000)*10+")
    assert build_piecewise_expr(keyframes, "y").endswith("gte(t,1.000)*30")


def test_build_piecewise_expr_single_keyframe_is_constant() -> None:
    keyframes = [CropKeyframe(t=1.0, x=5, y=0, w=607, h=1080)]

    assert build_piecewise_expr(keyframes, "x") == "lt(t,1.000)*5+gte(t,1.000)*5"


def test_build_piecewise_expr_edge_cases() -> None:
    assert build_piecewise_expr([], "x") == "0"
    with pytest.raises(ValueError, match="Unsupported axis"):
        build_piecewise_expr([CropKeyframe(t=0.0, x=0, y=0, w=1, h=1)], "z")  # type: ignore[arg-type]
