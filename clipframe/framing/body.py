from __future__ import annotations

import math
from dataclasses import dataclass

from clipframe.config import FramingSettings
from clipframe.models import FaceBox

# 68-point landmark indices
_JAW_LEFT = 0
_CHIN = 8
_JAW_RIGHT = 16
_BROW_LEFT = 19
_BROW_RIGHT = 24


@dataclass(slots=True)
class Subject:
    """A person to keep in frame: the point to center and the span to show."""

    center_x: float
    center_y: float
    left: float
    right: float
    area: float


def estimate_body_center(box: FaceBox, settings: FramingSettings | None = None) -> tuple[float, float] | None:
    """Estimate a body-box center from facial landmarks.

    Jaw width scales to shoulder width, brow-to-chin to head height, and the
    torso is ``torso_multiplier`` head heights; the center sits
    ``body_center_fraction`` of the way down the body. Returns None without
    usable landmarks.
    """

    resolved = settings or FramingSettings()
    landmarks = box.landmarks
    if not landmarks or len(landmarks) <= _BROW_RIGHT:
        return None

    jaw_left_x, _ = landmarks[_JAW_LEFT]
    jaw_right_x, _ = landmarks[_JAW_RIGHT]
    chin_x, chin_y = landmarks[_CHIN]
    brow_y = (landmarks[_BROW_LEFT][1] + landmarks[_BROW_RIGHT][1]) / 2

    jaw_width = abs(jaw_right_x - jaw_left_x)
    brow_to_chin = chin_y - brow_y
    if jaw_width <= 0 or brow_to_chin <= 0:
        return None

    head_height = brow_to_chin * resolved.head_to_brow_chin_ratio
    torso_height = head_height * resolved.torso_multiplier
    body_top = chin_y - head_height
    body_height = head_height + torso_height

    center_x = (jaw_left_x + jaw_right_x) / 2
    center_y = body_top + body_height * resolved.body_center_fraction
    if not (math.isfinite(center_x) and math.isfinite(center_y)):
        return None
    return center_x, center_y


def subject_from_box(box: FaceBox, settings: FramingSettings | None = None) -> Subject | None:
    """Turn a face box into a framing subject, preferring the body estimate."""

    if not all(math.isfinite(value) for value in (box.x, box.y, box.w, box.h)) or box.w <= 0 or box.h <= 0:
        return None

    body_center = estimate_body_center(box, settings)
    center_x, center_y = body_center if body_center is not None else (box.center_x, box.center_y)

    return Subject(
        center_x=center_x,
        center_y=center_y,
        left=min(box.x, center_x),
        right=max(box.x + box.w, center_x),
        area=box.w * box.h,
    )
