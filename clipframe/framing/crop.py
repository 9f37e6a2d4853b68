from __future__ import annotations

import math
from dataclasses import dataclass

from clipframe.config import FramingSettings
from clipframe.framing.body import Subject


@dataclass(slots=True)
class CropWindow:
    x: int
    y: int
    w: int
    h: int


def crop_size(source_width: int, source_height: int) -> tuple[int, int]:
    """Fixed 9:16 crop size; narrow sources use their full width instead."""

    width = math.floor(source_height * 9 / 16)
    if width <= source_width:
        return width, source_height
    return source_width, min(source_height, math.floor(source_width * 16 / 9))


def select_subjects(subjects: list[Subject], crop_width: int, margin_px: float) -> list[Subject]:
    """Keep the whole group if its span fits the crop, else the largest subject.

    ``margin_px`` is not charged against the group; placement gives up the
    margin before it gives up a subject.
    """

    if len(subjects) <= 1:
        return subjects

    extent = max(subject.right for subject in subjects) - min(subject.left for subject in subjects)
    if extent <= crop_width:
        return subjects

    # ties go to the leftmost subject
    largest = max(subjects, key=lambda subject: (subject.area, -subject.center_x))
    return [largest]


def compute_crop(
    subjects: list[Subject],
    source_width: int,
    source_height: int,
    settings: FramingSettings | None = None,
) -> CropWindow | None:
    """Place the crop window for one instant.

    Horizontally the crop keeps the subject span (padded by the margin) in
    frame; when the padding does not fit it keeps the bare span, then at
    least the margin around the subject center, and failing that pins to
    the source edge. Vertically the subject is placed in the middle of the
    usable band between the safe zones, lifted by ``center_bias_y``; the
    crop always stays inside the source.
    """

    resolved = settings or FramingSettings()
    if not subjects or source_width <= 0 or source_height <= 0:
        return None

    width, height = crop_size(source_width, source_height)
    margin_px = max(0.0, resolved.margin) * width
    chosen = select_subjects(subjects, width, margin_px)

    left = min(subject.left for subject in chosen)
    right = max(subject.right for subject in chosen)
    center_x = (left + right) / 2 if len(chosen) > 1 else chosen[0].center_x
    center_y = sum(subject.center_y for subject in chosen) / len(chosen)
    if not (math.isfinite(center_x) and math.isfinite(center_y)):
        return None

    max_x = source_width - width
    ideal_x = center_x - width / 2
    ranges = [(right + margin_px - width, left - margin_px)]
    if len(chosen) > 1:
        ranges.append((right - width, left))
    ranges.append((center_x + margin_px - width, center_x - margin_px))
    x = _place_axis(ideal_x, ranges=ranges, upper=max_x)

    band_top = height * resolved.safe_top
    band_bottom = height * (1 - resolved.safe_bottom)
    anchor = (band_top + band_bottom) / 2 if band_bottom > band_top else height / 2
    ideal_y = center_y - anchor - height * resolved.center_bias_y
    y = _clamp(ideal_y, 0, source_height - height)

    return CropWindow(
        x=int(_clamp(round(x), 0, max_x)),
        y=int(_clamp(round(y), 0, source_height - height)),
        w=width,
        h=height,
    )


def _place_axis(ideal: float, ranges: list[tuple[float, float]], upper: float) -> float:
    for low, high in ranges:
        feasible_low = max(0.0, low)
        feasible_high = min(upper, high)
        if feasible_low <= feasible_high:
            return _clamp(ideal, feasible_low, feasible_high)
    return _clamp(ideal, 0, upper)


def _clamp(value: float, minimum: float, maximum: float) -> float:
    return max(minimum, min(maximum, value))
