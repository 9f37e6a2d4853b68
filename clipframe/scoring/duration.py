from __future__ import annotations

import math
from dataclasses import dataclass

from clipframe.config import DurationSettings
from clipframe.models import DurationChoice, FeatureVector


@dataclass(slots=True)
class DurationDecision:
    target_seconds: float
    choice: DurationChoice


def tier_ceiling(choice: DurationChoice, settings: DurationSettings | None = None) -> float:
    """Nominal upper bound of a duration tier."""

    resolved = settings or DurationSettings()
    return {
        "short": resolved.short_max_seconds,
        "mid": resolved.mid_max_seconds,
        "long": resolved.long_max_seconds,
    }[choice]


def choose_duration(
    features: FeatureVector,
    candidate_duration: float,
    settings: DurationSettings | None = None,
) -> DurationDecision:
    """Pick an adaptive target duration and tier from a candidate's features.

    Checked in order: long-form signals, mid-form signals, weak structure
    (forces short), then audience engagement (mid). The target never drops
    below a floor that is higher for clear, coherent candidates.
    """

    resolved = settings or DurationSettings()
    d = candidate_duration

    rounded = _round_half_up(d / resolved.round_to_seconds) * resolved.round_to_seconds
    prefer = min(resolved.max_prefer_seconds, max(resolved.min_prefer_seconds, rounded))
    choice: DurationChoice = "short"

    long_form = (
        (features.retention + features.closure + features.narrative_arc) / 3 > 0.66
        and features.coherence > 0.63
        and features.semantic_density > 0.55
    )

    if d >= resolved.long_min_seconds and long_form:
        prefer = min(d, resolved.long_max_seconds)
        choice = "long"
    elif d >= resolved.mid_min_seconds and (features.retention > 0.62 or features.narrative_arc > 0.6) and features.clarity > 0.55:
        prefer = min(resolved.mid_max_seconds, d)
        choice = "mid"
    elif features.coherence < 0.55 or features.closure < 0.5:
        prefer = min(resolved.short_max_seconds, max(resolved.min_prefer_seconds, d - resolved.short_trim_seconds))
        choice = "short"
    elif features.engagement > 0.7 and d > resolved.engagement_min_seconds:
        prefer = min(resolved.engagement_max_seconds, d)
        choice = "mid"

    floor = (
        resolved.strong_floor_seconds
        if features.clarity > 0.7 and features.coherence > 0.65
        else resolved.default_floor_seconds
    )
    target = max(floor, min(prefer, d))

    # re-tier by the final target so a tier's ceiling bounds its clips
    if target > resolved.mid_max_seconds:
        choice = "long"
    elif target > resolved.short_max_seconds and choice == "short":
        choice = "mid"

    return DurationDecision(target_seconds=target, choice=choice)


def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)
