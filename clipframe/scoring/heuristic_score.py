from __future__ import annotations

from dataclasses import dataclass

from clipframe.models import FeatureVector

DEFAULT_WEIGHTS = {
    "hook": 0.24,
    "retention": 0.18,
    "clarity": 0.12,
    "coherence": 0.10,
    "closure": 0.10,
    "narrative_arc": 0.08,
    "engagement": 0.08,
    "novelty": 0.05,
    "visual": 0.03,
    "safety": 0.02,
}

# (feature, threshold, label); a feature earns a reason when it exceeds its threshold
_FEATURE_REASONS: tuple[tuple[str, float, str], ...] = (
    ("hook", 0.7, "strong hook"),
    ("retention", 0.7, "high retention potential"),
    ("clarity", 0.8, "clear message"),
    ("engagement", 0.7, "audience engagement hotspot"),
    ("coherence", 0.7, "coherent storytelling"),
    ("closure", 0.65, "satisfying payoff"),
    ("narrative_arc", 0.65, "clear question→answer arc"),
)


@dataclass(slots=True)
class HeuristicScoreDetails:
    """Explainable output for deterministic candidate scoring."""

    score: float
    reasons: list[str]
    weighted_contributions: dict[str, float]
    feature_values: dict[str, float]
    weights: dict[str, float]


def heuristic_score(features: FeatureVector, weights: dict[str, float] | None = None) -> float:
    """Compute the fixed weighted-sum score of a candidate's features."""

    return score_features(features=features, weights=weights).score


def score_features(
    features: FeatureVector,
    weights: dict[str, float] | None = None,
    *,
    max_reasons: int = 3,
) -> HeuristicScoreDetails:
    """Score a feature vector and emit its top human-readable reasons."""

    resolved_weights = _resolve_weights(weights)
    if not resolved_weights:
        return HeuristicScoreDetails(
            score=0.0,
            reasons=[],
            weighted_contributions={},
            feature_values={},
            weights={},
        )

    weighted_contributions: dict[str, float] = {}
    feature_values: dict[str, float] = {}

    for key, weight in resolved_weights.items():
        value = _clamp(float(getattr(features, key, 0.0)))
        feature_values[key] = value
        weighted_contributions[key] = value * weight

    score = _clamp(sum(weighted_contributions.values()))

    return HeuristicScoreDetails(
        score=score,
        reasons=_generate_reasons(features, max_reasons=max_reasons),
        weighted_contributions=weighted_contributions,
        feature_values=feature_values,
        weights=resolved_weights,
    )


def build_rationale(features: FeatureVector, score: float, max_reasons: int = 3) -> str:
    """Summarize the strongest factors, e.g. ``Strong because: strong hook, ...``."""

    reasons = _generate_reasons(features, max_reasons=max_reasons)
    if not reasons:
        return f"Segment scored {score * 100:.0f}/100"
    return f"Strong because: {', '.join(reasons)}"


def _resolve_weights(weights: dict[str, float] | None) -> dict[str, float]:
    active_weights = weights or DEFAULT_WEIGHTS

    non_negative = {
        feature_name: max(0.0, raw_weight)
        for feature_name, raw_weight in active_weights.items()
    }
    total_weight = sum(non_negative.values())
    if total_weight == 0:
        return {}

    return {
        feature_name: weight / total_weight
        for feature_name, weight in non_negative.items()
    }


def _generate_reasons(features: FeatureVector, *, max_reasons: int) -> list[str]:
    if max_reasons <= 0:
        return []

    ranked: list[tuple[float, int, str]] = []
    for order, (name, threshold, label) in enumerate(_FEATURE_REASONS):
        value = float(getattr(features, name))
        if value > threshold:
            ranked.append((value, order, label))

    order = len(_FEATURE_REASONS)
    if features.has_question:
        ranked.append((0.8, order, "question hook"))
    if features.has_bold_claim:
        ranked.append((0.75, order + 1, "bold claim"))
    if 2 <= features.scene_change_count <= 4:
        ranked.append((0.7, order + 2, "good visual pacing"))

    # equal values keep declaration order
    ranked.sort(key=lambda item: (-item[0], item[1]))
    return [label for _, _, label in ranked[:max_reasons]]


def _clamp(value: float, minimum: float = 0.0, maximum: float = 1.0) -> float:
    return max(minimum, min(maximum, value))
