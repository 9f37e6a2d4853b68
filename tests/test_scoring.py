from __future__ import annotations

import pytest

from clipframe.config import DurationSettings
from clipframe.models import FeatureVector
from clipframe.scoring.duration import choose_duration, tier_ceiling
from clipframe.scoring.heuristic_score import build_rationale, heuristic_score, score_features


def _features(**overrides: float) -> FeatureVector:
    values = {
        "hook": 0.5,
        "retention": 0.5,
        "clarity": 0.5,
        "coherence": 0.5,
        "closure": 0.5,
        "narrative_arc": 0.5,
        "semantic_density": 0.5,
        "visual": 0.5,
        "novelty": 0.5,
        "engagement": 0.5,
        "safety": 0.5,
    }
    values.update(overrides)
    return FeatureVector(**values)


def test_heuristic_score_is_weighted_sum_of_features() -> None:
    assert heuristic_score(_features()) == pytest.approx(0.5)
    assert heuristic_score(
        _features(hook=1.0, retention=1.0, clarity=1.0, coherence=1.0, closure=1.0, narrative_arc=1.0,
                  engagement=1.0, novelty=1.0, visual=1.0, safety=1.0)
    ) == pytest.approx(1.0)


def test_heuristic_score_normalises_custom_weights() -> None:
    score = heuristic_score(_features(hook=1.0, clarity=0.5), weights={"hook": 2.0, "clarity": 1.0})

    assert score == pytest.approx((1.0 * (2 / 3)) + (0.5 * (1 / 3)))


def test_score_features_reports_contributions() -> None:
    details = score_features(_features(hook=0.9))

    assert details.weighted_contributions["hook"] == pytest.approx(0.9 * 0.24)
    assert details.feature_values["safety"] == pytest.approx(0.5)
    assert sum(details.weights.values()) == pytest.approx(1.0)
    assert details.reasons == ["strong hook"]


def test_build_rationale_lists_strongest_reasons_first() -> None:
    features = _features(hook=0.9, retention=0.8, clarity=0.85, engagement=0.4)

    rationale = build_rationale(features, 0.8)

    assert rationale == "Strong because: strong hook, clear message, high retention potential"


def test_build_rationale_includes_structural_reasons() -> None:
    features = _features(hook=0.72)
    features.has_question = True
    features.scene_change_count = 3

    rationale = build_rationale(features, 0.7)

    assert rationale == "Strong because: question hook, strong hook, good visual pacing"


def test_build_rationale_falls_back_to_score_summary() -> None:
    assert build_rationale(_features(), 0.42) == "Segment scored 42/100"


def test_choose_duration_picks_long_for_strong_long_candidates() -> None:
    features = _features(retention=0.9, closure=0.9, narrative_arc=0.9, coherence=0.9, semantic_density=0.9)

    decision = choose_duration(features, 70.0)

    assert decision.choice == "long"
    assert decision.target_seconds == pytest.approx(70.0)


def test_choose_duration_picks_mid_for_retentive_candidates() -> None:
    features = _features(retention=0.7, clarity=0.6, coherence=0.6, closure=0.6)

    decision = choose_duration(features, 50.0)

    assert decision.choice == "mid"
    assert decision.target_seconds == pytest.approx(50.0)


def test_choose_duration_forces_short_for_weak_structure() -> None:
    features = _features(coherence=0.5, closure=0.6)

    decision = choose_duration(features, 40.0)

    assert decision.choice == "short"
    assert decision.target_seconds == pytest.approx(32.0)


def test_choose_duration_extends_engaging_candidates_to_mid() -> None:
    features = _features(coherence=0.6, closure=0.6, engagement=0.8)

    decision = choose_duration(features, 45.0)

    assert decision.choice == "mid"
    assert decision.target_seconds == pytest.approx(45.0)


@pytest.mark.parametrize(
    ("duration", "expected_choice", "expected_target"),
    [
        (44.0, "mid", 44.0),
        (70.0, "long", 70.0),
        (30.0, "short", 30.0),
    ],
)
def test_choose_duration_retiers_by_final_target(duration: float, expected_choice: str, expected_target: float) -> None:
    features = _features(retention=0.6, clarity=0.6, coherence=0.6, closure=0.6, narrative_arc=0.6, engagement=0.4)

    decision = choose_duration(features, duration)

    assert decision.choice == expected_choice
    assert decision.target_seconds == pytest.approx(expected_target)
    assert decision.target_seconds <= tier_ceiling(decision.choice)


def test_choose_duration_applies_floor_for_clear_coherent_candidates() -> None:
    features = _features(clarity=0.8, coherence=0.7, closure=0.6)

    decision = choose_duration(features, 22.0)

    assert decision.target_seconds == pytest.approx(28.0)
    assert decision.choice == "short"


def test_tier_ceiling_reads_duration_settings() -> None:
    settings = DurationSettings(short_max_seconds=30.0)

    assert tier_ceiling("short", settings) == 30.0
    assert tier_ceiling("mid") == 55.0
    assert tier_ceiling("long") == 80.0
