from __future__ import annotations

import math
import re
from dataclasses import dataclass

from clipframe.config import SegmentationSettings
from clipframe.models import FeatureVector, TranscriptWord
from clipframe.segmentation.patterns import PatternTable, contains_keyword, get_pattern_table

_NON_WORD_CHARS = re.compile(r"[^a-z0-9']")
_SENTENCE_END = re.compile(r"[.!?]")
_HARD_STOP = re.compile(r"[.!?…]$")
_ENERGY_CAPS = re.compile(r"[A-Z]{2,}")
_ENERGY_PUNCT = re.compile(r"[!?]")


@dataclass(slots=True)
class HookPatterns:
    has_question: bool
    has_bold_claim: bool
    has_numbers: bool


@dataclass(slots=True)
class SpeechDynamics:
    rate: float
    pause_density: float
    energy: float


def join_words(words: list[TranscriptWord]) -> str:
    return " ".join(word.word for word in words)


def hook_words(words: list[TranscriptWord], start_seconds: float, hook_seconds: float = 3.0) -> list[TranscriptWord]:
    return [word for word in words if word.start - start_seconds < hook_seconds]


def count_fillers(words: list[TranscriptWord], table: PatternTable | None = None) -> int:
    """Count filler tokens; a two-word filler such as "you know" counts once."""

    resolved = table or get_pattern_table()
    tokens = [word.word.strip() for word in words]
    count = 0
    idx = 0
    while idx < len(tokens):
        if idx + 1 < len(tokens) and resolved.filler.match(f"{tokens[idx]} {tokens[idx + 1]}"):
            count += 1
            idx += 2
            continue
        if resolved.filler.match(tokens[idx]):
            count += 1
        idx += 1
    return count


def detect_hook_patterns(text: str, table: PatternTable | None = None) -> HookPatterns:
    """Classify opening text as question, bold claim and/or number-bearing."""

    resolved = table or get_pattern_table()
    return HookPatterns(
        has_question=any(pattern.search(text) for pattern in resolved.question),
        has_bold_claim=any(pattern.search(text) for pattern in resolved.bold_claim),
        has_numbers=resolved.numbers.search(text) is not None,
    )


def analyze_speech_dynamics(
    words: list[TranscriptWord],
    start_seconds: float,
    window_seconds: float = 5.0,
) -> SpeechDynamics:
    """Words-per-second, pause density and energetic-word ratio of the opening beats."""

    opening = [word for word in words if word.start - start_seconds < window_seconds]
    if not opening:
        return SpeechDynamics(rate=0.0, pause_density=1.0, energy=0.0)

    duration = max(0.1, opening[-1].end - opening[0].start)
    total_gap = sum(max(0.0, nxt.start - cur.end) for cur, nxt in zip(opening, opening[1:]))
    energetic = sum(
        1
        for word in opening
        if _ENERGY_CAPS.search(word.word) or _ENERGY_PUNCT.search(word.word) or len(word.word) > 8
    )

    return SpeechDynamics(
        rate=len(opening) / duration,
        pause_density=total_gap / duration,
        energy=energetic / len(opening),
    )


def extract_features(
    words: list[TranscriptWord],
    start_seconds: float,
    end_seconds: float,
    scene_times: list[float],
    hotspots: list[float],
    *,
    table: PatternTable | None = None,
    settings: SegmentationSettings | None = None,
) -> FeatureVector:
    """Compute the feature vector for one candidate word slice.

    Only ``words`` plus the read-only scene and hotspot inputs are consulted,
    so features for different candidates never interact.
    """

    patterns = table or get_pattern_table()
    resolved = settings or SegmentationSettings()

    text = join_words(words)
    lower_text = text.lower()
    word_count = len(words)
    denominator = max(1, word_count)

    hook_text = join_words(hook_words(words, start_seconds, resolved.hook_seconds)).strip()
    hooks = detect_hook_patterns(hook_text or text[:100], patterns)
    dynamics = analyze_speech_dynamics(words, start_seconds, resolved.dynamics_seconds)

    cleaned = [_NON_WORD_CHARS.sub("", word.word.lower()) for word in words]
    content_words = [word for word in cleaned if len(word) > 2 and word not in patterns.stop_words]
    semantic_density = min(1.0, len(content_words) / denominator)

    scene_count = sum(1 for time in scene_times if start_seconds <= time <= end_seconds)

    hook = 0.5
    if hooks.has_question:
        hook += 0.2
    if hooks.has_bold_claim:
        hook += 0.2
    if hooks.has_numbers:
        hook += 0.1
    if dynamics.energy > 0.3:
        hook += 0.15
    if dynamics.rate > 2.5:
        hook += 0.1
    hook = min(1.0, hook)

    retention = 0.5
    if dynamics.rate > 2:
        retention += 0.2
    if dynamics.pause_density < 0.2:
        retention += 0.15
    if 2 <= scene_count <= 4:
        retention += 0.15
    retention = min(1.0, retention)

    filler_count = count_fillers(words, patterns)
    filler_ratio = filler_count / denominator
    clarity = max(0.0, 1 - filler_ratio * 2)

    visual = 0.8 if 1 <= scene_count <= 6 else 0.5
    novelty = 0.6
    engagement = (
        0.8 if any(abs(hotspot - start_seconds) < resolved.hotspot_radius_seconds for hotspot in hotspots) else 0.4
    )
    safety = 0.3 if patterns.profanity.search(text) else 0.9

    coherence = _coherence_score(
        text=text,
        word_count=word_count,
        duration_seconds=end_seconds - start_seconds,
        semantic_density=semantic_density,
        filler_ratio=filler_ratio,
        clarity=clarity,
    )
    closure = _closure_score(words, end_seconds, patterns, resolved.closing_seconds)
    narrative_arc = _arc_score(
        words=words,
        lower_text=lower_text,
        start_seconds=start_seconds,
        has_question=hooks.has_question,
        closure=closure,
        patterns=patterns,
        early_question_seconds=resolved.early_question_seconds,
    )

    return FeatureVector(
        hook=hook,
        retention=retention,
        clarity=clarity,
        coherence=coherence,
        closure=closure,
        narrative_arc=narrative_arc,
        semantic_density=semantic_density,
        visual=visual,
        novelty=novelty,
        engagement=engagement,
        safety=safety,
        speech_rate=dynamics.rate,
        pause_density=dynamics.pause_density,
        energy=dynamics.energy,
        filler_ratio=filler_ratio,
        word_count=word_count,
        scene_change_count=scene_count,
        has_question=hooks.has_question,
        has_bold_claim=hooks.has_bold_claim,
        has_numbers=hooks.has_numbers,
    )


def _coherence_score(
    *,
    text: str,
    word_count: int,
    duration_seconds: float,
    semantic_density: float,
    filler_ratio: float,
    clarity: float,
) -> float:
    sentence_enders = len(_SENTENCE_END.findall(text))
    # unpunctuated transcripts: assume roughly one sentence every 7 seconds
    sentences = max(1, sentence_enders or math.ceil(max(0.0, duration_seconds) / 7))
    avg_words_per_sentence = word_count / sentences

    score = 0.55
    if 8 <= avg_words_per_sentence <= 28:
        score += 0.2
    if semantic_density > 0.55:
        score += 0.15
    if filler_ratio < 0.12:
        score += 0.1
    if clarity > 0.75:
        score += 0.05
    return min(1.0, max(0.3, score))


def _closure_score(
    words: list[TranscriptWord],
    end_seconds: float,
    patterns: PatternTable,
    closing_seconds: float,
) -> float:
    closing = [word for word in words if end_seconds - word.end < closing_seconds]
    closing_text = " ".join(word.word.lower() for word in closing)
    if closing:
        last_word = closing[-1].word.strip()
    elif words:
        last_word = words[-1].word.strip()
    else:
        last_word = ""

    score = 0.45
    if _HARD_STOP.search(last_word):
        score += 0.25
    if any(contains_keyword(closing_text, phrase) for phrase in patterns.closing_phrases):
        score += 0.15
    if any(patterns.closing_word.search(word.word) for word in closing):
        score += 0.1
    if patterns.trailing_filler.search(last_word):
        score -= 0.15
    return min(1.0, max(0.2, score))


def _arc_score(
    *,
    words: list[TranscriptWord],
    lower_text: str,
    start_seconds: float,
    has_question: bool,
    closure: float,
    patterns: PatternTable,
    early_question_seconds: float,
) -> float:
    early_question = any(
        word.word.endswith("?") or patterns.early_question_word.search(word.word)
        for word in words
        if word.start - start_seconds < early_question_seconds
    )
    has_resolution = any(contains_keyword(lower_text, keyword) for keyword in patterns.resolution_keywords)
    has_payoff = any(contains_keyword(lower_text, keyword) for keyword in patterns.payoff_keywords)

    score = 0.45
    if has_question or early_question:
        score += 0.2
    if has_resolution:
        score += 0.2
    if has_payoff:
        score += 0.1
    if closure > 0.7:
        score += 0.05
    return min(1.0, max(0.25, score))
