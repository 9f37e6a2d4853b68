from __future__ import annotations

import logging
from dataclasses import replace

from clipframe.config import SegmentationSettings
from clipframe.models import Segment

logger = logging.getLogger(__name__)


def build_segments(
    candidates: list[Segment],
    settings: SegmentationSettings | None = None,
) -> list[Segment]:
    """Reduce refined candidates to the final ranked clip list.

    Pipeline:
    1) quality gate (weak opening, unsafe, unclear, incoherent, no payoff)
    2) near-duplicate suppression by word-set similarity, best score first
    3) greedy overlap removal, best score first
    4) cap to ``max_segments`` by score, then order chronologically with stable IDs
    """

    resolved = settings or SegmentationSettings()

    gated = apply_quality_gate(candidates, resolved)
    diverse = suppress_near_duplicates(gated, threshold=resolved.diversity_threshold)
    disjoint = remove_overlaps(diverse)
    capped = _rank(disjoint)[: max(resolved.max_segments, 0)]

    logger.info(
        "Post-filters: %d candidates -> %d gated -> %d diverse -> %d disjoint -> %d kept",
        len(candidates),
        len(gated),
        len(diverse),
        len(disjoint),
        len(capped),
    )

    timeline_sorted = sorted(capped, key=lambda seg: (seg.start_seconds, seg.end_seconds, -seg.score))
    return [replace(seg, segment_id=f"s_{idx:04d}") for idx, seg in enumerate(timeline_sorted, start=1)]


def apply_quality_gate(segments: list[Segment], settings: SegmentationSettings | None = None) -> list[Segment]:
    """Drop candidates that fail any hard quality floor, regardless of score."""

    resolved = settings or SegmentationSettings()
    return [segment for segment in segments if _passes_quality_gate(segment, resolved)]


def suppress_near_duplicates(segments: list[Segment], threshold: float = 0.7) -> list[Segment]:
    """Keep a candidate only if its text is at most ``threshold`` similar to every kept one."""

    selected: list[Segment] = []
    for segment in _rank(segments):
        if any(text_similarity(segment.text, kept.text) > threshold for kept in selected):
            continue
        selected.append(segment)
    return selected


def remove_overlaps(segments: list[Segment]) -> list[Segment]:
    """Greedy highest-score-wins selection of time-disjoint candidates."""

    selected: list[Segment] = []
    for segment in _rank(segments):
        if any(has_overlap(segment, kept) for kept in selected):
            continue
        selected.append(segment)
    return sorted(selected, key=lambda seg: (seg.start_seconds, seg.end_seconds))


def has_overlap(first: Segment, second: Segment) -> bool:
    return not (first.end_seconds <= second.start_seconds or second.end_seconds <= first.start_seconds)


def text_similarity(first: str, second: str) -> float:
    """Jaccard similarity of lowercase whitespace-split word sets."""

    words_a = set(first.lower().split())
    words_b = set(second.lower().split())
    union = len(words_a | words_b)
    if union == 0:
        return 0.0
    return len(words_a & words_b) / union


def _passes_quality_gate(segment: Segment, settings: SegmentationSettings) -> bool:
    opening = [word for word in segment.words if word.start - segment.start_seconds < settings.hook_seconds]
    if len(opening) < settings.min_hook_words:
        return False

    features = segment.features
    if features.safety < settings.min_safety:
        return False
    if features.clarity < settings.min_clarity:
        return False
    if features.coherence < settings.min_coherence:
        return False
    if features.closure < settings.min_closure:
        return False
    return True


def _rank(segments: list[Segment]) -> list[Segment]:
    # score desc, then earlier start, then shorter span
    return sorted(segments, key=lambda seg: (-seg.score, seg.start_seconds, seg.end_seconds))
