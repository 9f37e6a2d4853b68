from __future__ import annotations

import logging

from clipframe.config import DurationSettings, SegmentationSettings, WeightSettings
from clipframe.models import ChapterWindow, SceneChange, Segment, TranscriptWord
from clipframe.propose.segment_builder import build_segments
from clipframe.scoring.duration import choose_duration
from clipframe.scoring.heuristic_score import build_rationale, heuristic_score
from clipframe.segmentation.boundaries import enumerate_spans, words_in_window
from clipframe.segmentation.features import extract_features, hook_words, join_words
from clipframe.segmentation.patterns import PatternTable, get_pattern_table
from clipframe.segmentation.refine import refine_boundary
from clipframe.segmentation.windows import generate_windows

logger = logging.getLogger(__name__)


def detect_segments(
    transcript: list[list[TranscriptWord]],
    scene_changes: list[SceneChange],
    chapters: list[ChapterWindow],
    video_duration_seconds: float,
    comment_hotspots: list[float] | None = None,
    *,
    settings: SegmentationSettings | None = None,
    duration_settings: DurationSettings | None = None,
    weights: WeightSettings | dict[str, float] | None = None,
    table: PatternTable | None = None,
) -> list[Segment]:
    """Find up to ``max_segments`` non-overlapping, chronologically ordered clips.

    ``transcript`` is grouped by utterance; words are flattened and ordered by
    start time. Returns an empty list when there is not enough signal.
    """

    resolved = settings or SegmentationSettings()
    patterns = table or get_pattern_table(resolved.locale)
    weight_map = weights.model_dump(mode="python") if isinstance(weights, WeightSettings) else weights

    words = sorted((word for utterance in transcript for word in utterance), key=lambda word: (word.start, word.end))
    if not words:
        logger.info("No transcript words; no segments detected.")
        return []

    scene_times = sorted(scene.time_seconds for scene in scene_changes)
    hotspots = sorted(comment_hotspots or [])

    windows = generate_windows(words, sorted(chapters, key=lambda c: (c.start, c.end)), video_duration_seconds, resolved)

    candidates: list[Segment] = []
    seen_spans: set[tuple[float, float]] = set()

    for window in windows:
        window_words = words_in_window(words, window)
        for first, last in enumerate_spans(window_words, resolved):
            span_words = window_words[first:last]
            start_seconds = span_words[0].start
            end_seconds = span_words[-1].end

            # overlapping windows reach the same span more than once
            span_key = (start_seconds, end_seconds)
            if span_key in seen_spans:
                continue
            seen_spans.add(span_key)

            candidate = _score_candidate(
                span_words,
                start_seconds=start_seconds,
                end_seconds=end_seconds,
                chapter_title=window.chapter_title,
                scene_times=scene_times,
                hotspots=hotspots,
                patterns=patterns,
                settings=resolved,
                duration_settings=duration_settings,
                weights=weight_map,
            )
            if candidate is not None:
                candidates.append(candidate)

    logger.debug("Scored %d unique spans across %d windows; %d candidates survived", len(seen_spans), len(windows), len(candidates))
    return build_segments(candidates, resolved)


def _score_candidate(
    span_words: list[TranscriptWord],
    *,
    start_seconds: float,
    end_seconds: float,
    chapter_title: str,
    scene_times: list[float],
    hotspots: list[float],
    patterns: PatternTable,
    settings: SegmentationSettings,
    duration_settings: DurationSettings | None,
    weights: dict[str, float] | None,
) -> Segment | None:
    initial = extract_features(span_words, start_seconds, end_seconds, scene_times, hotspots, table=patterns, settings=settings)
    if heuristic_score(initial, weights) < settings.min_initial_score:
        return None

    decision = choose_duration(initial, end_seconds - start_seconds, duration_settings)
    refined = refine_boundary(span_words, start_seconds, end_seconds, decision.target_seconds, settings)
    if len(refined.words) < settings.min_candidate_words:
        return None

    features = extract_features(
        refined.words,
        start_seconds,
        refined.end_seconds,
        scene_times,
        hotspots,
        table=patterns,
        settings=settings,
    )
    score = heuristic_score(features, weights)
    if score < settings.min_refined_score:
        return None

    text = join_words(refined.words)
    hook = join_words(hook_words(refined.words, start_seconds, settings.hook_seconds)).strip()

    return Segment(
        start_seconds=start_seconds,
        end_seconds=refined.end_seconds,
        duration_seconds=refined.end_seconds - start_seconds,
        words=refined.words,
        text=text,
        hook=hook or text[:50],
        score=score,
        features=features,
        duration_choice=decision.choice,
        rationale=build_rationale(features, score),
        chapter_title=chapter_title,
    )
