from __future__ import annotations

import logging
import math

from clipframe.config import SegmentationSettings
from clipframe.models import FULL_VIDEO_TITLE, ChapterWindow, SearchWindow, TranscriptWord
from clipframe.segmentation.patterns import intro_keywords_for

logger = logging.getLogger(__name__)


def find_intro_chapter(chapters: list[ChapterWindow], locale: str | None = None) -> int | None:
    """Return 0 when the first chapter's title looks like an intro, else None."""

    if not chapters:
        return None

    first_title = chapters[0].label.lower()
    for keyword in intro_keywords_for(locale):
        if keyword in first_title:
            return 0
    return None


def generate_chapter_windows(
    chapters: list[ChapterWindow],
    settings: SegmentationSettings,
    skip_index: int | None = None,
) -> list[SearchWindow]:
    """Tile each chapter with overlapping windows, closing any tail gap."""

    windows: list[SearchWindow] = []
    length = settings.chapter_window_seconds

    for idx, chapter in enumerate(chapters):
        if skip_index is not None and idx == skip_index:
            continue

        span = max(0.0, chapter.end - chapter.start)
        step = max(settings.chapter_min_stride_seconds, math.floor(span * settings.chapter_stride_ratio))
        chapter_windows: list[SearchWindow] = []

        t = chapter.start
        while t + settings.chapter_min_window_seconds <= chapter.end:
            chapter_windows.append(SearchWindow(start=t, end=min(chapter.end, t + length), chapter_title=chapter.label))
            t += step

        if not chapter_windows:
            chapter_windows.append(
                SearchWindow(
                    start=chapter.start,
                    end=min(chapter.end, chapter.start + min(length, span or length)),
                    chapter_title=chapter.label,
                )
            )
        elif chapter_windows[-1].end < chapter.end - settings.chapter_tail_gap_seconds:
            tail_start = max(chapter.start, chapter.end - length)
            if chapter_windows[-1].start != tail_start:
                chapter_windows.append(SearchWindow(start=tail_start, end=chapter.end, chapter_title=chapter.label))

        windows.extend(chapter_windows)

    return windows


def generate_coverage_windows(
    words: list[TranscriptWord],
    video_duration_seconds: float,
    settings: SegmentationSettings,
    start_seconds: float = 0.0,
) -> list[SearchWindow]:
    """Slide fixed windows over the whole video (longer windows for long videos)."""

    last_word_end = words[-1].end if words else 0.0
    coverage_end = max(video_duration_seconds, last_word_end)
    if coverage_end <= start_seconds:
        return []

    stride = (
        settings.coverage_long_stride_seconds
        if coverage_end > settings.coverage_long_stride_after_seconds
        else settings.coverage_stride_seconds
    )
    length = (
        settings.coverage_long_window_seconds
        if coverage_end > settings.coverage_long_window_after_seconds
        else settings.coverage_window_seconds
    )

    windows: list[SearchWindow] = []
    start = start_seconds
    while start < coverage_end:
        windows.append(SearchWindow(start=start, end=min(coverage_end, start + length)))
        start += stride

    last = windows[-1]
    if last.end < coverage_end - settings.coverage_tail_gap_seconds:
        tail = SearchWindow(start=max(start_seconds, coverage_end - length), end=coverage_end)
        if last.start != tail.start:
            windows.append(tail)
        else:
            windows[-1] = tail

    return windows


def generate_windows(
    words: list[TranscriptWord],
    chapters: list[ChapterWindow],
    video_duration_seconds: float,
    settings: SegmentationSettings | None = None,
) -> list[SearchWindow]:
    """Build the sorted, de-duplicated search windows for one video.

    With chapters, each non-intro chapter is tiled and full-coverage windows
    are appended for any stretch of video past the last chapter. Without
    chapters, the whole video is tiled after ``intro_skip_seconds``.
    """

    resolved = settings or SegmentationSettings()

    if chapters:
        intro_index = find_intro_chapter(chapters, resolved.locale)
        if intro_index is not None:
            logger.info("Skipping intro chapter %r", chapters[intro_index].label)
        windows = generate_chapter_windows(chapters, resolved, skip_index=intro_index)

        coverage = generate_coverage_windows(words, video_duration_seconds, resolved)
        max_existing_end = max((window.end for window in windows), default=0.0)
        coverage_end = coverage[-1].end if coverage else max_existing_end
        if coverage_end > max_existing_end + resolved.coverage_tail_gap_seconds:
            windows.extend(
                window
                for window in coverage
                if window.start >= max_existing_end - resolved.coverage_chapter_overlap_seconds
            )
    else:
        windows = generate_coverage_windows(
            words,
            video_duration_seconds,
            resolved,
            start_seconds=max(0.0, resolved.intro_skip_seconds),
        )

    ordered = sorted(windows, key=lambda window: (window.start, window.end))
    deduped: list[SearchWindow] = []
    for window in ordered:
        if deduped and deduped[-1].start == window.start and deduped[-1].end == window.end:
            continue
        deduped.append(window)

    logger.debug("Generated %d search windows (%d chapters)", len(deduped), len(chapters))
    return deduped
