from __future__ import annotations

from clipframe.config import SegmentationSettings
from clipframe.models import SearchWindow, TranscriptWord


def words_in_window(words: list[TranscriptWord], window: SearchWindow) -> list[TranscriptWord]:
    """Words whose start lies in ``[window.start, window.end)``."""

    return [word for word in words if window.start <= word.start < window.end]


def find_pause_boundaries(
    words: list[TranscriptWord],
    min_gap_seconds: float = 0.35,
    max_gap_seconds: float = 1.2,
) -> list[int]:
    """Indices ``i`` where the gap before ``words[i]`` is a natural phrase pause."""

    boundaries: list[int] = []
    for idx in range(1, len(words)):
        gap = words[idx].start - words[idx - 1].end
        if min_gap_seconds <= gap <= max_gap_seconds:
            boundaries.append(idx)
    return boundaries


def enumerate_spans(
    words: list[TranscriptWord],
    settings: SegmentationSettings | None = None,
) -> list[tuple[int, int]]:
    """All ``(i, j)`` boundary pairs whose slice ``words[i:j]`` is a viable clip.

    A span needs ``min_candidate_words`` words and a duration (first start
    to last end) within ``[min_span_seconds, max_span_seconds]``.
    """

    resolved = settings or SegmentationSettings()
    if len(words) < resolved.min_window_words:
        return []

    boundaries = find_pause_boundaries(words, resolved.min_pause_seconds, resolved.max_pause_seconds)

    spans: list[tuple[int, int]] = []
    for left_idx, first in enumerate(boundaries):
        for last in boundaries[left_idx + 1 :]:
            if last - first < resolved.min_candidate_words:
                continue
            duration = words[last - 1].end - words[first].start
            if not resolved.min_span_seconds <= duration <= resolved.max_span_seconds:
                continue
            spans.append((first, last))
    return spans
