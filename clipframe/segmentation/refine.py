from __future__ import annotations

import re
from dataclasses import dataclass

from clipframe.config import SegmentationSettings
from clipframe.models import TranscriptWord

# sentence end, ellipsis, or a dash clause break
_CUT_POINT = re.compile(r"([.!?…]|--|—|–)$")


@dataclass(slots=True)
class RefinedSpan:
    words: list[TranscriptWord]
    end_seconds: float


def refine_boundary(
    words: list[TranscriptWord],
    start_seconds: float,
    hard_end_seconds: float,
    target_seconds: float,
    settings: SegmentationSettings | None = None,
) -> RefinedSpan:
    """Trim a candidate toward ``target_seconds`` at a natural cut point.

    Scans forward from the first word reaching the target for sentence-final
    punctuation, a dash, or a long pause, never past target + search window.
    Falls back to the first word at/after the target when nothing is found.
    """

    resolved = settings or SegmentationSettings()
    if not words:
        return RefinedSpan(words=[], end_seconds=start_seconds)

    max_end = min(hard_end_seconds, start_seconds + resolved.max_span_seconds)
    min_end = min(max_end, start_seconds + max(resolved.refine_min_seconds, target_seconds - 4))
    desired_end = min(max_end, start_seconds + target_seconds)
    search_end = min(max_end, start_seconds + target_seconds + resolved.refine_search_seconds)

    cutoff = next((idx for idx, word in enumerate(words) if word.end >= desired_end), len(words) - 1)
    chosen = cutoff

    for idx in range(cutoff, len(words)):
        word = words[idx]
        if word.end > search_end:
            break
        if _CUT_POINT.search(word.word.strip()):
            chosen = idx
            break
        if idx + 1 < len(words):
            gap = words[idx + 1].start - word.end
            if gap >= resolved.refine_pause_seconds and word.end >= min_end:
                chosen = idx
                break

    floor_seconds = resolved.refine_min_seconds
    if words[chosen].end - start_seconds < floor_seconds and words[-1].end - start_seconds >= floor_seconds:
        while chosen < len(words) - 1 and words[chosen].end - start_seconds < floor_seconds:
            chosen += 1

    end_seconds = min(max_end, words[chosen].end)
    kept = [word for word in words if word.end <= end_seconds + 1e-3]
    return RefinedSpan(words=kept, end_seconds=end_seconds)
