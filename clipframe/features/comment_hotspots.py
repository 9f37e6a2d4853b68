from __future__ import annotations

import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

_TIMESTAMP = re.compile(r"(?<!\d)(\d{1,2}):(\d{2})(?::(\d{2}))?(?!\d)")


def extract_timestamps(text: str) -> list[int]:
    """Return every ``m:ss`` / ``h:mm:ss`` mark in ``text`` as seconds."""

    seconds: list[int] = []
    for match in _TIMESTAMP.finditer(text):
        first, second, third = match.groups()
        if third is not None:
            seconds.append(int(first) * 3600 + int(second) * 60 + int(third))
        else:
            seconds.append(int(first) * 60 + int(second))
    return seconds


def cluster_peaks(marks: Iterable[int], window_seconds: int = 30) -> list[int]:
    """Group sorted marks whose neighbours are at most ``window_seconds`` apart.

    Each group yields its median; even-sized groups use the floored mean of
    the two middle marks.
    """

    ordered = sorted(marks)
    if not ordered:
        return []

    clusters: list[list[int]] = [[ordered[0]]]
    for mark in ordered[1:]:
        if mark - clusters[-1][-1] <= window_seconds:
            clusters[-1].append(mark)
        else:
            clusters.append([mark])

    return [_median(cluster) for cluster in clusters]


def mine_comment_hotspots(comments: Iterable[str | dict], window_seconds: int = 30) -> list[int]:
    """Mine audience comments for timestamp hotspots.

    Accepts plain strings or comment objects with a ``text`` field.
    """

    marks: list[int] = []
    comment_count = 0
    for comment in comments:
        comment_count += 1
        text = comment.get("text", "") if isinstance(comment, dict) else comment
        marks.extend(extract_timestamps(str(text or "")))

    hotspots = cluster_peaks(marks, window_seconds=window_seconds)
    logger.info("Mined %d timestamps from %d comments into %d hotspots", len(marks), comment_count, len(hotspots))
    return hotspots


def _median(values: list[int]) -> int:
    ordered = sorted(values)
    middle = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[middle]
    return (ordered[middle - 1] + ordered[middle]) // 2
