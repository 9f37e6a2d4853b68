from __future__ import annotations

from clipframe.features.comment_hotspots import cluster_peaks, extract_timestamps, mine_comment_hotspots


def test_extract_timestamps_parses_minutes_and_hours() -> None:
    assert extract_timestamps("best part at 1:05 and again 1:02:03") == [65, 3723]
    assert extract_timestamps("no marks here, just 2024 and 10") == []


def test_cluster_peaks_returns_cluster_medians() -> None:
    assert cluster_peaks([65, 70, 80, 300, 310]) == [70, 305]
    assert cluster_peaks([]) == []


def test_mine_comment_hotspots_accepts_strings_and_objects() -> None:
    comments = [
        "lol 2:10 was the best",
        {"text": "2:15 got me"},
        {"text": "rewatching 2:20"},
        {"author": "someone"},
        "and 10:00 too",
    ]

    assert mine_comment_hotspots(comments) == [135, 600]
