from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from clipframe.features.scene_cuts import detect_scene_cuts, resize_for_analysis, select_cuts


def test_select_cuts_applies_threshold_and_min_gap() -> None:
    samples = [
        {"time_seconds": 0.0, "difference": 0.9},
        {"time_seconds": 0.5, "difference": 0.02},
        {"time_seconds": 1.0, "difference": 0.6},
        {"time_seconds": 1.5, "difference": 0.7},
        {"time_seconds": 4.0, "difference": 0.65},
    ]

    cuts = select_cuts(samples, threshold=0.5, min_scene_gap_seconds=1.0)

    assert [cut.time_seconds for cut in cuts] == [1.0, 4.0]


def test_select_cuts_ignores_zero_difference() -> None:
    samples = [{"time_seconds": 0.0, "difference": 0.0}, {"time_seconds": 0.5, "difference": 0.0}]

    assert select_cuts(samples, threshold=0.0) == []


def test_resize_for_analysis_keeps_aspect_ratio() -> None:
    frame = np.zeros((720, 1280, 3), dtype=np.uint8)

    resized = resize_for_analysis(frame, 320)

    assert resized.shape[:2] == (180, 320)
    assert resize_for_analysis(frame, 0) is frame


def test_detect_scene_cuts_requires_existing_video(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Video file not found"):
        detect_scene_cuts(str(tmp_path / "missing.mp4"), cache_dir=str(tmp_path / "cache"))
