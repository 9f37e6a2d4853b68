from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from clipframe.models import SceneChange

logger = logging.getLogger(__name__)


def detect_scene_cuts(
    video_path: str,
    cache_dir: str = "data/cache",
    analysis_fps: float = 2.0,
    processing_width: int = 320,
    scene_change_multiplier: float = 2.5,
    min_scene_gap_seconds: float = 1.0,
) -> dict[str, Any]:
    """Detect visual cut points with low-FPS grayscale frame differencing.

    A sample is a cut when its mean absolute difference to the previous
    sample reaches ``mean + multiplier * std`` over the whole video. Cuts
    closer than ``min_scene_gap_seconds`` to the previous cut are merged.
    """

    source_path = Path(video_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Video file not found: {source_path}")

    import cv2
    import numpy as np

    capture = cv2.VideoCapture(str(source_path))
    if not capture.isOpened():
        raise RuntimeError(f"Unable to open video for scene-cut analysis: {source_path}")

    native_fps = float(capture.get(cv2.CAP_PROP_FPS) or 0.0)
    if native_fps <= 0:
        native_fps = max(analysis_fps, 1.0)
    frame_interval = max(int(round(native_fps / max(analysis_fps, 0.1))), 1)

    samples: list[dict[str, float]] = []
    prev_gray = None
    frame_index = 0

    try:
        while True:
            ok, frame = capture.read()
            if not ok:
                break

            if frame_index % frame_interval != 0:
                frame_index += 1
                continue

            timestamp_seconds = float(capture.get(cv2.CAP_PROP_POS_MSEC) / 1000.0)
            gray = cv2.cvtColor(resize_for_analysis(frame, processing_width), cv2.COLOR_BGR2GRAY)

            difference = 0.0 if prev_gray is None else float(np.mean(cv2.absdiff(gray, prev_gray)) / 255.0)
            samples.append({"time_seconds": round(timestamp_seconds, 3), "difference": round(difference, 6)})

            prev_gray = gray
            frame_index += 1
        frame_count = float(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0)
    finally:
        capture.release()

    differences = [sample["difference"] for sample in samples]
    threshold = _cut_threshold(differences, scene_change_multiplier)
    cuts = select_cuts(samples, threshold, min_scene_gap_seconds=min_scene_gap_seconds)

    sample_duration = samples[-1]["time_seconds"] if samples else 0.0
    duration_seconds = max(sample_duration, frame_count / native_fps if native_fps > 0 else 0.0)

    artifact_dir = Path(cache_dir).expanduser().resolve() / "features" / "scene_cuts" / source_path.stem
    artifact_dir.mkdir(parents=True, exist_ok=True)

    payload = {
        "status": "ok",
        "video_path": str(source_path),
        "analysis_fps": analysis_fps,
        "native_fps": round(native_fps, 3),
        "sample_interval_frames": frame_interval,
        "sample_count": len(samples),
        "duration_seconds": round(duration_seconds, 3),
        "threshold": round(threshold, 6),
        "scene_change_count": len(cuts),
        "scene_changes": [{"time_seconds": cut.time_seconds} for cut in cuts],
    }

    artifact_path = artifact_dir / "scene_cuts.json"
    artifact_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    logger.info("Detected %d scene cuts in %s (%d samples)", len(cuts), source_path.name, len(samples))

    return {
        **payload,
        "scene_cuts_path": str(artifact_path),
    }


def select_cuts(
    samples: list[dict[str, float]],
    threshold: float,
    min_scene_gap_seconds: float = 1.0,
) -> list[SceneChange]:
    """Pick samples at/above ``threshold``; drop cuts too close to the previous one."""

    cuts: list[SceneChange] = []
    for sample in samples[1:]:
        if sample["difference"] < threshold or sample["difference"] <= 0:
            continue
        time_seconds = float(sample["time_seconds"])
        if cuts and time_seconds - cuts[-1].time_seconds < min_scene_gap_seconds:
            continue
        cuts.append(SceneChange(time_seconds=time_seconds))
    return cuts


def resize_for_analysis(frame: Any, processing_width: int) -> Any:
    """Downscale ``frame`` to ``processing_width`` keeping aspect ratio (<=0 disables)."""

    if processing_width <= 0:
        return frame

    import cv2

    height, width = frame.shape[:2]
    if width <= processing_width:
        return frame

    scaled_height = max(int(round(height * processing_width / width)), 1)
    return cv2.resize(frame, (processing_width, scaled_height), interpolation=cv2.INTER_AREA)


def _cut_threshold(differences: list[float], multiplier: float) -> float:
    if not differences:
        return 0.0

    import numpy as np

    values = np.asarray(differences, dtype=np.float64)
    return float(values.mean() + multiplier * values.std())
