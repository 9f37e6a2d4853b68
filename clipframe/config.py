from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
ENV_PREFIX = "CLIPFRAME_"


class PipelineSettings(BaseModel):
    output_dir: Path = Path("data/outputs")
    cache_dir: Path = Path("data/cache")


class SegmentationSettings(BaseModel):
    locale: str = "en"

    chapter_window_seconds: float = 82.0
    chapter_min_window_seconds: float = 25.0
    chapter_min_stride_seconds: float = 40.0
    chapter_stride_ratio: float = 0.12
    chapter_tail_gap_seconds: float = 8.0

    coverage_stride_seconds: float = 55.0
    coverage_long_stride_seconds: float = 75.0
    coverage_long_stride_after_seconds: float = 1200.0
    coverage_window_seconds: float = 82.0
    coverage_long_window_seconds: float = 95.0
    coverage_long_window_after_seconds: float = 900.0
    coverage_tail_gap_seconds: float = 5.0
    coverage_chapter_overlap_seconds: float = 60.0
    intro_skip_seconds: float = 0.0

    min_window_words: int = 10
    min_pause_seconds: float = 0.35
    max_pause_seconds: float = 1.2
    min_span_seconds: float = 20.0
    max_span_seconds: float = 82.0
    min_candidate_words: int = 8

    hook_seconds: float = 3.0
    dynamics_seconds: float = 5.0
    closing_seconds: float = 4.0
    early_question_seconds: float = 6.0
    hotspot_radius_seconds: float = 30.0

    min_initial_score: float = 0.50
    min_refined_score: float = 0.52

    refine_search_seconds: float = 6.0
    refine_pause_seconds: float = 0.8
    refine_min_seconds: float = 18.0

    min_hook_words: int = 3
    min_safety: float = 0.5
    min_clarity: float = 0.3
    min_coherence: float = 0.45
    min_closure: float = 0.4
    diversity_threshold: float = 0.7
    max_segments: int = 12


class DurationSettings(BaseModel):
    round_to_seconds: float = 5.0
    min_prefer_seconds: float = 24.0
    max_prefer_seconds: float = 80.0
    long_min_seconds: float = 65.0
    long_max_seconds: float = 80.0
    mid_min_seconds: float = 45.0
    mid_max_seconds: float = 55.0
    short_max_seconds: float = 32.0
    short_trim_seconds: float = 3.0
    engagement_min_seconds: float = 40.0
    engagement_max_seconds: float = 50.0
    strong_floor_seconds: float = 28.0
    default_floor_seconds: float = 20.0


class WeightSettings(BaseModel):
    hook: float = 0.24
    retention: float = 0.18
    clarity: float = 0.12
    coherence: float = 0.10
    closure: float = 0.10
    narrative_arc: float = 0.08
    engagement: float = 0.08
    novelty: float = 0.05
    visual: float = 0.03
    safety: float = 0.02


class FramingSettings(BaseModel):
    margin: float = 0.12
    max_pan_px_per_second: float = 600.0
    ease_ms: float = 250.0
    center_bias_y: float = 0.08
    safe_top: float = 0.10
    safe_bottom: float = 0.15

    sample_fps: float = 3.0
    min_face_confidence: float = 0.6
    max_track_join_gap_seconds: float = 1.2
    max_interp_gap_seconds: float = 0.8
    track_hold_seconds: float = 0.6
    max_association_distance_px: float = 180.0
    min_track_samples: int = 2

    speaker_min_hold_seconds: float = 0.8

    torso_multiplier: float = 2.7
    shoulder_to_jaw_ratio: float = 2.4
    head_to_brow_chin_ratio: float = 1.5
    body_center_fraction: float = 0.40

    smoothing_radius: int = 2
    min_keyframe_delta_seconds: float = 0.1


class LoggingSettings(BaseModel):
    level: str = "INFO"
    file: Path | None = None
    loggers: dict[str, str] = Field(default_factory=dict)


class Settings(BaseModel):
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    segmentation: SegmentationSettings = Field(default_factory=SegmentationSettings)
    duration: DurationSettings = Field(default_factory=DurationSettings)
    weights: WeightSettings = Field(default_factory=WeightSettings)
    framing: FramingSettings = Field(default_factory=FramingSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load typed settings from YAML with environment-variable overrides."""

    resolved_path = Path(
        config_path
        or os.getenv(f"{ENV_PREFIX}CONFIG")
        or DEFAULT_CONFIG_PATH
    )
    raw_config: dict[str, Any] = {}
    if resolved_path.exists():
        raw_config = yaml.safe_load(resolved_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw_config, dict):
        raise ValueError(f"Configuration file must contain a mapping: {resolved_path}")
    data = Settings.model_validate(raw_config).model_dump(mode="python")

    for key, raw_value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        suffix = key[len(ENV_PREFIX) :]
        if suffix == "CONFIG":
            continue

        path = [part.lower() for part in suffix.split("__")]
        _apply_override(data, path, raw_value)

    return Settings.model_validate(data)


def _apply_override(data: dict[str, Any], path: list[str], raw_value: str) -> None:
    current: Any = data
    for segment in path[:-1]:
        if not isinstance(current, dict) or segment not in current:
            return
        current = current[segment]

    if not isinstance(current, dict):
        return

    final_key = path[-1]
    if final_key not in current:
        return

    current[final_key] = _coerce_value(raw_value, current[final_key])


def _coerce_value(raw_value: str, existing_value: Any) -> Any:
    if isinstance(existing_value, bool):
        return raw_value.lower() in {"1", "true", "yes", "on"}
    if isinstance(existing_value, int) and not isinstance(existing_value, bool):
        return int(raw_value)
    if isinstance(existing_value, float):
        return float(raw_value)
    if isinstance(existing_value, list | dict):
        return json.loads(raw_value)
    if isinstance(existing_value, Path):
        return Path(raw_value)
    return raw_value
