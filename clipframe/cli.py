from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from time import perf_counter
from typing import Callable, TypeVar

import typer

from clipframe.artifacts import (
    load_json,
    parse_chapters,
    parse_face_signal,
    parse_hotspots,
    parse_scene_changes,
    parse_transcript,
)
from clipframe.config import Settings, load_settings
from clipframe.features.comment_hotspots import mine_comment_hotspots
from clipframe.features.scene_cuts import detect_scene_cuts
from clipframe.framing.engine import compute_crop_map
from clipframe.framing.expression import build_piecewise_expr
from clipframe.ingest.probe import probe_source
from clipframe.logging_config import configure_logging
from clipframe.propose.exporter import export_final_outputs, load_segments
from clipframe.segmentation.engine import detect_segments

app = typer.Typer(help="Clip segmentation and speaker-aware vertical framing.")
config_app = typer.Typer(help="Configuration commands.")
ingest_app = typer.Typer(help="Ingest commands.")
features_app = typer.Typer(help="Signal extraction commands.")
segments_app = typer.Typer(help="Segment detection commands.")
framing_app = typer.Typer(help="Crop path commands.")

app.add_typer(config_app, name="config")
app.add_typer(ingest_app, name="ingest")
app.add_typer(features_app, name="features")
app.add_typer(segments_app, name="segments")
app.add_typer(framing_app, name="framing")

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONFIG_OPTION = typer.Option(
    Path("configs/default.yaml"),
    "--config",
    "-c",
    envvar="CLIPFRAME_CONFIG",
    help="Path to YAML configuration file.",
)


def _run_with_progress(step_index: int, total_steps: int, label: str, work: Callable[[], T]) -> T:
    typer.echo(f"[{step_index}/{total_steps}] {label}...", err=True)
    started_at = perf_counter()
    try:
        result = work()
    except Exception:
        elapsed = perf_counter() - started_at
        typer.echo(f"[{step_index}/{total_steps}] {label} failed after {elapsed:.1f}s", err=True)
        raise
    elapsed = perf_counter() - started_at
    typer.echo(f"[{step_index}/{total_steps}] {label} done in {elapsed:.1f}s", err=True)
    return result


def _bootstrap(config_path: Path) -> Settings:
    settings = load_settings(config_path)
    configure_logging(settings.logging)
    logger.debug("Loaded runtime settings from %s", config_path)
    return settings


def _fail(exc: Exception) -> typer.Exit:
    logger.error("Command failed: %s", exc)
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=1)


@config_app.command("show")
def show_config(config_path: Path = CONFIG_OPTION) -> None:
    """Print resolved runtime configuration."""

    settings = _bootstrap(config_path)
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))


@ingest_app.command("probe")
def probe(video_path: str, config_path: Path = CONFIG_OPTION) -> None:
    """Probe source width, height and duration with ffprobe."""

    settings = _bootstrap(config_path)
    try:
        result = probe_source(video_path=video_path, cache_dir=str(settings.pipeline.cache_dir))
    except (FileNotFoundError, RuntimeError, ValueError) as exc:
        raise _fail(exc) from exc
    logger.info("Probe completed for %s", video_path)
    typer.echo(json.dumps(result, indent=2))


@features_app.command("scene-cuts")
def scene_cuts(
    video_path: str,
    config_path: Path = CONFIG_OPTION,
    analysis_fps: float = typer.Option(2.0, help="Sampling FPS for frame differencing."),
    processing_width: int = typer.Option(320, help="Resize width before differencing (<=0 disables resize)."),
    multiplier: float = typer.Option(2.5, help="Cut threshold in standard deviations above the mean difference."),
) -> None:
    """Detect visual scene cuts and cache a scene-cut artifact."""

    settings = _bootstrap(config_path)
    try:
        result = detect_scene_cuts(
            video_path=video_path,
            cache_dir=str(settings.pipeline.cache_dir),
            analysis_fps=analysis_fps,
            processing_width=processing_width,
            scene_change_multiplier=multiplier,
        )
    except (FileNotFoundError, RuntimeError) as exc:
        raise _fail(exc) from exc
    typer.echo(json.dumps(result, indent=2))


@features_app.command("hotspots")
def hotspots(
    comments_path: Path = typer.Argument(..., help="JSON array of comment strings or {\"text\": ...} objects."),
    window_seconds: int = typer.Option(30, help="Maximum gap between timestamps of one cluster."),
    output_path: Path | None = typer.Option(None, "--output", "-o", help="Optional path for the hotspot artifact."),
    config_path: Path = CONFIG_OPTION,
) -> None:
    """Mine timestamp hotspots from audience comments."""

    _bootstrap(config_path)
    try:
        comments = load_json(comments_path)
        if not isinstance(comments, list):
            raise ValueError("Comments must be a JSON array.")
        result = {"hotspots": mine_comment_hotspots(comments, window_seconds=window_seconds)}
    except (FileNotFoundError, ValueError) as exc:
        raise _fail(exc) from exc

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(result, indent=2), encoding="utf-8")
    typer.echo(json.dumps(result, indent=2))


@segments_app.command("detect")
def detect(
    transcript_path: Path = typer.Option(..., help="Transcript JSON (utterances with words, or a flat word list)."),
    duration_seconds: float = typer.Option(..., help="Source video duration in seconds."),
    scene_cuts_path: Path | None = typer.Option(None, help="Scene-cut JSON artifact."),
    chapters_path: Path | None = typer.Option(None, help="Chapter list JSON."),
    hotspots_path: Path | None = typer.Option(None, help="Hotspot JSON (list of seconds or {\"hotspots\": [...]})."),
    video_path: str | None = typer.Option(None, help="Optional source video for ffmpeg command generation."),
    output_dir: Path | None = typer.Option(None, "--output-dir", "-o", help="Directory for JSON/CSV/review outputs."),
    basename: str = typer.Option("segments", help="Base filename for exported artifacts."),
    config_path: Path = CONFIG_OPTION,
) -> None:
    """Detect ranked, non-overlapping clip segments from transcript and signal artifacts."""

    settings = _bootstrap(config_path)
    total_steps = 3

    try:
        transcript, scene_changes, chapters, comment_hotspots = _run_with_progress(
            1,
            total_steps,
            "Load artifacts",
            lambda: (
                parse_transcript(load_json(transcript_path)),
                parse_scene_changes(load_json(scene_cuts_path)) if scene_cuts_path else [],
                parse_chapters(load_json(chapters_path)) if chapters_path else [],
                parse_hotspots(load_json(hotspots_path)) if hotspots_path else [],
            ),
        )
        segments = _run_with_progress(
            2,
            total_steps,
            "Detect segments",
            lambda: detect_segments(
                transcript,
                scene_changes,
                chapters,
                duration_seconds,
                comment_hotspots,
                settings=settings.segmentation,
                duration_settings=settings.duration,
                weights=settings.weights,
            ),
        )
        exported = _run_with_progress(
            3,
            total_steps,
            "Export outputs",
            lambda: export_final_outputs(
                segments,
                output_dir=output_dir or settings.pipeline.output_dir,
                basename=basename,
                video_path=video_path,
            ),
        )
    except (FileNotFoundError, RuntimeError, ValueError) as exc:
        raise _fail(exc) from exc

    typer.echo(
        json.dumps(
            {
                "status": "ok",
                "segment_count": len(segments),
                "outputs": {key: str(path) for key, path in exported.items()},
            },
            indent=2,
        )
    )


@framing_app.command("crop-map")
def crop_map(
    faces_path: Path = typer.Option(..., help="Face signal JSON with frames, tracks and/or speaker words."),
    source_width: int = typer.Option(..., help="Source frame width in pixels."),
    source_height: int = typer.Option(..., help="Source frame height in pixels."),
    start_seconds: float | None = typer.Option(None, help="Clip start (absolute seconds)."),
    end_seconds: float | None = typer.Option(None, help="Clip end (absolute seconds)."),
    segments_path: Path | None = typer.Option(None, help="Segments JSON to take the clip range from."),
    segment_id: str | None = typer.Option(None, help="Segment id inside --segments-path."),
    config_path: Path = CONFIG_OPTION,
) -> None:
    """Compute the crop path for one clip and print both axis expressions."""

    settings = _bootstrap(config_path)

    try:
        clip_range = _resolve_clip_range(start_seconds, end_seconds, segments_path, segment_id)
        signal = parse_face_signal(load_json(faces_path))
    except (FileNotFoundError, ValueError) as exc:
        raise _fail(exc) from exc

    keyframes = compute_crop_map(clip_range, source_width, source_height, signal, settings.framing)
    if keyframes is None:
        typer.echo(json.dumps({"status": "static", "clip_range": list(clip_range), "keyframes": []}, indent=2))
        return

    typer.echo(
        json.dumps(
            {
                "status": "dynamic",
                "clip_range": list(clip_range),
                "keyframes": [asdict(frame) for frame in keyframes],
                "expr_x": build_piecewise_expr(keyframes, "x", time_offset=clip_range[0]),
                "expr_y": build_piecewise_expr(keyframes, "y", time_offset=clip_range[0]),
            },
            indent=2,
        )
    )


def _resolve_clip_range(
    start_seconds: float | None,
    end_seconds: float | None,
    segments_path: Path | None,
    segment_id: str | None,
) -> tuple[float, float]:
    if segments_path is not None:
        segments = load_segments(segments_path)
        for segment in segments:
            if segment_id is None or segment.segment_id == segment_id:
                return segment.start_seconds, segment.end_seconds
        raise ValueError(f"Segment {segment_id!r} not found in {segments_path}")

    if start_seconds is None or end_seconds is None:
        raise ValueError("Provide --start-seconds and --end-seconds, or --segments-path.")
    if end_seconds <= start_seconds:
        raise ValueError("Clip end must be after clip start.")
    return start_seconds, end_seconds


if __name__ == "__main__":
    app()
