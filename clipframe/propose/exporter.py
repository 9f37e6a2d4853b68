from __future__ import annotations

import csv
import json
import shlex
from dataclasses import asdict
from pathlib import Path
from typing import Any

from clipframe.framing.expression import build_piecewise_expr
from clipframe.models import CropKeyframe, FeatureVector, Segment, TranscriptWord

OUTPUT_WIDTH = 1080
OUTPUT_HEIGHT = 1920


def export_segments(segments: list[Segment], output_path: str) -> Path:
    """Export segments to JSON (default) or CSV, based on file extension."""

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() == ".csv":
        _write_csv(segments, path)
    else:
        _write_json(segments, path)

    return path


def export_final_outputs(
    segments: list[Segment],
    output_dir: str | Path,
    *,
    basename: str = "segments",
    video_path: str | None = None,
    crop_maps: dict[str, list[CropKeyframe] | None] | None = None,
    include_ffmpeg_commands: bool = True,
) -> dict[str, Path]:
    """Export JSON/CSV segment files and a review manifest for quick triage."""

    resolved_output_dir = Path(output_dir)
    resolved_output_dir.mkdir(parents=True, exist_ok=True)

    json_path = resolved_output_dir / f"{basename}.json"
    csv_path = resolved_output_dir / f"{basename}.csv"
    review_path = resolved_output_dir / f"{basename}_review.json"

    export_segments(segments, str(json_path))
    export_segments(segments, str(csv_path))

    review_manifest = generate_review_manifest(
        segments,
        video_path=video_path,
        crop_maps=crop_maps,
        include_ffmpeg_commands=include_ffmpeg_commands,
    )
    review_path.write_text(json.dumps(review_manifest, indent=2, ensure_ascii=False), encoding="utf-8")

    return {
        "json": json_path,
        "csv": csv_path,
        "review": review_path,
    }


def generate_review_manifest(
    segments: list[Segment],
    *,
    video_path: str | None = None,
    crop_maps: dict[str, list[CropKeyframe] | None] | None = None,
    include_ffmpeg_commands: bool = True,
) -> list[dict[str, Any]]:
    """Build a lightweight review manifest with confidence and rationale."""

    manifest: list[dict[str, Any]] = []
    for idx, segment in enumerate(segments, start=1):
        keyframes = (crop_maps or {}).get(segment.segment_id)
        entry = {
            "index": idx,
            "segment_id": segment.segment_id,
            "chapter_title": segment.chapter_title,
            "start_seconds": round(segment.start_seconds, 3),
            "end_seconds": round(segment.end_seconds, 3),
            "duration_seconds": round(segment.duration_seconds, 3),
            "duration_choice": segment.duration_choice,
            "score": round(segment.score, 4),
            "confidence": _confidence_label(segment.score),
            "hook": segment.hook,
            "rationale": segment.rationale,
            "framing": "dynamic" if keyframes else "static",
        }
        if include_ffmpeg_commands and video_path:
            entry["ffmpeg_command"] = build_ffmpeg_clip_command(
                video_path=video_path,
                segment=segment,
                keyframes=keyframes,
            )
        manifest.append(entry)

    return manifest


def build_crop_filter(keyframes: list[CropKeyframe] | None, time_offset: float = 0.0) -> str:
    """Video filter for a 9:16 crop: dynamic from keyframes, else a static center crop."""

    scale = f"scale={OUTPUT_WIDTH}:{OUTPUT_HEIGHT}"
    if not keyframes:
        return f"crop=ih*9/16:ih,{scale}"

    width, height = keyframes[0].w, keyframes[0].h
    expr_x = build_piecewise_expr(keyframes, "x", time_offset=time_offset)
    expr_y = build_piecewise_expr(keyframes, "y", time_offset=time_offset)
    return f"crop={width}:{height}:'{expr_x}':'{expr_y}',{scale}"


def build_ffmpeg_clip_command(
    *,
    video_path: str,
    segment: Segment,
    keyframes: list[CropKeyframe] | None = None,
    output_dir: str = "clips",
) -> str:
    """Generate a copy-paste ffmpeg command cutting and reframing one segment."""

    start = max(0.0, segment.start_seconds)
    output_name = f"{segment.segment_id or 'segment'}.mp4"
    output_path = f"{output_dir.rstrip('/')}/{output_name}"

    # input seeking resets t to 0 at the clip start
    crop_filter = build_crop_filter(keyframes, time_offset=start)

    return (
        "ffmpeg "
        f"-ss {start:.3f} "
        f"-i {shlex.quote(video_path)} "
        f"-t {segment.duration_seconds:.3f} "
        f"-vf {shlex.quote(crop_filter)} "
        "-c:v libx264 -preset veryfast -crf 18 "
        "-c:a aac -b:a 160k "
        f"{shlex.quote(output_path)}"
    )


def load_segments(path: str | Path) -> list[Segment]:
    """Load segments from the exporter JSON contract."""

    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError("Segment contract must be a JSON array.")

    segments: list[Segment] = []
    for idx, row in enumerate(payload, start=1):
        if not isinstance(row, dict):
            raise ValueError(f"Segment row {idx} must be an object.")
        try:
            segments.append(
                Segment(
                    start_seconds=float(row["start_seconds"]),
                    end_seconds=float(row["end_seconds"]),
                    duration_seconds=float(row["duration_seconds"]),
                    words=[TranscriptWord(**word) for word in row.get("words", [])],
                    text=str(row.get("text", "")),
                    hook=str(row.get("hook", "")),
                    score=float(row["score"]),
                    features=FeatureVector(**row["features"]),
                    duration_choice=row["duration_choice"],
                    rationale=str(row.get("rationale", "")),
                    chapter_title=str(row.get("chapter_title", "")),
                    segment_id=str(row.get("segment_id", "")),
                )
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Segment row {idx} is malformed: {exc}") from exc

    return segments


def _write_json(segments: list[Segment], path: Path) -> None:
    payload = [asdict(segment) for segment in segments]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")


def _write_csv(segments: list[Segment], path: Path) -> None:
    fields = [
        "segment_id",
        "chapter_title",
        "start_seconds",
        "end_seconds",
        "duration_seconds",
        "duration_choice",
        "score",
        "confidence",
        "hook",
        "rationale",
    ]

    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.DictWriter(handle, fieldnames=fields)
        writer.writeheader()
        for segment in segments:
            writer.writerow(
                {
                    "segment_id": segment.segment_id,
                    "chapter_title": segment.chapter_title,
                    "start_seconds": f"{segment.start_seconds:.3f}",
                    "end_seconds": f"{segment.end_seconds:.3f}",
                    "duration_seconds": f"{segment.duration_seconds:.3f}",
                    "duration_choice": segment.duration_choice,
                    "score": f"{segment.score:.4f}",
                    "confidence": _confidence_label(segment.score),
                    "hook": segment.hook,
                    "rationale": segment.rationale,
                }
            )


def _confidence_label(score: float) -> str:
    if score >= 0.8:
        return "high"
    if score >= 0.6:
        return "medium"
    return "low"
