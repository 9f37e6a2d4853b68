from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any


def probe_source(video_path: str, cache_dir: str = "data/cache") -> dict[str, Any]:
    """Probe source geometry and duration via ffprobe and cache the result."""

    source_path = Path(video_path).expanduser().resolve()
    if not source_path.exists():
        raise FileNotFoundError(f"Video file not found: {source_path}")

    ingest_dir = Path(cache_dir).expanduser().resolve() / "ingest" / source_path.stem
    ingest_dir.mkdir(parents=True, exist_ok=True)
    metadata_path = ingest_dir / "metadata.json"

    metadata = normalize_probe_payload(source_path, _run_ffprobe(source_path))
    metadata_path.write_text(json.dumps(metadata, indent=2, sort_keys=True), encoding="utf-8")

    return {
        **metadata,
        "metadata_path": str(metadata_path),
    }


def normalize_probe_payload(video_path: Path, payload: dict[str, Any]) -> dict[str, Any]:
    """Reduce raw ffprobe JSON to what the framing engine needs.

    Width and height come from the first video stream and are swapped when
    the stream carries a 90/270 degree rotation.
    """

    streams = payload.get("streams", [])
    format_entry = payload.get("format", {})
    video_stream = next((stream for stream in streams if stream.get("codec_type") == "video"), None)
    if video_stream is None:
        raise ValueError(f"No video stream found in {video_path}")

    width = _to_int(video_stream.get("width"))
    height = _to_int(video_stream.get("height"))
    if not width or not height:
        raise ValueError(f"Video stream in {video_path} has no usable dimensions")

    if abs(_rotation(video_stream)) % 180 == 90:
        width, height = height, width

    duration = _to_float(format_entry.get("duration"))
    if duration is None:
        duration = _to_float(video_stream.get("duration"))

    return {
        "status": "ok",
        "video_path": str(video_path),
        "width": width,
        "height": height,
        "duration_seconds": duration or 0.0,
        "avg_frame_rate": _parse_rate(video_stream.get("avg_frame_rate")),
        "codec_name": video_stream.get("codec_name"),
    }


def _run_ffprobe(video_path: Path) -> dict[str, Any]:
    command = [
        "ffprobe",
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(video_path),
    ]

    try:
        completed = subprocess.run(
            command,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise RuntimeError(
            "ffprobe executable was not found. Install FFmpeg so ffprobe is available on PATH."
        ) from exc
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        if "error while loading shared libraries" in stderr:
            raise RuntimeError(
                "ffprobe is installed but failed to start because required shared libraries are missing. "
                f"ffprobe stderr: {stderr}"
            ) from exc
        details = f" ffprobe stderr: {stderr}" if stderr else ""
        raise RuntimeError(f"ffprobe failed while probing media file: {video_path}.{details}") from exc

    try:
        return json.loads(completed.stdout)
    except json.JSONDecodeError as exc:
        raise RuntimeError("ffprobe returned invalid JSON output.") from exc


def _rotation(stream: dict[str, Any]) -> int:
    tags = stream.get("tags") or {}
    if "rotate" in tags:
        return _to_int(tags["rotate"]) or 0
    for side_data in stream.get("side_data_list") or []:
        if "rotation" in side_data:
            return _to_int(side_data["rotation"]) or 0
    return 0


def _parse_rate(raw_value: Any) -> float | None:
    if not raw_value or raw_value in ("0/0", "N/A"):
        return None
    numerator, _, denominator = str(raw_value).partition("/")
    if not denominator:
        return float(numerator)
    if float(denominator) == 0:
        return None
    return round(float(numerator) / float(denominator), 3)


def _to_float(raw_value: Any) -> float | None:
    if raw_value in (None, "N/A", ""):
        return None
    return float(raw_value)


def _to_int(raw_value: Any) -> int | None:
    if raw_value in (None, "N/A", ""):
        return None
    return int(float(raw_value))
