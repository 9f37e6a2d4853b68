from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any

from clipframe.models import ChapterWindow, FaceBox, FaceFrame, FaceSignal, FaceTrack, SceneChange, TranscriptWord

logger = logging.getLogger(__name__)


def load_json(path: str | Path) -> Any:
    """Read a JSON artifact, raising ValueError on unreadable content."""

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Artifact not found: {source}")
    try:
        return json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Artifact is not valid JSON: {source} ({exc})") from exc


def parse_transcript(payload: Any) -> list[list[TranscriptWord]]:
    """Parse utterances (objects with ``words``) or a flat word list.

    Accepts a bare list or an object with ``utterances``/``segments``/``words``.
    Words need ``word`` (or ``text``), ``start`` and ``end``; an ``end``
    before ``start`` is clamped and non-finite times are dropped.
    """

    rows = _unwrap(payload, ("utterances", "segments", "words"), "Transcript")
    if rows and all(isinstance(row, dict) and "words" in row for row in rows):
        utterances = [_parse_words(row["words"], f"utterance {idx}") for idx, row in enumerate(rows, start=1)]
    else:
        utterances = [_parse_words(rows, "transcript")]
    return [utterance for utterance in utterances if utterance]


def parse_scene_changes(payload: Any) -> list[SceneChange]:
    """Parse ``[{"time_seconds": ..}]``, plain numbers, or a scene-cut artifact."""

    rows = _unwrap(payload, ("scene_changes",), "Scene changes")
    changes: list[SceneChange] = []
    for idx, row in enumerate(rows, start=1):
        if isinstance(row, dict):
            raw = row.get("time_seconds", row.get("timeSec", row.get("t")))
        else:
            raw = row
        value = _finite(raw, f"scene change {idx}")
        if value is not None:
            changes.append(SceneChange(time_seconds=value))
    return sorted(changes, key=lambda change: change.time_seconds)


def parse_chapters(payload: Any) -> list[ChapterWindow]:
    rows = _unwrap(payload, ("chapters",), "Chapters")
    chapters: list[ChapterWindow] = []
    for idx, row in enumerate(rows, start=1):
        if not isinstance(row, dict):
            raise ValueError(f"Chapter {idx} must be an object.")
        start = _finite(row.get("start", row.get("start_seconds")), f"chapter {idx} start")
        end = _finite(row.get("end", row.get("end_seconds")), f"chapter {idx} end")
        if start is None or end is None or end <= start:
            logger.warning("Skipping chapter %d with unusable range", idx)
            continue
        chapters.append(ChapterWindow(start=start, end=end, label=str(row.get("label", row.get("title", "")))))
    return chapters


def parse_hotspots(payload: Any) -> list[float]:
    rows = _unwrap(payload, ("hotspots",), "Hotspots")
    return sorted(value for value in (_finite(row, "hotspot") for row in rows) if value is not None)


def parse_face_signal(payload: Any) -> FaceSignal:
    """Parse ``{"frames": [...], "tracks": [...], "words": [...]}`` into a FaceSignal."""

    if not isinstance(payload, dict):
        raise ValueError("Face signal must be a JSON object.")

    frames: list[FaceFrame] = []
    for idx, frame in enumerate(_require_list(payload.get("frames", []), "frames"), start=1):
        if not isinstance(frame, dict):
            raise ValueError(f"Frame {idx} must be an object.")
        if "t" not in frame:
            raise ValueError(f"Frame {idx} needs t.")
        t = _finite(frame["t"], f"frame {idx} t")
        if t is None:
            continue
        rows = _require_list(frame.get("boxes", []), f"frame {idx} boxes")
        boxes = [_parse_box(row, f"frame {idx} box {pos}", t) for pos, row in enumerate(rows, start=1)]
        frames.append(FaceFrame(t=t, boxes=[box for box in boxes if box is not None]))

    tracks: list[FaceTrack] = []
    for idx, track in enumerate(_require_list(payload.get("tracks", []), "tracks")):
        if not isinstance(track, dict):
            raise ValueError(f"Track {idx + 1} must be an object.")
        rows = _require_list(track.get("samples", track.get("boxes", [])), f"track {idx + 1} samples")
        samples = [_parse_box(row, f"track {idx + 1} sample {pos}") for pos, row in enumerate(rows, start=1)]
        tracks.append(
            FaceTrack(
                track_id=str(track.get("id", track.get("track_id", f"track_{idx}"))),
                samples=sorted((box for box in samples if box is not None), key=lambda box: box.t),
            )
        )

    words = _parse_words(payload.get("words", []), "face signal words")
    return FaceSignal(frames=frames, tracks=tracks, words=words)


def _parse_words(rows: Any, label: str) -> list[TranscriptWord]:
    words: list[TranscriptWord] = []
    for idx, row in enumerate(_require_list(rows, label), start=1):
        if not isinstance(row, dict):
            raise ValueError(f"Word {idx} in {label} must be an object.")
        text = row.get("word", row.get("text"))
        if text is None or "start" not in row or "end" not in row:
            raise ValueError(f"Word {idx} in {label} needs word/text, start and end.")
        start = _finite(row["start"], f"{label} word {idx} start")
        end = _finite(row["end"], f"{label} word {idx} end")
        if start is None or end is None:
            continue
        speaker = row.get("speaker")
        words.append(
            TranscriptWord(
                word=str(text),
                start=start,
                end=max(start, end),
                speaker=str(speaker) if speaker is not None else None,
            )
        )
    return sorted(words, key=lambda word: (word.start, word.end))


def _parse_box(row: Any, label: str, t: float | None = None) -> FaceBox | None:
    if not isinstance(row, dict):
        raise ValueError(f"Face box in {label} must be an object.")
    required = ("x", "y", "w", "h") if t is not None else ("t", "x", "y", "w", "h")
    missing = [key for key in required if key not in row]
    if missing:
        raise ValueError(f"Face box in {label} is missing: {', '.join(missing)}.")
    values = {key: _finite(row[key], f"{label} {key}") for key in required}
    if any(value is None for value in values.values()):
        return None
    score = _finite(row.get("score", 1.0), f"{label} score")
    landmarks = row.get("landmarks")
    if landmarks:
        try:
            points = [(float(point[0]), float(point[1])) for point in landmarks]
        except (TypeError, ValueError, IndexError) as exc:
            raise ValueError(f"Face box in {label} has malformed landmarks.") from exc
    else:
        points = None
    return FaceBox(
        t=values["t"] if t is None else t,
        x=values["x"],
        y=values["y"],
        w=values["w"],
        h=values["h"],
        score=1.0 if score is None else score,
        landmarks=points,
    )


def _unwrap(payload: Any, keys: tuple[str, ...], label: str) -> list[Any]:
    if isinstance(payload, dict):
        for key in keys:
            if key in payload:
                return _require_list(payload[key], label)
        raise ValueError(f"{label} object must contain one of: {', '.join(keys)}.")
    return _require_list(payload, label)


def _require_list(value: Any, label: str) -> list[Any]:
    if not isinstance(value, list):
        raise ValueError(f"{label} must be a JSON array.")
    return value


def _finite(raw: Any, label: str) -> float | None:
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid number for {label}: {raw!r}") from exc
    if not math.isfinite(value):
        logger.warning("Dropping non-finite value for %s", label)
        return None
    return value
