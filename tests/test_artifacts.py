from __future__ import annotations

import json
from pathlib import Path

import pytest

from clipframe.artifacts import (
    load_json,
    parse_chapters,
    parse_face_signal,
    parse_hotspots,
    parse_scene_changes,
    parse_transcript,
)


def test_parse_transcript_reads_utterances_with_words() -> None:
    payload = {
        "utterances": [
            {"speaker": "A", "words": [{"word": "hello", "start": 0.0, "end": 0.4, "speaker": "A"}]},
            {"speaker": "B", "words": [{"text": "hi", "start": 0.6, "end": 0.5}]},
            {"speaker": "B", "words": []},
        ]
    }

    transcript = parse_transcript(payload)

    assert len(transcript) == 2
    assert transcript[0][0].word == "hello"
    assert transcript[0][0].speaker == "A"
    assert transcript[1][0].word == "hi"
    assert transcript[1][0].end == 0.6


def test_parse_transcript_reads_flat_word_list() -> None:
    payload = [
        {"word": "second", "start": 1.0, "end": 1.4},
        {"word": "first", "start": 0.0, "end": 0.4},
    ]

    transcript = parse_transcript(payload)

    assert [word.word for word in transcript[0]] == ["first", "second"]


def test_parse_transcript_rejects_malformed_words() -> None:
    with pytest.raises(ValueError, match="needs word/text, start and end"):
        parse_transcript([{"word": "x", "start": 0.0}])
    with pytest.raises(ValueError, match="must contain one of"):
        parse_transcript({"items": []})


def test_parse_scene_changes_accepts_several_shapes() -> None:
    assert [change.time_seconds for change in parse_scene_changes([3, 1.5])] == [1.5, 3.0]
    assert [change.time_seconds for change in parse_scene_changes([{"timeSec": 2}, {"t": 4}])] == [2.0, 4.0]
    artifact = {"scene_changes": [{"time_seconds": 7.5}]}
    assert [change.time_seconds for change in parse_scene_changes(artifact)] == [7.5]


def test_parse_chapters_skips_unusable_ranges() -> None:
    chapters = parse_chapters(
        [
            {"start": 0, "end": 30, "title": "Intro"},
            {"start_seconds": 30, "end_seconds": 20, "label": "Broken"},
            {"start": 30, "end": 90, "label": "Main"},
        ]
    )

    assert [(chapter.start, chapter.end, chapter.label) for chapter in chapters] == [(0.0, 30.0, "Intro"), (30.0, 90.0, "Main")]


def test_parse_hotspots_drops_non_finite_values() -> None:
    assert parse_hotspots({"hotspots": [120, 30, float("nan")]}) == [30.0, 120.0]


def test_parse_face_signal_reads_frames_tracks_and_words() -> None:
    payload = {
        "frames": [{"t": 0.5, "boxes": [{"x": 10, "y": 20, "w": 30, "h": 40, "score": 0.9}]}],
        "tracks": [{"id": "track_a", "samples": [{"t": 1.0, "x": 1, "y": 2, "w": 3, "h": 4}, {"t": 0.0, "x": 1, "y": 2, "w": 3, "h": 4}]}],
        "words": [{"word": "hey", "start": 0.0, "end": 0.3, "speaker": "host"}],
    }

    signal = parse_face_signal(payload)

    assert signal.frames[0].boxes[0].t == 0.5
    assert signal.frames[0].boxes[0].score == pytest.approx(0.9)
    assert signal.tracks[0].track_id == "track_a"
    assert [sample.t for sample in signal.tracks[0].samples] == [0.0, 1.0]
    assert signal.words[0].speaker == "host"


@pytest.mark.parametrize(
    ("payload", "message"),
    [
        ({"frames": [{"t": 0, "boxes": [{"y": 1, "w": 2, "h": 3}]}]}, "missing: x"),
        ({"frames": [{"boxes": []}]}, "Frame 1 needs t"),
        ({"frames": ["not a frame"]}, "Frame 1 must be an object"),
        ({"frames": [{"t": 0, "boxes": ["box"]}]}, "must be an object"),
        ({"tracks": [{"id": "a", "samples": [{"x": 1, "y": 2, "w": 3, "h": 4}]}]}, "missing: t"),
        ({"tracks": [{"id": "a", "samples": [{"t": 0, "x": "left", "y": 2, "w": 3, "h": 4}]}]}, "Invalid number"),
        ({"frames": [{"t": 0, "boxes": [{"x": 1, "y": 2, "w": 3, "h": 4, "landmarks": [[1]]}]}]}, "malformed landmarks"),
    ],
)
def test_parse_face_signal_rejects_malformed_input(payload: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        parse_face_signal(payload)


def test_parse_face_signal_drops_non_finite_samples() -> None:
    payload = {
        "frames": [
            {"t": float("nan"), "boxes": []},
            {"t": 1.0, "boxes": [{"x": float("inf"), "y": 0, "w": 10, "h": 10}, {"x": 5, "y": 0, "w": 10, "h": 10}]},
        ]
    }

    signal = parse_face_signal(payload)

    assert [frame.t for frame in signal.frames] == [1.0]
    assert [box.x for box in signal.frames[0].boxes] == [5.0]


def test_load_json_reports_missing_and_invalid_files(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Artifact not found"):
        load_json(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="not valid JSON"):
        load_json(broken)

    valid = tmp_path / "valid.json"
    valid.write_text(json.dumps([1, 2]), encoding="utf-8")
    assert load_json(valid) == [1, 2]
