from __future__ import annotations

from clipframe.config import SegmentationSettings
from clipframe.models import FULL_VIDEO_TITLE, ChapterWindow, SceneChange, TranscriptWord
from clipframe.propose.segment_builder import has_overlap
from clipframe.scoring.duration import tier_ceiling
from clipframe.segmentation.engine import detect_segments

WORD_STEP = 0.4
WORD_LENGTH = 0.38
SENTENCE_PAUSE = 0.5


def _sentence_tokens(idx: int) -> list[str]:
    topic = [f"item{idx * 6 + offset:03d}" for offset in range(6)]
    if idx % 2 == 0:
        return ["Why", "are", "3", topic[0], topic[1], "better", "compared", "to", topic[2], f"{topic[3]}?"]
    return ["Because", topic[0], topic[1], topic[2], topic[3], f"{topic[4]},", "so", "you", "can", f"{topic[5]}."]


def _question_answer_transcript(sentences: int = 30) -> list[list[TranscriptWord]]:
    """Alternating question/answer utterances, 0.5s pauses between sentences."""

    utterances: list[list[TranscriptWord]] = []
    cursor = 0.0
    for idx in range(sentences):
        utterance: list[TranscriptWord] = []
        for token in _sentence_tokens(idx):
            utterance.append(TranscriptWord(word=token, start=cursor, end=cursor + WORD_LENGTH))
            cursor += WORD_STEP
        utterances.append(utterance)
        cursor = utterance[-1].end + SENTENCE_PAUSE
    return utterances


def _scene_changes(duration: float) -> list[SceneChange]:
    return [SceneChange(time_seconds=float(t)) for t in range(8, int(duration), 8)]


def test_detect_segments_returns_disjoint_ranked_clips() -> None:
    transcript = _question_answer_transcript()

    segments = detect_segments(transcript, _scene_changes(135.0), [], 135.0)

    assert segments
    assert len(segments) <= 12
    assert [seg.segment_id for seg in segments] == [f"s_{idx:04d}" for idx in range(1, len(segments) + 1)]
    assert segments == sorted(segments, key=lambda seg: seg.start_seconds)
    assert max(seg.score for seg in segments) >= 0.8
    for idx, segment in enumerate(segments):
        assert 20.0 <= segment.duration_seconds <= 82.0
        assert segment.duration_seconds <= tier_ceiling(segment.duration_choice) + 6.0
        assert segment.score >= 0.52
        assert segment.chapter_title == FULL_VIDEO_TITLE
        assert segment.rationale.startswith("Strong because:")
        assert segment.hook
        assert all(not has_overlap(segment, other) for other in segments[idx + 1 :])


def test_detect_segments_is_deterministic() -> None:
    transcript = _question_answer_transcript()
    scenes = _scene_changes(135.0)

    first = detect_segments(transcript, scenes, [], 135.0)
    second = detect_segments(transcript, scenes, [], 135.0)

    assert [(seg.segment_id, seg.start_seconds, seg.end_seconds, seg.score) for seg in first] == [
        (seg.segment_id, seg.start_seconds, seg.end_seconds, seg.score) for seg in second
    ]


def test_detect_segments_skips_intro_chapter() -> None:
    transcript = _question_answer_transcript()
    chapters = [
        ChapterWindow(start=0.0, end=20.0, label="Intro"),
        ChapterWindow(start=20.0, end=135.0, label="Deep dive"),
    ]

    segments = detect_segments(transcript, _scene_changes(135.0), chapters, 135.0)

    assert segments
    assert all(seg.start_seconds >= 20.0 for seg in segments)
    assert {seg.chapter_title for seg in segments} == {"Deep dive"}


def test_detect_segments_respects_max_segments() -> None:
    settings = SegmentationSettings(max_segments=1)

    segments = detect_segments(_question_answer_transcript(), _scene_changes(135.0), [], 135.0, settings=settings)

    assert len(segments) == 1
    assert segments[0].segment_id == "s_0001"


def test_detect_segments_returns_empty_without_words() -> None:
    assert detect_segments([], [], [], 120.0) == []
    assert detect_segments([[]], [], [], 120.0) == []


def test_detect_segments_returns_empty_for_short_transcript() -> None:
    transcript = _question_answer_transcript(sentences=3)

    assert detect_segments(transcript, [], [], 15.0) == []
