from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

DurationChoice = Literal["short", "mid", "long"]
Axis = Literal["x", "y"]

FULL_VIDEO_TITLE = "Full Video"


@dataclass(slots=True)
class TranscriptWord:
    """One timestamped word of the upstream transcript."""

    word: str
    start: float
    end: float
    speaker: str | None = None


@dataclass(slots=True)
class SceneChange:
    time_seconds: float


@dataclass(slots=True)
class ChapterWindow:
    start: float
    end: float
    label: str


@dataclass(slots=True)
class SearchWindow:
    """A time range the candidate builder searches for pause-bounded spans."""

    start: float
    end: float
    chapter_title: str = FULL_VIDEO_TITLE


@dataclass(slots=True)
class FeatureVector:
    """Normalized per-candidate features plus raw diagnostics."""

    hook: float
    retention: float
    clarity: float
    coherence: float
    closure: float
    narrative_arc: float
    semantic_density: float
    visual: float
    novelty: float
    engagement: float
    safety: float

    speech_rate: float = 0.0
    pause_density: float = 0.0
    energy: float = 0.0
    filler_ratio: float = 0.0
    word_count: int = 0
    scene_change_count: int = 0
    has_question: bool = False
    has_bold_claim: bool = False
    has_numbers: bool = False


@dataclass(slots=True)
class Segment:
    """A scored clip proposal; immutable once it leaves the boundary refiner."""

    start_seconds: float
    end_seconds: float
    duration_seconds: float
    words: list[TranscriptWord]
    text: str
    hook: str
    score: float
    features: FeatureVector
    duration_choice: DurationChoice
    rationale: str
    chapter_title: str = FULL_VIDEO_TITLE
    segment_id: str = ""


@dataclass(slots=True)
class FaceBox:
    """One face detection; ``landmarks`` holds 68 (x, y) points when available."""

    t: float
    x: float
    y: float
    w: float
    h: float
    score: float = 1.0
    landmarks: list[tuple[float, float]] | None = None

    @property
    def center_x(self) -> float:
        return self.x + self.w / 2

    @property
    def center_y(self) -> float:
        return self.y + self.h / 2


@dataclass(slots=True)
class FaceFrame:
    """All faces detected in one sampled video frame."""

    t: float
    boxes: list[FaceBox] = field(default_factory=list)


@dataclass(slots=True)
class FaceTrack:
    track_id: str
    samples: list[FaceBox] = field(default_factory=list)


@dataclass(slots=True)
class FaceSignal:
    """Framing input: raw per-frame detections, prebuilt tracks, or both.

    ``words`` carries speaker-tagged transcript words; when present together
    with tracks the engine follows whoever is talking.
    """

    frames: list[FaceFrame] = field(default_factory=list)
    tracks: list[FaceTrack] = field(default_factory=list)
    words: list[TranscriptWord] = field(default_factory=list)


@dataclass(slots=True)
class CropKeyframe:
    t: float
    x: float
    y: float
    w: int
    h: int
