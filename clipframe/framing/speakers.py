from __future__ import annotations

import logging
from dataclasses import dataclass

from clipframe.models import FaceTrack, TranscriptWord

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SpeakerWindow:
    speaker: str
    start: float
    end: float


def build_speaker_windows(
    words: list[TranscriptWord],
    min_hold_seconds: float = 0.8,
    clip_start: float | None = None,
    clip_end: float | None = None,
) -> list[SpeakerWindow]:
    """Collapse speaker-tagged words into speaking turns.

    Consecutive words of one speaker separated by less than
    ``min_hold_seconds`` share a window. Windows are clipped to the clip
    range when one is given; untagged words are ignored.
    """

    windows: list[SpeakerWindow] = []
    for word in sorted(words, key=lambda item: (item.start, item.end)):
        if word.speaker is None:
            continue
        last = windows[-1] if windows else None
        if last is not None and last.speaker == word.speaker and word.start - last.end < min_hold_seconds:
            last.end = max(last.end, word.end)
            continue
        windows.append(SpeakerWindow(speaker=str(word.speaker), start=word.start, end=word.end))

    if clip_start is None and clip_end is None:
        return windows

    lower = clip_start if clip_start is not None else float("-inf")
    upper = clip_end if clip_end is not None else float("inf")
    clipped: list[SpeakerWindow] = []
    for window in windows:
        start = max(window.start, lower)
        end = min(window.end, upper)
        if end > start:
            clipped.append(SpeakerWindow(speaker=window.speaker, start=start, end=end))
    return clipped


class CoverageIndex:
    """Read-through cache of track presence over time ranges.

    One instance serves one engine call. Each sample covers the time until
    the next sample; the last sample covers one average sampling step.
    """

    def __init__(self, tracks: list[FaceTrack], default_step_seconds: float) -> None:
        self._tracks = {track.track_id: track for track in tracks}
        self._default_step = default_step_seconds
        self._cache: dict[tuple[str, float, float], float] = {}

    def coverage(self, track_id: str, start: float, end: float) -> float:
        key = (track_id, start, end)
        if key not in self._cache:
            self._cache[key] = self._compute(self._tracks[track_id], start, end)
        return self._cache[key]

    def _compute(self, track: FaceTrack, start: float, end: float) -> float:
        times = sorted(sample.t for sample in track.samples)
        if not times or end <= start:
            return 0.0

        step = self._default_step
        if len(times) > 1 and times[-1] > times[0]:
            step = (times[-1] - times[0]) / (len(times) - 1)

        total = 0.0
        for idx, sample_t in enumerate(times):
            covered_until = times[idx + 1] if idx + 1 < len(times) else sample_t + step
            total += max(0.0, min(covered_until, end) - max(sample_t, start))
        return total


def map_speakers_to_tracks(
    windows: list[SpeakerWindow],
    tracks: list[FaceTrack],
    coverage: CoverageIndex,
) -> dict[str, str]:
    """Greedy one-to-one speaker to track assignment, highest total coverage first.

    Ties break on speaker id, then track id.
    """

    speakers = sorted({window.speaker for window in windows})
    track_ids = sorted(track.track_id for track in tracks)

    pairs: list[tuple[float, str, str]] = []
    for speaker in speakers:
        speaker_windows = [window for window in windows if window.speaker == speaker]
        for track_id in track_ids:
            total = sum(coverage.coverage(track_id, window.start, window.end) for window in speaker_windows)
            if total > 0:
                pairs.append((total, speaker, track_id))

    pairs.sort(key=lambda pair: (-pair[0], pair[1], pair[2]))

    mapping: dict[str, str] = {}
    used_tracks: set[str] = set()
    for _, speaker, track_id in pairs:
        if speaker in mapping or track_id in used_tracks:
            continue
        mapping[speaker] = track_id
        used_tracks.add(track_id)

    logger.debug("Speaker mapping: %s", mapping)
    return mapping


def assign_windows(
    windows: list[SpeakerWindow],
    tracks: list[FaceTrack],
    mapping: dict[str, str],
    coverage: CoverageIndex,
) -> list[tuple[SpeakerWindow, str]]:
    """Pick the track to follow in each speaker window.

    The speaker's mapped track wins when it is present in the window;
    otherwise the track with the best coverage of that window, even if it
    is mapped to someone else. Windows no track covers are skipped.
    """

    track_ids = sorted(track.track_id for track in tracks)
    assignments: list[tuple[SpeakerWindow, str]] = []

    for window in windows:
        mapped = mapping.get(window.speaker)
        if mapped is not None and coverage.coverage(mapped, window.start, window.end) > 0:
            assignments.append((window, mapped))
            continue

        ranked = sorted(
            ((coverage.coverage(track_id, window.start, window.end), track_id) for track_id in track_ids),
            key=lambda item: (-item[0], item[1]),
        )
        if ranked and ranked[0][0] > 0:
            assignments.append((window, ranked[0][1]))

    return assignments
