from __future__ import annotations

import math
from dataclasses import replace

from clipframe.config import FramingSettings
from clipframe.models import FaceBox, FaceFrame, FaceTrack


def build_face_tracks(frames: list[FaceFrame], settings: FramingSettings | None = None) -> list[FaceTrack]:
    """Link per-frame detections into identity tracks.

    Each detection joins the best not-yet-claimed track whose latest sample
    is recent enough and close enough (IoU rewarded, distance penalised);
    otherwise it opens a new track. Tracks with too few samples are noise.
    """

    resolved = settings or FramingSettings()
    tracks: list[FaceTrack] = []

    for frame in sorted(frames, key=lambda item: item.t):
        claimed: set[int] = set()
        for box in frame.boxes:
            if box.score < resolved.min_face_confidence:
                continue
            sample = replace(box, t=frame.t)
            best_index = _find_best_track(tracks, claimed, sample, resolved)
            if best_index is None:
                tracks.append(FaceTrack(track_id=f"track_{len(tracks)}", samples=[sample]))
                claimed.add(len(tracks) - 1)
            else:
                tracks[best_index].samples.append(sample)
                claimed.add(best_index)

    return [track for track in tracks if len(track.samples) >= resolved.min_track_samples]


def box_at_time(track: FaceTrack, t: float, settings: FramingSettings | None = None) -> FaceBox | None:
    """Reconstruct a track's box at ``t``: exact, interpolated, held, or None."""

    resolved = settings or FramingSettings()
    previous: FaceBox | None = None
    following: FaceBox | None = None

    for sample in track.samples:
        if sample.t == t:
            return replace(sample)
        if sample.t < t and (previous is None or sample.t > previous.t):
            previous = sample
        if sample.t > t and (following is None or sample.t < following.t):
            following = sample

    if previous is not None and following is not None:
        gap = following.t - previous.t
        if gap <= resolved.max_interp_gap_seconds:
            alpha = 0.0 if gap == 0 else (t - previous.t) / gap
            return FaceBox(
                t=t,
                x=_lerp(previous.x, following.x, alpha),
                y=_lerp(previous.y, following.y, alpha),
                w=_lerp(previous.w, following.w, alpha),
                h=_lerp(previous.h, following.h, alpha),
                score=min(previous.score, following.score),
                landmarks=_lerp_landmarks(previous.landmarks, following.landmarks, alpha),
            )

    if previous is not None and t - previous.t <= resolved.track_hold_seconds:
        return replace(previous, t=t)

    return None


def center_distance(first: FaceBox, second: FaceBox) -> float:
    return math.hypot(first.center_x - second.center_x, first.center_y - second.center_y)


def intersection_over_union(first: FaceBox, second: FaceBox) -> float:
    left = max(first.x, second.x)
    right = min(first.x + first.w, second.x + second.w)
    top = max(first.y, second.y)
    bottom = min(first.y + first.h, second.y + second.h)
    if right <= left or bottom <= top:
        return 0.0

    area_first = first.w * first.h
    area_second = second.w * second.h
    if area_first <= 0 or area_second <= 0:
        return 0.0

    intersection = (right - left) * (bottom - top)
    union = area_first + area_second - intersection
    return intersection / union if union > 0 else 0.0


def _find_best_track(
    tracks: list[FaceTrack],
    claimed: set[int],
    box: FaceBox,
    settings: FramingSettings,
) -> int | None:
    best_index: int | None = None
    best_score = -math.inf

    for idx, track in enumerate(tracks):
        if idx in claimed or not track.samples:
            continue
        last = track.samples[-1]
        dt = box.t - last.t
        if dt < 0 or dt > settings.max_track_join_gap_seconds:
            continue
        distance = center_distance(last, box)
        if distance > settings.max_association_distance_px:
            continue
        score = intersection_over_union(last, box) * 2 - distance / 300
        if score > best_score:
            best_index = idx
            best_score = score

    return best_index


def _lerp(start: float, end: float, alpha: float) -> float:
    return start + (end - start) * alpha


def _lerp_landmarks(
    start: list[tuple[float, float]] | None,
    end: list[tuple[float, float]] | None,
    alpha: float,
) -> list[tuple[float, float]] | None:
    if start is None or end is None or len(start) != len(end):
        return start if alpha < 0.5 else end
    return [(_lerp(ax, bx, alpha), _lerp(ay, by, alpha)) for (ax, ay), (bx, by) in zip(start, end)]
