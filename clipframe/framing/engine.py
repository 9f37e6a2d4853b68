from __future__ import annotations

import logging

from clipframe.config import FramingSettings
from clipframe.framing.body import subject_from_box
from clipframe.framing.crop import compute_crop
from clipframe.framing.smoothing import apply_pan_limits, dedupe_by_time, ease_segment_edges, smooth_keyframes
from clipframe.framing.speakers import CoverageIndex, assign_windows, build_speaker_windows, map_speakers_to_tracks
from clipframe.framing.tracking import box_at_time, build_face_tracks
from clipframe.models import CropKeyframe, FaceBox, FaceFrame, FaceSignal, FaceTrack

logger = logging.getLogger(__name__)


def compute_crop_map(
    clip_range: tuple[float, float],
    source_width: int,
    source_height: int,
    face_signal: FaceSignal,
    settings: FramingSettings | None = None,
) -> list[CropKeyframe] | None:
    """Compute a smooth, bounded 9:16 crop path for one clip.

    Follows the active speaker when speaker-tagged words and face tracks are
    both available, otherwise frames every visible subject. Returns None when
    no usable face signal exists, in which case the caller should fall back
    to a static center crop.
    """

    resolved = settings or FramingSettings()
    clip_start, clip_end = clip_range
    if clip_end <= clip_start or source_width <= 0 or source_height <= 0:
        logger.warning("Invalid crop request: range=%s source=%sx%s", clip_range, source_width, source_height)
        return None

    frames = sorted(
        (frame for frame in face_signal.frames if clip_start <= frame.t <= clip_end),
        key=lambda frame: frame.t,
    )
    tracks = face_signal.tracks or build_face_tracks(frames, resolved)

    raw: list[CropKeyframe] = []
    if face_signal.words and tracks:
        raw = build_speaker_keyframes(face_signal, tracks, clip_range, source_width, source_height, resolved)
        if not raw:
            logger.info("No speaker could be matched to a face track; framing visible subjects instead.")
    if not raw:
        raw = build_group_keyframes(frames, tracks, clip_range, source_width, source_height, resolved)
    if not raw:
        logger.info("No usable face signal in %.2f-%.2fs; static crop fallback.", clip_start, clip_end)
        return None

    smoothed = smooth_keyframes(raw, resolved.smoothing_radius)
    limited = apply_pan_limits(smoothed, resolved.max_pan_px_per_second)
    eased = ease_segment_edges(
        limited,
        clip_start,
        clip_end,
        resolved.ease_ms / 1000,
        max_pan_px_per_second=resolved.max_pan_px_per_second,
    )
    path = [_snap(frame, source_width, source_height) for frame in dedupe_by_time(eased, resolved.min_keyframe_delta_seconds)]

    logger.debug("Crop path: %d raw keyframes -> %d final", len(raw), len(path))
    return path or None


def build_speaker_keyframes(
    face_signal: FaceSignal,
    tracks: list[FaceTrack],
    clip_range: tuple[float, float],
    source_width: int,
    source_height: int,
    settings: FramingSettings | None = None,
) -> list[CropKeyframe]:
    """Keyframes that follow whichever tracked face belongs to the current speaker."""

    resolved = settings or FramingSettings()
    windows = build_speaker_windows(face_signal.words, resolved.speaker_min_hold_seconds, *clip_range)
    if not windows:
        return []

    coverage = CoverageIndex(tracks, default_step_seconds=1 / max(resolved.sample_fps, 0.001))
    mapping = map_speakers_to_tracks(windows, tracks, coverage)
    tracks_by_id = {track.track_id: track for track in tracks}

    keyframes: list[CropKeyframe] = []
    for window, track_id in assign_windows(windows, tracks, mapping, coverage):
        track = tracks_by_id[track_id]
        boxes = [sample for sample in track.samples if window.start <= sample.t <= window.end]
        if not boxes:
            held = box_at_time(track, window.start, resolved)
            boxes = [held] if held is not None else []

        for box in sorted(boxes, key=lambda item: item.t):
            if keyframes and box.t <= keyframes[-1].t:
                continue
            keyframe = _keyframe_for(box.t, [box], source_width, source_height, resolved)
            if keyframe is not None:
                keyframes.append(keyframe)

    return keyframes


def build_group_keyframes(
    frames: list[FaceFrame],
    tracks: list[FaceTrack],
    clip_range: tuple[float, float],
    source_width: int,
    source_height: int,
    settings: FramingSettings | None = None,
) -> list[CropKeyframe]:
    """Keyframes that keep every visible subject in frame at each sampled instant."""

    resolved = settings or FramingSettings()
    clip_start, clip_end = clip_range

    if frames:
        instants = [(frame.t, frame.boxes) for frame in frames]
    else:
        times = sorted({sample.t for track in tracks for sample in track.samples if clip_start <= sample.t <= clip_end})
        instants = [(t, []) for t in times]

    keyframes: list[CropKeyframe] = []
    for t, raw_boxes in instants:
        boxes = [box for box in (box_at_time(track, t, resolved) for track in tracks) if box is not None]
        if not boxes:
            boxes = [box for box in raw_boxes if box.score >= resolved.min_face_confidence]
        if keyframes and t <= keyframes[-1].t:
            continue
        keyframe = _keyframe_for(t, boxes, source_width, source_height, resolved)
        if keyframe is not None:
            keyframes.append(keyframe)

    return keyframes


def _keyframe_for(
    t: float,
    boxes: list[FaceBox],
    source_width: int,
    source_height: int,
    settings: FramingSettings,
) -> CropKeyframe | None:
    subjects = [subject for subject in (subject_from_box(box, settings) for box in boxes) if subject is not None]
    crop = compute_crop(subjects, source_width, source_height, settings)
    if crop is None:
        return None
    return CropKeyframe(t=t, x=crop.x, y=crop.y, w=crop.w, h=crop.h)


def _snap(frame: CropKeyframe, source_width: int, source_height: int) -> CropKeyframe:
    max_x = max(0, source_width - frame.w)
    max_y = max(0, source_height - frame.h)
    return CropKeyframe(
        t=frame.t,
        x=int(min(max_x, max(0, round(frame.x)))),
        y=int(min(max_y, max(0, round(frame.y)))),
        w=frame.w,
        h=frame.h,
    )
