# clipprompt/video_utils.py

import base64
import logging
from dataclasses import dataclass
from typing import List, Optional

import cv2
import numpy as np

from .errors import NoFramesExtracted, UnreadableMetadata, VideoProcessingFailure

logger = logging.getLogger("clipprompt.video_utils")


@dataclass(frozen=True)
class VideoMetadata:
    fps: float
    frame_count: int
    width: int
    height: int
    duration_sec: float


# ------------------------------
# Metadata
# ------------------------------
def read_video_metadata(video_path: str) -> VideoMetadata:
    """
    Read container metadata only (no frame decode).
    The capture handle is released whatever the outcome.
    """
    cap = cv2.VideoCapture(video_path)
    try:
        if not cap or not cap.isOpened():
            raise UnreadableMetadata()

        fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
        frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
    finally:
        cap.release()

    if fps <= 0 or frame_count <= 0:
        logger.warning("Unusable metadata for %s: fps=%s frames=%s", video_path, fps, frame_count)
        raise UnreadableMetadata()

    meta = VideoMetadata(
        fps=fps,
        frame_count=frame_count,
        width=width,
        height=height,
        duration_sec=frame_count / fps,
    )
    logger.debug("Video metadata for %s: %s", video_path, meta)
    return meta


# ------------------------------
# Frame sampling helpers
# ------------------------------
def compute_seek_timestamps(duration_sec: float, frame_count: int) -> List[float]:
    """
    `frame_count` timestamps evenly spaced over [0, duration], both ends
    included, i.e. a spacing of duration / (frame_count - 1).
    """
    if frame_count < 2:
        raise ValueError(f"frame_count must be >= 2, got {frame_count}")
    if duration_sec < 0:
        raise ValueError(f"duration must be >= 0, got {duration_sec}")
    return np.linspace(0.0, float(duration_sec), int(frame_count)).tolist()


def resize_to_max_side(frame: np.ndarray, max_res: int) -> np.ndarray:
    if not max_res:
        return frame
    h, w = frame.shape[:2]
    long_side = max(h, w)
    if long_side <= max_res:
        return frame
    scale = max_res / long_side
    return cv2.resize(
        frame,
        (int(w * scale), int(h * scale)),
        interpolation=cv2.INTER_AREA,
    )


def encode_jpeg_base64(frame: np.ndarray, quality: int = 80) -> Optional[str]:
    """
    Encode a BGR frame as JPEG and return it base64-encoded.
    Returns None when the encoder fails or produces an empty payload.
    """
    try:
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(quality)])
    except cv2.error:
        logger.exception("JPEG encoding raised")
        return None
    if not ok or buf is None or buf.size == 0:
        return None
    return base64.b64encode(buf.tobytes()).decode("ascii")


def sample_frames(
    video_path: str,
    frame_count: int,
    jpeg_quality: int = 80,
    max_resolution: int = 0,
    strict: bool = False,
) -> List[str]:
    """
    Capture `frame_count` evenly spaced frames, first to last, as base64 JPEGs.

    Frames are captured one at a time: each seek is issued only after the
    previous frame has been read and encoded, so output order is
    chronological. A frame that fails to encode is skipped and the count
    still advances; with `strict` any shortfall raises NoFramesExtracted.
    Open/seek/read failures abort with VideoProcessingFailure.
    """
    cap = cv2.VideoCapture(video_path)
    try:
        if not cap or not cap.isOpened():
            raise VideoProcessingFailure()

        fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
        frames_total = int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0)
        if fps <= 0 or frames_total <= 0:
            raise VideoProcessingFailure()

        duration = frames_total / fps
        timestamps = compute_seek_timestamps(duration, frame_count)
        logger.debug("Sampling %d frames from %s at %s", frame_count, video_path, timestamps)

        frames: List[str] = []
        for ts in timestamps:
            frame_idx = int(round(ts * fps))
            frame_idx = min(max(frame_idx, 0), frames_total - 1)
            cap.set(cv2.CAP_PROP_POS_FRAMES, frame_idx)
            ok, frame = cap.read()
            if not ok or frame is None:
                logger.error("Seek/read at frame %d (t=%.3fs) failed for %s", frame_idx, ts, video_path)
                raise VideoProcessingFailure()

            frame = resize_to_max_side(frame, max_resolution)
            payload = encode_jpeg_base64(frame, jpeg_quality)
            if payload:
                frames.append(payload)
            else:
                logger.warning("Skipping frame at t=%.3fs: empty JPEG payload", ts)
    except cv2.error as exc:
        logger.exception("OpenCV failed while sampling %s", video_path)
        raise VideoProcessingFailure() from exc
    finally:
        cap.release()

    if not frames:
        raise NoFramesExtracted(0, frame_count)
    if strict and len(frames) < frame_count:
        raise NoFramesExtracted(len(frames), frame_count)

    logger.info("Extracted %d/%d frames from %s", len(frames), frame_count, video_path)
    return frames
