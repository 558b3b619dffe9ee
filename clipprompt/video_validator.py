# clipprompt/video_validator.py
"""
Upload validation: declared type, readable metadata, duration ceiling.
"""

import os
import logging
import mimetypes
from dataclasses import dataclass
from typing import Callable, Optional

from .clipprompt_config import ClipPromptConfig
from .errors import DurationExceeded, InvalidFileType
from .tmp_media import PlayableSource
from .video_utils import read_video_metadata

logger = logging.getLogger("clipprompt.validator")

# Host mime tables disagree on these (.3gp is often audio/3gpp, .mkv/.m4v
# may be missing); the upload picker accepts them all as video.
VIDEO_EXTENSION_TYPES = {
    ".3gp": "video/3gpp",
    ".3g2": "video/3gpp2",
    ".mkv": "video/x-matroska",
    ".m4v": "video/mp4",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".webm": "video/webm",
    ".avi": "video/x-msvideo",
    ".ogv": "video/ogg",
    ".mpeg": "video/mpeg",
    ".mpg": "video/mpeg",
    ".wmv": "video/x-ms-wmv",
    ".flv": "video/x-flv",
}

for _ext, _type in VIDEO_EXTENSION_TYPES.items():
    mimetypes.add_type(_type, _ext)


@dataclass(frozen=True)
class UploadedVideo:
    path: str
    name: str
    mime_type: str
    duration_sec: float


@dataclass(frozen=True)
class AcceptedVideo:
    video: UploadedVideo
    source: PlayableSource


def guess_mime_type(path: str) -> str:
    _, ext = os.path.splitext(path)
    if ext.lower() in VIDEO_EXTENSION_TYPES:
        return VIDEO_EXTENSION_TYPES[ext.lower()]
    mime_type, _ = mimetypes.guess_type(path)
    return mime_type or "application/octet-stream"


def validate_video(
    path: str,
    cfg: ClipPromptConfig,
    mime_type: Optional[str] = None,
    source_factory: Callable[[str], PlayableSource] = PlayableSource.from_file,
) -> AcceptedVideo:
    mime_type = mime_type or guess_mime_type(path)
    name = os.path.basename(path)

    if not mime_type.startswith("video/"):
        logger.info("Rejected %s: declared type %s is not video", name, mime_type)
        raise InvalidFileType()

    meta = read_video_metadata(path)
    if meta.duration_sec > cfg.max_duration_sec:
        logger.info("Rejected %s: %.2fs > %.2fs", name, meta.duration_sec, cfg.max_duration_sec)
        raise DurationExceeded(meta.duration_sec, cfg.max_video_seconds)

    video = UploadedVideo(path=path, name=name, mime_type=mime_type, duration_sec=meta.duration_sec)
    logger.info("Accepted %s (%s, %.2fs, %dx%d)", name, mime_type, meta.duration_sec, meta.width, meta.height)
    return AcceptedVideo(video=video, source=source_factory(path))
