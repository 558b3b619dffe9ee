# clipprompt/tmp_media.py
"""
Revocable playback reference for an accepted upload.

Usage:
    source = PlayableSource.from_file(upload_path)
    player.show(source.path)
    ...
    source.release()   # removes the private copy

    with PlayableSource.from_file(upload_path) as path:
        ...
# On exit the copy is removed automatically.
"""

from __future__ import annotations

import os
import shutil
import tempfile
import logging
from typing import Optional

logger = logging.getLogger("clipprompt.tmp_media")

CHUNK_SIZE = 1024 * 1024  # 1 MiB


class PlayableSource:
    """
    Private temp-file copy of an uploaded video, handed to the player.

    The copy is independent of the upload itself, so the upload can be
    replaced or cleaned up without breaking playback. When `directory` is
    the UI's static player directory, this file is the one the browser
    plays (no further copy is made). `release()` removes the copy; only
    the first call does anything.
    """

    def __init__(self, path: str):
        self._path: Optional[str] = path
        self._released = False

    @classmethod
    def from_file(cls, src_path: str, directory: Optional[str] = None) -> "PlayableSource":
        if not src_path or not os.path.isfile(src_path):
            raise FileNotFoundError(f"Media file does not exist: {src_path}")

        if directory:
            os.makedirs(directory, exist_ok=True)
        _, ext = os.path.splitext(src_path)
        tmp = tempfile.NamedTemporaryFile(prefix="clipprompt_", suffix=ext, dir=directory, delete=False)
        tmp_path = tmp.name
        try:
            with open(src_path, "rb") as src:
                shutil.copyfileobj(src, tmp, CHUNK_SIZE)
            tmp.close()
        except Exception:
            tmp.close()
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.debug("Created playable source %s for %s", tmp_path, src_path)
        return cls(tmp_path)

    @property
    def path(self) -> str:
        if self._released or self._path is None:
            raise RuntimeError("Playable source has already been released")
        return self._path

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            logger.debug("Playable source %s already released", self._path)
            return
        self._released = True
        if self._path and os.path.exists(self._path):
            try:
                os.remove(self._path)
                logger.debug("Released playable source %s", self._path)
            except OSError:
                logger.exception("Failed to remove playable source %s", self._path)

    def __enter__(self) -> str:
        return self.path

    def __exit__(self, exc_type, exc, tb):
        self.release()
        # do not suppress exceptions
        return False

    def __repr__(self) -> str:
        state = "released" if self._released else "live"
        return f"PlayableSource({self._path!r}, {state})"
