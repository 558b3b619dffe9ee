# tests/conftest.py
"""
Shared fixtures: tiny real video clips written with OpenCV.

Clips are MJPG/AVI (OpenCV ships its own MJPEG writer), 10 fps, 64x48.
Frame i is a flat gray of brightness rising with i, so the chronological
order of sampled frames can be checked from their mean intensity.
"""

import os

import cv2
import numpy as np
import pytest

from clipprompt.clipprompt_config import ClipPromptConfig

FPS = 10
WIDTH, HEIGHT = 64, 48


def write_clip(path: str, seconds: float, fps: int = FPS) -> str:
    n_frames = int(round(seconds * fps))
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), fps, (WIDTH, HEIGHT))
    assert writer.isOpened(), "MJPG writer unavailable"
    try:
        for i in range(n_frames):
            level = int(i * 200 / max(n_frames - 1, 1))
            writer.write(np.full((HEIGHT, WIDTH, 3), level, dtype=np.uint8))
    finally:
        writer.release()
    return path


@pytest.fixture
def make_clip(tmp_path):
    def _make(seconds: float, name: str = None) -> str:
        name = name or f"clip_{seconds:g}s.avi"
        return write_clip(os.path.join(str(tmp_path), name), seconds)
    return _make


@pytest.fixture
def cfg(tmp_path):
    return ClipPromptConfig(api_key="test-key", player_dir=str(tmp_path / "player"))
