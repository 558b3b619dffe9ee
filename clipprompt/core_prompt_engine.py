# clipprompt/core_prompt_engine.py
"""
Clip -> prompt engine.

 - sample N evenly spaced frames (first and last included)
 - send them, in order, with the instruction to Gemini
 - return the generated prompt plus a little bookkeeping

Both steps run strictly one after the other; errors propagate as the
clipprompt.errors types for the session controller to report.
"""

import time
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from .clipprompt_config import ClipPromptConfig, load_clipprompt_config
from .gemini_client import GeminiPromptClient
from .video_utils import sample_frames

logger = logging.getLogger("clipprompt.engine")


@dataclass(frozen=True)
class PromptResult:
    prompt: str
    frames_used: int
    frames_requested: int
    model: str
    timing: Dict[str, float] = field(default_factory=dict)


class VideoPromptEngine:
    def __init__(self, cfg: Optional[ClipPromptConfig] = None, client: Optional[GeminiPromptClient] = None):
        self.cfg = cfg or load_clipprompt_config()
        self.client = client or GeminiPromptClient(self.cfg)

    def generate(self, video_path: str) -> PromptResult:
        t0 = time.perf_counter()

        frames = sample_frames(
            video_path,
            frame_count=self.cfg.frame_count,
            jpeg_quality=self.cfg.jpeg_quality,
            max_resolution=self.cfg.max_resolution,
            strict=self.cfg.strict_frame_count,
        )
        t_frames = time.perf_counter() - t0

        t_gen_start = time.perf_counter()
        prompt = self.client.generate_prompt(frames)
        t_gen = time.perf_counter() - t_gen_start

        total = time.perf_counter() - t0
        logger.info(
            "Prompt generated for %s: %d frames, sampling %.2fs, generation %.2fs",
            video_path, len(frames), t_frames, t_gen,
        )
        return PromptResult(
            prompt=prompt,
            frames_used=len(frames),
            frames_requested=self.cfg.frame_count,
            model=self.cfg.model,
            timing={
                "frame_sampling_sec": t_frames,
                "generation_sec": t_gen,
                "total_sec": total,
            },
        )
