# clipprompt/errors.py
"""
Failures of the clip -> prompt pipeline.

Every error carries a `user_message`: the normalized, human-readable text
shown in the UI. Technical detail stays in the logs (and in `__cause__`).
"""

from typing import Optional


class ClipPromptError(Exception):
    user_message = "An unknown error occurred."

    def __init__(self, user_message: Optional[str] = None):
        if user_message is not None:
            self.user_message = user_message
        super().__init__(self.user_message)


class InvalidFileType(ClipPromptError):
    user_message = "Please upload a valid video file."


class UnreadableMetadata(ClipPromptError):
    user_message = "Could not read video metadata. The file may be corrupt."


class DurationExceeded(ClipPromptError):
    def __init__(self, duration_sec: float, limit_sec: float = 10.0):
        self.duration_sec = duration_sec
        self.limit_sec = limit_sec
        super().__init__(
            f"Video is too long ({duration_sec:.1f}s). Max {limit_sec:g} seconds allowed."
        )


class NoFramesExtracted(ClipPromptError):
    def __init__(self, extracted: int = 0, requested: int = 0):
        self.extracted = extracted
        self.requested = requested
        if extracted == 0:
            msg = "No frames could be extracted from the video."
        else:
            msg = f"Only {extracted} of {requested} frames could be extracted from the video."
        super().__init__(msg)


class VideoProcessingFailure(ClipPromptError):
    user_message = "Error loading or processing video file."


class EmptyFrameSet(ClipPromptError):
    user_message = "No frames were provided to generate a prompt."


class RemoteGenerationFailure(ClipPromptError):
    user_message = "Failed to communicate with the AI model. Please check the logs for details."
