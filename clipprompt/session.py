# clipprompt/session.py
"""
Session state controller.

A session is always in exactly one of six states, each its own frozen
dataclass so that e.g. a prompt can only exist alongside the video it was
generated from:

    Idle -> Validating -> Ready | Error
    Ready | Success -> Generating -> Success | Error
    any -> Validating            (new file selected)

Selecting a new file releases the previous PlayableSource before a new one
is acquired, and invalidates any in-flight generation: every generation
carries a token, and a result whose token is no longer current is dropped.
"""

import os
import logging
import threading
from functools import partial
from dataclasses import dataclass
from enum import Enum
from typing import Callable, ClassVar, List, Optional, Union

from .clipprompt_config import ClipPromptConfig, load_clipprompt_config
from .core_prompt_engine import PromptResult, VideoPromptEngine
from .errors import ClipPromptError
from .tmp_media import PlayableSource
from .video_validator import AcceptedVideo, validate_video

logger = logging.getLogger("clipprompt.session")

NO_VIDEO_MESSAGE = "No video file selected."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred during generation."


class SessionStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    READY = "ready"
    GENERATING = "generating"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Idle:
    status: ClassVar[SessionStatus] = SessionStatus.IDLE


@dataclass(frozen=True)
class Validating:
    file_name: str
    status: ClassVar[SessionStatus] = SessionStatus.VALIDATING


@dataclass(frozen=True)
class Ready:
    video: AcceptedVideo
    status: ClassVar[SessionStatus] = SessionStatus.READY


@dataclass(frozen=True)
class Generating:
    video: AcceptedVideo
    token: int
    status: ClassVar[SessionStatus] = SessionStatus.GENERATING


@dataclass(frozen=True)
class Success:
    video: AcceptedVideo
    result: PromptResult
    status: ClassVar[SessionStatus] = SessionStatus.SUCCESS

    @property
    def prompt(self) -> str:
        return self.result.prompt


@dataclass(frozen=True)
class Error:
    message: str
    video: Optional[AcceptedVideo] = None
    status: ClassVar[SessionStatus] = SessionStatus.ERROR


SessionState = Union[Idle, Validating, Ready, Generating, Success, Error]
Listener = Callable[[SessionState, SessionState], None]


class SessionController:
    """
    Owns one session's state and its single live PlayableSource.

    Listeners are called with (old_state, new_state) on every transition,
    under the controller lock; they must not call back into the controller.
    """

    def __init__(
        self,
        cfg: Optional[ClipPromptConfig] = None,
        engine: Optional[VideoPromptEngine] = None,
        source_factory: Optional[Callable[[str], PlayableSource]] = None,
    ):
        self.cfg = cfg or load_clipprompt_config()
        self.engine = engine or VideoPromptEngine(self.cfg)
        self._source_factory = source_factory or partial(PlayableSource.from_file, directory=self.cfg.player_dir)
        self._lock = threading.RLock()
        self._state: SessionState = Idle()
        self._token = 0
        self._listeners: List[Listener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # -------------------------
    # Internals (caller holds the lock)
    # -------------------------
    def _set_state(self, new_state: SessionState) -> None:
        old_state = self._state
        self._state = new_state
        logger.debug("Session %s -> %s", old_state.status.value, new_state.status.value)
        for listener in self._listeners:
            listener(old_state, new_state)

    def _release_current_source(self) -> None:
        video = getattr(self._state, "video", None)
        if video is not None and not video.source.released:
            video.source.release()

    # -------------------------
    # Operations
    # -------------------------
    def select_file(self, path: str, mime_type: Optional[str] = None) -> SessionState:
        with self._lock:
            # orphan any in-flight generation
            self._token += 1
            self._release_current_source()
            self._set_state(Validating(file_name=os.path.basename(path)))

            try:
                accepted = validate_video(path, self.cfg, mime_type=mime_type, source_factory=self._source_factory)
            except ClipPromptError as exc:
                logger.info("Validation failed for %s: %s", path, exc.user_message)
                self._set_state(Error(exc.user_message))
            except Exception:
                logger.exception("Unexpected error while validating %s", path)
                self._set_state(Error(UNKNOWN_ERROR_MESSAGE))
            else:
                self._set_state(Ready(accepted))
            return self._state

    def generate(self) -> SessionState:
        with self._lock:
            state = self._state
            if isinstance(state, Generating):
                logger.warning("Generation already in progress; ignoring request")
                return state

            video = getattr(state, "video", None)
            if video is None:
                self._set_state(Error(NO_VIDEO_MESSAGE))
                return self._state
            if not isinstance(state, (Ready, Success)):
                logger.warning("Cannot generate from state %s", state.status.value)
                return state

            self._token += 1
            token = self._token
            self._set_state(Generating(video=video, token=token))

        try:
            result = self.engine.generate(video.video.path)
        except ClipPromptError as exc:
            logger.warning("Generation %d failed: %s", token, exc.user_message)
            outcome: SessionState = Error(exc.user_message, video=video)
        except Exception:
            logger.exception("Unexpected error during generation %d", token)
            outcome = Error(UNKNOWN_ERROR_MESSAGE, video=video)
        else:
            outcome = Success(video=video, result=result)

        with self._lock:
            if token != self._token:
                logger.info("Discarding stale generation %d (current %d)", token, self._token)
                return self._state
            self._set_state(outcome)
            return self._state

    def close(self) -> None:
        with self._lock:
            self._token += 1
            self._release_current_source()
            if not isinstance(self._state, Idle):
                self._set_state(Idle())
