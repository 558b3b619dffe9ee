# tests/test_session.py
"""
Session state machine scenarios, driven with real clips and a fake engine.
"""

import os
import shutil
import threading

import pytest

from clipprompt.core_prompt_engine import PromptResult
from clipprompt.errors import NoFramesExtracted, RemoteGenerationFailure
from clipprompt.session import (
    Error,
    Generating,
    Idle,
    Ready,
    SessionController,
    SessionStatus,
    Success,
)


class FakeSource:
    def __init__(self, path):
        self.path = path
        self.release_calls = 0

    @property
    def released(self):
        return self.release_calls > 0

    def release(self):
        self.release_calls += 1


class SourceFactory:
    def __init__(self):
        self.created = []

    def __call__(self, path):
        source = FakeSource(path)
        self.created.append(source)
        return source


class FakeEngine:
    def __init__(self, prompt="A cinematic slow pan across a misty forest at dawn.", exc=None, hook=None):
        self.prompt = prompt
        self.exc = exc
        self.hook = hook
        self.calls = []

    def generate(self, video_path):
        self.calls.append(video_path)
        if self.hook is not None:
            self.hook()
        if self.exc is not None:
            raise self.exc
        return PromptResult(prompt=self.prompt, frames_used=8, frames_requested=8, model="fake")


@pytest.fixture
def sources():
    return SourceFactory()


def _controller(cfg, sources, engine=None):
    controller = SessionController(cfg, engine=engine or FakeEngine(), source_factory=sources)
    statuses = [controller.state.status]
    controller.add_listener(lambda old, new: statuses.append(new.status))
    return controller, statuses


def test_starts_idle(cfg, sources):
    controller, _ = _controller(cfg, sources)
    assert isinstance(controller.state, Idle)


def test_end_to_end_upload_generate_then_too_long(make_clip, cfg, sources):
    controller, statuses = _controller(cfg, sources)

    controller.select_file(make_clip(6))
    assert statuses == [SessionStatus.IDLE, SessionStatus.VALIDATING, SessionStatus.READY]

    state = controller.generate()
    assert statuses[-2:] == [SessionStatus.GENERATING, SessionStatus.SUCCESS]
    assert isinstance(state, Success)
    assert state.prompt

    fresh, fresh_statuses = _controller(cfg, sources)
    state = fresh.select_file(make_clip(12))
    assert fresh_statuses == [SessionStatus.IDLE, SessionStatus.VALIDATING, SessionStatus.ERROR]
    assert isinstance(state, Error)
    assert "12.0" in state.message


def test_regenerate_from_success_keeps_video(make_clip, cfg, sources):
    engine = FakeEngine()
    controller, statuses = _controller(cfg, sources, engine)
    controller.select_file(make_clip(3))
    first = controller.generate()
    second = controller.generate()

    assert isinstance(second, Success)
    assert second.video is first.video
    assert statuses[-2:] == [SessionStatus.GENERATING, SessionStatus.SUCCESS]
    assert len(engine.calls) == 2
    assert len(sources.created) == 1


def test_new_file_releases_previous_source_exactly_once(make_clip, cfg, sources):
    controller, _ = _controller(cfg, sources)
    controller.select_file(make_clip(2, "a.avi"))
    controller.generate()
    controller.select_file(make_clip(3, "b.avi"))
    controller.select_file(make_clip(12, "too_long.avi"))

    first, second = sources.created
    assert first.release_calls == 1
    assert second.release_calls == 1

    controller.close()
    assert first.release_calls == 1
    assert second.release_calls == 1
    assert isinstance(controller.state, Idle)


def test_new_file_discards_prompt_and_error(make_clip, cfg, sources, tmp_path):
    controller, _ = _controller(cfg, sources)
    notes = tmp_path / "notes.txt"
    notes.write_text("not a video")

    assert isinstance(controller.select_file(str(notes)), Error)
    state = controller.select_file(make_clip(2))
    assert isinstance(state, Ready)


def test_invalid_type_goes_to_error(cfg, sources, tmp_path):
    controller, statuses = _controller(cfg, sources)
    notes = tmp_path / "notes.txt"
    notes.write_text("not a video")

    state = controller.select_file(str(notes))

    assert statuses == [SessionStatus.IDLE, SessionStatus.VALIDATING, SessionStatus.ERROR]
    assert state.message == "Please upload a valid video file."
    assert sources.created == []


@pytest.mark.parametrize(
    "exc,message",
    [
        (NoFramesExtracted(0, 8), "No frames could be extracted from the video."),
        (RemoteGenerationFailure(), RemoteGenerationFailure.user_message),
        (RuntimeError("kaboom"), "An unknown error occurred during generation."),
    ],
)
def test_generation_failure_goes_to_error(make_clip, cfg, sources, exc, message):
    controller, statuses = _controller(cfg, sources, FakeEngine(exc=exc))
    controller.select_file(make_clip(2))

    state = controller.generate()

    assert statuses[-2:] == [SessionStatus.GENERATING, SessionStatus.ERROR]
    assert isinstance(state, Error)
    assert state.message == message
    assert "kaboom" not in state.message


def test_generate_without_video_is_an_error(cfg, sources):
    engine = FakeEngine()
    controller, _ = _controller(cfg, sources, engine)

    state = controller.generate()

    assert isinstance(state, Error)
    assert state.message == "No video file selected."
    assert engine.calls == []


def test_generate_after_failed_generation_is_ignored(make_clip, cfg, sources):
    engine = FakeEngine(exc=RemoteGenerationFailure())
    controller, _ = _controller(cfg, sources, engine)
    controller.select_file(make_clip(2))
    failed = controller.generate()

    assert controller.generate() is failed
    assert len(engine.calls) == 1


def test_stale_generation_result_is_discarded(make_clip, cfg, sources):
    second_clip = make_clip(4, "second.avi")
    holder = {}

    def reselect_mid_flight():
        holder["controller"].select_file(second_clip)

    engine = FakeEngine(hook=reselect_mid_flight)
    controller, statuses = _controller(cfg, sources, engine)
    holder["controller"] = controller
    controller.select_file(make_clip(2, "first.avi"))

    state = controller.generate()

    assert isinstance(state, Ready)
    assert state.video.video.name == "second.avi"
    assert SessionStatus.SUCCESS not in statuses
    assert sources.created[0].release_calls == 1
    assert sources.created[1].release_calls == 0


def test_second_generate_while_generating_is_ignored(make_clip, cfg, sources):
    started = threading.Event()
    proceed = threading.Event()

    def block():
        started.set()
        assert proceed.wait(5)

    engine = FakeEngine(hook=block)
    controller, _ = _controller(cfg, sources, engine)
    controller.select_file(make_clip(2))

    worker = threading.Thread(target=controller.generate)
    worker.start()
    try:
        assert started.wait(5)
        assert isinstance(controller.generate(), Generating)
    finally:
        proceed.set()
        worker.join(5)

    assert isinstance(controller.state, Success)
    assert len(engine.calls) == 1


def test_default_sources_are_created_in_player_dir(make_clip, cfg):
    controller = SessionController(cfg, engine=FakeEngine())
    state = controller.select_file(make_clip(2))
    assert isinstance(state, Ready)
    player_file = state.video.source.path
    assert os.path.dirname(player_file) == cfg.player_dir

    controller.close()
    assert not os.path.exists(player_file)


def test_3gp_upload_reaches_ready(make_clip, cfg, sources, tmp_path):
    controller, statuses = _controller(cfg, sources)
    phone_clip = str(tmp_path / "VID_0001.3gp")
    shutil.copy(make_clip(4), phone_clip)

    state = controller.select_file(phone_clip)

    assert isinstance(state, Ready)
    assert state.video.video.mime_type == "video/3gpp"
    assert statuses == [SessionStatus.IDLE, SessionStatus.VALIDATING, SessionStatus.READY]
