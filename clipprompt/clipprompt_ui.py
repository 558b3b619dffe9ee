#!/usr/bin/env python3
"""
clipprompt Gradio UI
Upload a short clip (max 10s), sample 8 frames, let Gemini write a
text-to-video prompt for it.
"""

import os
import logging
from typing import Optional

import gradio as gr

from .clipprompt_config import ClipPromptConfig, load_clipprompt_config
from .session import Error, Idle, Ready, SessionController, SessionState, Success, Validating

logger = logging.getLogger("clipprompt.ui")

IDLE_MESSAGE = "Upload a video clip (max {max_sec:g}s) to begin."
VALIDATING_MESSAGE = "⏳ Validating video..."
GENERATING_MESSAGE = "⏳ Analyzing video & crafting prompt..."


# ---------- RENDERING ----------
def render(state: SessionState, cfg: ClipPromptConfig):
    """Map a session state to (status, video, prompt, generate button) updates."""
    can_generate = isinstance(state, (Ready, Success))

    if isinstance(state, Idle):
        status = IDLE_MESSAGE.format(max_sec=cfg.max_video_seconds)
    elif isinstance(state, Error):
        status = f"### ⚠️ Error\n{state.message}"
    elif isinstance(state, Ready):
        v = state.video.video
        status = f"✅ **{v.name}** ({v.duration_sec:.1f}s) is ready."
    elif isinstance(state, Success):
        timing = state.result.timing
        status = (
            f"✨ Prompt generated from {state.result.frames_used} frames "
            f"in {timing.get('total_sec', 0.0):.2f}s · {state.result.model}"
        )
    elif isinstance(state, Validating):
        status = VALIDATING_MESSAGE
    else:
        status = GENERATING_MESSAGE

    if isinstance(state, (Ready, Success)):
        video_update = gr.update(value=state.video.source.path, visible=True)
    else:
        video_update = gr.update(value=None, visible=False)

    if isinstance(state, Success):
        prompt_update = gr.update(value=state.prompt, visible=True)
    else:
        prompt_update = gr.update(value="", visible=False)

    return status, video_update, prompt_update, gr.update(interactive=can_generate)


def render_busy(message: str):
    return message, gr.update(), gr.update(visible=False), gr.update(interactive=False)


# ---------- HANDLERS ----------
def on_file_selected(file_path: Optional[str], controller: SessionController):
    if not file_path:
        controller.close()
        yield render(controller.state, controller.cfg)
        return

    logger.info("File selected: %s", os.path.basename(file_path))
    yield render_busy(VALIDATING_MESSAGE)
    state = controller.select_file(file_path)
    yield render(state, controller.cfg)


def on_generate(controller: SessionController):
    if isinstance(controller.state, (Ready, Success)):
        yield render_busy(GENERATING_MESSAGE)
    state = controller.generate()
    yield render(state, controller.cfg)


def on_clear(controller: SessionController):
    controller.close()
    return render(controller.state, controller.cfg)


# ---------- GRADIO UI ----------
def build_app(cfg: Optional[ClipPromptConfig] = None) -> gr.Blocks:
    cfg = cfg or load_clipprompt_config()

    # player files are served in place, so release() removes what the browser plays
    os.makedirs(cfg.player_dir, exist_ok=True)
    gr.set_static_paths(paths=[cfg.player_dir])

    with gr.Blocks(title="Video to Prompt") as demo:
        gr.Markdown("## 🎬 Video to Prompt\nTurn a short clip into a detailed text-to-video prompt.")

        controller = gr.State(
            lambda: SessionController(cfg),
            delete_callback=lambda c: c.close(),
        )

        with gr.Column():
            file_in = gr.File(label="Choose a video file...", file_types=["video"], type="filepath")
            generate_btn = gr.Button("Generate Prompt", variant="primary", interactive=False)

        status_out = gr.Markdown(IDLE_MESSAGE.format(max_sec=cfg.max_video_seconds))
        video_out = gr.Video(label="Uploaded video preview", interactive=False, visible=False)
        prompt_out = gr.Textbox(
            label="Generated Prompt",
            lines=8,
            show_copy_button=True,
            interactive=False,
            visible=False,
        )

        gr.Markdown("<center>Powered by Gemini</center>")

        outputs = [status_out, video_out, prompt_out, generate_btn]
        file_in.upload(fn=on_file_selected, inputs=[file_in, controller], outputs=outputs)
        file_in.clear(fn=on_clear, inputs=[controller], outputs=outputs)
        generate_btn.click(fn=on_generate, inputs=[controller], outputs=outputs)

    return demo


def main() -> None:
    logging.basicConfig(
        level=os.getenv("CLIPPROMPT_LOG_LEVEL", "INFO").upper(),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    cfg = load_clipprompt_config()
    logging.getLogger().setLevel(cfg.log_level.upper())
    logger.info("Starting clipprompt UI on %s:%d (model=%s)", cfg.server_name, cfg.server_port, cfg.model)

    demo = build_app(cfg)
    demo.queue()
    demo.launch(server_name=cfg.server_name, server_port=cfg.server_port)


if __name__ == "__main__":
    main()
