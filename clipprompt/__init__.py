"""Short clip -> text-to-video prompt, via sampled frames and Gemini."""

from .clipprompt_config import ClipPromptConfig, load_clipprompt_config
from .core_prompt_engine import PromptResult, VideoPromptEngine
from .session import SessionController, SessionStatus

__version__ = "0.1.0"
