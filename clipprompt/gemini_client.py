# clipprompt/gemini_client.py
"""
Gemini `generateContent` client (REST over requests).

One request per generation: the instruction text followed by every frame
as an inline JPEG part, in capture order. The reply text is returned as-is.
Any transport/service fault becomes a single RemoteGenerationFailure; the
cause is logged and chained, never shown to the user.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from .clipprompt_config import ClipPromptConfig
from .errors import EmptyFrameSet, RemoteGenerationFailure
from .prompts import VIDEO_PROMPT_INSTRUCTION

logger = logging.getLogger("clipprompt.gemini")

FRAME_MIME_TYPE = "image/jpeg"


def build_generate_content_payload(instruction: str, frames: Sequence[str]) -> Dict[str, Any]:
    parts: List[Dict[str, Any]] = [{"text": instruction}]
    for frame in frames:
        parts.append({
            "inline_data": {
                "mime_type": FRAME_MIME_TYPE,
                "data": frame,
            }
        })
    return {"contents": [{"parts": parts}]}


def extract_response_text(body: Dict[str, Any]) -> str:
    candidates = body.get("candidates") or []
    if not candidates:
        feedback = body.get("promptFeedback")
        raise ValueError(f"Response has no candidates (promptFeedback={feedback})")

    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [p["text"] for p in parts if isinstance(p, dict) and "text" in p]
    if not texts:
        reason = candidates[0].get("finishReason")
        raise ValueError(f"First candidate has no text parts (finishReason={reason})")
    return "".join(texts)


class GeminiPromptClient:
    def __init__(self, cfg: ClipPromptConfig, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.cfg.api_base_url.rstrip('/')}/models/{self.cfg.model}:generateContent"

    def generate_prompt(self, frames: Sequence[str], instruction: str = VIDEO_PROMPT_INSTRUCTION) -> str:
        if not frames:
            raise EmptyFrameSet()

        payload = build_generate_content_payload(instruction, frames)
        logger.info("Requesting prompt from %s with %d frames", self.cfg.model, len(frames))

        try:
            if not self.cfg.api_key:
                raise RuntimeError("API key is not configured (set GEMINI_API_KEY)")
            response = self.session.post(
                self.endpoint,
                json=payload,
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.cfg.api_key,
                },
                timeout=self.cfg.request_timeout_sec,
            )
            response.raise_for_status()
            text = extract_response_text(response.json())
        except Exception as exc:
            logger.exception("Error generating prompt from Gemini")
            raise RemoteGenerationFailure() from exc

        logger.debug("Model output (truncated): %s", text[:400])
        return text
