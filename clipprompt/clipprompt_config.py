# clipprompt/clipprompt_config.py
import os
import logging
import tempfile
from dataclasses import dataclass, field
from typing import Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore


logger = logging.getLogger("clipprompt.config")


@dataclass
class ClipPromptConfig:
    api_key: Optional[str] = None
    model: str = "gemini-2.5-flash"
    api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    request_timeout_sec: float = 60.0
    max_video_seconds: float = 10.0
    duration_tolerance_sec: float = 0.5
    frame_count: int = 8
    jpeg_quality: int = 80
    max_resolution: int = 0
    strict_frame_count: bool = False
    log_level: str = "INFO"
    server_name: str = "127.0.0.1"
    server_port: int = 7860
    player_dir: str = field(default_factory=lambda: os.path.join(tempfile.gettempdir(), "clipprompt_player"))

    @property
    def max_duration_sec(self) -> float:
        """Longest accepted clip, tolerance included."""
        return self.max_video_seconds + self.duration_tolerance_sec

    def validate(self) -> None:
        if self.frame_count < 2:
            raise ValueError(f"frame_count must be >= 2, got {self.frame_count}")
        if not 1 <= self.jpeg_quality <= 100:
            raise ValueError(f"jpeg_quality must be within 1..100, got {self.jpeg_quality}")
        if self.max_video_seconds <= 0:
            raise ValueError(f"max_video_seconds must be positive, got {self.max_video_seconds}")
        if self.duration_tolerance_sec < 0:
            raise ValueError(f"duration_tolerance_sec must be >= 0, got {self.duration_tolerance_sec}")
        if self.request_timeout_sec <= 0:
            raise ValueError(f"request_timeout_sec must be positive, got {self.request_timeout_sec}")
        if self.max_resolution < 0:
            raise ValueError(f"max_resolution must be >= 0, got {self.max_resolution}")


def _bool_from_env(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "y", "on")


def load_clipprompt_config(toml_path: Optional[str] = None) -> ClipPromptConfig:
    """
    Load config from TOML file, then apply env overrides.

    The API key is looked up in GEMINI_API_KEY, then API_KEY, then the TOML
    file. A missing key is only warned about: requests fail when attempted.
    """
    toml_path = toml_path or os.getenv("CLIPPROMPT_CONFIG_PATH", "clipprompt.toml")

    data = {}
    if os.path.exists(toml_path):
        with open(toml_path, "rb") as f:
            raw = tomllib.load(f)
        data = raw.get("clipprompt", {})
    else:
        logger.warning("Config TOML not found at %s, using defaults + env overrides", toml_path)

    def g(key, default):
        return data.get(key, default)

    defaults = ClipPromptConfig()
    cfg = ClipPromptConfig(
        api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or g("api_key", None),
        model=os.getenv("CLIPPROMPT_MODEL", g("model", defaults.model)),
        api_base_url=os.getenv("CLIPPROMPT_API_BASE_URL", g("api_base_url", defaults.api_base_url)),
        request_timeout_sec=float(
            os.getenv("CLIPPROMPT_REQUEST_TIMEOUT_SEC", g("request_timeout_sec", defaults.request_timeout_sec))
        ),
        max_video_seconds=float(
            os.getenv("CLIPPROMPT_MAX_VIDEO_SEC", g("max_video_seconds", defaults.max_video_seconds))
        ),
        duration_tolerance_sec=float(
            os.getenv("CLIPPROMPT_DURATION_TOLERANCE_SEC", g("duration_tolerance_sec", defaults.duration_tolerance_sec))
        ),
        frame_count=int(os.getenv("CLIPPROMPT_FRAME_COUNT", g("frame_count", defaults.frame_count))),
        jpeg_quality=int(os.getenv("CLIPPROMPT_JPEG_QUALITY", g("jpeg_quality", defaults.jpeg_quality))),
        max_resolution=int(os.getenv("CLIPPROMPT_MAX_RES", g("max_resolution", defaults.max_resolution))),
        strict_frame_count=_bool_from_env(
            "CLIPPROMPT_STRICT_FRAME_COUNT", g("strict_frame_count", defaults.strict_frame_count)
        ),
        log_level=os.getenv("CLIPPROMPT_LOG_LEVEL", g("log_level", defaults.log_level)),
        server_name=os.getenv("CLIPPROMPT_SERVER_NAME", g("server_name", defaults.server_name)),
        server_port=int(os.getenv("CLIPPROMPT_PORT", g("server_port", defaults.server_port))),
        player_dir=os.getenv("CLIPPROMPT_PLAYER_DIR", g("player_dir", defaults.player_dir)),
    )
    cfg.validate()

    if not cfg.api_key:
        logger.warning("API key not configured (GEMINI_API_KEY / API_KEY). Prompt generation will fail.")

    return cfg
