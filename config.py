"""Environment-driven settings shared by the bot and the face overlay."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_PROJECT_ROOT = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Settings loaded from the environment (and `.env`) with defaults."""

    def __init__(self) -> None:
        load_dotenv()

        # Bot
        self.checkpoint_path: str = os.getenv(
            "BOT_CHECKPOINT_PATH", str(_PROJECT_ROOT / "checkpoints" / "bot.sqlite")
        )
        self.greeting_delay_seconds: float = float(os.getenv("GREETING_DELAY_SECONDS", "3"))
        self.host: str = os.getenv("BOT_HOST", "0.0.0.0")
        self.port: int = int(os.getenv("BOT_PORT", "3978"))

        # Face overlay
        self.face_models_dir: Path = Path(os.getenv("FACE_MODELS_DIR", str(_PROJECT_ROOT / "models")))
        self.camera_index: int = int(os.getenv("CAMERA_INDEX", "0"))
        self.overlay_interval_ms: int = int(os.getenv("OVERLAY_INTERVAL_MS", "100"))
        self.overlay_width: int = int(os.getenv("OVERLAY_WIDTH", "0"))
        self.overlay_height: int = int(os.getenv("OVERLAY_HEIGHT", "0"))
        self.face_descriptors: bool = _env_bool("FACE_DESCRIPTORS", False)

        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""

    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    level = (settings or get_settings()).log_level
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["Settings", "get_settings", "configure_logging"]
