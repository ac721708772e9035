"""Runtime settings read from the environment (and a .env file at the repo root)."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

ROOT = Path(__file__).parent.parent

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"


class Settings(BaseModel):
    gemini_api_key: str = ""
    gemini_base_url: str = GEMINI_BASE_URL
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash-image"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice: str = "Charon"  # darker, brooding narrator
    check_pause_seconds: float = 2.0
    llm_timeout: float = 120.0
    prompts_path: Path | None = None
    demo_mode: bool = False


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings(env_file: Path | None = None) -> Settings:
    """Build Settings from environment variables, loading .env first."""
    load_dotenv(env_file or ROOT / ".env")
    prompts_path = os.getenv("PROMPTS_PATH", "")
    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_base_url=os.getenv("GEMINI_BASE_URL", GEMINI_BASE_URL),
        text_model=os.getenv("TEXT_MODEL", "gemini-2.5-flash"),
        image_model=os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image"),
        tts_model=os.getenv("TTS_MODEL", "gemini-2.5-flash-preview-tts"),
        tts_voice=os.getenv("TTS_VOICE", "Charon"),
        check_pause_seconds=float(os.getenv("CHECK_PAUSE_SECONDS", "2.0")),
        llm_timeout=float(os.getenv("LLM_TIMEOUT", "120")),
        prompts_path=Path(prompts_path) if prompts_path else None,
        demo_mode=_flag(os.getenv("DEMO_MODE", "")),
    )
