"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw else default


@dataclass(slots=True)
class AssistantConfig:
    """Settings for the chat model, the session file and scheduling defaults."""

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    max_tokens: int = 1024
    max_retries: int = 2
    session_db: Path = Path("capture_assistant.db")
    meeting_minutes: int = 60
    default_hour: int = 9
    timezone: str = "UTC"

    @classmethod
    def from_env(cls) -> "AssistantConfig":
        return cls(
            api_key=os.getenv("CAPTURE_ASSISTANT_API_KEY") or os.getenv("GROQ_API_KEY"),
            base_url=os.getenv("CAPTURE_ASSISTANT_BASE_URL", DEFAULT_BASE_URL),
            model=os.getenv("CAPTURE_ASSISTANT_MODEL", DEFAULT_MODEL),
            temperature=_env_float("CAPTURE_ASSISTANT_TEMPERATURE", 0.7),
            max_tokens=_env_int("CAPTURE_ASSISTANT_MAX_TOKENS", 1024),
            max_retries=_env_int("CAPTURE_ASSISTANT_MAX_RETRIES", 2),
            session_db=Path(os.getenv("CAPTURE_ASSISTANT_SESSION_DB", "capture_assistant.db")).expanduser(),
            meeting_minutes=_env_int("CAPTURE_ASSISTANT_MEETING_MINUTES", 60),
            default_hour=_env_int("CAPTURE_ASSISTANT_DEFAULT_HOUR", 9),
            timezone=os.getenv("CAPTURE_ASSISTANT_TIMEZONE", "UTC"),
        )
