from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv


load_dotenv()


DEFAULT_COMPLETION_MARKERS = "task complete,anything else i can help you with"


def _split_markers(raw: str) -> Tuple[str, ...]:
    return tuple(m.strip().lower() for m in raw.split(",") if m.strip())


class Settings:
    """Application settings loaded from environment variables.

    Keep the backend endpoint and server config centralized here.
    """

    app_env: str = os.getenv("APP_ENV", "development")
    flowise_api_url: Optional[str] = os.getenv("FLOWISE_API_URL", "")
    backend_timeout: float = float(os.getenv("BACKEND_TIMEOUT", "30"))
    completion_markers: Tuple[str, ...] = _split_markers(
        os.getenv("COMPLETION_MARKERS", DEFAULT_COMPLETION_MARKERS)
    )
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "3000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
