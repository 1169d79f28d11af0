from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Values are read when the
    object is built, so tests can change the environment and call
    ``get_settings.cache_clear()``.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.gemini_api_key: Optional[str] = (
            os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None
        )
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash-latest")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.7"))
        self.top_p: float = float(os.getenv("MODEL_TOP_P", "0.95"))

        # Client side
        self.access_code: str = os.getenv("AMIGO_ACCESS_CODE", "123")
        self.relay_url: str = os.getenv("AMIGO_RELAY_URL", "http://127.0.0.1:8000/api/chat")
        self.relay_timeout: float = float(os.getenv("AMIGO_RELAY_TIMEOUT", "60"))
        self.store_path: Path = Path(
            os.getenv("AMIGO_STORE_PATH", str(Path.home() / ".amigo" / "storage.json"))
        ).expanduser()
        self.storage_namespace: str = os.getenv("AMIGO_STORAGE_NAMESPACE", "amigo:")
        self.cooldown_seconds: float = float(os.getenv("AMIGO_COOLDOWN_SECONDS", "5"))
        self.extended_cooldown_seconds: float = float(
            os.getenv("AMIGO_EXTENDED_COOLDOWN_SECONDS", "10")
        )
        self.extended_cooldown_threshold: int = int(
            os.getenv("AMIGO_EXTENDED_COOLDOWN_THRESHOLD", "7")
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
