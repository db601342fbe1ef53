from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_API_URL = "https://freeapp.com.br/api"


@dataclass(frozen=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = 30.0
    session_file: Path = Path.home() / ".freeapp" / "session.json"

    @classmethod
    def from_env(cls) -> "Settings":
        session_file = os.getenv("SESSION_FILE")
        return cls(
            api_url=os.getenv("FREEAPP_API_URL", DEFAULT_API_URL).rstrip("/"),
            timeout_seconds=float(os.getenv("API_TIMEOUT_SECONDS", "30")),
            session_file=Path(session_file).expanduser() if session_file else cls.session_file,
        )
