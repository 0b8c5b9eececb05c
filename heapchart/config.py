from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


APP_NAME = "HeapChart"

SESSION_COOKIE = "SESSION"
USERNAME_MIN = 3
PASSWORD_MIN = 8
# bcrypt only looks at the first 72 bytes.
PASSWORD_MAX_BYTES = 72


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    database_url: str
    session_secret: str
    https_only: bool
    host: str
    port: int
    log_level: str


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _session_secret() -> str:
    secret = os.getenv("SESSION_SECRET", "").strip()
    if secret:
        return secret

    secret_file = os.getenv("SESSION_SECRET_FILE", "").strip()
    if secret_file:
        return Path(secret_file).expanduser().read_text().strip()

    # Logins won't survive a restart, but the app still works.
    log.warning("SESSION_SECRET not set; using a random per-process session secret")
    return secrets.token_urlsafe(32)


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    database_url = os.getenv("DATABASE_URL", "sqlite:///./heapchart.db").strip()

    return Settings(
        database_url=database_url,
        session_secret=_session_secret(),
        https_only=_env_flag("HTTPS_ONLY"),
        host=os.getenv("HOST", "0.0.0.0").strip(),
        port=int(os.getenv("PORT", "22000")),
        log_level=os.getenv("LOG_LEVEL", "info").strip().lower(),
    )
