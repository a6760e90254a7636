# streamrokuo_admin/config.py
"""
Environment-driven settings.

Required:
  - SUPABASE_URL
  - SUPABASE_ANON_KEY
  - BACKEND_BASE_URL
Optional:
  - ADMIN_APP_NAME, SESSION_SECRET, LOG_LEVEL, FRONTEND_URL, CORS_ALLOW_ALL,
    BACKEND_TIMEOUT_SECONDS, SUPABASE_JWT_SECRET, LOGIN_PATH

Read once at startup; nothing here is re-validated at runtime.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_APP_NAME = "StreamRokuo Admin"


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(
            f"Missing required environment variable: {name}. "
            f"Set it in your .env / shell before running."
        )
    return value


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    supabase_url: str
    supabase_anon_key: str
    backend_base_url: str
    app_name: str = DEFAULT_APP_NAME
    session_secret: str = "change_this"
    log_level: str = "INFO"
    frontend_url: str = "http://localhost:3000"
    cors_allow_all: bool = False
    backend_timeout: float = 20.0
    jwt_secret: Optional[str] = None
    login_path: str = "/login"

    @property
    def rest_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/rest/v1"

    @property
    def auth_url(self) -> str:
        return f"{self.supabase_url.rstrip('/')}/auth/v1"


def load_settings() -> Settings:
    return Settings(
        supabase_url=_require_env("SUPABASE_URL"),
        supabase_anon_key=_require_env("SUPABASE_ANON_KEY"),
        backend_base_url=_require_env("BACKEND_BASE_URL").rstrip("/"),
        app_name=os.getenv("ADMIN_APP_NAME", "").strip() or DEFAULT_APP_NAME,
        session_secret=os.getenv("SESSION_SECRET", "change_this"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        frontend_url=os.getenv("FRONTEND_URL", "http://localhost:3000"),
        cors_allow_all=_flag("CORS_ALLOW_ALL"),
        backend_timeout=float(os.getenv("BACKEND_TIMEOUT_SECONDS", "20")),
        jwt_secret=os.getenv("SUPABASE_JWT_SECRET") or None,
        login_path=os.getenv("LOGIN_PATH", "/login"),
    )
