from __future__ import annotations

import os
from functools import lru_cache
from dotenv import load_dotenv, find_dotenv

_env_path = find_dotenv(".env") or ".env"
load_dotenv(_env_path, override=False)


def _split_env_csv(name: str, default: str = "") -> list[str]:
    raw = os.getenv(name, default)
    return [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]


class Settings:
    """Central configuration (env driven)."""

    def __init__(self) -> None:
        # Supabase
        raw_url = os.getenv("SUPABASE_URL", "")
        self.supabase_url: str = raw_url.rstrip("/")
        self.supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY", "")
        self.supabase_key: str = self.supabase_anon_key  # alias
        self.supabase_service_role_key: str = (
            os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            or os.getenv("SUPABASE_SERVICE_KEY")
            or ""
        )
        self.supabase_query_timeout: float = float(os.getenv("SUPABASE_QUERY_TIMEOUT", "5"))
        # Database (Alembic only; runtime goes through PostgREST)
        self.database_url: str = os.getenv("DATABASE_URL", "")
        # App meta
        self.app_name: str = "CourseHub Signup"
        self.debug: bool = os.getenv("DEBUG", "False").lower() == "true"
        self.log_level: str = os.getenv("LOG_LEVEL", "DEBUG" if self.debug else "INFO").upper()
        self.allow_origins: list[str] = _split_env_csv(
            "ALLOW_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        )
        # Signup form client
        self.signup_api_base_url: str = os.getenv("SIGNUP_API_BASE_URL", "http://127.0.0.1:8000").rstrip("/")
        self.signup_redirect_delay: float = float(os.getenv("SIGNUP_REDIRECT_DELAY", "2"))

    @property
    def auth_base(self) -> str:
        return f"{self.supabase_url}/auth/v1"

    @property
    def has_service_role(self) -> bool:
        return bool(self.supabase_service_role_key)

    def get_database_url(self) -> str:
        return self.database_url


@lru_cache()
def get_settings() -> Settings:
    return Settings()
