"""Runtime settings loaded from the environment (and backend/.env)."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=env_path, override=False)


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    return value if value not in (None, "") else default


def _env_int(name: str, default: int, min_value: int, max_value: int) -> int:
    raw = os.getenv(name)
    try:
        value = int(raw) if raw not in (None, "") else default
    except Exception:
        value = default
    return max(min_value, min(max_value, value))


def _env_float(name: str, default: float, min_value: float, max_value: float) -> float:
    raw = os.getenv(name)
    try:
        value = float(raw) if raw not in (None, "") else default
    except Exception:
        value = default
    return max(min_value, min(max_value, value))


class ProviderSettings(BaseModel):
    """Generative provider connection settings."""

    model_config = ConfigDict(protected_namespaces=())

    provider: Optional[str] = None  # gemini | openai | groq | ollama
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    model_name: str = "gemini-pro"
    temperature: float = 0.7
    max_tokens: int = 1024
    max_retry_attempts: int = 3
    retry_backoff_base_sec: float = 1.5
    timeout_sec: float = 30.0

    @property
    def configured(self) -> bool:
        name = (self.provider or "").lower().strip()
        if self.api_key:
            return True
        return name == "ollama" and bool(self.api_url)


class Settings(BaseModel):
    app_env: str = "development"
    database_url: str = "sqlite:///./forum.db"
    client_url: str = "http://localhost:3000"
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    ai_cache_ttl_sec: float = 300.0
    ai_cache_max_entries: int = 1024
    log_level: str = "INFO"
    log_format: str = "text"
    provider: ProviderSettings = ProviderSettings()

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() == "development"


def load_settings() -> Settings:
    provider_name = _env_str("AI_PROVIDER")
    api_key = _env_str("AI_API_KEY") or _env_str("GEMINI_API_KEY")
    if api_key and not provider_name and _env_str("GEMINI_API_KEY"):
        provider_name = "gemini"

    return Settings(
        app_env=_env_str("APP_ENV", "development"),
        database_url=_env_str("DATABASE_URL", "sqlite:///./forum.db"),
        client_url=_env_str("CLIENT_URL", "http://localhost:3000"),
        jwt_secret_key=_env_str("JWT_SECRET_KEY", "change-me-in-production"),
        jwt_algorithm=_env_str("JWT_ALGORITHM", "HS256"),
        ai_cache_ttl_sec=_env_float("AI_CACHE_TTL_SEC", 300.0, 1.0, 86400.0),
        ai_cache_max_entries=_env_int("AI_CACHE_MAX_ENTRIES", 1024, 1, 100000),
        log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
        log_format=(_env_str("LOG_FORMAT", "text") or "text").lower(),
        provider=ProviderSettings(
            provider=provider_name,
            api_url=_env_str("AI_API_URL"),
            api_key=api_key,
            model_name=_env_str("AI_MODEL", "gemini-pro"),
            temperature=_env_float("AI_TEMPERATURE", 0.7, 0.0, 2.0),
            max_tokens=_env_int("AI_MAX_TOKENS", 1024, 16, 8192),
            max_retry_attempts=_env_int("AI_MAX_RETRY_ATTEMPTS", 3, 1, 6),
            retry_backoff_base_sec=_env_float("AI_RETRY_BACKOFF_BASE_SEC", 1.5, 0.5, 5.0),
            timeout_sec=_env_float("AI_TIMEOUT_SEC", 30.0, 1.0, 120.0),
        ),
    )


settings = load_settings()
