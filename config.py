"""Environment configuration for the HealthMate service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

load_dotenv()

APP_ENVIRONMENTS = {"development", "test", "production"}
DEFAULT_PORT = 5050
DEFAULT_MODEL = "llama-3.1-8b-instant"
DEFAULT_FRONTEND_ORIGIN = "http://localhost:5173"
DEFAULT_CHAT_LOG_FILE = os.path.join("data", "chat-logs.json")


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    port: int = DEFAULT_PORT
    groq_api_key: str = ""
    groq_model: str = DEFAULT_MODEL
    frontend_origin: str = DEFAULT_FRONTEND_ORIGIN
    chat_log_file: str = DEFAULT_CHAT_LOG_FILE
    chat_history_limit: int = 10


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _positive_int(name: str, raw: str, default: int) -> int:
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number when defined.") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be a positive number.")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ

    app_env = _clean(env.get("APP_ENV")).lower() or "development"
    if app_env not in APP_ENVIRONMENTS:
        raise ConfigError(f"APP_ENV must be one of: {', '.join(sorted(APP_ENVIRONMENTS))}.")

    frontend_origin = _clean(env.get("FRONTEND_ORIGIN")) or DEFAULT_FRONTEND_ORIGIN
    parsed_origin = urlparse(frontend_origin)
    if parsed_origin.scheme not in {"http", "https"} or not parsed_origin.netloc:
        raise ConfigError("FRONTEND_ORIGIN must be a valid URL.")

    return Settings(
        env=app_env,
        port=_positive_int("PORT", _clean(env.get("PORT")), DEFAULT_PORT),
        groq_api_key=_clean(env.get("GROQ_API_KEY")),
        groq_model=_clean(env.get("GROQ_MODEL")) or DEFAULT_MODEL,
        frontend_origin=frontend_origin,
        chat_log_file=_clean(env.get("CHAT_LOG_FILE")) or DEFAULT_CHAT_LOG_FILE,
        chat_history_limit=_positive_int("CHAT_HISTORY_LIMIT", _clean(env.get("CHAT_HISTORY_LIMIT")), 10),
    )


__all__ = ["ConfigError", "Settings", "load_settings"]
