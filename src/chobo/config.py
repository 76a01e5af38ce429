"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from chobo.domain.errors import ValidationError


@dataclass(frozen=True)
class Settings:
    """Runtime settings; every field has a CHOBO_* environment variable."""

    db_path: Optional[str] = None
    ai_url: Optional[str] = None
    ai_api_key: Optional[str] = None
    ai_timeout: float = 5.0
    ai_max_calls: int = 30
    ai_window_seconds: float = 60.0
    log_level: str = "WARNING"
    payment_term_days: int = 30

    @property
    def ai_configured(self) -> bool:
        return bool(self.ai_url)


def _number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number, got '{raw}'")
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got '{raw}'")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Read settings from ``env`` (os.environ by default).

    Raises:
        ValidationError: If a numeric variable is malformed or not positive
    """
    env = os.environ if env is None else env
    return Settings(
        db_path=env.get("CHOBO_DB_PATH") or None,
        ai_url=env.get("CHOBO_AI_URL") or None,
        ai_api_key=env.get("CHOBO_AI_API_KEY") or None,
        ai_timeout=_number(env, "CHOBO_AI_TIMEOUT", 5.0, float),
        ai_max_calls=_number(env, "CHOBO_AI_MAX_CALLS", 30, int),
        ai_window_seconds=_number(env, "CHOBO_AI_WINDOW_SECONDS", 60.0, float),
        log_level=(env.get("CHOBO_LOG_LEVEL") or "WARNING").upper(),
        payment_term_days=_number(env, "CHOBO_PAYMENT_TERM_DAYS", 30, int),
    )
