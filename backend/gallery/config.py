"""
Configuration for the gallery pipeline: database, push delivery, timeouts.

Intent:
    Provide a single place to read environment variables that control
    repository selection, VAPID credentials, the notification payload and the
    per-call timeouts of the pipeline.

Why:
    Centralising configuration keeps defaults explicit and lets tests exercise
    config behaviour without booting the web app.
"""
from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

from backend.gallery.domain import NotificationPayload

DEFAULT_PUSH_TITLE = "New post"
DEFAULT_PUSH_CONTENT = "New post added"
DEFAULT_PUSH_URL = "/help"


@dataclass(frozen=True)
class PushConfig:
    vapid_public_key: Optional[str]
    vapid_private_key: Optional[str]
    vapid_email: Optional[str]
    timeout_seconds: float

    @property
    def configured(self) -> bool:
        return bool(self.vapid_private_key and self.vapid_email)

    @property
    def vapid_subject(self) -> Optional[str]:
        if not self.vapid_email:
            return None
        email = self.vapid_email.strip()
        if email.startswith(("mailto:", "https://")):
            return email
        return f"mailto:{email}"


def _float_env(name: str, default: float, *, low: float = 1.0, high: float = 300.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw!r}")
    if value < low or value > high:
        raise ValueError(f"{name} out of range ({low:g}..{high:g}), got: {value:g}")
    return value


def _env(name: str) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or None


def is_prod_like() -> bool:
    env = (os.getenv("ARTBOARD_ENV") or "dev").lower()
    return env in {"prod", "production", "stage", "staging"}


def get_database_dsn() -> Optional[str]:
    """Resolve the DSN for the metadata repository (None when unset)."""
    for name in ("ART_DATABASE_URL", "DATABASE_URL", "SUPABASE_DB_URL"):
        value = _env(name)
        if value:
            return value
    return None


def get_push_concurrency() -> int:
    """Worker threads reserved for push deliveries (ART_PUSH_CONCURRENCY, 1..128)."""
    value = _float_env("ART_PUSH_CONCURRENCY", 16.0, high=128.0)
    if value != int(value):
        raise ValueError(f"ART_PUSH_CONCURRENCY must be an integer, got: {value:g}")
    return int(value)


def get_db_timeout_seconds() -> float:
    return _float_env("ART_DB_TIMEOUT_SECONDS", 15.0)


def auto_create_schema() -> bool:
    return (os.getenv("ART_AUTO_CREATE_SCHEMA", "false") or "").strip().lower() == "true"


def load_push_config() -> PushConfig:
    """Parse push delivery settings (VAPID keys, per-attempt timeout)."""
    return PushConfig(
        vapid_public_key=_env("VAPID_PUBLIC_KEY"),
        vapid_private_key=_env("VAPID_PRIVATE_KEY"),
        vapid_email=_env("VAPID_EMAIL"),
        timeout_seconds=_float_env("ART_PUSH_TIMEOUT_SECONDS", 10.0, high=120.0),
    )


def load_notification_payload() -> NotificationPayload:
    """The fixed payload broadcast after every stored submission."""
    return NotificationPayload(
        title=_env("ART_PUSH_TITLE") or DEFAULT_PUSH_TITLE,
        content=_env("ART_PUSH_CONTENT") or DEFAULT_PUSH_CONTENT,
        url=_env("ART_PUSH_URL") or DEFAULT_PUSH_URL,
    )


__all__ = [
    "PushConfig",
    "is_prod_like",
    "get_database_dsn",
    "get_push_concurrency",
    "get_db_timeout_seconds",
    "auto_create_schema",
    "load_push_config",
    "load_notification_payload",
]
