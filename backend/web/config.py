"""
Configuration and startup security checks for the art service.

Why: A misconfigured production deployment would silently accept uploads it
can never store or notify about. This module provides a single guard that
enforces minimal production constraints without burdening local development.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os

from backend.gallery.config import get_database_dsn, is_prod_like


def cors_origins() -> list[str]:
    """Origins allowed by CORS (comma separated ART_CORS_ORIGINS, default '*')."""
    raw = (os.getenv("ART_CORS_ORIGINS") or "*").strip()
    return [item.strip() for item in raw.split(",") if item.strip()] or ["*"]


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure or incomplete production configuration.

    Checks (prod/stage only):
    - Supabase URL and Service Role key must be set and not a dummy placeholder.
    - A database DSN must be configured and must not disable TLS.
    - VAPID keys and contact email must be configured for push delivery.
    """
    if not is_prod_like():
        return  # dev/test remain permissive

    # 1) Supabase storage credentials
    srole = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "").strip()
    if not srole or srole.upper() == "DUMMY_DO_NOT_USE":
        raise SystemExit(
            "Refusing to start: SUPABASE_SERVICE_ROLE_KEY is unset or a dummy placeholder in production."
        )
    if not os.getenv("SUPABASE_URL", "").strip():
        raise SystemExit("Refusing to start: SUPABASE_URL is unset in production.")

    # 2) Postgres: required, and TLS must not be explicitly disabled
    dsn = get_database_dsn()
    if not dsn:
        raise SystemExit(
            "Refusing to start: no database DSN (ART_DATABASE_URL / DATABASE_URL) configured in production."
        )
    if "sslmode=disable" in dsn:
        raise SystemExit(
            "Refusing to start: database DSN contains sslmode=disable in production. Use sslmode=require or verify TLS."
        )

    # 3) Web push credentials
    for var in ("VAPID_PUBLIC_KEY", "VAPID_PRIVATE_KEY", "VAPID_EMAIL"):
        if not (os.getenv(var) or "").strip():
            raise SystemExit(f"Refusing to start: {var} is unset in production.")

    # 4) Dev conveniences must stay off
    if (os.getenv("AUTO_CREATE_STORAGE_BUCKETS", "false") or "").strip().lower() == "true":
        raise SystemExit(
            "Refusing to start: AUTO_CREATE_STORAGE_BUCKETS must be false in production/staging."
        )
