"""
Centralized storage configuration for the art bucket and upload limits.

Intent:
    Provide a single source of truth for the bucket name, public URL base,
    staging directory and size/time limits used by the submission pipeline.
    Prevents drift across modules and enables simple testing.

Permissions:
    Pure configuration; no external calls or privileges required.
"""
from __future__ import annotations

import os
import tempfile
from pathlib import Path


ART_BUCKET_DEFAULT = "arts"


def get_art_bucket() -> str:
    """Return the configured art bucket name.

    Env:
        ART_STORAGE_BUCKET – optional override; otherwise ART_BUCKET_DEFAULT.
    """
    return (os.getenv("ART_STORAGE_BUCKET") or ART_BUCKET_DEFAULT).strip()


def get_public_base_url() -> str:
    """Return the base URL used to build publicly resolvable object URLs.

    Falls back to SUPABASE_URL so local setups work without extra config.
    """
    base = (os.getenv("ART_PUBLIC_BASE_URL") or os.getenv("SUPABASE_URL") or "").strip()
    return base.rstrip("/")


def get_staging_dir() -> Path:
    """Directory where uploads are staged before handing them to storage."""
    raw = (os.getenv("ART_STAGING_DIR") or "").strip()
    path = Path(raw) if raw else Path(tempfile.gettempdir()) / "artboard-staging"
    path.mkdir(parents=True, exist_ok=True)
    return path


__all__ = [
    "ART_BUCKET_DEFAULT",
    "get_art_bucket",
    "get_public_base_url",
    "get_staging_dir",
]

# --- Size & time limits -------------------------------------------------------

def _parse_int_env(name: str, default: int, *, contract_max: int | None = None) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    if isinstance(contract_max, int) and contract_max > 0:
        value = min(value, contract_max)
    return value


def _parse_float_env(name: str, default: float, *, low: float, high: float) -> float:
    raw = (os.getenv(name) or "").strip()
    try:
        value = float(raw)
    except ValueError:
        value = default
    return max(low, min(value, high))


def get_art_max_upload_bytes() -> int:
    """Maximum image size for art submissions (default 10 MiB, clamped 50 MiB)."""
    contract_max = 50 * 1024 * 1024
    return _parse_int_env("ART_MAX_UPLOAD_BYTES", 10 * 1024 * 1024, contract_max=contract_max)


def get_upload_timeout_seconds() -> float:
    """Upper bound for a single blob upload (seconds)."""
    return _parse_float_env("ART_UPLOAD_TIMEOUT_SECONDS", 60.0, low=1.0, high=600.0)


__all__ += [
    "get_art_max_upload_bytes",
    "get_upload_timeout_seconds",
]
