"""
Create the art bucket in Supabase Storage when it is missing.

Opt-in via `AUTO_CREATE_STORAGE_BUCKETS=true` for local and CI setups where
nobody provisions storage by hand; the production startup guard rejects the
flag. Talks to the Storage REST API with the service role key.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import requests
from requests import RequestException

from .config import get_art_bucket

_log = logging.getLogger("artboard.storage")

_TIMEOUT = (3, 10)


def _env_flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name, default) or "").strip().lower() == "true"


def _headers(key: str) -> dict[str, str]:
    return {"apikey": key, "Authorization": f"Bearer {key}"}


def _fetch_bucket(base_url: str, key: str, name: str) -> Optional[dict]:
    """Return the bucket description, or None when Storage does not know it."""
    resp = requests.get(f"{base_url}/storage/v1/bucket/{name}", headers=_headers(key), timeout=_TIMEOUT)
    if resp.status_code != 200:
        _log.debug("bucket '%s' lookup status=%s", name, resp.status_code)
        return None
    try:
        data = resp.json()
    except ValueError:
        data = {}
    return data if isinstance(data, dict) else {}


def ensure_bucket(base_url: str, key: str, name: str, *, public: bool = True) -> bool:
    """Make sure bucket `name` exists.

    Returns True when the bucket is available afterwards. An existing bucket
    is left untouched, even if its visibility differs from `public` (logged).
    A 409 on create means another process created it first.
    """
    base = base_url.rstrip("/")
    try:
        current = _fetch_bucket(base, key, name)
        if current is not None:
            if "public" in current and bool(current["public"]) != public:
                _log.warning("bucket '%s' exists with public=%s, expected %s", name, current["public"], public)
            return True
        resp = requests.post(
            f"{base}/storage/v1/bucket",
            headers={**_headers(key), "Content-Type": "application/json"},
            json={"id": name, "name": name, "public": public},
            timeout=_TIMEOUT,
        )
    except RequestException as exc:
        _log.warning("bucket '%s' not ensured: error=%s", name, type(exc).__name__)
        return False
    if resp.status_code < 300 or resp.status_code == 409:
        _log.info("bucket '%s' ready (public=%s)", name, public)
        return True
    _log.warning(
        "create bucket '%s' failed: status=%s body=%s", name, resp.status_code, (getattr(resp, "text", "") or "")[:200]
    )
    return False


def ensure_buckets_from_env() -> bool:
    """Ensure the art bucket when AUTO_CREATE_STORAGE_BUCKETS=true.

    Uses SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY, ART_STORAGE_BUCKET and
    ART_BUCKET_PUBLIC (default true: images are served via public URLs).
    Returns False when disabled, unconfigured or the bucket is unavailable.
    """
    if not _env_flag("AUTO_CREATE_STORAGE_BUCKETS"):
        return False
    _log.warning("AUTO_CREATE_STORAGE_BUCKETS=true is a dev convenience; keep it off in prod/stage")
    base = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not base or not key:
        return False
    return ensure_bucket(base, key, get_art_bucket(), public=_env_flag("ART_BUCKET_PUBLIC", "true"))


__all__ = ["ensure_bucket", "ensure_buckets_from_env"]
