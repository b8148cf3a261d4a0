"""
Helpers to generate standardized storage_key paths for art images.

Why:
    Keep path shapes consistent and provide simple, testable sanitization that
    avoids path traversal and exotic characters while remaining readable.

Conventions:
    - Art images: arts/{uuid}.{ext}
    - Staged uploads: {uuid}-{sanitized original name}

Security:
    - Sanitization removes characters outside [A-Za-z0-9._-] from segments.
    - Filename extensions are lowercased and filtered to alphanumeric + dot.
"""
from __future__ import annotations

import os
import re
import unicodedata

_SEGMENT_RE = re.compile(r"[^A-Za-z0-9._-]+")


def _sanitize_segment(value: str, *, fallback: str = "x") -> str:
    value = value or ""
    normalized = unicodedata.normalize("NFKD", value)
    ascii_value = normalized.encode("ascii", "ignore").decode("ascii")
    sanitized = _SEGMENT_RE.sub("-", ascii_value).strip("-_.")
    return sanitized or fallback


def _sanitize_ext_from_filename(filename: str | None, default_ext: str = "") -> str:
    if not filename:
        ext = default_ext
    else:
        _, ext = os.path.splitext(os.path.basename(filename))
    ext = (ext or default_ext or "").lower()
    # keep only alnum and dots; collapse invalids
    ext = "".join(ch for ch in ext if ch.isalnum() or ch == ".")
    if ext and not ext.startswith("."):
        ext = f".{ext}"
    return ext


def make_art_key(*, filename: str | None, uuid_hex: str) -> str:
    """Build a storage key for an art image.

    Returns: arts/{uuid}.{ext}
    """
    ext = _sanitize_ext_from_filename(filename)
    hexpart = (uuid_hex or "").strip() or "file"
    return f"arts/{hexpart}{ext}"


def make_staging_name(*, filename: str | None, uuid_hex: str) -> str:
    """Build a collision-free file name for a staged upload."""
    base = os.path.basename(filename or "")
    stem, _ = os.path.splitext(base)
    ext = _sanitize_ext_from_filename(base)
    return f"{uuid_hex}-{_sanitize_segment(stem, fallback='upload')}{ext}"


__all__ = ["make_art_key", "make_staging_name"]
