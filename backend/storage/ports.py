"""
Storage ports used by the submission pipeline.

Keep these small and framework-agnostic so tests can supply simple fakes.
"""
from __future__ import annotations

from pathlib import Path
from typing import Protocol


class BlobStoreError(RuntimeError):
    """Raised when an object could not be stored (or the file not read)."""


class BlobStore(Protocol):
    """Minimal interface to persist a staged file and obtain a public URL.

    Intent:
        Allow pipeline code to upload images without depending on a specific
        cloud SDK.

    Behavior:
        Implementations create exactly one object per successful call and none
        on failure. They never retry; failures surface as BlobStoreError.
    """

    def store(self, local_path: Path, content_type: str, token: str) -> str: ...


class NullBlobStore:
    """Fallback adapter that signals the storage backend is not configured."""

    def store(self, local_path: Path, content_type: str, token: str) -> str:  # noqa: D401
        raise BlobStoreError("storage_adapter_not_configured")


__all__ = ["BlobStore", "BlobStoreError", "NullBlobStore"]
