"""
Supabase-backed blob store for art images.

This adapter implements the BlobStore port using a provided Supabase client.
It is intentionally duck-typed to avoid a hard dependency during testing. The
client is expected to expose `.storage.from_(bucket)` (supabase-py) or
`.from_(bucket)` (storage3) which returns an object offering:

- upload(path, body, file_options) -> Any
- get_public_url(path) -> str   (optional; falls back to ART_PUBLIC_BASE_URL)
- remove([path]) -> Any

Security:
- The caller must ensure the client is initialized with the Service Role key.
- The returned URL carries the per-object access token as `token` query
  parameter; the same token is stored as object metadata (`downloadToken`).
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict
from urllib.parse import quote as _quote, urlencode as _urlencode
from uuid import uuid4

from .config import get_art_bucket, get_public_base_url
from .keys import make_art_key
from .ports import BlobStore, BlobStoreError

_log = logging.getLogger("artboard.storage")


class SupabaseBlobStore(BlobStore):
    """Blob store using a supabase client for Storage operations."""

    def __init__(self, client: Any, *, bucket: str | None = None, public_base_url: str | None = None):
        # Duck-typed supabase client, e.g., from `supabase import create_client(...)`.
        self._client = client
        self._bucket_name = bucket or get_art_bucket()
        self._public_base_url = (public_base_url if public_base_url is not None else get_public_base_url()).rstrip("/")

    @property
    def bucket(self) -> str:
        return self._bucket_name

    # --- Helpers -----------------------------------------------------------------

    def _bucket(self) -> Any:
        """Return a bucket proxy from either supabase client or storage3 client.

        Supports two client shapes:
        - supabase.create_client(...): expose `.storage.from_(bucket)`
        - storage3 SyncStorageClient: expose `.from_(bucket)` directly
        """
        c = self._client
        storage = getattr(c, "storage", None)
        if storage is not None and hasattr(storage, "from_"):
            return storage.from_(self._bucket_name)
        if hasattr(c, "from_"):
            return c.from_(self._bucket_name)  # type: ignore[attr-defined]
        raise BlobStoreError("invalid_supabase_client")

    @staticmethod
    def _first_key(d: Dict[str, Any], *keys: str) -> Any:
        for k in keys:
            if k in d and d[k] is not None:
                return d[k]
        return None

    def _public_url(self, bucket: Any, key: str) -> str:
        url = None
        getter = getattr(bucket, "get_public_url", None)
        if callable(getter):
            res = getter(key)
            if isinstance(res, dict):
                url = self._first_key(res, "publicUrl", "public_url", "url")
                data = res.get("data") if "data" in res else None
                if url is None and isinstance(data, dict):
                    url = self._first_key(data, "publicUrl", "public_url", "url")
            elif res:
                url = str(res)
        if not url:
            if not self._public_base_url:
                raise BlobStoreError("public_base_url_not_configured")
            url = f"{self._public_base_url}/storage/v1/object/public/{self._bucket_name}/{_quote(key)}"
        return str(url).rstrip("?")

    @staticmethod
    def _with_token(url: str, token: str) -> str:
        sep = "&" if "?" in url else "?"
        return f"{url}{sep}{_urlencode({'token': token})}"

    def _remove_quietly(self, bucket: Any, key: str) -> None:
        try:
            bucket.remove([key])
        except Exception as exc:
            _log.warning("cleanup after failed upload did not succeed: key=%s error=%s", key, type(exc).__name__)

    # --- Port method -------------------------------------------------------------

    def store(self, local_path: Path, content_type: str, token: str) -> str:
        """Upload a staged file and return its token-bearing public URL.

        Behavior:
            - Reads the staged file; unreadable files raise BlobStoreError
              before any remote call happens.
            - Writes under a fresh key (`arts/{uuid}.{ext}`), never overwriting.
            - Passes content-type via options with both kebab and camel case
              keys to stay compatible across client versions.
            - On upload errors, removes the key best-effort so no partial
              object stays addressable, then raises BlobStoreError.

        Returns:
            Public URL with `token` query parameter.
        """
        path = Path(local_path)
        try:
            body = path.read_bytes()
        except OSError as exc:
            raise BlobStoreError(f"staged_file_unreadable: {exc.__class__.__name__}") from exc

        bucket = self._bucket()
        key = make_art_key(filename=path.name, uuid_hex=uuid4().hex)
        opts = {
            "content-type": content_type,
            "contentType": content_type,
            "x-upsert": "false",
            "metadata": {"downloadToken": token},
        }
        try:
            res = bucket.upload(key, body, opts)
        except Exception as exc:
            self._remove_quietly(bucket, key)
            raise BlobStoreError(f"upload_failed: {exc}") from exc
        if isinstance(res, dict) and res.get("error"):
            self._remove_quietly(bucket, key)
            raise BlobStoreError(f"upload_failed: {res.get('error')}")

        try:
            url = self._public_url(bucket, key)
        except BlobStoreError:
            self._remove_quietly(bucket, key)
            raise
        _log.info("art image stored: bucket=%s key=%s size=%s", self._bucket_name, key, len(body))
        return self._with_token(url, token)


__all__ = ["SupabaseBlobStore"]
