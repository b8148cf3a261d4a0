"""
Postgres-backed metadata repository for art records and push subscriptions.

Design:
- Minimal psycopg3 usage; each call opens a short-lived connection.
- Records are upserted by their generated id (idempotent by key).
- Subscriptions are read as a full point-in-time snapshot.
"""
from __future__ import annotations

from typing import Dict, Optional
import logging
import re
from uuid import UUID

import psycopg

from backend.gallery.config import get_database_dsn, get_db_timeout_seconds
from backend.gallery.domain import ArtRecord, Subscription
from backend.gallery.errors import RepositoryError

_log = logging.getLogger("artboard.repo")

_ERROR_MAX_LENGTH = 256
_SENSITIVE_TOKEN_PATTERN = re.compile(r"(?i)(secret|token|password|key)[-_a-z0-9]*\s*=\s*\S+")

SCHEMA_SQL = """
create table if not exists public.arts (
    id uuid primary key,
    submitted_id text,
    art_name text,
    artist_name text,
    description text,
    image_url text not null,
    created_at timestamptz not null default now(),
    updated_at timestamptz not null default now()
);
create table if not exists public.push_subscriptions (
    id text primary key,
    endpoint text not null,
    auth text,
    p256dh text,
    created_at timestamptz not null default now()
);
"""


def _sanitize_error_message(value: Optional[str]) -> str:
    """Strip secrets and truncate lengthy driver errors for safe exposure."""
    collapsed = " ".join(str(value or "").split())
    scrubbed = _SENSITIVE_TOKEN_PATTERN.sub("[redacted]", collapsed)
    if len(scrubbed) > _ERROR_MAX_LENGTH:
        scrubbed = scrubbed[: _ERROR_MAX_LENGTH - 3].rstrip() + "..."
    return scrubbed


def _repository_error(action: str, exc: Exception) -> RepositoryError:
    detail = _sanitize_error_message(str(exc)) or exc.__class__.__name__
    return RepositoryError(f"{action} failed: {detail}")


class DBGalleryRepo:
    def __init__(
        self,
        dsn: Optional[str] = None,
        *,
        connect_timeout: Optional[float] = None,
        statement_timeout: Optional[float] = None,
    ) -> None:
        """Initialize a Postgres-backed repository.

        Parameters:
            dsn: Optional explicit DSN. When omitted, resolves from env
                 (ART_DATABASE_URL, DATABASE_URL, SUPABASE_DB_URL).
            connect_timeout: Seconds before a connection attempt is abandoned.
            statement_timeout: Seconds a statement may run before Postgres
                 cancels it and rolls the transaction back.

        Behavior:
            Does not open a connection eagerly; connections are per-call.
        """
        resolved = dsn or get_database_dsn()
        if not resolved:
            raise RuntimeError("Database DSN unavailable for DBGalleryRepo")
        self._dsn = resolved
        timeout = connect_timeout if connect_timeout is not None else get_db_timeout_seconds()
        self._connect_timeout = max(1, int(timeout))
        limit = statement_timeout if statement_timeout is not None else timeout
        self._statement_timeout_ms = max(1, int(limit * 1000))

    def _connect(self):
        return psycopg.connect(
            self._dsn,
            connect_timeout=self._connect_timeout,
            options=f"-c statement_timeout={self._statement_timeout_ms}",
        )

    def ensure_schema(self) -> None:
        """Create the arts and push_subscriptions tables when missing."""
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA_SQL)
        except psycopg.Error as exc:
            raise _repository_error("ensure_schema", exc) from exc
        _log.info("gallery schema ensured")

    def write_record(self, record_id: str, record: ArtRecord) -> None:
        """Upsert an art record keyed by its generated id.

        Writing twice with the same id overwrites the previous values; the
        original `created_at` is preserved.
        """
        rid = str(UUID(record_id))
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        insert into public.arts (id, submitted_id, art_name, artist_name, description, image_url)
                        values (%s, %s, %s, %s, %s, %s)
                        on conflict (id) do update
                           set submitted_id = excluded.submitted_id,
                               art_name = excluded.art_name,
                               artist_name = excluded.artist_name,
                               description = excluded.description,
                               image_url = excluded.image_url,
                               updated_at = now()
                        """,
                        (
                            rid,
                            record.submitted_id,
                            record.art_name,
                            record.artist_name,
                            record.description,
                            record.image_url,
                        ),
                    )
                conn.commit()
        except psycopg.Error as exc:
            raise _repository_error("write_record", exc) from exc

    def read_subscriptions(self) -> Dict[str, Subscription]:
        """Return every registered push subscription keyed by its id."""
        try:
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "select id::text, endpoint, auth, p256dh from public.push_subscriptions order by id"
                    )
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise _repository_error("read_subscriptions", exc) from exc
        snapshot: Dict[str, Subscription] = {}
        for row in rows or []:
            snapshot[str(row[0])] = Subscription(endpoint=row[1], auth=row[2], p256dh=row[3])
        return snapshot


__all__ = ["DBGalleryRepo", "SCHEMA_SQL"]
