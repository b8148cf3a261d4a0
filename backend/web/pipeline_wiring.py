"""
Process-wide wiring of the art submission pipeline.

Why:
    The blob store client, repository and push sender are created once at
    startup and injected into the route module, so request handlers never look
    up credentials themselves and tests can substitute fakes via
    `routes.arts.set_pipeline`.

Security:
    Requires SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY for storage, a database
    DSN for metadata and VAPID keys for push. Missing pieces fall back to Null
    collaborators (dev only; the startup guard rejects them in production).
"""
from __future__ import annotations

import logging
import os

from supabase import create_client

from backend.gallery.config import (
    auto_create_schema,
    get_database_dsn,
    load_notification_payload,
    load_push_config,
)
from backend.gallery.notifications import NotificationDispatcher, NullPushSender, PushSender, WebPushSender
from backend.gallery.pipeline import ArtSubmissionPipeline, GalleryRepoProtocol
from backend.gallery.repo_db import DBGalleryRepo
from backend.gallery.repo_memory import InMemoryGalleryRepo
from backend.storage.bootstrap import ensure_buckets_from_env
from backend.storage.ports import BlobStore, NullBlobStore
from backend.storage.supabase_store import SupabaseBlobStore

logger = logging.getLogger("artboard.web")


def build_blob_store() -> BlobStore:
    """Return a Supabase-backed blob store, or NullBlobStore when unconfigured."""
    url = (os.getenv("SUPABASE_URL") or "").strip()
    key = (os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip()
    if not url or not key:
        logger.warning("Storage not configured: uploads will fail until SUPABASE_URL is set")
        return NullBlobStore()
    try:
        client = create_client(url, key)
    except Exception as exc:
        logger.warning("Supabase client unavailable: %s: %s", exc.__class__.__name__, str(exc))
        return NullBlobStore()
    logger.info("Blob store wired: Supabase")
    return SupabaseBlobStore(client)


def build_repo() -> GalleryRepoProtocol:
    """Return the Postgres repository, or an in-memory one when no DSN is set."""
    dsn = get_database_dsn()
    if not dsn:
        logger.warning("No database DSN configured: using in-memory gallery repo (dev only)")
        return InMemoryGalleryRepo()
    repo = DBGalleryRepo(dsn)
    if auto_create_schema():
        repo.ensure_schema()
    logger.info("Gallery repo wired: Postgres")
    return repo


def build_push_sender() -> PushSender:
    config = load_push_config()
    if not config.configured:
        logger.warning("VAPID keys not configured: push deliveries will be reported as failed")
        return NullPushSender()
    return WebPushSender(config)


def build_pipeline() -> ArtSubmissionPipeline:
    return ArtSubmissionPipeline(
        storage=build_blob_store(),
        repo=build_repo(),
        dispatcher=NotificationDispatcher(build_push_sender()),
        payload=load_notification_payload(),
    )


def wire_pipeline_if_unset() -> bool:
    """Build the pipeline and inject it into the route module once.

    Behavior:
        - Returns True when a new pipeline was wired, False when one exists.
        - Runs the optional bucket bootstrap after wiring.
    """
    from backend.web.routes import arts as _arts

    if _arts.PIPELINE is not None:
        return False
    _arts.set_pipeline(build_pipeline())
    ensure_buckets_from_env()
    return True


__all__ = [
    "build_blob_store",
    "build_repo",
    "build_push_sender",
    "build_pipeline",
    "wire_pipeline_if_unset",
]
