"""
Upload-commit-notify pipeline for art submissions.

Stages run strictly in order for one submission:

    stage -> upload -> generate id -> persist -> read subscribers -> dispatch

Only the final dispatch fans out. Failures at stage, upload or persist are
terminal and raised as PipelineError subclasses; a failed subscriber read
degrades to "stored, notifications skipped". Blocking collaborators (storage
SDK, psycopg) run in the default executor so the event loop never waits on
them directly. Upload and subscriber reads are bounded per call; the metadata
write is always awaited to completion and bounded inside the database.
"""
from __future__ import annotations

import asyncio
from functools import partial
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol
from uuid import uuid4

from backend.gallery.config import get_db_timeout_seconds
from backend.gallery.domain import (
    ArtRecord,
    NotificationPayload,
    Submission,
    SubmissionResult,
    Subscription,
)
from backend.gallery.errors import (
    PersistenceError,
    StagingError,
    SubscriberReadError,
    UploadError,
)
from backend.gallery.notifications import NotificationDispatcher
from backend.storage.config import get_staging_dir, get_upload_timeout_seconds
from backend.storage.keys import make_staging_name
from backend.storage.ports import BlobStore

_log = logging.getLogger("artboard.pipeline")


class GalleryRepoProtocol(Protocol):
    def write_record(self, record_id: str, record: ArtRecord) -> None:
        ...

    def read_subscriptions(self) -> Dict[str, Subscription]:
        ...


def _new_uuid() -> str:
    return str(uuid4())


class ArtSubmissionPipeline:
    def __init__(
        self,
        *,
        storage: BlobStore,
        repo: GalleryRepoProtocol,
        dispatcher: NotificationDispatcher,
        payload: NotificationPayload,
        staging_dir: Optional[Path] = None,
        upload_timeout: Optional[float] = None,
        db_timeout: Optional[float] = None,
        id_factory: Callable[[], str] = _new_uuid,
        token_factory: Callable[[], str] = _new_uuid,
    ) -> None:
        self._storage = storage
        self._repo = repo
        self._dispatcher = dispatcher
        self._payload = payload
        self._staging_dir = staging_dir
        self._upload_timeout = upload_timeout if upload_timeout is not None else get_upload_timeout_seconds()
        self._db_timeout = db_timeout if db_timeout is not None else get_db_timeout_seconds()
        self._id_factory = id_factory
        self._token_factory = token_factory

    async def submit(self, submission: Submission) -> SubmissionResult:
        """Run one submission through the pipeline and return its result.

        Behavior:
            - The staged file is removed once the upload settled.
            - The record id is generated after a successful upload and never
              taken from the caller-supplied `id` field.
            - Delivery outcomes are returned for observability only.

        Raises:
            StagingError, UploadError, PersistenceError (all PipelineError).
        """
        staged = await self._stage(submission)
        try:
            image_url = await self._upload(staged, submission.content_type)
        finally:
            await self._discard(staged)

        record_id = self._id_factory()
        record = ArtRecord.from_submission(submission, image_url=image_url)
        await self._persist(record_id, record)

        try:
            snapshot = await self._read_subscribers()
        except SubscriberReadError as exc:
            _log.warning("art stored but notifications skipped: record=%s error=%s", record_id, exc.detail)
            return SubmissionResult(
                record_id=record_id,
                submitted_id=record.submitted_id,
                image_url=image_url,
                notifications_skipped=True,
            )

        outcomes = await self._dispatcher.dispatch(snapshot, self._payload)
        _log.info("art submission completed: record=%s subscribers=%s", record_id, len(snapshot))
        return SubmissionResult(
            record_id=record_id,
            submitted_id=record.submitted_id,
            image_url=image_url,
            notifications_skipped=False,
            outcomes=tuple(outcomes),
        )

    # --- Stages --------------------------------------------------------------------

    async def _run_blocking(self, func: Callable[..., Any], *args: Any, timeout: Optional[float] = None) -> Any:
        loop = asyncio.get_running_loop()
        call = loop.run_in_executor(None, partial(func, *args))
        if timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout=timeout)

    async def _stage(self, submission: Submission) -> Path:
        def _write() -> Path:
            directory = self._staging_dir or get_staging_dir()
            directory.mkdir(parents=True, exist_ok=True)
            target = directory / make_staging_name(filename=submission.filename, uuid_hex=uuid4().hex)
            target.write_bytes(submission.payload)
            return target

        try:
            return await self._run_blocking(_write)
        except OSError as exc:
            _log.error("staging failed: error=%s", exc.__class__.__name__)
            raise StagingError(f"could not stage upload: {exc}") from exc

    async def _discard(self, staged: Path) -> None:
        try:
            await self._run_blocking(partial(staged.unlink, missing_ok=True))
        except OSError as exc:
            _log.warning("staged file not removed: path=%s error=%s", staged, exc.__class__.__name__)

    async def _upload(self, staged: Path, content_type: str) -> str:
        token = self._token_factory()
        try:
            return await self._run_blocking(
                self._storage.store, staged, content_type, token, timeout=self._upload_timeout
            )
        except asyncio.TimeoutError as exc:
            _log.error("upload timed out: timeout=%ss", self._upload_timeout)
            raise UploadError(f"upload timed out after {self._upload_timeout:g}s") from exc
        except Exception as exc:
            _log.error("upload failed: error=%s", exc.__class__.__name__)
            raise UploadError(str(exc) or exc.__class__.__name__) from exc

    async def _persist(self, record_id: str, record: ArtRecord) -> None:
        """Write the record and wait until the write has settled.

        A started write is never abandoned; its outcome decides the result.
        The deadline is enforced by the repository (statement_timeout for
        Postgres); here it only marks the write as slow.
        """
        loop = asyncio.get_running_loop()
        write = loop.run_in_executor(None, self._repo.write_record, record_id, record)
        try:
            try:
                await asyncio.wait_for(asyncio.shield(write), timeout=self._db_timeout)
            except asyncio.TimeoutError:
                _log.warning(
                    "persist exceeded %ss, awaiting outcome: record=%s", f"{self._db_timeout:g}", record_id
                )
                await write
        except Exception as exc:
            # The uploaded image stays in storage; the URL is logged for reconciliation.
            _log.error(
                "persist failed: record=%s orphaned_image=%s error=%s",
                record_id,
                record.image_url,
                exc.__class__.__name__,
            )
            raise PersistenceError(str(exc) or exc.__class__.__name__) from exc

    async def _read_subscribers(self) -> Dict[str, Subscription]:
        try:
            snapshot = await self._run_blocking(self._repo.read_subscriptions, timeout=self._db_timeout)
        except asyncio.TimeoutError as exc:
            raise SubscriberReadError(f"subscriber read timed out after {self._db_timeout:g}s") from exc
        except Exception as exc:
            raise SubscriberReadError(str(exc) or exc.__class__.__name__) from exc
        return dict(snapshot or {})


__all__ = ["ArtSubmissionPipeline", "GalleryRepoProtocol"]
