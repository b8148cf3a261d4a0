"""Art submission API routes."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.gallery.domain import SUBMISSION_FIELDS, Submission
from backend.gallery.errors import PipelineError, SubmissionInputError
from backend.gallery.pipeline import ArtSubmissionPipeline
from backend.storage.config import get_art_max_upload_bytes

logger = logging.getLogger("artboard.web")

arts_router = APIRouter(tags=["Arts"])

IMAGE_FIELDS = ("artImage", "image")
SUCCESS_MESSAGE = "Art stored successfully"
FAILURE_MESSAGE = "Error processing art upload"

PIPELINE: Optional[ArtSubmissionPipeline] = None


def set_pipeline(pipeline: Optional[ArtSubmissionPipeline]) -> None:
    """Allow tests or startup code to provide the submission pipeline."""
    global PIPELINE
    PIPELINE = pipeline


def _get_pipeline() -> ArtSubmissionPipeline:
    if PIPELINE is None:
        from backend.web.pipeline_wiring import wire_pipeline_if_unset

        wire_pipeline_if_unset()
    if PIPELINE is None:
        raise RuntimeError("art submission pipeline is not wired")
    return PIPELINE


def _private_response(body: dict, *, status_code: int) -> JSONResponse:
    return JSONResponse(body, status_code=status_code, headers={"Cache-Control": "private, no-store"})


async def _parse_submission(request: Request) -> Submission:
    """Turn a multipart body into a Submission.

    Raises SubmissionInputError for non-multipart or malformed bodies, a
    missing/empty image (400) and images above ART_MAX_UPLOAD_BYTES (413).
    """
    ctype = (request.headers.get("content-type") or "").lower()
    if not ctype.startswith("multipart/form-data"):
        raise SubmissionInputError("multipart_required")
    try:
        form = await request.form()
    except StarletteHTTPException as exc:
        raise SubmissionInputError("malformed_multipart") from exc
    try:
        image = next((form.get(name) for name in IMAGE_FIELDS if isinstance(form.get(name), UploadFile)), None)
        if image is None:
            raise SubmissionInputError("missing_image")
        limit = get_art_max_upload_bytes()
        payload = await image.read(limit + 1)
        if len(payload) > limit:
            raise SubmissionInputError("payload_too_large", status_code=413)
        if not payload:
            raise SubmissionInputError("empty_image")
        fields = {}
        for name in SUBMISSION_FIELDS:
            value = form.get(name)
            fields[name] = value if isinstance(value, str) else None
        return Submission(
            payload=payload,
            content_type=image.content_type or "application/octet-stream",
            filename=image.filename,
            fields=fields,
        )
    finally:
        await form.close()


@arts_router.post("/postArt")
async def post_art(request: Request):
    """Store an art image plus metadata and notify push subscribers.

    Responses:
        201 {"message", "id", "recordId"} on success; `id` echoes the
        caller-supplied field, `recordId` is the generated storage key.
        400/413 {"error", "details"} for malformed input.
        500 {"error", "details"} when staging, upload or persistence failed.
    """
    try:
        submission = await _parse_submission(request)
    except SubmissionInputError as exc:
        return _private_response(
            {"error": "invalid_submission", "details": exc.code}, status_code=exc.status_code
        )

    try:
        result = await _get_pipeline().submit(submission)
    except PipelineError as exc:
        logger.error("Error processing art upload: stage=%s error=%s", exc.stage, exc.__class__.__name__)
        return _private_response({"error": FAILURE_MESSAGE, "details": exc.detail}, status_code=500)

    return _private_response(
        {"message": SUCCESS_MESSAGE, "id": result.submitted_id, "recordId": result.record_id},
        status_code=201,
    )
