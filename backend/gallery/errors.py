"""
Error taxonomy for the art submission pipeline.

Leaf collaborators raise their own errors (BlobStoreError, RepositoryError);
the pipeline wraps them into stage errors so the web adapter can map every
terminal failure to one uniform response.
"""
from __future__ import annotations


class SubmissionInputError(ValueError):
    """Malformed submission (unparseable body, missing image). Client error."""

    def __init__(self, code: str, *, status_code: int = 400) -> None:
        super().__init__(code)
        self.code = code
        self.status_code = status_code


class RepositoryError(RuntimeError):
    """Metadata repository failure (connectivity, permission, timeout)."""


class PipelineError(RuntimeError):
    """Terminal failure of a pipeline stage. Reported as a server error."""

    stage = "pipeline"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class StagingError(PipelineError):
    stage = "stage"


class UploadError(PipelineError):
    stage = "upload"


class PersistenceError(PipelineError):
    stage = "persist"


class SubscriberReadError(PipelineError):
    """Raised internally when the subscriber snapshot cannot be read.

    The pipeline downgrades this to "stored, notifications skipped".
    """

    stage = "read_subscribers"


__all__ = [
    "SubmissionInputError",
    "RepositoryError",
    "PipelineError",
    "StagingError",
    "UploadError",
    "PersistenceError",
    "SubscriberReadError",
]
