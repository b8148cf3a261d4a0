"""Value types for art submissions, records and push subscriptions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

SUBMISSION_FIELDS = ("id", "artName", "artistName", "description")


@dataclass(frozen=True)
class Submission:
    """One inbound request: image bytes plus descriptive string fields."""

    payload: bytes
    content_type: str
    filename: Optional[str]
    fields: Mapping[str, Optional[str]] = field(default_factory=dict)

    def get(self, name: str) -> Optional[str]:
        return self.fields.get(name)


@dataclass(frozen=True)
class ArtRecord:
    submitted_id: Optional[str]
    art_name: Optional[str]
    artist_name: Optional[str]
    description: Optional[str]
    image_url: str

    @classmethod
    def from_submission(cls, submission: Submission, *, image_url: str) -> "ArtRecord":
        return cls(
            submitted_id=submission.get("id"),
            art_name=submission.get("artName"),
            artist_name=submission.get("artistName"),
            description=submission.get("description"),
            image_url=image_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape shared with the PWA client (camelCase keys)."""
        return {
            "id": self.submitted_id,
            "artName": self.art_name,
            "artistName": self.artist_name,
            "description": self.description,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class Subscription:
    endpoint: str
    auth: Optional[str]
    p256dh: Optional[str]

    def to_subscription_info(self) -> Dict[str, Any]:
        """Shape expected by web-push libraries."""
        return {"endpoint": self.endpoint, "keys": {"auth": self.auth, "p256dh": self.p256dh}}


@dataclass(frozen=True)
class NotificationPayload:
    title: str
    content: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "content": self.content, "url": self.url}


@dataclass(frozen=True)
class DeliveryOutcome:
    subscription_id: str
    ok: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    expired: bool = False

    @property
    def label(self) -> str:
        if self.ok:
            return "delivered"
        return "expired" if self.expired else "failed"


@dataclass(frozen=True)
class SubmissionResult:
    record_id: str
    submitted_id: Optional[str]
    image_url: str
    notifications_skipped: bool
    outcomes: tuple[DeliveryOutcome, ...] = ()


__all__ = [
    "SUBMISSION_FIELDS",
    "Submission",
    "ArtRecord",
    "Subscription",
    "NotificationPayload",
    "DeliveryOutcome",
    "SubmissionResult",
]
