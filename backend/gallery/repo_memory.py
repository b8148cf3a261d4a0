"""
In-memory gallery repository.

Used in local development when no database DSN is configured and as the
default collaborator in tests. Behaves like DBGalleryRepo: upsert by id,
subscriptions returned as a snapshot copy.
"""
from __future__ import annotations

from threading import Lock
from typing import Dict, Mapping, Optional

from backend.gallery.domain import ArtRecord, Subscription


class InMemoryGalleryRepo:
    def __init__(self, subscriptions: Optional[Mapping[str, Subscription]] = None) -> None:
        self.records: Dict[str, ArtRecord] = {}
        self._subscriptions: Dict[str, Subscription] = dict(subscriptions or {})
        self._lock = Lock()

    def write_record(self, record_id: str, record: ArtRecord) -> None:
        with self._lock:
            self.records[record_id] = record

    def read_subscriptions(self) -> Dict[str, Subscription]:
        with self._lock:
            return dict(self._subscriptions)

    def add_subscription(self, subscription_id: str, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions[subscription_id] = subscription


__all__ = ["InMemoryGalleryRepo"]
