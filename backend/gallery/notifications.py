"""
Push notification fan-out for newly stored art.

Intent:
    Deliver one fixed payload to every subscription in a snapshot. Each
    attempt is independent: a failing endpoint never prevents or delays the
    others and `dispatch` itself never raises. Wire protocol details (VAPID
    signing, payload encryption) live in the PushSender implementation.

Design:
    - Senders are synchronous (pywebpush uses requests); attempts run in a
      thread pool owned by the dispatcher and are awaited together via
      asyncio.gather. The default executor stays free for the storage and
      database calls of other submissions.
    - Per-attempt time bounds are enforced by the transport timeout so every
      attempt settles before `dispatch` returns.
"""
from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
import json
import logging
from typing import List, Mapping, Optional, Protocol

from pywebpush import WebPushException, webpush

from backend.gallery import telemetry
from backend.gallery.config import PushConfig, get_push_concurrency
from backend.gallery.domain import DeliveryOutcome, NotificationPayload, Subscription

_log = logging.getLogger("artboard.notifications")

DELIVERIES_COUNTER = "art_push_deliveries_total"
_EXPIRED_STATUS = {404, 410}


class PushDeliveryError(RuntimeError):
    """A single delivery attempt failed (optionally with the push service status)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PushSender(Protocol):
    def send(self, subscription: Subscription, data: str) -> Optional[int]: ...


class NullPushSender:
    """Fallback sender that signals push delivery is not configured."""

    def send(self, subscription: Subscription, data: str) -> Optional[int]:  # noqa: D401
        raise PushDeliveryError("push_sender_not_configured")


class WebPushSender:
    """Deliver payloads via the Web Push protocol (pywebpush)."""

    def __init__(self, config: PushConfig) -> None:
        if not config.configured:
            raise ValueError("VAPID_PRIVATE_KEY and VAPID_EMAIL are required for WebPushSender")
        self._config = config

    def send(self, subscription: Subscription, data: str) -> Optional[int]:
        try:
            response = webpush(
                subscription_info=subscription.to_subscription_info(),
                data=data,
                vapid_private_key=self._config.vapid_private_key,
                vapid_claims={"sub": self._config.vapid_subject},
                timeout=self._config.timeout_seconds,
            )
        except WebPushException as exc:
            status = getattr(getattr(exc, "response", None), "status_code", None)
            raise PushDeliveryError(str(exc), status_code=status) from exc
        return getattr(response, "status_code", None)


class NotificationDispatcher:
    def __init__(self, sender: PushSender, *, max_workers: Optional[int] = None) -> None:
        self._sender = sender
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or get_push_concurrency(),
            thread_name_prefix="art-push",
        )

    async def dispatch(
        self,
        snapshot: Optional[Mapping[str, Subscription]],
        payload: NotificationPayload,
    ) -> List[DeliveryOutcome]:
        """Deliver `payload` to every subscription and collect the outcomes.

        Behavior:
            - Empty or missing snapshot: returns [] without touching the sender.
            - One outcome per subscription, in snapshot order; ordering of the
              actual deliveries is unspecified.
            - Never raises for delivery failures; they are reported per outcome.
        """
        if not snapshot:
            return []
        data = json.dumps(payload.to_dict())
        loop = asyncio.get_running_loop()
        outcomes = await asyncio.gather(
            *(self._deliver(loop, sid, sub, data) for sid, sub in snapshot.items())
        )
        for outcome in outcomes:
            telemetry.increment_counter(DELIVERIES_COUNTER, outcome=outcome.label)
        delivered = sum(1 for o in outcomes if o.ok)
        expired = sum(1 for o in outcomes if o.expired)
        _log.info(
            "push fan-out settled: total=%s delivered=%s failed=%s expired=%s",
            len(outcomes),
            delivered,
            len(outcomes) - delivered,
            expired,
        )
        return list(outcomes)

    async def _deliver(
        self,
        loop: asyncio.AbstractEventLoop,
        subscription_id: str,
        subscription: Subscription,
        data: str,
    ) -> DeliveryOutcome:
        try:
            status = await loop.run_in_executor(self._executor, self._sender.send, subscription, data)
        except PushDeliveryError as exc:
            _log.warning(
                "push delivery failed: subscription=%s status=%s error=%s",
                subscription_id,
                exc.status_code,
                str(exc)[:200],
            )
            return DeliveryOutcome(
                subscription_id=subscription_id,
                ok=False,
                status_code=exc.status_code,
                error=str(exc),
                expired=exc.status_code in _EXPIRED_STATUS,
            )
        except Exception as exc:
            _log.warning(
                "push delivery failed: subscription=%s error=%s", subscription_id, exc.__class__.__name__
            )
            return DeliveryOutcome(
                subscription_id=subscription_id,
                ok=False,
                error=f"{exc.__class__.__name__}: {exc}",
            )
        return DeliveryOutcome(subscription_id=subscription_id, ok=True, status_code=status)


__all__ = [
    "DELIVERIES_COUNTER",
    "PushDeliveryError",
    "PushSender",
    "NullPushSender",
    "WebPushSender",
    "NotificationDispatcher",
]
