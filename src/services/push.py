"""Web Push fan-out to every stored subscription."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Protocol, Tuple, Union

from pydantic import BaseModel, Field
from pywebpush import WebPushException, webpush
from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from config import Settings
from models import PushSubscription

logger = logging.getLogger(__name__)

# Push services answer 404/410 for subscriptions that will never come back
GONE_STATUS_CODES = {404, 410}


class PushPayload(BaseModel):
    """The JSON document the service worker receives."""

    title: str = Field(max_length=60)
    body: str = Field(max_length=180)
    url: str = Field(default="/", max_length=300)
    tag: str = Field(default="cvl", max_length=60)
    ts: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class DispatchResult(BaseModel):
    sent: int = 0
    failed: int = 0
    disabled: bool = False
    reason: Optional[str] = None


class PushDeliveryError(Exception):
    """A single delivery failed. status_code is the push service's answer, if any."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class PushSender(Protocol):
    async def send(self, subscription_info: dict, data: str) -> None: ...


class WebPushSender:
    """Sends VAPID-signed Web Push messages through pywebpush."""

    def __init__(self, private_key: str, subject: str, ttl: int = 60 * 60):
        self.private_key = private_key
        self.subject = subject
        self.ttl = ttl

    def _send_sync(self, subscription_info: dict, data: str) -> None:
        try:
            webpush(
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=self.private_key,
                # pywebpush fills aud/exp into this dict, so it must not be shared
                vapid_claims={"sub": self.subject},
                ttl=self.ttl,
            )
        except WebPushException as e:
            status = e.response.status_code if e.response is not None else None
            raise PushDeliveryError(str(e), status_code=status) from e

    async def send(self, subscription_info: dict, data: str) -> None:
        await asyncio.to_thread(self._send_sync, subscription_info, data)


@dataclass(frozen=True)
class PushConfigured:
    sender: PushSender


@dataclass(frozen=True)
class PushNotConfigured:
    reason: str


PushCapability = Union[PushConfigured, PushNotConfigured]


def resolve_push_capability(settings: Settings) -> PushCapability:
    """Decide once, at startup, whether push delivery is available."""
    if not settings.is_push_configured():
        logger.info("Web Push disabled: VAPID credentials are not configured")
        return PushNotConfigured(reason="missing_vapid")
    return PushConfigured(
        sender=WebPushSender(
            private_key=settings.vapid_private_key,  # type: ignore[arg-type]
            subject=settings.vapid_subject,  # type: ignore[arg-type]
            ttl=settings.push_ttl_sec,
        )
    )


class NotificationDispatcher:
    """Delivers a payload to all subscriptions and prunes the ones that are gone."""

    def __init__(self, session: AsyncSession, capability: PushCapability):
        self.session = session
        self.capability = capability

    async def dispatch(self, payload: PushPayload) -> DispatchResult:
        """
        Send the payload to every stored subscription.

        Deliveries run concurrently and independently; one failing endpoint never
        stops the others. Subscriptions answered with 404/410 are deleted once
        every delivery has finished.

        Args:
            payload: The notification to send.

        Returns:
            DispatchResult with sent/failed counts, or disabled=True when push
            is not configured (nothing is read, sent or deleted in that case).
        """
        match self.capability:
            case PushNotConfigured(reason=reason):
                return DispatchResult(disabled=True, reason=reason)
            case PushConfigured(sender=sender):
                pass

        result = await self.session.exec(select(PushSubscription))
        subscriptions = list(result.all())
        data = payload.model_dump_json()

        outcomes = await asyncio.gather(
            *(self._deliver(sender, sub, data) for sub in subscriptions)
        )

        sent = sum(1 for _, ok, _ in outcomes if ok)
        failed = len(outcomes) - sent
        gone = [endpoint for endpoint, ok, status in outcomes if not ok and status in GONE_STATUS_CODES]
        if gone:
            await self._prune(gone)

        logger.info(f"Push dispatched: sent={sent} failed={failed} pruned={len(gone)}")
        return DispatchResult(sent=sent, failed=failed)

    async def _deliver(
        self, sender: PushSender, subscription: PushSubscription, data: str
    ) -> Tuple[str, bool, Optional[int]]:
        endpoint = subscription.endpoint
        try:
            await sender.send(subscription.subscription_info, data)
            return endpoint, True, None
        except PushDeliveryError as e:
            logger.warning(f"Push delivery failed ({e.status_code}) for {endpoint[:60]}: {e}")
            return endpoint, False, e.status_code
        except Exception as e:
            logger.warning(f"Push delivery failed for {endpoint[:60]}: {e}")
            return endpoint, False, None

    async def _prune(self, endpoints: List[str]) -> None:
        for endpoint in endpoints:
            try:
                await self.session.exec(  # type: ignore[call-overload]
                    delete(PushSubscription).where(PushSubscription.endpoint == endpoint)
                )
                await self.session.commit()
            except Exception as e:
                logger.warning(f"Failed to delete gone subscription {endpoint[:60]}: {e}")
                await self.session.rollback()
