"""Web Push subscription and broadcast endpoints."""

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from api.deps import (
    DeviceHashDep,
    PushCapabilityDep,
    SessionDep,
    SettingsDep,
    require_admin,
)
from api.schemas import PushSendRequest, SubscribeRequest
from errors import NotConfiguredError
from models import PushSubscription
from models.upsert import upsert
from services.push import NotificationDispatcher, PushPayload
from services.sanitize import clean_text

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/push", tags=["push"])


@router.get("/public-key")
async def public_key(settings: SettingsDep) -> dict:
    if not settings.vapid_public_key:
        raise NotConfiguredError("Push non configuré (VAPID_PUBLIC_KEY)")
    return {"publicKey": settings.vapid_public_key}


@router.post("/subscribe")
async def subscribe(
    request: Request,
    body: SubscribeRequest,
    session: SessionDep,
    device_hash: DeviceHashDep,
) -> dict:
    now = datetime.now(timezone.utc)
    subscription = PushSubscription(
        endpoint=body.subscription.endpoint,
        subscription_json=body.subscription.model_dump_json(),
        device_hash=device_hash,
        user_agent=clean_text(request.headers.get("User-Agent", ""), 220),
        created_at=now,
        updated_at=now,
    )
    await upsert(session, subscription, keep_existing=("created_at",))
    logger.info(f"Push subscription stored for device {device_hash[:12]}")
    return {"ok": True}


@router.post("/send")
async def send(
    body: PushSendRequest,
    session: SessionDep,
    capability: PushCapabilityDep,
    _admin: Annotated[bool, Depends(require_admin)],
) -> dict:
    payload = PushPayload(
        title=clean_text(body.title, 60),
        body=clean_text(body.body, 180),
        url=body.url.strip() if body.url else "/",
        tag=body.tag.strip() if body.tag else "cvl",
    )
    result = await NotificationDispatcher(session, capability).dispatch(payload)
    if result.disabled:
        raise NotConfiguredError("Push non configuré (VAPID_*)")
    return {"ok": True, **result.model_dump()}
