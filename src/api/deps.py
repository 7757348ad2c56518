from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from config import Settings, get_settings
from services.auth import verify_admin_token
from services.connections import record_daily_connection
from services.device import DEVICE_HEADER, resolve_device_hash
from services.push import PushCapability
from services.rate_limit import client_key


async def get_db_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with request.app.state.session_maker() as session:
        yield session


def get_push_capability(request: Request) -> PushCapability:
    return request.app.state.push_capability


def get_device_hash(request: Request) -> str:
    # Normally set by the /api middleware in main.py
    device_hash = getattr(request.state, "device_hash", None)
    if device_hash is None:
        device_hash = resolve_device_hash(request.headers.get(DEVICE_HEADER))
        request.state.device_hash = device_hash
    return device_hash


async def require_admin(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> bool:
    """Guard for admin routes: 401 without a valid session, 403 without the admin claim."""
    verify_admin_token(request.cookies.get(settings.cookie_name), settings)
    request.state.admin = True
    return True


def limit_public_requests(
    request: Request, settings: Annotated[Settings, Depends(get_settings)]
) -> None:
    request.app.state.public_limiter.hit(client_key(request, settings.trust_proxy))


def limit_login_attempts(
    request: Request, settings: Annotated[Settings, Depends(get_settings)]
) -> None:
    request.app.state.login_limiter.hit(client_key(request, settings.trust_proxy))


async def track_daily_connection(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_async_session)],
    device_hash: Annotated[str, Depends(get_device_hash)],
) -> None:
    if request.method == "GET":
        await record_daily_connection(session, device_hash)


SessionDep = Annotated[AsyncSession, Depends(get_db_async_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
DeviceHashDep = Annotated[str, Depends(get_device_hash)]
PushCapabilityDep = Annotated[PushCapability, Depends(get_push_capability)]
