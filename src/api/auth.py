from typing import Annotated

from fastapi import APIRouter, Depends, Response

from api.deps import SettingsDep, limit_login_attempts
from api.schemas import LoginRequest
from services import auth

router = APIRouter(prefix="/api/auth", tags=["auth"])


# Sync so the bcrypt check runs in the threadpool
@router.post("/login")
def login(
    body: LoginRequest,
    response: Response,
    settings: SettingsDep,
    _limited: Annotated[None, Depends(limit_login_attempts)],
) -> dict:
    token = auth.login(body.password, settings)
    auth.set_auth_cookie(response, token, settings)
    return {"ok": True}


@router.post("/logout")
async def logout(response: Response, settings: SettingsDep) -> dict:
    auth.clear_auth_cookie(response, settings)
    return {"ok": True}
