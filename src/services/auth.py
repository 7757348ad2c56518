"""Admin login with a bcrypt hash and JWT session cookies."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from starlette.responses import Response

from config import Settings
from errors import AuthError, ForbiddenError, ServerError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        return False


def sign_admin_token(settings: Settings, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "admin": True,
        "iat": now,
        "exp": now + timedelta(hours=settings.token_ttl_hours),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def login(password: str, settings: Settings) -> str:
    """
    Check the admin password and issue a session token.

    Args:
        password: The submitted password.
        settings: Provides the stored hash, the signing secret and the token lifetime.

    Returns:
        A signed JWT carrying the admin claim.

    Raises:
        ServerError: No admin hash is configured.
        AuthError: The password does not match.
    """
    if not settings.admin_password_hash:
        logger.error("Login attempted but ADMIN_PASSWORD_HASH is not configured")
        raise ServerError("ADMIN_PASSWORD_HASH non configuré")

    if not verify_password(password, settings.admin_password_hash):
        logger.warning("Failed admin login attempt")
        raise AuthError("Identifiants invalides")

    logger.info("Admin logged in")
    return sign_admin_token(settings)


def verify_admin_token(token: Optional[str], settings: Settings) -> dict:
    """
    Validate a session token and return its claims.

    Raises:
        AuthError: Missing, tampered or expired token.
        ForbiddenError: Valid token without the admin claim.
    """
    if not token:
        raise AuthError("Non authentifié")
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        raise AuthError("Session expirée")
    if claims.get("admin") is not True:
        raise ForbiddenError("Accès refusé")
    return claims


def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.cookie_name,
        token,
        max_age=settings.token_ttl_hours * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production(),
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(settings.cookie_name, httponly=True, samesite="lax")
