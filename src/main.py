import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import admin, auth, public, push
from config import Settings, get_settings
from database import create_engine, create_session_maker, init_db, seed_info_blocks
from errors import AppError, PayloadTooLargeError, RateLimitError, ValidationError
from services.device import DEVICE_HEADER, resolve_device_hash
from services.push import resolve_push_capability
from services.rate_limit import RequestRateLimiter

logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}

# Sent on every response; no CSP so the PWA's inline assets keep working
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}
HSTS_HEADER = "max-age=15552000; includeSubDomains"


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db(app.state.engine)
    async with app.state.session_maker() as session:
        await seed_info_blocks(session)
    logger.info("CVL Secure started")
    yield
    await app.state.engine.dispose()


def _error_response(exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after_sec)}
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="CVL Secure", lifespan=lifespan)
    app.state.engine = create_engine(settings.database_url)
    app.state.session_maker = create_session_maker(app.state.engine)
    app.state.push_capability = resolve_push_capability(settings)
    app.state.public_limiter = RequestRateLimiter(
        settings.public_rate_limit, settings.public_rate_window_sec
    )
    app.state.login_limiter = RequestRateLimiter(
        settings.login_rate_limit, settings.login_rate_window_sec
    )

    if settings.jwt_secret == "change-me-in-prod":
        logger.warning("JWT_SECRET uses the default value, change it in production")

    # Every /api call must identify its device before reaching a route
    @app.middleware("http")
    async def require_device_id(request: Request, call_next):
        if request.url.path.startswith("/api/"):
            try:
                request.state.device_hash = resolve_device_hash(
                    request.headers.get(DEVICE_HEADER)
                )
            except ValidationError as e:
                return _error_response(e)
        return await call_next(request)

    @app.middleware("http")
    async def limit_body_size(request: Request, call_next):
        if request.method in BODY_METHODS:
            declared = request.headers.get("content-length")
            if declared is not None:
                size = int(declared) if declared.isdigit() else 0
            else:
                size = len(await request.body())
            if size > settings.max_body_bytes:
                logger.warning(f"Rejected {size} byte body on {request.url.path}")
                return _error_response(PayloadTooLargeError())
        return await call_next(request)

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if settings.is_production():
            response.headers.setdefault("Strict-Transport-Security", HSTS_HEADER)
        return response

    # Added last so CORS preflights are answered before any other check
    origins = settings.cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(AppError)
    async def _app_error(_request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__}: {exc.message}")
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(_request: Request, exc: RequestValidationError):
        fields = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part != "body"]
            fields.append(f"{'.'.join(loc) or 'body'}: {err.get('msg')}")
        return JSONResponse({"error": ", ".join(fields)}, status_code=400)

    @app.exception_handler(Exception)
    async def _unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse({"error": "Erreur serveur"}, status_code=500)

    app.include_router(public.router)
    app.include_router(push.router)
    app.include_router(auth.router)
    app.include_router(admin.router)
    return app


if __name__ == "__main__":
    uvicorn.run("main:create_app", factory=True, host="0.0.0.0", port=get_settings().port)
