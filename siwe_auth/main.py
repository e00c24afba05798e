"""
Application factory.

Run with: uvicorn siwe_auth.main:create_app --factory
"""
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from siwe_auth.api.router import api_router
from siwe_auth.core.config import Settings
from siwe_auth.core.container import ServiceContainer, build_container
from siwe_auth.core.errors import SiweAuthError
from siwe_auth.core.logging_config import configure_logging
from siwe_auth.core.security import extract_token
from siwe_auth.services.route_guard import GuardState

logger = logging.getLogger(__name__)

STATUS_BY_CODE = {
    "MALFORMED_MESSAGE": 400,
    "PROFILE_VALIDATION_ERROR": 400,
    "VERIFICATION_ERROR": 401,
    "INVALID_TOKEN": 401,
    "STORAGE_ERROR": 500,
}


async def siwe_auth_exception_handler(request: Request, exc: SiweAuthError) -> JSONResponse:
    status_code = STATUS_BY_CODE.get(exc.code, 500)
    if status_code >= 500:
        logger.error("Request failed", extra={"path": request.url.path, "code": exc.code})
        # internals stay in the log
        return JSONResponse(status_code=status_code, content={"error": exc.code, "message": "Internal error"})
    return JSONResponse(status_code=status_code, content={"error": exc.code, "message": exc.message})


def create_app(
    settings: Optional[Settings] = None,
    container: Optional[ServiceContainer] = None,
) -> FastAPI:
    # missing required configuration fails here, before serving anything
    settings = settings or (container.settings if container else Settings())
    configure_logging(settings.log_level, settings.log_file)
    container = container or build_container(settings)

    app = FastAPI(title="SIWE Auth Service")
    app.state.container = container
    app.include_router(api_router, prefix="/api")
    app.add_exception_handler(SiweAuthError, siwe_auth_exception_handler)

    blob_root = Path(settings.blob_root)
    if settings.blob_public_base_url.startswith("/"):
        blob_root.mkdir(parents=True, exist_ok=True)
        app.mount(settings.blob_public_base_url, StaticFiles(directory=blob_root), name="media")

    @app.middleware("http")
    async def route_guard(request: Request, call_next):
        token = extract_token(request, settings.session_cookie_name)
        decision = container.guard.check(request.url.path, token)
        if decision.state == GuardState.DENIED:
            return RedirectResponse(url=decision.redirect_to, status_code=307)
        return await call_next(request)

    logger.info("Application configured", extra={"domain": settings.app_domain})
    return app
