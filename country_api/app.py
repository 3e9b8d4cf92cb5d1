import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from starlette.middleware.base import BaseHTTPMiddleware

from country_api.core.access_log import AccessLog, AccessLogMiddleware
from country_api.core.config import get_settings
from country_api.core.logging_config import setup_logging
from country_api.repositories import CountryRepository, build_storage
from country_api.routers import countries as countries_router
from country_api.routers import pages as pages_router
from country_api.services.country_service import INVALID_MESSAGE, CountryService

logger = logging.getLogger(__name__)

BASE = os.path.dirname(__file__)
TEMPLATES_DIR = os.path.join(BASE, "templates")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (CSP, anti clickjacking, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; img-src 'self' data:; style-src 'self' 'unsafe-inline'",
        )
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer-when-downgrade")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


async def _invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        {"ok": False, "error": "invalid", "message": INVALID_MESSAGE},
        status_code=400,
    )


def create_app() -> FastAPI:
    """Build the application from the current environment (uvicorn/gunicorn factory)."""
    settings = get_settings()
    setup_logging(settings.log_level)

    access_log = AccessLog(settings.access_log_path)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        access_log.start()
        try:
            yield
        finally:
            access_log.stop()

    app = FastAPI(title="Country Records API", lifespan=lifespan)

    storage = build_storage(settings)
    repository = CountryRepository(storage, serialize_writes=settings.serialize_writes)
    app.state.settings = settings
    app.state.country_service = CountryService(repository)
    app.state.templates = Jinja2Templates(directory=TEMPLATES_DIR)
    app.state.access_log = access_log

    app.add_exception_handler(RequestValidationError, _invalid_request)
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_middleware(AccessLogMiddleware, access_log=access_log)

    @app.get("/", include_in_schema=False)
    def index():
        return RedirectResponse("/countries", status_code=302)

    app.include_router(countries_router.router)
    app.include_router(pages_router.router)

    logger.info("Almacenamiento de países: %s (%s)", settings.storage_backend, settings.data_file)
    return app
