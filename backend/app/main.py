import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from pathlib import Path

import sentry_sdk
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from app.api.main import api_router
from app.core.config import settings

APP_VERSION = "0.1.0"
DESCRIPTION = (
    "Staff intake for paper applications: guardian lookup, scanned proof "
    "uploads, income threshold checks and application creation."
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    primary_tag = route.tags[0] if route.tags else "system"
    return f"{primary_tag}-{route.name}"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(
        "Starting %s %s (environment=%s, uploads=%s)",
        settings.PROJECT_NAME,
        APP_VERSION,
        settings.ENVIRONMENT,
        upload_dir,
    )
    yield
    logger.info("Stopping %s", settings.PROJECT_NAME)


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(
        dsn=str(settings.SENTRY_DSN),
        environment=settings.ENVIRONMENT,
        release=APP_VERSION,
        enable_tracing=True,
    )

app = FastAPI(
    title=settings.PROJECT_NAME,
    description=DESCRIPTION,
    version=APP_VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)

if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_origin_regex=(
            r"https?://localhost(:\d+)?$" if settings.ENVIRONMENT == "local" else None
        ),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
def root() -> dict[str, str]:
    return {
        "message": f"{settings.PROJECT_NAME} API",
        "version": APP_VERSION,
        "docs": "/docs",
        "openapi": f"{settings.API_V1_STR}/openapi.json",
        "fpl_thresholds": f"{settings.API_V1_STR}/paper-applications/fpl-thresholds",
    }


@app.get("/healthz")
def healthz() -> dict[str, str]:
    """Liveness only; the database is checked by /utils/health-check/."""
    return {"status": "ok"}


# Clients written against the versioned prefix look for the docs under it.
COMPAT_REDIRECTS = {
    "/openapi.json": f"{settings.API_V1_STR}/openapi.json",
    f"{settings.API_V1_STR}/docs": "/docs",
    f"{settings.API_V1_STR}/redoc": "/redoc",
}


def _redirect_to(target: str) -> Callable[[], RedirectResponse]:
    def _redirect() -> RedirectResponse:
        return RedirectResponse(url=target)

    return _redirect


for path, target in COMPAT_REDIRECTS.items():
    app.add_api_route(
        path,
        _redirect_to(target),
        methods=["GET"],
        include_in_schema=False,
        name=f"redirect{path.replace('/', '_').replace('.', '_')}",
    )
