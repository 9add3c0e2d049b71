"""
HubSpot Viewer Bridge Service

Backend for the Nutrient document editor card in HubSpot CRM.

Features:
- Ephemeral viewer tokens bound to a single HubSpot file (15 minutes)
- Contact attachment listing, file streaming and upload relay
- Viewer shell page loading the Nutrient Web SDK from its CDN
- Legacy CRM card data-fetch endpoint
- Structured JSON logging with token redaction and audit events
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import router as api_router
from .core.config import Settings, get_settings
from .core.errors import (
    APIException,
    api_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .core.logging_config import configure_logging
from .core.middleware import (
    CorrelationIdMiddleware,
    SecurityHeadersMiddleware,
    install_token_redaction_logging,
)
from .core.origins import build_origin_regex, origin_markers_summary
from .core.rate_limit import limiter, rate_limit_exceeded_handler
from .hubspot import HubSpotClient
from .tokens import ViewerTokenStore
from .tokens.scheduler import create_scheduler, shutdown_scheduler, start_scheduler

logger = logging.getLogger("viewer_bridge")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings: Settings = app.state.settings

    configure_logging(settings)
    install_token_redaction_logging()

    if not settings.hubspot_configured:
        raise RuntimeError(
            "HUBSPOT_PRIVATE_APP_TOKEN is not set. "
            "The bridge cannot read or upload HubSpot files without it."
        )

    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    logger.info("Environment: %s", settings.ENVIRONMENT)
    logger.info(
        "CORS origin markers: %s",
        origin_markers_summary(settings.CORS_ALLOWED_ORIGIN_MARKERS),
    )

    if app.state.hubspot_client is None:
        app.state.hubspot_client = HubSpotClient(
            access_token=settings.HUBSPOT_PRIVATE_APP_TOKEN,
            base_url=settings.HUBSPOT_API_BASE_URL,
            timeout=settings.HUBSPOT_TIMEOUT_SECONDS,
        )

    start_scheduler(
        app.state.scheduler,
        app.state.token_store,
        settings.TOKEN_SWEEP_INTERVAL_SECONDS,
    )

    yield

    logger.info("Shutting down %s", settings.APP_NAME)
    shutdown_scheduler(app.state.scheduler)
    await app.state.hubspot_client.aclose()


def create_app(
    settings: Optional[Settings] = None,
    token_store: Optional[ViewerTokenStore] = None,
    hubspot_client: Optional[HubSpotClient] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use instead of the process settings
        token_store: Preconstructed token store (tests pass one with a fake clock)
        hubspot_client: Preconstructed HubSpot client (tests pass a mocked transport).
            When omitted, the lifespan creates one and closes it on shutdown.
    """
    settings = settings or get_settings()
    scheduler = create_scheduler()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Bridge between HubSpot CRM files and the Nutrient document viewer.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.scheduler = scheduler
    app.state.token_store = (
        token_store if token_store is not None else ViewerTokenStore(scheduler=scheduler)
    )
    # Built in the lifespan when not injected
    app.state.hubspot_client = hubspot_client

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # CORS: origins containing a configured marker (HubSpot, our own host, localhost)
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=build_origin_regex(settings.CORS_ALLOWED_ORIGIN_MARKERS),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        expose_headers=["Content-Length", "Content-Type"],
        max_age=86400,
    )

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "viewer_bridge.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
