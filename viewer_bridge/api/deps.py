"""
API dependencies for request checks and shared services.
"""
import logging
import uuid
from typing import Optional

from fastapi import Depends, Header, Request

from ..audit import AuditLogger, get_audit_logger
from ..core.config import Settings
from ..core.errors import ErrorCode, UnauthorizedError
from ..core.origins import is_hubspot_request
from ..hubspot import HubSpotClient
from ..services import CrmCardBuilder, FileService
from ..tokens import (
    MissingTokenError,
    TokenRecord,
    TokenValidationError,
    ViewerTokenStore,
)

logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "Missing authentication token"
MISSING_TOKEN_HINT = "Get a viewer token from /api/contact-files/:contactId"
INVALID_TOKEN_MESSAGE = "Invalid or expired token"
INVALID_TOKEN_HINT = (
    "Tokens expire after 15 minutes. "
    "Request a new token from the contact files endpoint."
)


async def get_correlation_id(
    request: Request,
    x_correlation_id: Optional[str] = Header(None, alias="X-Correlation-ID"),
) -> str:
    """
    Get the correlation ID for request tracing.

    Prefers the one assigned by CorrelationIdMiddleware, then the
    X-Correlation-ID header, otherwise generates one.
    """
    return (
        getattr(request.state, "correlation_id", None)
        or x_correlation_id
        or str(uuid.uuid4())
    )


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_store(request: Request) -> ViewerTokenStore:
    return request.app.state.token_store


def get_hubspot_client(request: Request) -> HubSpotClient:
    return request.app.state.hubspot_client


def get_audit() -> AuditLogger:
    return get_audit_logger()


def get_file_service(
    hubspot: HubSpotClient = Depends(get_hubspot_client),
    token_store: ViewerTokenStore = Depends(get_token_store),
    settings: Settings = Depends(get_app_settings),
) -> FileService:
    return FileService(hubspot, token_store, settings.UPLOAD_FOLDER_PATH)


def get_crm_card_builder(
    hubspot: HubSpotClient = Depends(get_hubspot_client),
    token_store: ViewerTokenStore = Depends(get_token_store),
    settings: Settings = Depends(get_app_settings),
) -> CrmCardBuilder:
    return CrmCardBuilder(
        hubspot,
        token_store,
        public_base_url=settings.PUBLIC_BASE_URL,
        max_files=settings.CRM_CARD_MAX_FILES,
        iframe_width=settings.CRM_CARD_IFRAME_WIDTH,
        iframe_height=settings.CRM_CARD_IFRAME_HEIGHT,
    )


async def require_hubspot_request(
    request: Request,
    origin: Optional[str] = Header(None),
    referer: Optional[str] = Header(None),
    user_agent: Optional[str] = Header(None),
    correlation_id: str = Depends(get_correlation_id),
) -> None:
    """
    Allow only requests coming from HubSpot (or server-to-server calls).

    Raises:
        UnauthorizedError: 401 with code AUTH_1003
    """
    if is_hubspot_request(origin, referer, user_agent):
        return

    source = origin or referer or ""
    logger.warning("Rejected non-HubSpot request to %s from %s", request.url.path, source)
    get_audit_logger().log_origin_rejected(
        endpoint=request.url.path,
        origin=source,
        correlation_id=correlation_id,
    )
    raise UnauthorizedError(
        message="Unauthorized",
        hint="This endpoint can only be called from HubSpot",
        code=ErrorCode.ORIGIN_REJECTED,
    )


def check_viewer_token(
    token_store: ViewerTokenStore,
    token: Optional[str],
    file_id: Optional[str],
    endpoint: str,
    correlation_id: Optional[str] = None,
) -> TokenRecord:
    """
    Validate a viewer token for a JSON endpoint.

    Every validation failure becomes the same 401; only the wording for a
    missing token differs. The reason code goes to the audit log.

    Raises:
        UnauthorizedError: On any token validation failure
    """
    try:
        return token_store.validate(token, expected_file_id=file_id)
    except TokenValidationError as e:
        get_audit_logger().log_token_rejected(
            endpoint=endpoint,
            reason=e.reason,
            correlation_id=correlation_id,
            file_id=file_id,
        )
        if isinstance(e, MissingTokenError):
            raise UnauthorizedError(
                message=MISSING_TOKEN_MESSAGE,
                hint=MISSING_TOKEN_HINT,
                code=ErrorCode.MISSING_TOKEN,
            ) from e
        raise UnauthorizedError(
            message=INVALID_TOKEN_MESSAGE,
            hint=INVALID_TOKEN_HINT,
        ) from e
