"""
Viewer token minting.

Called server-side by the HubSpot UI extension to obtain a token for a
single file before opening the viewer.
"""
import logging

from fastapi import APIRouter, Depends, Request

from ...audit import AuditLogger
from ...core.errors import ErrorCode, ValidationError
from ...core.rate_limit import limiter, token_mint_key, token_mint_limit
from ...models import TokenRequest, TokenResponse
from ...tokens import ViewerTokenStore
from ..deps import get_audit, get_correlation_id, get_token_store, require_hubspot_request

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/generate-viewer-token",
    response_model=TokenResponse,
    summary="Mint Viewer Token",
    description="Mint a 15-minute token bound to one HubSpot file id.",
    dependencies=[Depends(require_hubspot_request)],
)
@limiter.limit(token_mint_limit, key_func=token_mint_key)
async def generate_viewer_token(
    request: Request,
    body: TokenRequest,
    token_store: ViewerTokenStore = Depends(get_token_store),
    audit: AuditLogger = Depends(get_audit),
    correlation_id: str = Depends(get_correlation_id),
) -> TokenResponse:
    try:
        token = token_store.mint(body.fileId, body.filename)
    except ValueError:
        raise ValidationError(
            message="Missing fileId",
            code=ErrorCode.MISSING_REQUIRED_FIELD,
        )

    audit.log_token_minted(
        endpoint=request.url.path,
        correlation_id=correlation_id,
        file_id=str(body.fileId),
    )

    return TokenResponse(
        token=token,
        expiresIn=int(token_store.ttl.total_seconds()),
    )
