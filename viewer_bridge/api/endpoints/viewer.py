"""
Viewer shell page.

Renders the HTML page that loads the Nutrient Web SDK from its CDN, fetches
the file through /api/file and saves edits back through /api/hubspot/upload,
carrying the same viewer token on both calls.
"""
import logging
from typing import Optional
from urllib.parse import quote, urlencode

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse

from ...audit import AuditLogger
from ...core.config import Settings
from ...pages import render_page
from ...tokens import MissingTokenError, TokenValidationError, ViewerTokenStore
from ..deps import get_app_settings, get_audit, get_correlation_id, get_token_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/viewer/{file_id}", response_class=HTMLResponse, summary="Viewer Page")
async def viewer_page(
    file_id: str,
    token: Optional[str] = Query(None, description="Viewer token"),
    filename: Optional[str] = Query(None, description="Display name"),
    token_store: ViewerTokenStore = Depends(get_token_store),
    settings: Settings = Depends(get_app_settings),
    audit: AuditLogger = Depends(get_audit),
    correlation_id: str = Depends(get_correlation_id),
) -> HTMLResponse:
    endpoint = "/viewer/{file_id}"
    ttl_minutes = int(token_store.ttl.total_seconds() // 60)

    try:
        record = token_store.validate(token, expected_file_id=file_id)
    except TokenValidationError as e:
        audit.log_token_rejected(
            endpoint=endpoint,
            reason=e.reason,
            correlation_id=correlation_id,
            file_id=file_id,
        )
        return HTMLResponse(
            render_page(
                "unauthorized.html",
                missing=isinstance(e, MissingTokenError),
                ttl_minutes=ttl_minutes,
            ),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    token_query = urlencode({"token": record.token})
    audit.log_viewer_rendered(
        endpoint=endpoint,
        file_id=file_id,
        correlation_id=correlation_id,
    )

    return HTMLResponse(render_page(
        "viewer.html",
        file_id=record.file_id,
        filename=filename or record.filename,
        file_path=f"/api/file/{quote(record.file_id, safe='')}?{token_query}",
        upload_path=f"/api/hubspot/upload?{token_query}",
        cdn_base_url=settings.NUTRIENT_CDN_BASE_URL,
        ttl_minutes=ttl_minutes,
    ))
