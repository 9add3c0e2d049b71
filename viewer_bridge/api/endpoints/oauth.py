"""
OAuth install callback pages.

HubSpot redirects here after the app is authorized. The bridge runs on a
private app token, so the code is only acknowledged, not exchanged.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse

from ...core.config import Settings
from ...pages import render_page
from ..deps import get_app_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/oauth-callback", response_class=HTMLResponse, summary="OAuth Callback")
async def oauth_callback(
    code: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    error_description: Optional[str] = Query(None),
    settings: Settings = Depends(get_app_settings),
) -> HTMLResponse:
    if error:
        logger.warning("OAuth callback returned error: %s", error)
        return HTMLResponse(
            render_page(
                "oauth_error.html",
                error=error,
                error_description=error_description,
            ),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    if not code:
        return HTMLResponse(
            render_page("oauth_invalid.html"),
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    logger.info("App installation authorized")
    return HTMLResponse(render_page("oauth_success.html", app_name=settings.APP_NAME))
