"""
File endpoints.

Provides:
- /api/contact-files/{contact_id}: a contact's note attachments, each with
  its own viewer token (HubSpot callers only)
- /api/file/{file_id}: raw file content for the viewer, gated by a token
  bound to that file
"""
import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response

from ...audit import AuditLogger
from ...core.errors import UpstreamError
from ...hubspot import HubSpotAPIError
from ...models import ContactFilesResponse
from ...services import FileService, HTMLContentError
from ...tokens import ViewerTokenStore
from ..deps import (
    check_viewer_token,
    get_audit,
    get_correlation_id,
    get_file_service,
    get_token_store,
    require_hubspot_request,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Secure headers for file content responses
SECURE_HEADERS = {
    "Cache-Control": "private, no-store, no-cache, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Referrer-Policy": "no-referrer",
    "Access-Control-Allow-Origin": "*",
}


def content_disposition(filename: str) -> str:
    """Build an inline Content-Disposition header safe for any filename."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "'")
    return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


@router.get(
    "/contact-files/{contact_id}",
    response_model=ContactFilesResponse,
    summary="List Contact Files",
    description="List attachments on a contact's notes with a viewer token per file.",
    dependencies=[Depends(require_hubspot_request)],
)
async def list_contact_files(
    contact_id: str,
    request: Request,
    file_service: FileService = Depends(get_file_service),
    audit: AuditLogger = Depends(get_audit),
    correlation_id: str = Depends(get_correlation_id),
) -> ContactFilesResponse:
    try:
        files = await file_service.list_contact_files(contact_id)
    except HubSpotAPIError as e:
        logger.error(
            "Failed to list files for contact %s: %s", contact_id, e,
            extra={"upstream_status": e.status_code},
        )
        raise UpstreamError(message=str(e), details=e.details)

    if files:
        audit.log_token_minted(
            endpoint=request.url.path,
            correlation_id=correlation_id,
            contact_id=contact_id,
            token_count=len(files),
        )

    return ContactFilesResponse(
        contactId=contact_id,
        fileCount=len(files),
        files=files,
    )


@router.get(
    "/file/{file_id}",
    summary="Get File Content",
    description="Stream a HubSpot file to the viewer. Requires a token bound to the file.",
    responses={
        200: {"description": "File content", "content": {"application/pdf": {}}},
        401: {"description": "Missing, invalid or expired token"},
        500: {"description": "HubSpot error"},
    },
)
async def get_file_content(
    file_id: str,
    token: Optional[str] = Query(None, description="Viewer token"),
    token_store: ViewerTokenStore = Depends(get_token_store),
    file_service: FileService = Depends(get_file_service),
    audit: AuditLogger = Depends(get_audit),
    correlation_id: str = Depends(get_correlation_id),
) -> Response:
    endpoint = "/api/file/{file_id}"
    check_viewer_token(token_store, token, file_id, endpoint, correlation_id)

    try:
        content = await file_service.fetch_content(file_id)
    except HubSpotAPIError as e:
        logger.error(
            "Failed to fetch file %s: %s", file_id, e,
            extra={"upstream_status": e.status_code},
        )
        raise UpstreamError(message=str(e), details=e.details)
    except HTMLContentError as e:
        logger.error("File %s: %s", file_id, e)
        raise UpstreamError(message=str(e))

    audit.log_file_served(
        endpoint=endpoint,
        file_id=file_id,
        bytes_sent=len(content.data),
        correlation_id=correlation_id,
    )

    headers = {
        **SECURE_HEADERS,
        "Content-Disposition": content_disposition(content.filename),
    }
    return Response(content=content.data, media_type=content.media_type, headers=headers)
