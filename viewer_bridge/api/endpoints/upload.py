"""
Upload relay.

Receives the PDF exported by the viewer and either replaces the original
HubSpot file in place (``fileId`` given, token must be bound to it) or
uploads it as a new file. Always answers JSON so the viewer can show the
outcome.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from ...audit import AuditLogger
from ...core.config import Settings
from ...core.errors import APIException, ErrorCode, UpstreamError, ValidationError
from ...hubspot import HubSpotAPIError
from ...models import UploadedFile, UploadResponse
from ...services import FileService
from ...tokens import ViewerTokenStore
from ..deps import (
    check_viewer_token,
    get_app_settings,
    get_audit,
    get_correlation_id,
    get_file_service,
    get_token_store,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload Edited File",
    description="Replace a HubSpot file with edited content, or upload a new one.",
)
async def upload_file(
    token: Optional[str] = Query(None, description="Viewer token"),
    file: Optional[UploadFile] = File(None),
    filename: Optional[str] = Form(None),
    fileId: Optional[str] = Form(None),
    token_store: ViewerTokenStore = Depends(get_token_store),
    file_service: FileService = Depends(get_file_service),
    settings: Settings = Depends(get_app_settings),
    audit: AuditLogger = Depends(get_audit),
    correlation_id: str = Depends(get_correlation_id),
) -> UploadResponse:
    endpoint = "/api/hubspot/upload"
    file_id = fileId or None
    check_viewer_token(token_store, token, file_id, endpoint, correlation_id)

    if file is None:
        logger.error("Upload failed: no file in request")
        raise ValidationError(
            message="No file provided",
            hint='File must be uploaded as multipart/form-data with field name "file"',
            code=ErrorCode.MISSING_REQUIRED_FIELD,
        )

    content = await file.read()
    if not content:
        logger.error("Upload failed: file is empty")
        raise ValidationError(
            message="File buffer is empty",
            hint="The uploaded file appears to be empty or corrupted",
        )
    if len(content) > settings.max_upload_bytes:
        raise APIException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            code=ErrorCode.FILE_TOO_LARGE,
            message=f"File exceeds the {settings.MAX_UPLOAD_MB} MB upload limit",
        )

    name = filename or file.filename or "document.pdf"

    try:
        replaced, hs_file = await file_service.upload(
            content,
            name,
            content_type=file.content_type,
            file_id=file_id,
        )
    except HubSpotAPIError as e:
        logger.error(
            "HubSpot upload failed: %s", e,
            extra={"upstream_status": e.status_code, "file_id": file_id},
        )
        raise UpstreamError(
            message=str(e),
            details=e.details,
            hint="Check backend logs for detailed error information",
        )

    audit.log_file_uploaded(
        endpoint=endpoint,
        file_id=hs_file.id or (file_id or ""),
        replaced=replaced,
        correlation_id=correlation_id,
    )

    message = (
        "File replaced successfully in HubSpot" if replaced
        else "New file uploaded successfully to HubSpot"
    )
    return UploadResponse(
        updated=replaced,
        message=message,
        file=UploadedFile(**hs_file.to_dict()),
    )
