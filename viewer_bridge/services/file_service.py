"""
File service that orchestrates HubSpot access and viewer-token minting.

Main entry point for the file endpoints.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from viewer_bridge.hubspot import HubSpotAPIError, HubSpotClient, HubSpotFile
from viewer_bridge.models import ContactFile
from viewer_bridge.tokens import ViewerTokenStore

logger = logging.getLogger(__name__)

MIME_TYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "txt": "text/plain",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
DEFAULT_MIME_TYPE = "application/octet-stream"

# Bytes inspected when checking whether a signed URL returned an HTML page
HTML_SNIFF_BYTES = 100


class FileServiceError(Exception):
    """Base exception for file service errors."""


class HTMLContentError(FileServiceError):
    """Raised when HubSpot returns an HTML page instead of file content."""


@dataclass
class FileContent:
    """Raw file content ready to stream to the viewer."""
    data: bytes
    filename: str
    media_type: str


def mime_type_for(extension: Optional[str]) -> str:
    """Map a file extension to a MIME type."""
    if not extension:
        return DEFAULT_MIME_TYPE
    return MIME_TYPES.get(extension.lower().lstrip("."), DEFAULT_MIME_TYPE)


def looks_like_html(data: bytes) -> bool:
    """Check whether the start of a payload is an HTML document."""
    head = data[:HTML_SNIFF_BYTES].decode("utf-8", errors="ignore")
    return "<!DOCTYPE" in head or "<html" in head


class FileService:
    """
    Service for HubSpot file access on behalf of the viewer.

    Orchestrates:
    - Contact attachment discovery (notes -> attachment ids -> files)
    - Token minting per discovered file
    - Signed-URL content retrieval
    - Upload relay (replace or create)
    """

    def __init__(
        self,
        hubspot: HubSpotClient,
        token_store: ViewerTokenStore,
        upload_folder_path: str = "/nutrient-edited-files",
    ):
        self._hubspot = hubspot
        self._tokens = token_store
        self._upload_folder_path = upload_folder_path

    async def list_contact_files(self, contact_id: str) -> List[ContactFile]:
        """
        List a contact's note attachments, minting a viewer token for each.

        Notes or files that fail to load are logged and skipped; only the
        association lookup itself is fatal.

        Raises:
            HubSpotAPIError: If the contact's note associations cannot be read
        """
        note_ids = await self._hubspot.get_contact_note_ids(contact_id)
        files: List[ContactFile] = []

        for note_id in note_ids:
            try:
                attachment_ids = await self._hubspot.get_note_attachment_ids(note_id)
            except HubSpotAPIError as e:
                logger.warning("Skipping note %s: %s", note_id, e)
                continue

            for file_id in attachment_ids:
                try:
                    hs_file = await self._hubspot.get_file(file_id)
                except HubSpotAPIError as e:
                    logger.warning("Skipping attachment %s on note %s: %s", file_id, note_id, e)
                    continue

                if not hs_file.id:
                    logger.warning(
                        "Skipping attachment %s on note %s: metadata has no id", file_id, note_id
                    )
                    continue

                files.append(self._contact_file(hs_file))

        return files

    def _contact_file(self, hs_file: HubSpotFile) -> ContactFile:
        token = self._tokens.mint(hs_file.id, hs_file.name)
        return ContactFile(
            id=hs_file.id,
            name=hs_file.name,
            extension=hs_file.extension or "unknown",
            url=hs_file.url,
            size=hs_file.size,
            viewerToken=token,
        )

    async def fetch_content(self, file_id: str) -> FileContent:
        """
        Download a file through its signed URL.

        Raises:
            HubSpotAPIError: If any HubSpot call fails
            HTMLContentError: If the signed URL served an HTML page
        """
        hs_file = await self._hubspot.get_file(file_id)
        signed_url = await self._hubspot.get_signed_url(file_id)
        data = await self._hubspot.download(signed_url)

        if looks_like_html(data):
            raise HTMLContentError("Received HTML instead of file content from HubSpot")

        return FileContent(
            data=data,
            filename=hs_file.name or f"{file_id}",
            media_type=mime_type_for(hs_file.extension),
        )

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
        file_id: Optional[str] = None,
    ) -> Tuple[bool, HubSpotFile]:
        """
        Upload edited content back to HubSpot.

        Args:
            content: File bytes
            filename: Name to store the file under
            content_type: MIME type, defaults to application/pdf
            file_id: Existing file to replace; None uploads a new file

        Returns:
            Tuple of (replaced_existing, file metadata)
        """
        content_type = content_type or "application/pdf"

        if file_id:
            hs_file = await self._hubspot.replace_file(
                file_id, content, filename, content_type
            )
            return True, hs_file

        hs_file = await self._hubspot.upload_file(
            content, filename, self._upload_folder_path, content_type
        )
        return False, hs_file
