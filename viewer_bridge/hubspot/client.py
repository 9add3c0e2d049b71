"""
Async HubSpot REST client.

Covers only the calls the bridge needs:
- CRM v4 associations (contact -> notes)
- CRM v3 note properties (hs_attachment_ids)
- Files v3 metadata, signed URL and search
- File Manager v3 replace and upload
"""
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

SIGNED_CONTENT_USER_AGENT = "HubSpot-File-Service/1.0"


class HubSpotAPIError(Exception):
    """
    Raised when a HubSpot call fails.

    Attributes:
        status_code: Upstream HTTP status, or None for transport failures
        details: Upstream JSON body (or text) when available
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


@dataclass
class HubSpotFile:
    """File metadata as returned by the Files API."""
    id: str
    name: str
    extension: Optional[str] = None
    url: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "HubSpotFile":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name") or "",
            extension=data.get("extension"),
            url=data.get("url"),
            size=data.get("size"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "extension": self.extension,
            "url": self.url,
            "size": self.size,
        }


class HubSpotClient:
    """
    Thin async wrapper over the HubSpot REST API.

    Owns a single ``httpx.AsyncClient``; pass one in to share a transport
    (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.hubapi.com",
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            access_token: HubSpot private app token
            base_url: API base URL
            timeout: Request timeout in seconds
            http_client: Optional preconfigured client
        """
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self):
        await self._http.aclose()

    def _headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self._access_token}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = path if path.startswith("http") else f"{self._base_url}{path}"
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise HubSpotAPIError(f"HubSpot request failed: {e}") from e

        if response.is_error:
            try:
                details = response.json()
            except ValueError:
                details = response.text or None
            logger.warning(
                "HubSpot API error",
                extra={
                    "event_type": "hubspot.api_error",
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                },
            )
            raise HubSpotAPIError(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
                details=details,
            )
        return response

    async def _get_json(self, path: str, params: Optional[dict] = None) -> Dict[str, Any]:
        response = await self._request("GET", path, params=params, headers=self._headers())
        return _json_body(response, path)

    # =========================================================================
    # CRM
    # =========================================================================

    async def get_contact_note_ids(self, contact_id: str) -> List[str]:
        """List ids of notes associated with a contact."""
        data = await self._get_json(
            f"/crm/v4/objects/contacts/{contact_id}/associations/notes"
        )
        return [str(r["toObjectId"]) for r in data.get("results") or [] if "toObjectId" in r]

    async def get_note_attachment_ids(self, note_id: str) -> List[str]:
        """Read a note's ``hs_attachment_ids`` (semicolon separated)."""
        data = await self._get_json(
            f"/crm/v3/objects/notes/{note_id}",
            params={"properties": "hs_attachment_ids"},
        )
        raw = (data.get("properties") or {}).get("hs_attachment_ids")
        if not raw:
            return []
        return [part.strip() for part in raw.split(";") if part.strip()]

    # =========================================================================
    # Files
    # =========================================================================

    async def get_file(self, file_id: str) -> HubSpotFile:
        """Fetch file metadata."""
        data = await self._get_json(f"/files/v3/files/{file_id}")
        return HubSpotFile.from_api(data)

    async def get_signed_url(self, file_id: str) -> str:
        """Get a time-limited download URL for a file."""
        data = await self._get_json(f"/files/v3/files/{file_id}/signed-url")
        url = data.get("url")
        if not url:
            raise HubSpotAPIError("Signed URL response did not include a url", details=data)
        return url

    async def download(self, signed_url: str) -> bytes:
        """Download raw bytes from a signed URL (no API credentials sent)."""
        response = await self._request(
            "GET",
            signed_url,
            headers={"User-Agent": SIGNED_CONTENT_USER_AGENT},
        )
        return response.content

    async def search_files(self, properties: str = "id,name,extension,url,size") -> List[HubSpotFile]:
        """Search files in the portal's file manager."""
        data = await self._get_json("/files/v3/files/search", params={"properties": properties})
        return [HubSpotFile.from_api(f) for f in data.get("results") or []]

    async def replace_file(
        self,
        file_id: str,
        content: bytes,
        filename: str,
        content_type: str = "application/pdf",
    ) -> HubSpotFile:
        """Replace the content of an existing file in place."""
        response = await self._request(
            "POST",
            f"/filemanager/api/v3/files/{file_id}/replace",
            headers=self._headers(json_body=False),
            files={"file": (filename, content, content_type)},
            data={"options": json.dumps({"access": "PUBLIC_NOT_INDEXABLE"})},
        )
        return HubSpotFile.from_api(_first_file(_json_body(response, response.url.path)))

    async def upload_file(
        self,
        content: bytes,
        filename: str,
        folder_path: str,
        content_type: str = "application/pdf",
    ) -> HubSpotFile:
        """Upload a new private file into ``folder_path``."""
        response = await self._request(
            "POST",
            "/filemanager/api/v3/files/upload",
            headers=self._headers(json_body=False),
            files={"file": (filename, content, content_type)},
            data={
                "folderPath": folder_path,
                "options": json.dumps({"access": "HIDDEN_PRIVATE", "overwrite": False}),
            },
        )
        return HubSpotFile.from_api(_first_file(_json_body(response, response.url.path)))


def _json_body(response: httpx.Response, path: str) -> Dict[str, Any]:
    """Decode a JSON object body; anything else is an upstream error."""
    try:
        data = response.json()
    except ValueError as e:
        raise HubSpotAPIError(
            f"HubSpot returned a non-JSON body for {path}",
            status_code=response.status_code,
            details=response.text[:200] or None,
        ) from e
    if not isinstance(data, dict):
        raise HubSpotAPIError(
            f"HubSpot returned an unexpected body for {path}",
            status_code=response.status_code,
            details=data,
        )
    return data


def _first_file(data: Dict[str, Any]) -> Dict[str, Any]:
    """File Manager v3 answers either a file object or ``{"objects": [file]}``."""
    objects = data.get("objects")
    if isinstance(objects, list) and objects:
        return objects[0]
    return data
