"""
Pydantic schemas for API requests and responses.

Field names follow the camelCase the HubSpot UI extension and the viewer
page already consume.
"""
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TokenRequest(BaseModel):
    """Request to mint a viewer token for a file."""
    fileId: Optional[Union[str, int]] = Field(None, description="HubSpot file id")
    filename: Optional[str] = Field(None, description="Display name for the viewer")


class TokenResponse(BaseModel):
    """A freshly minted viewer token."""
    success: bool = True
    token: str = Field(..., description="64-char hex viewer token")
    expiresIn: int = Field(..., description="Seconds until the token expires")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "token": "9f2c0d1e" * 8,
                "expiresIn": 900,
            }
        }
    )


class ContactFile(BaseModel):
    """An attachment on one of a contact's notes."""
    id: str
    name: str
    extension: str = "unknown"
    url: Optional[str] = None
    size: Optional[int] = None
    viewerToken: str = Field(..., description="Time-limited token for this file")


class ContactFilesResponse(BaseModel):
    success: bool = True
    contactId: Optional[str] = None
    fileCount: int = 0
    files: List[ContactFile] = Field(default_factory=list)


class UploadedFile(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None
    size: Optional[int] = None
    extension: Optional[str] = None


class UploadResponse(BaseModel):
    success: bool = True
    updated: bool = Field(..., description="True when an existing file was replaced")
    message: str
    file: UploadedFile


class CrmCardRequest(BaseModel):
    """CRM card data-fetch payload sent by HubSpot."""
    hs_object_id: Optional[Union[str, int]] = None
    objectId: Optional[Union[str, int]] = None

    model_config = ConfigDict(extra="allow")

    @property
    def contact_id(self) -> Optional[str]:
        value = self.hs_object_id or self.objectId
        return str(value) if value else None


class CardProperty(BaseModel):
    label: str
    dataType: str = "STRING"
    value: str


class CardAction(BaseModel):
    type: str = "IFRAME"
    width: int
    height: int
    uri: str
    label: str
    associatedObjectProperties: List[str] = Field(default_factory=list)


class CardResult(BaseModel):
    objectId: int
    title: str
    properties: List[CardProperty] = Field(default_factory=list)
    actions: Optional[List[CardAction]] = None


class CrmCardResponse(BaseModel):
    results: List[CardResult]


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Overall status")
    message: str
    environment: str
    version: str
    security: Dict[str, bool]
    tokens: Dict[str, Any]
    timestamp: str
