"""API models and schemas."""
from .schemas import (
    CardAction,
    CardProperty,
    CardResult,
    ContactFile,
    ContactFilesResponse,
    CrmCardRequest,
    CrmCardResponse,
    HealthResponse,
    TokenRequest,
    TokenResponse,
    UploadedFile,
    UploadResponse,
)

__all__ = [
    "TokenRequest",
    "TokenResponse",
    "ContactFile",
    "ContactFilesResponse",
    "UploadedFile",
    "UploadResponse",
    "CrmCardRequest",
    "CrmCardResponse",
    "CardResult",
    "CardProperty",
    "CardAction",
    "HealthResponse",
]
