"""Viewer token store and expiry scheduling."""
from .store import (
    MissingTokenError,
    TokenExpiredError,
    TokenMismatchError,
    TokenNotFoundError,
    TokenRecord,
    TokenValidationError,
    VIEWER_TOKEN_TTL,
    ViewerTokenStore,
)

__all__ = [
    "ViewerTokenStore",
    "TokenRecord",
    "TokenValidationError",
    "MissingTokenError",
    "TokenNotFoundError",
    "TokenExpiredError",
    "TokenMismatchError",
    "VIEWER_TOKEN_TTL",
]
