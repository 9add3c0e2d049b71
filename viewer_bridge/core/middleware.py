"""Security middleware for token redaction and response hardening.

Viewer tokens are bearer capabilities carried in the ``token`` query
parameter. They must never appear in logs (uvicorn access lines include the
full query string) and must not leak through the Referer header.
"""

import logging
import re
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Matches the value of a token query parameter in URLs and request lines
TOKEN_QUERY_PATTERN = re.compile(r"([?&]token=)[^&#\s\"']+")
TOKEN_REDACTED = "[TOKEN_REDACTED]"

# Paths whose URLs carry a viewer token
TOKEN_BEARING_PREFIXES = ("/viewer/", "/api/file/", "/api/hubspot/upload")

FRAME_ANCESTORS = (
    "frame-ancestors 'self' https://*.hubspot.com "
    "https://*.hubspotusercontent.com https://*.hs-sites.com"
)


def redact_token(text: str) -> str:
    """Replace token query values in ``text`` with [TOKEN_REDACTED]."""
    return TOKEN_QUERY_PATTERN.sub(rf"\1{TOKEN_REDACTED}", text)


def is_token_bearing_path(path: str) -> bool:
    """Check if a path is one that receives a viewer token."""
    return path.startswith(TOKEN_BEARING_PREFIXES)


class TokenRedactionFilter(logging.Filter):
    """Logging filter that redacts viewer tokens from log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact_token(record.msg)

        if record.args:
            if isinstance(record.args, tuple):
                record.args = tuple(
                    redact_token(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )
            elif isinstance(record.args, dict):
                record.args = {
                    k: redact_token(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }

        return True


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Attach a correlation id to every request and echo it in the response."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses.

    Headers added:
    - X-Content-Type-Options: nosniff
    - Content-Security-Policy: frame-ancestors limited to HubSpot, since the
      viewer is embedded as a CRM card iframe
    - X-XSS-Protection: 1; mode=block
    - Strict-Transport-Security: one year, including subdomains
    - Referrer-Policy: no-referrer on token-bearing paths
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Content-Security-Policy"] = FRAME_ANCESTORS
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )

        if is_token_bearing_path(request.url.path):
            response.headers["Referrer-Policy"] = "no-referrer"

        return response


def install_token_redaction_logging():
    """Install the redaction filter on loggers that may see request URLs."""
    redaction_filter = TokenRedactionFilter()

    logging.getLogger().addFilter(redaction_filter)

    for name in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "fastapi",
        "httpx",
        "viewer_bridge",
    ]:
        logging.getLogger(name).addFilter(redaction_filter)
