"""Rate limiting for token minting.

Minting is the only endpoint that creates server-side state on demand, so it
is the one that gets a limit. Keyed by client IP.

slowapi hands a dynamic limit provider only the rate-limit key, never the
request. The mint key therefore carries the limit configured on the app that
served the request, so each app built by ``create_app`` enforces its own
``TOKEN_MINT_RATE_LIMIT``.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from viewer_bridge.core.errors import ErrorCode, create_error_response

limiter = Limiter(key_func=get_remote_address)

# Limit strings never contain this character
_KEY_SEPARATOR = "|"


def token_mint_key(request: Request) -> str:
    """Rate-limit key: the app's mint limit plus the client address."""
    mint_limit = request.app.state.settings.TOKEN_MINT_RATE_LIMIT
    return f"{mint_limit}{_KEY_SEPARATOR}{get_remote_address(request)}"


def token_mint_limit(key: str) -> str:
    """Recover the configured mint limit from a ``token_mint_key`` key."""
    return key.split(_KEY_SEPARATOR, 1)[0]


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    """Return the standard error envelope for 429s."""
    return JSONResponse(
        status_code=429,
        content=create_error_response(
            code=ErrorCode.RATE_LIMIT_EXCEEDED,
            message=f"Rate limit exceeded: {exc.detail}",
            hint="Wait a moment before requesting another viewer token",
            correlation_id=getattr(request.state, "correlation_id", None),
        ),
    )
