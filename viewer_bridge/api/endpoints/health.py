"""
Health check and static branding endpoints.

No authentication required.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from ...core.config import Settings
from ...models import HealthResponse
from ...tokens import ViewerTokenStore
from ...tokens.scheduler import get_scheduler_status
from ..deps import get_app_settings, get_token_store

router = APIRouter()

LOGO_SVG = (
    '<svg width="800" height="800" viewBox="0 0 800 800" fill="none" '
    'xmlns="http://www.w3.org/2000/svg">\n'
    '<path d="M212.5 437.538C191.781 437.538 175 420.757 175 400.038C175 379.319 '
    '191.781 362.538 212.5 362.538C233.219 362.538 250 379.319 250 400.038C250 '
    '420.757 233.219 437.538 212.5 437.538ZM587.5 362.538C566.781 362.538 550 '
    '379.319 550 400.038C550 420.757 566.781 437.538 587.5 437.538C608.219 437.538 '
    '625 420.757 625 400.038C625 379.319 608.219 362.538 587.5 362.538ZM232.263 '
    '491.838C216.4 505.151 214.319 528.813 227.631 544.676C240.944 560.538 264.606 '
    '562.619 280.469 549.307C296.331 535.994 298.413 512.332 285.1 496.469C271.788 '
    '480.607 248.125 478.526 232.263 491.838ZM567.738 308.238C583.6 294.926 585.681 '
    '271.263 572.369 255.401C559.056 239.538 535.394 237.457 519.531 250.769C503.669 '
    '264.082 501.587 287.744 514.9 303.607C528.212 319.469 551.875 321.551 567.738 '
    '308.238ZM280.469 250.788C264.606 237.476 240.944 239.538 227.631 255.419C214.319 '
    '271.301 216.381 294.944 232.263 308.257C248.144 321.569 271.788 319.507 285.1 '
    '303.626C298.413 287.744 296.35 264.101 280.469 250.788ZM567.738 491.838C551.875 '
    '478.526 528.212 480.588 514.9 496.469C501.587 512.332 503.65 535.994 519.531 '
    '549.307C535.394 562.619 559.056 560.557 572.369 544.676C585.681 528.813 583.619 '
    '505.151 567.738 491.838ZM471.981 411.476C456.119 398.163 432.456 400.226 419.144 '
    '416.107C405.831 431.988 407.894 455.632 423.775 468.944C439.656 482.257 463.3 '
    '480.194 476.613 464.313C489.925 448.432 487.862 424.788 471.981 411.476ZM376.225 '
    '331.132C360.362 317.819 336.7 319.882 323.387 335.763C310.075 351.644 312.138 '
    '375.288 328.019 388.601C343.9 401.913 367.544 399.851 380.856 383.969C394.169 '
    '368.088 392.106 344.444 376.225 331.132Z" fill="#0B5FFF"/>\n'
    '</svg>'
)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns service status, environment and live token count.",
)
async def health_check(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    token_store: ViewerTokenStore = Depends(get_token_store),
) -> HealthResponse:
    tokens = {"live": len(token_store)}

    scheduler = getattr(request.app.state, "scheduler", None)
    if scheduler is not None:
        tokens["scheduler"] = get_scheduler_status(scheduler)

    return HealthResponse(
        status="ok",
        message="Backend service is running",
        environment=settings.ENVIRONMENT,
        version=settings.APP_VERSION,
        security={"hubspotAuth": settings.hubspot_configured},
        tokens=tokens,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


@router.get("/logo.svg", include_in_schema=False)
async def logo() -> Response:
    return Response(
        content=LOGO_SVG,
        media_type="image/svg+xml",
        headers={"Cache-Control": "public, max-age=31536000"},
    )
