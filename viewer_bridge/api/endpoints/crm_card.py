"""
Legacy CRM card data-fetch endpoint.

HubSpot renders whatever this returns, so failures become an error card
rather than an HTTP error.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from ...audit import AuditLogger
from ...models import CrmCardRequest, CrmCardResponse
from ...services import CrmCardBuilder
from ...services.crm_card import error_card, no_contact_card
from ..deps import get_audit, get_correlation_id, get_crm_card_builder

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/crm-card",
    response_model=CrmCardResponse,
    response_model_exclude_none=True,
    summary="CRM Card",
    description="Document card for a contact with one viewer link per PDF.",
)
async def crm_card(
    request: Request,
    body: Optional[CrmCardRequest] = None,
    builder: CrmCardBuilder = Depends(get_crm_card_builder),
    audit: AuditLogger = Depends(get_audit),
    correlation_id: str = Depends(get_correlation_id),
) -> CrmCardResponse:
    contact_id = body.contact_id if body else None
    if not contact_id:
        return no_contact_card()

    try:
        card = await builder.build(contact_id)
    except Exception as e:
        logger.error("Failed to build CRM card for contact %s: %s", contact_id, e, exc_info=True)
        return error_card(str(e))

    actions = card.results[0].actions or []
    if actions:
        audit.log_token_minted(
            endpoint=request.url.path,
            correlation_id=correlation_id,
            contact_id=contact_id,
            token_count=len(actions),
        )
    return card
