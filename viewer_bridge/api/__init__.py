"""HTTP API."""
from fastapi import APIRouter

from .endpoints import crm_card, files, health, oauth, tokens, upload, viewer

router = APIRouter()

# Include all endpoint routers
router.include_router(health.router, tags=["Health"])
router.include_router(oauth.router, tags=["OAuth"])
router.include_router(viewer.router, tags=["Viewer"])
router.include_router(tokens.router, prefix="/api", tags=["Tokens"])
router.include_router(files.router, prefix="/api", tags=["Files"])
router.include_router(upload.router, prefix="/api/hubspot", tags=["Files"])
router.include_router(crm_card.router, prefix="/api", tags=["CRM Card"])
