"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from notegraph.backend.api.v1.endpoints import attachments, auth, connections, notes

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(notes.router, prefix="/notes", tags=["notes"])
router.include_router(connections.router, prefix="/connections", tags=["connections"])
router.include_router(attachments.router, prefix="/attachments", tags=["attachments"])
