"""Central router that includes all sub-routers."""

from fastapi import APIRouter

from echosphere.api.organizations import router as organizations_router
from echosphere.api.feedback import router as feedback_router
from echosphere.api.analysis import router as analysis_router
from echosphere.api.uploads import router as uploads_router
from echosphere.api.billing import router as billing_router
from echosphere.api.geocode import router as geocode_router
from echosphere.api.auth import router as auth_router
from echosphere.api.websocket import router as websocket_router
from echosphere.api.pages import router as pages_router

api_router = APIRouter()
api_router.include_router(organizations_router)
api_router.include_router(feedback_router)
api_router.include_router(analysis_router)
api_router.include_router(uploads_router)
api_router.include_router(billing_router)
api_router.include_router(geocode_router)
api_router.include_router(auth_router)
api_router.include_router(websocket_router)
# Catch-all /{page_id} goes last
api_router.include_router(pages_router)
