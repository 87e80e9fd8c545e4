from fastapi import APIRouter

from app.api.v1 import revisions

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(revisions.router)
api_router.include_router(revisions.preference_router)
