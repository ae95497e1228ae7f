from fastapi import APIRouter

from docflow.api.v1 import extraction, health

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health.router)
api_router.include_router(extraction.router)
