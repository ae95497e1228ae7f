from fastapi import APIRouter

from docflow.config import settings

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    return {"status": "healthy", "service": "docflow", "version": settings.app_version}
