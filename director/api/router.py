"""
Main API router. Mounts all sub-routers.
"""

from fastapi import APIRouter

router = APIRouter()


# ── Health ───────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    return {"status": "ok", "service": "photo-director"}


# ── V1 routes ────────────────────────────────────────────────────────

from .workflow import workflow_router

router.include_router(workflow_router, prefix="/v1")
