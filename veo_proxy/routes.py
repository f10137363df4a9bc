from datetime import datetime, timezone

from fastapi import APIRouter

from .imagen.route import router as imagen_router
from .veo.route import router as veo_router

router = APIRouter()


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a trailing Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@router.get("/health")
async def health():
    return {"status": "ok", "timestamp": utc_timestamp()}


router.include_router(veo_router)
router.include_router(imagen_router)
