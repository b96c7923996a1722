import logging
from typing import Any, Dict

from fastapi import APIRouter

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health(deep: bool = False) -> Dict[str, Any]:
    """Liveness check; ``?deep=true`` also verifies the Gemini key."""
    if not deep:
        return {"status": "ok"}

    from ..services.gemini import health_check as gemini_health
    gemini_healthy = await gemini_health()
    if not gemini_healthy:
        logger.warning("Gemini health check failed")
        return {"status": "degraded", "services": {"gemini": False}}
    return {"status": "ok", "services": {"gemini": True}}
