from fastapi import APIRouter

from app.ai.config import load_ai_config
from app.core.config import settings
from app.history.db import get_ai_run_counts

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the analyzer.")
def health_check():
    ai_config = load_ai_config()
    return {
        "status": "healthy",
        "ai_provider": ai_config.provider,
        "ai_configured": bool(ai_config.api_key),
        "history_enabled": settings.history_enabled,
        "ai_runs": get_ai_run_counts(),
    }
