from fastapi import APIRouter, Depends, HTTPException, status
from typing import Dict, Any
from datetime import datetime

from ai.conversation import ChatEngine
from ...core.config import settings
from ...core.engine import get_chat_engine
from ...core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/health", summary="Health Check")
async def health_check() -> Dict[str, Any]:
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT
    }


@router.get("/ready", summary="Readiness Check")
async def readiness_check(engine: ChatEngine = Depends(get_chat_engine)) -> Dict[str, Any]:
    """Readiness check with engine statistics and system metrics."""

    checks = {
        "chat_engine": False,
        "llm": None,
        "overall": False
    }

    try:
        engine_stats = engine.get_stats()
        checks["chat_engine"] = True
    except Exception as e:
        logger.error(f"Chat engine check failed: {e}")
        engine_stats = {}

    strategy = engine.composer.strategy
    client = getattr(strategy, "client", None)
    if client is not None:
        checks["llm"] = await client.health_check()
        if not checks["llm"]:
            logger.warning("LLM backend unreachable; replies will use fallback text")

    checks["overall"] = checks["chat_engine"]

    try:
        system_metrics = engine.monitor.sample_system_metrics()
    except Exception as e:
        logger.error(f"System metrics sampling failed: {e}")
        system_metrics = {}

    response_data = {
        "status": "ready" if checks["overall"] else "not_ready",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": checks,
        "engine": engine_stats,
        "system": system_metrics,
        "operations": {
            name: stats.to_dict()
            for name, stats in engine.monitor.get_operation_stats().items()
        },
        "recommendations": engine.monitor.get_performance_recommendations(),
        "service": settings.PROJECT_NAME,
        "environment": settings.ENVIRONMENT
    }

    if not checks["overall"]:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=response_data
        )

    return response_data


@router.get("/version", summary="Version Information")
async def version_info() -> Dict[str, Any]:
    """Get version and build information."""
    return {
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "api_version": settings.API_V1_STR,
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "response_strategy": settings.CHAT_RESPONSE_STRATEGY,
        "timestamp": datetime.utcnow().isoformat()
    }
