"""
CallScreen - Health Check Endpoints

System health monitoring endpoints for load balancers, monitoring,
and operational visibility.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request

from callscreen import __version__
from callscreen.config import Settings, get_settings

router = APIRouter(prefix="/api/system", tags=["system"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@router.get("/health")
async def health_check(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Overall system health check.

    Returns:
        - status: "healthy" or "degraded"
        - checks: Individual component statuses
        - timestamp: Current server time

    Used by load balancers and monitoring systems.
    """
    pipeline = getattr(request.app.state, "pipeline", None)
    checks = {}

    checks["pipeline"] = {
        "status": "healthy" if pipeline is not None else "unavailable",
    }

    checks["reputation"] = {
        "status": "healthy" if settings.phoneblock_bearer_token else "degraded",
        "message": None if settings.phoneblock_bearer_token else "API token not configured",
    }

    checks["notifications"] = {
        "status": "healthy" if pipeline and pipeline.dispatcher.channels else "disabled",
        "channels": [c.name for c in pipeline.dispatcher.channels] if pipeline else [],
    }

    checks["telephony"] = {
        "status": "healthy" if settings.enable_telephony_integration else "disabled",
    }

    all_healthy = all(
        c.get("status") in ("healthy", "disabled")
        for c in checks.values()
    )

    return {
        "status": "healthy" if all_healthy else "degraded",
        "timestamp": _now(),
        "version": __version__,
        "environment": settings.app_env,
        "checks": checks,
    }


@router.get("/ready")
async def readiness_check(request: Request) -> dict:
    """
    Readiness probe for Kubernetes/container orchestration.

    Ready once the pipeline has been created at startup.
    """
    return {
        "ready": getattr(request.app.state, "pipeline", None) is not None,
        "timestamp": _now(),
    }


@router.get("/live")
async def liveness_check() -> dict:
    """
    Liveness probe for Kubernetes/container orchestration.

    Returns 200 if the service is alive.
    """
    return {
        "alive": True,
        "timestamp": _now(),
    }


@router.get("/config")
async def config_info(
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Non-sensitive configuration information.

    Useful for debugging and operational visibility.
    Excludes the API token and webhook URLs.
    """
    config = settings.screening_config()
    return {
        "environment": settings.app_env,
        "debug": settings.app_debug,
        "log_level": settings.app_log_level,
        "screening": {
            "api_base": config.api_base,
            "token_configured": bool(config.bearer_token),
            "min_votes": config.min_votes,
            "negative_ratings": sorted(config.negative_ratings),
            "country_code": config.country_code,
            "timeout_seconds": config.timeout_seconds,
        },
        "notifications": {
            "discord_enabled": config.rich_endpoint is not None,
            "generic_enabled": config.compact_endpoint is not None,
        },
        "features": {
            "telephony_enabled": settings.enable_telephony_integration,
            "anonymize_logs": settings.anonymize_logs,
        },
        "timestamp": _now(),
    }
