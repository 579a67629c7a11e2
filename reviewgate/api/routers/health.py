"""Health check endpoints for the review gate.

Provides Kubernetes-compatible health probes:
- /health: Basic health check
- /health/live: Liveness probe (is the app running?)
- /health/ready: Readiness probe (can the gate reach its store and provider?)
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from reviewgate import __version__
from reviewgate.core.errors import GateError
from reviewgate.providers.registry import describe_backends
from reviewgate.store.base import ItemStore

router = APIRouter(tags=["health"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_store(store: Optional[ItemStore]) -> Dict[str, Any]:
    """Check item store connectivity."""
    if store is None:
        # Stored on the items themselves; reachable whenever the provider is
        return {"status": "healthy", "backend": "issue_property"}
    try:
        reachable = store.ping()
    except GateError as e:
        return {"status": "unhealthy", "backend": store.store_name, "error": e.message}
    if not reachable:
        return {"status": "unhealthy", "backend": store.store_name, "error": "ping failed"}
    return {"status": "healthy", "backend": store.store_name}


def check_provider(request: Request) -> Dict[str, Any]:
    """Check that a provider can be built from the current settings."""
    settings = request.app.state.settings
    if settings.provider_backend == "jira" and not settings.jira_base_url:
        return {"status": "unhealthy", "error": "jira_base_url is not configured"}
    try:
        provider = request.app.state.provider_factory(None)
    except ValueError as e:
        return {"status": "unhealthy", "error": str(e)}
    try:
        return {"status": "healthy", "backend": provider.provider_name}
    finally:
        provider.close()


@router.get("/health")
async def health_check(request: Request):
    """
    Basic health check endpoint.

    Returns 200 if the application is running.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "backends": describe_backends(request.app.state.settings),
        "timestamp": _now(),
    }


@router.get("/health/live")
async def liveness_probe():
    """
    Kubernetes liveness probe.

    This check is fast and does not depend on external services.
    """
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"status": "alive", "timestamp": _now()},
    )


@router.get("/health/ready")
def readiness_probe(request: Request):
    """
    Kubernetes readiness probe.

    Returns 503 when the item store or the provider is unavailable.
    """
    checks = {
        "store": check_store(request.app.state.store),
        "provider": check_provider(request),
    }

    unhealthy = [name for name, check in checks.items() if check["status"] == "unhealthy"]

    if unhealthy:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "checks": checks,
                "failed": unhealthy,
                "timestamp": _now(),
            },
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={"status": "ready", "checks": checks, "timestamp": _now()},
    )
