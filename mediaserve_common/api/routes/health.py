"""Health & Readiness Probes.

Invariants:
    - GET /health/ always returns 200 if the process is up (liveness)
    - GET /health/ready returns 503 if an attached database is unreachable
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Liveness probe, wrapped in the request context like any handler."""
    helper = request.app.state.request_context
    service = request.app.state.service
    context = helper.begin(request)
    payload = {
        "status": "healthy",
        "timers": len(service.timers),
        **context.data,
    }
    return await helper.finish(context, lambda: payload)


@router.get("/ready")
async def readiness_check(request: Request):
    service = request.app.state.service
    if service.database is None:
        return {"status": "ready", "checks": {"database": "not_configured"}}
    if not await service.database.health_check():
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "reason": "database_unavailable"},
        )
    return {"status": "ready", "checks": {"database": "healthy"}}
