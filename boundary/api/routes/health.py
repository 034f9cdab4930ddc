"""Health Probe — liveness endpoint for container orchestration.

Invariants:
    - GET /api/v1/health/ always returns 200 if the process is up
    - Response uses the same envelope as every other endpoint
"""

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from boundary.core.envelope import build_envelope
from boundary.core.result import Ok

router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """Basic liveness probe. Returns 200 if the process is up."""
    envelope = build_envelope(Ok({
        "status": "healthy",
        "service": request.app.title,
        "version": request.app.version,
    }))
    return JSONResponse(status_code=status.HTTP_200_OK, content=envelope.to_wire())
