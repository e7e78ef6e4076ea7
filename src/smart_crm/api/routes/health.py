"""Health check endpoint."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    """Check the backend answers; report whether AI matching is configured."""
    backend_ok = await request.app.state.backend.verify_connectivity()
    body = {
        "status": "ok" if backend_ok else "unhealthy",
        "backend": backend_ok,
        "openai_configured": request.app.state.openai is not None,
    }
    if not backend_ok:
        return JSONResponse(status_code=503, content=body)
    return body
