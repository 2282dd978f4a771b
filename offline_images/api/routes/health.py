"""Health check endpoint."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/healthz")
async def health() -> dict:
    """Liveness check. Returns 200 if the process is running."""
    return {"status": "ok"}
