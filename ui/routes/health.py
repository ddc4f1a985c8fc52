"""Health and observability routes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from core.health import Status
from utils.timestamp import format_timestamp

router = APIRouter(prefix="/api/v1", tags=["health"])

# These will be set by app.py
_generators = {}
_health_checker = None


def init(generators, health_checker):
    """Initialize with generator and health checker references."""
    global _generators, _health_checker
    _generators = generators
    _health_checker = health_checker


@router.get("/health")
async def health():
    """Health check with component status."""
    report = await _health_checker.check()
    status_code = 200 if report.status != Status.FAIL else 503
    return JSONResponse(content=report.to_dict(), status_code=status_code)


@router.get("/stats")
async def stats():
    """Per-format generator statistics."""
    return {
        "timestamp": format_timestamp(),
        "generators": {kind: generator.get_stats() for kind, generator in _generators.items()},
    }
