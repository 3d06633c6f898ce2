"""Health check endpoints for Docker/Kubernetes probes."""

from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from spotsync import __version__

router = APIRouter()


class LivenessStatus(BaseModel):
    """Simple liveness probe response."""

    status: str = Field(description="alive or dead")
    timestamp: str = Field(description="ISO timestamp")
    version: str = Field(default=__version__, description="Application version")


# Hey future me - liveness only. There is no database and Spotify being down must NOT get the
# container restarted, so no dependency checks in here.
@router.get("/live", response_model=LivenessStatus)
async def liveness_probe() -> LivenessStatus:
    """Liveness probe for Kubernetes/Docker.

    Returns 200 if the application process is running.
    """
    return LivenessStatus(
        status="alive",
        timestamp=datetime.now(UTC).isoformat(),
    )
