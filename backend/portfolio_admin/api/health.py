"""Health check endpoint with key-value store connectivity check.

Accessible without authentication so container orchestration can probe it.
"""

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

from portfolio_admin.core.kv_store import KeyValueStore

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    store: str


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={
        status.HTTP_200_OK: {"description": "Service is healthy"},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "Key-value store is unreachable"},
    },
)
async def health_check(request: Request, response: Response) -> HealthResponse:
    """
    Health check endpoint.

    Reports the key-value store state: "connected", "unavailable", or
    "unconfigured". Returns 503 if a configured store does not answer.
    """
    store: KeyValueStore | None = request.app.state.kv_store

    if store is None:
        store_state = "unconfigured"
    elif (await store.ping()).ok:
        store_state = "connected"
    else:
        store_state = "unavailable"

    # Set appropriate status code for container orchestration
    if store_state == "unavailable":
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="unhealthy" if store_state == "unavailable" else "healthy",
        version=request.app.state.settings.app_version,
        store=store_state,
    )
