"""Liveness and database connectivity probe."""

from datetime import UTC, datetime

from fastapi import APIRouter, status
from loguru import logger

from itemkit.api.utils.responses import ORJSONResponse
from itemkit.infrastructure.database.dependencies import DatabaseHandle

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(database: DatabaseHandle) -> ORJSONResponse:
    """Report whether the database answers.

    Used by container health checks and load balancers. Returns 200 with
    ``status: ok`` or 503 with ``status: error``.
    """
    is_healthy, error_msg = await database.check_connection()
    timestamp = datetime.now(UTC).isoformat()

    if not is_healthy:
        logger.warning("Database health check failed: {}", error_msg)
        return ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "error", "timestamp": timestamp},
        )

    return ORJSONResponse(content={"status": "ok", "timestamp": timestamp})
