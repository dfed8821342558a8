from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from api.deps import get_db
from veryfiable import __version__
from veryfiable.core.database import Database
from veryfiable.core.time import utc_now_iso

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    database: str
    version: str
    timestamp: str
    error: str | None = None


@router.get(
    "/health",
    response_model=HealthResponse,
    response_model_exclude_none=True,
    responses={503: {"model": HealthResponse}},
)
async def health(db: Database = Depends(get_db)) -> HealthResponse | JSONResponse:
    try:
        connected = await db.test_connection()
    except Exception as e:
        logger.warning("Health check failed: %s", e)
        unhealthy = HealthResponse(
            status="unhealthy",
            database="disconnected",
            version=__version__,
            timestamp=utc_now_iso(),
            error=str(e),
        )
        return JSONResponse(status_code=503, content=unhealthy.model_dump())

    return HealthResponse(
        status="healthy",
        database="connected" if connected else "disconnected",
        version=__version__,
        timestamp=utc_now_iso(),
    )
