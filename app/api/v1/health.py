"""Health check endpoint with record storage availability."""

from fastapi import APIRouter, Depends

from app.core.config import settings
from app.core.storage import get_store
from app.schemas.health import HealthResponse
from app.services.record_store import RecordStore

router = APIRouter()


@router.get("/", response_model=HealthResponse)
def get_health(store: RecordStore = Depends(get_store)) -> HealthResponse:
    """
    Return service health status and whether the record directories are writable.
    Used by load balancers and monitoring.
    """
    storage_status = "available" if store.is_available() else "unavailable"

    return HealthResponse(
        status="ok",
        environment=settings.APP_ENV,
        storage=storage_status,
    )
