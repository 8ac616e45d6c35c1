from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from geonear.core.config import settings
from geonear.db import database
from geonear.db.database import get_db
from geonear.schemas.health import HealthCheckResponse
from geonear.services.geocoding_service import geocoding_service

router = APIRouter()


@router.get("/health")
def health_check(db: Session = Depends(get_db)) -> HealthCheckResponse:
    """
    Health check endpoint that verifies:
    - Database connectivity
    - Geocoding API availability

    Returns 200 if all services are healthy, 503 if any service is down.
    """
    database_health = database.health_check(db)
    geocoding_service_health = geocoding_service.health_check()

    overall_healthy = all([database_health.healthy, geocoding_service_health.healthy])

    response = HealthCheckResponse(
        service="geonear",
        version=settings.VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        healthy=overall_healthy,
        database=database_health,
        geocoding_service=geocoding_service_health,
    )

    if overall_healthy:
        return response
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=response.model_dump()
    )
