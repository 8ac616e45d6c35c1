"""
Venues API Endpoint

Provides REST API for proximity and bounding box search over venues.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from geonear.core.config import settings
from geonear.db.database import get_db
from geonear.schemas.geo import BearingMode, BoundingBox, DistanceUnit, GeoPoint
from geonear.schemas.venue import (
    BoundingBoxSearchResponse,
    NearbyVenueResponse,
    ProximitySearchResponse,
    VenueResponse,
)
from geonear.services.venue_service import venue_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/near", response_model=ProximitySearchResponse)
def search_near(
    address: Optional[str] = Query(None, description="Address to search around"),
    latitude: Optional[float] = Query(None, ge=-90.0, le=90.0),
    longitude: Optional[float] = Query(None, ge=-180.0, le=180.0),
    radius: float = Query(settings.DEFAULT_RADIUS, ge=0.0),
    units: DistanceUnit = Query(DistanceUnit.MILES),
    bearing: BearingMode = Query(BearingMode.LINEAR),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """
    Search venues near an address or a latitude/longitude pair.

    An address that cannot be geocoded yields an empty result, not an error.
    """
    if address is not None:
        origin = address
    elif latitude is not None and longitude is not None:
        origin = GeoPoint(latitude=latitude, longitude=longitude)
    else:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Provide either an address or both latitude and longitude",
        )

    logger.info("Proximity search: origin=%s, radius=%s %s", origin, radius, units.value)

    point, venues = venue_service.search_near(
        db, origin, radius, units=units, bearing=bearing, limit=limit, offset=offset
    )
    return ProximitySearchResponse(
        origin=point,
        radius=radius,
        units=units,
        venues=[NearbyVenueResponse.model_validate(venue) for venue in venues],
    )


@router.get("/within", response_model=BoundingBoxSearchResponse)
def search_within(
    south: float = Query(...),
    west: float = Query(...),
    north: float = Query(...),
    east: float = Query(...),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """
    Search venues inside a bounding box.

    ``west`` greater than ``east`` means the box wraps across the antimeridian.
    """
    try:
        bounds = BoundingBox(south=south, west=west, north=north, east=east)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid bounding box: {e.errors()[0]['msg']}",
        ) from e

    venues = venue_service.search_within(db, bounds, limit=limit)
    return BoundingBoxSearchResponse(
        bounds=bounds,
        venues=[VenueResponse.model_validate(venue) for venue in venues],
    )


@router.get("/{venue_id}/nearbys", response_model=ProximitySearchResponse)
def get_nearbys(
    venue_id: int,
    radius: float = Query(settings.DEFAULT_RADIUS, ge=0.0),
    units: DistanceUnit = Query(DistanceUnit.MILES),
    bearing: BearingMode = Query(BearingMode.LINEAR),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    List the venues near another venue, excluding the venue itself.
    """
    venue, nearbys = venue_service.get_nearbys(
        db, venue_id, radius, units=units, bearing=bearing, limit=limit
    )
    return ProximitySearchResponse(
        origin=venue.to_coordinates(),
        radius=radius,
        units=units,
        venues=[NearbyVenueResponse.model_validate(nearby) for nearby in nearbys],
    )
