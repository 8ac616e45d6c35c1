"""
Venue Schemas

Pydantic models for venue listings and proximity search responses.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from geonear.geo.calculations import compass_point
from geonear.schemas.geo import BoundingBox, DistanceUnit, GeoPoint


class VenueResponse(BaseModel):
    """A venue as stored."""

    id: int
    type: str
    name: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = ConfigDict(from_attributes=True)


class NearbyVenueResponse(VenueResponse):
    """A venue returned by a proximity search."""

    distance: float = Field(..., description="Distance from the search origin")
    bearing: Optional[float] = Field(
        None, description="Bearing from the search origin in degrees, absent when disabled"
    )

    @computed_field
    @property
    def direction(self) -> Optional[str]:
        """Compass point matching the bearing, e.g. "SE"."""
        if self.bearing is None:
            return None
        return compass_point(self.bearing)


class ProximitySearchResponse(BaseModel):
    """Response schema for proximity search endpoints."""

    origin: Optional[GeoPoint] = Field(None, description="Resolved search origin, if any")
    radius: float
    units: DistanceUnit
    venues: List[NearbyVenueResponse]


class BoundingBoxSearchResponse(BaseModel):
    """Response schema for bounding box search."""

    bounds: BoundingBox
    venues: List[VenueResponse]
