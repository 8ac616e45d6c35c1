"""
Location and Coordinate Type Definitions

Pydantic models and enums for representing geographic points, bounding boxes,
distance units and bearing modes used throughout the proximity engine.
"""

from enum import Enum
from typing import Any, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

# Earth radii of the spherical model, per unit
EARTH_RADIUS_MI = 3963.0
EARTH_RADIUS_KM = 6378.0


class DistanceUnit(str, Enum):
    """Distance units."""

    MILES = "mi"
    KILOMETERS = "km"

    @property
    def earth_radius(self) -> float:
        """Radius of the earth expressed in this unit."""
        if self is DistanceUnit.KILOMETERS:
            return EARTH_RADIUS_KM
        return EARTH_RADIUS_MI

    def convert(self, value: float, to: "DistanceUnit") -> float:
        """
        Convert a distance expressed in this unit into another unit.

        The factor is the ratio of the two earth radii, so a distance computed
        in one unit and converted always equals the distance computed directly
        in the other.
        """
        if to is self:
            return value
        return value * to.earth_radius / self.earth_radius

    @classmethod
    def parse(cls, value: Any) -> "DistanceUnit":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f"Unknown distance unit: {value!r}")


class BearingMode(str, Enum):
    """How (and whether) bearings are computed for proximity results."""

    LINEAR = "linear"
    SPHERICAL = "spherical"
    DISABLED = "disabled"

    @classmethod
    def parse(cls, value: Any) -> "BearingMode":
        """Accept a member, its name, or ``False``/``None`` meaning disabled."""
        if isinstance(value, cls):
            return value
        if value is None or value is False:
            return cls.DISABLED
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f"Unknown bearing mode: {value!r}")


def normalize_longitude(longitude: float) -> float:
    """Wrap a longitude into (-180, 180]."""
    if -180.0 < longitude <= 180.0:
        return longitude
    wrapped = (longitude + 180.0) % 360.0 - 180.0
    if wrapped <= -180.0:
        wrapped += 360.0
    return wrapped


class GeoPoint(BaseModel):
    """
    Geographic coordinates (latitude and longitude).
    """

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(
        ..., ge=-90.0, le=90.0, allow_inf_nan=False, description="Latitude in decimal degrees"
    )
    longitude: float = Field(
        ..., allow_inf_nan=False, description="Longitude in decimal degrees, wrapped into (-180, 180]"
    )

    @field_validator("longitude")
    @classmethod
    def wrap_longitude(cls, v: float) -> float:
        """Bring the longitude into (-180, 180]."""
        return normalize_longitude(v)

    @classmethod
    def from_value(cls, value: Any) -> "GeoPoint":
        """
        Build a point from another point, a ``(lat, lng)`` pair or a mapping.

        Raises:
            ValueError: If the value cannot be read as coordinates
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls(latitude=value.get("latitude"), longitude=value.get("longitude"))
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(latitude=value[0], longitude=value[1])
        raise ValueError(f"Cannot read coordinates from {value!r}")

    def to_tuple(self) -> tuple:
        return (self.latitude, self.longitude)

    def __str__(self) -> str:
        return f"({self.latitude}, {self.longitude})"


class BoundingBox(BaseModel):
    """
    Latitude/longitude rectangle.

    ``west > east`` means the box wraps across the antimeridian: the longitude
    range is ``[west, 180] + [-180, east]``.
    """

    model_config = ConfigDict(frozen=True)

    south: float = Field(..., ge=-90.0, le=90.0, description="Southern latitude boundary")
    west: float = Field(..., ge=-180.0, le=180.0, description="Western longitude boundary")
    north: float = Field(..., ge=-90.0, le=90.0, description="Northern latitude boundary")
    east: float = Field(..., ge=-180.0, le=180.0, description="Eastern longitude boundary")

    @model_validator(mode="after")
    def check_latitudes(self) -> "BoundingBox":
        if self.south > self.north:
            raise ValueError("South latitude must not exceed north latitude")
        return self

    @property
    def crosses_antimeridian(self) -> bool:
        return self.west > self.east

    @classmethod
    def from_value(cls, value: Any) -> Optional["BoundingBox"]:
        """
        Read ``[south, west, north, east]``.

        Empty, missing or malformed input gives ``None`` rather than an error.
        """
        if isinstance(value, cls):
            return value
        if not value or not isinstance(value, Sequence) or isinstance(value, str):
            return None
        if len(value) != 4:
            return None
        try:
            return cls(south=value[0], west=value[1], north=value[2], east=value[3])
        except ValidationError:
            return None

    def contains(self, point: GeoPoint) -> bool:
        """Check whether a point lies inside the box, honouring antimeridian wrap."""
        if not self.south <= point.latitude <= self.north:
            return False
        if self.crosses_antimeridian:
            return point.longitude >= self.west or point.longitude <= self.east
        return self.west <= point.longitude <= self.east

    def to_list(self) -> list:
        return [self.south, self.west, self.north, self.east]
