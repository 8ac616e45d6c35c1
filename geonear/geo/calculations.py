"""
Spherical-earth geometry.

Distances, bearings and bounding boxes on a sphere whose radius depends on the
requested unit. Everything here is a pure function of its arguments and is
safe to call from any thread.
"""

import math
from typing import Iterable, Sequence

from geonear.schemas.geo import BearingMode, BoundingBox, DistanceUnit, GeoPoint, normalize_longitude

COMPASS_POINTS = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


class Distance(float):
    """A distance value tagged with the unit it is expressed in."""

    units: DistanceUnit

    def __new__(cls, value: float, units: DistanceUnit = DistanceUnit.MILES):
        obj = super().__new__(cls, value)
        obj.units = units
        return obj

    def to(self, units: DistanceUnit) -> "Distance":
        return Distance(self.units.convert(float(self), units), units)

    def __repr__(self) -> str:
        return f"Distance({float(self)!r}, {self.units.value!r})"


def latitude_degree_distance(units: DistanceUnit) -> float:
    """Length of one degree of latitude."""
    return units.earth_radius * math.pi / 180.0


def longitude_degree_distance(latitude: float, units: DistanceUnit) -> float:
    """Length of one degree of longitude at the given latitude."""
    return latitude_degree_distance(units) * math.cos(math.radians(latitude))


def convert_distance(value: float, from_units: DistanceUnit, to_units: DistanceUnit) -> float:
    return from_units.convert(value, to_units)


def normalize_bearing(degrees: float) -> float:
    """Wrap an angle into [0, 360)."""
    result = degrees % 360.0
    # -1e-15 % 360.0 rounds up to 360.0
    if result >= 360.0:
        result = 0.0
    return result


def distance_between(
    a: GeoPoint, b: GeoPoint, units: DistanceUnit = DistanceUnit.MILES
) -> Distance:
    """
    Great-circle distance between two points.

    Uses the haversine form of the spherical law of cosines. The intermediate
    term is clamped to [0, 1] so coincident or antipodal points never fall
    outside the domain of ``asin``; identical points give exactly 0.
    """
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = lat2 - lat1
    dlng = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    h = min(1.0, max(0.0, h))
    return Distance(2.0 * units.earth_radius * math.asin(math.sqrt(h)), units)


def bearing_between(
    a: GeoPoint, b: GeoPoint, mode: BearingMode = BearingMode.LINEAR
) -> float:
    """
    Compass bearing from ``a`` towards ``b`` in degrees, within [0, 360).

    LINEAR treats latitude/longitude as a flat grid; SPHERICAL gives the
    initial great-circle bearing.

    Raises:
        ValueError: If the mode is DISABLED
    """
    if mode is BearingMode.LINEAR:
        dlng = normalize_longitude(b.longitude - a.longitude)
        dlat = b.latitude - a.latitude
        return normalize_bearing(math.degrees(math.atan2(dlng, dlat)))

    if mode is BearingMode.SPHERICAL:
        lat1 = math.radians(a.latitude)
        lat2 = math.radians(b.latitude)
        dlng = math.radians(b.longitude - a.longitude)
        y = math.sin(dlng) * math.cos(lat2)
        x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlng)
        return normalize_bearing(math.degrees(math.atan2(y, x)))

    raise ValueError("Bearing calculation is disabled")


def bounding_box(
    point: GeoPoint, radius: float, units: DistanceUnit = DistanceUnit.MILES
) -> BoundingBox:
    """
    Smallest lat/lng rectangle containing every point within ``radius``.

    Longitude bounds are wrapped into (-180, 180]; when the box crosses the
    antimeridian the result has ``west > east``. A box reaching a pole, or
    wide enough to circle the globe, spans every longitude.
    """
    radius = max(0.0, float(radius))
    dlat = radius / latitude_degree_distance(units)
    south = max(-90.0, point.latitude - dlat)
    north = min(90.0, point.latitude + dlat)

    if south <= -90.0 or north >= 90.0:
        return BoundingBox(south=south, west=-180.0, north=north, east=180.0)

    dlng = radius / longitude_degree_distance(point.latitude, units)
    if dlng >= 180.0:
        return BoundingBox(south=south, west=-180.0, north=north, east=180.0)

    return BoundingBox(
        south=south,
        west=normalize_longitude(point.longitude - dlng),
        north=north,
        east=normalize_longitude(point.longitude + dlng),
    )


def compass_point(bearing: float, points: Sequence[str] = COMPASS_POINTS) -> str:
    """Name of the compass sector a bearing falls into, e.g. ``"NE"``."""
    segment = 360.0 / len(points)
    index = int(((normalize_bearing(bearing) + segment / 2) % 360.0) // segment)
    return points[index % len(points)]


def geographic_center(points: Iterable[GeoPoint]) -> GeoPoint:
    """
    Center of a set of points, averaged on the unit sphere.

    Raises:
        ValueError: If no points are given
    """
    xs, ys, zs = [], [], []
    for point in points:
        lat = math.radians(point.latitude)
        lng = math.radians(point.longitude)
        xs.append(math.cos(lat) * math.cos(lng))
        ys.append(math.cos(lat) * math.sin(lng))
        zs.append(math.sin(lat))

    if not xs:
        raise ValueError("Cannot compute the center of an empty set of points")

    x = sum(xs) / len(xs)
    y = sum(ys) / len(ys)
    z = sum(zs) / len(zs)
    lng = math.atan2(y, x)
    lat = math.atan2(z, math.sqrt(x * x + y * y))
    return GeoPoint(latitude=math.degrees(lat), longitude=math.degrees(lng))
