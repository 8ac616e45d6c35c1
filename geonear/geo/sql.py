"""
SQL renderings of the spherical geometry.

These mirror :mod:`geonear.geo.calculations` so rows are filtered and ordered
by the same distance that is reported on them afterwards.
"""

import math

from sqlalchemy import Float, and_, case, func, or_
from sqlalchemy.sql.elements import ColumnElement

from geonear.schemas.geo import BoundingBox, DistanceUnit, GeoPoint

RADIANS_PER_DEGREE = math.pi / 180.0


def _unit_interval(expr):
    return case((expr > 1.0, 1.0), (expr < 0.0, 0.0), else_=expr)


def distance_expression(
    latitude, longitude, origin: GeoPoint, units: DistanceUnit = DistanceUnit.MILES
) -> ColumnElement:
    """
    Haversine distance from ``origin`` to the point stored in two columns.

    Rows with a NULL coordinate produce NULL, so they never satisfy a radius
    comparison.
    """
    origin_lat = math.radians(origin.latitude)
    origin_lng = math.radians(origin.longitude)

    sin_half_dlat = func.sin((latitude * RADIANS_PER_DEGREE - origin_lat) / 2.0, type_=Float)
    sin_half_dlng = func.sin((longitude * RADIANS_PER_DEGREE - origin_lng) / 2.0, type_=Float)
    cos_lat = func.cos(latitude * RADIANS_PER_DEGREE, type_=Float)

    h = sin_half_dlat * sin_half_dlat + math.cos(origin_lat) * cos_lat * sin_half_dlng * sin_half_dlng
    central_angle = func.asin(func.sqrt(_unit_interval(h), type_=Float), type_=Float)
    return 2.0 * units.earth_radius * central_angle


def bounding_box_predicate(latitude, longitude, box: BoundingBox) -> ColumnElement:
    """
    Rows whose coordinates fall inside ``box``.

    A box crossing the antimeridian matches either longitude range instead of
    both.
    """
    latitude_range = latitude.between(box.south, box.north)
    if box.crosses_antimeridian:
        longitude_range = or_(longitude >= box.west, longitude <= box.east)
    else:
        longitude_range = longitude.between(box.west, box.east)
    return and_(latitude_range, longitude_range)


def geocoded_predicate(latitude, longitude) -> ColumnElement:
    return and_(latitude.isnot(None), longitude.isnot(None))


def not_geocoded_predicate(latitude, longitude) -> ColumnElement:
    return or_(latitude.is_(None), longitude.is_(None))
