"""
Geocoded records.

:class:`Geocoded` is mixed into declarative models declared with
:func:`~geonear.geo.registry.geocoded_by`. Its class-level queries return
``Select`` statements that the caller composes further and executes; none of
them touch a session.
"""

import logging
from typing import Any, Optional

from sqlalchemy import false, null, select
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from geonear.core.config import settings
from geonear.geo.calculations import Distance, bearing_between, distance_between
from geonear.geo.lookups import get_lookup
from geonear.geo.query import (
    NearOptions,
    build_bounding_box_fragment,
    build_near_fragment,
    coordinate_columns,
    geocode_address,
    resolve_origin,
)
from geonear.geo.registry import GeocodingConfig, registry
from geonear.geo.sql import distance_expression, geocoded_predicate, not_geocoded_predicate
from geonear.schemas.geo import BearingMode, DistanceUnit, GeoPoint
from geonear.services import geocoding_service as _  # noqa: F401 - registers the HTTP lookup

logger = logging.getLogger(__name__)


class Geocoded:
    """Proximity queries and geocoding for a mapped class."""

    @classmethod
    def geocoding_config(cls) -> GeocodingConfig:
        """
        Geocoding config of this type or its nearest configured ancestor.

        Raises:
            GeocodingConfigError: If no config is declared anywhere in the hierarchy
        """
        return registry.resolve(cls)

    @classmethod
    def near(cls, origin: Any, radius: Optional[float] = None, **options) -> Select:
        """
        Records within ``radius`` of ``origin``, nearest first.

        Args:
            origin: Address string, ``(lat, lng)`` pair, GeoPoint or geocoded record
            radius: Search radius, defaults to ``settings.DEFAULT_RADIUS``
            **options: See :class:`~geonear.geo.query.NearOptions`

        Returns:
            A ``Select`` whose rows carry ``distance`` and ``bearing`` attributes.
            It selects nothing when the origin cannot be resolved.
        """
        config = cls.geocoding_config()
        near_options = NearOptions(**options)
        point = resolve_origin(origin, config)
        if radius is None:
            radius = settings.DEFAULT_RADIUS
        fragment = build_near_fragment(cls, config, point, radius, near_options)
        return fragment.apply(select(cls))

    @classmethod
    def within_bounding_box(cls, bounds: Any) -> Select:
        """
        Records inside ``[south, west, north, east]``.

        ``west > east`` wraps across the antimeridian. Empty or missing bounds
        select nothing.
        """
        fragment = build_bounding_box_fragment(cls, cls.geocoding_config(), bounds)
        return fragment.apply(select(cls))

    @classmethod
    def distance_from_sql(cls, origin: Any, units: Optional[DistanceUnit] = None) -> ColumnElement:
        """
        SQL expression for the distance from ``origin`` to each record.

        Usable in any statement that involves this model, e.g. to order the
        rows of a join. An unresolvable origin gives a constant NULL.
        """
        config = cls.geocoding_config()
        point = resolve_origin(origin, config)
        if point is None:
            return null()
        latitude, longitude = coordinate_columns(cls, config)
        return distance_expression(
            latitude, longitude, point, DistanceUnit.parse(units) if units else config.units
        )

    @classmethod
    def geocoded(cls) -> Select:
        latitude, longitude = coordinate_columns(cls, cls.geocoding_config())
        return select(cls).where(geocoded_predicate(latitude, longitude))

    @classmethod
    def not_geocoded(cls) -> Select:
        latitude, longitude = coordinate_columns(cls, cls.geocoding_config())
        return select(cls).where(not_geocoded_predicate(latitude, longitude))

    def to_coordinates(self) -> Optional[GeoPoint]:
        """Stored coordinates as a point, or None if not geocoded."""
        config = self.geocoding_config()
        lat = getattr(self, config.latitude)
        lng = getattr(self, config.longitude)
        if lat is None or lng is None:
            return None
        try:
            return GeoPoint(latitude=lat, longitude=lng)
        except ValueError:
            logger.warning("%s has invalid coordinates (%s, %s)", type(self).__name__, lat, lng)
            return None

    def is_geocoded(self) -> bool:
        return self.to_coordinates() is not None

    def geocode(self) -> Optional[GeoPoint]:
        """
        Look up this record's address and store the coordinates found.

        Returns the point, or None if the address could not be resolved, in
        which case the coordinates are left untouched.
        """
        config = self.geocoding_config()
        if config.address is None:
            return None
        address = getattr(self, config.address)
        point = geocode_address(address or "", get_lookup(config.lookup))
        if point is not None:
            setattr(self, config.latitude, point.latitude)
            setattr(self, config.longitude, point.longitude)
        return point

    def distance_to(self, other: Any, units: Optional[DistanceUnit] = None) -> Optional[Distance]:
        """Distance to another point, record or address; None if either end is unknown."""
        config = self.geocoding_config()
        here = self.to_coordinates()
        there = resolve_origin(other, config)
        if here is None or there is None:
            return None
        return distance_between(here, there, DistanceUnit.parse(units) if units else config.units)

    def bearing_to(self, other: Any, mode: Optional[BearingMode] = None) -> Optional[float]:
        config = self.geocoding_config()
        here = self.to_coordinates()
        there = resolve_origin(other, config)
        if here is None or there is None:
            return None
        return bearing_between(here, there, BearingMode.parse(mode) if mode is not None else config.bearing)

    def bearing_from(self, other: Any, mode: Optional[BearingMode] = None) -> Optional[float]:
        config = self.geocoding_config()
        here = self.to_coordinates()
        there = resolve_origin(other, config)
        if here is None or there is None:
            return None
        return bearing_between(there, here, BearingMode.parse(mode) if mode is not None else config.bearing)

    def nearbys(self, radius: Optional[float] = None, **options) -> Select:
        """
        Other records of the same type within ``radius`` of this one.

        The record itself is always excluded; an ungeocoded record has no
        neighbours.
        """
        point = self.to_coordinates()
        if point is None:
            return select(type(self)).where(false())
        options.setdefault("exclude", self)
        return type(self).near(point, radius, **options)
