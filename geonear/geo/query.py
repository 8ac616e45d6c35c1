"""
Proximity query building.

Turns a proximity request into a :class:`ProximityFragment`: filter criteria,
an ordering, loader options and the augmentation for the result rows. The
fragment is merged into an ordinary ``Select`` and never executes anything, so
the statement stays open to any further composition.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import and_, false, inspect, not_
from sqlalchemy.orm import load_only, with_expression
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from geonear.geo.augment import PROXIMITY_OPTION, Augmentation
from geonear.geo.calculations import bounding_box
from geonear.geo.lookups import Lookup, get_lookup
from geonear.geo.registry import GeocodingConfig
from geonear.geo.sql import bounding_box_predicate, distance_expression
from geonear.schemas.geo import BearingMode, BoundingBox, DistanceUnit, GeoPoint

logger = logging.getLogger(__name__)


class NearOptions(BaseModel):
    """
    Options of a "near" request.

    ``units`` and ``bearing`` fall back to the record type's config when left
    unset; ``bearing=False`` disables bearings.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    units: Optional[DistanceUnit] = Field(None, description="Unit of radius and reported distances")
    bearing: Optional[BearingMode] = Field(None, description="Bearing algorithm, or disabled")
    select: Optional[Tuple[Any, ...]] = Field(
        None, description="Columns to load; coordinates are always added"
    )
    expressions: Dict[str, Any] = Field(
        default_factory=dict,
        description="SQL expressions to load into query_expression() attributes, by name",
    )
    exclude: Any = Field(None, description="Record or primary key to leave out")
    order: bool = Field(True, description="Order by distance, nearest first")

    @field_validator("units", mode="before")
    @classmethod
    def parse_units(cls, v):
        if v is None:
            return None
        return DistanceUnit.parse(v)

    @field_validator("bearing", mode="before")
    @classmethod
    def parse_bearing(cls, v):
        if v is None:
            return None
        return BearingMode.parse(v)

    @field_validator("select", mode="before")
    @classmethod
    def as_tuple(cls, v):
        if v is None:
            return None
        if isinstance(v, (list, tuple)):
            return tuple(v)
        return (v,)


@dataclass(frozen=True)
class ProximityFragment:
    """Pieces a proximity request contributes to a statement."""

    criteria: Tuple[ColumnElement, ...] = ()
    order_by: Tuple[ColumnElement, ...] = ()
    loader_options: Tuple[Any, ...] = ()
    augmentation: Optional[Augmentation] = None
    populate_existing: bool = False

    @classmethod
    def empty(cls) -> "ProximityFragment":
        """A fragment matching no rows at all."""
        return cls(criteria=(false(),))

    def apply(self, stmt: Select) -> Select:
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        if self.order_by:
            stmt = stmt.order_by(*self.order_by)
        if self.loader_options:
            stmt = stmt.options(*self.loader_options)

        execution_options: Dict[str, Any] = {}
        if self.augmentation is not None:
            execution_options[PROXIMITY_OPTION] = self.augmentation
        if self.populate_existing:
            execution_options["populate_existing"] = True
        if execution_options:
            stmt = stmt.execution_options(**execution_options)
        return stmt


def geocode_address(address: str, lookup: Lookup) -> Optional[GeoPoint]:
    """
    Resolve an address, mapping every lookup failure to None.
    """
    if not address or not address.strip():
        return None
    try:
        point = lookup.search(address)
    except Exception as e:  # pylint: disable=broad-except
        logger.warning("Geocoding %r failed: %s", address, str(e))
        return None
    if point is None:
        logger.info("No coordinates found for %r", address)
    return point


def resolve_origin(origin: Any, config: GeocodingConfig) -> Optional[GeoPoint]:
    """
    Turn the origin of a proximity request into a point.

    The origin may be a GeoPoint, a ``(lat, lng)`` pair, a geocoded record or
    an address string. Anything unusable resolves to None.

    Raises:
        GeocodingConfigError: If an address must be geocoded and the configured
            lookup does not exist
    """
    if origin is None:
        return None
    if isinstance(origin, GeoPoint):
        return origin
    if isinstance(origin, str):
        return geocode_address(origin, get_lookup(config.lookup))

    to_coordinates = getattr(origin, "to_coordinates", None)
    if callable(to_coordinates):
        return to_coordinates()

    try:
        return GeoPoint.from_value(origin)
    except (TypeError, ValueError):
        logger.warning("Ignoring unusable proximity origin %r", origin)
        return None


def exclusion_predicate(model: type, exclude: Any) -> Optional[ColumnElement]:
    """Criterion leaving out one record, given the record itself or its primary key."""
    state = inspect(exclude, raiseerr=False)
    if state is not None and hasattr(state, "identity"):
        identity = state.identity
        if identity is None:
            # never flushed, so not in the table either
            return None
    elif isinstance(exclude, tuple):
        identity = exclude
    else:
        identity = (exclude,)

    primary_key = inspect(model).primary_key
    return not_(and_(*(column == value for column, value in zip(primary_key, identity))))


def coordinate_columns(model: type, config: GeocodingConfig):
    return getattr(model, config.latitude), getattr(model, config.longitude)


def build_near_fragment(
    model: type,
    config: GeocodingConfig,
    origin: Optional[GeoPoint],
    radius: float,
    options: NearOptions,
) -> ProximityFragment:
    """
    Fragment for "records within ``radius`` of ``origin``".

    Rows are pre-filtered by the bounding box of the circle, then by exact
    distance, and ordered nearest first with the primary key as tie-break.
    A missing origin or a negative or NaN radius gives the empty fragment.
    """
    radius = float(radius)
    if origin is None or math.isnan(radius) or radius < 0:
        logger.debug("Proximity query on %s matches nothing (origin=%s, radius=%s)", model.__name__, origin, radius)
        return ProximityFragment.empty()

    units = options.units or config.units
    bearing = options.bearing or config.bearing
    latitude, longitude = coordinate_columns(model, config)

    distance = distance_expression(latitude, longitude, origin, units)
    criteria = [
        bounding_box_predicate(latitude, longitude, bounding_box(origin, radius, units)),
        distance <= radius,
    ]
    if options.exclude is not None:
        excluded = exclusion_predicate(model, options.exclude)
        if excluded is not None:
            criteria.append(excluded)

    order_by: Tuple[ColumnElement, ...] = ()
    if options.order:
        order_by = (distance, *inspect(model).primary_key)

    loader_options = []
    if options.select:
        loader_options.append(load_only(*options.select, latitude, longitude))
    for name, expression in options.expressions.items():
        attribute = getattr(model, name, None)
        if attribute is None:
            raise ValueError(f"{model.__name__} has no query expression attribute {name!r}")
        loader_options.append(with_expression(attribute, expression))

    return ProximityFragment(
        criteria=tuple(criteria),
        order_by=order_by,
        loader_options=tuple(loader_options),
        augmentation=Augmentation(
            model=model,
            origin=origin,
            units=units,
            bearing=bearing,
            latitude=config.latitude,
            longitude=config.longitude,
        ),
        populate_existing=bool(options.expressions),
    )


def build_bounding_box_fragment(model: type, config: GeocodingConfig, bounds: Any) -> ProximityFragment:
    """
    Fragment for "records inside ``bounds``", given as ``[south, west, north, east]``.

    Empty, missing or malformed bounds give the empty fragment.
    """
    box = BoundingBox.from_value(bounds)
    if box is None:
        logger.debug("Bounding box query on %s matches nothing (bounds=%r)", model.__name__, bounds)
        return ProximityFragment.empty()

    latitude, longitude = coordinate_columns(model, config)
    return ProximityFragment(criteria=(bounding_box_predicate(latitude, longitude, box),))
