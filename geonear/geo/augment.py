"""
Result augmentation for proximity queries.

A proximity statement carries an :class:`Augmentation` as an execution option.
Whatever the caller chains onto the statement afterwards (filters, ordering,
pagination, eager loads), the option travels with it, and when the statement
runs every matching entity in the result gets ``distance`` and, unless
disabled, ``bearing`` set as plain instance attributes. Those attributes are
not mapped, so the unit of work never sees or persists them. Geocoded
entities loaded by any other select have them removed again.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import event
from sqlalchemy.engine import Row
from sqlalchemy.orm import ORMExecuteState, Session

from geonear.geo.calculations import bearing_between, distance_between
from geonear.geo.registry import registry
from geonear.schemas.geo import BearingMode, DistanceUnit, GeoPoint

logger = logging.getLogger(__name__)

PROXIMITY_OPTION = "geonear_proximity"

AUGMENTED_ATTRIBUTES = ("distance", "bearing")


@dataclass(frozen=True)
class Augmentation:
    """What to compute for each row of a proximity query."""

    model: type
    origin: GeoPoint
    units: DistanceUnit
    bearing: BearingMode
    latitude: str = "latitude"
    longitude: str = "longitude"

    def coordinates_of(self, record: Any) -> Optional[GeoPoint]:
        lat = getattr(record, self.latitude, None)
        lng = getattr(record, self.longitude, None)
        if lat is None or lng is None:
            return None
        try:
            return GeoPoint(latitude=lat, longitude=lng)
        except ValueError:
            logger.warning("Ignoring invalid stored coordinates (%s, %s)", lat, lng)
            return None


def augment(record: Any, augmentation: Augmentation) -> None:
    """
    Attach ``distance`` and ``bearing`` from the origin to ``record``.

    Running it twice with the same origin gives the same values. With bearing
    disabled any bearing left over from an earlier query is removed, so reading
    it raises AttributeError.
    """
    point = augmentation.coordinates_of(record)
    if point is None:
        clear(record)
        return

    record.distance = distance_between(augmentation.origin, point, augmentation.units)
    if augmentation.bearing is BearingMode.DISABLED:
        vars(record).pop("bearing", None)
    else:
        record.bearing = bearing_between(augmentation.origin, point, augmentation.bearing)


def clear(record: Any) -> None:
    """Drop proximity attributes left over from an earlier query."""
    for name in AUGMENTED_ATTRIBUTES:
        vars(record).pop(name, None)


def _entities(row: Any, model):
    if isinstance(row, model):
        return (row,)
    if isinstance(row, (Row, tuple)):
        return tuple(value for value in row if isinstance(value, model))
    return ()


def _geocoded_models(orm_execute_state: ORMExecuteState):
    return tuple(
        mapper.class_
        for mapper in orm_execute_state.all_mappers
        if any(registry.declared(cls) is not None for cls in mapper.class_.__mro__)
    )


@event.listens_for(Session, "do_orm_execute")
def augment_proximity_results(orm_execute_state: ORMExecuteState):
    """
    Decorate entities loaded by statements that carry a proximity augmentation.

    Geocoded entities returned by any other select lose the distance and
    bearing of earlier proximity queries. Refreshes of expired attributes and
    streamed results are left alone.
    """
    if not orm_execute_state.is_select or orm_execute_state.is_column_load:
        return None

    augmentation = orm_execute_state.execution_options.get(PROXIMITY_OPTION)
    if augmentation is None:
        models = _geocoded_models(orm_execute_state)
        if not models or orm_execute_state.execution_options.get("yield_per"):
            return None
        frozen = orm_execute_state.invoke_statement().freeze()
        for row in frozen.data:
            for record in _entities(row, models):
                clear(record)
        return frozen()

    frozen = orm_execute_state.invoke_statement().freeze()
    count = 0
    for row in frozen.data:
        for record in _entities(row, augmentation.model):
            augment(record, augmentation)
            count += 1
    logger.debug("Augmented %d %s rows from %s", count, augmentation.model.__name__, augmentation.origin)
    return frozen()
