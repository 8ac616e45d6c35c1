"""
Geocoding lookups.

A lookup turns an address string into a point. The proximity engine only ever
talks to lookups through :meth:`Lookup.search` and looks them up by the name
stored in a record type's :class:`~geonear.geo.registry.GeocodingConfig`.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional, Union

from geonear.geo.registry import GeocodingConfigError
from geonear.schemas.geo import GeoPoint

logger = logging.getLogger(__name__)


class Lookup(ABC):
    """Resolves address strings to coordinates."""

    name: str = ""

    @abstractmethod
    def search(self, query: str) -> Optional[GeoPoint]:
        """
        Geocode an address.

        Returns None if the address cannot be resolved. Provider failures are
        raised as exceptions and left to the caller.
        """


StubResult = Union[GeoPoint, Exception, None]


class TestLookup(Lookup):
    """
    Lookup answering from in-memory stubs, for tests and offline use.

    A stub is a point, ``None`` (not found) or an exception to raise.
    """

    __test__ = False
    name = "test"

    def __init__(self):
        self._stubs: Dict[str, StubResult] = {}
        self._default: StubResult = None
        self._lock = threading.Lock()

    def add_stub(self, query: str, result: StubResult) -> None:
        if isinstance(result, (list, tuple)):
            result = GeoPoint.from_value(result)
        with self._lock:
            self._stubs[query] = result

    def set_default_stub(self, result: StubResult) -> None:
        if isinstance(result, (list, tuple)):
            result = GeoPoint.from_value(result)
        self._default = result

    def delete_stub(self, query: str) -> None:
        with self._lock:
            self._stubs.pop(query, None)

    def reset(self) -> None:
        with self._lock:
            self._stubs.clear()
            self._default = None

    def search(self, query: str) -> Optional[GeoPoint]:
        result = self._stubs.get(query, self._default)
        if isinstance(result, Exception):
            raise result
        return result


test_lookup = TestLookup()

_lookups: Dict[str, Lookup] = {test_lookup.name: test_lookup}


def register_lookup(name: str, lookup: Lookup) -> None:
    _lookups[name] = lookup
    logger.debug("Registered geocoding lookup %r", name)


def get_lookup(name: str) -> Lookup:
    """
    Lookup registered under ``name``.

    Raises:
        GeocodingConfigError: If no lookup has that name
    """
    lookup = _lookups.get(name)
    if lookup is None:
        raise GeocodingConfigError(f"Unknown geocoding lookup: {name!r}")
    return lookup
