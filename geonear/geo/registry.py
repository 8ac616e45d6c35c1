"""
Geocoding configuration registry.

A record type declares its geocoding options once with :func:`geocoded_by`.
Subtypes that declare nothing of their own resolve to the nearest ancestor's
declaration. Resolution results, failures included, are cached per type until
:meth:`GeocodingRegistry.reset` is called.
"""

import logging
import threading
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from geonear.core.config import settings
from geonear.schemas.geo import BearingMode, DistanceUnit

logger = logging.getLogger(__name__)


class GeocodingConfigError(Exception):
    """Raised when geocoding is misconfigured for a record type."""


class GeocodingConfig(BaseModel):
    """Field mapping and provider options for a geocoded record type."""

    model_config = ConfigDict(frozen=True)

    address: Optional[str] = Field(None, description="Attribute holding the address to geocode")
    latitude: str = Field("latitude", description="Attribute holding the latitude")
    longitude: str = Field("longitude", description="Attribute holding the longitude")
    lookup: str = Field(default_factory=lambda: settings.GEOCODER_LOOKUP)
    units: DistanceUnit = Field(default_factory=lambda: DistanceUnit.parse(settings.DEFAULT_UNITS))
    bearing: BearingMode = Field(default_factory=lambda: BearingMode.parse(settings.DEFAULT_BEARING))

    @field_validator("units", mode="before")
    @classmethod
    def parse_units(cls, v):
        return DistanceUnit.parse(v)

    @field_validator("bearing", mode="before")
    @classmethod
    def parse_bearing(cls, v):
        return BearingMode.parse(v)


class _Unconfigured:
    """Cached marker for a type with no config anywhere in its ancestry."""

    def __init__(self, message: str):
        self.message = message


class GeocodingRegistry:
    """
    Process-wide map from record type to its geocoding config.

    Reads of an already resolved type take no lock. The first resolution of a
    type runs under a lock so concurrent callers all observe the same object.
    """

    def __init__(self):
        self._declared: Dict[type, GeocodingConfig] = {}
        self._resolved: Dict[type, Union[GeocodingConfig, _Unconfigured]] = {}
        self._lock = threading.Lock()

    def declare(self, cls: type, config: GeocodingConfig) -> None:
        """Attach a config to a type; earlier resolutions are discarded."""
        with self._lock:
            self._declared[cls] = config
            self._resolved.clear()
        logger.debug("Declared geocoding config for %s", cls.__name__)

    def declared(self, cls: type) -> Optional[GeocodingConfig]:
        """The config declared on exactly this type, ignoring ancestors."""
        return self._declared.get(cls)

    def resolve(self, cls: type) -> GeocodingConfig:
        """
        Config for a type, walking up its ancestors.

        Raises:
            GeocodingConfigError: If neither the type nor any ancestor declares one
        """
        cached = self._resolved.get(cls)
        if cached is None:
            with self._lock:
                cached = self._resolved.get(cls)
                if cached is None:
                    cached = self._search(cls)
                    self._resolved[cls] = cached

        if isinstance(cached, _Unconfigured):
            raise GeocodingConfigError(cached.message)
        return cached

    def is_resolved(self, cls: type) -> bool:
        return cls in self._resolved

    def reset(self) -> None:
        """Forget every resolution; declarations are kept."""
        with self._lock:
            self._resolved.clear()

    def _search(self, cls: type) -> Union[GeocodingConfig, _Unconfigured]:
        for ancestor in cls.__mro__:
            config = self._declared.get(ancestor)
            if config is not None:
                if ancestor is not cls:
                    logger.debug(
                        "%s inherits geocoding config from %s", cls.__name__, ancestor.__name__
                    )
                return config
        logger.error("No geocoding config declared for %s or its ancestors", cls.__name__)
        return _Unconfigured(f"No geocoding config declared for {cls.__name__} or its ancestors")


registry = GeocodingRegistry()


def geocoded_by(address: Optional[str] = None, **options):
    """
    Class decorator declaring how a record type is geocoded.

    Example:
        @geocoded_by("address", lookup="nominatim", units="km")
        class Venue(Geocoded, Base):
            ...
    """
    config = GeocodingConfig(address=address, **options)

    def decorator(cls):
        registry.declare(cls, config)
        return cls

    return decorator
