"""
Unit tests for geocoding config declaration and resolution.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from geonear.geo.registry import GeocodingConfig, GeocodingConfigError, GeocodingRegistry, geocoded_by, registry
from geonear.models.venue import Arena, Temple, Venue
from geonear.schemas.geo import BearingMode, DistanceUnit


class Shape:
    pass


class Circle(Shape):
    pass


class Dot(Circle):
    pass


@pytest.fixture
def local_registry():
    return GeocodingRegistry()


def test_subtypes_resolve_to_ancestor_config():
    """Test that single-table subtypes share the base type's config object"""
    assert Temple.geocoding_config() is Venue.geocoding_config()
    assert Arena.geocoding_config() is Venue.geocoding_config()


def test_venue_config_fields():
    """Test the field mapping declared on Venue"""
    config = Venue.geocoding_config()

    assert config.address == "address"
    assert config.latitude == "latitude"
    assert config.longitude == "longitude"
    assert config.lookup == "test"


def test_resolution_is_cached():
    """Test that resolving a type twice returns the same object"""
    first = registry.resolve(Temple)

    assert registry.is_resolved(Temple)
    assert registry.resolve(Temple) is first


def test_nearest_ancestor_wins(local_registry):
    """Test that a closer declaration shadows a farther one"""
    base = GeocodingConfig(address="street")
    middle = GeocodingConfig(address="line1", units="km")
    local_registry.declare(Shape, base)
    local_registry.declare(Circle, middle)

    assert local_registry.resolve(Dot) is middle
    assert local_registry.resolve(Shape) is base
    assert local_registry.declared(Dot) is None


def test_unconfigured_type_raises(local_registry):
    """Test that a type with no config anywhere is an error"""
    with pytest.raises(GeocodingConfigError):
        local_registry.resolve(Dot)


def test_unconfigured_result_is_cached(local_registry):
    """Test that a failed resolution is remembered and raised again"""
    with pytest.raises(GeocodingConfigError):
        local_registry.resolve(Dot)

    assert local_registry.is_resolved(Dot)
    with pytest.raises(GeocodingConfigError, match="Dot"):
        local_registry.resolve(Dot)


def test_declare_discards_cached_resolutions(local_registry):
    """Test that a late declaration is picked up"""
    with pytest.raises(GeocodingConfigError):
        local_registry.resolve(Dot)

    config = GeocodingConfig()
    local_registry.declare(Shape, config)

    assert local_registry.resolve(Dot) is config


def test_reset_forgets_resolutions(local_registry):
    """Test that reset clears the cache but keeps declarations"""
    config = GeocodingConfig()
    local_registry.declare(Shape, config)
    local_registry.resolve(Dot)

    local_registry.reset()

    assert not local_registry.is_resolved(Dot)
    assert local_registry.resolve(Dot) is config


def test_concurrent_resolution_converges(local_registry):
    """Test that threads racing on the first resolution all see one object"""
    local_registry.declare(Shape, GeocodingConfig(address="street"))
    barrier = threading.Barrier(8)

    def resolve():
        barrier.wait()
        return local_registry.resolve(Dot)

    with ThreadPoolExecutor(max_workers=8) as executor:
        results = list(executor.map(lambda _: resolve(), range(8)))

    assert all(result is results[0] for result in results)
    assert results[0].address == "street"


def test_concurrent_failures_all_raise(local_registry):
    """Test that every racing thread gets the config error"""
    barrier = threading.Barrier(4)

    def resolve():
        barrier.wait()
        try:
            local_registry.resolve(Dot)
        except GeocodingConfigError:
            return "error"
        return "ok"

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(lambda _: resolve(), range(4)))

    assert results == ["error"] * 4


def test_config_parses_options():
    """Test that units and bearing are read from strings"""
    config = GeocodingConfig(address="street", units="KM", bearing="spherical")

    assert config.units is DistanceUnit.KILOMETERS
    assert config.bearing is BearingMode.SPHERICAL


def test_config_bearing_false_disables():
    """Test that bearing=False turns bearings off"""
    assert GeocodingConfig(bearing=False).bearing is BearingMode.DISABLED


def test_config_rejects_unknown_units():
    """Test that invalid units fail at declaration time"""
    with pytest.raises(ValueError):
        GeocodingConfig(units="parsecs")


def test_geocoded_by_declares_on_class():
    """Test the class decorator"""

    @geocoded_by("street", latitude="lat", longitude="lng", units="km")
    class Depot:
        pass

    config = registry.declared(Depot)

    assert config is not None
    assert config.address == "street"
    assert config.latitude == "lat"
    assert config.longitude == "lng"
    assert config.units is DistanceUnit.KILOMETERS
    assert registry.resolve(Depot) is config
