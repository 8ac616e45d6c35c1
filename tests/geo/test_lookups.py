"""
Unit tests for the lookup registry and the in-memory stub lookup.
"""

import pytest

from geonear.geo.lookups import TestLookup, get_lookup, register_lookup, test_lookup
from geonear.geo.registry import GeocodingConfigError
from geonear.schemas.geo import GeoPoint


@pytest.fixture
def lookup():
    return TestLookup()


def test_stub_answers_query(lookup):
    """Test that a stubbed address resolves to its point"""
    lookup.add_stub("Hempstead, NY", (40.7062128, -73.6187397))

    assert lookup.search("Hempstead, NY") == GeoPoint(latitude=40.7062128, longitude=-73.6187397)
    assert lookup.search("Somewhere else") is None


def test_default_stub(lookup):
    """Test the fallback answer for unknown queries"""
    lookup.set_default_stub((1.0, 2.0))

    assert lookup.search("anything") == GeoPoint(latitude=1.0, longitude=2.0)


def test_stubbed_exception_is_raised(lookup):
    """Test that stubbing an exception makes the lookup fail"""
    lookup.add_stub("Hempstead, NY", RuntimeError("over query limit"))

    with pytest.raises(RuntimeError):
        lookup.search("Hempstead, NY")


def test_delete_and_reset(lookup):
    """Test removing stubs"""
    lookup.add_stub("a", (1.0, 1.0))
    lookup.add_stub("b", (2.0, 2.0))
    lookup.set_default_stub((3.0, 3.0))

    lookup.delete_stub("a")
    assert lookup.search("a") == GeoPoint(latitude=3.0, longitude=3.0)

    lookup.reset()
    assert lookup.search("b") is None


def test_get_lookup_by_name(lookup):
    """Test the lookup registry"""
    register_lookup("offline", lookup)

    assert get_lookup("offline") is lookup
    assert get_lookup("test") is test_lookup


def test_get_unknown_lookup():
    """Test that an unknown lookup name is a config error"""
    with pytest.raises(GeocodingConfigError):
        get_lookup("carrier-pigeon")
