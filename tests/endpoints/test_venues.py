"""
Tests for the venue search endpoints.
"""

from fastapi.testclient import TestClient

from geonear.geo.lookups import test_lookup

HEMPSTEAD = (40.7062128, -73.6187397)
HOLLYWOOD = (34.09833, -118.32583)


def test_near_by_coordinates(client: TestClient, venues):
    """Test proximity search around a latitude/longitude pair."""
    response = client.get(
        "/api/v1/venues/near",
        params={"latitude": HOLLYWOOD[0], "longitude": HOLLYWOOD[1], "radius": 20},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["origin"] == {"latitude": HOLLYWOOD[0], "longitude": HOLLYWOOD[1]}
    assert data["units"] == "mi"
    assert [venue["name"] for venue in data["venues"]] == ["The Great Western Forum"]

    forum = data["venues"][0]
    assert abs(forum["distance"] - 9.75) < 0.5
    assert forum["bearing"] is not None
    assert forum["direction"] == "S"


def test_near_by_address(client: TestClient, venues):
    """Test proximity search around a geocoded address."""
    test_lookup.add_stub("Hempstead, NY", HEMPSTEAD)

    response = client.get("/api/v1/venues/near", params={"address": "Hempstead, NY", "radius": 25})

    assert response.status_code == 200
    data = response.json()
    assert [venue["name"] for venue in data["venues"]] == [
        "Nikon at Jones Beach Theater",
        "Beacon Theatre",
    ]
    assert data["venues"][0]["direction"] == "SE"


def test_near_in_kilometers_without_bearing(client: TestClient, venues):
    """Test units and a disabled bearing."""
    response = client.get(
        "/api/v1/venues/near",
        params={
            "latitude": HEMPSTEAD[0],
            "longitude": HEMPSTEAD[1],
            "radius": 25,
            "units": "km",
            "bearing": "disabled",
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["units"] == "km"
    assert len(data["venues"]) == 1
    nikon = data["venues"][0]
    assert abs(nikon["distance"] - 14.5) < 1
    assert nikon["bearing"] is None
    assert nikon["direction"] is None


def test_near_pagination(client: TestClient, venues):
    """Test limit and offset."""
    response = client.get(
        "/api/v1/venues/near",
        params={"latitude": HEMPSTEAD[0], "longitude": HEMPSTEAD[1], "radius": 25, "limit": 1, "offset": 1},
    )

    assert response.status_code == 200
    assert [venue["name"] for venue in response.json()["venues"]] == ["Beacon Theatre"]


def test_near_unknown_address(client: TestClient, venues):
    """Test that an address that cannot be geocoded gives an empty result."""
    response = client.get("/api/v1/venues/near", params={"address": "Atlantis"})

    assert response.status_code == 200
    data = response.json()
    assert data["origin"] is None
    assert data["venues"] == []


def test_near_requires_origin(client: TestClient):
    """Test that an origin is required."""
    response = client.get("/api/v1/venues/near", params={"latitude": 40.0})

    assert response.status_code == 422
    assert "address" in response.json()["detail"]


def test_near_rejects_invalid_latitude(client: TestClient):
    """Test query parameter validation."""
    response = client.get("/api/v1/venues/near", params={"latitude": 95.0, "longitude": 0.0})

    assert response.status_code == 422


def test_within_bounding_box(client: TestClient, venues):
    """Test bounding box search."""
    response = client.get(
        "/api/v1/venues/within",
        params={"south": 39.0, "west": -75.0, "north": 41.0, "east": -73.0},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["bounds"] == {"south": 39.0, "west": -75.0, "north": 41.0, "east": -73.0}
    assert [venue["name"] for venue in data["venues"]] == [
        "Beacon Theatre",
        "Nikon at Jones Beach Theater",
    ]


def test_within_bounding_box_across_antimeridian(client: TestClient, venues):
    """Test a bounding box that wraps past 180 degrees."""
    response = client.get(
        "/api/v1/venues/within",
        params={"south": 39.0, "west": -73.7, "north": 41.0, "east": -117.0},
    )

    assert response.status_code == 200
    assert [venue["name"] for venue in response.json()["venues"]] == [
        "Nikon at Jones Beach Theater",
        "Grand Sierra Theatre",
    ]


def test_within_invalid_bounding_box(client: TestClient):
    """Test that south above north is rejected."""
    response = client.get(
        "/api/v1/venues/within",
        params={"south": 41.0, "west": -75.0, "north": 39.0, "east": -73.0},
    )

    assert response.status_code == 422
    assert response.json()["detail"].startswith("Invalid bounding box")


def test_nearbys(client: TestClient, venues):
    """Test listing the neighbours of a venue."""
    nikon = venues["nikon"]

    response = client.get(f"/api/v1/venues/{nikon.id}/nearbys", params={"radius": 30})

    assert response.status_code == 200
    data = response.json()
    assert data["origin"] == {"latitude": 40.6, "longitude": -73.52}
    assert [venue["name"] for venue in data["venues"]] == ["Beacon Theatre"]


def test_nearbys_not_found(client: TestClient):
    """Test neighbours of a venue that does not exist."""
    response = client.get("/api/v1/venues/999/nearbys")

    assert response.status_code == 404
    assert response.json()["detail"] == "Venue not found"
