"""
Venue service for proximity search business logic.
"""

import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from geonear.geo.query import resolve_origin
from geonear.models.venue import Venue
from geonear.schemas.geo import BearingMode, BoundingBox, DistanceUnit, GeoPoint

logger = logging.getLogger(__name__)


class VenueService:
    """Service for handling venue search operations."""

    @staticmethod
    def get_venue_by_id(db: Session, venue_id: int) -> Optional[Venue]:
        """
        Get a venue by ID.

        Args:
            db: Database session
            venue_id: Venue ID to search for

        Returns:
            Venue object if found, None otherwise
        """
        return db.get(Venue, venue_id)

    @staticmethod
    def search_near(
        db: Session,
        origin,
        radius: float,
        units: DistanceUnit = DistanceUnit.MILES,
        bearing: BearingMode = BearingMode.LINEAR,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[Optional[GeoPoint], List[Venue]]:
        """
        Find venues within a radius of an address or point.

        Args:
            db: Database session
            origin: Address string or GeoPoint
            radius: Search radius in ``units``
            units: Distance unit
            bearing: Bearing mode for the results
            limit: Maximum number of venues
            offset: Number of venues to skip

        Returns:
            The resolved origin (None if it could not be geocoded) and the
            venues found, nearest first
        """
        point = resolve_origin(origin, Venue.geocoding_config())
        stmt = (
            Venue.near(point, radius, units=units, bearing=bearing)
            .offset(offset)
            .limit(limit)
        )
        venues = list(db.scalars(stmt).all())
        logger.info("Found %d venues within %s %s of %s", len(venues), radius, units.value, point)
        return point, venues

    @staticmethod
    def search_within(db: Session, bounds: BoundingBox, limit: int = 100) -> List[Venue]:
        """
        Find venues inside a bounding box.

        Args:
            db: Database session
            bounds: Box to search, may wrap across the antimeridian
            limit: Maximum number of venues

        Returns:
            List of Venue objects ordered by ID
        """
        stmt = Venue.within_bounding_box(bounds).order_by(Venue.id).limit(limit)
        return list(db.scalars(stmt).all())

    @staticmethod
    def get_nearbys(
        db: Session,
        venue_id: int,
        radius: float,
        units: DistanceUnit = DistanceUnit.MILES,
        bearing: BearingMode = BearingMode.LINEAR,
        limit: int = 20,
    ) -> Tuple[Venue, List[Venue]]:
        """
        Find the venues near another venue, excluding that venue.

        Raises:
            HTTPException: If the venue does not exist
        """
        venue = db.get(Venue, venue_id)
        if not venue:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Venue not found",
            )

        stmt = venue.nearbys(radius, units=units, bearing=bearing).limit(limit)
        return venue, list(db.scalars(stmt).all())


# Create a singleton instance
venue_service = VenueService()
