from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import query_expression, relationship
from sqlalchemy.sql import func

from geonear.db.database import Base
from geonear.geo.registry import geocoded_by
from geonear.geo.store import Geocoded
from geonear.models.color import Color  # noqa: F401 - relationship target


@geocoded_by("address", latitude="latitude", longitude="longitude")
class Venue(Geocoded, Base):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    type = Column(String(20), nullable=False)
    name = Column(String, nullable=False)
    address = Column(String)
    latitude = Column(Float, index=True)
    longitude = Column(Float, index=True)
    color_id = Column(Integer, ForeignKey("colors.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Filled only by queries passing expressions={"score": ...}
    score = query_expression()

    color = relationship("Color", back_populates="venues")

    __mapper_args__ = {"polymorphic_on": type, "polymorphic_identity": "venue"}

    def __init__(self, name, address=None, latitude=None, longitude=None, color_id=None):
        self.name = name
        self.address = address
        self.latitude = latitude
        self.longitude = longitude
        self.color_id = color_id


class Temple(Venue):
    __mapper_args__ = {"polymorphic_identity": "temple"}


class Arena(Venue):
    __mapper_args__ = {"polymorphic_identity": "arena"}
