from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from geonear.db.database import Base


class Color(Base):
    __tablename__ = "colors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)

    venues = relationship("Venue", back_populates="color")

    def __init__(self, name):
        self.name = name
