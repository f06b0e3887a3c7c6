"""Availability model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, Time
from backend.database import Base


class AvailabilitySlot(Base):
    """A recurring weekly window in which a listing accepts viewing requests.

    ``day_of_week`` counts from Sunday (0) to Saturday (6).
    """
    __tablename__ = "availability_slots"

    id = Column(Integer, primary_key=True)
    listing_id = Column(Integer, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
