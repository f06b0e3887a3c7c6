"""Appointment model definitions."""

import enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from backend.database import Base, utc_now


class AppointmentStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    RESCHEDULE_PROPOSED = "RESCHEDULE_PROPOSED"


class Appointment(Base):
    """Represents a viewing requested by a user for someone else's listing."""
    __tablename__ = "appointments"
    # Ids are never reused, so the history of a deleted appointment stays with it.
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # Copied from the listing when the request is made.
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    scheduled_at = Column(DateTime, nullable=False)
    proposed_at = Column(DateTime)
    note = Column(String)
    status = Column(String, nullable=False, default=AppointmentStatus.PENDING.value)
    created_at = Column(DateTime, default=utc_now)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)

    listing = relationship("Listing", lazy="joined")
    requester = relationship("User", foreign_keys=[requester_id], lazy="joined")
    owner = relationship("User", foreign_keys=[owner_id], lazy="joined")
