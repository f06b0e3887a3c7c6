"""Appointment history model definitions."""

from sqlalchemy import Column, DateTime, Integer, String
from backend.database import Base, utc_now

# History-only marker; cancelled appointments are deleted, not given a status.
CANCELLED_MARKER = "CANCELLED"


class AppointmentTransition(Base):
    """Append-only record of one status change.

    ``appointment_id`` is deliberately not a foreign key so the history of a
    cancelled (deleted) appointment is kept.
    """
    __tablename__ = "appointment_transitions"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, nullable=False, index=True)
    from_status = Column(String)
    to_status = Column(String, nullable=False)
    from_time = Column(DateTime)
    to_time = Column(DateTime)
    reason = Column(String)
    actor_id = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
