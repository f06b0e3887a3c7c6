"""Booking policy and admin audit model definitions."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String
from backend.database import Base, utc_now


class BookingPolicy(Base):
    """Per-user flag that stops the user from requesting viewings."""
    __tablename__ = "booking_policies"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    block_reason = Column(String)
    updated_by = Column(Integer, ForeignKey("users.id"))
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now)


class AdminAuditLog(Base):
    """Records administrative actions such as blocking a user."""
    __tablename__ = "admin_audit_log"

    id = Column(Integer, primary_key=True)
    admin_id = Column(Integer, nullable=False, index=True)
    action = Column(String, nullable=False)
    target_id = Column(Integer)
    meta = Column(JSON)
    created_at = Column(DateTime, default=utc_now, nullable=False)
