"""User model definitions."""

from sqlalchemy import Boolean, Column, Integer, String
from backend.database import Base


class User(Base):
    """Represents a marketplace user (viewer, listing owner or admin)."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String)
    phone = Column(String)
    role = Column(String, default="user")  # user/admin
    meetings_blocked = Column(Boolean, default=False, nullable=False)
