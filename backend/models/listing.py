"""Listing model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from backend.database import Base


class Listing(Base):
    """The listing facts the scheduling engine reads: owner, title and address."""
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    address = Column(String)
