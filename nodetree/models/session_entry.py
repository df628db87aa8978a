"""Session bag storage: one JSON value per (session, bag, key)."""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from ..database import Base


class SessionEntry(Base):
    __tablename__ = "session_entries"

    session_id = Column(String(64), primary_key=True)
    bag = Column(String(100), primary_key=True)
    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)  # JSON-encoded
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
