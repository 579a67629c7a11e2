"""Key-value rows for the SQL item store."""

from datetime import datetime

from sqlalchemy import Column, DateTime, JSON, String

from reviewgate.db.base import Base


class ItemEntry(Base):
    """
    One stored value per namespaced key.

    Values are whole JSON documents; the gate never updates part of one.
    """
    __tablename__ = "item_entries"

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<ItemEntry {self.key}>"
