"""Single key-value table backing accounts and messages.

Keys are tuples of strings stored as their compact JSON array encoding,
e.g. ``["messages","general","2024-01-01T00:00:00.000Z","3f2a..."]``. Two
keys sharing a tuple prefix share a string prefix, which is what makes
prefix scans a plain ``LIKE 'prefix%'``.
"""

from sqlalchemy import Column, DateTime, JSON, Text
from sqlalchemy.sql import func

from ..database import Base


class KVEntry(Base):
    __tablename__ = "kv_entries"

    key = Column(Text, primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
