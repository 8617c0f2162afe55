"""
SQLAlchemy ORM Models for the feed cache

This module defines the table backing the SQLite cache backend.
"""
from sqlalchemy import Float, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class CacheEntry(Base):
    """One cached payload per logical resource key (e.g. 'epg.json')"""
    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    last_modified: Mapped[float] = mapped_column(Float, nullable=False)  # epoch seconds

    def __repr__(self) -> str:
        return f"<CacheEntry(key={self.key}, last_modified={self.last_modified})>"
