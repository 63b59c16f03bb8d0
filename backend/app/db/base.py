"""
Declarative base shared by every ORM model, plus the timestamp mixin.

Timestamps are naive local times (see app/core/clock.py) so that values read
back from any backend compare cleanly with the application clock.
"""

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import DeclarativeBase

from app.core.clock import now


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at = Column(DateTime, nullable=False, default=now)
    updated_at = Column(DateTime, nullable=False, default=now, onupdate=now)
