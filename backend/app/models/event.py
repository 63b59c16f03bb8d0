"""
Event model and its moderation lifecycle states.

Key design decisions:
- Views and confirmed-request counts are NOT columns: they are derived per
  read (see services/view_service.py) and never persisted
- References to the initiator and category are plain foreign keys; the
  rows are fetched explicitly when a read model is built, never through
  back-populated relationships
- A CHECK constraint pins published_on to the PUBLISHED state so the
  invariant holds even for writes that bypass the service layer
"""

import enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Float, ForeignKey, Index, Integer, String

from app.core.clock import now
from app.db.base import Base


class EventState(str, enum.Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    CANCELED = "CANCELED"


class StateAction(str, enum.Enum):
    NONE = "NONE"
    SEND_TO_REVIEW = "SEND_TO_REVIEW"
    CANCEL_REVIEW = "CANCEL_REVIEW"
    PUBLISH_EVENT = "PUBLISH_EVENT"
    REJECT_EVENT = "REJECT_EVENT"


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    initiator_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    title = Column(String(120), nullable=False)
    annotation = Column(String(2000), nullable=False)
    description = Column(String(7000), nullable=False)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    event_date = Column(DateTime, nullable=False)
    created_on = Column(DateTime, nullable=False, default=now)
    published_on = Column(DateTime, nullable=True)
    participant_limit = Column(Integer, nullable=False, default=0)
    request_moderation = Column(Boolean, nullable=False, default=True)
    paid = Column(Boolean, nullable=False, default=False)
    state = Column(String(20), nullable=False, default=EventState.PENDING.value)

    __table_args__ = (
        CheckConstraint("participant_limit >= 0", name="check_participant_limit_non_negative"),
        CheckConstraint(
            "state IN ('PENDING', 'PUBLISHED', 'CANCELED')",
            name="check_event_state",
        ),
        CheckConstraint(
            "(state = 'PUBLISHED' AND published_on IS NOT NULL) "
            "OR (state <> 'PUBLISHED' AND published_on IS NULL)",
            name="check_published_on_matches_state",
        ),
        # Public listing: published events by date
        Index("ix_events_state_event_date", "state", "event_date"),
        Index("ix_events_initiator_id", "initiator_id"),
        Index("ix_events_category_id", "category_id"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, state={self.state})>"
