"""
Participation request model: one user asking to attend one event.

Key design decisions:
- Unique constraint on (requester_id, event_id) backs the one-request-per-pair
  rule at the DB level
- Status is kept after cancellation/rejection instead of deleting rows
- Index on (event_id, status) serves the confirmed-count queries that both
  the allocator and view enrichment run on every read
"""

import enum

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, UniqueConstraint

from app.db.base import Base, TimestampMixin


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"


class ParticipationRequest(Base, TimestampMixin):
    __tablename__ = "participation_requests"

    id = Column(Integer, primary_key=True, index=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    status = Column(String(20), nullable=False, default=RequestStatus.PENDING.value)

    __table_args__ = (
        UniqueConstraint("requester_id", "event_id", name="uq_requester_event"),
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'CANCELED')",
            name="check_request_status",
        ),
        Index("ix_participation_requests_event_status", "event_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<ParticipationRequest(id={self.id}, requester={self.requester_id}, "
            f"event={self.event_id}, status={self.status})>"
        )
