"""
Hit model: one recorded access to a URI.

The table is append-only and has no foreign keys; hits outlive the events
they point at. The (timestamp, uri) index covers the aggregation window scan.
"""

from sqlalchemy import Column, DateTime, Index, Integer, String

from app.db.base import Base


class Hit(Base):
    __tablename__ = "hits"

    id = Column(Integer, primary_key=True)
    app = Column(String(255), nullable=False)
    uri = Column(String(512), nullable=False)
    ip = Column(String(64), nullable=False)
    timestamp = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_hits_timestamp_uri", "timestamp", "uri"),
    )

    def __repr__(self) -> str:
        return f"<Hit(id={self.id}, app={self.app}, uri={self.uri}, ip={self.ip})>"
