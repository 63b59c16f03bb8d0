"""Initial schema: users, categories, events, participation requests, hits.

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(250), nullable=False),
        sa.Column("email", sa.String(254), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.UniqueConstraint("name", name="uq_categories_name"),
    )
    op.create_index("ix_categories_id", "categories", ["id"])

    op.create_table(
        "events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("initiator_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("category_id", sa.Integer(), sa.ForeignKey("categories.id"), nullable=False),
        sa.Column("title", sa.String(120), nullable=False),
        sa.Column("annotation", sa.String(2000), nullable=False),
        sa.Column("description", sa.String(7000), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lon", sa.Float(), nullable=False),
        sa.Column("event_date", sa.DateTime(), nullable=False),
        sa.Column("created_on", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("published_on", sa.DateTime(), nullable=True),
        sa.Column("participant_limit", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("request_moderation", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("paid", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("state", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.CheckConstraint("participant_limit >= 0", name="check_participant_limit_non_negative"),
        sa.CheckConstraint("state IN ('PENDING', 'PUBLISHED', 'CANCELED')", name="check_event_state"),
        sa.CheckConstraint(
            "(state = 'PUBLISHED' AND published_on IS NOT NULL) "
            "OR (state <> 'PUBLISHED' AND published_on IS NULL)",
            name="check_published_on_matches_state",
        ),
    )
    op.create_index("ix_events_id", "events", ["id"])
    # Public listing filters on state and sorts/ranges on event_date
    op.create_index("ix_events_state_event_date", "events", ["state", "event_date"])
    op.create_index("ix_events_initiator_id", "events", ["initiator_id"])
    op.create_index("ix_events_category_id", "events", ["category_id"])

    op.create_table(
        "participation_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("requester_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("event_id", sa.Integer(), sa.ForeignKey("events.id"), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("requester_id", "event_id", name="uq_requester_event"),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'REJECTED', 'CANCELED')",
            name="check_request_status",
        ),
    )
    op.create_index("ix_participation_requests_id", "participation_requests", ["id"])
    op.create_index("ix_participation_requests_requester_id", "participation_requests", ["requester_id"])
    # Confirmed-count queries run on every enriched read and every allocation
    op.create_index(
        "ix_participation_requests_event_status",
        "participation_requests",
        ["event_id", "status"],
    )

    op.create_table(
        "hits",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("app", sa.String(255), nullable=False),
        sa.Column("uri", sa.String(512), nullable=False),
        sa.Column("ip", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_hits_timestamp_uri", "hits", ["timestamp", "uri"])


def downgrade() -> None:
    op.drop_table("hits")
    op.drop_table("participation_requests")
    op.drop_table("events")
    op.drop_table("categories")
    op.drop_table("users")
