"""Initial schema for Geodesk.

Creates the project lifecycle tables: projects, quote_line_items,
activity_log, project_messages, project_media and request_attachments.
The profiles table belongs to the identity system; it is created here only
when absent so that a fresh database can be used for development.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PROJECT_STATUSES = (
    "rfq_submitted",
    "under_review",
    "quoted",
    "quote_accepted",
    "quote_rejected",
    "in_progress",
    "data_processing",
    "reporting",
    "delivered",
    "completed",
    "cancelled",
)
MESSAGE_SOURCES = ("panel", "system", "email")


def _money(name: str, nullable: bool = True, **kwargs: object) -> sa.Column:
    return sa.Column(name, sa.Numeric(14, 2), nullable=nullable, **kwargs)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _file_columns() -> list[sa.Column]:
    return [
        sa.Column("file_path", sa.Text(), nullable=False),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("content_type", sa.Text(), nullable=True),
    ]


def upgrade() -> None:
    project_status = sa.Enum(*PROJECT_STATUSES, name="project_status")
    project_status.create(op.get_bind(), checkfirst=True)

    message_source = sa.Enum(*MESSAGE_SOURCES, name="message_source")
    message_source.create(op.get_bind(), checkfirst=True)

    op.execute(
        """
        CREATE TABLE IF NOT EXISTS profiles (
            id uuid PRIMARY KEY,
            name text NOT NULL,
            email text,
            role text NOT NULL,
            company text,
            phone text
        )
        """
    )
    op.execute("CREATE INDEX IF NOT EXISTS ix_profiles_email ON profiles (email)")

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("client_id", sa.Uuid(), nullable=False),
        sa.Column("client_name", sa.Text(), nullable=True),
        sa.Column("client_contact", sa.Text(), nullable=True),
        sa.Column("client_email", sa.Text(), nullable=True),
        sa.Column("client_phone", sa.Text(), nullable=True),
        sa.Column("client_address", sa.Text(), nullable=True),
        sa.Column("client_address_lat", sa.Float(), nullable=True),
        sa.Column("client_address_lng", sa.Float(), nullable=True),
        sa.Column("client_address_place_id", sa.Text(), nullable=True),
        sa.Column("project_name", sa.Text(), nullable=False),
        sa.Column("project_description", sa.Text(), nullable=False),
        sa.Column("project_location", sa.Text(), nullable=False),
        sa.Column("project_address", sa.Text(), nullable=True),
        sa.Column("project_address_lat", sa.Float(), nullable=True),
        sa.Column("project_address_lng", sa.Float(), nullable=True),
        sa.Column("project_address_place_id", sa.Text(), nullable=True),
        sa.Column("service_type_id", sa.Text(), nullable=False),
        sa.Column("investigation_type", sa.Text(), nullable=True),
        _money("survey_area_sqm"),
        sa.Column("clearance_access", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("client_notes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(*PROJECT_STATUSES, name="project_status", create_type=False),
            nullable=False,
            server_default="rfq_submitted",
        ),
        # Quote inputs
        sa.Column("client_rating_id", sa.Text(), nullable=True),
        sa.Column("service_factor", sa.Numeric(10, 4), nullable=True),
        sa.Column("depth_factor", sa.Text(), nullable=True),
        _money("area_discounted_sqm"),
        sa.Column("risk_profile", sa.Text(), nullable=True),
        sa.Column("risk_multiplier", sa.Numeric(10, 4), nullable=True),
        _money("clearance_access_cost", nullable=False, server_default="0"),
        _money("mobilization_cost", nullable=False, server_default="0"),
        _money("accommodation_cost", nullable=False, server_default="0"),
        sa.Column("service_head_count", sa.Integer(), nullable=False, server_default="1"),
        _money("data_collection_days"),
        _money("evaluation_days"),
        _money("estimated_weeks"),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        # Quote results
        _money("subtotal"),
        _money("discount_amount"),
        _money("total_cost_jmd"),
        _money("total_cost_usd"),
        _money("prepayment_pct"),
        _money("prepayment_amount"),
        _money("balance_pct"),
        _money("balance_amount"),
        sa.Column("quoted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("featured_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "quote_line_items",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(14, 3), nullable=False),
        _money("unit_price", nullable=False),
        sa.Column("uom", sa.Text(), nullable=False),
        _money("total_price", nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "activity_log",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("user_name", sa.Text(), nullable=False),
        sa.Column("user_role", sa.Text(), nullable=False),
        sa.Column("action", sa.Text(), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("details", JSONB, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "project_messages",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("sender_id", sa.Uuid(), nullable=True),
        sa.Column("sender_name", sa.Text(), nullable=False),
        sa.Column("sender_role", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "source",
            sa.Enum(*MESSAGE_SOURCES, name="message_source", create_type=False),
            nullable=False,
            server_default="panel",
        ),
        *_timestamps(),
    )

    op.create_table(
        "project_media",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        *_file_columns(),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "request_attachments",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        *_file_columns(),
        *_timestamps(),
    )

    op.create_index("ix_projects_client_id", "projects", ["client_id"])
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_quote_line_items_project_id", "quote_line_items", ["project_id"])
    op.create_index("ix_activity_log_project_id", "activity_log", ["project_id"])
    op.create_index("ix_project_messages_project_id", "project_messages", ["project_id"])
    op.create_index("ix_project_media_project_id", "project_media", ["project_id"])
    op.create_index("ix_request_attachments_project_id", "request_attachments", ["project_id"])


def downgrade() -> None:
    op.drop_table("request_attachments")
    op.drop_table("project_media")
    op.drop_table("project_messages")
    op.drop_table("activity_log")
    op.drop_table("quote_line_items")
    op.drop_table("projects")

    sa.Enum(name="message_source").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="project_status").drop(op.get_bind(), checkfirst=True)
