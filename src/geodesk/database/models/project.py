"""Project model for Geodesk.

Defines the Project table and ProjectStatus enum. A project is one
commissioned engagement tracked from the client's request for quote
through quoting, execution and delivery.

Rows are created by clients, mutated only by the lifecycle controller
and the quotation engine, and never deleted.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Enum, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from geodesk.database.models.base import Base, Factor, Money, TimestampMixin


class ProjectStatus(enum.Enum):
    """Lifecycle status for a project.

    States:
        rfq_submitted: Client submitted a request for quote.
        under_review: Staff are scoping the request.
        quoted: A quote has been issued to the client.
        quote_accepted: Client accepted the quote.
        quote_rejected: Client declined the quote.
        in_progress: Field work under way.
        data_processing: Field data being processed.
        reporting: Report being prepared.
        delivered: Deliverables handed over.
        completed: Engagement closed (terminal).
        cancelled: Engagement cancelled (terminal).
    """

    rfq_submitted = "rfq_submitted"
    under_review = "under_review"
    quoted = "quoted"
    quote_accepted = "quote_accepted"
    quote_rejected = "quote_rejected"
    in_progress = "in_progress"
    data_processing = "data_processing"
    reporting = "reporting"
    delivered = "delivered"
    completed = "completed"
    cancelled = "cancelled"

    @property
    def label(self) -> str:
        """Upper-case label used in narration, e.g. ``QUOTE ACCEPTED``."""
        return self.value.replace("_", " ").upper()


class Project(TimestampMixin, Base):
    """A commissioned engagement.

    Attributes:
        client_id: Profile id of the owning client.
        client_name / client_contact / client_email / client_phone: Counterpart
            contact details copied from the client's profile at creation.
        project_name / project_description / project_location: Required
            descriptive fields supplied with the request.
        status: Current lifecycle status.
        subtotal / discount_amount / total_cost_jmd / total_cost_usd: Quote totals.
        prepayment_pct / prepayment_amount / balance_pct / balance_amount:
            Prepayment split of the total.
        quoted_at / accepted_at / completed_at: Milestone timestamps.
        featured / featured_at: Advisory portfolio flag.
    """

    __tablename__ = "projects"

    client_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    client_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_contact: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_email: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_phone: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_address_lat: Mapped[float | None] = mapped_column(nullable=True)
    client_address_lng: Mapped[float | None] = mapped_column(nullable=True)
    client_address_place_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    project_name: Mapped[str] = mapped_column(Text, nullable=False)
    project_description: Mapped[str] = mapped_column(Text, nullable=False)
    project_location: Mapped[str] = mapped_column(Text, nullable=False)
    project_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    project_address_lat: Mapped[float | None] = mapped_column(nullable=True)
    project_address_lng: Mapped[float | None] = mapped_column(nullable=True)
    project_address_place_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    service_type_id: Mapped[str] = mapped_column(Text, nullable=False)
    investigation_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    survey_area_sqm: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    clearance_access: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    client_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"),
        default=ProjectStatus.rfq_submitted,
        nullable=False,
        index=True,
    )

    # Quote inputs
    client_rating_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    service_factor: Mapped[Decimal | None] = mapped_column(Factor, nullable=True)
    depth_factor: Mapped[str | None] = mapped_column(Text, nullable=True)
    area_discounted_sqm: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    risk_profile: Mapped[str | None] = mapped_column(Text, nullable=True)
    risk_multiplier: Mapped[Decimal | None] = mapped_column(Factor, nullable=True)
    clearance_access_cost: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    mobilization_cost: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    accommodation_cost: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    service_head_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    data_collection_days: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    evaluation_days: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    estimated_weeks: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Quote results
    subtotal: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    discount_amount: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    total_cost_jmd: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    total_cost_usd: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    prepayment_pct: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    prepayment_amount: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    balance_pct: Mapped[Decimal | None] = mapped_column(Money, nullable=True)
    balance_amount: Mapped[Decimal | None] = mapped_column(Money, nullable=True)

    quoted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    featured_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
