"""Response schemas for the Geodesk HTTP API.

ORM rows are converted with ``model_validate`` (``from_attributes``).
Monetary columns are exposed as JSON numbers.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from geodesk.database.models.message import MessageSource
from geodesk.database.models.project import ProjectStatus


class _Row(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ProjectResponse(_Row):
    """A project row."""

    id: UUID
    client_id: UUID
    client_name: str | None
    client_contact: str | None
    client_email: str | None
    client_phone: str | None
    client_address: str | None
    client_address_lat: float | None
    client_address_lng: float | None
    client_address_place_id: str | None
    project_name: str
    project_description: str
    project_location: str
    project_address: str | None
    project_address_lat: float | None
    project_address_lng: float | None
    project_address_place_id: str | None
    service_type_id: str
    investigation_type: str | None
    survey_area_sqm: float | None
    clearance_access: bool
    client_notes: str | None
    status: ProjectStatus

    client_rating_id: str | None
    service_factor: float | None
    depth_factor: str | None
    area_discounted_sqm: float | None
    risk_profile: str | None
    risk_multiplier: float | None
    clearance_access_cost: float | None
    mobilization_cost: float | None
    accommodation_cost: float | None
    service_head_count: int
    data_collection_days: float | None
    evaluation_days: float | None
    estimated_weeks: float | None
    admin_notes: str | None

    subtotal: float | None
    discount_amount: float | None
    total_cost_jmd: float | None
    total_cost_usd: float | None
    prepayment_pct: float | None
    prepayment_amount: float | None
    balance_pct: float | None
    balance_amount: float | None

    quoted_at: datetime | None
    accepted_at: datetime | None
    completed_at: datetime | None
    featured: bool
    featured_at: datetime | None
    created_at: datetime
    updated_at: datetime


class LineItemResponse(_Row):
    id: UUID
    project_id: UUID
    description: str
    quantity: float
    unit_price: float
    uom: str
    total_price: float
    category: str
    sort_order: int


class ActivityResponse(_Row):
    id: int
    project_id: UUID
    user_id: UUID
    user_name: str
    user_role: str
    action: str
    old_value: str | None
    new_value: str | None
    details: dict[str, Any] | None
    created_at: datetime


class MessageResponse(_Row):
    id: UUID
    project_id: UUID
    sender_id: UUID | None
    sender_name: str
    sender_role: str
    body: str
    is_internal: bool
    source: MessageSource
    created_at: datetime


class FileResponse(_Row):
    """A registered media item or attachment."""

    id: UUID
    project_id: UUID
    file_path: str
    file_name: str
    file_size: int | None
    content_type: str | None
    sort_order: int | None = None
    created_at: datetime


def dump(schema: type[BaseModel], row: Any) -> dict[str, Any]:
    """Serialize one ORM row through a response schema."""
    return schema.model_validate(row).model_dump(mode="json")


def dump_all(schema: type[BaseModel], rows: list[Any]) -> list[dict[str, Any]]:
    return [dump(schema, row) for row in rows]
