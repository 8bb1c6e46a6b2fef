"""Request payloads accepted by the lifecycle controller.

Payloads accept snake_case or camelCase keys. Required fields are checked
by the controller rather than by the schema so that missing values produce
the same validation error as blank ones.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectCreate(_Payload):
    """A client's request for quote."""

    project_name: str | None = None
    project_description: str | None = None
    project_location: str | None = None
    service_type_id: str | None = None

    project_address: str | None = None
    project_address_lat: float | None = None
    project_address_lng: float | None = None
    project_address_place_id: str | None = None
    client_address: str | None = None
    client_address_lat: float | None = None
    client_address_lng: float | None = None
    client_address_place_id: str | None = None
    investigation_type: str | None = None
    survey_area_sqm: float | None = None
    clearance_access: bool = False
    mobilization_cost: float | None = None
    accommodation_cost: float | None = None
    service_head_count: int | None = None
    notes: str | None = None


class StatusUpdate(_Payload):
    status: str = ""
    note: str | None = None


class ReasonPayload(_Payload):
    reason: str | None = None


class NotePayload(_Payload):
    note: str | None = None


class ProjectPatch(_Payload):
    """Advisory metadata; only a boolean ``featured`` has an effect."""

    featured: Any = None


class FileReference(_Payload):
    """Pointer to an object already uploaded to storage."""

    file_path: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    file_size: int | None = None
    content_type: str | None = None
    sort_order: int | None = None


class MediaPayload(_Payload):
    media: list[FileReference] = Field(default_factory=list)


class AttachmentPayload(_Payload):
    attachments: list[FileReference] = Field(default_factory=list)


class MessagePayload(_Payload):
    body: str | None = None
    is_internal: bool = False
