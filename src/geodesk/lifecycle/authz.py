"""Actors and declarative capability checks for Geodesk.

Each operation states the capability it needs once, e.g.::

    requires(actor, Capability.participant, project)

and receives either nothing (allowed) or a typed ForbiddenError /
UnauthenticatedError. Role strings are interpreted in exactly one place:
Actor.from_profile.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from geodesk.errors import ForbiddenError, UnauthenticatedError

if TYPE_CHECKING:
    from geodesk.database.models.profile import Profile
    from geodesk.database.models.project import Project

# Identity recorded for inbound email senders without a profile
EXTERNAL_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000000")
EXTERNAL_ROLE = "external"


class Capability(str, enum.Enum):
    """What an operation requires of its caller.

    Values:
        client: Caller holds the client role.
        staff: Caller holds a staff role.
        owner: Caller is the project's client.
        participant: Caller is staff or the project's client.
    """

    client = "client"
    staff = "staff"
    owner = "owner"
    participant = "participant"


@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation.

    Attributes:
        id: Profile id.
        name: Display name.
        role: Role string as stored on the profile.
        is_staff: Holds the staff capability.
        is_client: Holds the client capability.
        email: Contact email, if any.
        company: Company name, if any.
        phone: Phone number, if any.
    """

    id: UUID
    name: str
    role: str
    is_staff: bool = False
    is_client: bool = False
    email: str | None = None
    company: str | None = None
    phone: str | None = None

    @classmethod
    def from_profile(
        cls,
        profile: Profile,
        staff_roles: Iterable[str] = ("admin", "manager"),
        client_role: str = "client",
    ) -> Actor:
        """Build an actor from a stored profile."""
        return cls(
            id=profile.id,
            name=profile.name,
            role=profile.role,
            is_staff=profile.role in set(staff_roles),
            is_client=profile.role == client_role,
            email=profile.email,
            company=profile.company,
            phone=profile.phone,
        )

    @classmethod
    def external(cls, email: str, name: str | None = None) -> Actor:
        """Actor for an email sender with no matching profile."""
        return cls(
            id=EXTERNAL_ACTOR_ID,
            name=name or email or "Unknown",
            role=EXTERNAL_ROLE,
            email=email or None,
        )

    def owns(self, project: Project) -> bool:
        """Whether this actor is the project's client."""
        return project.client_id == self.id


@dataclass(frozen=True)
class Authorization:
    """Outcome of a capability check.

    Attributes:
        allowed: Whether the capability is held.
        reason: Why it was refused, when refused.
    """

    allowed: bool
    reason: str | None = None


def check(
    actor: Actor | None,
    capability: Capability,
    project: Project | None = None,
) -> Authorization:
    """Evaluate a capability without raising."""
    if actor is None:
        return Authorization(False, "Not authenticated")

    if capability is Capability.client:
        return Authorization(actor.is_client, None if actor.is_client else "Client role required")

    if capability is Capability.staff:
        return Authorization(actor.is_staff, None if actor.is_staff else "Staff role required")

    if project is None:
        raise ValueError(f"Capability {capability.value} requires a project")

    if capability is Capability.owner:
        owns = actor.owns(project)
        return Authorization(owns, None if owns else "Only the project's client may do this")

    allowed = actor.is_staff or actor.owns(project)
    return Authorization(allowed, None if allowed else "Not a participant of this project")


def authenticated(actor: Actor | None) -> Actor:
    """Assert that there is a caller, whatever its role.

    Raises:
        UnauthenticatedError: If there is no actor.
    """
    if actor is None:
        raise UnauthenticatedError()
    return actor


def requires(
    actor: Actor | None,
    capability: Capability,
    project: Project | None = None,
) -> Actor:
    """Assert a capability, returning the actor when it is held.

    Raises:
        UnauthenticatedError: If there is no actor.
        ForbiddenError: If the actor lacks the capability.
    """
    if actor is None:
        raise UnauthenticatedError()

    result = check(actor, capability, project)
    if not result.allowed:
        raise ForbiddenError(result.reason or "Forbidden", capability=capability.value)
    return actor
