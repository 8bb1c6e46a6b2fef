"""Project state machine for Geodesk.

This module holds the authoritative transition table for project status,
the validation helpers built on it, and the milestone timestamps stamped
when certain statuses are reached.

Terminal statuses (completed, cancelled) have no outbound edges, so any
request to move a terminal project is rejected.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from geodesk.database.models.project import ProjectStatus
from geodesk.errors import InvalidTransitionError

S = ProjectStatus

# Authoritative state machine definition
PROJECT_TRANSITIONS: dict[ProjectStatus, frozenset[ProjectStatus]] = {
    S.rfq_submitted: frozenset({S.under_review, S.cancelled}),
    S.under_review: frozenset({S.quoted, S.cancelled}),
    S.quoted: frozenset({S.quote_accepted, S.quote_rejected, S.cancelled}),
    S.quote_accepted: frozenset({S.in_progress, S.cancelled}),
    S.quote_rejected: frozenset({S.under_review, S.cancelled}),
    S.in_progress: frozenset(
        {S.data_processing, S.reporting, S.delivered, S.completed, S.cancelled}
    ),
    S.data_processing: frozenset({S.reporting, S.delivered, S.completed, S.cancelled}),
    S.reporting: frozenset({S.delivered, S.completed, S.cancelled}),
    S.delivered: frozenset({S.completed, S.cancelled}),
    S.completed: frozenset(),  # Terminal
    S.cancelled: frozenset(),  # Terminal
}

TERMINAL_STATUSES: frozenset[ProjectStatus] = frozenset(
    status for status, targets in PROJECT_TRANSITIONS.items() if not targets
)

# Milestone column stamped when a status is reached
MILESTONES: dict[ProjectStatus, str] = {
    S.quoted: "quoted_at",
    S.quote_accepted: "accepted_at",
    S.completed: "completed_at",
}


def validate_transition(current: ProjectStatus, target: ProjectStatus) -> bool:
    """Validate if a status transition is allowed.

    Args:
        current: Current project status.
        target: Requested project status.

    Returns:
        True if target is in the adjacency list of current.
    """
    return target in PROJECT_TRANSITIONS.get(current, frozenset())


def is_terminal(status: ProjectStatus) -> bool:
    """Whether no further status writes are accepted from this status."""
    return status in TERMINAL_STATUSES


def ensure_transition(
    current: ProjectStatus,
    target: ProjectStatus,
    project_id: str | None = None,
) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed."""
    if not validate_transition(current, target):
        raise InvalidTransitionError(current.value, target.value, project_id)


def milestone_values(target: ProjectStatus, now: datetime) -> dict[str, Any]:
    """Column values stamped when a project reaches target."""
    column = MILESTONES.get(target)
    return {column: now} if column else {}


def parse_status(value: str) -> ProjectStatus | None:
    """Return the ProjectStatus named by value, or None if unknown."""
    try:
        return ProjectStatus(value)
    except ValueError:
        return None
