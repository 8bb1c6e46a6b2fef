"""Unit tests for email rendering and notification composition."""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from geodesk.config import EmailConfig
from geodesk.database.models.project import Project, ProjectStatus
from geodesk.lifecycle.authz import Actor
from geodesk.notifications.messages import OutboundEmail, ParticipantNotice, TeamNotice
from geodesk.notifications.notifier import ProjectNotifier, format_amount
from geodesk.notifications.rendering import EmailRenderer


@pytest.fixture
def email_config() -> EmailConfig:
    return EmailConfig(
        from_name="Survey Co",
        platform_url="https://platform.example/",
        inbound_domain="reply.example",
    )


@pytest.fixture
def renderer(email_config: EmailConfig) -> EmailRenderer:
    return EmailRenderer(email_config)


@pytest.fixture
def outbox() -> MagicMock:
    return MagicMock()


@pytest.fixture
def notifier(outbox: MagicMock, renderer: EmailRenderer) -> ProjectNotifier:
    return ProjectNotifier(outbox, renderer)


@pytest.fixture
def client() -> Actor:
    return Actor(
        id=uuid4(), name="Jane Client", role="client", is_client=True, email="jane@example.com"
    )


@pytest.fixture
def project(client: Actor) -> Project:
    return Project(
        id=uuid4(),
        client_id=client.id,
        project_name="Harbour Survey",
        project_location="Kingston",
        total_cost_jmd=Decimal("1234567.5"),
        total_cost_usd=Decimal("9607.53"),
    )


def enqueued(outbox: MagicMock) -> list[object]:
    return [c.args[0] for c in outbox.enqueue.call_args_list]


class TestRenderer:
    def test_project_url(self, renderer: EmailRenderer) -> None:
        assert renderer.project_url("abc") == "https://platform.example?requestId=abc"

    def test_render_includes_brand_and_link(self, renderer: EmailRenderer) -> None:
        html = renderer.render(
            "status_changed.html.j2",
            "abc",
            actor_name="Admin",
            status_label="UNDER REVIEW",
            note=None,
        )

        assert "Survey Co" in html
        assert "UNDER REVIEW" in html
        assert "https://platform.example?requestId=abc" in html

    def test_user_content_is_escaped(self, renderer: EmailRenderer) -> None:
        html = renderer.render(
            "new_message.html.j2",
            "abc",
            actor_name="Mallory",
            actor_role="client",
            body="<script>alert(1)</script>",
        )

        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_format_amount(self) -> None:
        assert format_amount(Decimal("1234567.5")) == "1,234,567.50"
        assert format_amount(None) == "0.00"


class TestProjectNotifier:
    def test_rfq_submitted_notifies_team_and_client(
        self, notifier: ProjectNotifier, outbox: MagicMock, project: Project, client: Actor
    ) -> None:
        notifier.rfq_submitted(project, client)

        team, confirmation = enqueued(outbox)
        assert isinstance(team, TeamNotice)
        assert team.subject == "New RFQ: Harbour Survey"
        assert team.reply_to == f"project+{project.id}@reply.example"
        assert team.event_id == f"rfq-admin-{project.id}"

        assert isinstance(confirmation, OutboundEmail)
        assert confirmation.to == ("jane@example.com",)
        assert confirmation.subject == "Request Received: Harbour Survey"
        assert confirmation.event_id == f"rfq-client-{project.id}"

    def test_rfq_without_client_email_only_notifies_team(
        self, notifier: ProjectNotifier, outbox: MagicMock, project: Project
    ) -> None:
        actor = Actor(id=project.client_id, name="No Mail", role="client", is_client=True)

        notifier.rfq_submitted(project, actor)

        [team] = enqueued(outbox)
        assert isinstance(team, TeamNotice)

    def test_status_changed_excludes_actor(
        self, notifier: ProjectNotifier, outbox: MagicMock, project: Project
    ) -> None:
        admin = Actor(id=uuid4(), name="Ann Admin", role="admin", is_staff=True)

        notifier.status_changed(
            project, admin, ProjectStatus.under_review, "Scoping", event_id="activity-7"
        )

        [job] = enqueued(outbox)
        assert isinstance(job, ParticipantNotice)
        assert job.project_id == project.id
        assert job.exclude_user_id == admin.id
        assert job.event_id == "activity-7"
        assert job.subject == "Harbour Survey — Status: UNDER REVIEW"
        assert "Scoping" in job.html

    def test_quote_ready_highlights_total(
        self, notifier: ProjectNotifier, outbox: MagicMock, project: Project
    ) -> None:
        admin = Actor(id=uuid4(), name="Ann Admin", role="admin", is_staff=True)

        notifier.quote_ready(project, admin, event_id="activity-9")

        [job] = enqueued(outbox)
        assert job.subject == "Harbour Survey — Quote Ready: $1,234,567.50 JMD"
        assert "9,607.53" in job.html

    def test_external_sender_is_not_excluded(
        self, notifier: ProjectNotifier, outbox: MagicMock, project: Project
    ) -> None:
        notifier.email_reply(
            project, Actor.external("stranger@example.com"), None, "Hello", event_id="activity-3"
        )

        [job] = enqueued(outbox)
        assert job.exclude_user_id is None
        assert job.subject == "Reply on project"

    def test_quote_rejected_includes_reason(
        self, notifier: ProjectNotifier, outbox: MagicMock, project: Project, client: Actor
    ) -> None:
        notifier.quote_rejected(project, client, "Too expensive", event_id="activity-5")

        [job] = enqueued(outbox)
        assert job.subject == "Harbour Survey — Quote Declined"
        assert "Too expensive" in job.html
