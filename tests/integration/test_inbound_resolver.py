"""Integration tests for threading inbound email replies onto projects."""

from __future__ import annotations

from unittest.mock import MagicMock
from uuid import UUID, uuid4

import httpx
import pytest
import pytest_asyncio
import respx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from geodesk.audit.ledger import AuditLedger
from geodesk.config import EmailConfig
from geodesk.database.models.message import MessageSource
from geodesk.database.models.profile import Profile
from geodesk.database.models.project import Project
from geodesk.database.queries import activity as activity_queries
from geodesk.database.queries import message as message_queries
from geodesk.database.queries import project as project_queries
from geodesk.inbound.receiving import ReceivingClient
from geodesk.inbound.resolver import InboundThreadResolver
from geodesk.lifecycle.authz import EXTERNAL_ACTOR_ID

RECEIVING_URL = "https://api.resend.com/emails/receiving/em_123"


@pytest_asyncio.fixture
async def project(
    session_factory: async_sessionmaker[AsyncSession], client_profile: Profile
) -> Project:
    async with session_factory() as session:
        return await project_queries.create_project(
            session,
            client_id=client_profile.id,
            client_email=client_profile.email,
            project_name="Harbour Survey",
            project_description="Pier",
            project_location="Kingston",
            service_type_id="topographic",
        )


@pytest.fixture
def resolver(
    session_factory: async_sessionmaker[AsyncSession], notifier: MagicMock
) -> InboundThreadResolver:
    receiving = ReceivingClient(EmailConfig(api_key="re_test"))
    return InboundThreadResolver(session_factory, AuditLedger(), notifier, receiving)


def received_event(project_id: UUID | str, sender: str = "Jane <jane@client.example>") -> dict:
    return {
        "type": "email.received",
        "data": {
            "email_id": "em_123",
            "from": sender,
            "to": [f"project+{project_id}@reply.example"],
            "subject": "Re: Harbour Survey",
        },
    }


async def _thread(
    session_factory: async_sessionmaker[AsyncSession], project_id: UUID
) -> list:
    async with session_factory() as session:
        return await message_queries.list_messages(session, project_id, include_internal=True)


class TestProviderEvents:
    @pytest.mark.asyncio
    async def test_reply_from_known_profile(
        self,
        resolver: InboundThreadResolver,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        client_profile: Profile,
        notifier: MagicMock,
    ) -> None:
        with respx.mock as mock:
            route = mock.get(RECEIVING_URL).mock(
                return_value=httpx.Response(
                    200,
                    json={"text": "Sounds good, go ahead.\nOn Mon, Ann wrote:\n> quote"},
                )
            )
            result = await resolver.handle(received_event(project.id))

        assert route.called
        assert route.calls.last.request.headers["Authorization"] == "Bearer re_test"
        assert result.ok is True

        [message] = await _thread(session_factory, project.id)
        assert message.id == result.message_id
        assert message.body == "Sounds good, go ahead."
        assert message.source is MessageSource.email
        assert message.sender_id == client_profile.id
        assert message.sender_role == "client"

        async with session_factory() as session:
            [entry] = await activity_queries.list_activity(session, project.id)
        assert entry.action == "message_received_email"
        assert entry.details == {"subject": "Re: Harbour Survey", "from": "jane@client.example"}

        args, kwargs = notifier.email_reply.call_args
        assert args[1].id == client_profile.id
        assert kwargs["event_id"] == f"activity-{entry.id}"

    @pytest.mark.asyncio
    async def test_html_only_body_is_flattened(
        self,
        resolver: InboundThreadResolver,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
    ) -> None:
        with respx.mock as mock:
            mock.get(RECEIVING_URL).mock(
                return_value=httpx.Response(
                    200, json={"html": "<style>p{}</style><p>Confirmed <b>Tuesday</b></p>"}
                )
            )
            result = await resolver.handle(received_event(project.id))

        assert result.ok is True
        [message] = await _thread(session_factory, project.id)
        assert message.body == "Confirmed Tuesday"

    @pytest.mark.asyncio
    async def test_body_fetch_failure_is_ignored(
        self,
        resolver: InboundThreadResolver,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
    ) -> None:
        with respx.mock as mock:
            mock.get(RECEIVING_URL).mock(return_value=httpx.Response(404, json={}))
            result = await resolver.handle(received_event(project.id))

        assert result.ok is False
        assert result.reason == "failed to fetch email: 404"
        assert await _thread(session_factory, project.id) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>oops</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
        ],
    )
    async def test_malformed_fetch_response_is_ignored(
        self,
        resolver: InboundThreadResolver,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        notifier: MagicMock,
        response: httpx.Response,
    ) -> None:
        with respx.mock as mock:
            mock.get(RECEIVING_URL).mock(return_value=response)
            result = await resolver.handle(received_event(project.id))

        assert result.to_dict() == {"ok": False, "reason": "fetch body failed"}
        assert await _thread(session_factory, project.id) == []
        notifier.email_reply.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_string_body_fields_are_dropped(
        self,
        resolver: InboundThreadResolver,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
    ) -> None:
        with respx.mock as mock:
            mock.get(RECEIVING_URL).mock(
                return_value=httpx.Response(200, json={"text": 42, "html": "<p>Noted</p>"})
            )
            result = await resolver.handle(received_event(project.id))

        assert result.ok is True
        [message] = await _thread(session_factory, project.id)
        assert message.body == "Noted"

    @pytest.mark.asyncio
    async def test_receiving_not_configured(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: MagicMock,
        project: Project,
    ) -> None:
        resolver = InboundThreadResolver(
            session_factory, AuditLedger(), notifier, ReceivingClient(EmailConfig(api_key=""))
        )

        result = await resolver.handle(received_event(project.id))

        assert result.to_dict() == {"ok": False, "reason": "receiving not configured"}


class TestLegacyPayloads:
    @pytest.mark.asyncio
    async def test_unknown_sender_is_external(
        self,
        resolver: InboundThreadResolver,
        session_factory: async_sessionmaker[AsyncSession],
        project: Project,
        notifier: MagicMock,
    ) -> None:
        result = await resolver.handle(
            {
                "from": "Surveyor <field@partner.example>",
                "to": f"project+{project.id}@reply.example",
                "subject": "Site access",
                "text": "Gate code is 1234\r\n--\r\nSent from phone",
            }
        )

        assert result.ok is True
        [message] = await _thread(session_factory, project.id)
        assert message.body == "Gate code is 1234"
        assert message.sender_id is None
        assert message.sender_role == "external"
        assert message.sender_name == "field@partner.example"

        sender = notifier.email_reply.call_args.args[1]
        assert sender.id == EXTERNAL_ACTOR_ID

    @pytest.mark.asyncio
    async def test_missing_alias(self, resolver: InboundThreadResolver) -> None:
        result = await resolver.handle(
            {"from": "a@example.com", "to": "hello@reply.example", "text": "Hi"}
        )

        assert result.to_dict() == {"ok": False, "reason": "no project id"}

    @pytest.mark.asyncio
    async def test_empty_body(self, resolver: InboundThreadResolver, project: Project) -> None:
        result = await resolver.handle(
            {"from": "a@example.com", "to": f"project+{project.id}@reply.example", "text": "  "}
        )

        assert result.reason == "empty body"

    @pytest.mark.asyncio
    async def test_unknown_project(
        self, resolver: InboundThreadResolver, notifier: MagicMock
    ) -> None:
        result = await resolver.handle(
            {"from": "a@example.com", "to": f"project+{uuid4()}@reply.example", "text": "Hi"}
        )

        assert result.to_dict() == {"ok": False, "reason": "unknown project"}
        notifier.email_reply.assert_not_called()
