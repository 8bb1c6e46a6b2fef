"""Integration tests for the query layer against SQLite."""

from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from geodesk.database.models.message import MessageSource
from geodesk.database.models.profile import Profile
from geodesk.database.models.project import Project, ProjectStatus
from geodesk.database.queries import activity as activity_queries
from geodesk.database.queries import message as message_queries
from geodesk.database.queries import profile as profile_queries
from geodesk.database.queries import project as project_queries


async def _project(session: AsyncSession, client_id=None, name: str = "Survey") -> Project:
    return await project_queries.create_project(
        session,
        client_id=client_id or uuid4(),
        project_name=name,
        project_description="Description",
        project_location="Kingston",
        service_type_id="topographic",
    )


class TestProjectQueries:
    @pytest.mark.asyncio
    async def test_create_defaults_to_rfq_submitted(self, db_session: AsyncSession) -> None:
        project = await _project(db_session)

        assert project.status is ProjectStatus.rfq_submitted
        assert project.featured is False
        assert project.quoted_at is None

    @pytest.mark.asyncio
    async def test_get_unknown_project(self, db_session: AsyncSession) -> None:
        assert await project_queries.get_project(db_session, uuid4()) is None

    @pytest.mark.asyncio
    async def test_list_filters_by_client(self, db_session: AsyncSession) -> None:
        client_id = uuid4()
        mine = await _project(db_session, client_id=client_id, name="Mine")
        await _project(db_session, name="Theirs")

        own = await project_queries.list_projects(db_session, client_id=client_id)
        everything = await project_queries.list_projects(db_session)

        assert [p.id for p in own] == [mine.id]
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_compare_and_set_writes_when_status_matches(
        self, db_session: AsyncSession
    ) -> None:
        project = await _project(db_session)

        updated = await project_queries.compare_and_set_status(
            db_session,
            project.id,
            expected=ProjectStatus.rfq_submitted,
            target=ProjectStatus.under_review,
        )

        assert updated is not None
        assert updated.status is ProjectStatus.under_review

    @pytest.mark.asyncio
    async def test_compare_and_set_refuses_stale_status(self, db_session: AsyncSession) -> None:
        project = await _project(db_session)
        await project_queries.compare_and_set_status(
            db_session,
            project.id,
            expected=ProjectStatus.rfq_submitted,
            target=ProjectStatus.under_review,
        )

        second = await project_queries.compare_and_set_status(
            db_session,
            project.id,
            expected=ProjectStatus.rfq_submitted,
            target=ProjectStatus.cancelled,
        )

        assert second is None
        reloaded = await project_queries.get_project(db_session, project.id)
        assert reloaded is not None
        assert reloaded.status is ProjectStatus.under_review

    @pytest.mark.asyncio
    async def test_update_unknown_project(self, db_session: AsyncSession) -> None:
        assert await project_queries.update_project(db_session, uuid4(), featured=True) is None


class TestActivityQueries:
    @pytest.mark.asyncio
    async def test_activity_is_ordered_by_sequence(self, db_session: AsyncSession) -> None:
        project = await _project(db_session)
        for action in ("rfq_submitted", "status_changed", "quote_generated"):
            await activity_queries.insert_activity(
                db_session,
                project_id=project.id,
                user_id=uuid4(),
                user_name="Ann",
                user_role="admin",
                action=action,
            )

        newest = await activity_queries.list_activity(db_session, project.id)
        oldest = await activity_queries.list_activity(db_session, project.id, newest_first=False)

        assert [e.action for e in oldest] == ["rfq_submitted", "status_changed", "quote_generated"]
        assert [e.action for e in newest] == ["quote_generated", "status_changed", "rfq_submitted"]
        assert oldest[0].id < oldest[1].id < oldest[2].id


class TestMessageQueries:
    @pytest.mark.asyncio
    async def test_internal_messages_are_filtered(self, db_session: AsyncSession) -> None:
        project = await _project(db_session)
        await message_queries.insert_message(
            db_session,
            project_id=project.id,
            sender_name="Jane",
            sender_role="client",
            body="Public",
        )
        await message_queries.insert_message(
            db_session,
            project_id=project.id,
            sender_name="Ann",
            sender_role="admin",
            body="Staff only",
            is_internal=True,
        )

        public = await message_queries.list_messages(db_session, project.id, include_internal=False)
        everything = await message_queries.list_messages(
            db_session, project.id, include_internal=True
        )

        assert [m.body for m in public] == ["Public"]
        assert {m.body for m in everything} == {"Public", "Staff only"}
        assert public[0].source is MessageSource.panel


class TestProfileQueries:
    @pytest.mark.asyncio
    async def test_find_by_email_is_case_insensitive(
        self, db_session: AsyncSession, client_profile: Profile
    ) -> None:
        found = await profile_queries.find_profile_by_email(db_session, "  JANE@Client.Example ")

        assert found is not None
        assert found.id == client_profile.id

    @pytest.mark.asyncio
    async def test_find_by_blank_email(self, db_session: AsyncSession) -> None:
        assert await profile_queries.find_profile_by_email(db_session, "") is None

    @pytest.mark.asyncio
    async def test_emails_for_roles(
        self,
        db_session: AsyncSession,
        client_profile: Profile,
        admin_profile: Profile,
    ) -> None:
        emails = await profile_queries.list_emails_for_roles(db_session, ["admin", "manager"])

        assert emails == ["ann@staff.example"]
