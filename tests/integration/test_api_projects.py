"""Integration tests for the project, quote and message endpoints."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from uuid import uuid4

import pytest
from httpx import AsyncClient

from geodesk.lifecycle.authz import Actor
from geodesk.web.dependencies import ServiceContainer

RFQ = {
    "projectName": "Harbour Survey",
    "projectDescription": "Topographic survey of the pier",
    "projectLocation": "Kingston",
    "serviceTypeId": "topographic",
    "surveyAreaSqm": 2500,
}

QUOTE = {
    "lineItems": [
        {"description": "Topographic survey", "quantity": 2500, "unitPrice": 3.2},
        {"description": "Report", "quantity": 1, "unitPrice": 1000},
    ],
    "mobilizationCost": 1000,
    "prepaymentPct": 50,
}


async def _submit(http_client: AsyncClient) -> dict[str, Any]:
    response = await http_client.post("/projects", json=RFQ)
    assert response.status_code == 201
    return response.json()["project"]


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, http_client: AsyncClient) -> None:
        response = await http_client.get("/projects")

        assert response.status_code == 401
        assert response.json()["code"] == "unauthenticated"

    @pytest.mark.asyncio
    async def test_staff_cannot_submit(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        admin_actor: Actor,
    ) -> None:
        act_as(admin_actor)

        response = await http_client.post("/projects", json=RFQ)

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"


class TestProjectEndpoints:
    @pytest.mark.asyncio
    async def test_submit_and_read(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
        services: ServiceContainer,
    ) -> None:
        act_as(client_actor)

        project = await _submit(http_client)

        assert project["status"] == "rfq_submitted"
        assert project["project_name"] == "Harbour Survey"
        assert project["client_email"] == "jane@client.example"
        assert project["survey_area_sqm"] == 2500.0
        assert services.outbox.pending == 2

        listing = await http_client.get("/projects")
        assert [p["id"] for p in listing.json()["projects"]] == [project["id"]]

        detail = (await http_client.get(f"/projects/{project['id']}")).json()
        assert detail["project"]["attachments"] == []
        assert detail["project"]["media"] == []
        assert detail["line_items"] == []
        assert [e["action"] for e in detail["activity_log"]] == ["rfq_submitted"]
        assert detail["messages"][0]["source"] == "system"

    @pytest.mark.asyncio
    async def test_missing_fields(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
    ) -> None:
        act_as(client_actor)

        response = await http_client.post("/projects", json={"projectName": "Only a name"})

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert "project_description" in body["fields"]

    @pytest.mark.asyncio
    async def test_unknown_project(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        admin_actor: Actor,
    ) -> None:
        act_as(admin_actor)

        response = await http_client.get(f"/projects/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    @pytest.mark.asyncio
    async def test_invalid_transition_is_conflict(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
        admin_actor: Actor,
    ) -> None:
        act_as(client_actor)
        project = await _submit(http_client)

        act_as(admin_actor)
        response = await http_client.put(
            f"/projects/{project['id']}/status", json={"status": "completed"}
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "invalid_transition"
        assert body["current"] == "rfq_submitted"
        assert body["requested"] == "completed"

    @pytest.mark.asyncio
    async def test_cancel_and_feature(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
        admin_actor: Actor,
    ) -> None:
        act_as(client_actor)
        project = await _submit(http_client)

        cancelled = await http_client.post(
            f"/projects/{project['id']}/cancel", json={"reason": "Budget cut"}
        )
        assert cancelled.status_code == 200
        assert cancelled.json()["project"]["status"] == "cancelled"

        act_as(admin_actor)
        featured = await http_client.patch(f"/projects/{project['id']}", json={"featured": True})
        assert featured.json()["project"]["featured"] is True
        assert featured.json()["project"]["featured_at"] is not None

    @pytest.mark.asyncio
    async def test_notes_media_and_attachments(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
    ) -> None:
        act_as(client_actor)
        project = await _submit(http_client)
        base = f"/projects/{project['id']}"

        note = await http_client.post(f"{base}/notes", json={"note": "Gate opens at 7"})
        assert note.status_code == 201
        assert note.json()["entry"]["action"] == "note_added"

        media = await http_client.post(
            f"{base}/media",
            json={"media": [{"filePath": "p/site.jpg", "fileName": "site.jpg", "fileSize": 10}]},
        )
        assert media.status_code == 201
        assert media.json()["media"][0]["file_name"] == "site.jpg"

        attachments = await http_client.post(
            f"{base}/attachments",
            json={"attachments": [{"filePath": "p/brief.pdf", "fileName": "brief.pdf"}]},
        )
        assert attachments.status_code == 201

        invalid = await http_client.post(f"{base}/media", json={"media": [{"fileName": "x"}]})
        assert invalid.status_code == 400
        assert invalid.json()["code"] == "validation_error"

        activity = (await http_client.get(f"{base}/activity")).json()["activity_log"]
        assert [e["action"] for e in activity] == [
            "attachments_registered",
            "media_registered",
            "note_added",
            "rfq_submitted",
        ]


class TestQuoteFlow:
    @pytest.mark.asyncio
    async def test_request_to_accepted_quote(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
        admin_actor: Actor,
    ) -> None:
        act_as(client_actor)
        project = await _submit(http_client)
        project_id = project["id"]

        act_as(admin_actor)
        review = await http_client.put(
            f"/projects/{project_id}/status", json={"status": "under_review"}
        )
        assert review.json()["project"]["status"] == "under_review"

        quote = await http_client.post(f"/quotes/{project_id}", json=QUOTE)
        assert quote.status_code == 200
        quoted = quote.json()["project"]
        assert quoted["status"] == "quoted"
        assert quoted["total_cost_jmd"] == 10000.0
        assert quoted["prepayment_amount"] == 5000.0
        assert quoted["balance_amount"] == 5000.0
        assert len(quote.json()["line_items"]) == 2

        again = await http_client.post(f"/quotes/{project_id}", json=QUOTE)
        assert again.status_code == 409
        assert again.json()["code"] == "quote_already_generated"

        act_as(client_actor)
        accepted = await http_client.post(f"/quotes/{project_id}/accept")
        assert accepted.json()["project"]["status"] == "quote_accepted"

        activity = (await http_client.get(f"/projects/{project_id}/activity")).json()
        actions = [e["action"] for e in reversed(activity["activity_log"])]
        assert actions == ["rfq_submitted", "status_changed", "quote_generated", "quote_accepted"]
        generated = activity["activity_log"][1]
        assert generated["details"]["totalJmd"] == 10000.0
        assert generated["details"]["lineItemCount"] == 2

    @pytest.mark.asyncio
    async def test_reject_with_reason(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
    ) -> None:
        act_as(client_actor)
        project = await _submit(http_client)

        rejected = await http_client.post(
            f"/quotes/{project['id']}/reject", json={"reason": "Found another firm"}
        )

        assert rejected.status_code == 200
        assert rejected.json()["project"]["status"] == "quote_rejected"

    @pytest.mark.asyncio
    async def test_accept_before_quote(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
    ) -> None:
        act_as(client_actor)
        project = await _submit(http_client)

        response = await http_client.post(f"/quotes/{project['id']}/accept")

        assert response.status_code == 400


class TestMessages:
    @pytest.mark.asyncio
    async def test_thread_visibility(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
        admin_actor: Actor,
    ) -> None:
        act_as(client_actor)
        project = await _submit(http_client)
        path = f"/comms/{project['id']}/messages"

        act_as(admin_actor)
        internal = await http_client.post(path, json={"body": "Margin note", "isInternal": True})
        assert internal.status_code == 201
        assert internal.json()["message"]["is_internal"] is True
        staff_view = (await http_client.get(path)).json()["messages"]

        act_as(client_actor)
        posted = await http_client.post(path, json={"body": "Any update?"})
        client_view = (await http_client.get(path)).json()["messages"]

        assert posted.json()["message"]["source"] == "panel"
        assert "Margin note" in [m["body"] for m in staff_view]
        assert "Margin note" not in [m["body"] for m in client_view]
        assert "Any update?" in [m["body"] for m in client_view]

    @pytest.mark.asyncio
    async def test_other_client_is_forbidden(
        self,
        http_client: AsyncClient,
        act_as: Callable[[Actor], None],
        client_actor: Actor,
        other_client_actor: Actor,
    ) -> None:
        act_as(client_actor)
        project = await _submit(http_client)

        act_as(other_client_actor)
        response = await http_client.get(f"/comms/{project['id']}/messages")

        assert response.status_code == 403
