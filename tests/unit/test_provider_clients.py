"""Unit tests for the identity provider and object storage clients.

HTTP traffic is intercepted with respx.
"""

from __future__ import annotations

import json
from uuid import uuid4

import httpx
import pytest
import respx

from geodesk.config import AuthConfig, StorageConfig
from geodesk.errors import DependencyError
from geodesk.storage import ObjectStorage
from geodesk.web.auth import IdentityClient

AUTH_URL = "https://auth.example/auth/v1"
STORAGE_URL = "https://storage.example/storage/v1"


class TestIdentityClient:
    @pytest.mark.asyncio
    async def test_valid_token(self) -> None:
        user_id = uuid4()
        client = IdentityClient(AuthConfig(auth_url=AUTH_URL, api_key="anon-key"))

        with respx.mock as mock:
            route = mock.get(f"{AUTH_URL}/user").mock(
                return_value=httpx.Response(200, json={"id": str(user_id)})
            )
            assert await client.user_id("tok") == user_id

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer tok"
        assert request.headers["apikey"] == "anon-key"
        await client.close()

    @pytest.mark.asyncio
    async def test_rejected_token(self) -> None:
        client = IdentityClient(AuthConfig(auth_url=AUTH_URL))

        with respx.mock as mock:
            mock.get(f"{AUTH_URL}/user").mock(return_value=httpx.Response(401))
            assert await client.user_id("expired") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_malformed_response(self) -> None:
        client = IdentityClient(AuthConfig(auth_url=AUTH_URL))

        with respx.mock as mock:
            mock.get(f"{AUTH_URL}/user").mock(
                return_value=httpx.Response(200, json={"id": "not-a-uuid"})
            )
            assert await client.user_id("tok") is None
        await client.close()

    @pytest.mark.asyncio
    async def test_unreachable_provider(self) -> None:
        client = IdentityClient(AuthConfig(auth_url=AUTH_URL))

        with respx.mock as mock:
            mock.get(f"{AUTH_URL}/user").mock(side_effect=httpx.ConnectError("refused"))
            assert await client.user_id("tok") is None
        await client.close()


class TestObjectStorage:
    @pytest.fixture
    def storage(self) -> ObjectStorage:
        return ObjectStorage(StorageConfig(url=STORAGE_URL, service_key="svc"))

    @pytest.mark.asyncio
    async def test_remove(self, storage: ObjectStorage) -> None:
        with respx.mock as mock:
            route = mock.delete(f"{STORAGE_URL}/object/project-media").mock(
                return_value=httpx.Response(200, json=[])
            )
            await storage.remove(["p/site.jpg"])

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer svc"
        assert json.loads(request.content) == {"prefixes": ["p/site.jpg"]}
        await storage.close()

    @pytest.mark.asyncio
    async def test_remove_nothing(self, storage: ObjectStorage) -> None:
        with respx.mock(assert_all_called=False) as mock:
            route = mock.delete(f"{STORAGE_URL}/object/project-media")
            await storage.remove([])

        assert not route.called

    @pytest.mark.asyncio
    async def test_rejected_removal(self, storage: ObjectStorage) -> None:
        with respx.mock as mock:
            mock.delete(f"{STORAGE_URL}/object/project-media").mock(
                return_value=httpx.Response(403, text="denied")
            )
            with pytest.raises(DependencyError) as exc_info:
                await storage.remove(["p/site.jpg"])

        assert exc_info.value.details == {"status": 403}
        await storage.close()

    @pytest.mark.asyncio
    async def test_unreachable_storage(self, storage: ObjectStorage) -> None:
        with respx.mock as mock:
            mock.delete(f"{STORAGE_URL}/object/project-media").mock(
                side_effect=httpx.ConnectError("refused")
            )
            with pytest.raises(DependencyError):
                await storage.remove(["p/site.jpg"])
        await storage.close()
