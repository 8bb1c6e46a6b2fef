"""Bearer-token authentication for the Geodesk API.

Identity is owned by an external provider: the bearer token is exchanged
for a user id (``GET {auth_url}/user``), and the user's role and contact
details are read from the ``profiles`` table. Missing or invalid tokens,
and users without a profile, are unauthenticated.
"""

from __future__ import annotations

from uuid import UUID

import httpx
from fastapi import Request

from geodesk.config import AuthConfig
from geodesk.database.queries import profile as profile_queries
from geodesk.errors import UnauthenticatedError
from geodesk.lifecycle.authz import Actor
from geodesk.logging import bind_actor_context, get_logger

logger = get_logger(__name__)


def bearer_token(request: Request) -> str | None:
    """Token from the Authorization header, if present."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class IdentityClient:
    """Resolves bearer tokens through the identity provider."""

    def __init__(self, config: AuthConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def user_id(self, token: str) -> UUID | None:
        """Return the user id for a token, or None if it is not valid."""
        headers = {"Authorization": f"Bearer {token}"}
        if self.config.api_key:
            headers["apikey"] = self.config.api_key

        try:
            client = await self._get_client()
            response = await client.get(f"{self.config.auth_url.rstrip('/')}/user", headers=headers)
        except httpx.RequestError as e:
            logger.warning("identity_lookup_error", error=str(e))
            return None

        if not response.is_success:
            logger.info("identity_token_rejected", status_code=response.status_code)
            return None

        try:
            return UUID(str(response.json().get("id")))
        except (ValueError, AttributeError):
            logger.warning("identity_response_malformed")
            return None


async def get_actor(request: Request) -> Actor:
    """FastAPI dependency returning the authenticated caller.

    Raises:
        UnauthenticatedError: No token, an invalid token, or no profile.
    """
    token = bearer_token(request)
    if token is None:
        raise UnauthenticatedError("Unauthorized", reason="Not authenticated")

    services = request.app.state.services
    user_id = await services.identity.user_id(token)
    if user_id is None:
        raise UnauthenticatedError("Unauthorized", reason="Invalid token")

    async with services.database.session_factory() as session:
        profile = await profile_queries.get_profile(session, user_id)
    if profile is None:
        raise UnauthenticatedError("Unauthorized", reason="Profile not found")

    actor = Actor.from_profile(
        profile,
        staff_roles=services.config.auth.staff_roles,
        client_role=services.config.auth.client_role,
    )
    bind_actor_context(actor_id=str(actor.id), role=actor.role)
    return actor
