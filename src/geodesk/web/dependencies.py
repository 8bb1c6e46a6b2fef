"""Service wiring and FastAPI dependencies for Geodesk.

All long-lived collaborators are built once by ``build_services`` (called
from the application lifespan) and stored on ``app.state.services``.
Route handlers reach them through the dependency functions below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import Request

from geodesk.audit.ledger import AuditLedger
from geodesk.config import GeodeskConfig
from geodesk.database.connection import Database
from geodesk.inbound.receiving import ReceivingClient
from geodesk.inbound.resolver import InboundThreadResolver
from geodesk.lifecycle.controller import ProjectLifecycleController
from geodesk.notifications.delivery import NotificationDelivery
from geodesk.notifications.email import EmailClient
from geodesk.notifications.notifier import ProjectNotifier
from geodesk.notifications.outbox import NotificationOutbox
from geodesk.notifications.recipients import RecipientResolver
from geodesk.notifications.rendering import EmailRenderer
from geodesk.quotes.engine import QuotationEngine
from geodesk.storage import ObjectStorage
from geodesk.web.auth import IdentityClient

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


@dataclass(frozen=True)
class ServiceContainer:
    """Every collaborator the HTTP layer needs, built once per process."""

    config: GeodeskConfig
    database: Database
    email_client: EmailClient
    outbox: NotificationOutbox
    notifier: ProjectNotifier
    storage: ObjectStorage
    receiving: ReceivingClient
    identity: IdentityClient
    controller: ProjectLifecycleController
    quotes: QuotationEngine
    inbound: InboundThreadResolver

    async def aclose(self) -> None:
        """Drain the outbox and release network and database resources."""
        await self.outbox.stop()
        await self.email_client.close()
        await self.storage.close()
        await self.receiving.close()
        await self.identity.close()
        await self.database.dispose()


def build_services(
    config: GeodeskConfig,
    database: Database | None = None,
    email_client: EmailClient | None = None,
) -> ServiceContainer:
    """Wire the service graph.

    Args:
        config: Resolved configuration.
        database: Existing database handle; built from config when None.
        email_client: Existing email client; built from config when None.
    """
    database = database or Database.from_config(config.database)
    email_client = email_client or EmailClient(config.email)
    session_factory = database.session_factory

    ledger = AuditLedger()
    delivery = NotificationDelivery(
        session_factory,
        RecipientResolver(config.email, config.auth.staff_roles),
        email_client,
    )
    outbox = NotificationOutbox(delivery, config.outbox)
    notifier = ProjectNotifier(outbox, EmailRenderer(config.email))
    storage = ObjectStorage(config.storage)
    receiving = ReceivingClient(config.email)

    return ServiceContainer(
        config=config,
        database=database,
        email_client=email_client,
        outbox=outbox,
        notifier=notifier,
        storage=storage,
        receiving=receiving,
        identity=IdentityClient(config.auth),
        controller=ProjectLifecycleController(session_factory, ledger, notifier, storage),
        quotes=QuotationEngine(session_factory, ledger, notifier, config.quote),
        inbound=InboundThreadResolver(
            session_factory,
            ledger,
            notifier,
            receiving,
            webhook_config=config.webhook,
            auth_config=config.auth,
        ),
    )


def get_services(request: Request) -> ServiceContainer:
    """Dependency that retrieves the service container from app state."""
    return request.app.state.services  # type: ignore[no-any-return]


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves the session factory from app state."""
    return get_services(request).database.session_factory


def get_controller(request: Request) -> ProjectLifecycleController:
    return get_services(request).controller


def get_quote_engine(request: Request) -> QuotationEngine:
    return get_services(request).quotes


def get_inbound_resolver(request: Request) -> InboundThreadResolver:
    return get_services(request).inbound