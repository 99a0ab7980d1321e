"""
IdentityService — wires configuration, attribute store and components.

Built once at service start; tables are declared on startup and the store
is closed on cleanup of the aiohttp application.
"""
import logging
from typing import Optional

from aiohttp import web

from .conf import IdentityConfig
from .credentials import CredentialManager
from .primitives import SecretPrimitives
from .sessions import SessionStore
from .storage import AttributeStore, get_store

logger = logging.getLogger("navigator.identity")


class IdentityService:
    """Credential Manager and Session Store sharing one attribute store."""

    def __init__(
        self,
        config: IdentityConfig,
        store: Optional[AttributeStore] = None,
    ):
        self.config = config
        self.store = store or get_store(
            config.store.url, timeout=config.store.timeout,
        )
        self.primitives = SecretPrimitives(config.primitives)
        self.credentials = CredentialManager(
            self.store, self.primitives, config.credentials,
        )
        self.sessions = SessionStore(self.store, config.sessions)

    async def start(self) -> None:
        await self.store.open()
        await self.store.ensure_tables(self.config.tables)
        logger.info(
            "Identity service started: tables=%s",
            [t.table for t in self.config.tables],
        )

    async def stop(self) -> None:
        await self.store.close()
        logger.info("Identity service stopped")

    async def on_startup(self, app: web.Application) -> None:
        await self.start()

    async def on_cleanup(self, app: web.Application) -> None:
        await self.stop()


IDENTITY_SERVICE = web.AppKey("identity_service", IdentityService)


def setup_identity(
    app: web.Application,
    config: IdentityConfig,
    store: Optional[AttributeStore] = None,
) -> IdentityService:
    """Register the identity routes and service on an aiohttp application."""
    from .handlers import routes

    service = IdentityService(config, store=store)
    app[IDENTITY_SERVICE] = service
    app.add_routes(routes)
    app.on_startup.append(service.on_startup)
    app.on_cleanup.append(service.on_cleanup)
    return service


def create_app(
    config: Optional[IdentityConfig] = None,
    store: Optional[AttributeStore] = None,
) -> web.Application:
    app = web.Application()
    setup_identity(app, config or IdentityConfig.from_env(), store=store)
    return app
