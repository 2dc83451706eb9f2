from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.authentication import AuthenticationMiddleware
from starlette.routing import Route, WebSocketRoute

from common.auth import IdentityService, IdentitySettings
from common.contacts import ContactGraph
from common.db import Database, SqliteMessageRepository, SqliteUserRepository
from common.logging import setup_logging
from common.store import MessageStore
from relay.auth.backend import CredentialCookieBackend
from relay.auth.policy import protected_html, public_route, validate_route_auth_policy
from relay.hub.broadcast import BroadcastHub
from relay.hub.websocket import chat_websocket
from relay.server.settings import RelayServerSettings
from relay.views import chat_page, health, home_page, logout, signin_page, submit

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


def create_app(
    settings: RelayServerSettings | None = None,
    identity_settings: IdentitySettings | None = None,  # required in production (via get_app)
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = RelayServerSettings()
    if identity_settings is None:  # pragma: no cover
        identity_settings = IdentitySettings()  # type: ignore[call-arg]

    routes = [
        # Protected pages (redirect to /signin when unauthenticated)
        Route("/", protected_html(home_page), methods=["GET"], name="home_page"),
        Route("/chat/{user_id}", protected_html(chat_page), methods=["GET"], name="chat_page"),
        # Public routes
        Route("/health", public_route(health), methods=["GET"], name="health"),
        Route("/signin", public_route(signin_page), methods=["GET"], name="signin_page"),
        Route("/submit", public_route(submit), methods=["POST"], name="submit"),
        Route("/logout", public_route(logout), methods=["POST"], name="logout"),
        # Live channel (credential verified by the hub on connect)
        WebSocketRoute("/ws", chat_websocket, name="chat_websocket"),
    ]
    validate_route_auth_policy(routes)

    db = Database(identity_settings.database_path)
    db.connect()
    store = MessageStore(SqliteUserRepository(db), SqliteMessageRepository(db))
    identity = IdentityService(store, credential_secret=identity_settings.credential_secret)
    hub = BroadcastHub(store, identity, outbound_queue_size=settings.outbound_queue_size)

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        await hub.shutdown()
        db.close()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        middleware=[Middleware(AuthenticationMiddleware, backend=CredentialCookieBackend(identity))],
    )

    app.state.db = db
    app.state.settings = settings
    app.state.identity_settings = identity_settings
    app.state.store = store
    app.state.contacts = ContactGraph(store)
    app.state.identity = identity
    app.state.hub = hub

    logger.info("relay server ready")
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory relay.server.app:get_app."""
    s = RelayServerSettings()
    identity_settings = IdentitySettings()  # type: ignore[call-arg]
    setup_logging(log_dir=s.log_dir)
    return create_app(settings=s, identity_settings=identity_settings)
