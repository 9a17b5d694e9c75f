"""Factories de componentes — criação de implementações concretas.

Centraliza a escolha de backends (memory/redis/firestore) e o wiring da
SyncSession com provider, stores, publisher e fluxo de autorização.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING

from api.connectors.provider import ProviderClient
from app.bootstrap.clients import create_async_redis_client, create_firestore_client
from app.infra.auth import BrowserAuthorizationFlow
from app.infra.stores import (
    FirestoreSharedStore,
    MemorySharedStore,
    MemoryTokenStore,
    RedisTokenStore,
)
from app.services.mirror_publisher import MirrorPublisher
from app.services.shared_view import SharedViewAggregator
from app.sessions.sync_session import SyncSession, SyncSnapshot
from config.settings import (
    get_base_settings,
    get_firestore_settings,
    get_provider_settings,
    get_sync_settings,
)

if TYPE_CHECKING:
    from app.protocols.shared_store import SharedStoreProtocol
    from app.protocols.token_store import TokenStoreProtocol
    from config.settings import ProviderSettings, SyncSettings

logger = logging.getLogger(__name__)


@dataclass
class CalendarRuntime:
    """Componentes vivos do processo (sessão local + visão compartilhada).

    A visão compartilhada só existe enquanto a sessão está conectada: é
    criada a cada login e fechada (todas as assinaturas liberadas) no logout.
    """

    session: SyncSession
    publisher: MirrorPublisher
    shared_store: SharedStoreProtocol
    auth_flow: BrowserAuthorizationFlow
    settings: SyncSettings
    shared_view_factory: Callable[[], SharedViewAggregator] | None = None
    shared_view: SharedViewAggregator | None = field(default=None, init=False)

    async def start(self) -> None:
        await self.session.start()
        await self.sync_shared_view()

    async def stop(self) -> None:
        await self.session.stop()
        await self._close_shared_view()

    async def start_auth(self) -> SyncSnapshot:
        snapshot = await self.session.start_auth()
        await self.sync_shared_view()
        return snapshot

    async def handle_callback(self, url: str) -> bool:
        connected = await self.session.handle_callback(url)
        await self.sync_shared_view()
        return connected

    async def logout(self) -> SyncSnapshot:
        snapshot = await self.session.logout()
        await self.sync_shared_view()
        return snapshot

    async def sync_shared_view(self) -> None:
        """Abre a visão compartilhada se conectado; fecha caso contrário."""
        if not self.session.is_connected:
            await self._close_shared_view()
            return
        if self.shared_view_factory is None or self.shared_view is not None:
            return
        view = self.shared_view_factory()
        await view.start()
        self.shared_view = view

    async def _close_shared_view(self) -> None:
        view, self.shared_view = self.shared_view, None
        if view is not None:
            await view.close()


# ──────────────────────────────────────────────────────────────────────────────
# Store Factories
# ──────────────────────────────────────────────────────────────────────────────


def create_token_store(settings: SyncSettings | None = None) -> TokenStoreProtocol:
    """Cria store de token baseado em TOKEN_STORE_BACKEND.

    - "memory": MemoryTokenStore (dev only)
    - "redis": RedisTokenStore (staging/production)
    """
    settings = settings or get_sync_settings()
    backend = settings.token_store_backend

    if backend == "redis":
        store: TokenStoreProtocol = RedisTokenStore(create_async_redis_client())
        logger.info("token_store_created", extra={"backend": "redis"})
        return store

    if backend == "memory":
        environment = get_base_settings().environment
        if environment != "development":
            logger.warning(
                "memory_token_store_in_non_dev",
                extra={"backend": "memory", "environment": environment},
            )
        logger.info("token_store_created", extra={"backend": "memory"})
        return MemoryTokenStore()

    msg = f"TOKEN_STORE_BACKEND inválido: {backend}"
    raise ValueError(msg)


def create_shared_store(settings: SyncSettings | None = None) -> SharedStoreProtocol:
    """Cria store compartilhado baseado em SHARED_STORE_BACKEND."""
    settings = settings or get_sync_settings()
    backend = settings.shared_store_backend

    if backend == "firestore":
        store: SharedStoreProtocol = FirestoreSharedStore(
            create_firestore_client(),
            get_firestore_settings(),
        )
        logger.info("shared_store_created", extra={"backend": "firestore"})
        return store

    if backend == "memory":
        logger.info("shared_store_created", extra={"backend": "memory"})
        return MemorySharedStore()

    msg = f"SHARED_STORE_BACKEND inválido: {backend}"
    raise ValueError(msg)


# ──────────────────────────────────────────────────────────────────────────────
# Runtime
# ──────────────────────────────────────────────────────────────────────────────


def create_calendar_runtime(
    sync_settings: SyncSettings | None = None,
    provider_settings: ProviderSettings | None = None,
) -> CalendarRuntime:
    """Monta sessão, publisher e visão compartilhada a partir das settings."""
    sync_settings = sync_settings or get_sync_settings()
    provider_settings = provider_settings or get_provider_settings()

    shared_store = create_shared_store(sync_settings)
    publisher = MirrorPublisher(shared_store)
    auth_flow = BrowserAuthorizationFlow()
    session = SyncSession(
        provider=ProviderClient(provider_settings),
        token_store=create_token_store(sync_settings),
        settings=sync_settings,
        redirect_uri=provider_settings.redirect_uri,
        auth_flow=auth_flow,
        publisher=publisher,
    )
    shared_view_factory = (
        partial(SharedViewAggregator, shared_store, sync_settings.user_id)
        if sync_settings.user_id
        else None
    )
    if shared_view_factory is None:
        logger.info("shared_view_disabled", extra={"reason": "SYNC_USER_ID vazio"})

    return CalendarRuntime(
        session=session,
        publisher=publisher,
        shared_store=shared_store,
        auth_flow=auth_flow,
        settings=sync_settings,
        shared_view_factory=shared_view_factory,
    )
