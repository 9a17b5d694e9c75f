"""Sessão de sincronização com o provider de calendário.

Dona do token, do cursor de sync e da coleção local de eventos.
Estados (fsm): LOGGED_OUT → AUTHENTICATING → CONNECTED ⇄ POLLING → LOGGED_OUT.

Invariantes:
- No máximo um poll em andamento; um pedido concorrente é descartado.
- Falha de poll não altera coleção nem cursor.
- O cursor só é substituído quando a resposta traz um novo.
- Logout limpa token persistido, coleção, cursor e calendário.
- Cada login começa com coleção e cursor novos.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from api.connectors.provider.deep_link import extract_exchange_code
from app.domain.event import Event, EventCollection, EventDraft
from app.observability import (
    correlation_scope,
    get_correlation_id,
    record_latency,
    record_sync_cycle,
)
from app.services.delta_merge import apply_with_stats, visible_events
from app.sessions.poller import Poller
from fsm import CONNECTED_STATES, FSMStateMachine, SyncState
from utils.errors import (
    AuthRequiredError,
    CalendarSyncError,
    ExchangeFailedError,
    InfrastructureError,
    ProviderUnreachableError,
)

if TYPE_CHECKING:
    from app.protocols.auth_flow import AuthorizationFlowProtocol
    from app.protocols.provider_client import ProviderClientProtocol
    from app.protocols.token_store import TokenStoreProtocol
    from app.services.mirror_publisher import MirrorPublisher
    from config.settings.sync import SyncSettings

logger = logging.getLogger(__name__)

STATUS_LOGGED_OUT = "Please log in to sync your calendar"
STATUS_AUTHENTICATING = "Waiting for authorization"
STATUS_CONNECTED = "Connected"
STATUS_SYNCING = "Syncing events"
STATUS_UNREACHABLE = "Unable to reach the calendar provider. Showing last synced events."
STATUS_EXCHANGE_FAILED = "Authorization failed. Please try again."
STATUS_MIRROR_FAILED = "Events synced, but sharing copy could not be updated"

SyncListener = Callable[["SyncSnapshot"], None]


@dataclass(frozen=True, slots=True)
class SyncSnapshot:
    """Visão imutável da sessão entregue aos listeners."""

    state: SyncState
    events: tuple[Event, ...] = ()
    has_cursor: bool = False
    calendar_id: str | None = None
    status_message: str = ""
    error: str | None = None
    last_synced_at: datetime | None = None
    metadata: dict[str, int] = field(default_factory=dict)

    @property
    def is_connected(self) -> bool:
        return self.state in CONNECTED_STATES


class SyncSession:
    """Sessão explícita com ciclo de vida ``start``/``stop`` e observers."""

    def __init__(
        self,
        provider: ProviderClientProtocol,
        token_store: TokenStoreProtocol,
        settings: SyncSettings,
        *,
        redirect_uri: str,
        auth_flow: AuthorizationFlowProtocol | None = None,
        publisher: MirrorPublisher | None = None,
        session_id: str = "local",
    ) -> None:
        self._provider = provider
        self._token_store = token_store
        self._settings = settings
        self._redirect_uri = redirect_uri
        self._auth_flow = auth_flow
        self._publisher = publisher
        self._fsm = FSMStateMachine(session_id=session_id)
        self._poller = Poller(self.refresh, settings.poll_interval_seconds)
        self._poll_lock = asyncio.Lock()
        self._listeners: list[SyncListener] = []

        self._token: str | None = None
        self._cursor: str | None = None
        self._events: EventCollection = {}
        self._calendar_id: str | None = None
        self._status_message = STATUS_LOGGED_OUT
        self._error: str | None = None
        self._last_synced_at: datetime | None = None
        self._epoch = 0

    # ──────────────────────────────────────────────────────────────
    # Propriedades
    # ──────────────────────────────────────────────────────────────

    @property
    def state(self) -> SyncState:
        return self._fsm.current_state

    @property
    def is_connected(self) -> bool:
        return self._fsm.is_connected

    @property
    def cursor(self) -> str | None:
        return self._cursor

    @property
    def calendar_id(self) -> str | None:
        return self._calendar_id

    @property
    def events(self) -> EventCollection:
        return dict(self._events)

    @property
    def poller(self) -> Poller:
        return self._poller

    @property
    def fsm(self) -> FSMStateMachine:
        return self._fsm

    def visible_events(self) -> list[Event]:
        return visible_events(self._events)

    def snapshot(self) -> SyncSnapshot:
        return SyncSnapshot(
            state=self.state,
            events=tuple(self.visible_events()),
            has_cursor=self._cursor is not None,
            calendar_id=self._calendar_id,
            status_message=self._status_message,
            error=self._error,
            last_synced_at=self._last_synced_at,
            metadata={"transitions": len(self._fsm.history)},
        )

    def authorization_url(self) -> str:
        """URL do fluxo de autorização do provider."""
        return self._provider.authorization_url()

    # ──────────────────────────────────────────────────────────────
    # Observers
    # ──────────────────────────────────────────────────────────────

    def subscribe(self, listener: SyncListener) -> Callable[[], None]:
        """Registra listener; retorna a função de cancelamento."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("sync_listener_failed")

    # ──────────────────────────────────────────────────────────────
    # Ciclo de vida
    # ──────────────────────────────────────────────────────────────

    async def start(self) -> SyncSnapshot:
        """Restaura o token persistido; se existir, conecta e inicia o poller."""
        if self.state != SyncState.LOGGED_OUT:
            return self.snapshot()
        try:
            token = await self._token_store.get(self._settings.token_key)
        except InfrastructureError as exc:
            logger.warning("sync_token_restore_failed", extra={"error_type": type(exc).__name__})
            self._error = type(exc).__name__
            token = None

        if not token:
            logger.info("sync_session_started", extra={"restored": False})
            self._status_message = STATUS_LOGGED_OUT
            self._notify()
            return self.snapshot()

        self._begin_login(token)
        self._transition(SyncState.CONNECTED, "token_restored")
        logger.info("sync_session_started", extra={"restored": True})
        await self._after_connect()
        return self.snapshot()

    async def stop(self) -> None:
        """Cancela o poller sem apagar o estado persistido."""
        self._poller.stop()
        if self._auth_flow is not None:
            self._auth_flow.cancel()
        logger.info("sync_session_stopped", extra={"state": self.state.value})

    async def start_auth(self) -> SyncSnapshot:
        """Abre o fluxo interativo e processa o callback recebido."""
        if self.state != SyncState.LOGGED_OUT:
            return self.snapshot()
        self._error = None
        self._status_message = STATUS_AUTHENTICATING
        self._transition(SyncState.AUTHENTICATING, "start_auth")
        self._notify()

        if self._auth_flow is None:
            return self.snapshot()

        try:
            callback_url = await self._auth_flow.authorize(
                self._provider.authorization_url(),
                self._redirect_uri,
            )
        except (RuntimeError, OSError) as exc:
            logger.warning("auth_flow_failed", extra={"error_type": type(exc).__name__})
            callback_url = None

        if callback_url is None:
            if self.state == SyncState.AUTHENTICATING:
                self._status_message = STATUS_LOGGED_OUT
                self._transition(SyncState.LOGGED_OUT, "auth_cancelled")
                self._notify()
            return self.snapshot()

        await self.handle_callback(callback_url)
        return self.snapshot()

    async def handle_callback(self, url: str) -> bool:
        """Processa o deep link de retorno (``.../exchange?code=...``)."""
        if self.state in CONNECTED_STATES:
            logger.info("auth_callback_ignored", extra={"state": self.state.value})
            return False

        code = extract_exchange_code(url)
        if code is None:
            self._fail_login("invalid_callback")
            return False

        epoch = self._epoch
        try:
            token = await self._provider.exchange_code(code)
        except (ExchangeFailedError, ProviderUnreachableError) as exc:
            if not self._is_stale_callback(epoch):
                self._fail_login(type(exc).__name__)
            return False

        if self._is_stale_callback(epoch):
            return False

        self._begin_login(token)
        self._transition(SyncState.CONNECTED, "code_exchanged")
        try:
            await self._token_store.set(self._settings.token_key, token)
        except InfrastructureError as exc:
            logger.warning("sync_token_persist_failed", extra={"error_type": type(exc).__name__})
        if self.state not in CONNECTED_STATES:
            return False
        logger.info("auth_completed")
        await self._after_connect()
        return True

    async def logout(self) -> SyncSnapshot:
        """Encerra a sessão: cancela poller e limpa todo o estado local."""
        self._epoch += 1
        self._poller.stop()
        if self._auth_flow is not None:
            self._auth_flow.cancel()
        try:
            await self._token_store.delete(self._settings.token_key)
        except InfrastructureError as exc:
            logger.warning("sync_token_clear_failed", extra={"error_type": type(exc).__name__})

        self._clear_local_state()
        self._error = None
        self._status_message = STATUS_LOGGED_OUT
        if self.state != SyncState.LOGGED_OUT:
            self._transition(SyncState.LOGGED_OUT, "logout")
        logger.info("sync_logged_out")
        self._notify()
        return self.snapshot()

    # ──────────────────────────────────────────────────────────────
    # Poll
    # ──────────────────────────────────────────────────────────────

    async def refresh(self) -> bool:
        """Executa um poll agora.

        Returns:
            False quando já existe um poll em andamento (pedido descartado).

        Raises:
            AuthRequiredError: Sessão não está conectada.
        """
        if self.state not in CONNECTED_STATES or self._token is None:
            raise AuthRequiredError("Login necessário para sincronizar")
        if self._poll_lock.locked():
            logger.debug("poll_skipped_in_flight")
            record_sync_cycle("skipped")
            return False
        async with self._poll_lock:
            with correlation_scope():
                await self._poll_once()
        return True

    async def _poll_once(self) -> None:
        epoch = self._epoch
        token = self._token
        assert token is not None
        started = time.perf_counter()
        self._transition(SyncState.POLLING, "poll_started")
        self._status_message = STATUS_SYNCING
        try:
            result = await self._provider.list_events(token, self._cursor)
        except (CalendarSyncError, InfrastructureError) as exc:
            if epoch == self._epoch:
                self._on_poll_failed(exc)
            return
        except Exception as exc:
            if epoch == self._epoch:
                self._on_poll_failed(exc)
            raise
        except BaseException:
            if epoch == self._epoch and self.state == SyncState.POLLING:
                self._transition(SyncState.CONNECTED, "poll_aborted")
            raise
        finally:
            record_latency("sync_session", "poll", (time.perf_counter() - started) * 1000)

        if epoch != self._epoch:
            logger.info("poll_result_discarded")
            return

        merged, stats = apply_with_stats(self._events, result)
        self._events = merged
        if result.sync_token:
            self._cursor = result.sync_token
        self._error = None
        self._last_synced_at = datetime.now(UTC)
        self._status_message = f"Synced {stats.total} events"
        self._transition(SyncState.CONNECTED, "poll_succeeded", stats.to_log_dict())
        record_sync_cycle("merged", stats.to_log_dict(), get_correlation_id())
        self._notify()

        await self._publish_mirror(epoch)

    def _on_poll_failed(self, exc: Exception) -> None:
        logger.warning(
            "poll_failed",
            extra={
                "error_type": type(exc).__name__,
                "status_code": getattr(exc, "status_code", None),
            },
        )
        self._error = ProviderUnreachableError.kind
        self._status_message = STATUS_UNREACHABLE
        if self.state == SyncState.POLLING:
            self._transition(SyncState.CONNECTED, "poll_failed")
        record_sync_cycle("failed", correlation_id=get_correlation_id())
        self._notify()

    async def _publish_mirror(self, epoch: int) -> None:
        user_id = self._settings.user_id
        if self._publisher is None or not user_id:
            return
        result = await self._publisher.publish(user_id, self.visible_events(), self._calendar_id)
        if epoch != self._epoch:
            return
        if not result.ok:
            self._status_message = STATUS_MIRROR_FAILED
            self._notify()

    # ──────────────────────────────────────────────────────────────
    # Criação de eventos
    # ──────────────────────────────────────────────────────────────

    async def create_event(self, draft: EventDraft) -> Event:
        """Cria evento no provider e pede um refresh imediato.

        Raises:
            AuthRequiredError: Sessão não conectada.
            ValueError: Título vazio.
            ProviderError: Provider rejeitou com mensagem.
            ProviderUnreachableError: Provider inacessível.
        """
        if self.state not in CONNECTED_STATES or self._token is None:
            raise AuthRequiredError("Login necessário para criar eventos")
        if not draft.title.strip():
            msg = "Título do evento é obrigatório"
            raise ValueError(msg)
        created = await self._provider.create_event(self._token, draft)
        logger.info("event_created", extra={"event_id": created.id})
        await self.refresh()
        return created

    # ──────────────────────────────────────────────────────────────
    # Internos
    # ──────────────────────────────────────────────────────────────

    def _begin_login(self, token: str) -> None:
        self._epoch += 1
        self._clear_local_state()
        self._token = token
        self._error = None
        self._status_message = STATUS_CONNECTED

    def _clear_local_state(self) -> None:
        self._token = None
        self._cursor = None
        self._events = {}
        self._calendar_id = None
        self._last_synced_at = None

    async def _after_connect(self) -> None:
        epoch = self._epoch
        token = self._token
        assert token is not None
        try:
            calendar_id = await self._provider.primary_calendar(token)
        except (CalendarSyncError, InfrastructureError) as exc:
            logger.warning("primary_calendar_failed", extra={"error_type": type(exc).__name__})
        else:
            if epoch == self._epoch:
                self._calendar_id = calendar_id or None
        if epoch != self._epoch or self.state not in CONNECTED_STATES:
            return
        self._poller.start()
        self._notify()

    def _is_stale_callback(self, epoch: int) -> bool:
        """Outro callback ou um logout ocorreu durante a troca do código."""
        if epoch == self._epoch and self.state not in CONNECTED_STATES:
            return False
        logger.info("auth_callback_stale", extra={"state": self.state.value})
        return True

    def _fail_login(self, reason: str) -> None:
        logger.warning("auth_exchange_failed", extra={"reason": reason})
        self._error = ExchangeFailedError.kind
        self._status_message = STATUS_EXCHANGE_FAILED
        if self.state == SyncState.AUTHENTICATING:
            self._transition(SyncState.LOGGED_OUT, "exchange_failed")
        self._notify()

    def _transition(
        self,
        target: SyncState,
        trigger: str,
        metadata: dict[str, object] | None = None,
    ) -> None:
        from_state = self.state
        result = self._fsm.transition(target, trigger, dict(metadata or {}))
        if not result.success:
            logger.error(
                "sync_transition_rejected",
                extra={"from_state": from_state.value, "to_state": target.value, "trigger": trigger},
            )
            return
        logger.debug(
            "sync_transition",
            extra={"from_state": from_state.value, "to_state": target.value, "trigger": trigger},
        )
        if target == SyncState.LOGGED_OUT:
            self._poller.stop()
