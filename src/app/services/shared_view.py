"""Agregador dos calendários compartilhados com o usuário atual.

Observa ``users/{me}``; a cada mudança de ``sharedWithMe`` derruba todas
as assinaturas por owner e as recria (email → uid → ``calendar_events/{uid}``).
Mantém ``owner_email → SharedCalendar``. Falhas ficam isoladas por owner.

Callbacks do store podem chegar em threads do SDK e são reencaminhados ao
event loop com ``call_soon_threadsafe``. Depois de ``close()`` nenhum
callback tardio altera o estado.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from functools import partial
from typing import TYPE_CHECKING, Any

from app.domain.sharing import SharedCalendar, UserProfile, parse_mirrored_events
from app.services.mirror_publisher import normalize_email
from config.logging import hash_email
from utils.errors import InfrastructureError

if TYPE_CHECKING:
    from app.protocols.shared_store import SharedStoreProtocol, Unsubscribe

logger = logging.getLogger(__name__)

SharedViewListener = Callable[[dict[str, SharedCalendar]], None]


class SharedViewAggregator:
    """Modelo somente-leitura dos calendários de outros owners."""

    def __init__(self, store: SharedStoreProtocol, user_id: str) -> None:
        self._store = store
        self._user_id = user_id
        self._loop: asyncio.AbstractEventLoop | None = None
        self._user_unsubscribe: Unsubscribe | None = None
        self._owner_unsubscribes: dict[str, Unsubscribe] = {}
        self._calendars: dict[str, SharedCalendar] = {}
        self._emails: tuple[str, ...] | None = None
        self._generation = 0
        self._rebuild_task: asyncio.Task[None] | None = None
        self._listeners: list[SharedViewListener] = []
        self._closed = False

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def shared_with_me(self) -> list[str]:
        return list(self._emails or ())

    @property
    def calendars(self) -> dict[str, SharedCalendar]:
        return dict(self._calendars)

    @property
    def active_owner_subscriptions(self) -> int:
        return len(self._owner_unsubscribes)

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        """Assina ``users/{me}``; precisa de um event loop ativo."""
        if self._closed:
            msg = "SharedViewAggregator já foi fechado"
            raise RuntimeError(msg)
        if self._user_unsubscribe is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._user_unsubscribe = self._store.watch_user(
            self._user_id,
            self._on_user_snapshot,
            on_error=partial(self._on_watch_error, "user"),
        )
        logger.info("shared_view_started")

    def subscribe(self, listener: SharedViewListener) -> Callable[[], None]:
        """Registra listener chamado a cada mudança; retorna o cancelamento."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def close(self) -> None:
        """Libera todas as assinaturas (usuário e owners)."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        if self._rebuild_task is not None and not self._rebuild_task.done():
            self._rebuild_task.cancel()
            try:
                await self._rebuild_task
            except asyncio.CancelledError:
                pass
        if self._user_unsubscribe is not None:
            _safe_unsubscribe(self._user_unsubscribe, "user")
            self._user_unsubscribe = None
        self._teardown_owners()
        self._calendars.clear()
        self._listeners.clear()
        logger.info("shared_view_closed")

    # ──────────────────────────────────────────────────────────────
    # Callbacks (podem chegar em threads do SDK)
    # ──────────────────────────────────────────────────────────────

    def _dispatch(self, callback: Callable[..., None], *args: Any) -> None:
        if self._closed or self._loop is None:
            return
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            logger.debug("shared_view_loop_closed")

    def _on_user_snapshot(self, profile: UserProfile | None) -> None:
        self._dispatch(self._handle_profile, profile)

    def _on_calendar_snapshot(
        self,
        owner_email: str,
        generation: int,
        data: dict[str, Any] | None,
    ) -> None:
        self._dispatch(self._handle_calendar, owner_email, generation, data)

    def _on_watch_error(self, scope: str, exc: Exception) -> None:
        logger.warning(
            "shared_view_watch_error",
            extra={"scope": scope, "error_type": type(exc).__name__},
        )

    # ──────────────────────────────────────────────────────────────
    # Estado (sempre no event loop)
    # ──────────────────────────────────────────────────────────────

    def _handle_profile(self, profile: UserProfile | None) -> None:
        if self._closed:
            return
        emails = _unique_emails(profile.shared_with_me if profile else [])
        if emails == self._emails:
            return
        self._emails = emails
        self._generation += 1
        if self._rebuild_task is not None and not self._rebuild_task.done():
            self._rebuild_task.cancel()
        assert self._loop is not None
        self._rebuild_task = self._loop.create_task(self._rebuild(emails, self._generation))

    async def _rebuild(self, emails: tuple[str, ...], generation: int) -> None:
        self._teardown_owners()
        removed = [email for email in self._calendars if email not in emails]
        for email in removed:
            del self._calendars[email]
        if removed:
            self._notify()

        owners = await asyncio.gather(*(self._resolve_owner(email) for email in emails))
        if self._closed or generation != self._generation:
            return

        for email, owner in zip(emails, owners, strict=True):
            if owner is None:
                self._calendars.pop(email, None)
                continue
            try:
                self._owner_unsubscribes[email] = self._store.watch_calendar(
                    owner.uid,
                    partial(self._on_calendar_snapshot, email, generation),
                    on_error=partial(self._on_watch_error, "owner_calendar"),
                )
            except Exception as exc:
                logger.warning(
                    "shared_view_owner_watch_failed",
                    extra={"owner_hash": hash_email(email), "error_type": type(exc).__name__},
                )
        logger.info(
            "shared_view_rebuilt",
            extra={"owners": len(emails), "subscriptions": len(self._owner_unsubscribes)},
        )

    async def _resolve_owner(self, email: str) -> UserProfile | None:
        try:
            owner = await self._store.find_user_by_email(email)
        except InfrastructureError as exc:
            logger.warning(
                "shared_view_owner_lookup_failed",
                extra={"owner_hash": hash_email(email), "error_type": type(exc).__name__},
            )
            return None
        if owner is None:
            logger.warning("shared_view_owner_not_found", extra={"owner_hash": hash_email(email)})
        return owner

    def _handle_calendar(
        self,
        owner_email: str,
        generation: int,
        data: dict[str, Any] | None,
    ) -> None:
        if self._closed or generation != self._generation:
            return
        if data is None:
            logger.info("shared_calendar_missing", extra={"owner_hash": hash_email(owner_email)})
            if self._calendars.pop(owner_email, None) is not None:
                self._notify()
            return
        self._calendars[owner_email] = SharedCalendar(
            owner_email=owner_email,
            events=parse_mirrored_events(data),
            calendar_id=data.get("calendarId"),
            synced_at=data.get("syncedAt"),
        )
        self._notify()

    def _teardown_owners(self) -> None:
        for email, unsubscribe in self._owner_unsubscribes.items():
            _safe_unsubscribe(unsubscribe, hash_email(email))
        self._owner_unsubscribes.clear()

    def _notify(self) -> None:
        snapshot = dict(self._calendars)
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("shared_view_listener_failed")


def _unique_emails(emails: list[str]) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for email in emails:
        normalized = normalize_email(email)
        if normalized:
            seen.setdefault(normalized, None)
    return tuple(seen)


def _safe_unsubscribe(unsubscribe: Unsubscribe, scope: str) -> None:
    try:
        unsubscribe()
    except Exception:
        logger.exception("shared_view_unsubscribe_failed", extra={"scope": scope})


__all__ = ["SharedViewAggregator", "SharedViewListener"]
