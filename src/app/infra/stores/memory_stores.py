"""Stores em memória — apenas para desenvolvimento e testes.

ATENÇÃO: Não usar em staging/production. Sem persistência entre reinícios.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Callable
from typing import Any

from app.domain.sharing import UserProfile
from app.protocols.shared_store import (
    ErrorCallback,
    ShareEdgeUpdate,
    ShareMutation,
    SharedStoreProtocol,
    Unsubscribe,
)
from app.protocols.token_store import TokenStoreProtocol

logger = logging.getLogger(__name__)


class MemoryTokenStore(TokenStoreProtocol):
    """Store de token em memória — apenas para dev/test."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._store: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._store.get(key)

    async def set(self, key: str, value: str) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)


class MemorySharedStore(SharedStoreProtocol):
    """Store compartilhado em memória — apenas para dev/test.

    Emula o comportamento relevante do Firestore: documentos por uid,
    consulta por email, transação serializada e listeners que recebem o
    estado atual na assinatura e a cada escrita.
    """

    def __init__(self) -> None:
        self._users: dict[str, dict[str, Any]] = {}
        self._calendars: dict[str, dict[str, Any]] = {}
        self._user_watchers: dict[str, list[Callable[[UserProfile | None], None]]] = {}
        self._calendar_watchers: dict[str, list[Callable[[dict[str, Any] | None], None]]] = {}
        self._lock = asyncio.Lock()

    # ──────────────────────────────────────────────────────────────
    # Leitura/escrita
    # ──────────────────────────────────────────────────────────────

    async def get_user(self, uid: str) -> UserProfile | None:
        data = self._users.get(uid)
        return UserProfile.from_document(uid, data) if data is not None else None

    async def find_user_by_email(self, email: str) -> UserProfile | None:
        target = email.strip().lower()
        for uid, data in self._users.items():
            if str(data.get("email", "")).strip().lower() == target:
                return UserProfile.from_document(uid, data)
        return None

    async def set_user(self, uid: str, data: dict[str, Any], *, merge: bool = True) -> None:
        current = self._users.get(uid, {}) if merge else {}
        self._users[uid] = {**current, **copy.deepcopy(data)}
        self._notify_user(uid)

    async def set_calendar_document(self, uid: str, data: dict[str, Any]) -> None:
        self._calendars[uid] = copy.deepcopy(data)
        self._notify_calendar(uid)

    async def get_calendar_document(self, uid: str) -> dict[str, Any] | None:
        data = self._calendars.get(uid)
        return copy.deepcopy(data) if data is not None else None

    async def update_share_edge(
        self,
        owner_uid: str,
        viewer_uid: str,
        mutation: ShareMutation,
    ) -> ShareEdgeUpdate:
        async with self._lock:
            owner = copy.deepcopy(self._users.get(owner_uid, {}))
            viewer = copy.deepcopy(self._users.get(viewer_uid, {}))
            update = mutation(owner, viewer)
            if not update.changed:
                return update

            self._users.setdefault(owner_uid, {})["sharedWithOthers"] = list(
                update.owner_shared_with_others or []
            )
            self._users.setdefault(viewer_uid, {})["sharedWithMe"] = list(
                update.viewer_shared_with_me or []
            )
            self._calendars.setdefault(owner_uid, {})["sharedWith"] = list(
                update.owner_shared_with_others or []
            )

        self._notify_user(owner_uid)
        self._notify_user(viewer_uid)
        self._notify_calendar(owner_uid)
        return update

    # ──────────────────────────────────────────────────────────────
    # Listeners
    # ──────────────────────────────────────────────────────────────

    def watch_user(
        self,
        uid: str,
        on_change: Callable[[UserProfile | None], None],
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        watchers = self._user_watchers.setdefault(uid, [])
        watchers.append(on_change)
        data = self._users.get(uid)
        on_change(UserProfile.from_document(uid, data) if data is not None else None)
        return _make_unsubscribe(watchers, on_change)

    def watch_calendar(
        self,
        uid: str,
        on_change: Callable[[dict[str, Any] | None], None],
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        watchers = self._calendar_watchers.setdefault(uid, [])
        watchers.append(on_change)
        on_change(copy.deepcopy(self._calendars.get(uid)))
        return _make_unsubscribe(watchers, on_change)

    def active_watchers(self) -> int:
        """Total de listeners ativos (apenas para testes de vazamento)."""
        users = sum(len(items) for items in self._user_watchers.values())
        calendars = sum(len(items) for items in self._calendar_watchers.values())
        return users + calendars

    def _notify_user(self, uid: str) -> None:
        data = self._users.get(uid)
        profile = UserProfile.from_document(uid, data) if data is not None else None
        for callback in list(self._user_watchers.get(uid, [])):
            callback(profile)

    def _notify_calendar(self, uid: str) -> None:
        for callback in list(self._calendar_watchers.get(uid, [])):
            callback(copy.deepcopy(self._calendars.get(uid)))


def _make_unsubscribe(watchers: list[Any], callback: Any) -> Unsubscribe:
    def _unsubscribe() -> None:
        if callback in watchers:
            watchers.remove(callback)

    return _unsubscribe
