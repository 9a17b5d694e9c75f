"""Firestore Shared Store — espelho de calendário e compartilhamentos.

Documentos:
    users/{uid}: perfil + ``sharedWithMe``/``sharedWithOthers``
    calendar_events/{uid}: ``{events, calendarId, syncedAt, sharedWith, userId}``

Chamadas síncronas do SDK rodam em ``asyncio.to_thread``. Callbacks de
``on_snapshot`` chegam em threads do SDK.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from app.domain.sharing import UserProfile
from app.protocols.shared_store import (
    ErrorCallback,
    ShareEdgeUpdate,
    ShareMutation,
    SharedStoreProtocol,
    Unsubscribe,
)
from utils.errors import FirestoreUnavailableError

if TYPE_CHECKING:
    from google.cloud.firestore import Client as FirestoreClient

    from config.settings.infra.firestore import FirestoreSettings

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
CALENDAR_EVENTS_COLLECTION = "calendar_events"


class FirestoreSharedStore(SharedStoreProtocol):
    """Store compartilhado usando Firestore."""

    def __init__(
        self,
        firestore_client: FirestoreClient,
        settings: FirestoreSettings | None = None,
    ) -> None:
        self._db = firestore_client
        self._users_collection = settings.collection_users if settings else USERS_COLLECTION
        self._calendars_collection = (
            settings.collection_calendar_events if settings else CALENDAR_EVENTS_COLLECTION
        )

    def _user_ref(self, uid: str) -> Any:
        return self._db.collection(self._users_collection).document(uid)

    def _calendar_ref(self, uid: str) -> Any:
        return self._db.collection(self._calendars_collection).document(uid)

    # ──────────────────────────────────────────────────────────────
    # Leitura/escrita
    # ──────────────────────────────────────────────────────────────

    async def get_user(self, uid: str) -> UserProfile | None:
        return await asyncio.to_thread(self._get_user_sync, uid)

    def _get_user_sync(self, uid: str) -> UserProfile | None:
        try:
            doc = self._user_ref(uid).get()
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao ler perfil no Firestore") from exc
        if not doc.exists:
            return None
        return UserProfile.from_document(uid, doc.to_dict() or {})

    async def find_user_by_email(self, email: str) -> UserProfile | None:
        return await asyncio.to_thread(self._find_user_by_email_sync, email)

    def _find_user_by_email_sync(self, email: str) -> UserProfile | None:
        query = (
            self._db.collection(self._users_collection)
            .where(filter=FieldFilter("email", "==", email.strip().lower()))
            .limit(1)
        )
        try:
            docs = list(query.stream())
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao consultar perfil por email") from exc
        if not docs:
            return None
        return UserProfile.from_document(docs[0].id, docs[0].to_dict() or {})

    async def set_user(self, uid: str, data: dict[str, Any], *, merge: bool = True) -> None:
        await asyncio.to_thread(self._set_sync, self._user_ref(uid), data, merge)

    async def set_calendar_document(self, uid: str, data: dict[str, Any]) -> None:
        await asyncio.to_thread(self._set_sync, self._calendar_ref(uid), data, False)

    def _set_sync(self, ref: Any, data: dict[str, Any], merge: bool) -> None:
        try:
            ref.set(data, merge=merge)
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao gravar documento no Firestore") from exc

    async def get_calendar_document(self, uid: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._get_calendar_sync, uid)

    def _get_calendar_sync(self, uid: str) -> dict[str, Any] | None:
        try:
            doc = self._calendar_ref(uid).get()
        except Exception as exc:
            raise FirestoreUnavailableError("Falha ao ler calendário no Firestore") from exc
        return (doc.to_dict() or {}) if doc.exists else None

    async def update_share_edge(
        self,
        owner_uid: str,
        viewer_uid: str,
        mutation: ShareMutation,
    ) -> ShareEdgeUpdate:
        return await asyncio.to_thread(self._update_share_edge_sync, owner_uid, viewer_uid, mutation)

    def _update_share_edge_sync(
        self,
        owner_uid: str,
        viewer_uid: str,
        mutation: ShareMutation,
    ) -> ShareEdgeUpdate:
        owner_ref = self._user_ref(owner_uid)
        viewer_ref = self._user_ref(viewer_uid)
        calendar_ref = self._calendar_ref(owner_uid)

        @firestore.transactional
        def _run(transaction: Any) -> ShareEdgeUpdate:
            owner_doc = owner_ref.get(transaction=transaction)
            viewer_doc = viewer_ref.get(transaction=transaction)
            update = mutation(
                (owner_doc.to_dict() or {}) if owner_doc.exists else {},
                (viewer_doc.to_dict() or {}) if viewer_doc.exists else {},
            )
            if not update.changed:
                return update
            transaction.set(
                owner_ref,
                {"sharedWithOthers": update.owner_shared_with_others},
                merge=True,
            )
            transaction.set(
                viewer_ref,
                {"sharedWithMe": update.viewer_shared_with_me},
                merge=True,
            )
            transaction.set(
                calendar_ref,
                {"sharedWith": update.owner_shared_with_others},
                merge=True,
            )
            return update

        try:
            return _run(self._db.transaction())
        except Exception as exc:
            raise FirestoreUnavailableError("Falha na transação de compartilhamento") from exc

    # ──────────────────────────────────────────────────────────────
    # Listeners
    # ──────────────────────────────────────────────────────────────

    def watch_user(
        self,
        uid: str,
        on_change: Callable[[UserProfile | None], None],
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        def _convert(snapshot: Any) -> UserProfile | None:
            if not snapshot.exists:
                return None
            return UserProfile.from_document(uid, snapshot.to_dict() or {})

        return self._watch(self._user_ref(uid), _convert, on_change, on_error)

    def watch_calendar(
        self,
        uid: str,
        on_change: Callable[[dict[str, Any] | None], None],
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe:
        def _convert(snapshot: Any) -> dict[str, Any] | None:
            return (snapshot.to_dict() or {}) if snapshot.exists else None

        return self._watch(self._calendar_ref(uid), _convert, on_change, on_error)

    def _watch(
        self,
        ref: Any,
        convert: Callable[[Any], Any],
        on_change: Callable[[Any], None],
        on_error: ErrorCallback | None,
    ) -> Unsubscribe:
        def _on_snapshot(doc_snapshots: list[Any], _changes: Any, _read_time: Any) -> None:
            try:
                for snapshot in doc_snapshots:
                    on_change(convert(snapshot))
            except Exception as exc:
                logger.error(
                    "firestore_watch_callback_failed",
                    extra={"error_type": type(exc).__name__},
                )
                if on_error is not None:
                    on_error(exc)

        watch = ref.on_snapshot(_on_snapshot)
        return watch.unsubscribe
