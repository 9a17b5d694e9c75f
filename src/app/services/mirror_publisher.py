"""Publicação do espelho remoto e gestão de compartilhamentos.

``publish`` sobrescreve ``calendar_events/{uid}`` a cada ciclo de sync
(sem merge incremental) e atualiza os metadados do perfil.
``grant``/``revoke`` alteram as duas listas da aresta owner → viewer numa
única transação do store. Nenhuma falha de IO escapa: tudo vira
``PublishResult``/``ShareResult``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from app.domain.sharing import PublishResult, ShareResult, ShareStatus, UserProfile
from app.observability import get_correlation_id, record_share_change
from app.protocols.shared_store import ShareEdgeUpdate
from config.logging import hash_email
from utils.errors import InfrastructureError

if TYPE_CHECKING:
    from app.domain.event import Event
    from app.protocols.shared_store import SharedStoreProtocol

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _utc_now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _contains(emails: Iterable[str], email: str) -> bool:
    return any(normalize_email(item) == email for item in emails)


def _grant_mutation(owner_email: str, viewer_email: str) -> Callable[..., ShareEdgeUpdate]:
    def _mutate(owner: dict[str, Any], viewer: dict[str, Any]) -> ShareEdgeUpdate:
        outgoing = list(owner.get("sharedWithOthers") or [])
        incoming = list(viewer.get("sharedWithMe") or [])
        if _contains(outgoing, viewer_email):
            if not _contains(incoming, owner_email):
                incoming.append(owner_email)
                return ShareEdgeUpdate(ShareStatus.ALREADY_SHARED, outgoing, incoming)
            return ShareEdgeUpdate(status=ShareStatus.ALREADY_SHARED)
        outgoing.append(viewer_email)
        if not _contains(incoming, owner_email):
            incoming.append(owner_email)
        return ShareEdgeUpdate(ShareStatus.GRANTED, outgoing, incoming)

    return _mutate


def _revoke_mutation(owner_email: str, viewer_email: str) -> Callable[..., ShareEdgeUpdate]:
    def _mutate(owner: dict[str, Any], viewer: dict[str, Any]) -> ShareEdgeUpdate:
        outgoing = list(owner.get("sharedWithOthers") or [])
        incoming = list(viewer.get("sharedWithMe") or [])
        if not _contains(outgoing, viewer_email) and not _contains(incoming, owner_email):
            return ShareEdgeUpdate(status=ShareStatus.NOT_SHARED)
        return ShareEdgeUpdate(
            ShareStatus.REVOKED,
            [item for item in outgoing if normalize_email(item) != viewer_email],
            [item for item in incoming if normalize_email(item) != owner_email],
        )

    return _mutate


class MirrorPublisher:
    """Escreve o espelho do calendário local e mantém as arestas de share."""

    def __init__(
        self,
        store: SharedStoreProtocol,
        clock: Callable[[], str] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or _utc_now_iso

    async def publish(
        self,
        user_id: str,
        events: Iterable[Event],
        calendar_id: str | None,
    ) -> PublishResult:
        """Sobrescreve ``calendar_events/{user_id}`` com os eventos visíveis."""
        visible = [event.to_mirror_dict() for event in events if not event.deleted]
        now = self._clock()
        try:
            profile = await self._store.get_user(user_id)
            await self._store.set_calendar_document(
                user_id,
                {
                    "events": visible,
                    "syncedAt": now,
                    "calendarId": calendar_id,
                    "userId": user_id,
                    "sharedWith": list(profile.shared_with_others) if profile else [],
                },
            )
            await self._store.set_user(
                user_id,
                {
                    "lastCalendarSync": now,
                    "calendarId": calendar_id,
                    "totalEvents": len(visible),
                    "updatedAt": now,
                },
                merge=True,
            )
        except (InfrastructureError, OSError) as exc:
            logger.warning(
                "mirror_publish_failed",
                extra={"error_type": type(exc).__name__, "error": str(exc)},
            )
            return PublishResult(ok=False, total_events=len(visible), error=str(exc))

        logger.info("mirror_published", extra={"total_events": len(visible)})
        return PublishResult(ok=True, total_events=len(visible))

    async def register_profile(
        self,
        uid: str,
        email: str,
        first_name: str = "",
        last_name: str = "",
    ) -> UserProfile:
        """Cria o perfil ``users/{uid}`` após cadastro.

        Raises:
            ValueError: uid ou email vazios.
            InfrastructureError: Falha de escrita no store.
        """
        normalized = normalize_email(email)
        if not uid or "@" not in normalized:
            msg = "uid e email válido são obrigatórios"
            raise ValueError(msg)
        now = self._clock()
        profile = UserProfile(
            uid=uid,
            email=normalized,
            first_name=first_name.strip(),
            last_name=last_name.strip(),
        )
        await self._store.set_user(
            uid,
            {
                "uid": uid,
                "firstName": profile.first_name,
                "lastName": profile.last_name,
                "email": normalized,
                "displayName": profile.display_name,
                "createdAt": now,
                "updatedAt": now,
                "sharedWithMe": [],
                "sharedWithOthers": [],
            },
            merge=False,
        )
        logger.info("profile_registered", extra={"email": normalized})
        return profile

    async def grant(self, owner_id: str, viewer_email: str) -> ShareResult:
        """Compartilha o calendário de ``owner_id`` com ``viewer_email``."""
        return await self._change_share("grant", owner_id, viewer_email, _grant_mutation)

    async def revoke(self, owner_id: str, viewer_email: str) -> ShareResult:
        """Remove o compartilhamento ``owner_id`` → ``viewer_email``."""
        return await self._change_share("revoke", owner_id, viewer_email, _revoke_mutation)

    async def _change_share(
        self,
        operation: str,
        owner_id: str,
        viewer_email: str,
        mutation_factory: Callable[[str, str], Callable[..., ShareEdgeUpdate]],
    ) -> ShareResult:
        target = normalize_email(viewer_email)
        result = await self._resolve_and_apply(owner_id, target, mutation_factory)
        record_share_change(operation, result.status.value, get_correlation_id())
        logger.info(
            "share_change_completed",
            extra={
                "operation": operation,
                "status": result.status.value,
                "viewer_hash": hash_email(target) if target else "",
            },
        )
        return result

    async def _resolve_and_apply(
        self,
        owner_id: str,
        target: str,
        mutation_factory: Callable[[str, str], Callable[..., ShareEdgeUpdate]],
    ) -> ShareResult:
        if "@" not in target:
            return ShareResult(ShareStatus.TARGET_NOT_FOUND, target, "Invalid email")
        try:
            owner = await self._store.get_user(owner_id)
            if owner is None or not owner.email:
                return ShareResult(ShareStatus.OWNER_NOT_FOUND, target, "Owner profile not found")
            owner_email = normalize_email(owner.email)
            if owner_email == target:
                return ShareResult(ShareStatus.SELF_SHARE, target, "Cannot share with yourself")

            viewer = await self._store.find_user_by_email(target)
            if viewer is None:
                return ShareResult(ShareStatus.TARGET_NOT_FOUND, target, "User not found")

            update = await self._store.update_share_edge(
                owner_id,
                viewer.uid,
                mutation_factory(owner_email, target),
            )
        except (InfrastructureError, OSError) as exc:
            logger.warning(
                "share_change_failed",
                extra={"error_type": type(exc).__name__, "error": str(exc)},
            )
            return ShareResult(ShareStatus.FAILED, target, str(exc))

        return ShareResult(update.status, target, _STATUS_MESSAGES.get(update.status, ""))


_STATUS_MESSAGES = {
    ShareStatus.GRANTED: "Calendar shared",
    ShareStatus.REVOKED: "Access revoked",
    ShareStatus.ALREADY_SHARED: "Calendar already shared with this user",
    ShareStatus.NOT_SHARED: "Calendar is not shared with this user",
}


__all__ = ["MirrorPublisher", "normalize_email"]
