"""Modelos de domínio para espelho remoto e compartilhamento.

Documentos ``users/{uid}`` e ``calendar_events/{uid}`` no store compartilhado
e resultados das operações de grant/revoke.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from app.domain.event import Event
from utils.errors import (
    AuthRequiredError,
    FirestoreUnavailableError,
    ShareTargetNotFoundError,
)


class ShareStatus(StrEnum):
    """Resultado de uma operação de compartilhamento."""

    GRANTED = "granted"
    REVOKED = "revoked"
    ALREADY_SHARED = "already_shared"
    NOT_SHARED = "not_shared"
    TARGET_NOT_FOUND = "target_not_found"
    SELF_SHARE = "self_share"
    OWNER_NOT_FOUND = "owner_not_found"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ShareResult:
    """Resultado de grant/revoke (nenhum erro escapa como exceção)."""

    status: ShareStatus
    viewer_email: str
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in {
            ShareStatus.GRANTED,
            ShareStatus.REVOKED,
            ShareStatus.ALREADY_SHARED,
            ShareStatus.NOT_SHARED,
        }

    @property
    def changed(self) -> bool:
        return self.status in {ShareStatus.GRANTED, ShareStatus.REVOKED}

    def raise_for_status(self) -> None:
        """Converte resultados de falha nas exceções de domínio."""
        if self.status == ShareStatus.TARGET_NOT_FOUND:
            raise ShareTargetNotFoundError(self.message or "User not found")
        if self.status == ShareStatus.OWNER_NOT_FOUND:
            raise AuthRequiredError(self.message or "Owner profile not found")
        if self.status == ShareStatus.FAILED:
            raise FirestoreUnavailableError(self.message or "Share update failed")
        if not self.ok:
            raise ValueError(self.message or self.status.value)


@dataclass(frozen=True, slots=True)
class PublishResult:
    """Resultado da publicação do espelho."""

    ok: bool
    total_events: int = 0
    error: str | None = None


@dataclass(frozen=True, slots=True)
class SharedCalendar:
    """Calendário de outro usuário visível para o usuário atual."""

    owner_email: str
    events: tuple[Event, ...] = ()
    calendar_id: str | None = None
    synced_at: str | None = None


@dataclass(slots=True)
class UserProfile:
    """Perfil em ``users/{uid}`` com as duas listas de compartilhamento."""

    uid: str
    email: str
    first_name: str = ""
    last_name: str = ""
    shared_with_me: list[str] = field(default_factory=list)
    shared_with_others: list[str] = field(default_factory=list)
    calendar_id: str | None = None
    total_events: int = 0

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_document(cls, uid: str, data: dict[str, Any]) -> UserProfile:
        return cls(
            uid=str(data.get("uid") or uid),
            email=str(data.get("email") or ""),
            first_name=str(data.get("firstName") or ""),
            last_name=str(data.get("lastName") or ""),
            shared_with_me=list(data.get("sharedWithMe") or []),
            shared_with_others=list(data.get("sharedWithOthers") or []),
            calendar_id=data.get("calendarId"),
            total_events=int(data.get("totalEvents") or 0),
        )


def parse_mirrored_events(data: dict[str, Any]) -> tuple[Event, ...]:
    """Converte ``events`` de um documento espelhado, ignorando inválidos."""
    events: list[Event] = []
    for raw in data.get("events") or []:
        if not isinstance(raw, dict) or not raw.get("id"):
            continue
        try:
            event = Event.model_validate(raw)
        except ValidationError:
            continue
        if not event.deleted:
            events.append(event)
    return tuple(events)


__all__ = [
    "PublishResult",
    "ShareResult",
    "ShareStatus",
    "SharedCalendar",
    "UserProfile",
    "parse_mirrored_events",
]
