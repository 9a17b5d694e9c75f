"""Contrato do store compartilhado (espelho + listas de compartilhamento).

Callbacks de ``watch_*`` podem ser chamados em threads do SDK; quem
assina é responsável por reencaminhar ao event loop.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.sharing import ShareStatus, UserProfile

Unsubscribe = Callable[[], None]
ErrorCallback = Callable[[Exception], None]


@dataclass(frozen=True, slots=True)
class ShareEdgeUpdate:
    """Novo estado das duas listas de uma aresta de compartilhamento."""

    status: ShareStatus
    owner_shared_with_others: list[str] | None = None
    viewer_shared_with_me: list[str] | None = None

    @property
    def changed(self) -> bool:
        return self.owner_shared_with_others is not None


ShareMutation = Callable[[dict[str, Any], dict[str, Any]], ShareEdgeUpdate]


@runtime_checkable
class SharedStoreProtocol(Protocol):
    """Operações sobre ``users/{uid}`` e ``calendar_events/{uid}``."""

    async def get_user(self, uid: str) -> UserProfile | None: ...

    async def find_user_by_email(self, email: str) -> UserProfile | None: ...

    async def set_user(self, uid: str, data: dict[str, Any], *, merge: bool = True) -> None: ...

    async def set_calendar_document(self, uid: str, data: dict[str, Any]) -> None:
        """Sobrescreve o documento espelhado (sem merge)."""
        ...

    async def get_calendar_document(self, uid: str) -> dict[str, Any] | None: ...

    async def update_share_edge(
        self,
        owner_uid: str,
        viewer_uid: str,
        mutation: ShareMutation,
    ) -> ShareEdgeUpdate:
        """Lê os dois perfis e aplica ``mutation`` numa única transação.

        Quando a mutação altera as listas, ambas são gravadas juntas e
        ``calendar_events/{owner}.sharedWith`` é atualizado.
        """
        ...

    def watch_user(
        self,
        uid: str,
        on_change: Callable[[UserProfile | None], None],
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe: ...

    def watch_calendar(
        self,
        uid: str,
        on_change: Callable[[dict[str, Any] | None], None],
        on_error: ErrorCallback | None = None,
    ) -> Unsubscribe: ...
