"""Contrato do cliente do provider de calendário.

A sessão de sync depende apenas deste protocolo, permitindo trocar o
conector HTTP por fakes nos testes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from app.domain.event import Event, EventDraft, FetchResult


@runtime_checkable
class ProviderClientProtocol(Protocol):
    """Operações do provider usadas pela SyncSession."""

    def authorization_url(self) -> str:
        """URL do fluxo interativo de autorização."""
        ...

    async def exchange_code(self, code: str) -> str:
        """Troca o código do callback pelo token (grant id)."""
        ...

    async def primary_calendar(self, token: str) -> str:
        """Retorna o id do calendário principal."""
        ...

    async def list_events(self, token: str, sync_token: str | None = None) -> FetchResult:
        """Busca snapshot completo (sem cursor) ou delta desde o cursor."""
        ...

    async def create_event(self, token: str, draft: EventDraft) -> Event:
        """Cria evento e retorna o evento criado."""
        ...
