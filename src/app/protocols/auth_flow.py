"""Contrato do fluxo interativo de autorização."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AuthorizationFlowProtocol(Protocol):
    """Abre a autorização do provider e aguarda o deep link de retorno.

    Retorna a URL de callback recebida, ou None se o usuário cancelou.
    """

    async def authorize(self, auth_url: str, redirect_uri: str) -> str | None: ...

    def cancel(self) -> None:
        """Cancela uma autorização pendente."""
        ...
