"""Contrato de persistência do token opaco do provider."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TokenStoreProtocol(Protocol):
    """Armazena um único token por chave fixa (sobrevive a reinícios)."""

    async def get(self, key: str) -> str | None:
        """Retorna o token persistido ou None."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Persiste o token."""
        ...

    async def delete(self, key: str) -> None:
        """Remove o token (logout)."""
        ...
