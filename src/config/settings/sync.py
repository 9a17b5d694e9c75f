"""Settings da sessão de sincronização.

Intervalo de polling, timezone local usado na normalização de horários
e backend de persistência do token do provider.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import TYPE_CHECKING, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

if TYPE_CHECKING:
    from datetime import tzinfo

    from config.settings.base.core import BaseSettings

TokenStoreBackend = Literal["memory", "redis"]
SharedStoreBackend = Literal["memory", "firestore"]

# Chave fixa do token persistido (mesma usada pelo app móvel)
DEFAULT_TOKEN_KEY = "nylasGrantId"


@dataclass(frozen=True)
class SyncSettings:
    """Configurações da SyncSession.

    Attributes:
        poll_interval_seconds: Intervalo entre polls enquanto CONNECTED
        local_timezone: Nome IANA do timezone local (vazio = timezone do sistema)
        token_store_backend: Backend de persistência do token (memory|redis)
        token_key: Chave fixa do token persistido
        user_id: uid do usuário local no store compartilhado (vazio = sem espelho)
        shared_store_backend: Backend do store compartilhado (memory|firestore)
    """

    poll_interval_seconds: float = 3.0
    local_timezone: str = ""
    token_store_backend: TokenStoreBackend = "memory"
    token_key: str = DEFAULT_TOKEN_KEY
    user_id: str = ""
    shared_store_backend: SharedStoreBackend = "memory"

    def local_zone(self) -> tzinfo:
        """Resolve o timezone local configurado (ou do sistema)."""
        if self.local_timezone:
            return ZoneInfo(self.local_timezone)
        return datetime.now().astimezone().tzinfo  # type: ignore[return-value]

    def validate(self, base: BaseSettings) -> list[str]:
        """Valida configurações de sync.

        Args:
            base: BaseSettings para verificar ambiente e Redis.

        Returns:
            Lista de erros de validação.
        """
        errors: list[str] = []

        if self.poll_interval_seconds <= 0:
            errors.append("SYNC_POLL_INTERVAL_SECONDS deve ser > 0")

        if self.local_timezone:
            try:
                ZoneInfo(self.local_timezone)
            except (ZoneInfoNotFoundError, ValueError):
                errors.append(f"SYNC_LOCAL_TIMEZONE inválido: {self.local_timezone}")

        if self.token_store_backend not in {"memory", "redis"}:
            errors.append(f"TOKEN_STORE_BACKEND inválido: {self.token_store_backend}")

        if self.token_store_backend == "memory" and not base.is_development:
            errors.append("TOKEN_STORE_BACKEND=memory não persiste entre reinícios")

        if self.token_store_backend == "redis" and not base.redis_url:
            errors.append("TOKEN_STORE_BACKEND=redis requer REDIS_URL configurado")

        if self.shared_store_backend not in {"memory", "firestore"}:
            errors.append(f"SHARED_STORE_BACKEND inválido: {self.shared_store_backend}")

        if not self.token_key:
            errors.append("TOKEN_KEY não pode ser vazio")

        return errors


def _load_sync_from_env() -> SyncSettings:
    """Carrega SyncSettings de variáveis de ambiente."""
    backend_str = os.getenv("TOKEN_STORE_BACKEND", "memory").lower()
    backend: TokenStoreBackend = "redis" if backend_str == "redis" else "memory"
    shared_str = os.getenv("SHARED_STORE_BACKEND", "memory").lower()
    shared: SharedStoreBackend = "firestore" if shared_str == "firestore" else "memory"
    return SyncSettings(
        poll_interval_seconds=float(os.getenv("SYNC_POLL_INTERVAL_SECONDS", "3")),
        local_timezone=os.getenv("SYNC_LOCAL_TIMEZONE", ""),
        token_store_backend=backend,
        token_key=os.getenv("TOKEN_KEY", DEFAULT_TOKEN_KEY),
        user_id=os.getenv("SYNC_USER_ID", ""),
        shared_store_backend=shared,
    )


@lru_cache(maxsize=1)
def get_sync_settings() -> SyncSettings:
    """Retorna instância cacheada de SyncSettings."""
    return _load_sync_from_env()
