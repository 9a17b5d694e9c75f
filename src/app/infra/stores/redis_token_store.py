"""Redis Token Store — persistência do token do provider.

Guarda um único valor opaco por chave fixa (sem TTL): o token só é
removido em logout.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from app.protocols.token_store import TokenStoreProtocol
from utils.errors import RedisConnectionError

if TYPE_CHECKING:
    from redis.asyncio import Redis as AsyncRedis

logger = logging.getLogger(__name__)

# Prefixo para namespace de tokens
TOKEN_PREFIX = "calendar_sync:token:"


class RedisTokenStore(TokenStoreProtocol):
    """Store de token usando Redis assíncrono.

    Args:
        async_redis_client: Cliente ``redis.asyncio``
        namespace: Prefixo das chaves (isola instalações no mesmo Redis)
    """

    def __init__(
        self,
        async_redis_client: AsyncRedis[bytes],
        namespace: str = TOKEN_PREFIX,
    ) -> None:
        self._redis = async_redis_client
        self._namespace = namespace

    def _key(self, key: str) -> str:
        """Gera chave Redis com namespace."""
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> str | None:
        try:
            raw = await self._redis.get(self._key(key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao ler token no Redis") from exc
        if raw is None:
            return None
        return raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)

    async def set(self, key: str, value: str) -> None:
        try:
            await self._redis.set(self._key(key), value)
        except Exception as exc:
            raise RedisConnectionError("Falha ao gravar token no Redis") from exc
        logger.debug("token_persisted", extra={"token_key": key})

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(self._key(key))
        except Exception as exc:
            raise RedisConnectionError("Falha ao remover token no Redis") from exc
        logger.debug("token_cleared", extra={"token_key": key})
