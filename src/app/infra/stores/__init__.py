"""Stores — implementações concretas de persistência.

Módulos disponíveis:
    - redis_token_store: Token do provider usando Redis
    - firestore_shared_store: Espelho de calendário e compartilhamentos no Firestore
    - memory_stores: Stores em memória para desenvolvimento/testes
"""

from __future__ import annotations

from app.infra.stores.firestore_shared_store import FirestoreSharedStore
from app.infra.stores.memory_stores import MemorySharedStore, MemoryTokenStore
from app.infra.stores.redis_token_store import RedisTokenStore

__all__ = [
    # Firestore
    "FirestoreSharedStore",
    # Memory (dev/test)
    "MemorySharedStore",
    "MemoryTokenStore",
    # Redis
    "RedisTokenStore",
]
