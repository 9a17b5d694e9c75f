"""Agregador de settings do calendar_sync.

Re-exporta todas as settings e funções de cada módulo.
Organização por domínio para isolamento de mudanças.
"""

from __future__ import annotations

from config.settings.base import (
    BaseSettings,
    Environment,
    get_base_settings,
)
from config.settings.infra import (
    FirestoreSettings,
    get_firestore_settings,
)
from config.settings.provider import (
    ProviderSettings,
    get_provider_settings,
)
from config.settings.sync import (
    DEFAULT_TOKEN_KEY,
    SharedStoreBackend,
    SyncSettings,
    TokenStoreBackend,
    get_sync_settings,
)

__all__ = [
    "DEFAULT_TOKEN_KEY",
    "BaseSettings",
    "Environment",
    "FirestoreSettings",
    "ProviderSettings",
    "SharedStoreBackend",
    "SyncSettings",
    "TokenStoreBackend",
    "get_base_settings",
    "get_firestore_settings",
    "get_provider_settings",
    "get_sync_settings",
]
