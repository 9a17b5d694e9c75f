"""Exceções utilitárias compartilhadas."""

from .exceptions import (
    AuthRequiredError,
    CalendarSyncError,
    ExchangeFailedError,
    FirestoreUnavailableError,
    InfrastructureError,
    ProviderError,
    ProviderUnreachableError,
    RedisConnectionError,
    ShareTargetNotFoundError,
)

__all__ = [
    "AuthRequiredError",
    "CalendarSyncError",
    "ExchangeFailedError",
    "FirestoreUnavailableError",
    "InfrastructureError",
    "ProviderError",
    "ProviderUnreachableError",
    "RedisConnectionError",
    "ShareTargetNotFoundError",
]
