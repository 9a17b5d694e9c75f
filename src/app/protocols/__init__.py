"""Protocolos e contratos do core da aplicação."""

from .auth_flow import AuthorizationFlowProtocol
from .provider_client import ProviderClientProtocol
from .shared_store import (
    ErrorCallback,
    ShareEdgeUpdate,
    ShareMutation,
    SharedStoreProtocol,
    Unsubscribe,
)
from .token_store import TokenStoreProtocol

__all__ = [
    "AuthorizationFlowProtocol",
    "ErrorCallback",
    "ProviderClientProtocol",
    "ShareEdgeUpdate",
    "ShareMutation",
    "SharedStoreProtocol",
    "TokenStoreProtocol",
    "Unsubscribe",
]
