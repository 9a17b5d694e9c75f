"""Conector do provider de calendário (servidor Nylas)."""

from api.connectors.provider.client import ProviderClient
from api.connectors.provider.deep_link import extract_exchange_code
from api.connectors.provider.http_base import HttpClient, HttpClientConfig, HttpError

__all__ = [
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "ProviderClient",
    "extract_exchange_code",
]
