"""Settings do provider de calendário (servidor Nylas).

Centraliza URL base, redirect do fluxo interativo e política de retry
das chamadas HTTP ao provider.
"""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PROVIDER_BASE_URL = "https://two5srproj-server.onrender.com"
DEFAULT_REDIRECT_URI = "myapp://oauth/exchange"


class ProviderSettings(BaseModel):
    """Configurações de acesso ao provider de calendário."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    base_url: str = Field(
        default=DEFAULT_PROVIDER_BASE_URL,
        description="URL base do servidor que intermedeia a API do provider.",
    )
    redirect_uri: str = Field(
        default=DEFAULT_REDIRECT_URI,
        description="Deep link que recebe o callback com o código de troca.",
    )
    request_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        description="Timeout por requisição HTTP.",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Tentativas extras para 429/5xx/erro de conexão.",
    )

    @property
    def auth_url(self) -> str:
        """URL do fluxo interativo de autorização."""
        return f"{self.base_url.rstrip('/')}/nylas/auth"

    def validate_settings(self) -> list[str]:
        """Valida configurações mínimas do provider."""
        errors: list[str] = []
        if not self.base_url.startswith(("http://", "https://")):
            errors.append(f"PROVIDER_BASE_URL inválida: {self.base_url}")
        if "://" not in self.redirect_uri:
            errors.append(f"PROVIDER_REDIRECT_URI inválida: {self.redirect_uri}")
        return errors


def _load_provider_from_env() -> ProviderSettings:
    """Carrega ProviderSettings de variáveis de ambiente."""
    return ProviderSettings(
        base_url=os.getenv("PROVIDER_BASE_URL", DEFAULT_PROVIDER_BASE_URL),
        redirect_uri=os.getenv("PROVIDER_REDIRECT_URI", DEFAULT_REDIRECT_URI),
        request_timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "15")),
        max_retries=int(os.getenv("PROVIDER_MAX_RETRIES", "2")),
    )


@lru_cache(maxsize=1)
def get_provider_settings() -> ProviderSettings:
    """Retorna instância cacheada de ProviderSettings."""
    return _load_provider_from_env()


__all__ = ["ProviderSettings", "get_provider_settings"]
