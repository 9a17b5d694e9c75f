"""Exceções de domínio para falhas de sincronização e infraestrutura."""

from __future__ import annotations


class InfrastructureError(RuntimeError):
    """Base para falhas de infraestrutura transitórias."""


class RedisConnectionError(InfrastructureError):
    """Falha de conexão/timeout ao acessar Redis."""


class FirestoreUnavailableError(InfrastructureError):
    """Falha de indisponibilidade ao acessar Firestore."""


class CalendarSyncError(Exception):
    """Base para erros do núcleo de sincronização de calendário.

    Attributes:
        kind: Identificador estável do tipo de erro (usado em status/logs).
    """

    kind = "calendar_sync_error"


class AuthRequiredError(CalendarSyncError):
    """Não existe sessão local autenticada com o provider."""

    kind = "auth_required"


class ProviderUnreachableError(CalendarSyncError, InfrastructureError):
    """Provider inacessível (rede) ou respondeu com status não-2xx."""

    kind = "provider_unreachable"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderError(CalendarSyncError):
    """Provider rejeitou a operação com mensagem de erro explícita."""

    kind = "provider_error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExchangeFailedError(CalendarSyncError):
    """Troca do código de autorização pelo token foi rejeitada."""

    kind = "exchange_failed"


class ShareTargetNotFoundError(CalendarSyncError):
    """Email informado não corresponde a nenhuma conta."""

    kind = "share_target_not_found"
