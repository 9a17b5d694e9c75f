"""Acesso ao runtime do processo e conversão de erros em respostas HTTP."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, Request, status

from utils.errors import (
    AuthRequiredError,
    ExchangeFailedError,
    InfrastructureError,
    ProviderError,
    ProviderUnreachableError,
    ShareTargetNotFoundError,
)

if TYPE_CHECKING:
    from app.bootstrap.dependencies import CalendarRuntime

logger = logging.getLogger(__name__)


def get_runtime(request: Request) -> CalendarRuntime:
    """Runtime criado no lifespan (503 enquanto não inicializado)."""
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="runtime_not_ready",
        )
    return runtime


def error_to_http(exc: Exception) -> HTTPException:
    """Mapeia exceções de domínio para HTTPException."""
    if isinstance(exc, AuthRequiredError):
        code = status.HTTP_401_UNAUTHORIZED
    elif isinstance(exc, ShareTargetNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ExchangeFailedError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, ProviderError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(exc, (ProviderUnreachableError, InfrastructureError)):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(exc, ValueError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    kind = getattr(exc, "kind", None) or type(exc).__name__
    logger.info("request_failed", extra={"error_kind": kind, "status_code": code})
    detail: dict[str, Any] = {"error": kind, "message": str(exc)}
    return HTTPException(status_code=code, detail=detail)


__all__ = ["error_to_http", "get_runtime"]
