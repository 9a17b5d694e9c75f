"""Filters de logging para injeção de contexto e remoção de PII.

Campos injetados:
- correlation_id: ID do ciclo de sync / requisição atual
- service: Nome do serviço (ex: calendar_sync)

Emails são a principal PII deste domínio (donos e leitores de
calendários compartilhados). Qualquer atributo de `extra` listado em
EMAIL_FIELDS é substituído por um hash curto antes da formatação.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

EMAIL_FIELDS = frozenset({"email", "owner_email", "viewer_email"})


def hash_email(email: str) -> str:
    """Retorna prefixo estável do sha256 do email normalizado."""
    normalized = email.strip().lower().encode()
    return hashlib.sha256(normalized).hexdigest()[:12]


class CorrelationIdFilter(logging.Filter):
    """Injeta correlation_id e service em cada record de log.

    Args:
        service_name: Nome do serviço para identificação nos logs.
        correlation_id_getter: Função que retorna o correlation_id atual.
            Se não fornecida, usa string vazia.
    """

    def __init__(
        self,
        service_name: str,
        correlation_id_getter: Callable[[], str] | None = None,
    ) -> None:
        super().__init__()
        self._service_name = service_name
        self._get_correlation_id = correlation_id_getter or (lambda: "")

    def filter(self, record: logging.LogRecord) -> bool:
        """Adiciona correlation_id e service ao record.

        Se correlation_id já foi passado via `extra`, preserva o valor.
        """
        existing = getattr(record, "correlation_id", None)
        record.correlation_id = existing if existing else self._get_correlation_id()
        record.service = self._service_name
        return True


class EmailRedactionFilter(logging.Filter):
    """Troca emails passados via `extra` pelo hash curto."""

    def filter(self, record: logging.LogRecord) -> bool:
        for field in EMAIL_FIELDS:
            value = getattr(record, field, None)
            if isinstance(value, str) and "@" in value:
                setattr(record, field, hash_email(value))
        return True
