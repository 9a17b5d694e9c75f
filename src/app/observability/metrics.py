"""Registro de métricas via structured logging.

As métricas são registradas como logs estruturados e podem ser agregadas
posteriormente (Cloud Logging, BigQuery, etc.).

Métricas suportadas:
- Latência: tempos de execução por componente/operação
- Ciclo de sync: contadores de merge por poll
- Compartilhamento: grant/revoke com status final

Uso:
    from app.observability.metrics import record_latency, record_sync_cycle

    start = time.perf_counter()
    # ... operação ...
    record_latency("sync_session", "poll", (time.perf_counter() - start) * 1000)
"""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)


def record_latency(
    component: str,
    operation: str,
    latency_ms: float,
    correlation_id: str | None = None,
) -> None:
    """Registra latência de operação.

    Args:
        component: Nome do componente (ex: "sync_session", "mirror_publisher")
        operation: Nome da operação (ex: "poll", "publish")
        latency_ms: Latência em milissegundos
        correlation_id: ID de correlação para rastreamento
    """
    logger.info(
        "metric_latency",
        extra={
            "metric_type": "latency",
            "component": component,
            "operation": operation,
            "latency_ms": round(latency_ms, 2),
            "correlation_id": correlation_id,
        },
    )


def record_sync_cycle(
    outcome: str,
    stats: dict[str, Any] | None = None,
    correlation_id: str | None = None,
) -> None:
    """Registra resultado de um ciclo de poll.

    Args:
        outcome: ``merged``, ``failed`` ou ``skipped``
        stats: Contadores do merge (``MergeStats.to_log_dict()``)
        correlation_id: ID de correlação para rastreamento
    """
    extra: dict[str, Any] = {
        "metric_type": "sync_cycle",
        "component": "sync_session",
        "outcome": outcome,
        "correlation_id": correlation_id,
    }
    if stats:
        extra.update({f"merge_{key}": value for key, value in stats.items()})
    logger.info("metric_sync_cycle", extra=extra)


def record_share_change(
    operation: str,
    status: str,
    correlation_id: str | None = None,
) -> None:
    """Registra grant/revoke de compartilhamento (sem emails)."""
    logger.info(
        "metric_share_change",
        extra={
            "metric_type": "share_change",
            "component": "mirror_publisher",
            "operation": operation,
            "status": status,
            "correlation_id": correlation_id,
        },
    )
