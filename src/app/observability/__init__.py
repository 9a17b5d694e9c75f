"""Observabilidade — logs estruturados, correlation_id, métricas.

Re-exporta funções de correlation_id e métricas para uso em toda a aplicação.

Uso:
    from app.observability import correlation_scope, get_correlation_id
    from app.observability import record_latency, record_sync_cycle
"""

from app.observability.correlation import (
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from app.observability.metrics import (
    record_latency,
    record_share_change,
    record_sync_cycle,
)

__all__ = [
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "record_latency",
    "record_share_change",
    "record_sync_cycle",
    "reset_correlation_id",
    "set_correlation_id",
]
