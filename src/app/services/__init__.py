"""Serviços de aplicação.

Unidades reutilizáveis de orquestração (sem IO direto).
Implementações concretas de IO ficam em app/infra/.
"""

from app.services.delta_merge import apply, apply_with_stats, parse_fetch_result
from app.services.event_labels import date_label, time_label
from app.services.mirror_publisher import MirrorPublisher
from app.services.shared_view import SharedViewAggregator
from app.services.time_normalizer import normalize

__all__ = [
    "MirrorPublisher",
    "SharedViewAggregator",
    "apply",
    "apply_with_stats",
    "date_label",
    "normalize",
    "parse_fetch_result",
    "time_label",
]
