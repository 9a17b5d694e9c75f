"""Motor de merge incremental de eventos.

Aplica um ``FullSnapshot`` ou ``Delta`` sobre a coleção local indexada
por id. Funções puras: a coleção recebida nunca é mutada.

Garantias:
- Reaplicar o mesmo delta produz a mesma coleção (idempotência).
- Nunca existe mais de uma entrada por id.
- Tombstones não permanecem na coleção após o merge.
- Vários patches para o mesmo id no mesmo delta: vale o último da lista.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from app.domain.event import (
    Delta,
    Event,
    EventCollection,
    FetchResult,
    FullSnapshot,
    MergeStats,
)

logger = logging.getLogger(__name__)


def apply(current: EventCollection, incoming: FetchResult) -> EventCollection:
    """Retorna a nova coleção após aplicar ``incoming`` sobre ``current``."""
    merged, _ = apply_with_stats(current, incoming)
    return merged


def apply_with_stats(
    current: EventCollection,
    incoming: FetchResult,
) -> tuple[EventCollection, MergeStats]:
    """Igual a ``apply``, retornando também contadores do ciclo."""
    if isinstance(incoming, FullSnapshot):
        return _replace(incoming)
    if isinstance(incoming, Delta):
        return _patch(current, incoming)
    raise TypeError(f"FetchResult desconhecido: {type(incoming).__name__}")


def _replace(snapshot: FullSnapshot) -> tuple[EventCollection, MergeStats]:
    merged: EventCollection = {}
    dropped = 0
    for event in snapshot.events:
        if event.deleted:
            merged.pop(event.id, None)
            dropped += 1
            continue
        merged[event.id] = event
    return merged, MergeStats(
        created=len(merged),
        noop=dropped,
        invalid_when=_count_invalid_when(merged.values()),
        replaced=True,
        total=len(merged),
    )


def _patch(current: EventCollection, delta: Delta) -> tuple[EventCollection, MergeStats]:
    merged: EventCollection = dict(current)
    created = updated = deleted = noop = 0
    touched: dict[str, Event] = {}

    for patch in delta.events:
        present = patch.id in merged
        if patch.deleted:
            if present:
                del merged[patch.id]
                deleted += 1
            else:
                noop += 1
                logger.debug("merge_tombstone_noop", extra={"event_id": patch.id})
            continue

        merged[patch.id] = patch
        touched[patch.id] = patch
        if present:
            updated += 1
        else:
            created += 1

    return merged, MergeStats(
        created=created,
        updated=updated,
        deleted=deleted,
        noop=noop,
        invalid_when=_count_invalid_when(
            event for event_id, event in touched.items() if event_id in merged
        ),
        total=len(merged),
    )


def _count_invalid_when(events: Iterable[Event]) -> int:
    """Eventos aceitos cujo ``when`` degrada para ``NormalizationError``."""
    invalid = [event.id for event in events if not event.has_valid_when]
    if invalid:
        logger.warning(
            "merge_events_with_invalid_when",
            extra={"count": len(invalid), "event_ids": invalid[:10]},
        )
    return len(invalid)


def visible_events(collection: EventCollection) -> list[Event]:
    """Eventos exibíveis (sem tombstones)."""
    return [event for event in collection.values() if not event.deleted]


def _parse_records(records: list[Any]) -> tuple[Event, ...]:
    events: list[Event] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict) or not record.get("id"):
            logger.warning("merge_record_without_id", extra={"index": index})
            continue
        try:
            events.append(Event.model_validate(record))
        except ValidationError as exc:
            logger.warning(
                "merge_record_invalid",
                extra={
                    "index": index,
                    "event_id": str(record.get("id")),
                    "errors": exc.error_count(),
                },
            )
    return tuple(events)


def parse_fetch_result(body: Any) -> FetchResult:
    """Converte o corpo JSON de ``/nylas/list-events`` em FetchResult.

    - lista JSON: snapshot completo
    - objeto com lista ``events``: delta (com ``sync_token`` opcional)

    Raises:
        ValueError: Formato de resposta não reconhecido.
    """
    if isinstance(body, list):
        return FullSnapshot(events=_parse_records(body))
    if isinstance(body, dict) and isinstance(body.get("events"), list):
        token = body.get("sync_token") or body.get("next_cursor")
        return Delta(
            events=_parse_records(body["events"]),
            sync_token=str(token) if token else None,
        )
    raise ValueError(f"Resposta de list-events em formato inesperado: {type(body).__name__}")


__all__ = [
    "apply",
    "apply_with_stats",
    "parse_fetch_result",
    "visible_events",
]
