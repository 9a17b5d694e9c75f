"""Visão local dos eventos para exibição em agenda.

Agrupa eventos visíveis por dia (``YYYY-MM-DD``), ordena por início e
anexa os rótulos de horário e data. Eventos com horário inválido recebem
os rótulos sentinela e ficam no fim do dia (ou no grupo ``unscheduled``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, tzinfo
from typing import TYPE_CHECKING

from app.domain.event_time import AllDayWhen, NormalizationError, TimedWhen
from app.services.event_labels import date_label_for, time_label_for
from app.services.time_normalizer import system_local_zone

if TYPE_CHECKING:
    from collections.abc import Iterable

    from app.domain.event import Event, Participant

UNSCHEDULED_KEY = "unscheduled"


@dataclass(frozen=True, slots=True)
class AgendaItem:
    """Evento pronto para exibição."""

    id: str
    title: str
    time_label: str
    date_label: str
    all_day: bool
    location: str | None = None
    participants: tuple[Participant, ...] = ()
    sort_key: datetime | None = None


@dataclass(slots=True)
class AgendaDay:
    """Eventos de um dia, em ordem de início."""

    date_key: str
    items: list[AgendaItem] = field(default_factory=list)


def _day_key_and_start(
    when: TimedWhen | AllDayWhen | NormalizationError,
    zone: tzinfo,
) -> tuple[str, datetime | None]:
    if isinstance(when, AllDayWhen):
        start = datetime.combine(when.start_date, time.min, tzinfo=zone)
        return when.start_date.isoformat(), start
    if isinstance(when, TimedWhen):
        return when.start.date().isoformat(), when.start
    return UNSCHEDULED_KEY, None


def build_agenda(events: Iterable[Event], zone: tzinfo | None = None) -> list[AgendaDay]:
    """Agrupa eventos visíveis por dia, em ordem cronológica."""
    local_zone = zone or system_local_zone()
    days: dict[str, AgendaDay] = {}

    for event in events:
        if event.deleted:
            continue
        when = event.canonical_when(local_zone)
        key, start = _day_key_and_start(when, local_zone)
        item = AgendaItem(
            id=event.id,
            title=event.title,
            time_label=time_label_for(when),
            date_label=date_label_for(when),
            all_day=isinstance(when, AllDayWhen),
            location=event.location,
            participants=tuple(event.participants),
            sort_key=start,
        )
        days.setdefault(key, AgendaDay(date_key=key)).items.append(item)

    for day in days.values():
        day.items.sort(key=_item_order)
    return sorted(days.values(), key=lambda day: (day.date_key == UNSCHEDULED_KEY, day.date_key))


def _item_order(item: AgendaItem) -> tuple[int, float, str]:
    if item.sort_key is None:
        return (1, 0.0, item.id)
    return (0, item.sort_key.timestamp(), item.id)


def marked_dates(events: Iterable[Event], zone: tzinfo | None = None) -> set[str]:
    """Datas (``YYYY-MM-DD``) com pelo menos um evento visível."""
    local_zone = zone or system_local_zone()
    marked: set[str] = set()
    for event in events:
        if event.deleted:
            continue
        key, _ = _day_key_and_start(event.canonical_when(local_zone), local_zone)
        if key != UNSCHEDULED_KEY:
            marked.add(key)
    return marked


__all__ = ["AgendaDay", "AgendaItem", "build_agenda", "marked_dates"]
