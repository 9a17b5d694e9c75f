"""Rótulos legíveis de horário e data de eventos.

Nomes de mês fixos em inglês (independentes do locale do processo).
Rótulos de erro são sentinelas; a exibição nunca bloqueia por dado ruim.
"""

from __future__ import annotations

from datetime import date, datetime, tzinfo  # noqa: TC003 - usados em runtime
from typing import Any

from app.domain.event_time import AllDayWhen, NormalizationError, TimedWhen
from app.services.time_normalizer import normalize

ALL_DAY_LABEL = "All day"
INVALID_TIME_LABEL = "Invalid Time"
TIME_ERROR_LABEL = "Time Error"
INVALID_DATE_LABEL = "Invalid Date"
DATE_ERROR_LABEL = "Date Error"
RANGE_SEPARATOR = " – "

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
MONTH_ABBREVIATIONS = tuple(name[:3] for name in MONTH_NAMES)


def format_clock(value: datetime) -> str:
    """Formata hora como ``h:mm AM``."""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {meridiem}"


def format_long_date(value: date) -> str:
    """``November 17, 2024``."""
    return f"{MONTH_NAMES[value.month - 1]} {value.day}, {value.year}"


def format_short_date(value: date, *, with_year: bool = True) -> str:
    """``Mar 3, 2025`` (ou ``Mar 3`` sem ano)."""
    text = f"{MONTH_ABBREVIATIONS[value.month - 1]} {value.day}"
    return f"{text}, {value.year}" if with_year else text


def format_date_range(start: date, end: date | None) -> str:
    """Rótulo de data único ou intervalo compacto."""
    if end is None or end == start:
        return format_long_date(start)
    if (start.year, start.month) == (end.year, end.month):
        return (
            f"{format_short_date(start, with_year=False)}{RANGE_SEPARATOR}"
            f"{end.day}, {end.year}"
        )
    if start.year == end.year:
        return (
            f"{format_short_date(start, with_year=False)}{RANGE_SEPARATOR}"
            f"{format_short_date(end)}"
        )
    return f"{format_short_date(start)}{RANGE_SEPARATOR}{format_short_date(end)}"


def time_label_for(when: TimedWhen | AllDayWhen | NormalizationError) -> str:
    if isinstance(when, AllDayWhen):
        return ALL_DAY_LABEL
    if isinstance(when, TimedWhen):
        return f"{format_clock(when.start)}{RANGE_SEPARATOR}{format_clock(when.end)}"
    if when.all_day:
        return ALL_DAY_LABEL
    return TIME_ERROR_LABEL if when.has_time_fields else INVALID_TIME_LABEL


def date_label_for(when: TimedWhen | AllDayWhen | NormalizationError) -> str:
    if isinstance(when, AllDayWhen):
        return format_date_range(when.start_date, when.end_date)
    if isinstance(when, TimedWhen):
        return format_date_range(when.start.date(), when.end.date())
    return DATE_ERROR_LABEL if when.has_time_fields else INVALID_DATE_LABEL


def time_label(raw_when: Any, zone: tzinfo | None = None) -> str:
    """Rótulo de horário: ``All day``, ``h:mm a – h:mm a`` ou sentinela."""
    return time_label_for(normalize(raw_when, zone))


def date_label(raw_when: Any, zone: tzinfo | None = None) -> str:
    """Rótulo de data: dia único, intervalo compacto ou sentinela."""
    return date_label_for(normalize(raw_when, zone))


__all__ = [
    "ALL_DAY_LABEL",
    "DATE_ERROR_LABEL",
    "INVALID_DATE_LABEL",
    "INVALID_TIME_LABEL",
    "TIME_ERROR_LABEL",
    "date_label",
    "date_label_for",
    "format_clock",
    "format_date_range",
    "format_long_date",
    "time_label",
    "time_label_for",
]
