"""Forma canônica do horário de um evento.

União etiquetada: exatamente uma variante (``TimedWhen`` ou ``AllDayWhen``)
descreve o evento. Falhas de parse viram ``NormalizationError`` como valor.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime  # noqa: TC003 - campos de dataclass


@dataclass(frozen=True, slots=True)
class TimedWhen:
    """Evento com hora de início e fim (instantes aware)."""

    start: datetime
    end: datetime
    start_tz: str | None = None
    end_tz: str | None = None

    @property
    def is_all_day(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class AllDayWhen:
    """Evento de dia inteiro (sem hora do dia)."""

    start_date: date
    end_date: date | None = None

    @property
    def is_all_day(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class NormalizationError:
    """Representação de horário ausente ou não interpretável."""

    reason: str
    has_time_fields: bool = False
    all_day: bool = False


CanonicalWhen = TimedWhen | AllDayWhen

__all__ = ["AllDayWhen", "CanonicalWhen", "NormalizationError", "TimedWhen"]
