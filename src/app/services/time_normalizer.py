"""Normalização de horários de eventos do provider.

Converte as representações heterogêneas do campo ``when`` (epoch em
segundos, strings ISO-8601, datas sem hora) para a união canônica
``TimedWhen | AllDayWhen``. Nunca levanta exceção para o chamador:
qualquer falha vira ``NormalizationError``.

Regras:
- Marcadores de dia inteiro (``all_day``, ``object == "date"``, presença
  de ``start_date``/``date``) têm precedência sobre campos com hora.
- ``start_time``/``end_time`` aceitam epoch (int/float ou string numérica)
  e ISO-8601 (``Z`` final aceito).
- Instantes são exibidos em ``start_timezone``/``end_timezone`` quando
  presentes, senão no timezone local configurado.
- Dia inteiro com apenas timestamp usa a data UTC do instante, para que o
  dia não mude ao cruzar a linha internacional de data.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, date, datetime, tzinfo
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.domain.event_time import AllDayWhen, NormalizationError, TimedWhen

logger = logging.getLogger(__name__)

_NUMERIC_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")
_TIME_FIELDS = ("start_time", "end_time", "time")
_ALL_DAY_OBJECTS = frozenset({"date", "datespan"})


class _ParseError(ValueError):
    """Falha interna de parse (convertida em NormalizationError)."""


def system_local_zone() -> tzinfo:
    """Timezone local do processo."""
    return datetime.now().astimezone().tzinfo or UTC


def resolve_zone(name: str | None, default: tzinfo) -> tzinfo:
    """Resolve nome IANA para tzinfo (vazio = ``default``)."""
    if not name:
        return default
    try:
        return ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise _ParseError(f"unknown_timezone:{name}") from exc


def is_all_day(raw_when: dict[str, Any]) -> bool:
    """Indica se o ``when`` cru tem algum marcador de dia inteiro."""
    marker = raw_when.get("object")
    return bool(
        raw_when.get("all_day")
        or (isinstance(marker, str) and marker in _ALL_DAY_OBJECTS)
        or raw_when.get("start_date")
        or raw_when.get("date")
    )


def parse_instant(value: Any, zone: tzinfo) -> datetime:
    """Converte epoch/ISO em datetime aware, interpretando naive em ``zone``."""
    if isinstance(value, bool) or value is None:
        raise _ParseError("missing_or_invalid_time")
    if isinstance(value, (int, float)):
        return _from_epoch(float(value))
    if not isinstance(value, str):
        raise _ParseError(f"unsupported_time_type:{type(value).__name__}")

    text = value.strip()
    if not text:
        raise _ParseError("empty_time")
    if _NUMERIC_RE.match(text):
        return _from_epoch(float(text))

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise _ParseError(f"invalid_iso:{value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def _from_epoch(seconds: float) -> datetime:
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError) as exc:
        raise _ParseError(f"epoch_out_of_range:{seconds}") from exc


def _in_zone(instant: datetime, zone: tzinfo) -> datetime:
    """Converte ``instant`` para ``zone``; estouro de faixa vira _ParseError."""
    try:
        return instant.astimezone(zone)
    except (OverflowError, ValueError) as exc:
        raise _ParseError(f"instant_out_of_range:{instant.isoformat()}") from exc


def parse_date(value: Any) -> date:
    """Converte ``YYYY-MM-DD`` (ou ISO com hora, usando a data escrita)."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    if not isinstance(value, str) or len(value.strip()) < 10:
        raise _ParseError(f"invalid_date:{value}")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError as exc:
        raise _ParseError(f"invalid_date:{value}") from exc


def _timestamp_to_date(value: Any) -> date:
    """Data de calendário de um timestamp de evento de dia inteiro."""
    if isinstance(value, str) and not _NUMERIC_RE.match(value.strip()):
        return parse_date(value)
    return _in_zone(parse_instant(value, UTC), UTC).date()


def _normalize_all_day(raw_when: dict[str, Any]) -> AllDayWhen:
    start_raw = raw_when.get("start_date") or raw_when.get("date")
    if start_raw:
        start_date = parse_date(start_raw)
    elif raw_when.get("start_time") is not None:
        start_date = _timestamp_to_date(raw_when["start_time"])
    else:
        raise _ParseError("all_day_without_date")

    end_date: date | None = None
    if raw_when.get("end_date"):
        end_date = parse_date(raw_when["end_date"])
    elif raw_when.get("end_time") is not None:
        end_date = _timestamp_to_date(raw_when["end_time"])

    if end_date is not None and end_date < start_date:
        end_date = None
    return AllDayWhen(start_date=start_date, end_date=end_date)


def _normalize_timed(raw_when: dict[str, Any], local_zone: tzinfo) -> TimedWhen:
    start_tz_name = raw_when.get("start_timezone") or raw_when.get("timezone")
    end_tz_name = raw_when.get("end_timezone") or start_tz_name
    start_zone = resolve_zone(start_tz_name, local_zone)
    end_zone = resolve_zone(end_tz_name, local_zone)

    start_raw = raw_when.get("start_time")
    if start_raw is None:
        start_raw = raw_when.get("time")
    if start_raw is None:
        raise _ParseError("missing_start_time")
    end_raw = raw_when.get("end_time")
    if end_raw is None:
        end_raw = start_raw

    start = _in_zone(parse_instant(start_raw, start_zone), start_zone)
    end = _in_zone(parse_instant(end_raw, end_zone), end_zone)
    return TimedWhen(
        start=start,
        end=end,
        start_tz=start_tz_name or None,
        end_tz=end_tz_name or None,
    )


def normalize(
    raw_when: Any,
    zone: tzinfo | None = None,
) -> TimedWhen | AllDayWhen | NormalizationError:
    """Normaliza o ``when`` cru de um evento.

    Args:
        raw_when: Dicionário ``when`` como veio do provider.
        zone: Timezone local (default: timezone do processo).

    Returns:
        Variante canônica ou ``NormalizationError`` (nunca levanta).
    """
    if not isinstance(raw_when, dict) or not raw_when:
        return NormalizationError(reason="missing_when")

    has_time_fields = any(raw_when.get(key) is not None for key in _TIME_FIELDS)
    local_zone = zone or system_local_zone()
    try:
        if is_all_day(raw_when):
            return _normalize_all_day(raw_when)
        if not has_time_fields:
            return NormalizationError(reason="missing_time_fields")
        return _normalize_timed(raw_when, local_zone)
    except (ValueError, TypeError, OverflowError) as exc:
        logger.debug(
            "when_normalization_failed",
            extra={"reason": str(exc), "keys": sorted(str(key) for key in raw_when)},
        )
        all_day = is_all_day(raw_when)
        return NormalizationError(
            reason=str(exc),
            has_time_fields=has_time_fields or all_day,
            all_day=all_day,
        )


__all__ = [
    "is_all_day",
    "normalize",
    "parse_date",
    "parse_instant",
    "resolve_zone",
    "system_local_zone",
]
