"""Testes do normalizador de horários de eventos."""

from __future__ import annotations

from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from app.domain.event_time import AllDayWhen, NormalizationError, TimedWhen
from app.services.time_normalizer import is_all_day, normalize, parse_date

UTC_ZONE = ZoneInfo("UTC")


class TestTimedEvents:
    """Eventos com hora de início e fim."""

    def test_epoch_seconds_and_iso_z_are_equivalent(self) -> None:
        from_epoch = normalize({"start_time": 1700000000, "end_time": 1700003600}, UTC_ZONE)
        from_iso = normalize(
            {"start_time": "2023-11-14T22:13:20Z", "end_time": "2023-11-14T23:13:20Z"},
            UTC_ZONE,
        )

        assert isinstance(from_epoch, TimedWhen)
        assert isinstance(from_iso, TimedWhen)
        assert from_epoch.start == from_iso.start
        assert from_epoch.end == from_iso.end
        assert from_epoch.start == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    def test_numeric_string_is_epoch(self) -> None:
        when = normalize({"start_time": "1700000000"}, UTC_ZONE)

        assert isinstance(when, TimedWhen)
        assert when.start == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
        assert when.end == when.start

    def test_event_timezone_is_used_for_display(self) -> None:
        when = normalize(
            {
                "start_time": 1700000000,
                "end_time": 1700003600,
                "start_timezone": "America/Sao_Paulo",
            },
            UTC_ZONE,
        )

        assert isinstance(when, TimedWhen)
        assert when.start.hour == 19
        assert when.end.hour == 20
        assert when.start_tz == "America/Sao_Paulo"
        assert when.end_tz == "America/Sao_Paulo"

    def test_naive_iso_is_interpreted_in_local_zone(self) -> None:
        zone = ZoneInfo("Europe/Lisbon")
        when = normalize({"start_time": "2024-03-03T09:00:00"}, zone)

        assert isinstance(when, TimedWhen)
        assert when.start.tzinfo == zone
        assert (when.start.hour, when.start.minute) == (9, 0)

    def test_explicit_null_end_falls_back_to_start(self) -> None:
        when = normalize({"start_time": 1700000000, "end_time": None}, UTC_ZONE)

        assert isinstance(when, TimedWhen)
        assert when.end == when.start

    def test_legacy_time_field(self) -> None:
        when = normalize({"time": 1700000000}, UTC_ZONE)
        assert isinstance(when, TimedWhen)


class TestAllDayEvents:
    """Eventos de dia inteiro."""

    def test_start_date_marker(self) -> None:
        when = normalize({"all_day": True, "start_date": "2024-11-17"}, UTC_ZONE)

        assert when == AllDayWhen(start_date=date(2024, 11, 17), end_date=None)
        assert when.is_all_day is True

    def test_object_date_with_single_date(self) -> None:
        when = normalize({"object": "date", "date": "2024-11-17"}, UTC_ZONE)
        assert when == AllDayWhen(start_date=date(2024, 11, 17))

    def test_timestamp_uses_utc_calendar_date(self) -> None:
        # 2024-11-17T00:00:00Z: a data não muda num timezone +14
        when = normalize(
            {"object": "datespan", "start_time": 1731801600},
            ZoneInfo("Pacific/Kiritimati"),
        )
        assert when == AllDayWhen(start_date=date(2024, 11, 17))

    def test_end_before_start_is_dropped(self) -> None:
        when = normalize(
            {"all_day": True, "start_date": "2024-11-17", "end_date": "2024-11-10"},
            UTC_ZONE,
        )
        assert isinstance(when, AllDayWhen)
        assert when.end_date is None

    def test_all_day_takes_precedence_over_time_fields(self) -> None:
        when = normalize(
            {"all_day": True, "start_date": "2024-11-17", "start_time": 1700000000},
            UTC_ZONE,
        )
        assert isinstance(when, AllDayWhen)

    def test_is_all_day_markers(self) -> None:
        assert is_all_day({"all_day": True}) is True
        assert is_all_day({"object": "datespan"}) is True
        assert is_all_day({"start_date": "2024-01-01"}) is True
        assert is_all_day({"start_time": 1}) is False


class TestFailures:
    """Falhas viram NormalizationError (nunca exceção)."""

    @pytest.mark.parametrize("raw", [None, {}, [], "2024-01-01"])
    def test_missing_when(self, raw: object) -> None:
        result = normalize(raw, UTC_ZONE)

        assert isinstance(result, NormalizationError)
        assert result.reason == "missing_when"
        assert result.has_time_fields is False

    def test_unparseable_time_reports_time_fields(self) -> None:
        result = normalize({"start_time": "not-a-date"}, UTC_ZONE)

        assert isinstance(result, NormalizationError)
        assert result.has_time_fields is True
        assert result.all_day is False

    def test_unknown_timezone(self) -> None:
        result = normalize(
            {"start_time": 1700000000, "start_timezone": "Mars/Olympus"},
            UTC_ZONE,
        )
        assert isinstance(result, NormalizationError)
        assert result.reason.startswith("unknown_timezone")

    def test_when_without_time_fields(self) -> None:
        result = normalize({"object": "timespan"}, UTC_ZONE)

        assert isinstance(result, NormalizationError)
        assert result.has_time_fields is False

    def test_invalid_all_day_date(self) -> None:
        result = normalize({"all_day": True, "start_date": "nope"}, UTC_ZONE)

        assert isinstance(result, NormalizationError)
        assert result.all_day is True

    def test_boolean_is_not_a_timestamp(self) -> None:
        assert isinstance(normalize({"start_time": True}, UTC_ZONE), NormalizationError)

    @pytest.mark.parametrize(
        "raw",
        [
            {"object": ["date"], "start_time": 1700000000, "end_time": 1700003600},
            {"object": {"kind": "date"}, "start_time": 1700000000},
            {"start_time": {"seconds": 1}},
            {"start_time": [1700000000]},
            {"all_day": True, "start_date": 20241117},
            {"start_time": 1700000000, "start_timezone": ["UTC"]},
        ],
    )
    def test_malformed_types_do_not_raise(self, raw: dict) -> None:
        result = normalize(raw, UTC_ZONE)
        assert isinstance(result, (TimedWhen, AllDayWhen, NormalizationError))

    def test_unhashable_object_marker_is_not_all_day(self) -> None:
        assert is_all_day({"object": ["date"]}) is False
        result = normalize({"object": ["date"], "start_time": 1700000000}, UTC_ZONE)
        assert isinstance(result, TimedWhen)

    @pytest.mark.parametrize(
        ("start", "zone_name"),
        [
            ("0001-01-01T00:00:00+00:00", "America/New_York"),
            ("9999-12-31T23:00:00+00:00", "Pacific/Kiritimati"),
        ],
    )
    def test_instant_out_of_range_in_display_zone(self, start: str, zone_name: str) -> None:
        result = normalize(
            {"start_time": start, "end_time": start, "start_timezone": zone_name},
            UTC_ZONE,
        )

        assert isinstance(result, NormalizationError)
        assert result.reason.startswith("instant_out_of_range")
        assert result.has_time_fields is True

    def test_epoch_out_of_range(self) -> None:
        result = normalize({"start_time": 1e20}, UTC_ZONE)

        assert isinstance(result, NormalizationError)
        assert result.reason.startswith("epoch_out_of_range")


def test_parse_date_uses_written_date_of_iso_datetime() -> None:
    assert parse_date("2024-11-17T23:30:00-05:00") == date(2024, 11, 17)
