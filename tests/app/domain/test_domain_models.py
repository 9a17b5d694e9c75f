"""Testes dos modelos de domínio (eventos e compartilhamento)."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from app.domain.event import Event, EventDraft, Participant
from app.domain.event_time import AllDayWhen, NormalizationError, TimedWhen
from app.domain.sharing import (
    ShareResult,
    ShareStatus,
    UserProfile,
    parse_mirrored_events,
)
from utils.errors import (
    AuthRequiredError,
    FirestoreUnavailableError,
    InfrastructureError,
    ShareTargetNotFoundError,
)


class TestEvent:
    """Modelo Event."""

    def test_none_fields_become_empty(self) -> None:
        event = Event.model_validate(
            {"id": "a", "title": None, "when": None, "participants": None}
        )

        assert event.title == ""
        assert event.when == {}
        assert event.participants == []

    def test_unknown_participant_status_is_pending(self) -> None:
        participant = Participant.model_validate({"email": "b@x.com", "status": "noreply"})

        assert participant.status == "pending"
        assert Participant.model_validate({"status": "YES"}).status == "yes"

    def test_mirror_dict_drops_tombstone_and_none(self) -> None:
        event = Event(id="a", title="A", when={"start_time": 1}, deleted=False)

        assert event.to_mirror_dict() == {
            "id": "a",
            "title": "A",
            "when": {"start_time": 1},
            "participants": [],
        }

    def test_canonical_when_timed(self) -> None:
        event = Event(id="a", when={"start_time": 1700000000, "end_time": 1700003600})

        when = event.canonical_when(UTC)

        assert isinstance(when, TimedWhen)
        assert when.start == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
        assert event.canonical_when(UTC) is when
        assert event.has_valid_when is True

    def test_canonical_when_all_day(self) -> None:
        event = Event(id="a", when={"object": "date", "date": "2024-11-17"})

        assert event.canonical_when(UTC) == AllDayWhen(start_date=date(2024, 11, 17))

    @pytest.mark.parametrize(
        "raw_when",
        [{}, {"object": "timespan"}, {"start_time": "garbage"}, {"object": ["date"]}],
    )
    def test_missing_or_garbage_when_degrades_to_error(self, raw_when: dict) -> None:
        event = Event(id="a", when=raw_when)

        assert isinstance(event.canonical_when(UTC), NormalizationError)
        assert event.has_valid_when is False

    def test_event_is_immutable(self) -> None:
        event = Event(id="a", title="A")

        with pytest.raises(ValidationError):
            event.title = "B"  # type: ignore[misc]

    def test_equality_ignores_canonical_cache(self) -> None:
        first = Event(id="a", when={"start_time": 1700000000})
        second = Event(id="a", when={"start_time": 1700000000})
        first.canonical_when(UTC)

        assert first == second
        assert first != Event(id="a", when={"start_time": 1700000001})

    def test_draft_payload_omits_empty_optionals(self) -> None:
        draft = EventDraft(title="T", start_time="s", end_time="e")

        assert draft.to_payload() == {"title": "T", "start_time": "s", "end_time": "e"}

        full = EventDraft(
            title="T",
            start_time="s",
            end_time="e",
            participants=(Participant(email="b@x.com"),),
            location="Room 1",
        )
        payload = full.to_payload()
        assert payload["location"] == "Room 1"
        assert payload["participants"][0]["email"] == "b@x.com"


class TestShareResult:
    """ShareResult.raise_for_status."""

    @pytest.mark.parametrize(
        "status",
        [
            ShareStatus.GRANTED,
            ShareStatus.REVOKED,
            ShareStatus.ALREADY_SHARED,
            ShareStatus.NOT_SHARED,
        ],
    )
    def test_ok_statuses_do_not_raise(self, status: ShareStatus) -> None:
        ShareResult(status, "b@x.com").raise_for_status()

    def test_failure_statuses_map_to_domain_errors(self) -> None:
        with pytest.raises(ShareTargetNotFoundError):
            ShareResult(ShareStatus.TARGET_NOT_FOUND, "b@x.com").raise_for_status()
        with pytest.raises(AuthRequiredError):
            ShareResult(ShareStatus.OWNER_NOT_FOUND, "b@x.com").raise_for_status()
        with pytest.raises(InfrastructureError):
            ShareResult(ShareStatus.FAILED, "b@x.com").raise_for_status()
        with pytest.raises(ValueError):
            ShareResult(ShareStatus.SELF_SHARE, "b@x.com").raise_for_status()

    def test_changed(self) -> None:
        assert ShareResult(ShareStatus.GRANTED, "b@x.com").changed is True
        assert ShareResult(ShareStatus.ALREADY_SHARED, "b@x.com").changed is False

    def test_firestore_error_is_infrastructure_error(self) -> None:
        assert issubclass(FirestoreUnavailableError, InfrastructureError)


class TestUserProfile:
    """Conversão de documentos users/{uid}."""

    def test_from_document(self) -> None:
        profile = UserProfile.from_document(
            "u1",
            {
                "email": "a@x.com",
                "firstName": "Ana",
                "lastName": "Silva",
                "sharedWithMe": ["b@x.com"],
                "totalEvents": "3",
            },
        )

        assert profile.display_name == "Ana Silva"
        assert profile.shared_with_me == ["b@x.com"]
        assert profile.shared_with_others == []
        assert profile.total_events == 3

    def test_parse_mirrored_events_skips_invalid(self) -> None:
        events = parse_mirrored_events(
            {
                "events": [
                    {"id": "a", "title": "A"},
                    {"title": "no id"},
                    "garbage",
                    {"id": "b", "deleted": True},
                    {"id": "c", "participants": "not-a-list"},
                ]
            }
        )

        assert [event.id for event in events] == ["a"]
