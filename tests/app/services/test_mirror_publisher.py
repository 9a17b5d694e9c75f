"""Testes do MirrorPublisher (espelho remoto + grant/revoke)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from app.domain.event import Event
from app.domain.sharing import ShareStatus
from app.infra.stores.memory_stores import MemorySharedStore
from app.services.mirror_publisher import MirrorPublisher, normalize_email
from utils.errors import (
    AuthRequiredError,
    FirestoreUnavailableError,
    ShareTargetNotFoundError,
)

NOW = "2024-11-17T12:00:00+00:00"


async def _store_with_users() -> MemorySharedStore:
    store = MemorySharedStore()
    publisher = MirrorPublisher(store, clock=lambda: NOW)
    await publisher.register_profile("owner-uid", "Owner@X.com", "Ana", "Silva")
    await publisher.register_profile("viewer-uid", "viewerB@x.com", "Bruno", "")
    return store


class TestPublish:
    """Publicação do documento espelhado."""

    @pytest.mark.asyncio
    async def test_publish_overwrites_document_and_updates_profile(self) -> None:
        store = await _store_with_users()
        await store.set_calendar_document("owner-uid", {"events": [{"id": "stale"}], "extra": 1})
        publisher = MirrorPublisher(store, clock=lambda: NOW)

        result = await publisher.publish(
            "owner-uid",
            [Event(id="a", title="A"), Event(id="b", deleted=True)],
            "cal-1",
        )

        assert result.ok is True
        assert result.total_events == 1
        document = await store.get_calendar_document("owner-uid")
        assert document == {
            "events": [
                {"id": "a", "title": "A", "when": {}, "participants": []},
            ],
            "syncedAt": NOW,
            "calendarId": "cal-1",
            "userId": "owner-uid",
            "sharedWith": [],
        }
        profile = await store.get_user("owner-uid")
        assert profile is not None
        assert profile.total_events == 1
        assert profile.calendar_id == "cal-1"
        assert profile.first_name == "Ana"

    @pytest.mark.asyncio
    async def test_publish_keeps_shared_with_list(self) -> None:
        store = await _store_with_users()
        publisher = MirrorPublisher(store, clock=lambda: NOW)
        await publisher.grant("owner-uid", "viewerB@x.com")

        await publisher.publish("owner-uid", [Event(id="a")], None)

        document = await store.get_calendar_document("owner-uid")
        assert document is not None
        assert document["sharedWith"] == ["viewerb@x.com"]

    @pytest.mark.asyncio
    async def test_publish_failure_is_reported_not_raised(self) -> None:
        store = AsyncMock()
        store.get_user.return_value = None
        store.set_calendar_document.side_effect = FirestoreUnavailableError("down")
        publisher = MirrorPublisher(store)

        result = await publisher.publish("owner-uid", [Event(id="a")], "cal")

        assert result.ok is False
        assert result.error == "down"


class TestShares:
    """grant/revoke atualizam as duas listas juntas."""

    @pytest.mark.asyncio
    async def test_double_grant_is_idempotent(self) -> None:
        store = await _store_with_users()
        publisher = MirrorPublisher(store)

        first = await publisher.grant("owner-uid", "viewerB@x.com")
        second = await publisher.grant("owner-uid", "VIEWERB@x.com ")

        assert first.status == ShareStatus.GRANTED
        assert first.changed is True
        assert second.status == ShareStatus.ALREADY_SHARED
        assert second.ok is True
        owner = await store.get_user("owner-uid")
        viewer = await store.get_user("viewer-uid")
        assert owner is not None and viewer is not None
        assert owner.shared_with_others == ["viewerb@x.com"]
        assert viewer.shared_with_me == ["owner@x.com"]

    @pytest.mark.asyncio
    async def test_grant_repairs_half_applied_edge(self) -> None:
        store = await _store_with_users()
        await store.set_user("owner-uid", {"sharedWithOthers": ["viewerb@x.com"]})
        publisher = MirrorPublisher(store)

        result = await publisher.grant("owner-uid", "viewerb@x.com")

        assert result.status == ShareStatus.ALREADY_SHARED
        viewer = await store.get_user("viewer-uid")
        assert viewer is not None
        assert viewer.shared_with_me == ["owner@x.com"]

    @pytest.mark.asyncio
    async def test_revoke_removes_both_sides(self) -> None:
        store = await _store_with_users()
        publisher = MirrorPublisher(store)
        await publisher.grant("owner-uid", "viewerb@x.com")

        result = await publisher.revoke("owner-uid", "viewerb@x.com")
        again = await publisher.revoke("owner-uid", "viewerb@x.com")

        assert result.status == ShareStatus.REVOKED
        assert again.status == ShareStatus.NOT_SHARED
        owner = await store.get_user("owner-uid")
        viewer = await store.get_user("viewer-uid")
        assert owner is not None and viewer is not None
        assert owner.shared_with_others == []
        assert viewer.shared_with_me == []
        document = await store.get_calendar_document("owner-uid")
        assert document is not None
        assert document["sharedWith"] == []

    @pytest.mark.asyncio
    async def test_unknown_email_is_not_found_without_mutation(self) -> None:
        store = await _store_with_users()
        publisher = MirrorPublisher(store)

        result = await publisher.grant("owner-uid", "nobody@x.com")

        assert result.status == ShareStatus.TARGET_NOT_FOUND
        with pytest.raises(ShareTargetNotFoundError):
            result.raise_for_status()
        owner = await store.get_user("owner-uid")
        assert owner is not None
        assert owner.shared_with_others == []

    @pytest.mark.asyncio
    async def test_invalid_and_self_share(self) -> None:
        store = await _store_with_users()
        publisher = MirrorPublisher(store)

        invalid = await publisher.grant("owner-uid", "not-an-email")
        self_share = await publisher.grant("owner-uid", "owner@x.com")

        assert invalid.status == ShareStatus.TARGET_NOT_FOUND
        assert self_share.status == ShareStatus.SELF_SHARE
        with pytest.raises(ValueError):
            self_share.raise_for_status()

    @pytest.mark.asyncio
    async def test_missing_owner_profile(self) -> None:
        publisher = MirrorPublisher(MemorySharedStore())

        result = await publisher.grant("ghost", "viewer@x.com")

        assert result.status == ShareStatus.OWNER_NOT_FOUND
        with pytest.raises(AuthRequiredError):
            result.raise_for_status()

    @pytest.mark.asyncio
    async def test_store_failure_becomes_failed_status(self) -> None:
        store = await _store_with_users()
        store.update_share_edge = AsyncMock(side_effect=FirestoreUnavailableError("tx"))  # type: ignore[method-assign]
        publisher = MirrorPublisher(store)

        result = await publisher.grant("owner-uid", "viewerb@x.com")

        assert result.status == ShareStatus.FAILED
        assert result.ok is False


class TestRegisterProfile:
    """Cadastro do perfil no store compartilhado."""

    @pytest.mark.asyncio
    async def test_register_profile_writes_full_document(self) -> None:
        store = MemorySharedStore()
        publisher = MirrorPublisher(store, clock=lambda: NOW)

        profile = await publisher.register_profile("u1", " New@X.com ", "Carla", "Dias")

        assert profile.email == "new@x.com"
        assert profile.display_name == "Carla Dias"
        found = await store.find_user_by_email("NEW@x.com")
        assert found is not None
        assert found.uid == "u1"
        assert found.shared_with_me == []

    @pytest.mark.asyncio
    async def test_register_profile_rejects_invalid_input(self) -> None:
        publisher = MirrorPublisher(MemorySharedStore())
        with pytest.raises(ValueError):
            await publisher.register_profile("", "a@x.com")
        with pytest.raises(ValueError):
            await publisher.register_profile("u1", "no-at-sign")


def test_normalize_email() -> None:
    assert normalize_email("  Foo@Bar.COM ") == "foo@bar.com"
    assert normalize_email("") == ""
