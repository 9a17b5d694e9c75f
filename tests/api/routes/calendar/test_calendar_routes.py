"""Testes das rotas de calendário com runtime montado sobre fakes."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Callable, Iterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import create_api_router
from app.bootstrap.dependencies import CalendarRuntime
from app.domain.event import Event, FullSnapshot
from app.infra.auth import BrowserAuthorizationFlow
from app.infra.stores.memory_stores import MemorySharedStore, MemoryTokenStore
from app.services.mirror_publisher import MirrorPublisher
from app.services.shared_view import SharedViewAggregator
from app.sessions.sync_session import SyncSession
from config.settings.sync import SyncSettings
from tests.fakes.fake_provider import FAKE_AUTH_URL, FakeProviderClient

# 2024-11-17 09:00 UTC
NINE_AM = 1731834000


@dataclass
class Harness:
    client: TestClient
    runtime: CalendarRuntime
    provider: FakeProviderClient
    store: MemorySharedStore


def _build_runtime(
    *,
    user_id: str = "me",
    with_shared_view: bool = False,
) -> tuple[CalendarRuntime, FakeProviderClient, MemorySharedStore]:
    provider = FakeProviderClient()
    store = MemorySharedStore()
    settings = SyncSettings(
        poll_interval_seconds=3600,
        local_timezone="UTC",
        user_id=user_id,
    )
    publisher = MirrorPublisher(store)
    flow = BrowserAuthorizationFlow(opener=lambda _url: True, timeout_seconds=5)
    session = SyncSession(
        provider,
        MemoryTokenStore(),
        settings,
        redirect_uri="myapp://oauth/exchange",
        auth_flow=flow,
        publisher=publisher,
    )
    shared_view_factory = (
        (lambda: SharedViewAggregator(store, user_id)) if with_shared_view else None
    )
    runtime = CalendarRuntime(
        session=session,
        publisher=publisher,
        shared_store=store,
        auth_flow=flow,
        settings=settings,
        shared_view_factory=shared_view_factory,
    )
    return runtime, provider, store


def _build_app(runtime: CalendarRuntime) -> FastAPI:
    @asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.runtime = runtime
        await runtime.start()
        yield
        await runtime.stop()

    app = FastAPI(lifespan=_lifespan)
    app.include_router(create_api_router())
    return app


def _wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.01)
    raise AssertionError("condição não atingida dentro do timeout")


def _register(client: TestClient, uid: str, email: str) -> None:
    response = client.post("/profiles", json={"uid": uid, "email": email, "first_name": uid})
    assert response.status_code == 201


def _connect(client: TestClient) -> None:
    response = client.get("/oauth/exchange", params={"code": "abc"})
    assert response.status_code == 200
    assert response.text == "Calendar connected. You can close this window."


@pytest.fixture
def harness() -> Iterator[Harness]:
    runtime, provider, store = _build_runtime()
    with TestClient(_build_app(runtime)) as client:
        yield Harness(client, runtime, provider, store)


class TestSyncRoutes:
    """Autorização, status, refresh e logout."""

    def test_status_starts_logged_out(self, harness: Harness) -> None:
        payload = harness.client.get("/sync/status").json()

        assert payload["state"] == "LOGGED_OUT"
        assert payload["connected"] is False
        assert payload["total_events"] == 0

    def test_refresh_requires_login(self, harness: Harness) -> None:
        response = harness.client.post("/sync/refresh")

        assert response.status_code == 401
        assert response.json()["detail"]["error"] == "auth_required"

    def test_exchange_connects_and_refresh_merges(self, harness: Harness) -> None:
        harness.provider.responses.append(
            FullSnapshot(
                events=(Event(id="a", title="Standup", when={"start_time": NINE_AM}),),
                sync_token="c1",
            )
        )

        _connect(harness.client)
        response = harness.client.post("/sync/refresh")

        assert response.status_code == 200
        status = response.json()["status"]
        assert status["connected"] is True
        assert status["has_cursor"] is True
        assert status["calendar_id"] == "primary-cal"
        assert status["total_events"] == 1
        assert harness.provider.exchanged_codes == ["abc"]

    def test_rejected_code_returns_400(self, harness: Harness) -> None:
        harness.provider.reject_codes.add("bad")

        response = harness.client.get("/oauth/exchange", params={"code": "bad"})

        assert response.status_code == 400
        assert response.text == "Authorization failed. Please try again."

    def test_interactive_auth_completes_with_callback(self, harness: Harness) -> None:
        response = harness.client.post("/sync/auth")

        assert response.status_code == 202
        assert response.json() == {"auth_url": FAKE_AUTH_URL, "state": "AUTHENTICATING"}
        assert harness.client.post("/sync/auth").status_code == 409

        callback = harness.client.get("/oauth/exchange", params={"code": "abc"})
        assert callback.status_code == 200
        assert callback.text == "Authorization received. You can close this window."

        _wait_for(lambda: harness.client.get("/sync/status").json()["connected"] is True)

    def test_logout_clears_session(self, harness: Harness) -> None:
        _connect(harness.client)

        payload = harness.client.post("/sync/logout").json()

        assert payload["state"] == "LOGGED_OUT"
        assert payload["calendar_id"] is None
        assert harness.runtime.session.poller.running is False


class TestEventRoutes:
    """Agenda e criação de eventos."""

    def test_agenda_groups_by_day(self, harness: Harness) -> None:
        harness.provider.responses.append(
            FullSnapshot(
                events=(
                    Event(id="late", title="Review", when={"start_time": NINE_AM + 7200}),
                    Event(id="early", title="Standup", when={"start_time": NINE_AM}),
                    Event(id="gone", title="x", when={"start_time": NINE_AM}, deleted=True),
                )
            )
        )
        _connect(harness.client)
        harness.client.post("/sync/refresh")

        payload = harness.client.get("/events").json()

        assert payload["marked_dates"] == ["2024-11-17"]
        assert len(payload["agenda"]) == 1
        day = payload["agenda"][0]
        assert day["date"] == "2024-11-17"
        assert [item["id"] for item in day["events"]] == ["early", "late"]
        assert day["events"][0]["all_day"] is False

    def test_create_event_requires_login(self, harness: Harness) -> None:
        response = harness.client.post(
            "/events",
            json={
                "title": "Lunch",
                "start_time": "2024-11-17T12:00:00+00:00",
                "end_time": "2024-11-17T13:00:00+00:00",
            },
        )

        assert response.status_code == 401

    def test_create_event(self, harness: Harness) -> None:
        _connect(harness.client)

        response = harness.client.post(
            "/events",
            json={
                "title": "Lunch",
                "start_time": "2024-11-17T12:00:00+00:00",
                "end_time": "2024-11-17T13:00:00+00:00",
                "participants": [{"email": "bob@x.com"}],
            },
        )

        assert response.status_code == 201
        assert response.json()["id"] == "created-1"
        draft = harness.provider.created[0]
        assert draft.start_time == "2024-11-17T12:00:00+00:00"
        assert draft.participants[0].email == "bob@x.com"

    def test_create_event_blank_title(self, harness: Harness) -> None:
        _connect(harness.client)

        response = harness.client.post(
            "/events",
            json={
                "title": "  ",
                "start_time": "2024-11-17T12:00:00+00:00",
                "end_time": "2024-11-17T13:00:00+00:00",
            },
        )

        assert response.status_code == 422


class TestShareRoutes:
    """Grant, revoke e perfis."""

    def test_grant_and_revoke(self, harness: Harness) -> None:
        _register(harness.client, "me", "me@x.com")
        _register(harness.client, "bob", "bob@x.com")

        granted = harness.client.post("/shares", json={"email": "Bob@X.com"})
        again = harness.client.post("/shares", json={"email": "bob@x.com"})
        revoked = harness.client.delete("/shares/bob@x.com")

        assert granted.status_code == 200
        assert granted.json()["status"] == "granted"
        assert granted.json()["changed"] is True
        assert again.json()["status"] == "already_shared"
        assert again.json()["changed"] is False
        assert revoked.json()["status"] == "revoked"

    def test_unknown_target_returns_404(self, harness: Harness) -> None:
        _register(harness.client, "me", "me@x.com")

        response = harness.client.post("/shares", json={"email": "ghost@x.com"})

        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "share_target_not_found"

    def test_self_share_returns_400(self, harness: Harness) -> None:
        _register(harness.client, "me", "me@x.com")

        response = harness.client.post("/shares", json={"email": "ME@x.com"})

        assert response.status_code == 400
        assert response.json()["status"] == "self_share"

    def test_missing_owner_profile_returns_401(self, harness: Harness) -> None:
        response = harness.client.post("/shares", json={"email": "bob@x.com"})

        assert response.status_code == 401

    def test_register_profile_rejects_invalid_email(self, harness: Harness) -> None:
        response = harness.client.post("/profiles", json={"uid": "u1", "email": "not-an-email"})

        assert response.status_code == 422

    def test_incoming_without_shared_view(self, harness: Harness) -> None:
        assert harness.client.get("/shares/incoming").json() == {
            "shared_with_me": [],
            "calendars": [],
        }


def test_shares_require_user_id() -> None:
    runtime, _, _ = _build_runtime(user_id="")
    with TestClient(_build_app(runtime)) as client:
        response = client.post("/shares", json={"email": "bob@x.com"})

    assert response.status_code == 401


def test_runtime_missing_returns_503() -> None:
    app = FastAPI()
    app.include_router(create_api_router())
    client = TestClient(app)

    response = client.get("/sync/status")

    assert response.status_code == 503


def test_incoming_shares_follow_owner_mirror() -> None:
    runtime, _, _ = _build_runtime(with_shared_view=True)
    with TestClient(_build_app(runtime)) as client:
        _register(client, "me", "me@x.com")
        _register(client, "bob", "bob@x.com")
        _connect(client)
        assert client.portal is not None
        client.portal.call(runtime.publisher.grant, "bob", "me@x.com")

        def _incoming() -> dict[str, Any]:
            return client.get("/shares/incoming").json()

        _wait_for(lambda: len(_incoming()["calendars"]) == 1)
        assert _incoming()["shared_with_me"] == ["bob@x.com"]

        events = [Event(id="b1", title="Bob's meeting", when={"start_time": NINE_AM})]
        client.portal.call(runtime.publisher.publish, "bob", events, "cal-bob")

        _wait_for(lambda: bool(_incoming()["calendars"][0]["agenda"]))
        calendar = _incoming()["calendars"][0]
        assert calendar["owner_email"] == "bob@x.com"
        assert calendar["calendar_id"] == "cal-bob"
        assert calendar["agenda"][0]["events"][0]["title"] == "Bob's meeting"


def test_logout_releases_shared_view_subscriptions() -> None:
    runtime, _, store = _build_runtime(with_shared_view=True)
    with TestClient(_build_app(runtime)) as client:
        assert runtime.shared_view is None
        _register(client, "me", "me@x.com")
        _register(client, "bob", "bob@x.com")
        _connect(client)
        assert client.portal is not None
        events = [Event(id="b1", title="Bob's meeting", when={"start_time": NINE_AM})]
        client.portal.call(runtime.publisher.publish, "bob", events, "cal-bob")
        client.portal.call(runtime.publisher.grant, "bob", "me@x.com")

        def _incoming() -> dict[str, Any]:
            return client.get("/shares/incoming").json()

        _wait_for(lambda: len(_incoming()["calendars"]) == 1)
        view = runtime.shared_view
        assert view is not None
        assert view.active_owner_subscriptions == 1

        response = client.post("/sync/logout")

        assert response.status_code == 200
        assert view.closed is True
        assert view.active_owner_subscriptions == 0
        assert runtime.shared_view is None
        assert _incoming() == {"shared_with_me": [], "calendars": []}
        assert store.active_watchers() == 0

        _connect(client)

        _wait_for(lambda: len(_incoming()["calendars"]) == 1)
        assert runtime.shared_view is not None
        assert runtime.shared_view is not view
        assert _incoming()["shared_with_me"] == ["bob@x.com"]
