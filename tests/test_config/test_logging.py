"""Testes do logging JSON com os eventos reais do serviço.

Cada teste instala o handler de ``configure_logging`` com um stream em
memória e lê as linhas JSON emitidas pela sessão e pelo publisher.
"""

from __future__ import annotations

import io
import json
import logging
from collections.abc import Iterator

import pytest

from app.domain.event import FullSnapshot
from app.infra.stores.memory_stores import MemorySharedStore, MemoryTokenStore
from app.observability import correlation_scope, get_correlation_id
from app.services.mirror_publisher import MirrorPublisher
from app.sessions.sync_session import SyncSession
from config.logging import (
    REQUIRED_LOG_FIELDS,
    configure_logging,
    get_logger,
    hash_email,
)
from config.settings.sync import SyncSettings
from tests.fakes.fake_provider import FakeProviderClient
from utils.errors import ProviderUnreachableError

SERVICE = "calendar_sync_test"


@pytest.fixture
def log_stream() -> Iterator[io.StringIO]:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    stream = io.StringIO()
    configure_logging(
        level="DEBUG",
        service_name=SERVICE,
        correlation_id_getter=get_correlation_id,
    )
    root.handlers[0].setStream(stream)  # type: ignore[attr-defined]
    yield stream
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def _records(stream: io.StringIO, message: str) -> list[dict]:
    lines = [json.loads(line) for line in stream.getvalue().splitlines() if line]
    return [line for line in lines if line["message"] == message]


class TestSyncSessionLogs:
    """Eventos emitidos pelo ciclo de poll."""

    @pytest.mark.asyncio
    async def test_poll_failed_is_structured(self, log_stream: io.StringIO) -> None:
        provider = FakeProviderClient()
        provider.responses = [ProviderUnreachableError("boom", status_code=503)]
        session = SyncSession(
            provider,
            MemoryTokenStore(),
            SyncSettings(poll_interval_seconds=3600.0),
            redirect_uri="myapp://oauth/exchange",
        )
        await session.handle_callback("myapp://oauth/exchange?code=abc")
        session.poller.stop()

        await session.refresh()

        [record] = _records(log_stream, "poll_failed")
        assert record["level"] == "WARNING"
        assert record["logger"] == "app.sessions.sync_session"
        assert record["service"] == SERVICE
        assert record["error_type"] == "ProviderUnreachableError"
        assert record["status_code"] == 503
        assert len(record["correlation_id"]) == 32

    @pytest.mark.asyncio
    async def test_each_poll_has_its_own_correlation_id(self, log_stream: io.StringIO) -> None:
        provider = FakeProviderClient()
        provider.responses = [
            ProviderUnreachableError("boom"),
            ProviderUnreachableError("boom"),
        ]
        session = SyncSession(
            provider,
            MemoryTokenStore(),
            SyncSettings(poll_interval_seconds=3600.0),
            redirect_uri="myapp://oauth/exchange",
        )
        await session.handle_callback("myapp://oauth/exchange?code=abc")
        session.poller.stop()

        await session.refresh()
        await session.refresh()

        ids = {record["correlation_id"] for record in _records(log_stream, "poll_failed")}
        assert len(ids) == 2

    @pytest.mark.asyncio
    async def test_merge_stats_reach_the_log(self, log_stream: io.StringIO) -> None:
        provider = FakeProviderClient()
        provider.responses = [FullSnapshot(events=(), sync_token="c1")]
        session = SyncSession(
            provider,
            MemoryTokenStore(),
            SyncSettings(poll_interval_seconds=3600.0),
            redirect_uri="myapp://oauth/exchange",
        )
        await session.handle_callback("myapp://oauth/exchange?code=abc")
        session.poller.stop()

        await session.refresh()

        [record] = _records(log_stream, "metric_sync_cycle")
        assert record["outcome"] == "merged"
        assert record["merge_replaced"] is True
        assert record["merge_invalid_when"] == 0
        assert record["service"] == SERVICE


class TestShareLogs:
    """Compartilhamento: emails nunca aparecem em claro."""

    @pytest.mark.asyncio
    async def test_share_change_completed_carries_only_hashes(
        self, log_stream: io.StringIO
    ) -> None:
        publisher = MirrorPublisher(MemorySharedStore(), clock=lambda: "2024-11-17T12:00:00Z")
        await publisher.register_profile("owner-uid", "owner@x.com", "Ana", "Silva")
        await publisher.register_profile("viewer-uid", "Viewer@X.com", "Bruno", "")

        with correlation_scope("share-req-1"):
            await publisher.grant("owner-uid", "viewer@x.com")

        [record] = _records(log_stream, "share_change_completed")
        assert record["operation"] == "grant"
        assert record["viewer_hash"] == hash_email("viewer@x.com")
        assert record["correlation_id"] == "share-req-1"
        assert "viewer@x.com" not in log_stream.getvalue().lower()

    @pytest.mark.asyncio
    async def test_profile_registration_redacts_email(self, log_stream: io.StringIO) -> None:
        publisher = MirrorPublisher(MemorySharedStore(), clock=lambda: "2024-11-17T12:00:00Z")

        await publisher.register_profile("owner-uid", "Owner@X.com", "Ana", "Silva")

        [record] = _records(log_stream, "profile_registered")
        assert record["email"] == hash_email("owner@x.com")
        assert "owner@x.com" not in log_stream.getvalue().lower()


class TestConfigureLogging:
    """Instalação do handler JSON."""

    def test_required_fields_use_renamed_keys(self, log_stream: io.StringIO) -> None:
        get_logger("app.sessions.poller").info("poller_started")

        [record] = _records(log_stream, "poller_started")
        renamed = {"levelname": "level", "name": "logger"}
        for field in REQUIRED_LOG_FIELDS:
            assert renamed.get(field, field) in record
        assert record["correlation_id"] == ""

    def test_explicit_correlation_id_wins(self, log_stream: io.StringIO) -> None:
        with correlation_scope("from-context"):
            get_logger("app.app").info("request_done", extra={"correlation_id": "explicit"})

        [record] = _records(log_stream, "request_done")
        assert record["correlation_id"] == "explicit"

    def test_single_handler_after_reconfigure(self, log_stream: io.StringIO) -> None:
        configure_logging(level="info", service_name=SERVICE)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Nível de log inválido"):
            configure_logging(level="VERBOSE")
