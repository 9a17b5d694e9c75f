"""Fake in-memory do provider de calendário para testes deterministas."""

from __future__ import annotations

import asyncio

from app.domain.event import Delta, Event, EventDraft, FetchResult
from utils.errors import ExchangeFailedError

FAKE_AUTH_URL = "https://provider.test/nylas/auth"


class FakeProviderClient:
    """Implementa o protocolo do provider sem IO.

    ``responses`` é consumida em ordem por ``list_events``; exceções na
    fila são levantadas. Com a fila vazia retorna um delta vazio.
    ``gate`` permite segurar um poll em andamento e ``exchange_gate`` uma
    troca de código; ``tokens_by_code`` define o token devolvido por código.
    """

    def __init__(
        self,
        *,
        token: str = "grant-123",
        calendar_id: str = "primary-cal",
    ) -> None:
        self.token = token
        self.calendar_id = calendar_id
        self.responses: list[FetchResult | Exception] = []
        self.list_calls: list[tuple[str, str | None]] = []
        self.exchanged_codes: list[str] = []
        self.created: list[EventDraft] = []
        self.reject_codes: set[str] = set()
        self.gate: asyncio.Event | None = None
        self.exchange_gate: asyncio.Event | None = None
        self.tokens_by_code: dict[str, str] = {}

    def authorization_url(self) -> str:
        return FAKE_AUTH_URL

    async def exchange_code(self, code: str) -> str:
        self.exchanged_codes.append(code)
        if self.exchange_gate is not None:
            await self.exchange_gate.wait()
        if code in self.reject_codes:
            raise ExchangeFailedError("rejected")
        return self.tokens_by_code.get(code, self.token)

    async def primary_calendar(self, token: str) -> str:
        return self.calendar_id

    async def list_events(self, token: str, sync_token: str | None = None) -> FetchResult:
        self.list_calls.append((token, sync_token))
        if self.gate is not None:
            await self.gate.wait()
        if not self.responses:
            return Delta(events=(), sync_token=None)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def create_event(self, token: str, draft: EventDraft) -> Event:
        self.created.append(draft)
        return Event(
            id=f"created-{len(self.created)}",
            title=draft.title,
            when={"start_time": draft.start_time, "end_time": draft.end_time},
        )
