"""Cliente do provider de calendário (servidor Nylas).

Endpoints:
    GET  /oauth/exchange?code=       -> token (texto)
    GET  /nylas/auth                 -> fluxo interativo
    GET  /nylas/primary-calendar     -> id do calendário (texto)
    GET  /nylas/list-events          -> lista (snapshot) ou {events, sync_token}
    POST /nylas/create-event         -> evento criado ou {error}

Falhas de rede e status não-2xx viram ``ProviderUnreachableError``;
o token nunca é logado.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from api.connectors.provider.http_base import HttpClient, HttpClientConfig, HttpError
from app.domain.event import Event, EventDraft, FetchResult
from app.protocols.provider_client import ProviderClientProtocol
from app.services.delta_merge import parse_fetch_result
from utils.errors import ExchangeFailedError, ProviderError, ProviderUnreachableError

if TYPE_CHECKING:
    import httpx

    from config.settings.provider import ProviderSettings

logger = logging.getLogger(__name__)

GRANT_HEADER = "X-Grant-Id"


class ProviderClient(HttpClient, ProviderClientProtocol):
    """Conector HTTP do provider usado pela SyncSession."""

    def __init__(
        self,
        settings: ProviderSettings,
        config: HttpClientConfig | None = None,
    ) -> None:
        super().__init__(
            config
            or HttpClientConfig(
                timeout_seconds=settings.request_timeout_seconds,
                max_retries=settings.max_retries,
            )
        )
        self._base_url = settings.base_url.rstrip("/")
        self._auth_url = settings.auth_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def authorization_url(self) -> str:
        return self._auth_url

    async def exchange_code(self, code: str) -> str:
        """Troca o código do callback pelo grant id.

        Raises:
            ExchangeFailedError: Código rejeitado ou resposta vazia.
            ProviderUnreachableError: Falha de rede.
        """
        if not code:
            raise ExchangeFailedError("Código de autorização vazio")
        response = await self._call("GET", "/oauth/exchange", params={"code": code})
        if not response.is_success:
            logger.warning("provider_exchange_rejected", extra={"status_code": response.status_code})
            raise ExchangeFailedError(f"Troca de código rejeitada ({response.status_code})")
        token = response.text.strip()
        if not token:
            raise ExchangeFailedError("Provider retornou token vazio")
        return token

    async def primary_calendar(self, token: str) -> str:
        response = await self._call("GET", "/nylas/primary-calendar", token=token)
        self._ensure_success(response, "/nylas/primary-calendar")
        return response.text.strip().strip('"')

    async def list_events(self, token: str, sync_token: str | None = None) -> FetchResult:
        params = {"sync_token": sync_token} if sync_token else None
        response = await self._call("GET", "/nylas/list-events", params=params, token=token)
        self._ensure_success(response, "/nylas/list-events")
        try:
            body = response.json()
            return parse_fetch_result(body)
        except (json.JSONDecodeError, ValueError) as exc:
            logger.warning(
                "provider_list_events_malformed",
                extra={"error_type": type(exc).__name__},
            )
            raise ProviderUnreachableError(
                "Resposta de list-events inválida",
                status_code=response.status_code,
            ) from exc

    async def create_event(self, token: str, draft: EventDraft) -> Event:
        """Cria evento no calendário principal.

        POST não idempotente: uma única tentativa, para não duplicar o evento
        no provider. O corpo de qualquer resposta não-2xx (inclusive 5xx) é
        inspecionado em busca de ``{error}``.

        Raises:
            ProviderError: Provider respondeu ``{error}``.
            ProviderUnreachableError: Falha de rede ou status sem mensagem.
        """
        response = await self._call(
            "POST",
            "/nylas/create-event",
            json_body=draft.to_payload(),
            token=token,
            retry=False,
        )
        if not response.is_success:
            message = _error_message(response)
            if message:
                raise ProviderError(message, status_code=response.status_code)
            self._ensure_success(response, "/nylas/create-event")
        try:
            return Event.model_validate(response.json())
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ProviderError(
                "Resposta de create-event inválida",
                status_code=response.status_code,
            ) from exc

    async def _call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        token: str | None = None,
        retry: bool = True,
    ) -> httpx.Response:
        headers = {GRANT_HEADER: token} if token else None
        try:
            if method == "POST":
                return await self.post(
                    self._url(path),
                    json=json_body or {},
                    headers=headers,
                    retry=retry,
                )
            return await self.get(self._url(path), params=params, headers=headers)
        except HttpError as exc:
            logger.warning(
                "provider_request_failed",
                extra={"endpoint": path, "status_code": exc.status_code, "error": str(exc)},
            )
            raise ProviderUnreachableError(
                f"Provider indisponível em {path}",
                status_code=exc.status_code,
            ) from exc

    @staticmethod
    def _ensure_success(response: httpx.Response, endpoint: str) -> None:
        if response.is_success:
            logger.debug(
                "provider_request_ok",
                extra={"endpoint": endpoint, "status_code": response.status_code},
            )
            return
        logger.warning(
            "provider_request_rejected",
            extra={"endpoint": endpoint, "status_code": response.status_code},
        )
        raise ProviderUnreachableError(
            f"Provider respondeu {response.status_code} em {endpoint}",
            status_code=response.status_code,
        )


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except json.JSONDecodeError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None
