"""Endpoints de autorização e sincronização.

Endpoints:
- GET /oauth/exchange: landing do deep link (``?code=``)
- POST /sync/auth: inicia o fluxo interativo de autorização
- POST /sync/refresh: poll imediato (descartado se já houver um em andamento)
- POST /sync/logout: encerra a sessão local
- GET /sync/status: snapshot da sessão
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse

from api.routes.calendar.dependencies import error_to_http, get_runtime
from api.routes.calendar.schemas import snapshot_to_dict
from fsm import SyncState
from utils.errors import AuthRequiredError

logger = logging.getLogger(__name__)

router = APIRouter()

_auth_tasks: set[asyncio.Task[Any]] = set()


@router.get("/oauth/exchange", response_class=PlainTextResponse)
async def oauth_exchange(request: Request) -> PlainTextResponse:
    """Recebe o callback da autorização e conclui o login."""
    runtime = get_runtime(request)
    callback_url = str(request.url)

    if runtime.auth_flow.deliver_callback(callback_url):
        return PlainTextResponse("Authorization received. You can close this window.")

    connected = await runtime.handle_callback(callback_url)
    if not connected:
        return PlainTextResponse(
            runtime.session.snapshot().status_message,
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    return PlainTextResponse("Calendar connected. You can close this window.")


@router.post("/sync/auth", status_code=status.HTTP_202_ACCEPTED)
async def start_auth(request: Request) -> JSONResponse:
    """Abre o fluxo de autorização em background."""
    runtime = get_runtime(request)
    session = runtime.session
    if session.state != SyncState.LOGGED_OUT or runtime.auth_flow.is_pending:
        return JSONResponse(
            content={"error": "auth_not_allowed", "state": session.state.value},
            status_code=status.HTTP_409_CONFLICT,
        )

    task = asyncio.create_task(runtime.start_auth())
    _auth_tasks.add(task)
    task.add_done_callback(_auth_tasks.discard)
    await asyncio.sleep(0)

    return JSONResponse(
        content={
            "auth_url": session.authorization_url(),
            "state": session.state.value,
        },
        status_code=status.HTTP_202_ACCEPTED,
    )


@router.post("/sync/refresh")
async def refresh(request: Request) -> dict[str, Any]:
    """Poll sob demanda."""
    session = get_runtime(request).session
    try:
        polled = await session.refresh()
    except AuthRequiredError as exc:
        raise error_to_http(exc) from exc
    return {"polled": polled, "status": snapshot_to_dict(session.snapshot())}


@router.post("/sync/logout")
async def logout(request: Request) -> dict[str, Any]:
    """Logout: limpa token, coleção e cursor e fecha a visão compartilhada."""
    snapshot = await get_runtime(request).logout()
    return snapshot_to_dict(snapshot)


@router.get("/sync/status")
async def sync_status(request: Request) -> dict[str, Any]:
    """Estado atual da sessão."""
    return snapshot_to_dict(get_runtime(request).session.snapshot())
