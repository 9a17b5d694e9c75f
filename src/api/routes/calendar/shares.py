"""Endpoints de compartilhamento de calendário.

Endpoints:
- GET /shares/incoming: calendários compartilhados com o usuário atual
- POST /shares: compartilha o calendário local com um email
- DELETE /shares/{email}: revoga o compartilhamento
- POST /profiles: registra o perfil do usuário no store compartilhado
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from api.routes.calendar.dependencies import error_to_http, get_runtime
from api.routes.calendar.schemas import (
    RegisterProfileRequest,
    ShareRequest,
    shared_calendar_to_dict,
)
from app.domain.sharing import ShareResult, ShareStatus
from app.services.event_view import build_agenda
from utils.errors import AuthRequiredError, CalendarSyncError, InfrastructureError

if TYPE_CHECKING:
    from app.bootstrap.dependencies import CalendarRuntime

logger = logging.getLogger(__name__)

router = APIRouter()


def _owner_id(runtime: CalendarRuntime) -> str:
    if not runtime.settings.user_id:
        raise error_to_http(AuthRequiredError("SYNC_USER_ID não configurado"))
    return runtime.settings.user_id


def _share_response(result: ShareResult) -> JSONResponse:
    if result.status == ShareStatus.SELF_SHARE:
        return JSONResponse(
            content={"status": result.status.value, "message": result.message},
            status_code=status.HTTP_400_BAD_REQUEST,
        )
    try:
        result.raise_for_status()
    except (CalendarSyncError, InfrastructureError, ValueError) as exc:
        raise error_to_http(exc) from exc
    return JSONResponse(
        content={
            "status": result.status.value,
            "email": result.viewer_email,
            "changed": result.changed,
            "message": result.message,
        },
        status_code=status.HTTP_200_OK,
    )


@router.get("/shares/incoming")
async def incoming_shares(request: Request) -> dict[str, Any]:
    """Visão combinada dos calendários de outros owners."""
    runtime = get_runtime(request)
    view = runtime.shared_view
    if view is None:
        return {"shared_with_me": [], "calendars": []}
    zone = runtime.settings.local_zone()
    calendars = view.calendars
    return {
        "shared_with_me": view.shared_with_me,
        "calendars": [
            shared_calendar_to_dict(calendar, build_agenda(calendar.events, zone))
            for calendar in calendars.values()
        ],
    }


@router.post("/shares")
async def grant_share(request: Request, body: ShareRequest) -> JSONResponse:
    """Compartilha o calendário local com ``email``."""
    runtime = get_runtime(request)
    result = await runtime.publisher.grant(_owner_id(runtime), body.email)
    return _share_response(result)


@router.delete("/shares/{email}")
async def revoke_share(request: Request, email: str) -> JSONResponse:
    """Revoga o compartilhamento com ``email``."""
    runtime = get_runtime(request)
    result = await runtime.publisher.revoke(_owner_id(runtime), email)
    return _share_response(result)


@router.post("/profiles", status_code=status.HTTP_201_CREATED)
async def register_profile(request: Request, body: RegisterProfileRequest) -> dict[str, Any]:
    """Cria ``users/{uid}`` para um usuário recém-cadastrado."""
    runtime = get_runtime(request)
    try:
        profile = await runtime.publisher.register_profile(
            body.uid,
            body.email,
            body.first_name,
            body.last_name,
        )
    except (InfrastructureError, ValueError) as exc:
        raise error_to_http(exc) from exc
    return {"uid": profile.uid, "email": profile.email, "display_name": profile.display_name}
