"""Endpoints de eventos locais.

Endpoints:
- GET /events: agenda agrupada por dia + datas marcadas
- POST /events: cria evento no provider e dispara refresh
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request, status

from api.routes.calendar.dependencies import error_to_http, get_runtime
from api.routes.calendar.schemas import CreateEventRequest, agenda_to_list
from app.domain.event import EventDraft
from app.services.event_view import build_agenda, marked_dates
from utils.errors import CalendarSyncError, InfrastructureError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/events")
async def list_events(request: Request) -> dict[str, Any]:
    """Eventos visíveis agrupados por dia, no timezone local configurado."""
    runtime = get_runtime(request)
    events = runtime.session.visible_events()
    zone = runtime.settings.local_zone()
    return {
        "state": runtime.session.state.value,
        "agenda": agenda_to_list(build_agenda(events, zone)),
        "marked_dates": sorted(marked_dates(events, zone)),
    }


@router.post("/events", status_code=status.HTTP_201_CREATED)
async def create_event(request: Request, body: CreateEventRequest) -> dict[str, Any]:
    """Cria evento no calendário principal."""
    session = get_runtime(request).session
    draft = EventDraft(
        title=body.title,
        start_time=body.start_time.isoformat(),
        end_time=body.end_time.isoformat(),
        participants=tuple(body.participants),
        location=body.location,
        description=body.description,
    )
    try:
        created = await session.create_event(draft)
    except (CalendarSyncError, InfrastructureError, ValueError) as exc:
        raise error_to_http(exc) from exc
    return created.model_dump()
