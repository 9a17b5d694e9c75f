"""Modelos de request/response das rotas de calendário."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - usado em runtime pelo schema do Pydantic
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from app.domain.event import Participant  # noqa: TC001 - usado em runtime pelo schema

if TYPE_CHECKING:
    from app.domain.sharing import SharedCalendar
    from app.services.event_view import AgendaDay
    from app.sessions.sync_session import SyncSnapshot


class CreateEventRequest(BaseModel):
    """Corpo de ``POST /events``."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., description="Título do evento.")
    start_time: datetime = Field(..., description="Início (ISO-8601).")
    end_time: datetime = Field(..., description="Fim (ISO-8601).")
    location: str | None = None
    description: str | None = None
    participants: list[Participant] = Field(default_factory=list)


class ShareRequest(BaseModel):
    """Corpo de ``POST /shares``."""

    email: str = Field(..., min_length=3, description="Email de quem vai visualizar.")


class RegisterProfileRequest(BaseModel):
    """Corpo de ``POST /profiles``."""

    uid: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    first_name: str = ""
    last_name: str = ""


def snapshot_to_dict(snapshot: SyncSnapshot) -> dict[str, Any]:
    return {
        "state": snapshot.state.value,
        "connected": snapshot.is_connected,
        "has_cursor": snapshot.has_cursor,
        "calendar_id": snapshot.calendar_id,
        "status_message": snapshot.status_message,
        "error": snapshot.error,
        "total_events": len(snapshot.events),
        "last_synced_at": snapshot.last_synced_at.isoformat() if snapshot.last_synced_at else None,
    }


def agenda_to_list(days: list[AgendaDay]) -> list[dict[str, Any]]:
    return [
        {
            "date": day.date_key,
            "events": [
                {
                    "id": item.id,
                    "title": item.title,
                    "time_label": item.time_label,
                    "date_label": item.date_label,
                    "all_day": item.all_day,
                    "location": item.location,
                    "participants": [p.model_dump() for p in item.participants],
                }
                for item in day.items
            ],
        }
        for day in days
    ]


def shared_calendar_to_dict(calendar: SharedCalendar, days: list[AgendaDay]) -> dict[str, Any]:
    return {
        "owner_email": calendar.owner_email,
        "calendar_id": calendar.calendar_id,
        "synced_at": calendar.synced_at,
        "agenda": agenda_to_list(days),
    }
