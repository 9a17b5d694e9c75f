"""Router do calendário — agrega sync, eventos e compartilhamentos."""

from __future__ import annotations

from fastapi import APIRouter

from api.routes.calendar.events import router as events_router
from api.routes.calendar.shares import router as shares_router
from api.routes.calendar.sync import router as sync_router

router = APIRouter()

router.include_router(sync_router, tags=["sync"])
router.include_router(events_router, tags=["events"])
router.include_router(shares_router, tags=["shares"])
