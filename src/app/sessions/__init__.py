"""Sessão de sincronização do calendário local.

Componentes:
    - sync_session: SyncSession (estado, cursor, coleção, observers)
    - poller: tarefa periódica cancelável que dispara os polls
"""

from app.sessions.poller import Poller
from app.sessions.sync_session import SyncListener, SyncSession, SyncSnapshot

__all__ = [
    "Poller",
    "SyncListener",
    "SyncSession",
    "SyncSnapshot",
]
