"""Estados da sessão de sincronização."""

from fsm.states.sync import CONNECTED_STATES, DEFAULT_INITIAL_STATE, SyncState, is_connected

__all__ = ["CONNECTED_STATES", "DEFAULT_INITIAL_STATE", "SyncState", "is_connected"]
