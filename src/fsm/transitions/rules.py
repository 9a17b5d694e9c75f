"""Grafo de transições permitidas da SyncSession.

Não há laços (X → X): um poll pedido durante outro é descartado pela
sessão antes de chegar à máquina.
"""

from fsm.states.sync import SyncState

VALID_TRANSITIONS: dict[SyncState, frozenset[SyncState]] = {
    # token restaurado vai direto para CONNECTED
    SyncState.LOGGED_OUT: frozenset({SyncState.AUTHENTICATING, SyncState.CONNECTED}),
    SyncState.AUTHENTICATING: frozenset({SyncState.CONNECTED, SyncState.LOGGED_OUT}),
    SyncState.CONNECTED: frozenset({SyncState.POLLING, SyncState.LOGGED_OUT}),
    SyncState.POLLING: frozenset({SyncState.CONNECTED, SyncState.LOGGED_OUT}),
}


def is_transition_valid(from_state: SyncState, to_state: SyncState) -> bool:
    return to_state in VALID_TRANSITIONS.get(from_state, frozenset())
