"""
FSM da sessão de sincronização.

Estrutura:
    - states/: SyncState e estados conectados
    - transitions/: grafo VALID_TRANSITIONS
    - manager/: FSMStateMachine
    - types/: StateTransition, TransitionResult
"""

from fsm.manager import DEFAULT_HISTORY_LIMIT, FSMStateMachine
from fsm.states import CONNECTED_STATES, DEFAULT_INITIAL_STATE, SyncState, is_connected
from fsm.transitions import VALID_TRANSITIONS, is_transition_valid
from fsm.types import StateTransition, TransitionResult

__all__ = [
    "CONNECTED_STATES",
    "DEFAULT_HISTORY_LIMIT",
    "DEFAULT_INITIAL_STATE",
    "VALID_TRANSITIONS",
    "FSMStateMachine",
    "StateTransition",
    "SyncState",
    "TransitionResult",
    "is_connected",
    "is_transition_valid",
]
