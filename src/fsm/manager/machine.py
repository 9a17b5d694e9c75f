"""Máquina de estados da SyncSession: estado atual e histórico recente."""

from collections import deque
from typing import Any

from fsm.states.sync import DEFAULT_INITIAL_STATE, SyncState, is_connected
from fsm.transitions.rules import is_transition_valid
from fsm.types.transition import StateTransition, TransitionResult

# Sessões de polling duram horas; só as transições recentes ficam em memória
DEFAULT_HISTORY_LIMIT = 200


class FSMStateMachine:
    """Aplica transições validadas contra ``VALID_TRANSITIONS``."""

    __slots__ = ("_current_state", "_history", "session_id")

    def __init__(self, session_id: str = "", history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self.session_id = session_id
        self._current_state = DEFAULT_INITIAL_STATE
        self._history: deque[StateTransition] = deque(maxlen=history_limit)

    @property
    def current_state(self) -> SyncState:
        return self._current_state

    @property
    def history(self) -> list[StateTransition]:
        return list(self._history)

    @property
    def is_connected(self) -> bool:
        return is_connected(self._current_state)

    def transition(
        self,
        target: SyncState,
        trigger: str,
        metadata: dict[str, Any] | None = None,
    ) -> TransitionResult:
        """Move para ``target``; transições fora do grafo são recusadas sem efeito."""
        if not is_transition_valid(self._current_state, target):
            return TransitionResult(
                error_reason=f"Transição inválida: {self._current_state} → {target}",
            )
        record = StateTransition(self._current_state, target, trigger, metadata or {})
        self._current_state = target
        self._history.append(record)
        return TransitionResult(transition=record)
