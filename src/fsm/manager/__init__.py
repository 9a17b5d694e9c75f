"""Máquina de estados da sessão de sincronização."""

from fsm.manager.machine import DEFAULT_HISTORY_LIMIT, FSMStateMachine

__all__ = ["DEFAULT_HISTORY_LIMIT", "FSMStateMachine"]
