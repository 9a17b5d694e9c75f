"""Tipos de dados da FSM."""

from fsm.types.transition import StateTransition, TransitionResult

__all__ = ["StateTransition", "TransitionResult"]
