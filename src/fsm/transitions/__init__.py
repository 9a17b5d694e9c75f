"""Transições permitidas entre estados."""

from fsm.transitions.rules import VALID_TRANSITIONS, is_transition_valid

__all__ = ["VALID_TRANSITIONS", "is_transition_valid"]
