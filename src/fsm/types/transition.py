"""Registro de transições e resultado de uma tentativa."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fsm.states.sync import SyncState


@dataclass(frozen=True, slots=True)
class StateTransition:
    """Mudança de estado aplicada (metadados sem token nem PII)."""

    from_state: SyncState
    to_state: SyncState
    trigger: str
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if not self.trigger.strip():
            raise ValueError("trigger não pode ser vazio")


@dataclass(frozen=True, slots=True)
class TransitionResult:
    """Transição aplicada ou motivo da recusa."""

    transition: StateTransition | None = None
    error_reason: str | None = None

    @property
    def success(self) -> bool:
        return self.transition is not None
