"""Estados da SyncSession."""

from enum import StrEnum


class SyncState(StrEnum):
    """Ciclo de vida da sessão com o provider.

    LOGGED_OUT (sem token) → AUTHENTICATING (fluxo interativo aberto) →
    CONNECTED (token válido, timer ativo) ⇄ POLLING (busca em andamento).
    """

    LOGGED_OUT = "LOGGED_OUT"
    AUTHENTICATING = "AUTHENTICATING"
    CONNECTED = "CONNECTED"
    POLLING = "POLLING"


CONNECTED_STATES: frozenset[SyncState] = frozenset({SyncState.CONNECTED, SyncState.POLLING})

DEFAULT_INITIAL_STATE = SyncState.LOGGED_OUT


def is_connected(state: SyncState) -> bool:
    """True enquanto a sessão tem token (CONNECTED ou POLLING)."""
    return state in CONNECTED_STATES
