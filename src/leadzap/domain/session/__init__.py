"""Ciclo de vida da sessão — estados, eventos e transições.

Exporta:
- SessionState: 6 estados do ciclo de vida
- ClientEvent / ClientEventKind / InboundMessage: eventos do cliente de chat
- PersistedStatus / STATUS_BY_STATE: vocabulário do documento persistido
- validate_transition: validador puro
"""

from leadzap.domain.session.events import ClientEvent, ClientEventKind, InboundMessage
from leadzap.domain.session.states import (
    NON_TERMINAL_STATES,
    STATUS_BY_STATE,
    TERMINAL_STATES,
    PersistedStatus,
    SessionState,
)
from leadzap.domain.session.transitions import TRANSITIONS, validate_transition

__all__ = [
    "SessionState",
    "PersistedStatus",
    "STATUS_BY_STATE",
    "ClientEvent",
    "ClientEventKind",
    "InboundMessage",
    "TRANSITIONS",
    "validate_transition",
    "TERMINAL_STATES",
    "NON_TERMINAL_STATES",
]
