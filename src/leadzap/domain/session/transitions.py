"""Tabela de transições do ciclo de vida da sessão.

- TRANSITIONS[(current_state, event)] = next_state
- Estados terminais não aparecem como origem
- Validação pura: sem side effects
"""

from __future__ import annotations

from leadzap.domain.session.events import ClientEventKind
from leadzap.domain.session.states import (
    NON_TERMINAL_STATES,
    TERMINAL_STATES,
    SessionState,
)

TRANSITIONS: dict[tuple[SessionState, ClientEventKind], SessionState] = {
    # === INIT → ... ===
    (SessionState.INIT, ClientEventKind.PAIRING_ARTIFACT_ISSUED): SessionState.AWAITING_PAIRING,
    # Credenciais restauradas: a rede autentica sem novo pareamento
    (SessionState.INIT, ClientEventKind.AUTHENTICATED): SessionState.AUTHENTICATED,
    # === AWAITING_PAIRING → ... ===
    # QR code expira e é reemitido; o artefato persistido é atualizado
    (
        SessionState.AWAITING_PAIRING,
        ClientEventKind.PAIRING_ARTIFACT_ISSUED,
    ): SessionState.AWAITING_PAIRING,
    (SessionState.AWAITING_PAIRING, ClientEventKind.AUTHENTICATED): SessionState.AUTHENTICATED,
    # === AUTHENTICATED → ... ===
    (SessionState.AUTHENTICATED, ClientEventKind.READY): SessionState.READY,
}

# Qualquer estado não terminal → DISCONNECTED / FAILED
for _state in NON_TERMINAL_STATES:
    TRANSITIONS[(_state, ClientEventKind.DISCONNECTED)] = SessionState.DISCONNECTED
    TRANSITIONS[(_state, ClientEventKind.CLIENT_ERROR)] = SessionState.FAILED
del _state


def validate_transition(
    current_state: SessionState, event: ClientEventKind
) -> tuple[bool, SessionState | None, str]:
    """Valida se uma transição é permitida.

    Retorna:
    - (True, next_state, ""): transição válida
    - (False, None, motivo): transição inválida

    Nunca lança exceção; apenas valida.
    """
    if current_state in TERMINAL_STATES:
        return (
            False,
            None,
            f"Terminal state {current_state} has no transitions",
        )

    key = (current_state, event)
    if key not in TRANSITIONS:
        return (
            False,
            None,
            f"No transition from {current_state} on event {event}",
        )

    return True, TRANSITIONS[key], ""
