"""Estados canônicos do ciclo de vida de uma conexão WhatsApp por tenant.

- Toda sessão nasce em INIT
- DISCONNECTED e FAILED são terminais para a instância da sessão
- Um novo start cria uma sessão nova (não há reabertura)
"""

from __future__ import annotations

from enum import StrEnum


class SessionState(StrEnum):
    """6 estados do ciclo de vida de uma sessão."""

    INIT = "INIT"
    """Cliente criado, aguardando o primeiro evento da rede."""

    AWAITING_PAIRING = "AWAITING_PAIRING"
    """QR code / código de pareamento emitido; aguardando leitura."""

    AUTHENTICATED = "AUTHENTICATED"
    """Credenciais aceitas; cliente sincronizando."""

    READY = "READY"
    """Conectado e apto a enviar e receber mensagens."""

    DISCONNECTED = "DISCONNECTED"
    """Conexão encerrada (pela rede ou por stop explícito)."""

    FAILED = "FAILED"
    """Erro irrecuperável do cliente; sem retry automático."""


TERMINAL_STATES = frozenset({
    SessionState.DISCONNECTED,
    SessionState.FAILED,
})
"""Estados que encerram a sessão (sem transições posteriores)."""

NON_TERMINAL_STATES = frozenset({
    s for s in SessionState if s not in TERMINAL_STATES
})
"""Estados que permitem transições posteriores."""


class PersistedStatus(StrEnum):
    """Vocabulário do campo `status` no documento de sessão persistido."""

    QR_CODE = "qrCode"
    CONNECTED = "conectado"
    DISCONNECTED = "desconectado"
    LOADING = "carregando"


STATUS_BY_STATE: dict[SessionState, PersistedStatus] = {
    SessionState.INIT: PersistedStatus.LOADING,
    SessionState.AWAITING_PAIRING: PersistedStatus.QR_CODE,
    SessionState.AUTHENTICATED: PersistedStatus.LOADING,
    SessionState.READY: PersistedStatus.CONNECTED,
    SessionState.DISCONNECTED: PersistedStatus.DISCONNECTED,
    SessionState.FAILED: PersistedStatus.DISCONNECTED,
}
