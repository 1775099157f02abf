"""Eventos emitidos pelo cliente de chat de um tenant.

Cada evento + estado atual → próximo estado (tabela em transitions.py).
Mensagens recebidas não mudam estado; seguem para a sincronização de conversas.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ClientEventKind(StrEnum):
    """Tipos de evento do cliente de chat."""

    PAIRING_ARTIFACT_ISSUED = "PAIRING_ARTIFACT_ISSUED"
    """Novo QR code / código de pareamento disponível."""

    AUTHENTICATED = "AUTHENTICATED"
    """Pareamento aceito pela rede."""

    READY = "READY"
    """Cliente pronto para mensagens."""

    DISCONNECTED = "DISCONNECTED"
    """Conexão encerrada (pela rede ou por stop explícito)."""

    CLIENT_ERROR = "CLIENT_ERROR"
    """Falha irrecuperável do cliente."""

    MESSAGE_RECEIVED = "MESSAGE_RECEIVED"
    """Mensagem criada na conversa (recebida ou eco de envio próprio)."""


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """Mensagem observada pelo cliente de chat."""

    remote_contact_id: str
    text: str
    author_id: str | None = None
    from_self: bool = False


@dataclass(frozen=True, slots=True)
class ClientEvent:
    """Evento do cliente de chat, consumido pelo worker da sessão."""

    kind: ClientEventKind
    pairing_code: str | None = None
    message: InboundMessage | None = None
    reason: str | None = None

    @classmethod
    def pairing(cls, code: str) -> ClientEvent:
        return cls(ClientEventKind.PAIRING_ARTIFACT_ISSUED, pairing_code=code)

    @classmethod
    def authenticated(cls) -> ClientEvent:
        return cls(ClientEventKind.AUTHENTICATED)

    @classmethod
    def ready(cls) -> ClientEvent:
        return cls(ClientEventKind.READY)

    @classmethod
    def disconnected(cls, reason: str | None = None) -> ClientEvent:
        return cls(ClientEventKind.DISCONNECTED, reason=reason)

    @classmethod
    def failure(cls, reason: str) -> ClientEvent:
        return cls(ClientEventKind.CLIENT_ERROR, reason=reason)

    @classmethod
    def received(cls, message: InboundMessage) -> ClientEvent:
        return cls(ClientEventKind.MESSAGE_RECEIVED, message=message)
