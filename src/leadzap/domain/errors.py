"""Erros de domínio do orquestrador de sessões."""

from __future__ import annotations


class LeadzapError(Exception):
    """Raiz dos erros de domínio."""


class InvalidIdentifier(LeadzapError, ValueError):
    """Identificador inválido para compor um path de documento."""


class StartFailed(LeadzapError):
    """Falha ao construir o cliente de chat; nenhuma sessão registrada."""


class SessionNotFound(LeadzapError):
    """Não há sessão ativa (ou pronta) para o tenant."""


class InvalidMessage(LeadzapError, ValueError):
    """Mensagem outbound rejeitada antes do envio."""


class SendFailed(LeadzapError):
    """O cliente de chat não confirmou o envio; nada foi persistido."""


class MessageNotRecorded(LeadzapError):
    """Envio confirmado pela rede, mas o registro no histórico falhou."""
