"""Contratos de domínio para conversas e mensagens persistidas."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

TRUNCATION_MARKER = "…[truncated]"

Direction = Literal["inbound", "outbound"]


class SessionDocument(BaseModel):
    """Espelho persistido do estado da sessão de um tenant."""

    model_config = ConfigDict(populate_by_name=True)

    status: str
    state: str
    pairing_artifact: str | None = Field(default=None, alias="pairingArtifact")
    last_updated: datetime = Field(alias="lastUpdated")
    last_error: str | None = Field(default=None, alias="lastError")


class Conversation(BaseModel):
    """Resumo da conversa com um contato remoto."""

    model_config = ConfigDict(populate_by_name=True)

    remote_contact_id: str = Field(alias="remoteContactId")
    contact_name: str = Field(alias="contactName")
    last_message_text: str = Field(alias="lastMessageText")
    last_message_at: datetime = Field(alias="lastMessageAt")
    created_at: datetime | None = Field(default=None, alias="createdAt")


class Message(BaseModel):
    """Mensagem append-only de uma conversa."""

    model_config = ConfigDict(populate_by_name=True)

    direction: Direction
    text: str
    sent_at: datetime = Field(alias="sentAt")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


def truncate_text(text: str, max_len: int) -> str:
    """Limita o texto a `max_len` caracteres, marcando o corte."""

    if len(text) <= max_len:
        return text
    limit = max(max_len - len(TRUNCATION_MARKER), 0)
    return f"{text[:limit]}{TRUNCATION_MARKER}"[:max_len]


def contact_name_update(
    stored_name: str | None,
    candidate: str,
    remote_contact_id: str,
) -> str | None:
    """Decide se `contactName` deve ser regravado.

    Um nome resolvido nunca é rebaixado para o fallback (o próprio
    remote_contact_id). O fallback armazenado pode ser promovido a nome real.

    Returns:
        Novo nome a gravar, ou None para manter o armazenado.
    """

    candidate_resolved = bool(candidate) and candidate != remote_contact_id
    if not stored_name:
        return candidate or remote_contact_id
    if stored_name == remote_contact_id and candidate_resolved:
        return candidate
    return None
