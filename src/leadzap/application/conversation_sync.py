"""Sincronização de conversas e mensagens de um tenant.

Regras:
- Mensagens de autoria própria (eco de envio) são descartadas no inbound
- O nome do contato é resolvido com timeout; em falha usa o remote_contact_id
- Um nome resolvido nunca é rebaixado para o fallback
- Writes de conversa de um tenant são serializados por `session.write_lock`
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from leadzap.application.session import Session
from leadzap.domain.conversations import (
    Conversation,
    Direction,
    Message,
    contact_name_update,
    truncate_text,
)
from leadzap.domain.paths import TenantPaths
from leadzap.domain.protocols.document_store import DocumentStore
from leadzap.domain.session import InboundMessage
from leadzap.observability.logging import get_logger, log_fallback
from leadzap.utils.ids import mask_identifier

logger: logging.Logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class ConversationSyncEngine:
    """Grava conversas e mensagens (inbound e outbound) no store do tenant."""

    def __init__(
        self,
        store: DocumentStore,
        paths: TenantPaths,
        lookup_timeout_seconds: float = 5.0,
        max_text_length: int = 4096,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._paths = paths
        self._lookup_timeout = lookup_timeout_seconds
        self._max_text_length = max_text_length
        self._clock = clock or _utcnow

    async def handle_inbound(self, session: Session, message: InboundMessage) -> bool:
        """Registra uma mensagem recebida.

        Returns:
            False se a mensagem foi descartada (autoria própria).

        Raises:
            DocumentStoreError: Em falha de persistência
        """
        if message.from_self:
            logger.debug(
                "self_authored_message_discarded",
                extra={"contact": mask_identifier(message.remote_contact_id)},
            )
            return False

        contact_name = await self._resolve_contact_name(session, message)
        async with session.write_lock:
            await self._record(
                session.tenant_id,
                message.remote_contact_id,
                message.text,
                "inbound",
                contact_name=contact_name,
            )
        return True

    async def record_outbound(self, session: Session, remote_contact_id: str, text: str) -> None:
        """Registra uma mensagem enviada (após confirmação do cliente).

        Raises:
            DocumentStoreError: Em falha de persistência
        """
        async with session.write_lock:
            await self._record(session.tenant_id, remote_contact_id, text, "outbound")

    async def _resolve_contact_name(self, session: Session, message: InboundMessage) -> str:
        fallback = message.remote_contact_id
        if not message.author_id or session.client is None:
            return fallback

        start = time.perf_counter()
        try:
            name = await asyncio.wait_for(
                session.client.lookup_contact_name(message.author_id),
                timeout=self._lookup_timeout,
            )
        except Exception as e:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
            log_fallback(logger, "contact_lookup", reason=type(e).__name__, elapsed_ms=elapsed_ms)
            return fallback

        if not name or not name.strip():
            log_fallback(logger, "contact_lookup", reason="name_not_found")
            return fallback
        return name.strip()

    async def _record(
        self,
        tenant_id: str,
        remote_contact_id: str,
        text: str,
        direction: Direction,
        contact_name: str | None = None,
    ) -> None:
        text = truncate_text(text, self._max_text_length)
        now = self._clock()
        conversation_path = self._paths.conversation(tenant_id, remote_contact_id)

        existing = await self._store.get(conversation_path)
        if existing is None:
            conversation = Conversation(
                remote_contact_id=remote_contact_id,
                contact_name=contact_name or remote_contact_id,
                last_message_text=text,
                last_message_at=now,
                created_at=now,
            )
            fields = conversation.model_dump(by_alias=True)
        else:
            fields = {"lastMessageText": text, "lastMessageAt": now}
            new_name = contact_name_update(
                existing.get("contactName"),
                contact_name or remote_contact_id,
                remote_contact_id,
            )
            if new_name is not None:
                fields["contactName"] = new_name

        await self._store.set_merge(conversation_path, fields)

        message = Message(direction=direction, text=text, sent_at=now)
        await self._store.append(
            self._paths.messages(tenant_id, remote_contact_id), message.to_document()
        )
        logger.info(
            "conversation_message_recorded",
            extra={"direction": direction, "contact": mask_identifier(remote_contact_id)},
        )
