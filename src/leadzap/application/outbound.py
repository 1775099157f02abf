"""Caminho de envio outbound: envia pelo cliente e registra no histórico."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from leadzap.application.conversation_sync import ConversationSyncEngine
from leadzap.application.registry import SessionRegistry
from leadzap.domain.errors import (
    InvalidMessage,
    MessageNotRecorded,
    SendFailed,
    SessionNotFound,
)
from leadzap.domain.paths import validate_segment
from leadzap.domain.protocols.document_store import DocumentStoreError
from leadzap.observability.logging import get_logger
from leadzap.utils.ids import mask_identifier

logger: logging.Logger = get_logger(__name__)


@dataclass(slots=True)
class SendMessageUseCase:
    """Envia uma mensagem de texto pela sessão READY do tenant.

    Garantias:
    - Sessão ausente ou não READY: SessionNotFound, nenhum write
    - Falha de envio: SendFailed, nada persistido
    - Envio confirmado: exatamente uma Message outbound, sentAt após o envio
    - Falha do store após o envio: MessageNotRecorded (nunca silenciosa)
    """

    registry: SessionRegistry
    sync: ConversationSyncEngine

    async def execute(self, *, tenant_id: str, remote_contact_id: str, text: str) -> None:
        validate_segment(tenant_id, "tenant_id")
        validate_segment(remote_contact_id, "remote_contact_id")
        if not text or not text.strip():
            raise InvalidMessage("texto vazio")

        session = self.registry.get_session(tenant_id)
        if session is None or not session.is_ready or session.client is None:
            logger.info(
                "send_rejected_session_not_ready",
                extra={
                    "tenant_id": tenant_id,
                    "state": session.state.value if session else None,
                },
            )
            raise SessionNotFound(f"no ready session for tenant {tenant_id}")

        contact = mask_identifier(remote_contact_id)
        try:
            await session.client.send(remote_contact_id, text)
        except Exception as e:
            logger.warning(
                "outbound_send_failed",
                extra={"tenant_id": tenant_id, "contact": contact, "error": type(e).__name__},
            )
            raise SendFailed(f"send failed for tenant {tenant_id}") from e

        try:
            await self.sync.record_outbound(session, remote_contact_id, text)
        except DocumentStoreError as e:
            logger.error(
                "outbound_record_failed",
                extra={"tenant_id": tenant_id, "contact": contact, "error": str(e)},
            )
            raise MessageNotRecorded(f"message sent but not recorded for tenant {tenant_id}") from e

        logger.info("outbound_message_sent", extra={"tenant_id": tenant_id, "contact": contact})
