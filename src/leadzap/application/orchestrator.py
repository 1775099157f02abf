"""Superfície de controle do operador (start/stop/send/status/histórico).

Traduz erros de domínio nas respostas e textos visíveis ao usuário;
a API HTTP só mapeia essas respostas para status codes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

from leadzap.application.conversation_sync import ConversationSyncEngine
from leadzap.application.outbound import SendMessageUseCase
from leadzap.application.reconciler import LifecycleReconciler
from leadzap.application.registry import SessionRegistry, StartOutcome
from leadzap.config.settings import Settings
from leadzap.domain.errors import (
    InvalidIdentifier,
    InvalidMessage,
    MessageNotRecorded,
    SendFailed,
    SessionNotFound,
    StartFailed,
)
from leadzap.domain.paths import TenantPaths
from leadzap.domain.protocols.chat_client import ChatClientFactory
from leadzap.domain.protocols.document_store import Document, DocumentStore
from leadzap.infra.chat_client_evolution import EvolutionChatClient, normalize_webhook
from leadzap.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

MSG_STARTED = "session started"
MSG_ALREADY_RUNNING = "session already running"
MSG_START_FAILED = "failed to start session"
MSG_STOPPED = "session stopped"
MSG_SESSION_NOT_FOUND = "session not found"
MSG_SEND_FAILED = "failed to send message"
MSG_INVALID_MESSAGE = "invalid message"
MSG_NOT_RECORDED = "message sent but not recorded"


class StartSessionResponse(BaseModel):
    status: Literal["started", "already_running", "failed"]
    message: str


class StopSessionResponse(BaseModel):
    status: Literal["stopped", "not_found"]
    message: str


class SendMessageResponse(BaseModel):
    success: bool
    error: str | None = None


class SessionStatus(BaseModel):
    """Visão em memória da sessão de um tenant."""

    tenant_id: str
    session_id: str
    state: str
    pairing_artifact: str | None = None
    started_at: datetime


class SessionOrchestrator:
    """Fachada sobre registry, envio e leitura de histórico."""

    def __init__(
        self,
        registry: SessionRegistry,
        send_message_use_case: SendMessageUseCase,
        store: DocumentStore,
        paths: TenantPaths,
    ) -> None:
        self.registry = registry
        self.send_message_use_case = send_message_use_case
        self._store = store
        self._paths = paths

    async def start_session(self, tenant_id: str) -> StartSessionResponse:
        """Start idempotente: sucesso também quando já em execução."""
        try:
            outcome = await self.registry.start_session(tenant_id)
        except (StartFailed, InvalidIdentifier) as e:
            logger.warning("start_session_failed", extra={"error": type(e).__name__})
            return StartSessionResponse(status="failed", message=MSG_START_FAILED)

        if outcome is StartOutcome.ALREADY_RUNNING:
            return StartSessionResponse(status="already_running", message=MSG_ALREADY_RUNNING)
        return StartSessionResponse(status="started", message=MSG_STARTED)

    async def stop_session(self, tenant_id: str) -> StopSessionResponse:
        if await self.registry.stop_session(tenant_id):
            return StopSessionResponse(status="stopped", message=MSG_STOPPED)
        return StopSessionResponse(status="not_found", message=MSG_SESSION_NOT_FOUND)

    async def send_message(
        self, tenant_id: str, remote_contact_id: str, text: str
    ) -> SendMessageResponse:
        try:
            await self.send_message_use_case.execute(
                tenant_id=tenant_id, remote_contact_id=remote_contact_id, text=text
            )
        except SessionNotFound:
            return SendMessageResponse(success=False, error=MSG_SESSION_NOT_FOUND)
        except (InvalidMessage, InvalidIdentifier):
            return SendMessageResponse(success=False, error=MSG_INVALID_MESSAGE)
        except SendFailed:
            return SendMessageResponse(success=False, error=MSG_SEND_FAILED)
        except MessageNotRecorded:
            return SendMessageResponse(success=False, error=MSG_NOT_RECORDED)
        return SendMessageResponse(success=True)

    def session_status(self, tenant_id: str) -> SessionStatus | None:
        session = self.registry.get_session(tenant_id)
        if session is None:
            return None
        return SessionStatus(
            tenant_id=session.tenant_id,
            session_id=session.session_id,
            state=session.state.value,
            pairing_artifact=session.pairing_artifact,
            started_at=session.started_at,
        )

    async def conversation_history(
        self, tenant_id: str, remote_contact_id: str, limit: int | None = None
    ) -> list[Document]:
        """Mensagens de uma conversa em ordem de `sentAt`.

        Raises:
            InvalidIdentifier: Se algum identificador for inválido
            DocumentStoreError: Em falha de leitura
        """
        return await self._store.list_documents(
            self._paths.messages(tenant_id, remote_contact_id),
            order_by="sentAt",
            limit=limit,
        )

    async def dispatch_webhook(self, tenant_id: str, payload: dict[str, Any]) -> int:
        """Entrega um webhook do gateway à sessão do tenant.

        Returns:
            Quantidade de eventos emitidos.

        Raises:
            SessionNotFound: Se o tenant não tem sessão ativa
        """
        session = self.registry.get_session(tenant_id)
        if session is None:
            raise SessionNotFound(f"no session for tenant {tenant_id}")

        if isinstance(session.client, EvolutionChatClient):
            return await session.client.handle_webhook(payload)

        events = normalize_webhook(payload)
        for event in events:
            await session.emit(event)
        return len(events)

    async def shutdown(self) -> None:
        await self.registry.shutdown()


def build_orchestrator(
    settings: Settings,
    store: DocumentStore,
    client_factory: ChatClientFactory,
    clock: Callable[[], datetime] | None = None,
) -> SessionOrchestrator:
    """Monta o grafo de objetos (paths, sync, reconciler, registry, envio)."""
    paths = TenantPaths(root=settings.tenant_root_collection)
    sync = ConversationSyncEngine(
        store,
        paths,
        lookup_timeout_seconds=settings.contact_lookup_timeout_seconds,
        max_text_length=settings.max_message_length_chars,
        clock=clock,
    )
    reconciler = LifecycleReconciler(store, paths, sync, clock=clock)
    registry = SessionRegistry(
        client_factory,
        reconciler,
        queue_maxsize=settings.event_queue_maxsize,
        stop_timeout_seconds=settings.session_stop_timeout_seconds,
    )
    return SessionOrchestrator(
        registry,
        SendMessageUseCase(registry=registry, sync=sync),
        store,
        paths,
    )
