"""Reconciliação do ciclo de vida da sessão com o documento persistido.

Responsabilidades:
- Consumir os eventos de uma Session em ordem (um worker por tenant)
- Validar transições e espelhar o estado em {root}/{tenant}/sessions/whatsapp
- Encaminhar mensagens recebidas para a sincronização de conversas
- Remover a sessão do registry ao atingir estado terminal
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from leadzap.application.conversation_sync import ConversationSyncEngine
from leadzap.application.session import Session
from leadzap.domain.conversations import SessionDocument
from leadzap.domain.paths import TenantPaths
from leadzap.domain.protocols.document_store import DocumentStore, DocumentStoreError
from leadzap.domain.session import (
    STATUS_BY_STATE,
    ClientEvent,
    ClientEventKind,
    SessionState,
    validate_transition,
)
from leadzap.observability.logging import get_logger
from leadzap.observability.middleware import bind_tenant_id
from leadzap.observability.timing import timed

logger: logging.Logger = get_logger(__name__)

TerminalCallback = Callable[[Session], None]

# Motivo gravado quando o stop parte da API
STOP_REASON = "stopped"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class LifecycleReconciler:
    """Aplica eventos do cliente à Session e ao documento de sessão.

    O worker é o único escritor do documento de sessão: inclusive o stop
    explícito chega como marcador na fila e vira DISCONNECTED aqui.
    """

    def __init__(
        self,
        store: DocumentStore,
        paths: TenantPaths,
        sync: ConversationSyncEngine,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._paths = paths
        self._sync = sync
        self._clock = clock or _utcnow

    async def run(self, session: Session, on_terminal: TerminalCallback | None = None) -> None:
        """Loop do worker de uma sessão até estado terminal ou stop."""
        bind_tenant_id(session.tenant_id)
        logger.info("session_worker_started", extra={"session_id": session.session_id[:8] + "..."})

        init_task: asyncio.Task[None] | None = None
        try:
            await self._persist(session, SessionState.INIT)
            init_task = asyncio.create_task(self._initialize_client(session))

            while True:
                event = await session.next_event()
                try:
                    if event is None:
                        await self._apply(session, ClientEvent.disconnected(STOP_REASON))
                        break
                    with timed("event_handling", event=event.kind.value):
                        await self.handle(session, event)
                except Exception as e:
                    # Evento perdido; o worker segue para o próximo
                    logger.exception(
                        "event_handling_failed",
                        extra={"event": event.kind.value if event else "stop", "error": type(e).__name__},
                    )
                finally:
                    session.event_done()

                if session.is_terminal:
                    break
        finally:
            if init_task is not None and not init_task.done():
                init_task.cancel()
            dropped = session.close()
            if dropped:
                logger.warning("pending_events_discarded", extra={"count": dropped})
            if on_terminal is not None:
                on_terminal(session)
            await session.release_client()
            logger.info("session_worker_stopped", extra={"state": session.state.value})

    async def handle(self, session: Session, event: ClientEvent) -> None:
        """Trata um único evento da sessão."""
        if event.kind is ClientEventKind.MESSAGE_RECEIVED:
            if not session.is_ready or event.message is None:
                logger.warning(
                    "message_ignored_session_not_ready",
                    extra={"state": session.state.value},
                )
                return
            await self._sync.handle_inbound(session, event.message)
            return

        await self._apply(session, event)

    async def _initialize_client(self, session: Session) -> None:
        if session.client is None:
            return
        try:
            await session.client.initialize()
        except Exception as e:
            logger.error("chat_client_initialize_failed", extra={"error": type(e).__name__})
            await session.emit(ClientEvent.failure(f"initialize failed: {type(e).__name__}"))

    async def _apply(self, session: Session, event: ClientEvent) -> None:
        ok, next_state, reason = validate_transition(session.state, event.kind)
        if not ok or next_state is None:
            logger.warning(
                "transition_ignored",
                extra={"state": session.state.value, "event": event.kind.value, "reason": reason},
            )
            return

        artifact = event.pairing_code if next_state is SessionState.AWAITING_PAIRING else None
        last_error = event.reason if next_state is SessionState.FAILED else None
        await self._persist(session, next_state, pairing_artifact=artifact, last_error=last_error)

        previous = session.state
        session.state = next_state
        session.pairing_artifact = artifact
        logger.info(
            "session_state_changed",
            extra={"from_state": previous.value, "to_state": next_state.value},
        )

    async def _persist(
        self,
        session: Session,
        state: SessionState,
        pairing_artifact: str | None = None,
        last_error: str | None = None,
    ) -> None:
        """Espelha o estado no documento de sessão; falhas não bloqueiam a transição."""
        if session.detached:
            # Stop expirou: o documento pode já pertencer a uma nova sessão do tenant
            logger.warning("session_document_write_skipped_detached", extra={"state": state.value})
            return
        document = SessionDocument(
            status=STATUS_BY_STATE[state].value,
            state=state.value,
            pairing_artifact=pairing_artifact,
            last_updated=self._clock(),
            last_error=last_error,
        )
        try:
            await self._store.set_merge(
                self._paths.session_document(session.tenant_id),
                document.model_dump(by_alias=True),
            )
        except DocumentStoreError as e:
            logger.error(
                "session_document_write_failed",
                extra={"state": state.value, "error": str(e)},
            )
