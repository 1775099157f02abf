"""Registry de sessões ativas: no máximo uma Session por tenant.

Responsabilidades:
- Criar cliente + Session + worker de forma atômica por tenant
- Parar sessões (marcador de parada, espera limitada, liberação do cliente)
- Descartar sessões que chegaram a estado terminal
"""

from __future__ import annotations

import asyncio
import logging
from enum import StrEnum

from leadzap.application.reconciler import LifecycleReconciler
from leadzap.application.session import Session
from leadzap.domain.errors import StartFailed
from leadzap.domain.paths import validate_segment
from leadzap.domain.protocols.chat_client import ChatClientFactory
from leadzap.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class StartOutcome(StrEnum):
    """Resultado de um start de sessão."""

    STARTED = "started"
    ALREADY_RUNNING = "already_running"


class SessionRegistry:
    """Mapa tenant_id → Session, mutado apenas sob `_lock`."""

    def __init__(
        self,
        client_factory: ChatClientFactory,
        reconciler: LifecycleReconciler,
        queue_maxsize: int = 256,
        stop_timeout_seconds: float = 10.0,
    ) -> None:
        self._client_factory = client_factory
        self._reconciler = reconciler
        self._queue_maxsize = queue_maxsize
        self._stop_timeout = stop_timeout_seconds
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()
        # tenant_id → evento sinalizado ao fim do teardown
        self._stopping: dict[str, asyncio.Event] = {}

    async def start_session(self, tenant_id: str) -> StartOutcome:
        """Cria a sessão do tenant, ou reporta que já existe.

        Um start durante o stop do mesmo tenant aguarda o fim do teardown.

        Raises:
            InvalidIdentifier: Se tenant_id não for um segmento válido
            StartFailed: Se o cliente de chat não puder ser construído
        """
        validate_segment(tenant_id, "tenant_id")

        while True:
            async with self._lock:
                stopping = self._stopping.get(tenant_id)
                if stopping is None:
                    if tenant_id in self._sessions:
                        logger.info("session_already_running", extra={"tenant_id": tenant_id})
                        return StartOutcome.ALREADY_RUNNING
                    session = self._create_session(tenant_id)
                    break
            logger.info("session_start_waiting_stop", extra={"tenant_id": tenant_id})
            await stopping.wait()

        logger.info(
            "session_started",
            extra={"tenant_id": tenant_id, "session_id": session.session_id[:8] + "..."},
        )
        return StartOutcome.STARTED

    def _create_session(self, tenant_id: str) -> Session:
        # Chamado sob _lock
        session = Session(tenant_id=tenant_id, queue_maxsize=self._queue_maxsize)
        try:
            session.client = self._client_factory(tenant_id, session)
        except Exception as e:
            logger.error(
                "chat_client_construction_failed",
                extra={"tenant_id": tenant_id, "error": type(e).__name__},
            )
            raise StartFailed(f"failed to start session for tenant {tenant_id}") from e

        self._sessions[tenant_id] = session
        session.worker = asyncio.create_task(
            self._reconciler.run(session, on_terminal=self._discard),
            name=f"session-worker:{tenant_id}",
        )
        return session

    def get_session(self, tenant_id: str) -> Session | None:
        return self._sessions.get(tenant_id)

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    async def stop_session(self, tenant_id: str) -> bool:
        """Para a sessão do tenant.

        Só a remoção do mapa ocorre sob o lock; a espera pelo worker não
        bloqueia starts e stops de outros tenants.

        Returns:
            True se havia sessão (parada), False se não encontrada.
        """
        async with self._lock:
            session = self._sessions.pop(tenant_id, None)
            if session is None:
                logger.info("session_stop_not_found", extra={"tenant_id": tenant_id})
                return False
            stopping = self._mark_stopping(tenant_id)

        await self._teardown(session, stopping)
        logger.info("session_stopped", extra={"tenant_id": tenant_id})
        return True

    async def shutdown(self) -> None:
        """Para todas as sessões (shutdown do processo)."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
            pending = [(s, self._mark_stopping(s.tenant_id)) for s in sessions]

        await asyncio.gather(*(self._teardown(s, stopping) for s, stopping in pending))
        if sessions:
            logger.info("registry_shutdown", extra={"stopped": len(sessions)})

    def _mark_stopping(self, tenant_id: str) -> asyncio.Event:
        # Chamado sob _lock
        stopping = asyncio.Event()
        self._stopping[tenant_id] = stopping
        return stopping

    async def _teardown(self, session: Session, stopping: asyncio.Event) -> None:
        try:
            dropped = session.request_stop()
            if dropped:
                logger.warning(
                    "pending_events_discarded",
                    extra={"tenant_id": session.tenant_id, "count": dropped},
                )

            worker = session.worker
            if worker is not None and not worker.done():
                done, _ = await asyncio.wait({worker}, timeout=self._stop_timeout)
                if not done:
                    session.detach()
                    logger.error(
                        "session_worker_stop_timeout",
                        extra={
                            "tenant_id": session.tenant_id,
                            "timeout_seconds": self._stop_timeout,
                        },
                    )
            await session.release_client()
        finally:
            if self._stopping.get(session.tenant_id) is stopping:
                del self._stopping[session.tenant_id]
            stopping.set()

    def _discard(self, session: Session) -> None:
        # Sem lock: remoção só se a entrada ainda for esta mesma sessão
        if self._sessions.get(session.tenant_id) is session:
            del self._sessions[session.tenant_id]
            logger.info(
                "session_removed",
                extra={"tenant_id": session.tenant_id, "state": session.state.value},
            )
