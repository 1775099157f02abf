"""Modelo em memória da conexão de um tenant (Session)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime

from leadzap.domain.protocols.chat_client import ChatClient
from leadzap.domain.session import TERMINAL_STATES, ClientEvent, SessionState
from leadzap.observability.logging import get_logger
from leadzap.utils.ids import new_session_id

logger = get_logger(__name__)

# Marcador de parada enfileirado pelo registry
_STOP = object()


@dataclass(eq=False)
class Session:
    """Conexão viva de um tenant.

    A Session é o EventSink do seu cliente: eventos entram numa fila limitada
    consumida por um único worker, o que serializa o tratamento por tenant.
    `write_lock` serializa os writes de conversa entre o worker (inbound) e
    o caminho de envio (outbound).
    """

    tenant_id: str
    queue_maxsize: int = 256
    session_id: str = field(default_factory=new_session_id)
    state: SessionState = SessionState.INIT
    pairing_artifact: str | None = None
    client: ChatClient | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    worker: asyncio.Task[None] | None = field(default=None, repr=False)
    write_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _events: asyncio.Queue[object] = field(init=False, repr=False)
    _closed: bool = field(default=False, init=False, repr=False)
    _client_released: bool = field(default=False, init=False, repr=False)
    _detached: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self._events = asyncio.Queue(maxsize=self.queue_maxsize)

    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def closed(self) -> bool:
        """True quando a sessão não aceita mais eventos."""
        return self._closed

    @property
    def detached(self) -> bool:
        """True quando a sessão saiu do registry sem o worker terminar."""
        return self._detached

    @property
    def pending_events(self) -> int:
        return self._events.qsize()

    async def emit(self, event: ClientEvent) -> None:
        """Enfileira um evento do cliente (aguarda se a fila estiver cheia)."""
        if self._closed:
            logger.debug(
                "event_dropped_session_closed",
                extra={"tenant_id": self.tenant_id, "event": event.kind},
            )
            return
        await self._events.put(event)

    async def next_event(self) -> ClientEvent | None:
        """Próximo evento em ordem de recebimento; None indica parada."""
        item = await self._events.get()
        if item is _STOP:
            return None
        return item  # type: ignore[return-value]

    def event_done(self) -> None:
        """Marca o último evento retirado como tratado."""
        self._events.task_done()

    async def wait_until_idle(self) -> None:
        """Aguarda até que todos os eventos enfileirados tenham sido tratados."""
        await self._events.join()

    def close(self) -> int:
        """Para de aceitar eventos e descarta os pendentes.

        Returns:
            Quantidade de eventos descartados.
        """
        self._closed = True
        dropped = 0
        while True:
            try:
                item = self._events.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._events.task_done()
            if item is not _STOP:
                dropped += 1
        return dropped

    def request_stop(self) -> int:
        """Fecha a sessão e acorda o worker com o marcador de parada."""
        dropped = self.close()
        self._events.put_nowait(_STOP)
        return dropped

    def detach(self) -> None:
        """Impede que o worker volte a escrever o documento de sessão."""
        self._detached = True

    async def release_client(self) -> None:
        """Destrói o cliente uma única vez; falhas são logadas."""
        if self._client_released or self.client is None:
            return
        self._client_released = True
        try:
            await self.client.destroy()
        except Exception as e:
            logger.error(
                "chat_client_destroy_failed",
                extra={"tenant_id": self.tenant_id, "error": type(e).__name__},
            )
        else:
            logger.info(
                "chat_client_released",
                extra={"tenant_id": self.tenant_id, "session_id": self.session_id[:8] + "..."},
            )
