"""Cliente de chat simulado em memória (apenas dev/testes).

A "rede" é dirigida pelo chamador: os helpers issue_pairing/authenticate/
become_ready/receive emitem os mesmos eventos que um cliente real emitiria.
"""

from __future__ import annotations

import logging

from leadzap.domain.protocols.chat_client import ChatClient, ChatClientError, EventSink
from leadzap.domain.session.events import ClientEvent, InboundMessage
from leadzap.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class InMemoryChatClient(ChatClient):
    """Cliente simulado; registra envios em `sent`.

    ⚠️ Não usar em produção! Nenhuma mensagem sai do processo.
    """

    def __init__(
        self,
        tenant_id: str,
        sink: EventSink,
        contact_names: dict[str, str] | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self._sink = sink
        self.contact_names: dict[str, str] = dict(contact_names or {})
        self.sent: list[tuple[str, str]] = []
        self.initialized = False
        self.destroyed = False
        # Falhas injetáveis
        self.fail_initialize = False
        self.fail_sends = False
        self.fail_lookups = False

    async def initialize(self) -> None:
        if self.fail_initialize:
            raise ChatClientError("initialize failed")
        self.initialized = True
        logger.debug("chat_client_initialized (in-memory)")

    async def send(self, remote_contact_id: str, text: str) -> None:
        if self.destroyed:
            raise ChatClientError("client destroyed")
        if self.fail_sends:
            raise ChatClientError("send failed")
        self.sent.append((remote_contact_id, text))

    async def lookup_contact_name(self, author_id: str) -> str | None:
        if self.fail_lookups:
            raise ChatClientError("contact lookup failed")
        return self.contact_names.get(author_id)

    async def destroy(self) -> None:
        self.destroyed = True
        logger.debug("chat_client_destroyed (in-memory)")

    # Simulação da rede

    async def issue_pairing(self, code: str) -> None:
        await self._sink.emit(ClientEvent.pairing(code))

    async def authenticate(self) -> None:
        await self._sink.emit(ClientEvent.authenticated())

    async def become_ready(self) -> None:
        await self._sink.emit(ClientEvent.ready())

    async def connect(self) -> None:
        """Atalho: autentica e fica pronto."""
        await self.authenticate()
        await self.become_ready()

    async def disconnect(self, reason: str | None = None) -> None:
        await self._sink.emit(ClientEvent.disconnected(reason))

    async def fail(self, reason: str) -> None:
        await self._sink.emit(ClientEvent.failure(reason))

    async def receive(
        self,
        remote_contact_id: str,
        text: str,
        author_id: str | None = None,
        from_self: bool = False,
    ) -> None:
        await self._sink.emit(
            ClientEvent.received(
                InboundMessage(
                    remote_contact_id=remote_contact_id,
                    text=text,
                    author_id=author_id,
                    from_self=from_self,
                )
            )
        )


class InMemoryChatClientFactory:
    """Factory de clientes simulados; guarda o último cliente por tenant."""

    def __init__(self, contact_names: dict[str, str] | None = None) -> None:
        self.contact_names: dict[str, str] = dict(contact_names or {})
        self.clients: dict[str, InMemoryChatClient] = {}
        self.created = 0
        self.fail_construction = False

    def __call__(self, tenant_id: str, sink: EventSink) -> InMemoryChatClient:
        if self.fail_construction:
            raise ChatClientError("client construction failed")
        client = InMemoryChatClient(tenant_id, sink, contact_names=self.contact_names)
        self.clients[tenant_id] = client
        self.created += 1
        return client
