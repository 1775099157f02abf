"""Contrato do cliente de chat por tenant (capacidade externa)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol

from leadzap.domain.session.events import ClientEvent


class ChatClientError(Exception):
    """Falha de uma operação do cliente de chat (envio, lookup, init)."""

    pass


class EventSink(Protocol):
    """Destino dos eventos emitidos por um cliente de chat."""

    async def emit(self, event: ClientEvent) -> None:
        """Entrega um evento; pode aguardar se a fila do tenant estiver cheia."""


class ChatClient(ABC):
    """Handle de conexão de um tenant com a rede de chat.

    Emite eventos de ciclo de vida e mensagens no EventSink recebido na
    construção. Pertence exclusivamente a uma sessão.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Inicia a conexão (pode emitir pairing/authenticated/ready).

        Raises:
            ChatClientError: Se a conexão não puder ser iniciada
        """
        ...

    @abstractmethod
    async def send(self, remote_contact_id: str, text: str) -> None:
        """Envia texto para o contato.

        Raises:
            ChatClientError: Se a rede não confirmar o envio
        """
        ...

    @abstractmethod
    async def lookup_contact_name(self, author_id: str) -> str | None:
        """Resolve o nome de exibição do autor (None se desconhecido).

        Raises:
            ChatClientError: Em falha de consulta ao diretório de contatos
        """
        ...

    @abstractmethod
    async def destroy(self) -> None:
        """Libera a conexão e recursos associados."""
        ...


class ChatClientFactory(Protocol):
    """Constrói o cliente de chat de um tenant."""

    def __call__(self, tenant_id: str, sink: EventSink) -> ChatClient:
        """Raises qualquer exceção em falha de construção."""
