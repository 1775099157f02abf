"""Factory de clientes de chat conforme CHAT_CLIENT_BACKEND."""

from __future__ import annotations

import logging

import httpx

from leadzap.config.settings import Settings
from leadzap.domain.protocols.chat_client import ChatClientFactory, EventSink
from leadzap.infra.chat_client_evolution import EvolutionChatClient
from leadzap.infra.chat_client_memory import InMemoryChatClientFactory
from leadzap.infra.http import create_http_client
from leadzap.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class EvolutionChatClientFactory:
    """Cria um EvolutionChatClient (com HttpClient próprio) por tenant."""

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not settings.evolution_api_base_url or not settings.evolution_api_key:
            msg = "evolution backend requires EVOLUTION_API_BASE_URL and EVOLUTION_API_KEY"
            raise ValueError(msg)
        self._settings = settings
        self._transport = transport

    def __call__(self, tenant_id: str, sink: EventSink) -> EvolutionChatClient:
        http = create_http_client(
            self._settings,
            default_headers={"apikey": self._settings.evolution_api_key or ""},
            transport=self._transport,
        )
        instance = f"{self._settings.evolution_instance_prefix}{tenant_id}"
        return EvolutionChatClient(
            tenant_id,
            sink,
            http=http,
            instance_name=instance,
            logout_on_destroy=self._settings.evolution_logout_on_destroy,
        )


def create_chat_client_factory(settings: Settings) -> ChatClientFactory:
    """Factory de factories: seleciona o backend de cliente de chat.

    Raises:
        ValueError: Se backend inválido ou configuração incompleta
    """
    backend = settings.chat_client_backend.lower()

    if backend == "memory":
        logger.warning("Using in-memory chat client (dev only)")
        return InMemoryChatClientFactory()

    if backend == "evolution":
        logger.info("Using Evolution API chat client")
        return EvolutionChatClientFactory(settings)

    msg = f"Unknown chat client backend: {backend}"
    raise ValueError(msg)
