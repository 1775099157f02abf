"""Camada de infraestrutura — adapters para serviços externos.

Este módulo exporta as factories principais:

- Documentos: InMemoryDocumentStore, create_document_store(_from_settings)
- Cliente de chat: InMemoryChatClient(Factory), EvolutionChatClient(Factory)
- HTTP: HttpClient

Uso típico:
    from leadzap.infra import create_chat_client_factory, create_document_store_from_settings

O adapter Firestore é importado sob demanda pela factory.
"""

from leadzap.infra.chat_client_evolution import (
    EvolutionChatClient,
    normalize_webhook,
)
from leadzap.infra.chat_client_factory import (
    EvolutionChatClientFactory,
    create_chat_client_factory,
)
from leadzap.infra.chat_client_memory import InMemoryChatClient, InMemoryChatClientFactory
from leadzap.infra.document_store import (
    create_document_store,
    create_document_store_from_settings,
)
from leadzap.infra.document_store_memory import InMemoryDocumentStore
from leadzap.infra.http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    create_http_client,
)

__all__ = [
    "EvolutionChatClient",
    "EvolutionChatClientFactory",
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "InMemoryChatClient",
    "InMemoryChatClientFactory",
    "InMemoryDocumentStore",
    "create_chat_client_factory",
    "create_document_store",
    "create_document_store_from_settings",
    "create_http_client",
    "normalize_webhook",
]
