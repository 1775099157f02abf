"""Protocolos de domínio para capacidades externas."""

from leadzap.domain.protocols.chat_client import (
    ChatClient,
    ChatClientError,
    ChatClientFactory,
    EventSink,
)
from leadzap.domain.protocols.document_store import (
    Document,
    DocumentStore,
    DocumentStoreError,
)

__all__ = [
    "ChatClient",
    "ChatClientError",
    "ChatClientFactory",
    "EventSink",
    "Document",
    "DocumentStore",
    "DocumentStoreError",
]
