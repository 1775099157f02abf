"""Factory do armazenamento de documentos — criação backend-agnóstica."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from leadzap.domain.protocols.document_store import DocumentStore
from leadzap.infra.document_store_memory import InMemoryDocumentStore
from leadzap.observability.logging import get_logger

if TYPE_CHECKING:
    from leadzap.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def create_document_store(
    backend: str,
    client: Any | None = None,
) -> DocumentStore:
    """Factory para DocumentStore.

    Args:
        backend: "memory" ou "firestore"
        client: Cliente Firestore (obrigatório se backend="firestore")

    Raises:
        ValueError: Se backend inválido ou cliente não fornecido
    """
    if backend == "memory":
        logger.warning("Using in-memory document store (dev only)")
        return InMemoryDocumentStore()

    if backend == "firestore":
        if client is None:
            msg = "firestore client required for firestore backend"
            raise ValueError(msg)
        from leadzap.infra.document_store_firestore import FirestoreDocumentStore

        logger.info("Using Firestore document store")
        return FirestoreDocumentStore(client)

    msg = f"Unknown document store backend: {backend}"
    raise ValueError(msg)


def create_document_store_from_settings(settings: Settings) -> DocumentStore:
    """Cria o store conforme STORE_BACKEND (instancia o client Firestore)."""
    backend = settings.store_backend.lower()
    if backend == "firestore":
        from google.cloud import firestore

        client = firestore.Client(
            project=settings.firestore_project_id,
            database=settings.firestore_database_id,
        )
        return create_document_store("firestore", client=client)
    return create_document_store(backend)
