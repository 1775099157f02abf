"""Implementação de DocumentStore em memória (apenas dev/testes)."""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from collections.abc import AsyncIterator

from leadzap.domain.protocols.document_store import Document, DocumentStore
from leadzap.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

Snapshot = Document | list[Document] | None


def _segments(path: str) -> list[str]:
    parts = path.strip("/").split("/")
    if any(not part for part in parts):
        raise ValueError(f"path inválido: {path!r}")
    return parts


def _is_document_path(path: str) -> bool:
    return len(_segments(path)) % 2 == 0


def _require_document(path: str) -> str:
    if not _is_document_path(path):
        raise ValueError(f"path não aponta para documento: {path!r}")
    return path.strip("/")


def _require_collection(path: str) -> str:
    if _is_document_path(path):
        raise ValueError(f"path não aponta para coleção: {path!r}")
    return path.strip("/")


def _sort_key(field: str):
    def key(doc: Document) -> tuple[bool, object]:
        value = doc.get(field)
        return (value is None, value)

    return key


class InMemoryDocumentStore(DocumentStore):
    """Armazenamento de documentos em memória.

    ⚠️ Não usar em produção!
    - Não persiste entre restarts
    - Não funciona com múltiplas instâncias

    Cada operação roda sem pontos de suspensão, logo é atômica no event loop.
    Merge é raso: campos de primeiro nível são substituídos.
    """

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        # coleção → paths de documentos em ordem de criação
        self._collections: dict[str, list[str]] = {}
        self._subscribers: dict[str, set[asyncio.Queue[Snapshot]]] = {}

    async def get(self, path: str) -> Document | None:
        path = _require_document(path)
        doc = self._documents.get(path)
        return copy.deepcopy(doc) if doc is not None else None

    async def set_merge(self, path: str, fields: Document) -> None:
        path = _require_document(path)
        doc = self._documents.get(path)
        if doc is None:
            doc = {}
            self._documents[path] = doc
            self._collections.setdefault(path.rsplit("/", 1)[0], []).append(path)
        doc.update(copy.deepcopy(fields))
        logger.debug("document_merged (in-memory)", extra={"fields": sorted(fields)})
        self._notify(path)

    async def append(self, collection_path: str, fields: Document) -> str:
        collection_path = _require_collection(collection_path)
        doc_id = uuid.uuid4().hex
        path = f"{collection_path}/{doc_id}"
        self._documents[path] = copy.deepcopy(fields)
        self._collections.setdefault(collection_path, []).append(path)
        logger.debug("document_appended (in-memory)", extra={"doc_id": doc_id})
        self._notify(path)
        return doc_id

    async def list_documents(
        self,
        collection_path: str,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        return self._collection_snapshot(
            _require_collection(collection_path), order_by=order_by, limit=limit
        )

    async def subscribe(self, path: str) -> AsyncIterator[Snapshot]:
        path = path.strip("/")
        _segments(path)
        queue: asyncio.Queue[Snapshot] = asyncio.Queue()
        self._subscribers.setdefault(path, set()).add(queue)
        try:
            yield self._snapshot(path)
            while True:
                yield await queue.get()
        finally:
            self._subscribers[path].discard(queue)

    def paths(self) -> list[str]:
        """Todos os paths de documentos armazenados (inspeção em testes)."""
        return sorted(self._documents)

    def _collection_snapshot(
        self,
        collection_path: str,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        docs = [
            {"id": path.rsplit("/", 1)[1], **copy.deepcopy(self._documents[path])}
            for path in self._collections.get(collection_path, [])
        ]
        if order_by:
            docs.sort(key=_sort_key(order_by))
        if limit is not None:
            docs = docs[:limit]
        return docs

    def _snapshot(self, path: str) -> Snapshot:
        if _is_document_path(path):
            doc = self._documents.get(path)
            return copy.deepcopy(doc) if doc is not None else None
        return self._collection_snapshot(path)

    def _notify(self, document_path: str) -> None:
        collection_path = document_path.rsplit("/", 1)[0]
        for watched in (document_path, collection_path):
            for queue in self._subscribers.get(watched, ()):
                queue.put_nowait(self._snapshot(watched))
