"""Implementação Firestore do DocumentStore."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from functools import partial
from typing import Any

import anyio
from google.cloud import firestore

from leadzap.domain.protocols.document_store import (
    Document,
    DocumentStore,
    DocumentStoreError,
)
from leadzap.observability.logging import get_logger

logger = get_logger(__name__)

Snapshot = Document | list[Document] | None


def _is_document_path(path: str) -> bool:
    return len(path.strip("/").split("/")) % 2 == 0


class FirestoreDocumentStore(DocumentStore):
    """Store de documentos usando Firestore.

    Usa o client síncrono executado em thread (anyio.to_thread) para não
    bloquear o event loop. Listeners (on_snapshot) rodam em threads do SDK e
    são repassados ao loop via call_soon_threadsafe.
    """

    def __init__(self, client: firestore.Client) -> None:
        self._client = client

    async def get(self, path: str) -> Document | None:
        try:
            snapshot = await anyio.to_thread.run_sync(self._client.document(path).get)
        except Exception as e:
            logger.error(
                "failed_get_firestore",
                extra={"error": type(e).__name__},
            )
            raise DocumentStoreError(f"Firestore get failed: {e}") from e

        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    async def set_merge(self, path: str, fields: Document) -> None:
        doc_ref = self._client.document(path)
        try:
            await anyio.to_thread.run_sync(partial(doc_ref.set, fields, merge=True))
        except Exception as e:
            logger.error(
                "failed_merge_firestore",
                extra={"error": type(e).__name__},
            )
            raise DocumentStoreError(f"Firestore merge failed: {e}") from e

    async def append(self, collection_path: str, fields: Document) -> str:
        collection = self._client.collection(collection_path)
        try:
            _, doc_ref = await anyio.to_thread.run_sync(collection.add, fields)
        except Exception as e:
            logger.error(
                "failed_append_firestore",
                extra={"error": type(e).__name__},
            )
            raise DocumentStoreError(f"Firestore append failed: {e}") from e
        return doc_ref.id

    async def list_documents(
        self,
        collection_path: str,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        query: Any = self._client.collection(collection_path)
        if order_by:
            query = query.order_by(order_by, direction=firestore.Query.ASCENDING)
        if limit is not None:
            query = query.limit(limit)

        try:
            docs = await anyio.to_thread.run_sync(lambda: list(query.stream()))
        except Exception as e:
            logger.error(
                "failed_list_firestore",
                extra={"error": type(e).__name__},
            )
            raise DocumentStoreError(f"Firestore list failed: {e}") from e

        return [{"id": doc.id, **(doc.to_dict() or {})} for doc in docs]

    async def subscribe(self, path: str) -> AsyncIterator[Snapshot]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Snapshot] = asyncio.Queue()
        is_document = _is_document_path(path)

        def _on_snapshot(snapshots, _changes, _read_time) -> None:
            data: Snapshot
            if is_document:
                snapshot = snapshots[0] if snapshots else None
                data = snapshot.to_dict() if snapshot is not None and snapshot.exists else None
            else:
                data = [{"id": s.id, **(s.to_dict() or {})} for s in snapshots]
            loop.call_soon_threadsafe(queue.put_nowait, data)

        ref = self._client.document(path) if is_document else self._client.collection(path)
        watch = ref.on_snapshot(_on_snapshot)
        try:
            while True:
                yield await queue.get()
        finally:
            watch.unsubscribe()
