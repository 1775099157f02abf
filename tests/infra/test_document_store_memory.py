"""Testes para DocumentStore em memória."""

from __future__ import annotations

import asyncio

import pytest

from leadzap.infra.document_store import create_document_store
from leadzap.infra.document_store_memory import InMemoryDocumentStore


class TestGetAndMerge:
    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self):
        """Documento inexistente retorna None."""
        store = InMemoryDocumentStore()
        assert await store.get("tenant/acme/sessions/whatsapp") is None

    @pytest.mark.asyncio
    async def test_merge_creates_and_preserves_fields(self):
        """Merge cria o documento e preserva campos não mencionados."""
        store = InMemoryDocumentStore()
        path = "tenant/acme/sessions/whatsapp"

        await store.set_merge(path, {"status": "qrCode", "custom": 1})
        await store.set_merge(path, {"status": "conectado"})

        assert await store.get(path) == {"status": "conectado", "custom": 1}

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        """Alterar o retorno não altera o armazenado."""
        store = InMemoryDocumentStore()
        path = "tenant/acme/sessions/whatsapp"
        await store.set_merge(path, {"status": "qrCode"})

        doc = await store.get(path)
        doc["status"] = "x"

        assert (await store.get(path))["status"] == "qrCode"

    @pytest.mark.asyncio
    async def test_document_path_required(self):
        """Path de coleção não é aceito como documento."""
        store = InMemoryDocumentStore()
        with pytest.raises(ValueError):
            await store.set_merge("tenant/acme/sessions", {"a": 1})


class TestAppendAndList:
    @pytest.mark.asyncio
    async def test_append_returns_unique_ids(self):
        store = InMemoryDocumentStore()
        col = "tenant/acme/conversations/5511/messages"

        first = await store.append(col, {"text": "a"})
        second = await store.append(col, {"text": "b"})

        assert first != second
        docs = await store.list_documents(col)
        assert [d["id"] for d in docs] == [first, second]

    @pytest.mark.asyncio
    async def test_list_order_and_limit(self):
        store = InMemoryDocumentStore()
        col = "tenant/acme/conversations/5511/messages"
        for value in (3, 1, 2):
            await store.append(col, {"n": value})

        docs = await store.list_documents(col, order_by="n", limit=2)

        assert [d["n"] for d in docs] == [1, 2]

    @pytest.mark.asyncio
    async def test_list_includes_merged_documents(self):
        store = InMemoryDocumentStore()
        await store.set_merge("tenant/acme/conversations/5511", {"contactName": "Maria"})

        docs = await store.list_documents("tenant/acme/conversations")

        assert docs == [{"id": "5511", "contactName": "Maria"}]

    @pytest.mark.asyncio
    async def test_collection_path_required(self):
        store = InMemoryDocumentStore()
        with pytest.raises(ValueError):
            await store.append("tenant/acme", {"a": 1})


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_document_snapshots(self):
        """Primeiro snapshot é o estado atual; depois um por alteração."""
        store = InMemoryDocumentStore()
        path = "tenant/acme/sessions/whatsapp"
        stream = store.subscribe(path)

        assert await anext(stream) is None
        await store.set_merge(path, {"status": "qrCode"})
        assert await asyncio.wait_for(anext(stream), timeout=1) == {"status": "qrCode"}
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_collection_snapshots(self):
        store = InMemoryDocumentStore()
        col = "tenant/acme/conversations/5511/messages"
        stream = store.subscribe(col)

        assert await anext(stream) == []
        await store.append(col, {"text": "oi"})
        snapshot = await asyncio.wait_for(anext(stream), timeout=1)
        assert [d["text"] for d in snapshot] == ["oi"]
        await stream.aclose()


def test_factory_memory_backend():
    assert isinstance(create_document_store("memory"), InMemoryDocumentStore)


def test_factory_firestore_requires_client():
    with pytest.raises(ValueError):
        create_document_store("firestore")


def test_factory_unknown_backend():
    with pytest.raises(ValueError):
        create_document_store("redis")
