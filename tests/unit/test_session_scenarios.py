"""Cenários ponta a ponta do orquestrador (cliente e store em memória)."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from tests.helpers.sessions import eventually

TENANT = "acme"
CONTACT = "5511999999999"
SESSION_DOC = f"tenant/{TENANT}/sessions/whatsapp"
CONV_PATH = f"tenant/{TENANT}/conversations/{CONTACT}"


@pytest.mark.asyncio
async def test_concurrent_start_yields_single_coherent_session(orchestrator, store):
    first, second = await asyncio.gather(
        orchestrator.start_session(TENANT), orchestrator.start_session(TENANT)
    )

    assert sorted([first.status, second.status]) == ["already_running", "started"]
    assert {first.message, second.message} == {"session started", "session already running"}
    await eventually(lambda: store.get(SESSION_DOC))
    doc = await store.get(SESSION_DOC)
    assert doc["status"] == "carregando"
    assert doc["state"] == "INIT"


@pytest.mark.asyncio
async def test_pairing_artifact_issued(orchestrator, client_factory, store):
    await orchestrator.start_session(TENANT)

    await client_factory.clients[TENANT].issue_pairing("ABC123")
    await orchestrator.registry.get_session(TENANT).wait_until_idle()

    doc = await store.get(SESSION_DOC)
    assert doc["status"] == "qrCode"
    assert doc["pairingArtifact"] == "ABC123"


@pytest.mark.asyncio
async def test_ready_clears_pairing_artifact(orchestrator, client_factory, store):
    await orchestrator.start_session(TENANT)
    client = client_factory.clients[TENANT]

    await client.issue_pairing("ABC123")
    await client.authenticate()
    await client.become_ready()
    await orchestrator.registry.get_session(TENANT).wait_until_idle()

    doc = await store.get(SESSION_DOC)
    assert doc["status"] == "conectado"
    assert doc["pairingArtifact"] is None


@pytest.mark.asyncio
async def test_inbound_message_creates_conversation(orchestrator, client_factory, store):
    await orchestrator.start_session(TENANT)
    client = client_factory.clients[TENANT]
    await client.connect()

    await client.receive(CONTACT, "Olá", author_id=CONTACT, from_self=False)
    await orchestrator.registry.get_session(TENANT).wait_until_idle()

    conv = await store.get(CONV_PATH)
    assert conv["contactName"] == CONTACT
    messages = await store.list_documents(f"{CONV_PATH}/messages")
    assert [(m["direction"], m["text"]) for m in messages] == [("inbound", "Olá")]


@pytest.mark.asyncio
async def test_send_message_appends_outbound(orchestrator, client_factory, store):
    await orchestrator.start_session(TENANT)
    client = client_factory.clients[TENANT]
    await client.connect()
    await client.receive(CONTACT, "Olá", author_id=CONTACT)
    await orchestrator.registry.get_session(TENANT).wait_until_idle()
    called_at = datetime.now(tz=UTC)

    result = await orchestrator.send_message(TENANT, CONTACT, "Oi, tudo bem?")

    assert result.success is True
    assert client.sent == [(CONTACT, "Oi, tudo bem?")]
    messages = await store.list_documents(f"{CONV_PATH}/messages", order_by="sentAt")
    outbound = [m for m in messages if m["direction"] == "outbound"]
    assert len(outbound) == 1
    assert outbound[0]["sentAt"] >= called_at
    conv = await store.get(CONV_PATH)
    assert conv["lastMessageText"] == "Oi, tudo bem?"


@pytest.mark.asyncio
async def test_send_without_session_is_not_found(orchestrator, store):
    result = await orchestrator.send_message(TENANT, CONTACT, "Oi")

    assert result.success is False
    assert result.error == "session not found"
    assert store.paths() == []
    assert store.merge_calls == []
