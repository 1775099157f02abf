"""Testes do caminho de envio outbound (atomicidade envio → histórico)."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from leadzap.domain.errors import (
    InvalidIdentifier,
    InvalidMessage,
    MessageNotRecorded,
    SendFailed,
    SessionNotFound,
)
from tests.helpers.sessions import eventually

CONTACT = "5511900000002"
MSG_PATH = f"tenant/acme/conversations/{CONTACT}/messages"


async def _ready_session(orchestrator, client_factory):
    await orchestrator.registry.start_session("acme")
    session = orchestrator.registry.get_session("acme")
    client = client_factory.clients["acme"]
    await client.connect()
    await session.wait_until_idle()
    return session, client


@pytest.mark.asyncio
async def test_success_records_exactly_one_message(orchestrator, client_factory, store):
    _, client = await _ready_session(orchestrator, client_factory)
    called_at = datetime.now(tz=UTC)

    await orchestrator.send_message_use_case.execute(
        tenant_id="acme", remote_contact_id=CONTACT, text="Olá!"
    )

    assert client.sent == [(CONTACT, "Olá!")]
    messages = await store.list_documents(MSG_PATH)
    assert len(messages) == 1
    assert messages[0]["direction"] == "outbound"
    assert messages[0]["text"] == "Olá!"
    assert messages[0]["sentAt"] >= called_at
    conv = await store.get(f"tenant/acme/conversations/{CONTACT}")
    assert conv["contactName"] == CONTACT


@pytest.mark.asyncio
async def test_send_failure_persists_nothing(orchestrator, client_factory, store):
    _, client = await _ready_session(orchestrator, client_factory)
    client.fail_sends = True

    with pytest.raises(SendFailed):
        await orchestrator.send_message_use_case.execute(
            tenant_id="acme", remote_contact_id=CONTACT, text="Olá!"
        )

    assert await store.list_documents(MSG_PATH) == []
    assert await store.get(f"tenant/acme/conversations/{CONTACT}") is None


@pytest.mark.asyncio
async def test_missing_session_rejected_without_writes(orchestrator, store):
    with pytest.raises(SessionNotFound):
        await orchestrator.send_message_use_case.execute(
            tenant_id="acme", remote_contact_id=CONTACT, text="Olá!"
        )

    assert store.paths() == []


@pytest.mark.asyncio
async def test_session_not_ready_rejected(orchestrator, client_factory, store):
    await orchestrator.registry.start_session("acme")
    client = client_factory.clients["acme"]
    await client.issue_pairing("QR")
    await orchestrator.registry.get_session("acme").wait_until_idle()

    with pytest.raises(SessionNotFound):
        await orchestrator.send_message_use_case.execute(
            tenant_id="acme", remote_contact_id=CONTACT, text="Olá!"
        )

    assert client.sent == []
    assert await store.list_documents(MSG_PATH) == []


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   "])
async def test_empty_text_rejected(orchestrator, client_factory, text):
    _, client = await _ready_session(orchestrator, client_factory)

    with pytest.raises(InvalidMessage):
        await orchestrator.send_message_use_case.execute(
            tenant_id="acme", remote_contact_id=CONTACT, text=text
        )

    assert client.sent == []


@pytest.mark.asyncio
async def test_invalid_contact_rejected_before_send(orchestrator, client_factory):
    _, client = await _ready_session(orchestrator, client_factory)

    with pytest.raises(InvalidIdentifier):
        await orchestrator.send_message_use_case.execute(
            tenant_id="acme", remote_contact_id="../x", text="oi"
        )

    assert client.sent == []


@pytest.mark.asyncio
async def test_store_failure_after_send_is_surfaced(orchestrator, client_factory, store):
    _, client = await _ready_session(orchestrator, client_factory)
    store.fail_appends = True

    with pytest.raises(MessageNotRecorded):
        await orchestrator.send_message_use_case.execute(
            tenant_id="acme", remote_contact_id=CONTACT, text="Olá!"
        )

    assert client.sent == [(CONTACT, "Olá!")]


@pytest.mark.asyncio
async def test_orchestrator_maps_errors_to_user_texts(orchestrator, client_factory):
    missing = await orchestrator.send_message("acme", CONTACT, "oi")
    assert missing.success is False
    assert missing.error == "session not found"

    _, client = await _ready_session(orchestrator, client_factory)
    client.fail_sends = True
    failed = await orchestrator.send_message("acme", CONTACT, "oi")
    assert failed.error == "failed to send message"

    client.fail_sends = False
    ok = await orchestrator.send_message("acme", CONTACT, "oi")
    assert ok.success is True
    assert ok.error is None


@pytest.mark.asyncio
async def test_send_after_disconnect_is_rejected(orchestrator, client_factory):
    _, client = await _ready_session(orchestrator, client_factory)
    await client.disconnect()
    await eventually(lambda: orchestrator.registry.get_session("acme") is None)

    result = await orchestrator.send_message("acme", CONTACT, "oi")

    assert result.error == "session not found"
