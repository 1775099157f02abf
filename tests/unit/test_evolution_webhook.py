"""Testes da normalização de webhooks do gateway Evolution API."""

from __future__ import annotations

from leadzap.domain.session import ClientEventKind
from leadzap.infra.chat_client_evolution import (
    UNSUPPORTED_MESSAGE_TEXT,
    extract_message_text,
    normalize_webhook,
)


def _upsert(message: dict | None, from_me: bool = False, participant: str | None = None) -> dict:
    key = {"remoteJid": "5511900000001@s.whatsapp.net", "fromMe": from_me}
    if participant:
        key["participant"] = participant
    return {"event": "messages.upsert", "data": {"key": key, "message": message}}


class TestExtractMessageText:
    def test_conversation(self) -> None:
        assert extract_message_text({"conversation": "oi"}) == "oi"

    def test_extended_text(self) -> None:
        assert extract_message_text({"extendedTextMessage": {"text": "link"}}) == "link"

    def test_media_placeholders(self) -> None:
        assert extract_message_text({"imageMessage": {}}) == "[Image]"
        assert extract_message_text({"audioMessage": {}}) == "[Audio]"
        assert extract_message_text({"videoMessage": {}}) == "[Video]"
        assert extract_message_text({"documentMessage": {}}) == "[Document]"

    def test_unsupported(self) -> None:
        assert extract_message_text({"stickerMessage": {}}) == UNSUPPORTED_MESSAGE_TEXT
        assert extract_message_text(None) == UNSUPPORTED_MESSAGE_TEXT


class TestNormalizeWebhook:
    def test_qrcode_updated(self) -> None:
        events = normalize_webhook(
            {"event": "QRCODE_UPDATED", "data": {"qrcode": {"base64": "data:image/png;base64,AAA"}}}
        )
        assert len(events) == 1
        assert events[0].kind is ClientEventKind.PAIRING_ARTIFACT_ISSUED
        assert events[0].pairing_code == "data:image/png;base64,AAA"

    def test_qrcode_without_code_is_ignored(self) -> None:
        assert normalize_webhook({"event": "qrcode.updated", "data": {}}) == []

    def test_connection_open(self) -> None:
        events = normalize_webhook({"event": "connection.update", "data": {"state": "open"}})
        assert [e.kind for e in events] == [ClientEventKind.AUTHENTICATED, ClientEventKind.READY]

    def test_connection_close(self) -> None:
        events = normalize_webhook(
            {"event": "connection.update", "data": {"state": "close", "statusReason": 401}}
        )
        assert events[0].kind is ClientEventKind.DISCONNECTED
        assert events[0].reason == "401"

    def test_connection_connecting_ignored(self) -> None:
        assert normalize_webhook({"event": "connection.update", "data": {"state": "connecting"}}) == []

    def test_message_upsert(self) -> None:
        events = normalize_webhook(_upsert({"conversation": "Olá"}))
        message = events[0].message
        assert events[0].kind is ClientEventKind.MESSAGE_RECEIVED
        assert message.remote_contact_id == "5511900000001"
        assert message.author_id == "5511900000001"
        assert message.text == "Olá"
        assert message.from_self is False

    def test_group_message_author_is_participant(self) -> None:
        events = normalize_webhook(
            _upsert({"conversation": "oi"}, participant="5511900000009@s.whatsapp.net")
        )
        assert events[0].message.author_id == "5511900000009"

    def test_from_me_flag(self) -> None:
        events = normalize_webhook(_upsert({"conversation": "eco"}, from_me=True))
        assert events[0].message.from_self is True

    def test_unknown_event(self) -> None:
        assert normalize_webhook({"event": "presence.update", "data": {}}) == []
