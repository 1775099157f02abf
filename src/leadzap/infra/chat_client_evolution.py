"""Cliente de chat via gateway Evolution API (uma instância por tenant).

Responsabilidades:
- Consultar o estado da instância e obter o QR code quando desconectada
- Enviar texto e resolver nome de contatos
- Fazer logout da instância ao liberar o cliente
- Traduzir webhooks do gateway em ClientEvents do tenant

Eventos de webhook tratados:
- qrcode.updated    → PAIRING_ARTIFACT_ISSUED
- connection.update → AUTHENTICATED + READY (open) | DISCONNECTED (close)
- messages.upsert   → MESSAGE_RECEIVED
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from leadzap.domain.protocols.chat_client import ChatClient, ChatClientError, EventSink
from leadzap.domain.session.events import ClientEvent, InboundMessage
from leadzap.infra.http import HttpClient, HttpError
from leadzap.observability.logging import get_logger
from leadzap.utils.ids import contact_id_from_jid, mask_identifier

logger: logging.Logger = get_logger(__name__)

UNSUPPORTED_MESSAGE_TEXT = "[Mensagem não suportada]"

# Estados da instância que indicam sessão pareada
_OPEN_STATES = frozenset({"open", "connected"})

_MEDIA_KINDS: dict[str, str] = {
    "imageMessage": "Image",
    "audioMessage": "Audio",
    "videoMessage": "Video",
    "documentMessage": "Document",
}


def _event_name(payload: dict[str, Any]) -> str:
    """Normaliza MESSAGES_UPSERT / messages.upsert → messages.upsert."""
    return str(payload.get("event") or "").lower().replace("_", ".")


def extract_message_text(message: dict[str, Any] | None) -> str:
    """Extrai o texto de um `message` do gateway (placeholder para mídia)."""
    if not message:
        return UNSUPPORTED_MESSAGE_TEXT
    if message.get("conversation"):
        return str(message["conversation"])
    extended = message.get("extendedTextMessage") or {}
    if extended.get("text"):
        return str(extended["text"])
    for key, label in _MEDIA_KINDS.items():
        if key in message:
            return f"[{label}]"
    return UNSUPPORTED_MESSAGE_TEXT


def normalize_webhook(payload: dict[str, Any]) -> list[ClientEvent]:
    """Traduz um webhook do gateway em zero ou mais ClientEvents."""
    event = _event_name(payload)
    data = payload.get("data") or {}

    if event == "qrcode.updated":
        qrcode = data.get("qrcode") or {}
        code = qrcode.get("base64") or qrcode.get("code")
        return [ClientEvent.pairing(code)] if code else []

    if event == "connection.update":
        state = str(data.get("state") or "").lower()
        if state == "open":
            return [ClientEvent.authenticated(), ClientEvent.ready()]
        if state == "close":
            reason = data.get("statusReason")
            return [ClientEvent.disconnected(str(reason) if reason is not None else None)]
        return []

    if event == "messages.upsert":
        key = data.get("key") or {}
        remote_jid = key.get("remoteJid")
        if not remote_jid:
            return []
        author_jid = key.get("participant") or remote_jid
        return [
            ClientEvent.received(
                InboundMessage(
                    remote_contact_id=contact_id_from_jid(remote_jid),
                    text=extract_message_text(data.get("message")),
                    author_id=contact_id_from_jid(author_jid),
                    from_self=bool(key.get("fromMe")),
                )
            )
        ]

    return []


def _json(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class EvolutionChatClient(ChatClient):
    """Cliente de chat de um tenant sobre o gateway Evolution API."""

    def __init__(
        self,
        tenant_id: str,
        sink: EventSink,
        http: HttpClient,
        instance_name: str,
        logout_on_destroy: bool = True,
    ) -> None:
        self.tenant_id = tenant_id
        self._sink = sink
        self._http = http
        self._instance = instance_name
        self._logout_on_destroy = logout_on_destroy
        self._destroyed = False
        # pushName visto nos webhooks, por autor
        self._push_names: dict[str, str] = {}

    @property
    def instance_name(self) -> str:
        return self._instance

    async def initialize(self) -> None:
        if await self._connection_state() in _OPEN_STATES:
            await self._emit_connected()
            return

        try:
            response = await self._http.get(f"/instance/connect/{self._instance}")
        except HttpError as e:
            raise ChatClientError(f"instance connect failed: {e}") from e

        data = _json(response)
        state = str((data.get("instance") or {}).get("state") or "").lower()
        if state in _OPEN_STATES:
            await self._emit_connected()
            return

        code = data.get("base64") or data.get("code") or data.get("pairingCode")
        if code:
            await self._sink.emit(ClientEvent.pairing(code))

    async def _emit_connected(self) -> None:
        await self._sink.emit(ClientEvent.authenticated())
        await self._sink.emit(ClientEvent.ready())

    async def _connection_state(self) -> str:
        """Estado atual da instância no gateway ("" se indisponível)."""
        try:
            response = await self._http.get(f"/instance/connectionState/{self._instance}")
        except HttpError as e:
            logger.info(
                "evolution_connection_state_unavailable",
                extra={"instance": self._instance, "status_code": e.status_code},
            )
            return ""
        data = _json(response)
        state = (data.get("instance") or {}).get("state") or data.get("state") or ""
        return str(state).lower()

    async def send(self, remote_contact_id: str, text: str) -> None:
        try:
            await self._http.post(
                f"/message/sendText/{self._instance}",
                json={"number": remote_contact_id, "text": text},
            )
        except HttpError as e:
            logger.warning(
                "evolution_send_failed",
                extra={
                    "contact": mask_identifier(remote_contact_id),
                    "status_code": e.status_code,
                },
            )
            raise ChatClientError(f"send failed: {e}") from e

    async def lookup_contact_name(self, author_id: str) -> str | None:
        cached = self._push_names.get(author_id)
        if cached:
            return cached
        try:
            response = await self._http.post(
                f"/chat/fetchProfile/{self._instance}",
                json={"number": author_id},
            )
        except HttpError as e:
            raise ChatClientError(f"profile lookup failed: {e}") from e
        name = _json(response).get("name")
        return str(name) if name else None

    async def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        if self._logout_on_destroy:
            try:
                await self._http.delete(f"/instance/logout/{self._instance}")
            except HttpError as e:
                # Best-effort: o cliente é liberado mesmo sem logout no gateway
                logger.warning(
                    "evolution_logout_failed",
                    extra={"instance": self._instance, "status_code": e.status_code},
                )
            else:
                logger.info("evolution_instance_logged_out", extra={"instance": self._instance})
        await self._http.close()

    async def handle_webhook(self, payload: dict[str, Any]) -> int:
        """Emite os eventos de um webhook do gateway; retorna quantos."""
        data = payload.get("data") or {}
        if _event_name(payload) == "messages.upsert" and data.get("pushName"):
            key = data.get("key") or {}
            author_jid = key.get("participant") or key.get("remoteJid")
            if author_jid and not key.get("fromMe"):
                self._push_names[contact_id_from_jid(author_jid)] = str(data["pushName"])

        events = normalize_webhook(payload)
        for event in events:
            await self._sink.emit(event)
        return len(events)
