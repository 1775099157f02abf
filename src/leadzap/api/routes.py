"""Rotas HTTP: controle de sessões, envio, histórico e webhook do gateway."""

from __future__ import annotations

import hmac
from typing import Any

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel

from leadzap.api.dependencies import get_orchestrator, get_settings
from leadzap.application.orchestrator import (
    MSG_INVALID_MESSAGE,
    MSG_NOT_RECORDED,
    MSG_SEND_FAILED,
    MSG_SESSION_NOT_FOUND,
    SendMessageResponse,
    SessionOrchestrator,
    SessionStatus,
    StartSessionResponse,
    StopSessionResponse,
)
from leadzap.config.settings import Settings
from leadzap.domain.errors import InvalidIdentifier, SessionNotFound
from leadzap.domain.protocols.document_store import Document, DocumentStoreError
from leadzap.observability.logging import get_logger
from leadzap.observability.middleware import bind_tenant_id, get_correlation_id

logger = get_logger(__name__)

router = APIRouter()

_SEND_ERROR_STATUS: dict[str, int] = {
    MSG_SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    MSG_INVALID_MESSAGE: status.HTTP_400_BAD_REQUEST,
    MSG_SEND_FAILED: status.HTTP_502_BAD_GATEWAY,
    MSG_NOT_RECORDED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class SendMessageRequest(BaseModel):
    remote_contact_id: str
    text: str


@router.get("/health")
def health(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    """Healthcheck simples para Cloud Run."""
    return {"status": "ok", "service": settings.service_name, "version": settings.version}


@router.post("/sessions/{tenant_id}/start")
async def start_session(
    tenant_id: str,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> StartSessionResponse:
    """Inicia a sessão do tenant (idempotente)."""
    bind_tenant_id(tenant_id)
    result = await orchestrator.start_session(tenant_id)
    if result.status == "failed":
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": result.message, "correlation_id": get_correlation_id()},
        )
    return result


@router.post("/sessions/{tenant_id}/stop")
async def stop_session(
    tenant_id: str,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> StopSessionResponse:
    bind_tenant_id(tenant_id)
    result = await orchestrator.stop_session(tenant_id)
    if result.status == "not_found":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
    return result


@router.get("/sessions/{tenant_id}")
def session_status(
    tenant_id: str,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> SessionStatus:
    current = orchestrator.session_status(tenant_id)
    if current is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MSG_SESSION_NOT_FOUND)
    return current


@router.post("/sessions/{tenant_id}/messages")
async def send_message(
    tenant_id: str,
    body: SendMessageRequest,
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> SendMessageResponse:
    """Envia texto pela sessão READY do tenant."""
    bind_tenant_id(tenant_id)
    result = await orchestrator.send_message(tenant_id, body.remote_contact_id, body.text)
    if not result.success:
        raise HTTPException(
            status_code=_SEND_ERROR_STATUS.get(result.error or "", 500),
            detail=result.error,
        )
    return result


@router.get("/tenants/{tenant_id}/conversations/{remote_contact_id}/messages")
async def conversation_history(
    tenant_id: str,
    remote_contact_id: str,
    limit: int | None = Query(None, ge=1, le=1000),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Histórico de mensagens de uma conversa (ordem de sentAt)."""
    try:
        messages: list[Document] = await orchestrator.conversation_history(
            tenant_id, remote_contact_id, limit=limit
        )
    except InvalidIdentifier as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except DocumentStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "store_unavailable", "correlation_id": get_correlation_id()},
        ) from exc
    return {"tenant_id": tenant_id, "remote_contact_id": remote_contact_id, "messages": messages}


@router.post("/webhooks/evolution/{tenant_id}")
async def evolution_webhook(
    tenant_id: str,
    payload: dict[str, Any] = Body(...),
    x_webhook_token: str | None = Header(None),
    settings: Settings = Depends(get_settings),
    orchestrator: SessionOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Recebe eventos do gateway e os entrega à sessão do tenant."""
    bind_tenant_id(tenant_id)
    expected = settings.evolution_webhook_token
    if expected and not hmac.compare_digest(x_webhook_token or "", expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

    try:
        emitted = await orchestrator.dispatch_webhook(tenant_id, payload)
    except SessionNotFound as exc:
        logger.info("webhook_without_session", extra={"event": payload.get("event")})
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=MSG_SESSION_NOT_FOUND
        ) from exc

    return {"ok": True, "events": emitted, "correlation_id": get_correlation_id()}
