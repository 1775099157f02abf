"""Fábrica da aplicação FastAPI."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from leadzap.api.routes import router
from leadzap.application.orchestrator import build_orchestrator
from leadzap.config.settings import Settings, get_settings
from leadzap.domain.protocols.chat_client import ChatClientFactory
from leadzap.domain.protocols.document_store import DocumentStore
from leadzap.infra.chat_client_factory import create_chat_client_factory
from leadzap.infra.document_store import create_document_store_from_settings
from leadzap.observability.logging import configure_logging, get_logger
from leadzap.observability.middleware import CorrelationIdMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    # Encerra todas as sessões ativas antes de sair
    await app.state.orchestrator.shutdown()
    logger.info("app_shutdown_complete")


def create_app(
    settings: Settings | None = None,
    document_store: DocumentStore | None = None,
    client_factory: ChatClientFactory | None = None,
) -> FastAPI:
    """Cria a aplicação FastAPI.

    `document_store` e `client_factory` permitem injetar backends (testes);
    quando omitidos, são criados conforme settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.service_name)

    validation_errors = settings.validate_all()
    if validation_errors:
        error_msg = "; ".join(validation_errors)
        raise ValueError(f"Configuração inválida: {error_msg}")

    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=_lifespan)
    app.add_middleware(CorrelationIdMiddleware)
    app.include_router(router)

    store = document_store or create_document_store_from_settings(settings)
    factory = client_factory or create_chat_client_factory(settings)

    app.state.settings = settings
    app.state.document_store = store
    app.state.chat_client_factory = factory
    app.state.orchestrator = build_orchestrator(settings, store, factory)

    logger.info(
        "app_created",
        extra={
            "environment": settings.environment,
            "store_backend": settings.store_backend,
            "chat_client_backend": settings.chat_client_backend,
        },
    )
    return app
