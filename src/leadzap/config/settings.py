"""Configurações da aplicação via variáveis de ambiente.

Todas as configurações são carregadas de env vars (ou arquivo .env em dev).
Nunca hardcode secrets ou valores sensíveis.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

from leadzap.observability.logging import get_logger

# Documento de sessão fica sob {root}/{tenant_id}/sessions/{SESSION_DOCUMENT_ID}
SESSION_DOCUMENT_ID: str = "whatsapp"


class Settings(BaseSettings):
    """Configurações lidas do ambiente."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        extra="ignore",
    )

    # Aplicação
    service_name: str = "leadzap"
    version: str = "0.1.0"
    environment: str = "development"
    log_level: str = "INFO"

    # Armazenamento de documentos
    store_backend: str = "memory"  # memory | firestore
    firestore_project_id: str | None = None
    firestore_database_id: str = "(default)"
    tenant_root_collection: str = "tenant"  # Raiz de todos os paths por tenant

    # Cliente de chat (conexão WhatsApp por tenant)
    chat_client_backend: str = "memory"  # memory | evolution
    evolution_api_base_url: str | None = None  # Ex.: https://evolution.example.com
    evolution_api_key: str | None = None  # Header apikey do gateway
    evolution_instance_prefix: str = ""  # Nome da instância = prefixo + tenant_id
    evolution_webhook_token: str | None = None  # Token compartilhado do webhook
    evolution_logout_on_destroy: bool = True  # Logout da instância ao liberar o cliente

    # HTTP (gateway)
    http_timeout_seconds: float = 30.0
    http_max_retries: int = 3
    http_backoff_seconds: float = 2.0

    # Sessões
    event_queue_maxsize: int = 256  # Eventos pendentes por tenant
    contact_lookup_timeout_seconds: float = 5.0
    session_stop_timeout_seconds: float = 10.0

    # Mensagens
    max_message_length_chars: int = 4096

    def validate_store_config(self) -> list[str]:
        """Valida backend de armazenamento por ambiente.

        Retorna lista de erros (vazia = tudo OK).
        """
        errors: list[str] = []
        backend = self.store_backend.lower()

        valid_backends = {"memory", "firestore"}
        if backend not in valid_backends:
            errors.append(
                f"STORE_BACKEND '{backend}' inválido. Valores válidos: {valid_backends}"
            )

        # Em staging/prod, memory é proibido (histórico precisa ser durável)
        if backend == "memory" and (self.is_staging or self.is_production):
            errors.append(
                "STORE_BACKEND=memory é proibido em staging/production. "
                "Configure 'firestore'."
            )

        if not self.tenant_root_collection or "/" in self.tenant_root_collection:
            errors.append("TENANT_ROOT_COLLECTION deve ser um único segmento de path")

        return errors

    def validate_chat_client_config(self) -> list[str]:
        """Valida backend do cliente de chat."""
        errors: list[str] = []
        backend = self.chat_client_backend.lower()

        if backend not in {"memory", "evolution"}:
            errors.append("CHAT_CLIENT_BACKEND inválido: use memory | evolution")

        if backend == "memory" and (self.is_staging or self.is_production):
            errors.append("CHAT_CLIENT_BACKEND=memory é proibido em staging/production")

        if backend == "evolution":
            if not self.evolution_api_base_url:
                errors.append("CHAT_CLIENT_BACKEND=evolution requer EVOLUTION_API_BASE_URL")
            elif self.is_production and self.evolution_api_base_url.startswith("http://"):
                errors.append("EVOLUTION_API_BASE_URL deve usar https em production")
            if not self.evolution_api_key:
                errors.append("CHAT_CLIENT_BACKEND=evolution requer EVOLUTION_API_KEY")

        return errors

    def validate_runtime_limits(self) -> list[str]:
        """Valida limites de fila, timeouts e tamanho de mensagem."""
        errors: list[str] = []
        if self.event_queue_maxsize < 1:
            errors.append("EVENT_QUEUE_MAXSIZE deve ser >= 1")
        if self.contact_lookup_timeout_seconds <= 0:
            errors.append("CONTACT_LOOKUP_TIMEOUT_SECONDS deve ser > 0")
        if self.session_stop_timeout_seconds <= 0:
            errors.append("SESSION_STOP_TIMEOUT_SECONDS deve ser > 0")
        if self.max_message_length_chars < 1:
            errors.append("MAX_MESSAGE_LENGTH_CHARS deve ser >= 1")
        if self.http_max_retries < 0:
            errors.append("HTTP_MAX_RETRIES não pode ser negativo")
        return errors

    def validate_all(self) -> list[str]:
        """Agrega todas as validações."""
        errors: list[str] = []
        errors.extend(self.validate_store_config())
        errors.extend(self.validate_chat_client_config())
        errors.extend(self.validate_runtime_limits())
        return errors

    @property
    def is_production(self) -> bool:
        """Retorna True se ambiente é produção."""
        return self.environment.lower() in ("production", "prod")

    @property
    def is_staging(self) -> bool:
        """Retorna True se ambiente é staging."""
        return self.environment.lower() in ("staging", "stage")

    @property
    def is_development(self) -> bool:
        """Retorna True se ambiente é desenvolvimento."""
        return self.environment.lower() in ("development", "dev", "local")

    def model_post_init(self, __context: Any) -> None:
        """Registra o ambiente carregado (sem expor secrets)."""
        get_logger(__name__).debug(
            "settings_loaded",
            extra={
                "environment": self.environment,
                "store_backend": self.store_backend,
                "chat_client_backend": self.chat_client_backend,
            },
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Retorna uma instância cacheada de Settings.

    A cache garante que mesmo múltiplas injeções não criam novos objetos.
    """
    return Settings()
