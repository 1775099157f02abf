"""Cliente HTTP assíncrono com retry, timeout e logging.

Usado pelo cliente do gateway WhatsApp (Evolution API):
- Retry com backoff exponencial em 429/5xx, timeout e erro de conexão
- Timeouts configuráveis
- Logging estruturado (sem PII, sem chaves de API)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from leadzap.observability.logging import get_logger

if TYPE_CHECKING:
    from leadzap.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP.

    Valores padrão são seguros e conservadores.
    """

    base_url: str = ""
    timeout_seconds: float = 30.0
    max_retries: int = 3
    backoff_base_seconds: float = 2.0
    backoff_max_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)


class HttpError(Exception):
    """Erro de requisição HTTP sem expor informações sensíveis."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        is_retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.is_retryable = is_retryable


def _is_retryable_status(status_code: int) -> bool:
    """Determina se status HTTP permite retry (429 ou 5xx)."""
    return status_code == 429 or 500 <= status_code < 600


def _calculate_backoff(attempt: int, base_seconds: float, max_seconds: float) -> float:
    """Calcula tempo de espera com backoff exponencial."""
    return min((2**attempt) * base_seconds, max_seconds)


class HttpClient:
    """Cliente HTTP assíncrono com retry e logging.

    Uso típico:
        async with HttpClient(config) as client:
            response = await client.post("/message/sendText/acme", json=payload)
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or HttpClientConfig()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Retorna cliente httpx (lazy loading)."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Fecha o cliente e libera recursos."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> HttpClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Executa requisição com retry automático.

        Raises:
            HttpError: Em status não retentável ou após esgotar retries
        """
        client = self._get_client()
        cfg = self._config
        last_error: HttpError | None = None

        for attempt in range(cfg.max_retries + 1):
            logger.debug(
                "Executando requisição HTTP",
                extra={"method": method, "url": url, "attempt": attempt + 1},
            )
            try:
                response = await client.request(method, url, **kwargs)
            except httpx.TimeoutException as exc:
                logger.warning(
                    "Timeout em requisição HTTP",
                    extra={"method": method, "url": url, "attempt": attempt + 1},
                )
                last_error = HttpError("Timeout", is_retryable=True)
                last_error.__cause__ = exc
            except httpx.TransportError as exc:
                logger.warning(
                    "Erro de conexão HTTP",
                    extra={"method": method, "url": url, "error": type(exc).__name__},
                )
                last_error = HttpError("Erro de conexão", is_retryable=True)
                last_error.__cause__ = exc
            else:
                if response.is_success:
                    return response
                if not _is_retryable_status(response.status_code):
                    logger.warning(
                        "Requisição HTTP falhou (não retryable)",
                        extra={"method": method, "url": url, "status_code": response.status_code},
                    )
                    raise HttpError(
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                        is_retryable=False,
                    )
                last_error = HttpError(
                    f"HTTP {response.status_code}",
                    status_code=response.status_code,
                    is_retryable=True,
                )

            if attempt < cfg.max_retries:
                backoff = _calculate_backoff(
                    attempt, cfg.backoff_base_seconds, cfg.backoff_max_seconds
                )
                logger.info(
                    "Aguardando backoff antes de retry",
                    extra={"backoff_seconds": backoff, "next_attempt": attempt + 2},
                )
                await asyncio.sleep(backoff)

        logger.error(
            "Esgotou tentativas de retry",
            extra={"method": method, "url": url, "total_attempts": cfg.max_retries + 1},
        )
        raise last_error or HttpError("Falha após todos os retries")

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Executa GET com retry."""
        return await self.request("GET", url, **kwargs)

    async def post(
        self,
        url: str,
        json: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Executa POST com retry."""
        return await self.request("POST", url, json=json, **kwargs)

    async def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        """Executa DELETE com retry."""
        return await self.request("DELETE", url, **kwargs)


def create_http_client(
    settings: Settings,
    default_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpClient:
    """Factory para criar cliente HTTP do gateway conforme settings."""
    headers = {"User-Agent": f"{settings.service_name}/{settings.version}"}
    headers.update(default_headers or {})

    config = HttpClientConfig(
        base_url=(settings.evolution_api_base_url or "").rstrip("/"),
        timeout_seconds=settings.http_timeout_seconds,
        max_retries=settings.http_max_retries,
        backoff_base_seconds=settings.http_backoff_seconds,
        default_headers=headers,
    )
    return HttpClient(config, transport=transport)
