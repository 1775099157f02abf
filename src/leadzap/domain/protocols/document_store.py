"""Contrato do armazenamento de documentos (get/merge/append/subscribe)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Any

Document = dict[str, Any]


class DocumentStoreError(Exception):
    """Erro ao ler ou gravar no armazenamento de documentos."""

    pass


class DocumentStore(ABC):
    """Contrato abstrato do armazenamento de documentos.

    Paths usam segmentos separados por "/": documentos em posições pares,
    coleções em posições ímpares (ex.: tenant/acme/conversations/5511...).
    Cada operação é atômica isoladamente; não há transação entre chamadas.
    """

    @abstractmethod
    async def get(self, path: str) -> Document | None:
        """Retorna o documento em `path`, ou None se não existir.

        Raises:
            DocumentStoreError: Em caso de falha de leitura
        """
        ...

    @abstractmethod
    async def set_merge(self, path: str, fields: Document) -> None:
        """Atualização parcial idempotente; cria o documento se ausente.

        Campos não mencionados em `fields` são preservados.

        Raises:
            DocumentStoreError: Em caso de falha de persistência
        """
        ...

    @abstractmethod
    async def append(self, collection_path: str, fields: Document) -> str:
        """Adiciona um registro à coleção e retorna o id gerado.

        Raises:
            DocumentStoreError: Em caso de falha de persistência
        """
        ...

    @abstractmethod
    async def list_documents(
        self,
        collection_path: str,
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        """Lista documentos de uma coleção (ordem ascendente por `order_by`)."""
        ...

    @abstractmethod
    def subscribe(self, path: str) -> AsyncIterator[Document | list[Document] | None]:
        """Stream ao vivo de um documento ou de uma coleção.

        Emite o snapshot corrente e depois um snapshot a cada alteração.
        Documento ausente é emitido como None; coleção como lista.
        """
        ...
