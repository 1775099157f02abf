"""Utilitários assíncronos para testes de sessão."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

from leadzap.domain.protocols.document_store import Document, DocumentStoreError
from leadzap.infra.document_store_memory import InMemoryDocumentStore


async def eventually(
    check: Callable[[], Awaitable[bool]] | Callable[[], bool],
    timeout: float = 2.0,
) -> None:
    """Aguarda até `check()` ser verdadeiro (falha após `timeout`)."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        result = check()
        if asyncio.iscoroutine(result):
            result = await result
        if result:
            return
        if loop.time() > deadline:
            raise AssertionError("condição não satisfeita dentro do timeout")
        await asyncio.sleep(0.005)


class SteppingClock:
    """Relógio determinístico: cada chamada avança `step`."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


class FlakyDocumentStore(InMemoryDocumentStore):
    """Store em memória com falhas injetáveis por operação."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_merge_paths: set[str] = set()
        self.fail_merge_suffixes: set[str] = set()
        self.fail_appends = False
        self.merge_calls: list[tuple[str, Document]] = []
        # Merges em paths com estes sufixos esperam `release_gate()`
        self.gated_suffixes: set[str] = set()
        self.gate_entered = asyncio.Event()
        self._gate = asyncio.Event()

    def release_gate(self) -> None:
        self.gated_suffixes.clear()
        self._gate.set()

    async def set_merge(self, path: str, fields: Document) -> None:
        self.merge_calls.append((path, dict(fields)))
        if any(path.endswith(s) for s in self.gated_suffixes):
            self.gate_entered.set()
            await self._gate.wait()
        if path in self.fail_merge_paths or any(path.endswith(s) for s in self.fail_merge_suffixes):
            raise DocumentStoreError("simulated merge failure")
        await super().set_merge(path, fields)

    async def append(self, collection_path: str, fields: Document) -> str:
        if self.fail_appends:
            raise DocumentStoreError("simulated append failure")
        return await super().append(collection_path, fields)
