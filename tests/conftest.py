"""
Shared fixtures for docgraph tests.

- RecordingClient: stands in for Neo4jClient above the driver. Every
  statement is recorded with its parameters and answered from a queue of
  canned rows; results still pass through the real ``fetch_all`` so the
  normalization boundary is exercised.
- FakeDriver / FakeSession: stand in for the neo4j AsyncDriver below
  Neo4jClient, for session-lifecycle and error-translation tests.
"""

from __future__ import annotations

from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from docgraph.core.neo4j_client import fetch_all


# =============================================================================
# CLIENT-LEVEL FAKE
# =============================================================================


class FakeResult:
    def __init__(self, rows: list[dict[str, Any]]):
        self._rows = rows

    async def data(self) -> list[dict[str, Any]]:
        return self._rows


class FakeTx:
    def __init__(self, client: "RecordingClient", mode: str):
        self.client = client
        self.mode = mode

    async def run(self, query: str, parameters: Optional[dict[str, Any]] = None):
        self.client.calls.append((self.mode, query, parameters or {}))
        return FakeResult(self.client.next_rows())


class RecordingClient:
    def __init__(self, responses: Optional[list[list[dict[str, Any]]]] = None):
        self.responses = list(responses or [])
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    def queue(self, *responses: list[dict[str, Any]]) -> "RecordingClient":
        self.responses.extend(responses)
        return self

    def next_rows(self) -> list[dict[str, Any]]:
        return self.responses.pop(0) if self.responses else []

    async def read_transaction(self, work, *args, **kwargs):
        return await work(FakeTx(self, "read"), *args, **kwargs)

    async def write_transaction(self, work, *args, **kwargs):
        return await work(FakeTx(self, "write"), *args, **kwargs)

    async def execute_read(self, query, parameters=None):
        return await self.read_transaction(fetch_all, query, parameters)

    async def execute_write(self, query, parameters=None):
        return await self.write_transaction(fetch_all, query, parameters)

    @property
    def queries(self) -> list[str]:
        return [query for _, query, _ in self.calls]

    @property
    def modes(self) -> list[str]:
        return [mode for mode, _, _ in self.calls]

    @property
    def last_parameters(self) -> dict[str, Any]:
        return self.calls[-1][2]


@pytest.fixture
def recording_client() -> RecordingClient:
    return RecordingClient()


# =============================================================================
# DRIVER-LEVEL FAKE
# =============================================================================


class FakeSession:
    def __init__(self, rows=None, error: Optional[Exception] = None):
        self.rows = rows or []
        self.error = error
        self.close = AsyncMock()
        self.access: list[str] = []

    async def _execute(self, mode, work, *args, **kwargs):
        self.access.append(mode)
        if self.error is not None:
            raise self.error
        tx = MagicMock()
        tx.run = AsyncMock(return_value=FakeResult(self.rows))
        return await work(tx, *args, **kwargs)

    async def execute_read(self, work, *args, **kwargs):
        return await self._execute("read", work, *args, **kwargs)

    async def execute_write(self, work, *args, **kwargs):
        return await self._execute("write", work, *args, **kwargs)


def make_driver(session: FakeSession) -> MagicMock:
    driver = MagicMock()
    driver.session = MagicMock(return_value=session)
    driver.close = AsyncMock()
    driver.verify_connectivity = AsyncMock()
    return driver
