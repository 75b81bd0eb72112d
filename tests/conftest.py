"""Shared fixtures: an in-memory stand-in for a searchd connection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from sphinxql.config import ConnectionSettings, NodeDescriptor, ProfileConfig
from sphinxql.exceptions import NodeDownError

if TYPE_CHECKING:
    from sphinxql.transport import ResultSet


class FakeConnection:
    """Answers batches from a scripted list of result groups.

    ``groups`` holds one entry per statement: a list of rows for a
    statement with a result set, ``None`` for one without, or a ``str``
    error message for a statement that fails.
    """

    def __init__(self, node: NodeDescriptor) -> None:
        self.node = node
        self.submitted: list[str] = []
        self.groups: list[ResultSet | str | None] = []
        self.reject_with: str | None = None
        self.closed = False
        self._error = ""
        self._queue: list[ResultSet | str | None] = []

    @property
    def error(self) -> str:
        return self._error

    @property
    def has_more_results(self) -> bool:
        return bool(self._queue)

    def escape(self, text: str) -> str:
        return text.replace("\\", "\\\\").replace("'", "\\'")

    def submit(self, batch: str) -> bool:
        self.submitted.append(batch)
        self._error = ""
        if self.reject_with is not None:
            self._error = self.reject_with
            self._queue = []
            return False
        self._queue = list(self.groups)
        if self._queue and isinstance(self._queue[0], str):
            self._error = self._queue[0]
            self._queue = []
            return False
        return True

    def next_result_group(self) -> ResultSet | None:
        current = self._queue.pop(0)
        if self._queue and isinstance(self._queue[0], str):
            self._error = self._queue[0]
            self._queue = []
        return current  # type: ignore[return-value]

    def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Connector double recording every connect attempt."""

    def __init__(self, down: set[str] | None = None) -> None:
        self.down = down or set()
        self.attempts: list[NodeDescriptor] = []
        self.connections: list[FakeConnection] = []
        self.groups: list[ResultSet | str | None] = []

    def __call__(self, node: NodeDescriptor, settings: ConnectionSettings) -> FakeConnection:
        self.attempts.append(node)
        if node.host in self.down:
            raise NodeDownError(node.host, node.port, "Connection refused")
        connection = FakeConnection(node)
        connection.groups = list(self.groups)
        self.connections.append(connection)
        return connection


@pytest.fixture
def node() -> NodeDescriptor:
    return NodeDescriptor(host="sphinx-1", port=9306, weight=1)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def balanced_profile() -> ProfileConfig:
    return ProfileConfig.model_validate(
        [
            {"host": "sphinx-1", "port": 9306, "weight": 3},
            {"host": "sphinx-2", "port": 9306, "weight": 1},
            {"host": "sphinx-3", "port": 9307, "weight": 0},
        ]
    )


@pytest.fixture
def make_connector() -> type[FakeConnector]:
    return FakeConnector
