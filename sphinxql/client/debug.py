from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from ..logger import get_logger
from ..transport import connect_node
from .query import QueryClient

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from ..config import ConnectionSettings, NodeDescriptor
    from ..transport import Connector, ResultSet

logger: BoundLogger = get_logger(__name__)


class ExecutedBatch(BaseModel):
    """What one dispatched batch sent and got back."""

    model_config = ConfigDict(frozen=True)

    host: str
    port: int
    statements: tuple[str, ...]
    result_row_counts: tuple[int, ...] | None = Field(description="Rows per result set; None when rejected")
    elapsed_s: float
    error: str = ""
    executed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DebugQueryClient(QueryClient):
    """Query client that records every batch it dispatches.

    Built instead of :class:`QueryClient` when debug mode is on. Records
    are kept in :attr:`executed_batches` for inspection and logged at
    debug level.
    """

    def __init__(
        self,
        node: NodeDescriptor,
        connection_settings: ConnectionSettings | None = None,
        connector: Connector = connect_node,
    ) -> None:
        super().__init__(node, connection_settings, connector)
        self.executed_batches: list[ExecutedBatch] = []

    def multi_query(self) -> list[ResultSet] | None:
        statements = self.pending_statements
        started = time.perf_counter()
        results = super().multi_query()
        elapsed_s = time.perf_counter() - started

        record = ExecutedBatch(
            host=self.node.host,
            port=self.node.port,
            statements=statements,
            result_row_counts=None if results is None else tuple(len(rows) for rows in results),
            elapsed_s=elapsed_s,
            error=self.get_error(),
        )
        self.executed_batches.append(record)
        logger.debug("SphinxQL batch executed", **record.model_dump(exclude={"executed_at"}))
        return results
