"""Query client bound to one searchd node.

Statements are queued with :meth:`QueryClient.add_query` and sent together
by :meth:`QueryClient.multi_query` in a single round trip; the server
answers with one result group per statement, read back in order.

Usage
-----
>>> with QueryClient(node) as client:
...     client.add_query("SELECT id FROM products WHERE MATCH(:q)", {":q": "red shoes"})
...     client.add_query("SHOW META")
...     hits, meta = client.multi_query()
...
...     top = client.query("SELECT id FROM products WHERE category_id = :c LIMIT 5", {":c": 12})
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Protocol, Self

from ..config import ConnectionSettings
from ..core.enums import ClientState
from ..exceptions import ClientNotConnectedError, ConnectivityError
from ..logger import get_logger
from ..transport import connect_node
from .substitution import substitute

if TYPE_CHECKING:
    from types import TracebackType

    from structlog.stdlib import BoundLogger

    from ..config import NodeDescriptor
    from ..transport import Connector, ResultSet, SearchConnection
    from .substitution import Parameters

logger: BoundLogger = get_logger(__name__)

STATEMENT_TERMINATOR = ";"
_TRAILING_TERMINATORS = re.compile(r"[;\s]+\Z")


class QueryClientProtocol(Protocol):
    """Operations every query client variant offers."""

    @property
    def state(self) -> ClientState: ...

    def connect(self) -> None: ...

    def close(self) -> None: ...

    def add_query(self, statement: str, parameters: Parameters | None = None) -> None: ...

    def multi_query(self) -> list[ResultSet] | None: ...

    def query(self, statement: str, parameters: Parameters | None = None) -> ResultSet | None: ...

    def get_error(self) -> str: ...


class QueryClient:
    """Read-only SphinxQL client holding one connection to one node.

    The client moves from UNCONNECTED to CONNECTED on :meth:`connect`. A
    failed connect leaves it FAILED for good: discard it and resolve a node
    again rather than retrying in place.

    Parameters
    ----------
    node : NodeDescriptor
        The node this client talks to for its whole lifetime.
    connection_settings : ConnectionSettings | None
        Transport timeouts and charset.
    connector : Connector
        Opens the connection; replaceable in tests.
    """

    def __init__(
        self,
        node: NodeDescriptor,
        connection_settings: ConnectionSettings | None = None,
        connector: Connector = connect_node,
    ) -> None:
        self._node = node
        self._connection_settings = connection_settings or ConnectionSettings()
        self._connector = connector
        self._connection: SearchConnection | None = None
        self._state = ClientState.UNCONNECTED
        self._pending: list[str] = []
        self._last_error = ""

    def __enter__(self) -> Self:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and exc_val is not None:
            logger.error(
                "QueryClient context manager exiting with exception",
                exc_type=exc_type.__name__,
                exc_val=str(exc_val),
            )
        self.close()

    @property
    def node(self) -> NodeDescriptor:
        return self._node

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def pending_statements(self) -> tuple[str, ...]:
        """Statements queued since the last dispatch, already substituted."""
        return tuple(self._pending)

    @property
    def connection(self) -> SearchConnection:
        """The active connection.

        Raises
        ------
        ClientNotConnectedError
            If :meth:`connect` has not succeeded or the client was closed.
        """
        if self._connection is None:
            msg = f"Client for {self._node.address} is {self._state}. Call connect() first."
            raise ClientNotConnectedError(msg)
        return self._connection

    def connect(self) -> None:
        """Open the connection to the bound node.

        Calling it again on a connected client does nothing.

        Raises
        ------
        NodeDownError
            If the node refuses the connection. The client becomes FAILED.
        ClientNotConnectedError
            If the client already failed or was closed.
        """
        if self._state is ClientState.CONNECTED:
            return
        if self._state is not ClientState.UNCONNECTED:
            msg = f"Client for {self._node.address} is {self._state}; discard it and resolve a node again."
            raise ClientNotConnectedError(msg)

        try:
            self._connection = self._connector(self._node, self._connection_settings)
        except ConnectivityError as e:
            self._state = ClientState.FAILED
            self._last_error = str(e)
            logger.error("Sphinx connection failed", host=self._node.host, port=self._node.port, error=str(e))
            raise

        self._state = ClientState.CONNECTED
        logger.info("Sphinx client connected", host=self._node.host, port=self._node.port)

    def close(self) -> None:
        """Close the connection and drop any queued statements."""
        self._pending.clear()
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            self._state = ClientState.CLOSED
            logger.info("Sphinx client closed", host=self._node.host, port=self._node.port)

    def add_query(self, statement: str, parameters: Parameters | None = None) -> None:
        """Queue a statement for the next :meth:`multi_query`.

        Trailing ``;`` are dropped since the batch supplies its own
        separator. Text parameters are escaped with the connection's
        escaping rules, so they need a connected client; numbers and None
        do not.
        """
        statement = _TRAILING_TERMINATORS.sub("", statement)
        self._pending.append(substitute(statement, parameters, self._escape) + STATEMENT_TERMINATOR)

    def multi_query(self) -> list[ResultSet] | None:
        """Send every queued statement in one request.

        Returns
        -------
        list[ResultSet] | None
            One result set per statement that produced one, in submission
            order. ``None`` when the server rejected the batch outright; the
            reason is logged and available from :meth:`get_error`. When a
            later statement fails, the result sets read before it are
            returned, so do not assume index alignment with the statements
            after a failure.
        """
        batch = "".join(self._pending)
        self._pending.clear()

        if not batch:
            logger.warning("multi_query called with no queued statements", host=self._node.host)
            return []

        connection = self.connection
        if not connection.submit(batch):
            self._log_error(connection.error)
            return None

        results: list[ResultSet] = []
        while connection.has_more_results:
            rows = connection.next_result_group()
            if rows is not None:
                results.append(rows)

        if connection.error:
            self._log_error(connection.error)

        return results

    def query(self, statement: str, parameters: Parameters | None = None) -> ResultSet | None:
        """Run one statement and return its result set.

        If several statements were already queued they are sent too, and
        only the last result set comes back. ``None`` means nothing was
        produced (see :meth:`get_error`).
        """
        self.add_query(statement, parameters)
        results = self.multi_query()
        if not results:
            return None
        return results[-1]

    def get_error(self) -> str:
        """Last error reported by the connection, or the connect failure."""
        if self._connection is not None:
            return self._connection.error
        return self._last_error

    def _escape(self, text: str) -> str:
        return self.connection.escape(text)

    def _log_error(self, error: str) -> None:
        self._last_error = error
        logger.error("SphinxQL query failed", error=error, host=self._node.host, port=self._node.port)
