"""Blocking MySQL-protocol transport to one searchd node.

searchd speaks the MySQL wire protocol on its SphinxQL listener, so PyMySQL
does the socket work. Multi-statement support is switched on at handshake
time so that a whole batch travels in a single ``COM_QUERY``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import pymysql
from pymysql.constants import CLIENT
from pymysql.cursors import DictCursor

from .exceptions import NodeDownError
from .logger import get_logger

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

    from .config import ConnectionSettings, NodeDescriptor

logger: BoundLogger = get_logger(__name__)

type Row = dict[str, Any]
type ResultSet = list[Row]


class SearchConnection(Protocol):
    """What the query client needs from a live connection."""

    @property
    def error(self) -> str: ...

    @property
    def has_more_results(self) -> bool: ...

    def escape(self, text: str) -> str: ...

    def submit(self, batch: str) -> bool: ...

    def next_result_group(self) -> ResultSet | None: ...

    def close(self) -> None: ...


class Connector(Protocol):
    def __call__(self, node: NodeDescriptor, settings: ConnectionSettings) -> SearchConnection: ...


class SphinxQLConnection:
    """One PyMySQL connection with "current result, advance" iteration.

    After a successful :meth:`submit` the first result group is current and
    :attr:`has_more_results` is True. Each :meth:`next_result_group` call
    materializes the current group and advances; the flag drops once the
    server has no further group or a later statement of the batch failed.
    """

    __slots__ = ("_conn", "_cursor", "_error", "_pending")

    def __init__(self, conn: pymysql.connections.Connection) -> None:
        self._conn = conn
        self._cursor: DictCursor | None = None
        self._error = ""
        self._pending = False

    @property
    def error(self) -> str:
        """Error text of the last failed submit or advance."""
        return self._error

    @property
    def has_more_results(self) -> bool:
        return self._pending

    def escape(self, text: str) -> str:
        return self._conn.escape_string(text)

    def submit(self, batch: str) -> bool:
        """Send the batch; True when the server accepted its first statement."""
        self._error = ""
        if self._cursor is not None:
            self._cursor.close()
        self._cursor = self._conn.cursor(DictCursor)

        try:
            self._cursor.execute(batch)
        except pymysql.MySQLError as e:
            self._fail(e)
            return False

        self._pending = True
        return True

    def next_result_group(self) -> ResultSet | None:
        """Materialize the current result group and advance.

        Returns ``None`` when the current statement returned no result set.
        """
        if not self._pending or self._cursor is None:
            return None

        rows: ResultSet | None = None
        if self._cursor.description is not None:
            rows = [dict(row) for row in self._cursor.fetchall()]

        try:
            self._pending = bool(self._cursor.nextset())
        except pymysql.MySQLError as e:
            self._fail(e)

        return rows

    def close(self) -> None:
        self._pending = False
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None
        if self._conn.open:
            self._conn.close()

    def _fail(self, exc: pymysql.MySQLError) -> None:
        self._pending = False
        # PyMySQL errors carry (errno, message)
        self._error = str(exc.args[1]) if len(exc.args) >= 2 else str(exc)


def connect_node(node: NodeDescriptor, settings: ConnectionSettings) -> SphinxQLConnection:
    """Open a connection to one node.

    Raises
    ------
    NodeDownError
        If the node refuses or fails the handshake.
    """
    try:
        conn = pymysql.connect(
            host=node.host,
            port=node.port,
            user="",
            password="",
            charset=settings.charset,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
            client_flag=CLIENT.MULTI_STATEMENTS,
            autocommit=True,
        )
    except pymysql.MySQLError as e:
        raise NodeDownError(node.host, node.port, str(e)) from e

    logger.debug("Connected to Sphinx node", host=node.host, port=node.port)
    return SphinxQLConnection(conn)
