"""Unit tests for the PyMySQL-backed node transport."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pymysql
import pytest
from pymysql.constants import CLIENT

from sphinxql.config import ConnectionSettings, NodeDescriptor
from sphinxql.exceptions import NodeDownError
from sphinxql.transport import SphinxQLConnection, connect_node

# =============================================================================
# FIXTURES
# =============================================================================


def make_cursor(groups: list[list[dict[str, object]] | None]) -> MagicMock:
    """Build a cursor that walks ``groups``; ``None`` is a statement without rows."""
    cursor = MagicMock()
    state = {"index": 0}

    def current() -> list[dict[str, object]] | None:
        return groups[state["index"]]

    def description() -> tuple[tuple[str], ...] | None:
        rows = current()
        return None if rows is None else (("id",),)

    def nextset() -> bool | None:
        if state["index"] + 1 >= len(groups):
            return None
        state["index"] += 1
        return True

    type(cursor).description = property(lambda _: description())
    cursor.fetchall.side_effect = lambda: list(current() or [])
    cursor.nextset.side_effect = nextset
    return cursor


@pytest.fixture
def raw_conn() -> MagicMock:
    conn = MagicMock()
    conn.open = True
    conn.escape_string.side_effect = lambda text: text.replace("'", "\\'")
    return conn


# =============================================================================
# TEST CLASSES
# =============================================================================


class TestSphinxQLConnection:
    """Tests for batch submission and result-group iteration."""

    def test_iterates_every_result_group(self, raw_conn: MagicMock) -> None:
        cursor = make_cursor([[{"id": 1}, {"id": 2}], None, [{"id": 3}]])
        raw_conn.cursor.return_value = cursor
        connection = SphinxQLConnection(raw_conn)

        assert connection.submit("SELECT 1; SET x=1; SELECT 3")
        cursor.execute.assert_called_once_with("SELECT 1; SET x=1; SELECT 3")

        groups = []
        while connection.has_more_results:
            groups.append(connection.next_result_group())

        assert groups == [[{"id": 1}, {"id": 2}], None, [{"id": 3}]]
        assert connection.error == ""

    def test_first_statement_error_fails_submit(self, raw_conn: MagicMock) -> None:
        cursor = MagicMock()
        cursor.execute.side_effect = pymysql.err.ProgrammingError(1064, "sphinxql: syntax error")
        raw_conn.cursor.return_value = cursor
        connection = SphinxQLConnection(raw_conn)

        assert connection.submit("SELEKT") is False
        assert connection.has_more_results is False
        assert connection.error == "sphinxql: syntax error"

    def test_later_statement_error_stops_iteration(self, raw_conn: MagicMock) -> None:
        cursor = make_cursor([[{"id": 1}], [{"id": 2}]])
        cursor.nextset.side_effect = pymysql.err.ProgrammingError(1064, "unknown index 'nope'")
        raw_conn.cursor.return_value = cursor
        connection = SphinxQLConnection(raw_conn)

        connection.submit("SELECT 1; SELECT * FROM nope")

        assert connection.next_result_group() == [{"id": 1}]
        assert connection.has_more_results is False
        assert connection.error == "unknown index 'nope'"
        assert connection.next_result_group() is None

    def test_submit_clears_previous_error(self, raw_conn: MagicMock) -> None:
        failing = MagicMock()
        failing.execute.side_effect = pymysql.err.OperationalError(2013, "Lost connection")
        raw_conn.cursor.side_effect = [failing, make_cursor([[]])]
        connection = SphinxQLConnection(raw_conn)

        connection.submit("SELECT 1")
        assert connection.error == "Lost connection"

        assert connection.submit("SELECT 1")
        assert connection.error == ""
        failing.close.assert_called_once()

    def test_escape_delegates_to_driver(self, raw_conn: MagicMock) -> None:
        assert SphinxQLConnection(raw_conn).escape("it's") == "it\\'s"

    def test_close_closes_open_connection(self, raw_conn: MagicMock) -> None:
        raw_conn.cursor.return_value = make_cursor([[]])
        connection = SphinxQLConnection(raw_conn)
        connection.submit("SELECT 1")

        connection.close()

        raw_conn.close.assert_called_once()
        assert connection.has_more_results is False


class TestConnectNode:
    """Tests for opening a connection to one node."""

    def test_connects_with_multi_statements(self) -> None:
        node = NodeDescriptor(host="sphinx-1", port=9312)
        settings = ConnectionSettings(connect_timeout=2.0, read_timeout=5.0)

        with patch("sphinxql.transport.pymysql.connect") as connect:
            connection = connect_node(node, settings)

        assert isinstance(connection, SphinxQLConnection)
        kwargs = connect.call_args.kwargs
        assert kwargs["host"] == "sphinx-1"
        assert kwargs["port"] == 9312
        assert kwargs["connect_timeout"] == 2.0
        assert kwargs["read_timeout"] == 5.0
        assert kwargs["client_flag"] & CLIENT.MULTI_STATEMENTS

    def test_refused_connection_raises_node_down(self) -> None:
        node = NodeDescriptor(host="sphinx-1", port=9306)
        error = pymysql.err.OperationalError(2003, "Can't connect to MySQL server on 'sphinx-1'")

        with (
            patch("sphinxql.transport.pymysql.connect", side_effect=error),
            pytest.raises(NodeDownError, match=r"Sphinx \(sphinx-1:9306\) is down!") as exc_info,
        ):
            connect_node(node, ConnectionSettings())

        assert exc_info.value.host == "sphinx-1"
        assert exc_info.value.port == 9306
