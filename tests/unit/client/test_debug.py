"""Unit tests for the instrumented debug client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sphinxql.client.debug import DebugQueryClient
from sphinxql.client.query import QueryClientProtocol

if TYPE_CHECKING:
    from sphinxql.config import NodeDescriptor


class TestDebugQueryClient:
    """Tests for batch recording."""

    def test_satisfies_client_protocol(self, node: NodeDescriptor, connector: Any) -> None:
        client: QueryClientProtocol = DebugQueryClient(node, connector=connector)
        assert client.get_error() == ""

    def test_records_successful_batch(self, node: NodeDescriptor, connector: Any) -> None:
        connector.groups = [[{"id": 1}, {"id": 2}], [{"Variable_name": "total", "Value": "2"}]]
        client = DebugQueryClient(node, connector=connector)
        client.connect()

        client.add_query("SELECT id FROM idx")
        client.add_query("SHOW META")
        results = client.multi_query()

        assert results is not None and len(results) == 2
        [record] = client.executed_batches
        assert record.statements == ("SELECT id FROM idx;", "SHOW META;")
        assert record.result_row_counts == (2, 1)
        assert record.error == ""
        assert record.host == "sphinx-1"
        assert record.elapsed_s >= 0

    def test_records_rejected_batch(self, node: NodeDescriptor, connector: Any) -> None:
        client = DebugQueryClient(node, connector=connector)
        client.connect()
        connector.connections[0].reject_with = "syntax error"

        assert client.query("SELEKT 1") is None

        [record] = client.executed_batches
        assert record.result_row_counts is None
        assert record.error == "syntax error"

    def test_behaves_like_query_client(self, node: NodeDescriptor, connector: Any) -> None:
        connector.groups = [[{"id": 5}]]
        client = DebugQueryClient(node, connector=connector)
        client.connect()

        assert client.query("SELECT id FROM idx WHERE id = :id", {":id": 5}) == [{"id": 5}]
        assert connector.connections[0].submitted == ["SELECT id FROM idx WHERE id = 5;"]
        assert client.pending_statements == ()
