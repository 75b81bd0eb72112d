"""Query clients and the per-profile registry."""

from __future__ import annotations

from .debug import DebugQueryClient, ExecutedBatch
from .query import STATEMENT_TERMINATOR, QueryClient, QueryClientProtocol
from .registry import ClientFactory, ClientRegistry
from .substitution import format_number, format_value, substitute

__all__ = [
    "STATEMENT_TERMINATOR",
    "ClientFactory",
    "ClientRegistry",
    "DebugQueryClient",
    "ExecutedBatch",
    "QueryClient",
    "QueryClientProtocol",
    "format_number",
    "format_value",
    "substitute",
]
