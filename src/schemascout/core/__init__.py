"""Core domain models, events and exceptions."""

from schemascout.core.events import EventEmitter
from schemascout.core.exceptions import (
    ConfigurationError,
    QueryCancelledError,
    QueryError,
    SchemaScoutError,
)
from schemascout.core.schemas import (
    DiscoveryState,
    FailedRequest,
    Node,
    NodeType,
    Property,
    PropertyEntry,
    RequestStatsSnapshot,
)

__all__ = [
    "EventEmitter",
    "ConfigurationError",
    "QueryCancelledError",
    "QueryError",
    "SchemaScoutError",
    "DiscoveryState",
    "FailedRequest",
    "Node",
    "NodeType",
    "Property",
    "PropertyEntry",
    "RequestStatsSnapshot",
]
