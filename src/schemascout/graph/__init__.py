"""Mutable graph model accumulated during extraction."""

from schemascout.graph.nodes import NodeGraph
from schemascout.graph.properties import (
    PLACEHOLDER_PROP_URI,
    SUBCLASS_OF_URI,
    PropertyGraph,
)

__all__ = [
    "NodeGraph",
    "PropertyGraph",
    "PLACEHOLDER_PROP_URI",
    "SUBCLASS_OF_URI",
]
