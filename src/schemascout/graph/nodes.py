"""
Node store for discovered classes, datatypes and property-intermediate nodes.

Owns id allocation and the class URI index. All mutations are synchronous
and broadcast the full node mapping on `nodes-changed`.
"""

from typing import Optional

import structlog

from schemascout.core.events import NODES_CHANGED, EventEmitter
from schemascout.core.schemas import DiscoveryState, Node, NodeType
from schemascout.ontology.namespaces import (
    DATATYPE_LABELS,
    GlobalPrefixes,
    local_name,
    namespace_of,
)
from schemascout.ontology.prefixes import PrefixRegistry

logger = structlog.get_logger(__name__)


class NodeGraph(EventEmitter):
    """
    Mutable store of discovered entities.

    Ids have the form `{type}{size}` where size is the store size at
    allocation time; ids are never reused within a session. At most one
    class node exists per class URI.
    """

    def __init__(
        self,
        prefixes: Optional[PrefixRegistry] = None,
        global_prefixes: Optional[GlobalPrefixes] = None,
    ):
        super().__init__()
        self.prefixes = prefixes or PrefixRegistry()
        self.global_prefixes = global_prefixes
        self._nodes: dict[str, Node] = {}
        self._class_uri_ids: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def set_global_prefixes(self, global_prefixes: GlobalPrefixes) -> None:
        self.global_prefixes = global_prefixes

    def get_friendly_name(self, uri: str) -> str:
        """Datatype label, then CURIE, then last URI segment."""
        if uri in DATATYPE_LABELS:
            return DATATYPE_LABELS[uri]
        if self.global_prefixes is not None:
            shortened = self.global_prefixes.shorten(uri)
            if shortened:
                return shortened
        return local_name(uri)

    # ═══════════════════════════════════════════════════════════════════════════════
    # CREATION
    # ═══════════════════════════════════════════════════════════════════════════════

    def add_node(self, node: Node) -> str:
        """
        Register a node and return its id.

        Class nodes are deduplicated by URI: adding a known class returns the
        existing id and changes nothing.
        """
        if node.type == NodeType.CLASS:
            existing_id = self._class_uri_ids.get(node.uri)
            if existing_id is not None:
                return existing_id

        node.id = f"{node.type.value}{len(self._nodes)}"
        if node.type == NodeType.CLASS:
            self._class_uri_ids[node.uri] = node.id

        if not node.name and node.uri:
            node.name = self.get_friendly_name(node.uri)

        self._nodes[node.id] = node

        if node.uri:
            self.prefixes.add_prefix(namespace_of(node.uri))

        self.emit(NODES_CHANGED, self._nodes)
        return node.id

    def add_datatype_for_class(self, node: Node, class_id: str) -> str:
        """
        Add a datatype node unless one with the same URI already exists.

        A datatype is rendered once for the whole graph, so an existing node
        means "no new node and no new edge": the empty string is returned.
        """
        for existing in self._nodes.values():
            if existing.type == NodeType.TYPE and existing.uri == node.uri:
                logger.debug(
                    "Datatype already present",
                    datatype=node.uri,
                    class_id=class_id,
                    existing_id=existing.id,
                )
                return ""
        return self.add_node(node)

    # ═══════════════════════════════════════════════════════════════════════════════
    # MUTATION
    # ═══════════════════════════════════════════════════════════════════════════════

    def insert_label(self, node_id: str, label: str) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.name = label
            self.emit(NODES_CHANGED, self._nodes)

    def insert_comment(self, node_id: str, comment: str) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.comment = comment
            self.emit(NODES_CHANGED, self._nodes)

    def set_uri(self, node_id: str, uri: str) -> None:
        """Rewrite a node's URI in place; the display name is re-derived."""
        node = self._nodes.get(node_id)
        if node is not None:
            node.uri = uri
            node.name = self.get_friendly_name(uri)
            self.emit(NODES_CHANGED, self._nodes)

    def clear_all(self) -> None:
        self._nodes.clear()
        self._class_uri_ids.clear()
        self.prefixes.clear()
        self.emit(NODES_CHANGED, self._nodes)

    # ═══════════════════════════════════════════════════════════════════════════════
    # DISCOVERY STATE
    # ═══════════════════════════════════════════════════════════════════════════════

    def mark_seeded(self, node_id: str) -> None:
        node = self._nodes.get(node_id)
        if node is not None and node.state == DiscoveryState.UNSEEDED:
            node.state = DiscoveryState.SEEDED

    def set_types_loaded(self, node_id: str) -> None:
        node = self._nodes.get(node_id)
        if node is not None:
            node.state = DiscoveryState.TYPES_DISCOVERED

    def get_types_loaded(self, node_id: str) -> bool:
        return self.get_discovery_state(node_id) == DiscoveryState.TYPES_DISCOVERED

    def get_discovery_state(self, node_id: str) -> Optional[DiscoveryState]:
        node = self._nodes.get(node_id)
        return node.state if node is not None else None

    # ═══════════════════════════════════════════════════════════════════════════════
    # LOOKUP
    # ═══════════════════════════════════════════════════════════════════════════════

    def get_nodes(self) -> dict[str, Node]:
        return self._nodes

    def get_by_id(self, node_id: str) -> Optional[Node]:
        return self._nodes.get(node_id)

    def get_uri_by_id(self, node_id: str) -> Optional[str]:
        node = self._nodes.get(node_id)
        return node.uri if node is not None else None

    def get_id_by_class_uri(self, uri: str) -> Optional[str]:
        return self._class_uri_ids.get(uri)

    def get_instance_count_by_id(self, node_id: str) -> int:
        node = self._nodes.get(node_id)
        return node.instance_count if node is not None else 0

    def get_class_ids(self) -> list[str]:
        return [n.id for n in self._nodes.values() if n.type == NodeType.CLASS]
