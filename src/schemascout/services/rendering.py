"""
Renderer-facing interface.

Renderers (force layouts, canvas/WebGL views) live outside this package;
they only need to implement GraphRenderer. `filter_graph` applies the
datatype / disconnected-class filters renderers expose to users.
"""

from typing import Optional, Protocol, runtime_checkable

from schemascout.core.schemas import Node, NodeType, Property

DATATYPE_NODE_TYPES = (NodeType.TYPE, NodeType.DATATYPE_PROPERTY)


@runtime_checkable
class GraphRenderer(Protocol):
    """Consumer of the node and property collections."""

    def set_data(self, nodes: dict[str, Node], properties: list[Property]) -> None:
        ...

    def apply_filters(
        self,
        datatypes: Optional[bool] = None,
        disconnected: Optional[bool] = None,
    ) -> None:
        ...

    def set_settings(
        self,
        gravity: Optional[float] = None,
        distance: Optional[float] = None,
    ) -> None:
        ...


def filter_graph(
    nodes: dict[str, Node],
    properties: list[Property],
    datatypes: bool = True,
    disconnected: bool = True,
) -> tuple[list[Node], list[Property]]:
    """
    Apply the display filters.

    Args:
        nodes: Node mapping
        properties: Edge list
        datatypes: Keep datatype nodes and their edges
        disconnected: Keep class nodes that have no edge

    Returns:
        (visible nodes, visible edges)
    """
    visible_props = list(properties)
    if not datatypes:
        hidden = {n.id for n in nodes.values() if n.type in DATATYPE_NODE_TYPES}
        visible_props = [
            p for p in visible_props
            if p.target not in hidden and p.source not in hidden and p.intermediate not in hidden
        ]

    connected: set[str] = set()
    for prop in visible_props:
        connected.update((prop.source, prop.intermediate, prop.target))

    visible_nodes = []
    for node in nodes.values():
        if not datatypes and node.type in DATATYPE_NODE_TYPES:
            continue
        if not disconnected and node.type == NodeType.CLASS and node.id not in connected:
            continue
        visible_nodes.append(node)

    return visible_nodes, visible_props


class SummaryRenderer:
    """
    Headless renderer keeping the latest collections and visible counts.

    Used by the CLI for live progress and by tests as a renderer double.
    """

    def __init__(self):
        self.nodes: dict[str, Node] = {}
        self.properties: list[Property] = []
        self.filters = {"datatypes": True, "disconnected": True}
        self.settings: dict[str, float] = {"gravity": 0.1, "distance": 100.0}
        self.updates = 0

    def set_data(self, nodes: dict[str, Node], properties: list[Property]) -> None:
        self.nodes = nodes
        self.properties = properties
        self.updates += 1

    def apply_filters(
        self,
        datatypes: Optional[bool] = None,
        disconnected: Optional[bool] = None,
    ) -> None:
        if datatypes is not None:
            self.filters["datatypes"] = datatypes
        if disconnected is not None:
            self.filters["disconnected"] = disconnected

    def set_settings(
        self,
        gravity: Optional[float] = None,
        distance: Optional[float] = None,
    ) -> None:
        if gravity is not None:
            self.settings["gravity"] = gravity
        if distance is not None:
            self.settings["distance"] = distance

    def visible(self) -> tuple[list[Node], list[Property]]:
        return filter_graph(self.nodes, self.properties, **self.filters)

    def summary(self) -> dict[str, int]:
        nodes, properties = self.visible()
        return {
            "classes": sum(1 for n in nodes if n.type == NodeType.CLASS),
            "datatypes": sum(1 for n in nodes if n.type == NodeType.TYPE),
            "edges": len(properties),
        }
