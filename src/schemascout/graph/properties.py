"""
Edge store: one visual edge per ordered (source, target) pair.

Several predicates discovered between the same pair are merged into one
edge's `props`; a placeholder edge is replaced wholesale by the first real
predicate discovered for its pair.
"""

from typing import Any, Optional

import structlog

from schemascout.core.events import PROPERTIES_CHANGED, EventEmitter
from schemascout.core.schemas import Property, PropertyEntry
from schemascout.ontology.namespaces import RDFS

logger = structlog.get_logger(__name__)

PLACEHOLDER_PROP_URI = "http://my-placeholder-prop/unknown"
SUBCLASS_OF_URI = RDFS.subClassOf


def pair_key(source_id: str, target_id: str) -> str:
    return f"{source_id} - {target_id}"


class PropertyGraph(EventEmitter):
    """Mutable store of discovered relations between node pairs."""

    PLACEHOLDER_PROP_URI = PLACEHOLDER_PROP_URI

    def __init__(self):
        super().__init__()
        self._properties: list[Property] = []
        self._by_pair: dict[str, Property] = {}
        self._by_intermediate: dict[str, Property] = {}

    def __len__(self) -> int:
        return len(self._properties)

    def add_property(
        self,
        source_id: str,
        intermediate_id: str,
        target_id: str,
        uri: str,
        value: int = 1,
    ) -> Property:
        """
        Record a predicate between two nodes.

        Creates the pair's edge on first discovery, replaces a placeholder
        edge's identity, or appends a new predicate to an existing edge.

        Returns:
            The edge for the pair
        """
        key = pair_key(source_id, target_id)
        prop = self._by_pair.get(key)

        if prop is None:
            prop = Property(
                source=source_id,
                intermediate=intermediate_id,
                target=target_id,
                uri=uri,
                props=[PropertyEntry(uri=uri, value=value)],
            )
            self._properties.append(prop)
            self._by_pair[key] = prop
            self._by_intermediate[intermediate_id] = prop
        elif prop.uri == PLACEHOLDER_PROP_URI:
            prop.uri = uri
            prop.props = [PropertyEntry(uri=uri, value=value)]
        elif not any(entry.uri == uri for entry in prop.props):
            prop.props.append(PropertyEntry(uri=uri, value=value))

        self.emit(PROPERTIES_CHANGED, self._properties)
        return prop

    def get_properties(self) -> list[Property]:
        return self._properties

    def exists_between(self, source_id: str, target_id: str) -> Optional[str]:
        """Representative URI of the pair's edge, or None."""
        prop = self._by_pair.get(pair_key(source_id, target_id))
        return prop.uri if prop is not None else None

    def get_intermediate_id(self, source_id: str, target_id: str) -> str:
        """Intermediate node id of the pair's edge, or "" when none exists yet."""
        prop = self._by_pair.get(pair_key(source_id, target_id))
        return prop.intermediate if prop is not None else ""

    def get_by_intermediate_id(self, intermediate_id: str) -> Optional[Property]:
        return self._by_intermediate.get(intermediate_id)

    def insert_value(self, uri: str, key: str, value: Any) -> None:
        """
        Set an enrichment field on the first edge whose representative URI
        matches. Edges holding the predicate only as a secondary entry in
        `props` are left untouched.
        """
        prop = next((p for p in self._properties if p.uri == uri), None)
        if prop is None:
            logger.debug("No edge for enrichment", uri=uri, key=key)
            return
        setattr(prop, key, value)
        self.emit(PROPERTIES_CHANGED, self._properties)

    def clear_all(self) -> None:
        self._properties = []
        self._by_pair.clear()
        self._by_intermediate.clear()
        self.emit(PROPERTIES_CHANGED, self._properties)
