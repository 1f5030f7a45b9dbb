"""
Datatype discovery for classes.
"""

import asyncio
from typing import Optional

import structlog

from config.settings import Settings
from schemascout.core.schemas import Node, NodeType, ReferringTypeRow
from schemascout.extractors.base import BaseExtractor
from schemascout.extractors.relation_extractor import RelationExtractor
from schemascout.graph.nodes import NodeGraph
from schemascout.graph.properties import PLACEHOLDER_PROP_URI, PropertyGraph
from schemascout.sparql import queries
from schemascout.sparql.client import SparqlClient

logger = structlog.get_logger(__name__)


class DataTypeExtractor(BaseExtractor):
    """
    Finds the datatypes used by the values of a class's instances.

    Each new datatype gets one node for the whole graph, a placeholder
    datatype-property edge from the class, and a class-type relation query
    that replaces the placeholder with the real predicate.
    """

    def __init__(
        self,
        client: SparqlClient,
        nodes: NodeGraph,
        properties: PropertyGraph,
        relation_extractor: RelationExtractor,
        settings: Optional[Settings] = None,
    ):
        super().__init__(client, nodes, properties, settings)
        self.relation_extractor = relation_extractor

    async def request_referring_types(self, class_id: str) -> None:
        """Run datatype discovery for a class, at most once per class."""
        if self.nodes.get_types_loaded(class_id):
            return

        class_uri = self.nodes.get_uri_by_id(class_id)
        if not class_uri:
            return

        # Claimed before the first await so concurrent callers skip it
        self.nodes.set_types_loaded(class_id)

        rows = await self._select(
            queries.get_instance_referring_types_query(
                class_uri, self.settings.referring_types_limit
            ),
            ReferringTypeRow,
            class_uri=class_uri,
        )
        if not rows:
            return

        discoveries = []
        for row in rows:
            if not row.val_type.startswith("http"):
                continue

            type_id = self.nodes.add_datatype_for_class(
                Node(uri=row.val_type, type=NodeType.TYPE, value=1),
                class_id,
            )
            if not type_id:
                continue

            intermediate_id = self.nodes.add_node(
                Node(uri=PLACEHOLDER_PROP_URI, type=NodeType.DATATYPE_PROPERTY, value=1)
            )
            self.properties.add_property(class_id, intermediate_id, type_id, PLACEHOLDER_PROP_URI)
            discoveries.append(
                self.relation_extractor.request_class_type_relation(
                    class_id, intermediate_id, type_id
                )
            )

        logger.debug("Datatypes discovered", class_uri=class_uri, new=len(discoveries))
        await asyncio.gather(*discoveries)
