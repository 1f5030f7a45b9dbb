"""
Relation discovery between class pairs and between classes and datatypes.

Also infers rdfs:subClassOf edges from instance overlap.
"""

import asyncio
from typing import Optional

import structlog

from schemascout.core.schemas import (
    CommentRow,
    CommonInstanceRow,
    LabelRow,
    Node,
    NodeType,
    PredicateRow,
)
from schemascout.extractors.base import BaseExtractor
from schemascout.graph.properties import PLACEHOLDER_PROP_URI, SUBCLASS_OF_URI
from schemascout.sparql import queries

logger = structlog.get_logger(__name__)


class RelationExtractor(BaseExtractor):
    """
    Discovers the predicates linking node pairs.

    Features:
    - Exhaustive pagination with doubling page size
    - One synthetic intermediate node per (source, target) pair
    - Subclass inference from shared instance counts
    - Predicate label enrichment
    """

    async def request_class_class_relation(
        self,
        origin_id: str,
        target_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> None:
        """
        Discover every predicate linking instances of two classes.

        Args:
            origin_id: Source class node id
            target_id: Target class node id
            limit: Initial page size (default from settings)
            offset: Initial offset
        """
        origin_uri = self.nodes.get_uri_by_id(origin_id)
        target_uri = self.nodes.get_uri_by_id(target_id)
        if not origin_uri or not target_uri:
            return

        async def handle_page(rows: list[PredicateRow], page_offset: int) -> None:
            label_requests = []
            for row in rows:
                intermediate_id = self._intermediate_for(origin_id, target_id, row.prop)
                self.properties.add_property(origin_id, intermediate_id, target_id, row.prop)
                label_requests.append(self.request_property_label(row.prop))
            await asyncio.gather(*label_requests)

        await self._paginate(
            lambda page_limit, page_offset: queries.get_unordered_class_class_relation_query(
                origin_uri, target_uri, page_limit, page_offset
            ),
            PredicateRow,
            handle_page,
            limit or self.settings.relation_page_limit,
            offset,
            origin=origin_uri,
            target=target_uri,
        )

    def _intermediate_for(self, origin_id: str, target_id: str, uri: str) -> str:
        intermediate_id = self.properties.get_intermediate_id(origin_id, target_id)
        if not intermediate_id:
            return self.nodes.add_node(
                Node(
                    uri=uri,
                    type=NodeType.PROPERTY,
                    value=1,
                    is_loop_node=origin_id == target_id,
                )
            )

        node = self.nodes.get_by_id(intermediate_id)
        if node is not None and node.uri == PLACEHOLDER_PROP_URI:
            self.nodes.set_uri(intermediate_id, uri)
        return intermediate_id

    async def request_class_type_relation(
        self,
        class_id: str,
        intermediate_id: str,
        type_id: str,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> None:
        """
        Discover the predicates whose values on instances of a class carry a
        given datatype. The first predicate found replaces the placeholder
        on the intermediate node and on the edge.
        """
        class_uri = self.nodes.get_uri_by_id(class_id)
        type_uri = self.nodes.get_uri_by_id(type_id)
        if not class_uri or not type_uri:
            return

        start_offset = offset

        async def handle_page(rows: list[PredicateRow], page_offset: int) -> None:
            label_requests = []
            for i, row in enumerate(rows):
                if page_offset == start_offset and i == 0:
                    self.nodes.set_uri(intermediate_id, row.prop)
                self.properties.add_property(class_id, intermediate_id, type_id, row.prop)
                label_requests.append(self.request_property_label(row.prop))
            await asyncio.gather(*label_requests)

        await self._paginate(
            lambda page_limit, page_offset: queries.get_unordered_class_type_relation_query(
                class_uri, type_uri, page_limit, page_offset
            ),
            PredicateRow,
            handle_page,
            limit or self.settings.relation_page_limit,
            offset,
            class_uri=class_uri,
            datatype=type_uri,
        )

    async def request_class_equality(self, id1: str, id2: str) -> None:
        """
        Infer a subclass edge from the number of shared instances.

        When every instance of one class is also an instance of the other
        (and the other is strictly larger), the smaller class is asserted
        as rdfs:subClassOf the larger one. Equal counts assert nothing.
        """
        uri1 = self.nodes.get_uri_by_id(id1)
        uri2 = self.nodes.get_uri_by_id(id2)
        if not uri1 or not uri2 or id1 == id2:
            return

        rows = await self._select(
            queries.get_number_of_common_instances_query(uri1, uri2),
            CommonInstanceRow,
            first=uri1,
            second=uri2,
        )
        if not rows:
            return

        common = rows[0].common_instance_count
        if common <= 0:
            return

        count1 = self.nodes.get_instance_count_by_id(id1)
        count2 = self.nodes.get_instance_count_by_id(id2)

        if common == count1 and common < count2:
            self._add_subclass_edge(id1, id2)
        elif common == count2 and common < count1:
            self._add_subclass_edge(id2, id1)

    def _add_subclass_edge(self, sub_id: str, super_id: str) -> None:
        # Both orderings of a pair run the overlap check; reuse the pair's node
        intermediate_id = self.properties.get_intermediate_id(sub_id, super_id)
        if not intermediate_id:
            intermediate_id = self.nodes.add_node(
                Node(
                    uri=SUBCLASS_OF_URI,
                    type=NodeType.PROPERTY,
                    name="Subclass of",
                    value=1,
                )
            )
        self.properties.add_property(sub_id, intermediate_id, super_id, SUBCLASS_OF_URI)
        logger.debug("Subclass inferred", sub=sub_id, super=super_id)

    async def request_property_label(self, uri: str) -> None:
        rows = await self._select(
            queries.get_label_query(uri, self.label_language),
            LabelRow,
            uri=uri,
        )
        if rows:
            self.properties.insert_value(uri, "name", rows[0].label)
        if self.settings.fetch_comments:
            await self.request_property_comment(uri)

    async def request_property_comment(self, uri: str) -> None:
        rows = await self._select(queries.get_comment_query(uri), CommentRow, uri=uri)
        if rows:
            self.properties.insert_value(uri, "comment", rows[0].comment)
