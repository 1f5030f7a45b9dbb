"""
Class seeding: the entry point of an extraction.
"""

import asyncio
from typing import Iterable, Optional

import structlog

from config.settings import Settings
from schemascout.core.schemas import ClassRow, CommentRow, LabelRow, Node, NodeType
from schemascout.extractors.base import BaseExtractor
from schemascout.extractors.datatype_extractor import DataTypeExtractor
from schemascout.extractors.relation_extractor import RelationExtractor
from schemascout.graph.nodes import NodeGraph
from schemascout.graph.properties import PropertyGraph
from schemascout.sparql import queries
from schemascout.sparql.client import SparqlClient

logger = structlog.get_logger(__name__)


class ClassExtractor(BaseExtractor):
    """
    Seeds the graph with the most populated classes and fans out.

    For every seeded class the label and datatype discovery start at once;
    pairwise relation discovery starts after all classes are created. The
    call returns when every branch has finished or failed.
    """

    def __init__(
        self,
        client: SparqlClient,
        nodes: NodeGraph,
        properties: Optional[PropertyGraph] = None,
        relation_extractor: Optional[RelationExtractor] = None,
        datatype_extractor: Optional[DataTypeExtractor] = None,
        settings: Optional[Settings] = None,
        blacklist: Optional[Iterable[str]] = None,
    ):
        super().__init__(client, nodes, properties, settings)
        self.relation_extractor = relation_extractor
        self.datatype_extractor = datatype_extractor
        self.blacklist: set[str] = set(
            blacklist if blacklist is not None else self.settings.class_blacklist
        )

    async def request_classes(self) -> list[str]:
        """
        Run the full discovery starting from the class query.

        Returns:
            Ids of the seeded classes (existing class ids when the graph is
            already populated)
        """
        if len(self.nodes) > 0:
            return self.nodes.get_class_ids()

        limit = self.client.config.limit
        rows = await self._select(queries.get_class_query(limit, 0), ClassRow, limit=limit)
        if rows is None:
            self._log_progress("Class discovery failed.")
            return []
        if not rows:
            self._log_progress("No classes found.")
            return []

        self._log_progress(f"Found {len(rows)} classes. Requesting details...")

        class_ids: list[str] = []
        details: list[asyncio.Task] = []

        for row in rows:
            uri = row.class_uri
            if not uri.startswith("http") or uri in self.blacklist:
                logger.debug("Class skipped", uri=uri)
                continue

            class_id = self.nodes.add_node(
                Node(
                    uri=uri,
                    type=NodeType.CLASS,
                    name=row.label or "",
                    instance_count=row.instance_count,
                    value=row.instance_count,
                )
            )
            if class_id in class_ids:
                continue
            self.nodes.mark_seeded(class_id)
            class_ids.append(class_id)

            details.append(asyncio.create_task(self.request_class_label(class_id, uri)))
            if self.datatype_extractor is not None:
                details.append(
                    asyncio.create_task(self.datatype_extractor.request_referring_types(class_id))
                )
            if self.settings.fetch_comments:
                details.append(asyncio.create_task(self.request_class_comment(class_id, uri)))

        self._log_progress("Discovering relationships between classes...")
        await self.discover_relations(class_ids)
        await asyncio.gather(*details)
        self._log_progress("Discovery complete.")

        return class_ids

    async def discover_relations(self, class_ids: list[str]) -> None:
        """Relation and overlap discovery for every ordered pair of distinct classes."""
        if self.relation_extractor is None:
            return

        pending = []
        for origin_id in class_ids:
            for target_id in class_ids:
                if origin_id == target_id:
                    continue
                pending.append(self.relation_extractor.request_class_class_relation(origin_id, target_id))
                pending.append(self.relation_extractor.request_class_equality(origin_id, target_id))

        logger.info("Discovering relations", classes=len(class_ids), queries=len(pending))
        await asyncio.gather(*pending)

    async def request_class_label(self, class_id: str, uri: str) -> None:
        rows = await self._select(
            queries.get_label_query(uri, self.label_language),
            LabelRow,
            uri=uri,
        )
        if rows is None:
            return
        if rows:
            self.nodes.insert_label(class_id, rows[0].label)
        else:
            await self.request_class_skos_label(class_id, uri)

    async def request_class_skos_label(self, class_id: str, uri: str) -> None:
        rows = await self._select(
            queries.get_preferred_label_query(uri, self.label_language),
            LabelRow,
            uri=uri,
        )
        if rows:
            self.nodes.insert_label(class_id, rows[0].label)

    async def request_class_comment(self, class_id: str, uri: str) -> None:
        rows = await self._select(queries.get_comment_query(uri), CommentRow, uri=uri)
        if rows:
            self.nodes.insert_comment(class_id, rows[0].comment)
