"""
Extraction session orchestrator.

Wires the request layer, the graph stores and the extractors for one
endpoint, and exposes the event/query surface renderers and UIs consume.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import httpx
import structlog

from config.settings import Settings, get_settings
from schemascout.core.events import (
    EXTRACTION_COMPLETE,
    EXTRACTION_LOG,
    NODES_CHANGED,
    PREFIXES_CHANGED,
    PROPERTIES_CHANGED,
    EventEmitter,
)
from schemascout.extractors.class_extractor import ClassExtractor
from schemascout.extractors.datatype_extractor import DataTypeExtractor
from schemascout.extractors.relation_extractor import RelationExtractor
from schemascout.graph.nodes import NodeGraph
from schemascout.graph.properties import PropertyGraph
from schemascout.ontology.namespaces import GlobalPrefixes
from schemascout.ontology.prefixes import PrefixRegistry
from schemascout.services.rendering import GraphRenderer, filter_graph
from schemascout.sparql.client import RequestConfig, SparqlClient
from schemascout.sparql.stats import RequestStats

logger = structlog.get_logger(__name__)


class ExtractionService:
    """
    One extraction session against one endpoint.

    Features:
    - Phase 1-3 discovery through the extractors
    - Change events for nodes, properties, prefixes and progress
    - Renderer attachment and filtered JSON snapshots
    - Best-effort stop (queued requests are abandoned)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the session.

        Args:
            config: Request configuration (built from settings if None)
            settings: Settings instance (default: cached settings)
            http_client: Preconfigured httpx client for the SparqlClient
        """
        self.settings = settings or get_settings()
        self.config = config or RequestConfig(settings=self.settings)
        self.stats = RequestStats()
        self.client = SparqlClient(self.config, self.stats, http_client=http_client)

        self.prefixes = PrefixRegistry()
        self.nodes = NodeGraph(self.prefixes, GlobalPrefixes())
        self.properties = PropertyGraph()

        self.relation_extractor = RelationExtractor(
            self.client, self.nodes, self.properties, settings=self.settings
        )
        self.datatype_extractor = DataTypeExtractor(
            self.client,
            self.nodes,
            self.properties,
            self.relation_extractor,
            settings=self.settings,
        )
        self.class_extractor = ClassExtractor(
            self.client,
            self.nodes,
            self.properties,
            relation_extractor=self.relation_extractor,
            datatype_extractor=self.datatype_extractor,
            settings=self.settings,
        )

        self._emitters: dict[str, EventEmitter] = {
            NODES_CHANGED: self.nodes,
            EXTRACTION_LOG: self.nodes,
            EXTRACTION_COMPLETE: self.nodes,
            PROPERTIES_CHANGED: self.properties,
            PREFIXES_CHANGED: self.prefixes,
        }

    def on(self, event: str, listener: Callable[[Any], None]) -> Callable[[], None]:
        """
        Subscribe to a produced event.

        Returns:
            Callable that removes the subscription
        """
        emitter = self._emitters.get(event)
        if emitter is None:
            raise ValueError(f"Unknown event: {event}")
        return emitter.on(event, listener)

    async def run(self) -> list[str]:
        """
        Run a complete extraction.

        Returns:
            Ids of the seeded classes
        """
        self.config.validate()
        endpoint = self.config.get_request_url()

        logger.info("Extraction started", endpoint=endpoint, class_limit=self.config.limit)
        self.nodes.emit(EXTRACTION_LOG, f"Requesting {self.config.limit} classes...")

        class_ids = await self.class_extractor.request_classes()

        logger.info(
            "Extraction finished",
            endpoint=endpoint,
            classes=len(class_ids),
            nodes=len(self.nodes),
            properties=len(self.properties),
            failed_requests=self.stats.failed,
        )
        self.nodes.emit(EXTRACTION_COMPLETE, endpoint)
        return class_ids

    def stop(self) -> int:
        """
        Abandon queued requests.

        Dispatched requests still complete and running branches may queue
        new ones afterwards.

        Returns:
            Number of requests abandoned
        """
        abandoned = self.client.clear_queue()
        self.nodes.emit(EXTRACTION_LOG, "Stopped.")
        return abandoned

    def reset(self) -> None:
        """Clear the whole graph so the next run starts from scratch."""
        self.nodes.clear_all()
        self.properties.clear_all()
        logger.info("Graph cleared")

    def attach_renderer(self, renderer: GraphRenderer) -> Callable[[], None]:
        """
        Push both collections to a renderer whenever either store changes.

        Returns:
            Callable that detaches the renderer
        """

        def push(_payload: Any) -> None:
            renderer.set_data(self.nodes.get_nodes(), self.properties.get_properties())

        detach_nodes = self.nodes.on(NODES_CHANGED, push)
        detach_properties = self.properties.on(PROPERTIES_CHANGED, push)

        def detach() -> None:
            detach_nodes()
            detach_properties()

        return detach

    def snapshot(self, datatypes: bool = True, disconnected: bool = True) -> dict[str, Any]:
        """
        JSON-ready view of the current graph.

        Args:
            datatypes: Include datatype nodes and their edges
            disconnected: Include class nodes without any edge
        """
        nodes, properties = filter_graph(
            self.nodes.get_nodes(),
            self.properties.get_properties(),
            datatypes=datatypes,
            disconnected=disconnected,
        )
        return {
            "endpoint": self.config.get_request_url(),
            "nodes": [node.model_dump(mode="json") for node in nodes],
            "properties": [prop.model_dump(mode="json") for prop in properties],
            "prefixes": [entry.model_dump(mode="json") for entry in self.prefixes.prefixes],
            "stats": self.stats.snapshot().model_dump(),
        }

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> ExtractionService:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
