"""
Base class for extractors.

Provides the per-query failure boundary and the pagination loop shared by
every discovery phase.
"""

from typing import Any, Awaitable, Callable, Optional

import structlog

from config.settings import Settings, get_settings
from schemascout.core.exceptions import QueryCancelledError, QueryError
from schemascout.core.events import EXTRACTION_LOG
from schemascout.core.schemas import RowT, parse_rows
from schemascout.graph.nodes import NodeGraph
from schemascout.graph.properties import PropertyGraph
from schemascout.sparql.client import SparqlClient

logger = structlog.get_logger(__name__)

PageHandler = Callable[[list[Any], int], Awaitable[None]]
QueryBuilder = Callable[[int, int], str]


class BaseExtractor:
    """
    Common plumbing for extractors.

    Every query goes through `_fetch`: a failure or cancellation is logged
    and turned into None, so one failing branch never aborts its siblings.
    """

    def __init__(
        self,
        client: SparqlClient,
        nodes: NodeGraph,
        properties: Optional[PropertyGraph] = None,
        settings: Optional[Settings] = None,
    ):
        self.client = client
        self.nodes = nodes
        self.properties = properties
        self.settings = settings or get_settings()

    @property
    def name(self) -> str:
        """Return the class name as the extractor name."""
        return self.__class__.__name__

    @property
    def label_language(self) -> str:
        return self.client.config.label_language

    def _log_progress(self, message: str) -> None:
        logger.info(message, extractor=self.name)
        self.nodes.emit(EXTRACTION_LOG, message)

    async def _fetch(self, query: str, **context: Any) -> Optional[list[dict[str, Any]]]:
        """Run a query; None when it failed or was abandoned."""
        try:
            return await self.client.query(query)
        except QueryCancelledError:
            logger.debug("Query abandoned", extractor=self.name, **context)
            return None
        except QueryError as e:
            logger.warning(
                "Query failed, branch skipped",
                extractor=self.name,
                error=e.message,
                status=e.status_code,
                **context,
            )
            return None

    async def _select(self, query: str, row_model: type[RowT], **context: Any) -> Optional[list[RowT]]:
        bindings = await self._fetch(query, **context)
        if bindings is None:
            return None
        return parse_rows(row_model, bindings)

    async def _paginate(
        self,
        build_query: QueryBuilder,
        row_model: type[RowT],
        handle_page: PageHandler,
        limit: int,
        offset: int = 0,
        **context: Any,
    ) -> int:
        """
        Fetch pages until one comes back short.

        A full page (exactly `limit` bindings) means more rows may exist:
        the next request doubles the limit and advances the offset by the
        page size. Stops on a short page, a failed query, or after
        `max_pagination_rounds` pages.

        Returns:
            Number of pages fetched successfully
        """
        rounds = 0
        while True:
            bindings = await self._fetch(build_query(limit, offset), limit=limit, offset=offset, **context)
            if bindings is None:
                break

            await handle_page(parse_rows(row_model, bindings), offset)
            rounds += 1

            if len(bindings) < limit:
                break
            if rounds >= self.settings.max_pagination_rounds:
                logger.warning(
                    "Pagination cap reached",
                    extractor=self.name,
                    rounds=rounds,
                    offset=offset,
                    **context,
                )
                break

            offset += len(bindings)
            limit *= 2

        return rounds

    def __repr__(self) -> str:
        return f"<{self.name}>"
