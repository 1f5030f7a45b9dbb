"""
Concurrency-bounded SPARQL client.

Every query is queued FIFO; a dispatcher admits at most `concurrency`
requests at a time and waits `query_delay` milliseconds before sending each
one, which keeps burst-sensitive endpoints responsive. Completion of a
request immediately admits the next queued one.
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

import httpx
import structlog

from config.settings import Settings, get_settings
from schemascout.core.exceptions import (
    ConfigurationError,
    QueryCancelledError,
    QueryError,
)
from schemascout.core.schemas import FailedRequest
from schemascout.sparql.stats import RequestStats

logger = structlog.get_logger(__name__)

SPARQL_RESULTS_JSON = "application/sparql-results+json"


class CancellationToken:
    """Signals that the caller no longer wants a query's result."""

    def __init__(self):
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class RequestConfig:
    """
    Runtime-mutable request configuration.

    Seeded from Settings once; UI controls or CLI options may change any
    value afterwards and the client picks the change up on the next
    dispatch.
    """

    def __init__(
        self,
        endpoint_url: Optional[str] = None,
        limit: Optional[int] = None,
        label_language: Optional[str] = None,
        query_delay: Optional[int] = None,
        concurrency: Optional[int] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the request configuration.

        Args:
            endpoint_url: SPARQL endpoint (default from settings)
            limit: Number of classes to seed (default from settings)
            label_language: Label language tag (default from settings)
            query_delay: Delay before each request in ms (default from settings)
            concurrency: Maximum simultaneous requests (default from settings)
            settings: Settings instance (default: cached settings)
        """
        settings = settings or get_settings()
        self.endpoint_url = endpoint_url if endpoint_url is not None else settings.sparql_endpoint
        self.limit = limit if limit is not None else settings.class_limit
        self.label_language = label_language or settings.label_language
        self.query_delay = query_delay if query_delay is not None else settings.query_delay_ms
        self.concurrency = concurrency if concurrency is not None else settings.concurrency
        self.format = SPARQL_RESULTS_JSON
        self.timeout = settings.endpoint_timeout
        self.http_timeout = settings.request_timeout

    def get_request_url(self) -> str:
        return self.endpoint_url

    def set_endpoint_url(self, url: str) -> None:
        self.endpoint_url = url

    def validate(self) -> None:
        """Raise ConfigurationError for values the client cannot work with."""
        if not self.endpoint_url:
            raise ConfigurationError("No SPARQL endpoint configured")
        if self.concurrency < 1:
            raise ConfigurationError(f"Concurrency must be at least 1 (got {self.concurrency})")
        if self.query_delay < 0:
            raise ConfigurationError(f"Query delay must be non-negative (got {self.query_delay})")
        if self.limit < 1:
            raise ConfigurationError(f"Class limit must be at least 1 (got {self.limit})")

    def for_query(self, query: str) -> dict[str, Any]:
        """Build the GET request parts for a query."""
        return {
            "url": self.endpoint_url,
            "params": {
                "query": query,
                "format": self.format,
                "timeout": self.timeout,
            },
            "headers": {"Accept": SPARQL_RESULTS_JSON},
        }


@dataclass
class _QueuedQuery:
    query: str
    token: Optional[CancellationToken]
    future: asyncio.Future


class SparqlClient:
    """
    FIFO, concurrency-bounded, delay-throttled query executor for one endpoint.

    Admission follows submission order; completions may arrive in any
    order. There is no retry at this layer.
    """

    def __init__(
        self,
        config: RequestConfig,
        stats: Optional[RequestStats] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Request configuration (read on every dispatch)
            stats: Shared counters (a fresh RequestStats if None)
            http_client: Preconfigured httpx client, e.g. with a mock transport
        """
        self.config = config
        self.stats = stats or RequestStats()
        self._client = http_client or httpx.AsyncClient(timeout=config.http_timeout)
        self._queue: deque[_QueuedQuery] = deque()
        self._active = 0
        self._tasks: set[asyncio.Task] = set()

        logger.info(
            "SparqlClient initialized",
            endpoint=config.endpoint_url,
            concurrency=config.concurrency,
            query_delay_ms=config.query_delay,
        )

    @property
    def active_count(self) -> int:
        return self._active

    @property
    def queued_count(self) -> int:
        return len(self._queue)

    async def query(
        self,
        query: str,
        token: Optional[CancellationToken] = None,
    ) -> list[dict[str, Any]]:
        """
        Queue a SELECT query and wait for its bindings.

        Args:
            query: SPARQL SELECT query
            token: Optional cancellation token

        Returns:
            The raw `results.bindings` list of the SPARQL-JSON response

        Raises:
            QueryCancelledError: The token fired or the queue was cleared
            QueryError: HTTP, network or response-format failure
        """
        future = asyncio.get_running_loop().create_future()
        self._queue.append(_QueuedQuery(query=query, token=token, future=future))
        self._process_queue()
        return await future

    def clear_queue(self) -> int:
        """
        Abandon every queued request that has not been admitted yet.

        Returns:
            Number of requests abandoned
        """
        abandoned = 0
        while self._queue:
            record = self._queue.popleft()
            if not record.future.done():
                record.future.set_exception(
                    QueryCancelledError("Query abandoned before dispatch", query=record.query)
                )
                abandoned += 1
        if abandoned:
            logger.info("Request queue cleared", abandoned=abandoned)
        return abandoned

    async def aclose(self) -> None:
        """Abandon queued requests, cancel dispatched ones and close the HTTP client."""
        self.clear_queue()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self._client.aclose()

    async def __aenter__(self) -> "SparqlClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def _process_queue(self) -> None:
        while self._queue and self._active < max(1, self.config.concurrency):
            record = self._queue.popleft()
            if record.future.done():
                # Caller stopped waiting before admission
                continue
            self._active += 1
            task = asyncio.create_task(self._dispatch(record))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _dispatch(self, record: _QueuedQuery) -> None:
        sent = False
        try:
            if self.config.query_delay > 0:
                await asyncio.sleep(self.config.query_delay / 1000)

            if record.token is not None and record.token.cancelled:
                self._reject(record, QueryCancelledError(query=record.query))
                return

            self.stats.inc_pending()
            sent = True
            bindings = await self._send(record)

        except QueryCancelledError as e:
            self.stats.dec_pending()
            logger.debug("Query cancelled in flight", endpoint=self.config.endpoint_url)
            self._reject(record, e)

        except QueryError as e:
            self.stats.dec_pending()
            self.stats.inc_failed(
                FailedRequest(
                    query=record.query,
                    endpoint=self.config.endpoint_url,
                    message=e.message,
                    status_code=e.status_code,
                )
            )
            logger.error(
                "SPARQL query failed",
                endpoint=self.config.endpoint_url,
                status=e.status_code,
                error=e.message,
                query=record.query[:200],
            )
            self._reject(record, e)

        except asyncio.CancelledError:
            if sent:
                self.stats.dec_pending()
            self._reject(record, QueryCancelledError("Dispatcher shut down", query=record.query))
            raise

        except Exception as e:
            if sent:
                self.stats.dec_pending()
            error = QueryError(
                message=f"Request failed: {e}",
                query=record.query,
                endpoint=self.config.endpoint_url,
                cause=e,
            )
            self.stats.inc_failed(
                FailedRequest(
                    query=record.query,
                    endpoint=self.config.endpoint_url,
                    message=error.message,
                )
            )
            logger.error(
                "Unexpected error dispatching query",
                endpoint=self.config.endpoint_url,
                error=str(e),
                error_type=type(e).__name__,
            )
            self._reject(record, error)

        else:
            self.stats.dec_pending()
            self.stats.inc_successful()
            if not record.future.done():
                record.future.set_result(bindings)

        finally:
            self._active -= 1
            self._process_queue()

    async def _send(self, record: _QueuedQuery) -> list[dict[str, Any]]:
        request = self.config.for_query(record.query)
        request_task = asyncio.ensure_future(
            self._client.get(
                request["url"],
                params=request["params"],
                headers=request["headers"],
            )
        )

        if record.token is not None:
            cancel_task = asyncio.ensure_future(record.token.wait())
            done, _ = await asyncio.wait(
                {request_task, cancel_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if request_task not in done:
                request_task.cancel()
                await asyncio.gather(request_task, return_exceptions=True)
                raise QueryCancelledError(query=record.query)
            cancel_task.cancel()
            await asyncio.gather(cancel_task, return_exceptions=True)

        try:
            response = await request_task
            response.raise_for_status()
            data = response.json()
            bindings = data["results"]["bindings"]
        except httpx.HTTPStatusError as e:
            raise QueryError(
                message=f"HTTP error {e.response.status_code}",
                query=record.query,
                endpoint=self.config.endpoint_url,
                status_code=e.response.status_code,
                cause=e,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise QueryError(
                message=f"Request failed: {e}",
                query=record.query,
                endpoint=self.config.endpoint_url,
                cause=e,
            )
        except (ValueError, KeyError, TypeError) as e:
            raise QueryError(
                message="Malformed SPARQL response",
                query=record.query,
                endpoint=self.config.endpoint_url,
                cause=e,
            )

        if not isinstance(bindings, list):
            raise QueryError(
                message="Malformed SPARQL response: bindings is not a list",
                query=record.query,
                endpoint=self.config.endpoint_url,
            )
        return bindings

    @staticmethod
    def _reject(record: _QueuedQuery, error: Exception) -> None:
        if not record.future.done():
            record.future.set_exception(error)
