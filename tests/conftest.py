"""
Shared fixtures.

FakeEndpoint stands in for a SPARQL server: it is an httpx MockTransport
handler that answers each query from canned rows registered against
fragments of the query text, applying the query's LIMIT/OFFSET window.
"""

import re
from typing import Any, Optional

import httpx
import pytest
import structlog

from config.settings import Settings
from schemascout.ontology.namespaces import XSD
from schemascout.services.extraction import ExtractionService
from schemascout.sparql.client import RequestConfig

ENDPOINT_URL = "http://sparql.test/query"

PERSON = "http://example.org/Person"
ORGANIZATION = "http://example.org/Organization"
AGENT = "http://example.org/Agent"
WORKS_FOR = "http://example.org/worksFor"
NAME = "http://example.org/name"
EMPLOYEES = "http://example.org/employees"

_WINDOW_RE = re.compile(r"LIMIT (\d+)(?: OFFSET (\d+))?")


def term(value: Any) -> dict[str, str]:
    text = str(value)
    if text.startswith("http"):
        return {"type": "uri", "value": text}
    return {"type": "literal", "value": text}


def sparql_json(rows: list[dict[str, Any]]) -> dict[str, Any]:
    variables = sorted({var for row in rows for var in row})
    return {
        "head": {"vars": variables},
        "results": {"bindings": [{var: term(v) for var, v in row.items()} for row in rows]},
    }


class FakeEndpoint:
    """Canned SPARQL endpoint for httpx.MockTransport."""

    def __init__(self):
        self.requests: list[str] = []
        self._responders: list[tuple[tuple[str, ...], Any]] = []

    def add(
        self,
        *fragments: str,
        rows: Optional[list[dict[str, Any]]] = None,
        status: int = 200,
        body: Optional[str] = None,
        first: bool = False,
    ) -> None:
        """
        Register a response for queries containing every fragment.

        The earliest registration wins unless `first` moves this one to the
        front. Unmatched queries get an empty result.
        """
        responder = (fragments, {"rows": rows or [], "status": status, "body": body})
        if first:
            self._responders.insert(0, responder)
        else:
            self._responders.append(responder)

    def count(self, *fragments: str) -> int:
        return sum(1 for q in self.requests if all(f in q for f in fragments))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        query = request.url.params["query"]
        self.requests.append(query)

        for fragments, response in self._responders:
            if all(f in query for f in fragments):
                break
        else:
            return httpx.Response(200, json=sparql_json([]))

        if response["status"] != 200:
            return httpx.Response(response["status"], text="endpoint error")
        if response["body"] is not None:
            return httpx.Response(200, text=response["body"])

        rows = response["rows"]
        window = _WINDOW_RE.search(query)
        if window:
            limit = int(window.group(1))
            offset = int(window.group(2) or 0)
            rows = rows[offset:offset + limit]
        return httpx.Response(200, json=sparql_json(rows))

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def class_relation(origin: str, target: str) -> tuple[str, str]:
    return ("SELECT DISTINCT ?prop", f"?originInstance a <{origin}> . ?targetInstance a <{target}> .")


def type_relation(class_uri: str, type_uri: str) -> tuple[str, str]:
    return (
        "SELECT DISTINCT ?prop",
        f"?instance a <{class_uri}> . ?instance ?prop ?val . FILTER (datatype(?val) = <{type_uri}>)",
    )


def referring_types(class_uri: str) -> tuple[str]:
    return (f"?instance a <{class_uri}> . ?instance ?prop ?val . BIND",)


def label(uri: str) -> tuple[str]:
    return (f"<{uri}> rdfs:label",)


def pref_label(uri: str) -> tuple[str]:
    return (f"<{uri}> skos:prefLabel",)


COMMON_INSTANCES = ("commonInstanceCount",)
CLASS_QUERY = ("GROUP BY ?class",)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, query_delay_ms=0, concurrency=1, class_limit=10)


@pytest.fixture
def endpoint() -> FakeEndpoint:
    return FakeEndpoint()


@pytest.fixture
def request_config(settings) -> RequestConfig:
    return RequestConfig(endpoint_url=ENDPOINT_URL, settings=settings)


@pytest.fixture
def make_service(endpoint, settings):
    """Build an ExtractionService wired to the fake endpoint."""

    def factory(**overrides) -> ExtractionService:
        session_settings = settings.model_copy(update=overrides) if overrides else settings
        config = RequestConfig(endpoint_url=ENDPOINT_URL, settings=session_settings)
        return ExtractionService(
            config=config,
            settings=session_settings,
            http_client=endpoint.client(),
        )

    return factory


@pytest.fixture
def people_endpoint(endpoint) -> FakeEndpoint:
    """
    Two classes: 100 persons working for 40 organizations.

    Person has string values, Organization has string and integer values.
    Organization only carries a skos:prefLabel.
    """
    endpoint.add(*CLASS_QUERY, rows=[
        {"class": PERSON, "instanceCount": 100},
        {"class": ORGANIZATION, "instanceCount": 40},
    ])
    endpoint.add(*label(PERSON), rows=[{"label": "Person"}])
    endpoint.add(*pref_label(ORGANIZATION), rows=[{"label": "Organisation"}])
    endpoint.add(*label(WORKS_FOR), rows=[{"label": "works for"}])
    endpoint.add(*class_relation(PERSON, ORGANIZATION), rows=[{"prop": WORKS_FOR}])
    endpoint.add(*COMMON_INSTANCES, rows=[{"commonInstanceCount": 0}])
    endpoint.add(*referring_types(PERSON), rows=[
        {"valType": XSD.string, "valCount": 300},
        {"valCount": 50},
    ])
    endpoint.add(*referring_types(ORGANIZATION), rows=[
        {"valType": XSD.string, "valCount": 80},
        {"valType": XSD.integer, "valCount": 40},
    ])
    endpoint.add(*type_relation(PERSON, XSD.string), rows=[{"prop": NAME}])
    endpoint.add(*type_relation(ORGANIZATION, XSD.integer), rows=[{"prop": EMPLOYEES}])
    return endpoint
