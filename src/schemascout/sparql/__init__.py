"""SPARQL query construction and execution."""

from schemascout.sparql import queries
from schemascout.sparql.client import CancellationToken, RequestConfig, SparqlClient
from schemascout.sparql.stats import RequestStats

__all__ = [
    "queries",
    "CancellationToken",
    "RequestConfig",
    "RequestStats",
    "SparqlClient",
]
