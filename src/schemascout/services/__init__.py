"""Session orchestration and renderer interface."""

from schemascout.services.extraction import ExtractionService
from schemascout.services.rendering import GraphRenderer, SummaryRenderer, filter_graph

__all__ = [
    "ExtractionService",
    "GraphRenderer",
    "SummaryRenderer",
    "filter_graph",
]
