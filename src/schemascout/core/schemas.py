"""
Core domain schemas for SchemaScout.

Covers the discovered graph (nodes and edges), request statistics, and the
typed row shapes every SPARQL query is parsed into.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, TypeVar

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = structlog.get_logger(__name__)


class NodeType(str, Enum):
    """Kinds of entity the node store holds."""

    CLASS = "class"
    TYPE = "type"
    PROPERTY = "property"
    DATATYPE_PROPERTY = "datatypeProperty"


class DiscoveryState(str, Enum):
    """Per-class progress through the extraction phases."""

    UNSEEDED = "unseeded"
    SEEDED = "seeded"
    TYPES_DISCOVERED = "types_discovered"


class Node(BaseModel):
    """
    One discovered entity: a class, a datatype, or a synthetic
    property-intermediate node.

    The id is assigned by the node store and never changes; the URI may be
    rewritten in place (placeholder intermediates).
    """

    id: str = Field(default="", description="Stable id assigned by the node store")
    uri: str = Field(..., description="RDF URI (may be a placeholder)")
    type: NodeType = Field(..., description="Entity kind")
    name: str = Field(default="", description="Display label")
    instance_count: int = Field(default=0, description="Number of instances (classes)")
    value: int = Field(default=1, description="Size hint for rendering")
    is_loop_node: bool = Field(default=False, description="Edge with source == target")
    state: DiscoveryState = Field(default=DiscoveryState.UNSEEDED)
    comment: Optional[str] = Field(default=None, description="rdfs:comment, when fetched")


class PropertyEntry(BaseModel):
    """One underlying predicate merged into a visual edge."""

    uri: str
    value: int = 1


class Property(BaseModel):
    """
    One visual relation between two nodes.

    Several predicates sharing the same (source, target) pair are merged
    into `props`; `uri` is the representative predicate shown on the edge.
    Enrichment keys (name, comment, ...) are accepted as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    source: str = Field(..., description="Source node id")
    intermediate: str = Field(..., description="Intermediate property-node id")
    target: str = Field(..., description="Target node id")
    uri: str = Field(..., description="Representative predicate URI")
    type: str = Field(default="property")
    props: list[PropertyEntry] = Field(default_factory=list)
    name: Optional[str] = Field(default=None, description="Fetched predicate label")


class RequestStatsSnapshot(BaseModel):
    """Point-in-time view of the request counters."""

    pending: int = 0
    successful: int = 0
    failed: int = 0


class FailedRequest(BaseModel):
    """Diagnostic record of a failed query."""

    query: str
    endpoint: str
    message: str
    status_code: Optional[int] = None
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# ═══════════════════════════════════════════════════════════════════════════════
# RESULT ROWS
# ═══════════════════════════════════════════════════════════════════════════════


class _Row(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ClassRow(_Row):
    """Row of the class discovery query."""

    class_uri: str = Field(..., alias="class")
    instance_count: int = Field(default=0, alias="instanceCount")
    label: Optional[str] = None


class LabelRow(_Row):
    """Row of the rdfs:label / skos:prefLabel queries."""

    label: str


class PredicateRow(_Row):
    """Row of the class-class and class-type relation queries."""

    prop: str
    count: Optional[int] = None


class ReferringTypeRow(_Row):
    """Row of the referring-datatype query. IRI values have no datatype and are skipped."""

    val_type: str = Field(..., alias="valType")
    val_count: Optional[int] = Field(default=None, alias="valCount")


class CommonInstanceRow(_Row):
    """Row of the instance-overlap query."""

    common_instance_count: int = Field(..., alias="commonInstanceCount")


class CommentRow(_Row):
    comment: str


RowT = TypeVar("RowT", bound=_Row)


def flatten_binding(binding: dict[str, Any]) -> dict[str, Any]:
    """Reduce a SPARQL-JSON binding to {variable: value}."""
    return {
        var: term.get("value")
        for var, term in binding.items()
        if isinstance(term, dict) and term.get("value") is not None
    }


def parse_rows(model: type[RowT], bindings: Optional[list[Any]]) -> list[RowT]:
    """
    Validate raw bindings against a row model.

    Rows missing a required variable are skipped, never raised.
    """
    rows: list[RowT] = []
    for binding in bindings or []:
        if not isinstance(binding, dict):
            logger.debug("Skipping non-mapping binding", model=model.__name__)
            continue
        try:
            rows.append(model.model_validate(flatten_binding(binding)))
        except ValidationError as e:
            logger.debug(
                "Skipping malformed binding",
                model=model.__name__,
                error_count=e.error_count(),
            )
    return rows
