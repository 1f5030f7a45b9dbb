"""
Namespace handling for discovered schemas.

This package provides:
- Standard RDF namespaces and datatype display names
- Well-known prefix shortening (GlobalPrefixes)
- The frequency-ranked registry of seen namespaces (PrefixRegistry)
"""

from schemascout.ontology.namespaces import (
    DATATYPE_LABELS,
    OWL,
    RDF,
    RDFS,
    SKOS,
    XSD,
    GlobalPrefixes,
    Namespace,
    get_sparql_prefixes,
    local_name,
    namespace_of,
)
from schemascout.ontology.prefixes import PrefixEntry, PrefixRegistry

__all__ = [
    "DATATYPE_LABELS",
    "OWL",
    "RDF",
    "RDFS",
    "SKOS",
    "XSD",
    "GlobalPrefixes",
    "Namespace",
    "PrefixEntry",
    "PrefixRegistry",
    "get_sparql_prefixes",
    "local_name",
    "namespace_of",
]
