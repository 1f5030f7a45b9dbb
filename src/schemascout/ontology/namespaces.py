"""
URI namespace utilities.

Provides the standard RDF namespaces, the display names used for XSD/RDF
datatypes, CURIE shortening against rdflib's bundled vocabulary bindings,
and helpers to split a URI into namespace and local name.
"""

import re
from dataclasses import dataclass
from typing import Optional

import structlog
from rdflib import Graph, URIRef
from rdflib.namespace import split_uri

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Namespace:
    """RDF namespace with prefix and URI."""

    prefix: str
    uri: str

    def __getattr__(self, name: str) -> str:
        """Allow namespace.Property syntax for building URIs."""
        return f"{self.uri}{name}"

    def __getitem__(self, name: str) -> str:
        """Allow namespace['property'] syntax for building URIs."""
        return f"{self.uri}{name}"

    def term(self, name: str) -> str:
        """Build a URI for a term in this namespace."""
        return f"{self.uri}{name}"


# Standard namespaces
RDF = Namespace("rdf", "http://www.w3.org/1999/02/22-rdf-syntax-ns#")
RDFS = Namespace("rdfs", "http://www.w3.org/2000/01/rdf-schema#")
OWL = Namespace("owl", "http://www.w3.org/2002/07/owl#")
XSD = Namespace("xsd", "http://www.w3.org/2001/XMLSchema#")
SKOS = Namespace("skos", "http://www.w3.org/2004/02/skos/core#")

# Prefixes declared at the top of every generated query
QUERY_NAMESPACES = (RDFS, SKOS)

DATATYPE_LABELS: dict[str, str] = {
    XSD.string: "string",
    XSD.integer: "integer",
    XSD.int: "int",
    XSD.float: "float",
    XSD.double: "double",
    XSD.boolean: "boolean",
    XSD.dateTime: "dateTime",
    XSD.date: "date",
    XSD.anyURI: "anyURI",
    RDFS.Literal: "Literal",
    RDF.langString: "langString",
}

_SUFFIX_RE = re.compile(r"(#?[^/#]*)/?$")
_ALT_SUFFIX_RE = re.compile(r"(:[^:]*)$")
_SEGMENT_RE = re.compile(r"[#/]")


def get_sparql_prefixes(namespaces: tuple[Namespace, ...] = QUERY_NAMESPACES) -> str:
    """
    Get SPARQL PREFIX declarations.

    Returns:
        Single-line string of PREFIX declarations followed by a space
    """
    return " ".join(f"PREFIX {ns.prefix}: <{ns.uri}>" for ns in namespaces) + " "


def _split(uri: str) -> Optional[tuple[str, str]]:
    """rdflib split, kept only when it lands on a path or fragment boundary."""
    try:
        namespace, name = split_uri(uri)
    except ValueError:
        return None
    if not namespace.endswith(("/", "#")):
        return None
    return namespace, name


def namespace_of(uri: str) -> str:
    """
    Strip the local name from a URI.

    A trailing '#' is dropped. Falls back to the part before the last ':'
    for URNs and CURIE-like identifiers.
    """
    parts = _split(uri)
    if parts is not None:
        return parts[0][:-1] if parts[0].endswith("#") else parts[0]

    namespace = _SUFFIX_RE.sub("", uri, count=1)
    if not namespace:
        namespace = _ALT_SUFFIX_RE.sub("", uri, count=1)
    return namespace


def local_name(uri: str) -> str:
    """Last path or fragment segment of a URI, or the URI itself."""
    parts = _split(uri)
    if parts is not None:
        return parts[1]
    return _SEGMENT_RE.split(uri)[-1] or uri


class GlobalPrefixes:
    """
    Shortens URIs from well-known vocabularies into prefix:local form.

    Backed by an rdflib namespace manager carrying rdflib's bundled
    bindings (foaf, dcterms, schema, prov, odrl, csvw, ...). Extra bindings
    are added on top and win over bundled ones for the same prefix.
    """

    def __init__(self, prefixes: Optional[dict[str, str]] = None, bundled: bool = True):
        """
        Args:
            prefixes: Additional prefix -> namespace bindings
            bundled: Start from rdflib's vocabulary set (otherwise empty)
        """
        graph = Graph(bind_namespaces="rdflib" if bundled else "none")
        self._manager = graph.namespace_manager
        for prefix, namespace in (prefixes or {}).items():
            self.bind(prefix, namespace)
        logger.debug("GlobalPrefixes initialized", count=len(self))

    def bind(self, prefix: str, namespace: str) -> None:
        self._manager.bind(prefix, URIRef(namespace), override=True, replace=True)

    def shorten(self, uri: Optional[str]) -> Optional[str]:
        """
        Shorten a URI to a CURIE.

        The longest bound namespace wins.

        Returns:
            "prefix:local" or None when no namespace matches cleanly
        """
        if not uri:
            return None
        try:
            prefix, _, name = self._manager.compute_qname(uri, generate=False)
        except (KeyError, ValueError):
            return None
        if not name or "/" in name or "#" in name:
            return None
        return f"{prefix}:{name}"

    def namespaces(self) -> dict[str, str]:
        return {prefix: str(namespace) for prefix, namespace in self._manager.namespaces()}

    def __len__(self) -> int:
        return sum(1 for _ in self._manager.namespaces())
