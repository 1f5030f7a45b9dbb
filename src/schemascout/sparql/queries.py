"""
SPARQL query builders for schema discovery.

Pure functions: each returns a complete SELECT query with the fixed prefix
preamble. Paginated queries always emit LIMIT/OFFSET so callers can tell a
full page ("more may exist") from a short one.
"""

from schemascout.ontology.namespaces import get_sparql_prefixes


def _check_window(limit: int, offset: int = 0) -> None:
    if limit < 0 or offset < 0:
        raise ValueError(f"limit and offset must be non-negative (got {limit}, {offset})")


def get_class_query(limit: int = 10, offset: int = 0) -> str:
    """Classes ranked by descending instance count."""
    _check_window(limit, offset)
    return (
        get_sparql_prefixes()
        + "SELECT DISTINCT ?class (count(?sub) AS ?instanceCount) "
        + "WHERE { ?sub a ?class. } "
        + "GROUP BY ?class "
        + "ORDER BY DESC(?instanceCount) "
        + f"LIMIT {limit} OFFSET {offset}"
    )


def get_class_query_fast(limit: int = 10) -> str:
    """Classes without counts; cheap enough for very large endpoints."""
    _check_window(limit)
    return get_sparql_prefixes() + f"SELECT DISTINCT ?class WHERE {{ [] a ?class . }} LIMIT {limit}"


def get_label_query(uri: str, lang: str = "en") -> str:
    return (
        get_sparql_prefixes()
        + "SELECT (SAMPLE (?lbl) AS ?label) "
        + f"WHERE {{ <{uri}> rdfs:label ?lbl. FILTER (langMatches(lang(?lbl), '{lang}')) }}"
    )


def get_preferred_label_query(uri: str, lang: str = "en") -> str:
    return (
        get_sparql_prefixes()
        + "SELECT ?label "
        + f"WHERE {{ <{uri}> skos:prefLabel ?label . FILTER (langMatches(lang(?label), '{lang}')) }}"
    )


def get_instance_referring_types_query(class_uri: str, limit: int = 10) -> str:
    """Datatypes of the values of any property of instances of a class."""
    _check_window(limit)
    return (
        get_sparql_prefixes()
        + "SELECT (COUNT(?val) AS ?valCount) ?valType "
        + f"WHERE {{ ?instance a <{class_uri}> . ?instance ?prop ?val . BIND (datatype(?val) AS ?valType) . }} "
        + f"GROUP BY ?valType ORDER BY DESC(?valCount) LIMIT {limit}"
    )


def get_ordered_class_class_relation_query(
    origin_class: str,
    target_class: str,
    limit: int = 10,
    offset: int = 0,
) -> str:
    """Predicates linking two classes, ranked by co-occurrence count."""
    _check_window(limit, offset)
    return (
        get_sparql_prefixes()
        + "SELECT (count(?originInstance) as ?count) ?prop "
        + f"WHERE {{ ?originInstance a <{origin_class}> . ?targetInstance a <{target_class}> . "
        + "?originInstance ?prop ?targetInstance . } "
        + f"GROUP BY ?prop ORDER BY DESC(?count) LIMIT {limit} OFFSET {offset}"
    )


def get_unordered_class_class_relation_query(
    origin_class: str,
    target_class: str,
    limit: int = 10,
    offset: int = 0,
) -> str:
    """Distinct predicates linking an instance of one class to an instance of another."""
    _check_window(limit, offset)
    return (
        get_sparql_prefixes()
        + "SELECT DISTINCT ?prop "
        + f"WHERE {{ ?originInstance a <{origin_class}> . ?targetInstance a <{target_class}> . "
        + "?originInstance ?prop ?targetInstance . } "
        + f"LIMIT {limit} OFFSET {offset}"
    )


def get_ordered_class_type_relation_query(
    class_uri: str,
    type_uri: str,
    limit: int = 5,
    offset: int = 0,
) -> str:
    _check_window(limit, offset)
    return (
        get_sparql_prefixes()
        + "SELECT (count(?instance) AS ?count) ?prop "
        + f"WHERE {{ ?instance a <{class_uri}> . ?instance ?prop ?val . "
        + f"FILTER (datatype(?val) = <{type_uri}>) }} "
        + f"GROUP BY ?prop ORDER BY DESC(?count) LIMIT {limit} OFFSET {offset}"
    )


def get_unordered_class_type_relation_query(
    class_uri: str,
    type_uri: str,
    limit: int = 5,
    offset: int = 0,
) -> str:
    """Distinct predicates whose values on instances of a class have a given datatype."""
    _check_window(limit, offset)
    return (
        get_sparql_prefixes()
        + "SELECT DISTINCT ?prop "
        + f"WHERE {{ ?instance a <{class_uri}> . ?instance ?prop ?val . "
        + f"FILTER (datatype(?val) = <{type_uri}>) }} "
        + f"LIMIT {limit} OFFSET {offset}"
    )


def get_number_of_common_instances_query(class_uri_1: str, class_uri_2: str) -> str:
    """Number of instances typed with both classes."""
    return (
        get_sparql_prefixes()
        + "SELECT (count(?commonInstance) AS ?commonInstanceCount) "
        + f"WHERE {{ ?commonInstance a <{class_uri_1}>. ?commonInstance a <{class_uri_2}>. }}"
    )


def get_comment_query(uri: str) -> str:
    return get_sparql_prefixes() + f"SELECT ?comment WHERE {{ <{uri}> rdfs:comment ?comment . }} LIMIT 1"
