"""Tests for class, relation and datatype discovery against a fake endpoint."""

import asyncio

from conftest import (
    AGENT,
    CLASS_QUERY,
    COMMON_INSTANCES,
    EMPLOYEES,
    NAME,
    ORGANIZATION,
    PERSON,
    WORKS_FOR,
    class_relation,
    label,
    referring_types,
    type_relation,
)
from schemascout.core.schemas import DiscoveryState, NodeType
from schemascout.graph.properties import PLACEHOLDER_PROP_URI, SUBCLASS_OF_URI
from schemascout.ontology.namespaces import XSD


def run(service):
    async def scenario():
        async with service:
            return await service.run()

    return asyncio.run(scenario())


def edges_by_uri(service):
    return {p.uri: p for p in service.properties.get_properties()}


def test_people_and_organizations(people_endpoint, make_service):
    service = make_service()
    class_ids = run(service)

    person_id = service.nodes.get_id_by_class_uri(PERSON)
    org_id = service.nodes.get_id_by_class_uri(ORGANIZATION)
    assert class_ids == [person_id, org_id] == ["class0", "class1"]

    person = service.nodes.get_by_id(person_id)
    org = service.nodes.get_by_id(org_id)
    assert person.name == "Person"
    assert org.name == "Organisation"
    assert person.instance_count == 100
    assert org.instance_count == 40
    assert org.state == DiscoveryState.TYPES_DISCOVERED

    edges = edges_by_uri(service)
    assert set(edges) == {WORKS_FOR, NAME, EMPLOYEES}

    works_for = edges[WORKS_FOR]
    assert (works_for.source, works_for.target) == (person_id, org_id)
    assert [e.model_dump() for e in works_for.props] == [{"uri": WORKS_FOR, "value": 1}]
    assert works_for.name == "works for"
    assert service.nodes.get_by_id(works_for.intermediate).type == NodeType.PROPERTY

    string_id = edges[NAME].target
    integer_id = edges[EMPLOYEES].target
    assert service.nodes.get_uri_by_id(string_id) == XSD.string
    assert service.nodes.get_uri_by_id(integer_id) == XSD.integer
    assert edges[NAME].source == person_id
    assert edges[EMPLOYEES].source == org_id

    # xsd:string is already rendered for Person, so Organization gets no edge to it
    assert service.properties.exists_between(org_id, string_id) is None
    assert service.stats.failed == 0
    assert service.stats.pending == 0


def test_datatype_nodes_are_unique(people_endpoint, make_service):
    service = make_service()
    run(service)

    types = [n for n in service.nodes.get_nodes().values() if n.type == NodeType.TYPE]
    assert sorted(n.uri for n in types) == sorted([XSD.string, XSD.integer])
    assert people_endpoint.count(*type_relation(ORGANIZATION, XSD.string)) == 0


def test_placeholders_are_replaced(people_endpoint, make_service):
    service = make_service()
    run(service)

    for node in service.nodes.get_nodes().values():
        assert node.uri != PLACEHOLDER_PROP_URI
    datatype_props = [
        n for n in service.nodes.get_nodes().values() if n.type == NodeType.DATATYPE_PROPERTY
    ]
    assert sorted(n.uri for n in datatype_props) == sorted([NAME, EMPLOYEES])
    assert {n.name for n in datatype_props} == {"name", "employees"}


def test_placeholder_kept_when_no_predicate_found(endpoint, make_service):
    endpoint.add(*CLASS_QUERY, rows=[{"class": PERSON, "instanceCount": 5}])
    endpoint.add(*referring_types(PERSON), rows=[{"valType": XSD.date}])

    service = make_service()
    run(service)

    (edge,) = service.properties.get_properties()
    assert edge.uri == PLACEHOLDER_PROP_URI
    assert service.nodes.get_uri_by_id(edge.target) == XSD.date


def test_relation_queries_stop_on_short_page(people_endpoint, make_service):
    service = make_service()
    run(service)

    assert people_endpoint.count(*class_relation(PERSON, ORGANIZATION)) == 1
    assert people_endpoint.count(*class_relation(ORGANIZATION, PERSON)) == 1
    assert people_endpoint.count(*CLASS_QUERY) == 1


def test_relation_pagination_doubles_until_exhausted(endpoint, make_service):
    predicates = [f"http://example.org/p{i}" for i in range(35)]
    endpoint.add(*CLASS_QUERY, rows=[
        {"class": PERSON, "instanceCount": 10},
        {"class": ORGANIZATION, "instanceCount": 5},
    ])
    endpoint.add(*class_relation(PERSON, ORGANIZATION), rows=[{"prop": p} for p in predicates])

    service = make_service()
    run(service)

    pages = [q for q in endpoint.requests if all(f in q for f in class_relation(PERSON, ORGANIZATION))]
    assert [q[q.index("LIMIT"):] for q in pages] == [
        "LIMIT 10 OFFSET 0",
        "LIMIT 20 OFFSET 10",
        "LIMIT 40 OFFSET 30",
    ]

    person_id = service.nodes.get_id_by_class_uri(PERSON)
    org_id = service.nodes.get_id_by_class_uri(ORGANIZATION)
    edges = [p for p in service.properties.get_properties() if p.source == person_id and p.target == org_id]
    assert len(edges) == 1
    assert [e.uri for e in edges[0].props] == predicates
    assert edges[0].uri == predicates[0]

    intermediates = [n for n in service.nodes.get_nodes().values() if n.type == NodeType.PROPERTY]
    assert len(intermediates) == 1


def test_pagination_is_capped(endpoint, make_service):
    predicates = [f"http://example.org/p{i}" for i in range(200)]
    endpoint.add(*CLASS_QUERY, rows=[
        {"class": PERSON, "instanceCount": 10},
        {"class": ORGANIZATION, "instanceCount": 5},
    ])
    endpoint.add(*class_relation(PERSON, ORGANIZATION), rows=[{"prop": p} for p in predicates])

    service = make_service(max_pagination_rounds=2)
    run(service)

    assert endpoint.count(*class_relation(PERSON, ORGANIZATION)) == 2


def test_subclass_inferred_from_instance_overlap(endpoint, make_service):
    endpoint.add(*CLASS_QUERY, rows=[
        {"class": PERSON, "instanceCount": 100},
        {"class": ORGANIZATION, "instanceCount": 40},
    ])
    endpoint.add(*COMMON_INSTANCES, rows=[{"commonInstanceCount": 40}])

    service = make_service()
    run(service)

    person_id = service.nodes.get_id_by_class_uri(PERSON)
    org_id = service.nodes.get_id_by_class_uri(ORGANIZATION)

    (edge,) = service.properties.get_properties()
    assert edge.uri == SUBCLASS_OF_URI
    assert (edge.source, edge.target) == (org_id, person_id)

    intermediate = service.nodes.get_by_id(edge.intermediate)
    assert intermediate.type == NodeType.PROPERTY
    assert intermediate.name == "Subclass of"
    property_nodes = [n for n in service.nodes.get_nodes().values() if n.type == NodeType.PROPERTY]
    assert len(property_nodes) == 1


def test_equal_instance_sets_assert_nothing(endpoint, make_service):
    endpoint.add(*CLASS_QUERY, rows=[
        {"class": AGENT, "instanceCount": 40},
        {"class": PERSON, "instanceCount": 40},
    ])
    endpoint.add(*COMMON_INSTANCES, rows=[{"commonInstanceCount": 40}])

    service = make_service()
    run(service)

    assert service.properties.get_properties() == []


def test_partial_overlap_asserts_nothing(endpoint, make_service):
    endpoint.add(*CLASS_QUERY, rows=[
        {"class": AGENT, "instanceCount": 100},
        {"class": PERSON, "instanceCount": 40},
    ])
    endpoint.add(*COMMON_INSTANCES, rows=[{"commonInstanceCount": 25}])

    service = make_service()
    run(service)

    assert service.properties.get_properties() == []


def test_failing_branch_does_not_stop_the_others(people_endpoint, make_service):
    people_endpoint.add(*class_relation(PERSON, ORGANIZATION), status=500, first=True)

    service = make_service()
    class_ids = run(service)

    assert len(class_ids) == 2
    assert service.stats.failed == 1
    assert WORKS_FOR not in edges_by_uri(service)
    assert NAME in edges_by_uri(service)
    assert service.nodes.get_by_id(class_ids[1]).name == "Organisation"


def test_class_query_failure_yields_empty_graph(endpoint, make_service):
    endpoint.add(*CLASS_QUERY, status=503)

    service = make_service()
    logs = []
    service.on("extraction-log", logs.append)

    assert run(service) == []
    assert len(service.nodes) == 0
    assert "Class discovery failed." in logs


def test_non_http_and_blacklisted_classes_are_skipped(endpoint, make_service):
    endpoint.add(*CLASS_QUERY, rows=[
        {"class": "urn:example:Thing", "instanceCount": 50},
        {"class": AGENT, "instanceCount": 30},
        {"class": PERSON, "instanceCount": 20},
    ])

    service = make_service(class_blacklist=[AGENT])
    class_ids = run(service)

    assert [service.nodes.get_uri_by_id(i) for i in class_ids] == [PERSON]


def test_label_falls_back_to_skos(endpoint, make_service):
    endpoint.add(*CLASS_QUERY, rows=[{"class": ORGANIZATION, "instanceCount": 3}])
    endpoint.add(f"<{ORGANIZATION}> skos:prefLabel", rows=[{"label": "Organisation"}])

    service = make_service(label_language="de")
    run(service)

    (class_id,) = service.nodes.get_class_ids()
    assert service.nodes.get_by_id(class_id).name == "Organisation"
    assert endpoint.count(*label(ORGANIZATION), "'de'") == 1


def test_referring_types_requested_once_per_class(people_endpoint, make_service):
    service = make_service()

    async def scenario():
        async with service:
            await service.run()
            person_id = service.nodes.get_id_by_class_uri(PERSON)
            await asyncio.gather(
                service.datatype_extractor.request_referring_types(person_id),
                service.datatype_extractor.request_referring_types(person_id),
            )

    asyncio.run(scenario())

    assert people_endpoint.count(*referring_types(PERSON)) == 1


def test_comments_fetched_when_enabled(people_endpoint, make_service):
    people_endpoint.add(f"<{PERSON}> rdfs:comment", rows=[{"comment": "A human being"}])
    people_endpoint.add(f"<{WORKS_FOR}> rdfs:comment", rows=[{"comment": "Employment"}])

    service = make_service(fetch_comments=True)
    run(service)

    person_id = service.nodes.get_id_by_class_uri(PERSON)
    assert service.nodes.get_by_id(person_id).comment == "A human being"
    assert edges_by_uri(service)[WORKS_FOR].model_dump()["comment"] == "Employment"


def test_second_run_reuses_populated_graph(people_endpoint, make_service):
    service = make_service()

    async def scenario():
        async with service:
            first = await service.run()
            second = await service.run()
            return first, second

    first, second = asyncio.run(scenario())

    assert first == second
    assert people_endpoint.count(*CLASS_QUERY) == 1
