"""Tests for the extraction session and the renderer interface."""

import asyncio

import httpx
import pytest

from conftest import ENDPOINT_URL, ORGANIZATION, PERSON, WORKS_FOR, class_relation
from schemascout.core.events import (
    EXTRACTION_COMPLETE,
    EXTRACTION_LOG,
    NODES_CHANGED,
    PREFIXES_CHANGED,
    PROPERTIES_CHANGED,
)
from schemascout.core.exceptions import ConfigurationError
from schemascout.core.schemas import NodeType
from schemascout.services.extraction import ExtractionService
from schemascout.services.rendering import GraphRenderer, SummaryRenderer


def run(service):
    async def scenario():
        async with service:
            return await service.run()

    return asyncio.run(scenario())


def test_progress_and_completion_events(people_endpoint, make_service):
    service = make_service()
    logs, completed = [], []
    service.on(EXTRACTION_LOG, logs.append)
    service.on(EXTRACTION_COMPLETE, completed.append)

    run(service)

    assert logs == [
        "Requesting 10 classes...",
        "Found 2 classes. Requesting details...",
        "Discovering relationships between classes...",
        "Discovery complete.",
    ]
    assert completed == [ENDPOINT_URL]


def test_change_events_are_routed_to_their_store(people_endpoint, make_service):
    service = make_service()
    counts = {NODES_CHANGED: 0, PROPERTIES_CHANGED: 0, PREFIXES_CHANGED: 0}
    for event in counts:
        service.on(event, lambda _payload, event=event: counts.__setitem__(event, counts[event] + 1))

    run(service)

    assert all(count > 0 for count in counts.values())


def test_unsubscribe_and_unknown_events(make_service):
    service = make_service()
    seen = []
    unsubscribe = service.on(EXTRACTION_LOG, seen.append)
    unsubscribe()
    service.nodes.emit(EXTRACTION_LOG, "ignored")

    assert seen == []
    with pytest.raises(ValueError):
        service.on("layout-changed", seen.append)


def test_invalid_config_is_rejected_before_any_request(endpoint, make_service):
    service = make_service()
    service.config.concurrency = 0

    with pytest.raises(ConfigurationError):
        run(service)
    assert endpoint.requests == []


def test_renderer_receives_updates_until_detached(people_endpoint, make_service):
    service = make_service()
    renderer = SummaryRenderer()
    assert isinstance(renderer, GraphRenderer)

    detach = service.attach_renderer(renderer)
    run(service)

    assert renderer.updates > 0
    assert renderer.nodes is service.nodes.get_nodes()
    assert renderer.summary() == {"classes": 2, "datatypes": 2, "edges": 3}

    detach()
    updates = renderer.updates
    service.reset()
    assert renderer.updates == updates


def test_renderer_filters(people_endpoint, make_service):
    service = make_service()
    renderer = SummaryRenderer()
    service.attach_renderer(renderer)
    run(service)

    renderer.apply_filters(datatypes=False)
    assert renderer.summary() == {"classes": 2, "datatypes": 0, "edges": 1}

    renderer.set_settings(gravity=0.5)
    assert renderer.settings == {"gravity": 0.5, "distance": 100.0}


def test_snapshot_is_json_ready(people_endpoint, make_service):
    service = make_service()
    run(service)

    snapshot = service.snapshot()
    assert snapshot["endpoint"] == ENDPOINT_URL
    assert snapshot["stats"]["failed"] == 0
    assert snapshot["stats"]["pending"] == 0
    assert {n["uri"] for n in snapshot["nodes"] if n["type"] == "class"} == {PERSON, ORGANIZATION}
    assert len(snapshot["properties"]) == 3
    assert snapshot["prefixes"][0]["classification"] == "intern"

    without_types = service.snapshot(datatypes=False)
    assert all(n["type"] not in ("type", "datatypeProperty") for n in without_types["nodes"])
    assert len(without_types["properties"]) == 1


def test_snapshot_hides_disconnected_classes(endpoint, make_service):
    endpoint.add("GROUP BY ?class", rows=[
        {"class": PERSON, "instanceCount": 10},
        {"class": ORGANIZATION, "instanceCount": 5},
    ])
    service = make_service()
    run(service)

    assert len(service.snapshot()["nodes"]) == 2
    assert service.snapshot(disconnected=False)["nodes"] == []


def test_reset_clears_graph_for_next_run(people_endpoint, make_service):
    service = make_service()

    async def scenario():
        async with service:
            await service.run()
            service.reset()
            assert len(service.nodes) == 0
            assert service.properties.get_properties() == []
            assert service.prefixes.prefixes == []
            return await service.run()

    class_ids = asyncio.run(scenario())

    assert len(class_ids) == 2
    assert people_endpoint.count("GROUP BY ?class") == 2
    assert sum(1 for n in service.nodes.get_nodes().values() if n.type == NodeType.CLASS) == 2


def test_stop_abandons_queued_requests(people_endpoint, make_service):
    service = make_service()
    logs = []
    service.on(EXTRACTION_LOG, logs.append)

    async def scenario():
        async with service:
            task = asyncio.ensure_future(service.run())
            # Let the class query resolve and the fan-out queue up
            while service.client.queued_count == 0 and not task.done():
                await asyncio.sleep(0)
            abandoned = service.stop()
            await task
            return abandoned

    abandoned = asyncio.run(scenario())

    assert abandoned > 0
    assert "Stopped." in logs
    assert service.stats.failed == 0
    assert service.stats.pending == 0


def test_stop_lets_dispatched_queries_finish(people_endpoint, request_config, settings):
    gated = class_relation(PERSON, ORGANIZATION)
    held = None
    release = None

    async def handler(request: httpx.Request) -> httpx.Response:
        if all(f in request.url.params["query"] for f in gated):
            held.set()
            await release.wait()
        return people_endpoint(request)

    service = ExtractionService(
        config=request_config,
        settings=settings,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    async def scenario():
        nonlocal held, release
        held = asyncio.Event()
        release = asyncio.Event()
        async with service:
            task = asyncio.ensure_future(service.run())
            await held.wait()
            service.stop()
            sent_at_stop = len(people_endpoint.requests)
            release.set()
            await task
            return sent_at_stop

    sent_at_stop = asyncio.run(scenario())

    # The held relation page completes and its label lookup is still issued
    assert people_endpoint.count(*gated) == 1
    assert len(people_endpoint.requests) > sent_at_stop + 1
    works_for = [p for p in service.properties.get_properties() if p.uri == WORKS_FOR]
    assert len(works_for) == 1
    assert works_for[0].name == "works for"
    assert service.stats.failed == 0
    assert service.stats.pending == 0
