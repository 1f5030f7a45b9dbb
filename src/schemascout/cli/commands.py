"""
CLI commands for SchemaScout.
"""

import asyncio
import json
import logging
import sys
import time
from typing import Optional

import click
import structlog
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from config.settings import Settings, get_settings
from schemascout import __version__
from schemascout.core.events import EXTRACTION_LOG
from schemascout.core.exceptions import ConfigurationError, SchemaScoutError
from schemascout.core.schemas import NodeType
from schemascout.ontology.namespaces import XSD
from schemascout.services.extraction import ExtractionService
from schemascout.services.rendering import SummaryRenderer
from schemascout.sparql import queries
from schemascout.sparql.client import RequestConfig, SparqlClient

console = Console()

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def run_async(coro):
    """Run an async function in sync context."""
    return asyncio.run(coro)


def configure_logging(level: str) -> None:
    """Route structlog output to stderr, filtered at the given level."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        # Resolved per logger so a swapped sys.stderr is honoured
        logger_factory=lambda *args: structlog.PrintLogger(sys.stderr),
    )


def _build_service(
    endpoint: Optional[str] = None,
    limit: Optional[int] = None,
    lang: Optional[str] = None,
    delay: Optional[int] = None,
    concurrency: Optional[int] = None,
    settings: Optional[Settings] = None,
    http_client=None,
) -> ExtractionService:
    config = RequestConfig(
        endpoint_url=endpoint,
        limit=limit,
        label_language=lang,
        query_delay=delay,
        concurrency=concurrency,
        settings=settings,
    )
    return ExtractionService(config=config, settings=settings, http_client=http_client)


@click.group()
@click.version_option(version=__version__, prog_name="schemascout")
def cli():
    """
    SchemaScout CLI.

    Discovers the schema of a SPARQL endpoint (classes, relations between
    classes, datatype properties, subclass hierarchy) without any prior
    knowledge of its ontology.
    """
    pass


@cli.command()
@click.argument("endpoint", required=False)
@click.option("--limit", "-n", type=int, default=None, help="Number of classes to seed")
@click.option("--lang", default=None, help="Preferred label language (e.g. en, de)")
@click.option("--delay", type=int, default=None, help="Delay before each query in ms")
@click.option("--concurrency", "-c", type=int, default=None, help="Maximum simultaneous queries")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write the graph as JSON")
@click.option("--no-datatypes", is_flag=True, help="Hide datatype nodes and their edges")
@click.option("--no-disconnected", is_flag=True, help="Hide classes without any edge")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default=None, help="Log level")
def extract(
    endpoint: Optional[str],
    limit: Optional[int],
    lang: Optional[str],
    delay: Optional[int],
    concurrency: Optional[int],
    output: Optional[str],
    no_datatypes: bool,
    no_disconnected: bool,
    log_level: Optional[str],
):
    """
    Extract the schema of a SPARQL endpoint.

    Examples:

        schemascout extract https://qlever-server-showcase.zazukoians.org -n 20

        schemascout extract https://dbpedia.org/sparql --lang de -o graph.json
    """
    settings = get_settings()
    configure_logging(log_level or settings.log_level)

    service = _build_service(
        endpoint=endpoint,
        limit=limit,
        lang=lang,
        delay=delay,
        concurrency=concurrency,
        settings=settings,
    )
    try:
        service.config.validate()
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    datatypes = not no_datatypes
    disconnected = not no_disconnected

    async def _extract():
        renderer = SummaryRenderer()
        renderer.apply_filters(datatypes=datatypes, disconnected=disconnected)
        detach = service.attach_renderer(renderer)

        console.print(f"[blue]Endpoint:[/blue] {service.config.get_request_url()}")

        try:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                TextColumn("[dim]{task.fields[stats]}[/dim]"),
                console=console,
            ) as progress:
                task = progress.add_task("Starting extraction...", total=None, stats="")
                service.on(EXTRACTION_LOG, lambda message: progress.update(task, description=message))
                service.stats.subscribe(
                    lambda s: progress.update(
                        task,
                        stats=f"pending {s.pending}  ok {s.successful}  failed {s.failed}",
                    )
                )
                await service.run()

            _print_summary(service, renderer)

            if output:
                with open(output, "w", encoding="utf-8") as f:
                    json.dump(service.snapshot(datatypes=datatypes, disconnected=disconnected), f, indent=2)
                console.print(f"[green]✓ Graph written to {output}[/green]")

        except SchemaScoutError as e:
            console.print(f"[red]Error:[/red] {str(e)}")
            sys.exit(1)

        finally:
            detach()
            await service.aclose()

    run_async(_extract())


def _print_summary(service: ExtractionService, renderer: SummaryRenderer) -> None:
    nodes, properties = renderer.visible()
    all_nodes = service.nodes.get_nodes()

    classes = [n for n in nodes if n.type == NodeType.CLASS]
    if not classes:
        console.print("[yellow]No classes found.[/yellow]")
        return

    class_table = Table(title=f"Classes ({len(classes)})")
    class_table.add_column("Name", style="cyan")
    class_table.add_column("URI")
    class_table.add_column("Instances", justify="right")
    for node in sorted(classes, key=lambda n: n.instance_count, reverse=True):
        class_table.add_row(node.name, node.uri, str(node.instance_count))
    console.print()
    console.print(class_table)

    if properties:
        relation_table = Table(title=f"Relations ({len(properties)})")
        relation_table.add_column("Source", style="cyan")
        relation_table.add_column("Predicate")
        relation_table.add_column("Target", style="cyan")
        relation_table.add_column("Predicates", justify="right")
        for prop in properties:
            source = all_nodes.get(prop.source)
            target = all_nodes.get(prop.target)
            relation_table.add_row(
                source.name if source else prop.source,
                prop.name or prop.uri,
                target.name if target else prop.target,
                str(len(prop.props)),
            )
        console.print()
        console.print(relation_table)

    stats = service.stats.snapshot()
    console.print()
    console.print("[green]✓ Extraction complete![/green]")
    console.print(f"  Successful queries: {stats.successful}")
    if stats.failed:
        console.print(f"  [yellow]Failed queries: {stats.failed}[/yellow]")


@cli.command()
@click.argument("endpoint", required=False)
@click.option("--class-uri", default="https://schema.ld.admin.ch/Municipality", help="Class used by the per-class queries")
@click.option("--target-uri", default="https://schema.ld.admin.ch/Canton", help="Second class for pairwise queries")
@click.option("--lang", default=None, help="Label language")
def probe(endpoint: Optional[str], class_uri: str, target_uri: str, lang: Optional[str]):
    """
    Time every discovery query against an endpoint.

    Runs each query once, one after another, and reports row counts and
    response times.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    config = RequestConfig(
        endpoint_url=endpoint,
        label_language=lang,
        query_delay=0,
        concurrency=1,
        settings=settings,
    )
    language = config.label_language
    probes = [
        ("class", queries.get_class_query(10, 0)),
        ("class (fast)", queries.get_class_query_fast(10)),
        ("label", queries.get_label_query(class_uri, language)),
        ("preferred label", queries.get_preferred_label_query(class_uri, language)),
        ("referring types", queries.get_instance_referring_types_query(class_uri, 10)),
        ("class-class (ordered)", queries.get_ordered_class_class_relation_query(class_uri, target_uri)),
        ("class-class (unordered)", queries.get_unordered_class_class_relation_query(class_uri, target_uri)),
        ("class-type (ordered)", queries.get_ordered_class_type_relation_query(class_uri, XSD.string)),
        ("class-type (unordered)", queries.get_unordered_class_type_relation_query(class_uri, XSD.string)),
        ("common instances", queries.get_number_of_common_instances_query(class_uri, target_uri)),
    ]

    async def _probe():
        client = SparqlClient(config)
        table = Table(title=f"Query timings: {config.get_request_url()}")
        table.add_column("Query", style="cyan")
        table.add_column("Rows", justify="right")
        table.add_column("Time (ms)", justify="right")
        table.add_column("Status")

        try:
            for name, query in probes:
                started = time.perf_counter()
                try:
                    bindings = await client.query(query)
                except SchemaScoutError as e:
                    elapsed = (time.perf_counter() - started) * 1000
                    table.add_row(name, "-", f"{elapsed:.0f}", f"[red]✗ {e.message[:50]}[/red]")
                else:
                    elapsed = (time.perf_counter() - started) * 1000
                    table.add_row(name, str(len(bindings)), f"{elapsed:.0f}", "[green]✓[/green]")
        finally:
            await client.aclose()

        console.print(table)

    run_async(_probe())


@cli.command(name="config")
def show_config():
    """
    Show the effective settings (environment and .env applied).
    """
    settings = get_settings()

    table = Table(title="Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in settings.model_dump().items():
        table.add_row(key.upper(), str(value))
    console.print(table)


# Entry point
if __name__ == "__main__":
    cli()
