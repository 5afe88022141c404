"""CLI for IntroGraph.

Commands:
    init-db                    - Create database tables
    reset-db                   - Drop and recreate database tables
    paths <source> <target>    - Find warm-introduction paths
    strength <from> <to>       - Recompute a relationship's strength
    duplicates <person>        - List likely duplicates of a person
    merge-plan <keep> <absorb> - Preview merging two person records
    stats                      - Show graph statistics
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Annotated, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from intro_graph import __version__
from intro_graph.config import settings
from intro_graph.db import async_session_factory, init_db, reset_db
from intro_graph.errors import IntroGraphError
from intro_graph.logging_config import configure_logging
from intro_graph.scoring import ScoringWeights
from intro_graph.services import GraphService
from intro_graph.storage import SqlAlchemyGraphStore

T = TypeVar("T")

app = typer.Typer(
    name="intro-graph",
    help="IntroGraph: warm-introduction paths and duplicate contacts over a relationship graph",
    no_args_is_help=True,
)
console = Console()


def run_async(coro: Awaitable[T]) -> T:
    """Run an async coroutine in sync context."""
    return asyncio.run(coro)  # type: ignore[arg-type]


async def with_service(action: Callable[[GraphService], Awaitable[T]]) -> T:
    """Open a session, build a GraphService over it and run ``action``."""
    async with async_session_factory() as session:
        return await action(GraphService(SqlAlchemyGraphStore(session)))


def fail(exc: Exception) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(str(exc))}")
    return typer.Exit(1)


@app.callback()
def main_callback(
    log_level: Annotated[
        str, typer.Option("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    ] = settings.log_level,
) -> None:
    """Configure logging before any command runs."""
    configure_logging(level=log_level)


@app.command("version")
def version() -> None:
    """Show the installed version."""
    console.print(f"intro-graph {__version__}")


@app.command("init-db")
def init_database() -> None:
    """Initialize the database schema (creates tables if they don't exist)."""
    run_async(init_db())
    console.print("[green]Database initialized successfully.[/green]")


@app.command("reset-db")
def reset_database(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Skip confirmation prompt")
    ] = False,
) -> None:
    """Drop all tables and recreate them.

    WARNING: This destroys all data!
    """
    if not force:
        confirm = typer.confirm("This will DELETE ALL DATA. Are you sure?", default=False)
        if not confirm:
            console.print("[yellow]Aborted.[/yellow]")
            raise typer.Exit(0)

    run_async(reset_db())
    console.print("[green]Database reset successfully.[/green]")


@app.command()
def paths(
    source: Annotated[str, typer.Argument(help="Person the introduction starts from")],
    target: Annotated[str, typer.Argument(help="Person to reach")],
    max_hops: Annotated[int, typer.Option("--max-hops", help="Maximum path length")] = (
        settings.pathfinding_max_hops
    ),
    min_strength: Annotated[
        float, typer.Option("--min-strength", help="Weakest edge strength to traverse")
    ] = settings.pathfinding_min_strength,
    max_results: Annotated[int, typer.Option("--max-results", help="Paths to return")] = (
        settings.pathfinding_max_results
    ),
    include_incoming: Annotated[
        bool, typer.Option("--include-incoming", help="Also follow edges pointing at a person")
    ] = False,
    explain: Annotated[
        bool, typer.Option("--explain", help="Explain the best path")
    ] = False,
) -> None:
    """Find warm-introduction paths from SOURCE to TARGET."""
    options = {
        "max_hops": max_hops,
        "min_strength": min_strength,
        "max_results": max_results,
        "include_incoming": include_incoming,
    }

    async def _paths(service: GraphService) -> None:
        result = await service.find_paths(source, target, options)
        meta = result.search_metadata

        if not result.paths:
            console.print(f"[yellow]{result.explanation or 'No paths found.'}[/yellow]")
            return

        table = Table(title=f"Paths to {result.target_person.display_name}")
        table.add_column("#", justify="right")
        table.add_column("Path")
        table.add_column("Hops", justify="right")
        table.add_column("Score", justify="right")
        for i, path in enumerate(result.paths, start=1):
            route = " → ".join(node.display_name for node in path.nodes)
            table.add_row(str(i), route, str(path.hop_count), f"{path.score:.2f}")
        console.print(table)
        console.print(
            f"[dim]{meta.nodes_explored} nodes explored, "
            f"{meta.edges_evaluated} edges evaluated in {meta.duration_ms:.1f}ms[/dim]"
        )

        if explain:
            explanation = service.explain_path(result.paths[0])
            introducer = explanation.recommended_introducer
            console.print(Panel(
                f"[bold]Reasoning:[/bold] {explanation.reasoning}\n"
                f"[bold]Ask:[/bold] {introducer.name} ({introducer.rationale})\n"
                f"[bold]Channel:[/bold] {explanation.suggested_channel}",
                title="Best path",
            ))

    try:
        run_async(with_service(_paths))
    except IntroGraphError as exc:
        raise fail(exc) from exc


@app.command()
def strength(
    from_id: Annotated[str, typer.Argument(help="Person the edge starts at")],
    to_id: Annotated[str, typer.Argument(help="Person the edge points to")],
    recency: Annotated[float | None, typer.Option(help="Recency weight")] = None,
    frequency: Annotated[float | None, typer.Option(help="Frequency weight")] = None,
    mutuality: Annotated[float | None, typer.Option(help="Mutuality weight")] = None,
    channels: Annotated[float | None, typer.Option(help="Channels weight")] = None,
) -> None:
    """Recompute the strength of the FROM -> TO relationship.

    Pass all four weights to override the defaults; they must sum to 1.0.
    """
    custom = (recency, frequency, mutuality, channels)
    weights = None
    if any(w is not None for w in custom):
        if any(w is None for w in custom):
            console.print("[red]Error:[/red] Pass all four weights or none.")
            raise typer.Exit(1)
        weights = ScoringWeights(
            recency=recency or 0.0,
            frequency=frequency or 0.0,
            mutuality=mutuality or 0.0,
            channels=channels or 0.0,
        )

    async def _strength(service: GraphService) -> float:
        return await service.calculate_strength(from_id, to_id, weights)

    try:
        value = run_async(with_service(_strength))
    except IntroGraphError as exc:
        raise fail(exc) from exc

    console.print(f"[bold]{from_id} → {to_id}:[/bold] {value:.3f}")


@app.command()
def duplicates(
    person_id: Annotated[str, typer.Argument(help="Person to find duplicates of")],
) -> None:
    """List likely duplicate records of a person."""

    async def _duplicates(service: GraphService):
        return await service.find_duplicates(person_id)

    try:
        matches = run_async(with_service(_duplicates))
    except IntroGraphError as exc:
        raise fail(exc) from exc

    if not matches:
        console.print(f"[green]No duplicates found for {person_id}.[/green]")
        return

    table = Table(title=f"Duplicates of {person_id}")
    table.add_column("Candidate")
    table.add_column("Method")
    table.add_column("Score", justify="right")
    table.add_column("Recommendation")
    table.add_column("Evidence")
    for match in matches:
        evidence = ", ".join(
            f"{e.field}: {e.candidate_value} ({e.similarity:.0%})" for e in match.evidence
        )
        table.add_row(
            match.candidate_person_id,
            match.match_method.value,
            f"{match.match_score:.2f}",
            match.recommendation.value,
            evidence,
        )
    console.print(table)


@app.command("merge-plan")
def merge_plan(
    survivor_id: Annotated[str, typer.Argument(help="Record that keeps its id")],
    absorbed_id: Annotated[str, typer.Argument(help="Record merged into the survivor")],
) -> None:
    """Preview merging ABSORBED into SURVIVOR. Nothing is written."""

    async def _plan(service: GraphService):
        return await service.plan_merge(survivor_id, absorbed_id)

    try:
        plan = run_async(with_service(_plan))
    except IntroGraphError as exc:
        raise fail(exc) from exc

    survivor = plan.survivor
    console.print(Panel(
        f"[bold]Survivor:[/bold] {survivor.id}\n"
        f"[bold]Names:[/bold] {', '.join(survivor.names) or '-'}\n"
        f"[bold]Emails:[/bold] {', '.join(survivor.emails) or '-'}\n"
        f"[bold]Previous ids:[/bold] {', '.join(survivor.previous_ids)}\n"
        f"[bold]Edges kept:[/bold] {len(plan.edges)}\n"
        f"[bold]Edges dropped:[/bold] {len(plan.dropped_edge_ids)}\n"
        f"[bold]Explanation:[/bold] {plan.explanation or 'no duplicate evidence'}",
        title="Merge plan",
    ))


@app.command()
def stats() -> None:
    """Show graph statistics."""

    async def _stats(service: GraphService):
        return await service.get_stats()

    try:
        graph_stats = run_async(with_service(_stats))
    except IntroGraphError as exc:
        raise fail(exc) from exc

    console.print(Panel(
        f"[bold]People:[/bold] {graph_stats.total_people}\n"
        f"[bold]Organizations:[/bold] {graph_stats.total_organizations}\n"
        f"[bold]Edges:[/bold] {graph_stats.total_edges}\n"
        f"[bold]Average connections:[/bold] {graph_stats.average_connections:.2f}\n"
        f"[bold]Strong connections:[/bold] {graph_stats.strong_connections}\n"
        f"[bold]Recent interactions:[/bold] {graph_stats.recent_interactions}",
        title="IntroGraph Statistics",
    ))

    if graph_stats.data_sources:
        table = Table(title="Data Sources")
        table.add_column("Source")
        table.add_column("Contacts", justify="right")
        table.add_column("Interactions", justify="right")
        table.add_column("Last sync")
        for source in graph_stats.data_sources:
            table.add_row(
                source.name,
                str(source.contact_count),
                str(source.interaction_count),
                str(source.last_sync or "-"),
            )
        console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
