"""CLI for SitterMatch.

Commands:
    recommend <request.json>         - Rank sitters for the pet in a request file
    traits <record.json> --kind KIND - Show canonical traits for a pet or sitter record
    serve                            - Run the HTTP API
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from sitter_match.config import settings
from sitter_match.enums import ConfidenceLabel, EntityKind
from sitter_match.matching.engine import InvalidRequestError, MatchmakingEngine
from sitter_match.matching.ranking import RankingResult, summarize
from sitter_match.matching.traits import TraitNormalizer

app = typer.Typer(
    name="sitter-match",
    help="SitterMatch: multi-signal pet sitter recommendations",
    no_args_is_help=True,
)
console = Console()

CONFIDENCE_STYLES = {
    ConfidenceLabel.HIGH: "green",
    ConfidenceLabel.MEDIUM: "yellow",
    ConfidenceLabel.LOW: "red",
}


def configure_logging(verbose: bool = False) -> None:
    """Route library logging to stderr at the configured level."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_json(path: Path) -> Any:
    """Read a JSON file, exiting with a readable error if it is unusable."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1) from None
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        raise typer.Exit(1) from None


@app.command()
def recommend(
    request_file: Annotated[
        Path, typer.Argument(help="JSON file with pet, owner_preferences, and sitters")
    ],
    limit: Annotated[
        int | None, typer.Option("--limit", "-n", help="Maximum recommendations")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show detailed output")
    ] = False,
):
    """Rank sitters for a pet.

    Runs the full pipeline: normalize → embed → score signals → fuse → rank.
    """
    configure_logging(verbose)
    request = load_json(request_file)
    if not isinstance(request, dict):
        console.print("[red]Request file must contain a JSON object[/red]")
        raise typer.Exit(1)

    pet = request.get("pet")
    sitters = request.get("sitters", [])
    effective_limit = limit if limit is not None else request.get("limit")

    engine = MatchmakingEngine()

    async def run() -> RankingResult:
        try:
            return await engine.get_recommendations(
                pet, request.get("owner_preferences") or {}, sitters, effective_limit
            )
        finally:
            await engine.aclose()

    try:
        ranking = asyncio.run(run())
    except InvalidRequestError as e:
        console.print(f"[red]Invalid request: {e}[/red]")
        raise typer.Exit(1) from None

    if not ranking:
        console.print("[yellow]No sitters to recommend.[/yellow]")
        return

    table = Table(title=f"Recommendations for pet {pet.get('id')}")
    table.add_column("#", justify="right")
    table.add_column("Sitter")
    table.add_column("Score", justify="right")
    table.add_column("Confidence")
    table.add_column("Reasons")
    if verbose:
        table.add_column("Content", justify="right")
        table.add_column("Collab", justify="right")
        table.add_column("Rerank", justify="right")

    for rank, item in enumerate(ranking, 1):
        label = item.confidence_label
        row = [
            str(rank),
            str(item.candidate.get("name") or item.candidate.get("id")),
            f"{item.fused_score:.3f}",
            f"[{CONFIDENCE_STYLES[label]}]{label.value}[/{CONFIDENCE_STYLES[label]}]",
            ", ".join(item.reasons) or "-",
        ]
        if verbose:
            row += [
                f"{item.scores.content:.3f}",
                f"{item.scores.collaborative:.3f}",
                f"{item.scores.rerank:.3f}",
            ]
        table.add_row(*row)

    console.print(table)
    for insight in summarize(ranking):
        console.print(f"[bold]{insight}[/bold]")


@app.command()
def traits(
    record_file: Annotated[Path, typer.Argument(help="JSON file with one pet or sitter record")],
    kind: Annotated[
        EntityKind, typer.Option("--kind", "-k", help="Record kind")
    ] = EntityKind.SITTER,
):
    """Show the canonical traits a record normalizes to."""
    record = load_json(record_file)
    if not isinstance(record, dict):
        console.print("[red]Record file must contain a JSON object[/red]")
        raise typer.Exit(1)

    canonical = TraitNormalizer().normalize(record, kind)

    table = Table(title=f"Canonical traits ({kind.value})")
    table.add_column("Field")
    table.add_column("Value")
    for name, value in canonical.items():
        table.add_row(name, f"{value:.3f}" if isinstance(value, float) else repr(value))
    console.print(table)


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port")] = 8080,
):
    """Run the HTTP API under uvicorn."""
    import uvicorn

    configure_logging()
    uvicorn.run("sitter_match.app:app", host=host, port=port)


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
