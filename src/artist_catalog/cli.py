"""CLI interface for artist-catalog."""

import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from artist_catalog.config import PROJECT_FILE, CatalogConfig
from artist_catalog.errors import ParseError, SchemaError, StorageError

app = typer.Typer(
    name="catalog",
    help="Curated artist catalog: import external lists, validate, build",
    add_completion=True,
    rich_markup_mode="rich",
)

console = Console()


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def _load_schema(config: CatalogConfig, schema: str | None = None):
    """Load the artist schema, exiting with a message on failure.

    Priority: --schema CLI flag > CATALOG_SCHEMA_PATH env > catalog.yaml >
    ./artist.schema.json > bundled default
    """
    from artist_catalog.schema.loader import load_schema

    if schema:
        config.schema_path = Path(schema)
    try:
        return load_schema(config.resolve_schema_path())
    except SchemaError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None


# ============================================================================
# Import
# ============================================================================


@app.command(name="import")
def import_cmd(
    feed: str = typer.Argument(..., help="Downloaded external list to import"),
    fmt: str = typer.Option("records", "--format", "-f", help="Feed format: records, csv, uri-list"),
    source: str | None = typer.Option(None, "--source", "-s", help="Tag recording the feed's origin (e.g. owner/repo); kept only where the schema permits it"),
    catalog: str | None = typer.Option(None, "--catalog", "-c", help="Catalog directory"),
    schema: str | None = typer.Option(None, help="Path to artist JSON Schema"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve and report only, leave the catalog untouched"),
    report: str | None = typer.Option(None, "--report", help="Resolution report path (default: <reports>/import_report.yaml)"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Merge an external artist list into the catalog."""
    _setup_logging(verbose)
    config = CatalogConfig()
    catalog_dir = Path(catalog) if catalog else config.catalog_dir
    artist_schema = _load_schema(config, schema)

    from artist_catalog.pipeline import run_import
    from artist_catalog.sources import load_feed

    try:
        records = load_feed(Path(feed), fmt, source_tag=source)
    except ParseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if not records:
        console.print(f"[yellow]No artists to import in {feed}[/yellow]")
        raise typer.Exit(0)

    console.print(f"[cyan]Catalog:[/cyan] {catalog_dir}")
    console.print(f"[cyan]Incoming:[/cyan] {len(records)} records ({fmt})")
    console.print()

    try:
        result, applied = run_import(records, catalog_dir, artist_schema, dry_run=dry_run)
    except StorageError as e:
        console.print(f"[red]Storage failure:[/red] {e}")
        console.print(f"  Writes committed before failure: {e.committed}")
        raise typer.Exit(1) from None

    from artist_catalog.resolve.io import write_report

    report_path = Path(report) if report else config.report_dir / "import_report.yaml"
    write_report(result, report_path)

    table = Table(title="Import Summary", show_header=True, header_style="bold cyan")
    table.add_column("Outcome", style="dim")
    table.add_column("Count", justify="right")
    table.add_row("Clusters after dedup", str(result.clusters))
    table.add_row("New artists", str(result.created_count))
    table.add_row("Existing artists modified", str(result.modified_count))
    table.add_row("Unchanged", str(result.unchanged))
    table.add_row("Rejected (validation)", str(result.rejected_count))
    if applied is not None:
        table.add_row("Skipped (file collision)", str(len(applied.skipped)))
    if result.parse_errors:
        table.add_row("Malformed records", str(len(result.parse_errors)))
    console.print(table)

    for outcome in result.rejected:
        label = outcome.name or outcome.identifier or "<unnamed>"
        console.print(f"  [red]✗[/red] {label}: {'; '.join(outcome.errors)}")

    if result.collisions:
        console.print(f"[yellow]Warning:[/yellow] {len(result.collisions)} identity collisions in the catalog")
        for c in result.collisions:
            console.print(f"  {c.field}={c.value}: kept {c.kept}, ignored {c.ignored}")
    if result.ambiguous_matches:
        console.print(f"[yellow]Warning:[/yellow] {len(result.ambiguous_matches)} ambiguous matches")
        for m in result.ambiguous_matches:
            console.print(
                f"  {m.name or '<unnamed>'}: {m.chosen_field}→{m.chosen}, "
                f"{m.conflicting_field}→{m.conflicting}"
            )

    if dry_run:
        console.print("[dim]Dry run: catalog not modified.[/dim]")
    console.print(f"[dim]Report: {report_path}[/dim]")


# ============================================================================
# Catalog Commands
# ============================================================================


@app.command()
def build(
    out: str | None = typer.Option(None, "--out", "-o", help="Output path for the combined JSON"),
    catalog: str | None = typer.Option(None, "--catalog", "-c", help="Catalog directory"),
    schema: str | None = typer.Option(None, help="Path to artist JSON Schema"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Validate every artist and combine them into one sorted JSON file."""
    _setup_logging(verbose)
    config = CatalogConfig()
    catalog_dir = Path(catalog) if catalog else config.catalog_dir
    dist_path = Path(out) if out else config.dist_path
    artist_schema = _load_schema(config, schema)

    from artist_catalog.pipeline import run_build

    try:
        result = run_build(catalog_dir, artist_schema, dist_path)
    except StorageError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if not result.ok:
        console.print(f"[red]Validation errors in {len(result.failures)} files. Aborting build.[/red]")
        raise typer.Exit(1)

    console.print("[green]All artists validated, sorted and combined.[/green]")
    console.print(f"  Artists: {len(result.records)}")
    console.print(f"  Output: {dist_path}")


@app.command()
def validate(
    catalog: str | None = typer.Option(None, "--catalog", "-c", help="Catalog directory"),
    schema: str | None = typer.Option(None, help="Path to artist JSON Schema"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logging"),
) -> None:
    """Check every artist file against the schema without writing anything."""
    _setup_logging(verbose)
    config = CatalogConfig()
    catalog_dir = Path(catalog) if catalog else config.catalog_dir
    artist_schema = _load_schema(config, schema)

    from artist_catalog.pipeline import run_build

    try:
        result = run_build(catalog_dir, artist_schema, dist_path=None)
    except StorageError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    if result.failures:
        for label, errors in result.failures.items():
            console.print(f"[red]✗[/red] {label}")
            for error in errors:
                console.print(f"    {error}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {len(result.records)} artists valid")


@app.command()
def template(
    schema: str | None = typer.Option(None, help="Path to artist JSON Schema"),
) -> None:
    """Print an empty artist record derived from the schema."""
    config = CatalogConfig()
    artist_schema = _load_schema(config, schema)
    typer.echo(json.dumps(artist_schema.template(), indent=2))


@app.command()
def init(
    catalog: str = typer.Option("src", help="Catalog directory to record in project config"),
) -> None:
    """Initialize a catalog project in the current directory."""
    project_path = Path(PROJECT_FILE)

    if not project_path.exists() or typer.confirm(f"Overwrite existing {PROJECT_FILE}?", default=False):
        project_config = "# artist-catalog project config\n# All commands pick up these settings automatically.\n\n"
        project_config += f"catalog: {catalog}\n"
        project_config += "# schema: artist.schema.json\n"
        project_config += "# dist: dist/ai-bands.json\n"
        project_path.write_text(project_config)
        console.print(f"[green]Created {PROJECT_FILE}[/green]")

    Path(catalog).mkdir(parents=True, exist_ok=True)
    console.print("\nNext steps:")
    console.print("  1. catalog template > new-artist.json")
    console.print("  2. catalog import path/to/list.json --source owner/repo")
    console.print("  3. catalog build")
    raise typer.Exit(0)


@app.command()
def info(
    catalog: str | None = typer.Option(None, "--catalog", "-c", help="Catalog directory"),
) -> None:
    """Display project configuration and catalog stats."""
    config = CatalogConfig()
    catalog_dir = Path(catalog) if catalog else config.catalog_dir
    artist_schema = _load_schema(config)

    table = Table(title="artist-catalog Project Info", show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="dim")
    table.add_column("Value")

    table.add_row("Schema", artist_schema.source)
    table.add_row("Identity Fields", ", ".join(artist_schema.identity_fields))
    table.add_row("Known Tags", ", ".join(artist_schema.allowed_tags))
    table.add_row("Catalog Directory", str(catalog_dir))

    if catalog_dir.is_dir():
        from artist_catalog.resolve.merge import union_tags
        from artist_catalog.store import CatalogStore

        entries = CatalogStore(catalog_dir).load()
        external = sum(
            1 for e in entries
            if any(t in artist_schema.provenance_tags for t in union_tags(e.record.get(artist_schema.tag_field)))
        )
        table.add_row("Artists", str(len(entries)))
        table.add_row("Externally Sourced", str(external))
    else:
        table.add_row("Artists", "Catalog directory missing")

    table.add_row("Dist Output", str(config.dist_path))
    console.print(table)
    raise typer.Exit(0)


if __name__ == "__main__":
    app()
