"""Command-line interface."""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from orthobundle.config import HubConfig
from orthobundle.errors import OrthobundleError

app = typer.Typer(help="orthobundle: ortholog-group and species-tree bundles")
console = Console()


class LabelBy(str, Enum):
    id = "id"
    name = "name"


def _config(catalog: Optional[str], cache_dir: Optional[Path], timeout: Optional[float]) -> HubConfig:
    return HubConfig.from_env().with_overrides(catalog=catalog, cache_dir=cache_dir, timeout=timeout)


def _fail(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")
    raise typer.Exit(code=1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@app.command()
def version():
    """Show orthobundle version."""
    from orthobundle import __version__
    console.print(f"orthobundle version {__version__}")


@app.command()
def sources():
    """List orthology sources bundles can be built from."""
    from orthobundle.sources import sources as registry

    table = Table(title="Orthology Sources")
    table.add_column("Name", style="cyan")
    table.add_column("Tag", style="green")
    table.add_column("Database")

    for name in registry.list():
        source = registry.load(name)
        table.add_row(name, source.tag, source.title)

    console.print(table)


@app.command()
def catalog(
    source: Optional[str] = typer.Option(None, help="Only list this source"),
    catalog_location: Optional[str] = typer.Option(None, "--catalog", help="Catalog path or URL"),
):
    """List published bundles."""
    from orthobundle.hub import Catalog

    config = _config(catalog_location, None, None)
    try:
        cat = Catalog.load(config.catalog, timeout=config.timeout)
    except OrthobundleError as e:
        _fail(str(e))

    records = cat.query(source)
    if not records:
        console.print("[yellow]No bundles published[/yellow]")
        return

    table = Table(title=f"Bundles in {cat.location}")
    table.add_column("ID", style="cyan")
    table.add_column("Source", style="green")
    table.add_column("Version")
    table.add_column("Species", justify="right")
    table.add_column("Groups", justify="right")
    table.add_column("Title")
    for r in records:
        table.add_row(r.id, r.source, r.version, str(r.n_species), str(r.n_groups), r.title)
    console.print(table)


@app.command()
def fetch(
    source: Optional[str] = typer.Argument(None, help="Source name (e.g. string)"),
    db_version: Optional[str] = typer.Option(None, "--version", help="Database version (default: latest)"),
    record: Optional[str] = typer.Option(None, help="Catalog record ID instead of source/version"),
    output: Optional[Path] = typer.Option(None, help="Also save the bundle to this directory"),
    catalog_location: Optional[str] = typer.Option(None, "--catalog", help="Catalog path or URL"),
    cache_dir: Optional[Path] = typer.Option(None, help="Local cache directory"),
    timeout: Optional[float] = typer.Option(None, help="Network timeout in seconds"),
):
    """Retrieve a published bundle."""
    from orthobundle.hub import fetch_bundle, fetch_record

    if (source is None) == (record is None):
        _fail("Give either a SOURCE or --record")

    config = _config(catalog_location, cache_dir, timeout)
    try:
        if record is not None:
            bundle = fetch_record(record, config=config)
        else:
            bundle = fetch_bundle(source, db_version, config=config)
    except OrthobundleError as e:
        _fail(str(e))

    summary = bundle.summary()
    console.print(f"\n[bold]{bundle.record_id}[/bold] {bundle.source} {bundle.version}")
    for key in ("n_species", "n_groups", "n_mappings", "n_tips"):
        console.print(f"  {key}: {summary[key]}")

    if output is not None:
        bundle.save(output)
        console.print(f"\n[green]Saved to {output}[/green]")


@app.command()
def validate(
    path: Path = typer.Argument(..., help="Bundle directory (as written by save/fetch --output)"),
):
    """Check a saved bundle against its data contract."""
    from orthobundle.core.bundle import OrthologBundle
    from orthobundle.sources import sources as registry

    try:
        bundle = OrthologBundle.load(path)
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))

    tag = registry.load(bundle.source).tag if bundle.source in registry else None
    report = bundle.report(tag=tag)

    for warning in report.warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/yellow]")
    if report.valid:
        console.print(f"[green]✓ Bundle is valid[/green] {escape(repr(bundle))}")
        return
    for error in report.errors:
        console.print(f"[red]✗ {escape(error)}[/red]")
    raise typer.Exit(code=1)


@app.command()
def build(
    source: str = typer.Argument(..., help="Source name"),
    species_file: Path = typer.Argument(..., exists=True, help="Species dump"),
    mappings_file: Path = typer.Argument(..., exists=True, help="Ortholog-group dump"),
    tree_file: Path = typer.Argument(..., exists=True, help="Reference Newick tree"),
    db_version: str = typer.Option(..., "--version", help="Database version"),
    hub: Path = typer.Option(..., help="Hub directory to publish into"),
    label_by: LabelBy = typer.Option(LabelBy.id, help="Tree tips are species IDs or names"),
    domain: Optional[str] = typer.Option(None, help="Keep only this taxonomic domain"),
    title: Optional[str] = typer.Option(None, help="Catalog title"),
    description: Optional[str] = typer.Option(None, help="Catalog description"),
):
    """Build a bundle from database dumps and publish it to a hub."""
    from orthobundle.curation import build_bundle, publish_bundle

    try:
        bundle = build_bundle(
            source,
            species_file,
            mappings_file,
            tree_file,
            db_version,
            label_by=label_by.value,
            domain=domain,
        )
        record = publish_bundle(bundle, hub, title=title, description=description)
    except (OrthobundleError, KeyError, ValueError, FileExistsError) as e:
        _fail(str(e))

    console.print(f"[green]Published {record.source} {record.version} as {record.id}[/green]")


if __name__ == "__main__":
    app()
