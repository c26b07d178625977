"""
Command-line interface for vulnview.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich.text import Text

from vulnview import __version__
from vulnview.core.pipeline import FilterRequest, FilterState, apply_filters, filter_findings
from vulnview.core.sorting import DESCENDING, SortState, sort_findings
from vulnview.utils import config_file, logging_config
from vulnview.utils.schema import FindingSet, SearchMode
from vulnview.utils.store import JsonFileStore

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(
    name="vulnview",
    help="Interactive viewer for vulnerability scan findings",
    add_completion=False,
    no_args_is_help=True,
)

SEVERITY_STYLES = {
    "critical": "bold red",
    "high": "bold yellow",
    "medium": "yellow",
    "low": "cyan",
    "info": "magenta",
}


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        console.print(f"vulnview version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """vulnview - browse, filter and sort scan findings."""


def load_findings(path: Path) -> FindingSet:
    """Read a normalized findings file (object with ``findings`` or a bare list)."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        console.print(f"[red]Could not read {path}: {e}[/red]")
        raise typer.Exit(code=1)

    if isinstance(data, list):
        data = {"findings": data}
    try:
        return FindingSet.model_validate(data)
    except ValidationError as e:
        console.print(f"[red]{path} is not a normalized findings file:[/red]\n{e}")
        raise typer.Exit(code=1)


def _load_config(config: Optional[Path], **overrides) -> dict:
    try:
        return config_file.resolve_config(config, overrides)
    except ValueError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(code=1)


@app.command("view")
def view_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Normalized findings JSON file"),
    search_mode: Optional[str] = typer.Option(None, "--search-mode", "-m", help="literal, regex or fuzzy"),
    overscan: Optional[int] = typer.Option(None, "--overscan", help="Extra rows rendered off-screen"),
    store_path: Optional[Path] = typer.Option(None, "--store", help="Rules/presets store file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Write logs to this file"),
):
    """Open findings in the interactive viewer."""
    settings = _load_config(
        config,
        search_mode=search_mode,
        overscan_rows=overscan,
        store_path=store_path,
        log_level=log_level,
        log_file=log_file,
    )
    logging_config.configure_logging(settings, tui=True)

    finding_set = load_findings(path)
    logger.info(f"Loaded {len(finding_set.findings)} findings from {path}")

    from vulnview.tui import run_tui

    run_tui(
        finding_set,
        store=JsonFileStore(settings["store_path"]),
        search_mode=settings["search_mode"],
        overscan_rows=settings["overscan_rows"],
        row_height_fallback=settings["row_height_fallback"],
        render_delay_ms=settings["render_delay_ms"],
    )


@app.command("list")
def list_command(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Normalized findings JSON file"),
    query: str = typer.Option("", "--query", "-q", help="Search query (field:value tokens allowed)"),
    search_mode: Optional[str] = typer.Option(None, "--search-mode", "-m", help="literal, regex or fuzzy"),
    severity: Optional[List[str]] = typer.Option(None, "--severity", "-s", help="Only these severities"),
    fix_only: bool = typer.Option(False, "--fix-only", help="Only findings with a fix"),
    whitelist: Optional[List[str]] = typer.Option(None, "--whitelist", "-w", help="Whitelist rule"),
    ignore: Optional[List[str]] = typer.Option(None, "--ignore", "-i", help="Ignore rule"),
    sort: Optional[str] = typer.Option(None, "--sort", help="severity, cves, package, score, ..."),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    limit: int = typer.Option(0, "--limit", "-n", help="Maximum rows to print (0 = all)"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
):
    """Print filtered and sorted findings as a table."""
    settings = _load_config(config, search_mode=search_mode, log_level=log_level)
    logging_config.configure_logging(settings)

    finding_set = load_findings(path)

    try:
        request = FilterRequest(
            show_all=not severity,
            severities={s: True for s in (severity or [])},
            fix_only=fix_only,
            query=query,
            search_mode=settings["search_mode"],
            whitelist=whitelist or [],
            ignore=ignore or [],
        )
    except ValidationError as e:
        console.print(f"[red]Invalid filter options:[/red]\n{e}")
        raise typer.Exit(code=1)

    def notify(message: str, level: str) -> None:
        style = "red" if level == "error" else "yellow"
        console.print(Text(message, style=style))

    state = FilterState(search_mode=SearchMode(settings["search_mode"]))
    if not apply_filters(state, request, notify=notify):
        raise typer.Exit(code=1)

    sort_state = SortState()
    if sort:
        sort_state.toggle(sort)
        if desc:
            sort_state.direction = DESCENDING

    rows = sort_findings(filter_findings(finding_set.findings, state), sort_state)
    shown = rows[:limit] if limit > 0 else rows

    table = Table(title=f"{len(rows)}/{len(finding_set.findings)} findings")
    for title in ("Severity", "CVEs", "Score", "Package", "Version", "Fix"):
        table.add_column(title + sort_state.indicator(title.lower()))
    for f in shown:
        sev = f.severity_name
        table.add_row(
            Text(sev.upper(), style=SEVERITY_STYLES.get(sev, "dim")),
            Text(", ".join(f.cves)),
            "" if f.cvss_score is None else f"{f.cvss_score:g}",
            Text(f.display_name),
            Text(f.package.version),
            Text(f.fix_text),
        )
    console.print(table)


@app.command("init-config")
def init_config_command(
    path: Path = typer.Argument(Path(".vulnview.yml"), help="Where to write the sample config"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
):
    """Write a sample configuration file."""
    if path.exists() and not force:
        console.print(f"[yellow]{path} already exists (use --force to overwrite)[/yellow]")
        raise typer.Exit(code=1)
    config_file.save_sample_config(path)
    console.print(f"[green]Created {path}[/green]")


if __name__ == "__main__":
    app()
