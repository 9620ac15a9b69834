"""
SCOUR CLI — The Interface

Commands:
  - scour replace            (interactive search & replace over the repo)
  - scour search <pattern>   (list matches, change nothing)
  - scour status             (check config + tools)
  - scour init [path]        (bootstrap .scour in a repo)
"""

from __future__ import annotations

import asyncio
import shutil
import subprocess
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from loguru import logger
from rich.console import Console
from rich.table import Table
from rich.text import Text

from scour import __codename__, __tagline__, __version__
from scour.config_loader import REPO_CONFIG, ScourConfig, load_config
from scour.discovery import Discovery, DiscoveryError
from scour.files import FileStore
from scour.host import relative_path
from scour.plugins import PluginRuntime
from scour.plugins.markdown_source import MarkdownSourcePlugin
from scour.plugins.references import ReferencesPlugin
from scour.plugins.search_replace import SearchReplacePlugin
from scour.terminal import TerminalHost

# Load .env from current directory or home
load_dotenv()
load_dotenv(Path.home() / ".scour" / ".env")

app = typer.Typer(
    name="scour",
    help=f"{__codename__} — {__tagline__}\nProject-wide search and replace.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__codename__} v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    pass


def _print_banner():
    console.print(f"[bold bright_green]{__codename__}[/] [dim]v{__version__} — {__tagline__}[/]\n")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command()
def replace(
    repo: Optional[Path] = typer.Option(None, "--repo", "-r", help="Repository to search (default: cwd)"),
    regex: bool = typer.Option(False, "--regex", "-E", help="Treat the pattern as an extended regex"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Search, review and replace across all git-tracked files."""
    _print_banner()
    repo = _resolve_repo(repo)
    config = load_config(repo)
    _configure_logging(verbose, config)

    if regex:
        config.search.regex = True

    host = build_host(repo, config)
    asyncio.run(host.run("start_search_replace"))


@app.command()
def search(
    pattern: str = typer.Argument(..., help="Text (or regex with --regex) to look for"),
    repo: Optional[Path] = typer.Option(None, "--repo", "-r", help="Repository to search (default: cwd)"),
    regex: bool = typer.Option(False, "--regex", "-E", help="Treat the pattern as an extended regex"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """List the matches a replace would offer, without changing anything."""
    repo = _resolve_repo(repo)
    config = load_config(repo)
    _configure_logging(verbose, config)

    discovery = Discovery(repo, max_results=config.search.max_results)
    try:
        matches = asyncio.run(discovery.run(pattern, regex))
    except DiscoveryError as e:
        console.print(f"[red]Search error: {e}[/]")
        raise typer.Exit(1)

    if not matches:
        console.print(f'[dim]No matches found for "{pattern}"[/]')
        return

    table = Table(title=f'Matches for "{pattern}"', border_style="cyan")
    table.add_column("File")
    table.add_column("Line", style="dim", justify="right")
    table.add_column("Col", style="dim", justify="right")
    table.add_column("Content")

    for m in matches:
        table.add_row(relative_path(m.file, repo), str(m.line), str(m.column), m.content.strip()[:80])

    console.print(table)
    if len(matches) >= config.search.max_results:
        console.print(f"[yellow]Limited to the first {config.search.max_results} matches.[/]")


@app.command()
def status(
    repo: Optional[Path] = typer.Option(None, "--repo", "-r"),
):
    """Check SCOUR configuration and readiness."""
    _print_banner()
    repo = (repo or Path.cwd()).resolve()
    config = load_config(repo)

    console.print("[bold]Search:[/]")
    console.print(f"  Max results:  {config.search.max_results}")
    console.print(f"  Panel ratio:  {config.search.panel_ratio}")
    console.print(f"  Regex:        {config.search.regex}")
    console.print("\n[bold]References:[/]")
    console.print(f"  Max results:  {config.references.max_results}")
    console.print(f"  Panel ratio:  {config.references.panel_ratio}")

    overrides = repo / REPO_CONFIG
    console.print(f"\n[bold]Repo config:[/] {overrides if overrides.exists() else '[dim]none[/]'}")

    tools_table = Table(title="System Tools", border_style="cyan")
    tools_table.add_column("Tool")
    tools_table.add_column("Status")

    git = shutil.which("git")
    tools_table.add_row("git", f"[green]✓ {git}[/]" if git else "[red]✗ Not found[/]")
    in_repo = bool(git) and _is_work_tree(repo)
    tools_table.add_row("git work tree", "[green]✓[/]" if in_repo else "[red]✗[/]")

    console.print(tools_table)


@app.command()
def init(
    repo: Optional[Path] = typer.Argument(None, help="Path to repository"),
):
    """Initialize a .scour directory in a repository."""
    _print_banner()

    repo = (repo or Path.cwd()).resolve()
    config_path = repo / REPO_CONFIG
    config_path.parent.mkdir(exist_ok=True)

    if config_path.exists():
        console.print(f"[dim]Config already exists: {config_path}[/]")
        return

    config_path.write_text("""# SCOUR repo-level config overrides
# These merge with the built-in defaults.

# search:
#   max_results: 500
#   panel_ratio: 0.5
#   regex: true
#   keys:
#     execute: ["R"]

# references:
#   max_results: 50
""")
    console.print(f"[green]✅ Initialized SCOUR in {config_path.parent}[/]")
    console.print(f"  Config:  {config_path}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def build_host(repo: Path, config: ScourConfig, console_: Console | None = None) -> TerminalHost:
    """Wire the terminal host, the plugin runtime and every plugin together."""
    host = TerminalHost(repo, console=console_ or console)
    runtime = PluginRuntime(host)
    files = FileStore(repo)
    runtime.install(SearchReplacePlugin(host, repo, config.search, files=files))
    runtime.install(ReferencesPlugin(host, files, config.references))
    runtime.install(MarkdownSourcePlugin(host, config.markdown))
    host.attach(runtime)
    return host


def _resolve_repo(repo: Path | None) -> Path:
    repo = (repo or Path.cwd()).resolve()
    if not repo.exists():
        console.print(f"[red]Repository not found: {repo}[/]")
        raise typer.Exit(1)
    return repo


def _is_work_tree(repo: Path) -> bool:
    result = subprocess.run(
        ["git", "rev-parse", "--is-inside-work-tree"],
        cwd=repo, capture_output=True, text=True, timeout=10,
    )
    return result.returncode == 0 and result.stdout.strip() == "true"


def _configure_logging(verbose: bool, config: ScourConfig | None = None) -> None:
    logger.remove()
    if verbose:
        logger.add(
            lambda msg: console.print(Text(str(msg).rstrip(), style="dim"), highlight=False),
            level="DEBUG",
            format="{time:HH:mm:ss} | {level:<7} | {message}",
        )
    else:
        level = config.logging.level if config else "WARNING"
        logger.add(
            lambda msg: console.print(Text(str(msg).rstrip(), style="dim"), highlight=False),
            level=level,
            format="{message}",
        )


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
