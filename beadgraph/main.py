"""beadgraph CLI — all commands."""

import asyncio
from typing import Annotated

import tomlkit
import typer
from rich import print as rprint
from rich.table import Table

from beadgraph.coordinator import RefreshCoordinator
from beadgraph.detail import DetailCoordinator
from beadgraph.edges import assemble_graph, hidden_dependency_ids
from beadgraph.fetcher import BeadFetcher, FetchError
from beadgraph.log import configure_logging
from beadgraph.models import Bead, DetailState, GraphSnapshot, GraphView
from beadgraph.render import RichRenderer, graph_tables
from beadgraph.settings import CONFIG_PATH, BeadGraphSettings, _list_profiles, get_settings
from beadgraph.sources.br import BrSource

app = typer.Typer(help="beadgraph: live dependency graph of br beads", no_args_is_help=True)

WorkspaceOpt = Annotated[
    str | None,
    typer.Option("--workspace", "-w", help="Profile name from ~/.config/beadgraph/config.toml"),
]
ViewOpt = Annotated[
    GraphView | None,
    typer.Option("--view", "-v", help="Which beads to show (default from settings)"),
]


# ---------------------------------------------------------------------------
# Fetcher factory
# ---------------------------------------------------------------------------


def load_settings(workspace: str | None = None) -> BeadGraphSettings:
    settings = get_settings(workspace=workspace)
    configure_logging(settings.log_level)
    return settings


def get_fetcher(settings: BeadGraphSettings) -> BeadFetcher:
    return BeadFetcher(BrSource(settings))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("graph")
def graph_cmd(workspace: WorkspaceOpt = None, view: ViewOpt = None) -> None:
    """Fetch one view and print its nodes and edges."""
    settings = load_settings(workspace)
    fetcher = get_fetcher(settings)
    view = view or settings.default_view

    try:
        beads = asyncio.run(fetcher.fetch_view(view))
    except FetchError as exc:
        rprint(f"[red]{exc}[/red]")
        raise typer.Exit(1)

    nodes, edges = assemble_graph(beads)
    snapshot = GraphSnapshot(
        view=view,
        nodes=tuple(nodes),
        edges=tuple(edges),
        hidden_dependencies=len(hidden_dependency_ids(nodes, edges)),
    )
    rprint(graph_tables(snapshot))


async def _show(detail: DetailCoordinator, bead_id: str) -> DetailState:
    detail.open(Bead(id=bead_id).to_node())
    await detail.wait()
    return detail.state


@app.command("show")
def show_cmd(
    bead_id: Annotated[str, typer.Argument(help="Bead ID")],
    workspace: WorkspaceOpt = None,
) -> None:
    """Show full details for a bead, labels and references included."""
    settings = load_settings(workspace)
    detail = DetailCoordinator(get_fetcher(settings), settings, renderer=RichRenderer())

    state = asyncio.run(_show(detail, bead_id))
    if state.error:
        raise typer.Exit(1)


async def _watch(coordinator: RefreshCoordinator) -> None:
    coordinator.start()
    try:
        await asyncio.Event().wait()
    finally:
        coordinator.stop()


@app.command("watch")
def watch_cmd(
    workspace: WorkspaceOpt = None,
    view: ViewOpt = None,
    interval: Annotated[
        float | None,
        typer.Option("--interval", "-i", min=0, help="Auto-refresh seconds (0 disables, minimum 1)"),
    ] = None,
) -> None:
    """Refresh the graph on an interval until interrupted."""
    settings = load_settings(workspace)
    if interval is not None:
        settings = settings.model_copy(update={"auto_refresh_interval": interval})
    if settings.effective_auto_refresh() is None:
        rprint("[yellow]Auto-refresh is disabled; showing a single refresh.[/yellow]")

    coordinator = RefreshCoordinator(get_fetcher(settings), settings, renderer=RichRenderer())
    if view is not None:
        coordinator.set_view(view)

    try:
        asyncio.run(_watch(coordinator))
    except KeyboardInterrupt:
        rprint("[dim]stopped[/dim]")


@app.command("set-default")
def set_default(
    workspace: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default workspace profile in ~/.config/beadgraph/config.toml."""
    if not CONFIG_PATH.exists():
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()
        doc.add("default_workspace", workspace)
        CONFIG_PATH.write_text(tomlkit.dumps(doc))
        rprint(f'[green]✓[/green] Default workspace set to "{workspace}" in {CONFIG_PATH}')
        return

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if workspace not in profiles:
        rprint(f"[red]Workspace '{workspace}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
        raise typer.Exit(1)

    doc["default_workspace"] = workspace
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default workspace set to "{workspace}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(workspace: WorkspaceOpt = None) -> None:
    """Show resolved configuration."""
    settings = get_settings(workspace=workspace)
    not_set = "[dim](not set)[/dim]"

    table = Table(title="beadgraph Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_workspace", settings.default_workspace or not_set)
    table.add_row("br_command", settings.br_command)
    table.add_row("workdir", str(settings.workdir) if settings.workdir else not_set)
    table.add_row("default_view", settings.default_view.value)
    refresh = settings.effective_auto_refresh()
    table.add_row("auto_refresh_interval", f"{refresh:g}s" if refresh is not None else "disabled")
    table.add_row("fetch_timeout", f"{settings.fetch_timeout:g}s")
    table.add_row("detail_timeout", f"{settings.detail_timeout:g}s")
    table.add_row("log_level", settings.log_level)

    rprint(table)
