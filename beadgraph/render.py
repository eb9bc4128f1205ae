"""Renderer contract and a rich table renderer."""

from typing import Protocol

from rich.console import Console, Group
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from beadgraph.models import Bead, DetailState, EdgeType, GraphSnapshot

_STATUS_ICON = {"open": "o", "in_progress": "*", "blocked": "x", "deferred": "-", "closed": "."}


class Renderer(Protocol):
    def show_graph(self, snapshot: GraphSnapshot) -> None: ...

    def show_detail(self, state: DetailState) -> None: ...


def status_icon(status: str) -> str:
    return _STATUS_ICON.get(status, "?")


def priority_label(priority: int) -> str:
    if priority < 0 or priority > 4:
        return "P?"
    return f"P{priority}"


def graph_tables(snapshot: GraphSnapshot) -> Group:
    """Render a snapshot as a node table and an edge table."""
    nodes = Table(title=snapshot.status_line())
    nodes.add_column("", width=1)
    nodes.add_column("ID", style="cyan")
    nodes.add_column("Pri")
    nodes.add_column("Type")
    nodes.add_column("Title")
    for node in snapshot.nodes:
        title = Text(node.title, style="bold" if node.is_epic else "")
        nodes.add_row(status_icon(node.status), node.id, priority_label(node.priority), node.type, title)

    edges = Table(title="Edges")
    edges.add_column("From", style="cyan")
    edges.add_column("")
    edges.add_column("To", style="cyan")
    edges.add_column("Type", style="dim")
    for edge in snapshot.edges:
        arrow = "──▶" if edge.type is EdgeType.HIERARCHY else "╌╌▶"
        edges.add_row(edge.from_id, arrow, edge.to_id, edge.type.value)

    if snapshot.error:
        return Group(Text(f"Error: {snapshot.error}", style="red"), nodes, edges)
    return Group(nodes, edges)


def bead_table(bead: Bead) -> Table:
    """Full detail table for one bead."""
    table = Table(title=f"{bead.id}: {bead.title}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Status", f"{status_icon(bead.status)} {bead.status}")
    table.add_row("Priority", priority_label(bead.priority))
    table.add_row("Type", bead.issue_type or "—")
    table.add_row("Parent", bead.parent or "—")
    table.add_row("Labels", ", ".join(bead.labels) if bead.labels else "none")
    if bead.closed_at:
        table.add_row("Closed", bead.closed_at.isoformat())
    for label, refs in (("Depends on", bead.dependencies), ("Dependents", bead.dependents)):
        if refs:
            lines = (f"{r.id} [{r.dependency_type or 'blocks'}] {r.title}" for r in refs)
            table.add_row(label, escape("\n".join(lines)))
    table.add_row("Description", bead.description or "_No description provided._")
    if bead.notes:
        table.add_row("Notes", bead.notes)
    return table


class RichRenderer:
    """Prints each accepted snapshot. Suitable for watch mode, not for a full TUI."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()
        self._last_status = ""

    def show_graph(self, snapshot: GraphSnapshot) -> None:
        # Loading transitions only update the status line
        if snapshot.loading:
            status = snapshot.status_line()
            if status != self._last_status:
                self._console.print(f"[dim]{status}[/dim]")
                self._last_status = status
            return
        self._last_status = ""
        self._console.print(graph_tables(snapshot))

    def show_detail(self, state: DetailState) -> None:
        if not state.showing or state.node is None:
            return
        if state.loading:
            self._console.print(f"[dim]{state.node.id}: Loading details...[/dim]")
        elif state.error:
            self._console.print(f"[red]Error: {state.error}[/red]")
        elif state.bead is not None:
            self._console.print(bead_table(state.bead))
        else:
            self._console.print(f"{state.node.id}: {state.node.title} [dim](Full details not available)[/dim]")
