"""Refresh coordination for the graph pane.

All state here is owned by the event loop. Fetches run as tasks and report
back through GraphResult messages tagged with the request ID they were issued
under; only a result carrying the current ID is applied, and it replaces the
graph wholesale.
"""

import asyncio
import functools
import logging

from pydantic import BaseModel, ConfigDict

from beadgraph.edges import assemble_graph, hidden_dependency_ids
from beadgraph.fetcher import BeadFetcher, FetchError
from beadgraph.models import Bead, GraphEdge, GraphNode, GraphSnapshot, GraphView, LoadState
from beadgraph.render import Renderer
from beadgraph.settings import BeadGraphSettings

logger = logging.getLogger(__name__)


class GraphResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_id: int
    beads: list[Bead] = []
    error: str = ""


class RefreshCoordinator:
    def __init__(
        self,
        fetcher: BeadFetcher | None,
        settings: BeadGraphSettings,
        renderer: Renderer | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._settings = settings
        self._renderer = renderer
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

        self.state = LoadState.IDLE
        self.request_id = 0
        self.view = settings.default_view
        self.visible = True
        self.error = ""
        self.nodes: list[GraphNode] = []
        self.edges: list[GraphEdge] = []

    # -- lifecycle --------------------------------------------------------

    def start(self) -> None:
        """Issue the initial refresh and start the auto-refresh timer."""
        self.refresh()
        self._schedule_auto_refresh()

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for task in list(self._tasks):
            task.cancel()
        # A cancelled fetch never reports back
        self.state = LoadState.IDLE

    # -- UI events --------------------------------------------------------

    def refresh(self) -> bool:
        """Start a fetch unless one is already in flight. Returns whether one started."""
        if self.state is LoadState.LOADING:
            return False

        # Commit the new ID before the fetch exists, so even an instant result matches
        self.request_id += 1
        self.state = LoadState.LOADING
        request_id = self.request_id
        self._publish()

        task = asyncio.get_running_loop().create_task(self._fetch(request_id))
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._deliver, request_id))
        return True

    def set_view(self, view: GraphView) -> None:
        """Select the view the next fetch uses. Does not refresh."""
        self.view = view

    def cycle_view(self) -> None:
        self.set_view(self.view.next())
        self.refresh()

    def set_visible(self, visible: bool) -> None:
        self.visible = visible

    def clear_error(self) -> None:
        if self.error:
            self.error = ""
            self._publish()

    # -- results ----------------------------------------------------------

    def handle_result(self, result: GraphResult) -> None:
        if result.request_id != self.request_id:
            return
        self.state = LoadState.IDLE
        if result.error:
            self.error = result.error
        else:
            self.error = ""
            self.nodes, self.edges = assemble_graph(result.beads)
        self._publish()

    async def _fetch(self, request_id: int) -> GraphResult:
        if self._fetcher is None:
            return GraphResult(request_id=request_id)

        # Read the view now, not when the request was issued
        view = self.view
        try:
            async with asyncio.timeout(self._settings.fetch_timeout):
                beads = await self._fetcher.fetch_view(view)
        except TimeoutError:
            return GraphResult(
                request_id=request_id,
                error=f"fetching {view.value} beads timed out after {self._settings.fetch_timeout:g}s",
            )
        except FetchError as exc:
            return GraphResult(request_id=request_id, error=str(exc))
        return GraphResult(request_id=request_id, beads=beads)

    def _deliver(self, request_id: int, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("graph fetch crashed", exc_info=exc)
            self.handle_result(GraphResult(request_id=request_id, error=str(exc) or type(exc).__name__))
            return
        self.handle_result(task.result())

    # -- auto-refresh -----------------------------------------------------

    def _schedule_auto_refresh(self) -> None:
        interval = self._settings.effective_auto_refresh()
        if interval is None:
            return
        self._timer = asyncio.get_running_loop().call_later(interval, self._on_auto_refresh)

    def _on_auto_refresh(self) -> None:
        if self.visible and self.state is LoadState.IDLE:
            self.refresh()
        # Always reschedule so a skipped tick never stalls the cadence
        self._schedule_auto_refresh()

    # -- snapshots --------------------------------------------------------

    def find_node(self, bead_id: str) -> GraphNode | None:
        return next((n for n in self.nodes if n.id == bead_id), None)

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(
            view=self.view,
            nodes=tuple(self.nodes),
            edges=tuple(self.edges),
            loading=self.state is LoadState.LOADING,
            error=self.error,
            hidden_dependencies=len(hidden_dependency_ids(self.nodes, self.edges)),
        )

    def _publish(self) -> None:
        if self._renderer is not None:
            self._renderer.show_graph(self.snapshot())
