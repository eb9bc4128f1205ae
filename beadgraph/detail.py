"""Inline detail drill-down for the selected node.

Tracks its own request IDs, independent of the graph refresh, so a slow fetch
for a previous selection can never overwrite the current one.
"""

import asyncio
import functools
import logging

from pydantic import BaseModel, ConfigDict

from beadgraph.fetcher import BeadFetcher
from beadgraph.models import Bead, DetailState, GraphNode
from beadgraph.render import Renderer
from beadgraph.settings import BeadGraphSettings
from beadgraph.sources.base import BeadSourceError

logger = logging.getLogger(__name__)


class DetailResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_id: int
    bead: Bead | None = None
    error: str = ""


class DetailCoordinator:
    def __init__(
        self,
        fetcher: BeadFetcher | None,
        settings: BeadGraphSettings,
        renderer: Renderer | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._settings = settings
        self._renderer = renderer
        self._tasks: set[asyncio.Task] = set()

        self.request_id = 0
        self.state = DetailState()

    def open(self, node: GraphNode) -> None:
        """Show node's summary right away and start loading its full details."""
        self.request_id += 1
        request_id = self.request_id
        self.state = DetailState(showing=True, node=node, loading=self._fetcher is not None)
        self._publish()

        if self._fetcher is None:
            return
        task = asyncio.get_running_loop().create_task(self._fetch(self._fetcher, request_id, node.id))
        self._tasks.add(task)
        task.add_done_callback(functools.partial(self._deliver, request_id))

    def close(self) -> None:
        """Return to the graph. In-flight fetches keep running; their results are dropped."""
        self.state = DetailState()
        self._publish()

    async def wait(self) -> None:
        """Wait until every in-flight fetch has reported back."""
        if self._tasks:
            await asyncio.wait(set(self._tasks))

    def handle_result(self, result: DetailResult) -> None:
        if result.request_id != self.request_id or not self.state.showing:
            return
        if result.error:
            self.state = self.state.model_copy(update={"loading": False, "error": result.error})
        else:
            self.state = self.state.model_copy(update={"loading": False, "error": "", "bead": result.bead})
        self._publish()

    def scroll_up(self) -> None:
        if self.state.scroll > 0:
            self._scroll_to(self.state.scroll - 1)

    def scroll_down(self) -> None:
        # Renderers cap this against the content height
        self._scroll_to(self.state.scroll + 1)

    def scroll_home(self) -> None:
        self._scroll_to(0)

    def _scroll_to(self, position: int) -> None:
        if self.state.showing:
            self.state = self.state.model_copy(update={"scroll": position})
            self._publish()

    async def _fetch(self, fetcher: BeadFetcher, request_id: int, bead_id: str) -> DetailResult:
        try:
            async with asyncio.timeout(self._settings.detail_timeout):
                bead = await fetcher.fetch_bead(bead_id)
        except TimeoutError:
            return DetailResult(
                request_id=request_id,
                error=f"loading {bead_id} timed out after {self._settings.detail_timeout:g}s",
            )
        except BeadSourceError as exc:
            return DetailResult(request_id=request_id, error=str(exc))
        return DetailResult(request_id=request_id, bead=bead)

    def _deliver(self, request_id: int, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("detail fetch crashed", exc_info=exc)
            self.handle_result(DetailResult(request_id=request_id, error=str(exc) or type(exc).__name__))
            return
        self.handle_result(task.result())

    def _publish(self) -> None:
        if self._renderer is not None:
            self._renderer.show_detail(self.state)
