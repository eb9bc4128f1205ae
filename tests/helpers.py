"""Test doubles shared across test modules."""

import asyncio

from beadgraph.models import Bead, BeadReference, GraphSnapshot, GraphView
from beadgraph.sources.base import BeadSource, BeadSourceError


class FakeSource(BeadSource):
    """In-memory BeadSource with per-call instrumentation.

    details: full records returned by show_bead, keyed by ID
    failing: IDs whose show_bead raises BeadSourceError
    crashing: IDs whose show_bead raises something outside the source contract
    delay: seconds each show_bead sleeps before answering
    """

    def __init__(
        self,
        listed: list[Bead] | None = None,
        details: dict[str, Bead] | None = None,
        failing: set[str] | None = None,
        crashing: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.listed = listed or []
        self.details = details or {}
        self.failing = failing or set()
        self.crashing = crashing or set()
        self.delay = delay
        self.labels: dict[str, list[str]] = {}
        self.list_error: str | None = None
        self.list_calls: list[GraphView] = []
        self.show_calls: list[str] = []
        self.started = 0
        self.completed = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_beads(self, view: GraphView) -> list[Bead]:
        self.list_calls.append(view)
        if self.list_error:
            raise BeadSourceError(self.list_error)
        return list(self.listed)

    async def show_bead(self, bead_id: str) -> Bead:
        self.show_calls.append(bead_id)
        self.started += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if bead_id in self.crashing:
                raise KeyError(bead_id)
            if bead_id in self.failing:
                raise BeadSourceError(f"br show {bead_id} failed: exit status 1")
            return self.details[bead_id]
        finally:
            self.in_flight -= 1
            self.completed += 1

    async def list_labels(self, bead_id: str) -> list[str]:
        if bead_id not in self.labels:
            raise BeadSourceError(f"no labels for {bead_id}")
        return self.labels[bead_id]


class RecordingRenderer:
    def __init__(self) -> None:
        self.snapshots: list[GraphSnapshot] = []
        self.details: list = []

    def show_graph(self, snapshot: GraphSnapshot) -> None:
        self.snapshots.append(snapshot)

    def show_detail(self, state) -> None:
        self.details.append(state)


def make_bead(bead_id: str, **kwargs) -> Bead:
    defaults = {"title": f"Bead {bead_id}", "status": "open", "priority": 2, "issue_type": "task"}
    defaults.update(kwargs)
    return Bead(id=bead_id, **defaults)


def enriched(bead: Bead, *deps: BeadReference) -> Bead:
    return bead.model_copy(update={"dependencies": list(deps), "description": "full"})

