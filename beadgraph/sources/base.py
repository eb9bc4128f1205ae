"""Abstract base class for bead data sources."""

from abc import ABC, abstractmethod

from beadgraph.models import Bead, GraphView


class BeadSourceError(RuntimeError):
    """A single source call failed (transport, exit status, or unparseable output)."""


class BeadSource(ABC):
    """Turns list/show/label requests into Bead records.

    Implementations must be safe to call concurrently. Failures are reported as
    BeadSourceError; anything else escaping a call is treated as a crash.
    """

    @abstractmethod
    async def list_beads(self, view: GraphView) -> list[Bead]: ...

    @abstractmethod
    async def show_bead(self, bead_id: str) -> Bead: ...

    @abstractmethod
    async def list_labels(self, bead_id: str) -> list[str]: ...
