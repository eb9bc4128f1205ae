"""Per-view bead retrieval: list, filter, enrich, drop agent beads."""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from beadgraph.enrich import EnrichmentCrashedError, enrich_beads
from beadgraph.models import Bead, GraphView
from beadgraph.sources.base import BeadSource, BeadSourceError

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("open", "in_progress", "blocked")
BACKLOG_STATUSES = ("deferred",)
CLOSED_WINDOW = timedelta(days=7)
AGENT_ISSUE_TYPE = "agent"


class FetchError(RuntimeError):
    """A whole view could not be fetched."""


def filter_by_status(beads: Sequence[Bead], *statuses: str) -> list[Bead]:
    wanted = set(statuses)
    return [b for b in beads if b.status in wanted]


def filter_closed_after(beads: Sequence[Bead], cutoff: datetime) -> list[Bead]:
    """Return beads closed after cutoff. Beads without a closed_at are excluded."""
    result = []
    for bead in beads:
        if bead.closed_at is None:
            continue
        closed_at = bead.closed_at
        if closed_at.tzinfo is None:
            closed_at = closed_at.replace(tzinfo=timezone.utc)
        if closed_at > cutoff:
            result.append(bead)
    return result


def agent_bead_ids(beads: Sequence[Bead]) -> set[str]:
    return {b.id for b in beads if b.issue_type == AGENT_ISSUE_TYPE}


def filter_out_agent_beads(beads: Sequence[Bead], agent_ids: set[str] | None = None) -> list[Bead]:
    """Drop internal agent-tracking beads and every reference to them.

    Surviving beads get their dependencies, dependents and parent pointer
    scrubbed of agent IDs, so no edge can point at a bead that is never shown.
    Pass agent_ids when agents may already have been filtered out of beads.
    """
    agent_ids = agent_bead_ids(beads) | (agent_ids or set())
    if not agent_ids:
        return list(beads)

    result = []
    for bead in beads:
        if bead.id in agent_ids:
            continue
        update: dict = {}
        if any(ref.id in agent_ids for ref in bead.dependencies):
            update["dependencies"] = [ref for ref in bead.dependencies if ref.id not in agent_ids]
        if any(ref.id in agent_ids for ref in bead.dependents):
            update["dependents"] = [ref for ref in bead.dependents if ref.id not in agent_ids]
        if bead.parent in agent_ids:
            update["parent"] = ""
        result.append(bead.model_copy(update=update) if update else bead)
    return result


class BeadFetcher:
    def __init__(self, source: BeadSource) -> None:
        self._source = source

    async def fetch_view(self, view: GraphView) -> list[Bead]:
        """Fetch, filter and enrich the beads shown by view."""
        try:
            beads = await self._source.list_beads(view)
        except BeadSourceError as exc:
            raise FetchError(f"br list {view.value} failed: {exc}") from exc

        # Agents outside this view can still be referenced by beads inside it
        agent_ids = agent_bead_ids(beads)

        match view:
            case GraphView.ACTIVE:
                beads = filter_by_status(beads, *ACTIVE_STATUSES)
            case GraphView.BACKLOG:
                beads = filter_by_status(beads, *BACKLOG_STATUSES)
            case GraphView.CLOSED:
                # br lacks --closed-after, so the date window is applied here
                cutoff = datetime.now(timezone.utc) - CLOSED_WINDOW
                beads = filter_closed_after(filter_by_status(beads, "closed"), cutoff)

        try:
            beads = await enrich_beads(self._source, beads)
        except EnrichmentCrashedError as exc:
            raise FetchError(f"failed to enrich {view.value} beads: {exc}") from exc

        return filter_out_agent_beads(beads, agent_ids)

    async def fetch_bead(self, bead_id: str) -> Bead:
        """Fetch full details for one bead, labels included when available."""
        bead = await self._source.show_bead(bead_id)
        try:
            labels = await self._source.list_labels(bead_id)
        except BeadSourceError as exc:
            # Labels are optional
            logger.debug("label fetch failed bead_id=%s error=%s", bead_id, exc)
            return bead
        return bead.model_copy(update={"labels": labels})
