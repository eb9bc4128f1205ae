"""Bounded-concurrency enrichment of list data with full `show` details."""

import asyncio
import logging
from collections.abc import Sequence

from beadgraph.models import Bead
from beadgraph.sources.base import BeadSource, BeadSourceError

logger = logging.getLogger(__name__)

# Maximum number of show_bead calls in flight at once
MAX_CONCURRENT_FETCHES = 5


class EnrichmentCrashedError(RuntimeError):
    """One or more enrichment workers crashed.

    Carries the result anyway: crashed slots hold their list data, every other
    slot holds whatever its worker produced.
    """

    def __init__(self, beads: list[Bead], crashed_ids: list[str]) -> None:
        super().__init__(f"enrichment worker crashed for {len(crashed_ids)} bead(s): {', '.join(crashed_ids)}")
        self.beads = beads
        self.crashed_ids = crashed_ids


async def enrich_beads(source: BeadSource, beads: Sequence[Bead]) -> list[Bead]:
    """Fetch full dependency data for each bead, at most MAX_CONCURRENT_FETCHES at a time.

    Output slot i always corresponds to input bead i. A bead whose fetch fails
    keeps its list data and is reported in one aggregate warning; that is not
    an error. A worker crash raises EnrichmentCrashedError after every worker
    has finished. Cancellation stops dispatch, cancels and joins the workers
    already started, then propagates.
    """
    if not beads:
        return []

    result = list(beads)
    permits = asyncio.Semaphore(MAX_CONCURRENT_FETCHES)
    lock = asyncio.Lock()
    failed_ids: list[str] = []
    crashed_ids: list[str] = []

    async def worker(idx: int) -> None:
        bead = beads[idx]
        try:
            enriched = await source.show_bead(bead.id)
        except asyncio.CancelledError:
            logger.debug("bead enrichment cancelled bead_id=%s", bead.id)
            raise
        except TimeoutError:
            logger.debug("bead enrichment timed out bead_id=%s", bead.id)
            return
        except BeadSourceError as exc:
            logger.warning("failed to enrich bead, using basic data bead_id=%s error=%s", bead.id, exc)
            async with lock:
                failed_ids.append(bead.id)
            return
        except Exception:
            logger.exception("enrichment worker crashed bead_id=%s", bead.id)
            async with lock:
                crashed_ids.append(bead.id)
            return

        async with lock:
            result[idx] = enriched

    async with asyncio.TaskGroup() as group:
        for idx in range(len(beads)):
            # Cancellation here leaves the TaskGroup to cancel and join what's been dispatched
            await permits.acquire()
            task = group.create_task(worker(idx))
            task.add_done_callback(lambda _: permits.release())

    if crashed_ids:
        raise EnrichmentCrashedError(result, crashed_ids)

    if failed_ids:
        logger.warning(
            "enrichment partially failed total=%d failed=%d failed_ids=%s",
            len(beads),
            len(failed_ids),
            failed_ids,
        )

    return result
