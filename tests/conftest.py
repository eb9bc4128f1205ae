"""Shared test fixtures."""

from datetime import datetime, timezone

import pytest

from beadgraph.models import Bead, BeadReference
from beadgraph.settings import BeadGraphSettings
from tests.helpers import enriched, make_bead


@pytest.fixture
def settings() -> BeadGraphSettings:
    return BeadGraphSettings(auto_refresh_interval=0, fetch_timeout=5, detail_timeout=5)  # type: ignore[call-arg]


@pytest.fixture
def epic() -> Bead:
    return make_bead("bd-1", title="Graph pane", issue_type="epic")


@pytest.fixture
def epic_family(epic: Bead) -> tuple[list[Bead], dict[str, Bead]]:
    """One epic and two tasks; bd-2 is parented to the epic, bd-3 depends on bd-2."""
    task_a = make_bead("bd-2", title="Fetcher", parent="bd-1")
    task_b = make_bead("bd-3", title="Pane", status="blocked")
    listed = [epic, task_a, task_b]
    details = {
        "bd-1": enriched(epic),
        "bd-2": enriched(task_a, BeadReference(id="bd-1", dependency_type="parent-child")),
        "bd-3": enriched(
            task_b,
            BeadReference(id="bd-1", dependency_type="parent-child"),
            BeadReference(id="bd-2", dependency_type="blocks"),
        ),
    }
    return listed, details


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)
