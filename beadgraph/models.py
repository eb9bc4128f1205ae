"""Shared pydantic models — the contract between sources, the pipeline and renderers."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, ValidationInfo, field_validator

_TIMESTAMP = TypeAdapter(datetime)


class GraphView(str, Enum):
    """Which set of beads the graph shows."""

    ACTIVE = "active"  # open, in_progress, blocked
    BACKLOG = "backlog"  # deferred
    CLOSED = "closed"  # closed in the last 7 days

    def next(self) -> "GraphView":
        order = list(GraphView)
        return order[(order.index(self) + 1) % len(order)]


class EdgeType(str, Enum):
    HIERARCHY = "hierarchy"  # parent -> child
    DEPENDENCY = "dependency"  # prerequisite -> dependent


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"


class BeadReference(BaseModel):
    """A reference to another bead in dependencies/dependents."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str = ""
    status: str = ""
    dependency_type: str = ""  # "parent-child" | "blocks" | anything br emits

    @field_validator("title", "status", "dependency_type", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class Bead(BaseModel):
    """Raw bead data as emitted by `br list --json` / `br show --json`."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    title: str = ""
    description: str = ""
    status: str = ""
    priority: int = 2
    issue_type: str = ""
    created_at: datetime | None = None
    created_by: str = ""
    updated_at: datetime | None = None
    closed_at: datetime | None = None
    parent: str = ""
    notes: str = ""
    labels: list[str] = []
    dependency_count: int = 0
    dependent_count: int = 0
    # Only populated by the full-detail fetch
    dependencies: list[BeadReference] = []
    dependents: list[BeadReference] = []

    @field_validator("id")
    @classmethod
    def _id_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("bead id must not be empty")
        return value

    @field_validator("created_at", "updated_at", "closed_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: object) -> datetime | None:
        # br emits "" for unset timestamps; unparseable text counts as unset too
        if not value:
            return None
        try:
            return _TIMESTAMP.validate_python(value)
        except ValidationError:
            return None

    @field_validator("title", "status", "issue_type", "parent", "description", "notes", "created_by", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("labels", "dependencies", "dependents", mode="before")
    @classmethod
    def _none_to_list(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("priority", "dependency_count", "dependent_count", mode="before")
    @classmethod
    def _none_to_default(cls, value: object, info: ValidationInfo) -> object:
        return cls.model_fields[info.field_name].default if value is None else value

    def to_node(self) -> "GraphNode":
        return GraphNode(
            id=self.id,
            title=self.title,
            status=self.status,
            priority=self.priority,
            type=self.issue_type,
            parent=self.parent,
            is_epic=self.issue_type == "epic",
        )


class GraphNode(BaseModel):
    """Render-ready projection of a Bead."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    status: str
    priority: int
    type: str
    parent: str = ""
    is_epic: bool = False


class GraphEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_id: str
    to_id: str
    type: EdgeType


class GraphSnapshot(BaseModel):
    """Everything a renderer needs for one frame of the graph pane."""

    model_config = ConfigDict(frozen=True)

    view: GraphView
    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    loading: bool = False
    error: str = ""
    hidden_dependencies: int = 0

    def status_line(self) -> str:
        parts = [self.view.value, f"{len(self.nodes)} beads"]
        if self.hidden_dependencies:
            noun = "dep" if self.hidden_dependencies == 1 else "deps"
            parts.append(f"{self.hidden_dependencies} {noun} hidden")
        if self.loading:
            parts.append("loading…")
        if self.error:
            parts.append(f"error: {self.error}")
        return " · ".join(parts)


class DetailState(BaseModel):
    """Inline detail view state for one selected node."""

    model_config = ConfigDict(frozen=True)

    showing: bool = False
    node: GraphNode | None = None
    bead: Bead | None = None  # full data, loaded async
    loading: bool = False
    error: str = ""
    scroll: int = 0
