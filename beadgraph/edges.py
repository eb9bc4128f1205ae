"""Edge derivation and graph assembly. Pure functions, no I/O."""

from collections.abc import Iterable, Sequence

from beadgraph.models import Bead, EdgeType, GraphEdge, GraphNode

PARENT_CHILD = "parent-child"


def _normalize_dependency_type(raw: str) -> str:
    return raw.casefold().replace("_", "-")


def derive_edges(bead: Bead) -> list[GraphEdge]:
    """Return the edges that point TO this bead.

    Each dependency reference becomes one edge; "parent-child" (any case,
    '-' or '_') is a hierarchy edge, everything else is a dependency edge.
    A non-empty parent pointer yields one hierarchy edge unless a matching one
    was already declared.
    """
    edges: list[GraphEdge] = []
    for dep in bead.dependencies:
        if _normalize_dependency_type(dep.dependency_type) == PARENT_CHILD:
            edge_type = EdgeType.HIERARCHY
        else:
            edge_type = EdgeType.DEPENDENCY
        edges.append(GraphEdge(from_id=dep.id, to_id=bead.id, type=edge_type))

    if bead.parent:
        fallback = GraphEdge(from_id=bead.parent, to_id=bead.id, type=EdgeType.HIERARCHY)
        if fallback not in edges:
            edges.append(fallback)

    return edges


def assemble_graph(beads: Sequence[Bead]) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Map beads to nodes and concatenate their edges, both in input order."""
    nodes = [bead.to_node() for bead in beads]
    edges: list[GraphEdge] = []
    for bead in beads:
        edges.extend(derive_edges(bead))
    return nodes, edges


def hidden_dependency_ids(nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> list[str]:
    """IDs referenced as an edge source but absent from the node set (e.g. closed deps in Active)."""
    known = {node.id for node in nodes}
    return sorted({edge.from_id for edge in edges if edge.from_id not in known})
