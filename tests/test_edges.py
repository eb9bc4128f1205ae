"""Tests for edge derivation and graph assembly."""

import pytest

from beadgraph.edges import assemble_graph, derive_edges, hidden_dependency_ids
from beadgraph.models import Bead, BeadReference, EdgeType, GraphEdge
from tests.helpers import enriched, make_bead


def _hier(src: str, dst: str) -> GraphEdge:
    return GraphEdge(from_id=src, to_id=dst, type=EdgeType.HIERARCHY)


def _dep(src: str, dst: str) -> GraphEdge:
    return GraphEdge(from_id=src, to_id=dst, type=EdgeType.DEPENDENCY)


class TestDeriveEdges:
    @pytest.mark.parametrize("dep_type", ["parent-child", "PARENT_CHILD", "Parent-Child", "parent_child"])
    def test_parent_child_spellings_are_hierarchy(self, dep_type: str) -> None:
        bead = enriched(make_bead("bd-2"), BeadReference(id="bd-1", dependency_type=dep_type))
        assert derive_edges(bead) == [_hier("bd-1", "bd-2")]

    @pytest.mark.parametrize("dep_type", ["blocks", "", "related", "parentchild"])
    def test_everything_else_is_dependency(self, dep_type: str) -> None:
        bead = enriched(make_bead("bd-2"), BeadReference(id="bd-1", dependency_type=dep_type))
        assert derive_edges(bead) == [_dep("bd-1", "bd-2")]

    def test_preserves_reference_order(self) -> None:
        bead = enriched(
            make_bead("bd-9"),
            BeadReference(id="bd-3", dependency_type="blocks"),
            BeadReference(id="bd-1", dependency_type="parent-child"),
            BeadReference(id="bd-2", dependency_type="blocks"),
        )
        assert derive_edges(bead) == [_dep("bd-3", "bd-9"), _hier("bd-1", "bd-9"), _dep("bd-2", "bd-9")]

    def test_parent_without_dependencies_synthesizes_one_edge(self) -> None:
        bead = make_bead("bd-2", parent="E")
        assert derive_edges(bead) == [_hier("E", "bd-2")]

    def test_declared_parent_not_duplicated(self) -> None:
        bead = enriched(make_bead("bd-2", parent="E"), BeadReference(id="E", dependency_type="parent-child"))
        edges = derive_edges(bead)
        assert edges == [_hier("E", "bd-2")]

    def test_parent_declared_as_blocker_still_gets_hierarchy(self) -> None:
        bead = enriched(make_bead("bd-2", parent="E"), BeadReference(id="E", dependency_type="blocks"))
        assert derive_edges(bead) == [_dep("E", "bd-2"), _hier("E", "bd-2")]

    def test_synthesized_edge_is_appended_last(self) -> None:
        bead = enriched(make_bead("bd-2", parent="E"), BeadReference(id="bd-7", dependency_type="blocks"))
        assert derive_edges(bead)[-1] == _hier("E", "bd-2")

    def test_no_dependencies_no_parent_is_empty_list(self) -> None:
        edges = derive_edges(make_bead("bd-2"))
        assert edges == []
        assert isinstance(edges, list)


class TestAssembleGraph:
    def test_nodes_and_edges_in_input_order(self, epic_family: tuple[list[Bead], dict[str, Bead]]) -> None:
        _, details = epic_family
        beads = [details["bd-1"], details["bd-2"], details["bd-3"]]
        nodes, edges = assemble_graph(beads)

        assert [n.id for n in nodes] == ["bd-1", "bd-2", "bd-3"]
        assert edges == [_hier("bd-1", "bd-2"), _hier("bd-1", "bd-3"), _dep("bd-2", "bd-3")]

    def test_empty(self) -> None:
        assert assemble_graph([]) == ([], [])

    def test_no_filtering(self) -> None:
        agent = make_bead("bd-a", issue_type="agent", status="closed")
        nodes, _ = assemble_graph([agent])
        assert [n.id for n in nodes] == ["bd-a"]


def test_hidden_dependency_ids() -> None:
    nodes, edges = assemble_graph(
        [
            enriched(make_bead("bd-2"), BeadReference(id="bd-old", dependency_type="blocks")),
            make_bead("bd-3", parent="bd-2"),
            make_bead("bd-4", parent="bd-old"),
        ]
    )
    assert hidden_dependency_ids(nodes, edges) == ["bd-old"]
