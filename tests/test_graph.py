from conftest import op

from production_planner.core.graph import DependencyGraph, find_cycles


def test_build_indexes_edges_and_dependents(shirt_ops):
    g = DependencyGraph.build(shirt_ops)
    assert g.order == ("cut", "sew", "iron", "pack")
    assert g.depends_on["pack"] == ("sew", "iron")
    assert g.dependents["cut"] == ("sew", "iron")
    assert g.missing == {}
    assert g.has_edge("cut", "sew")
    assert g.has_edge("sew", "cut")
    assert not g.has_edge("sew", "iron")
    assert "cut" in g


def test_missing_references_are_kept_aside():
    g = DependencyGraph.build([op("a"), op("b", deps=("a", "ghost"))])
    assert g.depends_on["b"] == ("a",)
    assert g.missing == {"b": ("ghost",)}


def test_transitively_blocked_follows_dependents():
    ops = [op("a"), op("b", deps=("ghost",)), op("c", deps=("b",)), op("d", deps=("a",))]
    g = DependencyGraph.build(ops)
    assert g.transitively_blocked() == {"b", "c"}


def test_detect_cycles_reports_closed_cycle():
    g = DependencyGraph.build([op("A", deps=("B",)), op("B", deps=("A",)), op("C")])
    cycles = g.detect_cycles()
    assert len(cycles) == 1
    assert cycles[0][0] == cycles[0][-1]
    assert set(cycles[0]) == {"A", "B"}


def test_detect_cycles_none_for_dag(shirt_ops):
    assert DependencyGraph.build(shirt_ops).detect_cycles() == []


def test_find_cycles_ignores_unknown_ids():
    assert find_cycles({"a": ["zzz"], "b": ["a"]}) == []


def test_find_cycles_three_node_loop():
    cycles = find_cycles({"1": ["3"], "2": ["1"], "3": ["2"]})
    assert len(cycles) == 1
    assert set(cycles[0]) == {"1", "2", "3"}
    assert len(cycles[0]) == 4


def test_topological_order_skips_cycle_members(shirt_ops):
    assert DependencyGraph.build(shirt_ops).topological_order() == ["cut", "sew", "iron", "pack"]
    g = DependencyGraph.build([op("A", deps=("B",)), op("B", deps=("A",)), op("C"), op("D", deps=("A",))])
    assert g.topological_order() == ["C"]


def test_duplicate_ids_keep_first_definition():
    g = DependencyGraph.build([op("a", 1), op("a", 99)])
    assert g.order == ("a",)
    assert g.operations_by_id["a"].duration_minutes == 1


def test_long_chain_does_not_recurse():
    n = 5000
    ops = [op("n0")] + [op(f"n{i}", deps=(f"n{i - 1}",)) for i in range(1, n)]
    g = DependencyGraph.build(ops)
    assert g.detect_cycles() == []
    assert len(g.topological_order()) == n


def test_without_treats_removed_operations_as_done(shirt_ops):
    g = DependencyGraph.build(shirt_ops).without({"cut", "sew"})
    assert g.order == ("iron", "pack")
    assert g.depends_on == {"iron": (), "pack": ("iron",)}
    assert g.dependents == {"iron": ("pack",), "pack": ()}
    assert "cut" not in g


def test_without_drops_missing_refs_of_removed_operations():
    g = DependencyGraph.build([op("b", deps=("ghost",)), op("c", deps=("b",))])
    assert g.transitively_blocked() == {"b", "c"}
    rest = g.without({"b"})
    assert rest.missing == {}
    assert rest.transitively_blocked() == set()
