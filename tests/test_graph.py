"""Tests for monobump.graph."""

from __future__ import annotations

import pytest
from helpers import make_graph

from monobump.errors import (
    DependencyCycleError,
    DuplicateModuleError,
    MissingRootModuleError,
    UnknownModuleError,
)
from monobump.graph import ModuleGraph
from monobump.models import Module


class TestConstruction:
    def test_duplicate_id_raises(self) -> None:
        with pytest.raises(DuplicateModuleError, match=":a"):
            ModuleGraph([Module(id=":a"), Module(id=":a")])

    def test_dangling_dependency_raises(self) -> None:
        with pytest.raises(UnknownModuleError) as exc_info:
            ModuleGraph([Module(id=":a", deps=(":missing",))])
        assert exc_info.value.module_id == ":missing"
        assert exc_info.value.referenced_by == ":a"

    def test_dependents_are_inverse_of_deps(self) -> None:
        graph = make_graph(
            (":app", "1.0.0", [":lib", ":util"]),
            (":lib", "1.0.0", [":util"]),
            (":util", "1.0.0", []),
        )
        assert graph.dependents_of(":util") == {":app", ":lib"}
        assert graph.dependents_of(":app") == frozenset()
        assert graph.dependencies_of(":app") == {":lib", ":util"}

    def test_ids_keep_declaration_order(self) -> None:
        graph = make_graph((":z", "1.0.0", []), (":a", "1.0.0", []))
        assert graph.ids == [":", ":z", ":a"]
        assert len(graph) == 3
        assert ":z" in graph and ":nope" not in graph

    def test_get_unknown_raises(self) -> None:
        with pytest.raises(UnknownModuleError):
            make_graph().get(":nope")


class TestRoot:
    def test_returns_root(self) -> None:
        assert make_graph().root().is_root

    def test_missing_root_raises(self) -> None:
        graph = ModuleGraph([Module(id=":a")])
        with pytest.raises(MissingRootModuleError):
            graph.root()


class TestTopologicalOrder:
    def test_no_deps(self) -> None:
        graph = make_graph(
            (":c", "1.0.0", []), (":b", "1.0.0", []), (":a", "1.0.0", [])
        )
        assert graph.topological_order() == [":", ":a", ":b", ":c"]

    def test_reverse_tie_break(self) -> None:
        graph = make_graph(
            (":c", "1.0.0", []), (":b", "1.0.0", []), (":a", "1.0.0", [])
        )
        assert graph.topological_order(reverse=True) == [":c", ":b", ":a", ":"]

    def test_reverse_prefers_longer_prefix(self) -> None:
        graph = make_graph((":b", "1.0.0", []), (":ba", "1.0.0", []))
        assert graph.topological_order(reverse=True) == [":ba", ":b", ":"]

    def test_linear_deps(self) -> None:
        graph = make_graph(
            (":a", "1.0.0", [":b"]), (":b", "1.0.0", [":c"]), (":c", "1.0.0", [])
        )
        order = graph.topological_order()
        assert order.index(":c") < order.index(":b") < order.index(":a")

    @pytest.mark.parametrize("reverse", [False, True])
    def test_diamond_deps(self, reverse: bool) -> None:
        graph = make_graph(
            (":top", "1.0.0", [":left", ":right"]),
            (":left", "1.0.0", [":bottom"]),
            (":right", "1.0.0", [":bottom"]),
            (":bottom", "1.0.0", []),
        )
        order = graph.topological_order(reverse=reverse)
        assert order.index(":bottom") < order.index(":left")
        assert order.index(":bottom") < order.index(":right")
        assert order.index(":left") < order.index(":top")
        assert order.index(":right") < order.index(":top")

    def test_cycle_raises(self) -> None:
        graph = make_graph((":a", "1.0.0", [":b"]), (":b", "1.0.0", [":a"]))
        with pytest.raises(DependencyCycleError, match="cycle") as exc_info:
            graph.topological_order()
        assert exc_info.value.cycle == [":a", ":b", ":a"]
        assert exc_info.value.modules == [":a", ":b"]

    def test_three_way_cycle_reports_path(self) -> None:
        graph = make_graph(
            (":a", "1.0.0", [":b"]), (":b", "1.0.0", [":c"]), (":c", "1.0.0", [":a"])
        )
        with pytest.raises(DependencyCycleError) as exc_info:
            graph.topological_order()
        assert exc_info.value.cycle == [":a", ":b", ":c", ":a"]
        assert ":a -> :b -> :c -> :a" in str(exc_info.value)

    def test_cycle_downstream_modules_reported_unresolved(self) -> None:
        graph = make_graph(
            (":a", "1.0.0", [":b"]), (":b", "1.0.0", [":a"]), (":app", "1.0.0", [":a"])
        )
        with pytest.raises(DependencyCycleError) as exc_info:
            graph.topological_order()
        assert exc_info.value.cycle == [":a", ":b", ":a"]
        assert exc_info.value.modules == [":a", ":app", ":b"]

    def test_self_dependency_is_cycle(self) -> None:
        graph = make_graph((":a", "1.0.0", [":a"]))
        assert graph.find_cycle() == [":a", ":a"]


class TestFindCycle:
    def test_acyclic_returns_none(self) -> None:
        graph = make_graph((":a", "1.0.0", [":b"]), (":b", "1.0.0", []))
        assert graph.find_cycle() is None
