"""Tests for checktree.tree."""

from __future__ import annotations

import time

from checktree.scan import scan_nodes
from checktree.tree import (
    Completion,
    Forest,
    Node,
    build_forest,
    build_tree,
    completion,
    flatten_headers,
)


def _shape(nodes: list[Node]) -> list:
    return [(n.label, _shape(n.children)) for n in nodes]


def _assert_nesting_invariant(forest: Forest) -> None:
    for node in forest.walk():
        if node.is_checkbox:
            for ancestor in forest.ancestors(node):
                assert ancestor.level < node.level


class TestBuildForest:
    def test_spec_scenario(self) -> None:
        forest = build_tree("# T\n- [ ] A\n  - [x] B\n")
        assert len(forest.roots) == 1
        t = forest.roots[0]
        assert t.label == "T" and t.is_header
        a = t.children[0]
        assert a.label == "A" and a.checked is False
        b = a.children[0]
        assert b.label == "B" and b.checked is True
        assert completion(forest) == Completion(completed=1, total=2)

    def test_sample_shape(self, sample_doc: str) -> None:
        forest = build_tree(sample_doc)
        assert _shape(forest.roots) == [
            ("Project", [
                ("Backend", [
                    ("API", [("Routes", []), ("Auth", [])]),
                    ("Database", []),
                ]),
                ("Frontend", [("Layout", []), ("Styles", [])]),
            ]),
        ]

    def test_sibling_headers(self) -> None:
        forest = build_tree("# A\n# B\n## C\n# D\n")
        assert _shape(forest.roots) == [("A", []), ("B", [("C", [])]), ("D", [])]

    def test_checkbox_before_any_header_is_root(self) -> None:
        forest = build_tree("- [ ] loose\n# H\n- [ ] owned\n")
        assert _shape(forest.roots) == [("loose", []), ("H", [("owned", [])])]

    def test_header_closes_checkbox_parents(self) -> None:
        forest = build_tree("# H\n- [ ] a\n  - [ ] b\n## Sub\n- [ ] c\n")
        assert _shape(forest.roots) == [
            ("H", [("a", [("b", [])]), ("Sub", [("c", [])])]),
        ]

    def test_deeper_indent_without_parent_is_root(self) -> None:
        forest = build_tree("    - [ ] deep first\n- [ ] shallow\n")
        assert _shape(forest.roots) == [("deep first", []), ("shallow", [])]

    def test_returning_to_shallower_indent(self) -> None:
        text = "- [ ] a\n  - [ ] b\n    - [ ] c\n  - [ ] d\n- [ ] e\n"
        forest = build_tree(text)
        assert _shape(forest.roots) == [
            ("a", [("b", [("c", [])]), ("d", [])]),
            ("e", []),
        ]

    def test_parent_indices(self) -> None:
        forest = build_tree("# T\n- [ ] A\n  - [x] B\n")
        b = forest.find_line(2)
        assert b is not None
        assert forest.parent_of(b).label == "A"
        assert [n.label for n in forest.ancestors(b)] == ["A", "T"]
        assert forest.roots[0].parent is None

    def test_arena_in_document_order(self, sample_doc: str) -> None:
        forest = build_tree(sample_doc)
        assert [n.index for n in forest.nodes] == list(range(len(forest)))
        assert [n.line for n in forest.nodes] == sorted(n.line for n in forest.nodes)
        assert [n.line for n in forest.walk()] == [n.line for n in forest.nodes]

    def test_nesting_invariant(self, sample_doc: str) -> None:
        for text in (
            sample_doc,
            "- [ ] a\n      - [ ] b\n  - [ ] c\n# H\n   - [x] d\n - [ ] e\n",
            "\t- [ ] tab\n- [ ] none\n\t\t- [x] two tabs\n",
        ):
            forest = build_tree(text)
            _assert_nesting_invariant(forest)
            stats = completion(forest)
            assert stats.completed <= stats.total

    def test_empty(self) -> None:
        forest = build_forest([])
        assert forest.roots == [] and len(forest) == 0

    def test_to_dict(self) -> None:
        data = build_tree("# T\n- [x] A\n").to_dict()
        assert data == [{
            "label": "T", "line": 0, "checked": False, "level": 1, "header": True,
            "children": [{
                "label": "A", "line": 1, "checked": True, "level": 6,
                "header": False, "children": [],
            }],
        }]


class TestNodePresentation:
    def test_markers(self) -> None:
        assert Node("a", 0, True, 6).marker == "✓"
        assert Node("a", 0, False, 6).marker == "○"
        assert Node("h", 0, False, 2, is_header=True).marker == "##"

    def test_tooltip_is_one_based(self) -> None:
        assert Node("Ship it", 4, False, 6).tooltip == "Line 5: Ship it"


class TestFlattenHeaders:
    def test_headers_removed_and_children_spliced(self, sample_doc: str) -> None:
        flat = flatten_headers(build_tree(sample_doc))
        assert _shape(flat.roots) == [
            ("API", [("Routes", []), ("Auth", [])]),
            ("Database", []),
            ("Layout", []),
            ("Styles", []),
        ]
        assert all(not n.is_header for n in flat.walk())

    def test_preserves_counts(self, sample_doc: str) -> None:
        forest = build_tree(sample_doc)
        assert completion(flatten_headers(forest)) == completion(forest)

    def test_does_not_mutate_input(self, sample_doc: str) -> None:
        forest = build_tree(sample_doc)
        before = forest.to_dict()
        flatten_headers(forest)
        assert forest.to_dict() == before

    def test_reparents_to_surviving_ancestor(self) -> None:
        flat = flatten_headers(build_tree("# H\n- [ ] a\n  - [ ] b\n"))
        b = flat.find_line(2)
        assert flat.parent_of(b).label == "a"
        assert flat.roots[0].parent is None

    def test_build_tree_without_headers(self) -> None:
        forest = build_tree("# H\n- [ ] a\n", show_headers=False)
        assert _shape(forest.roots) == [("a", [])]

    def test_interleaved_order_kept(self) -> None:
        text = "- [ ] first\n# H\n- [ ] second\n## S\n- [ ] third\n"
        flat = build_tree(text, show_headers=False)
        assert [n.label for n in flat.roots] == ["first", "second", "third"]


class TestCompletion:
    def test_headers_not_counted(self) -> None:
        assert completion(build_tree("# A\n## B\n###### C\n")) == Completion(0, 0)

    def test_percent(self) -> None:
        assert Completion(0, 0).percent == 0
        assert Completion(1, 3).percent == 33
        assert Completion(2, 3).percent == 67
        assert Completion(1, 2).percent == 50
        assert Completion(1, 8).percent == 13

    def test_does_not_mutate(self, sample_doc: str) -> None:
        forest = build_tree(sample_doc)
        before = forest.to_dict()
        assert completion(forest) == completion(forest)
        assert forest.to_dict() == before

    def test_thousand_checkboxes(self) -> None:
        text = "\n".join(
            f"- [{'x' if i % 3 == 0 else ' '}] item {i}" for i in range(1000)
        )
        start = time.perf_counter()
        stats = completion(build_forest(scan_nodes(text)))
        elapsed = time.perf_counter() - start
        assert stats == Completion(completed=334, total=1000)
        assert elapsed < 0.1

    def test_large_section_builds_in_linear_time(self) -> None:
        text = "# H\n" + "".join(f"- [ ] t{i}\n" for i in range(20000))
        start = time.perf_counter()
        forest = build_tree(text)
        stats = completion(forest)
        elapsed = time.perf_counter() - start
        assert stats == Completion(completed=0, total=20000)
        assert len(forest.roots) == 1
        assert len(forest.roots[0].children) == 20000
        assert elapsed < 1.0

    def test_deep_then_shallow_siblings(self) -> None:
        text = "# H\n- [ ] a\n    - [ ] deep\n  - [ ] mid\n- [ ] b\n      - [ ] c\n"
        forest = build_tree(text)
        assert _shape(forest.roots) == [
            ("H", [
                ("a", [("deep", []), ("mid", [])]),
                ("b", [("c", [])]),
            ]),
        ]
