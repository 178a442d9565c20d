"""Tests for duplicate and option-boundary resolution."""

import random

import pytest

from reqtree.errors import UnresolvedDuplicatesError
from reqtree.identifier import parse_identifier, try_parse
from reqtree.models import RequirementNode
from reqtree.resolver import (
    MAX_BOUNDARY_DEPTH,
    WalkState,
    find_repeaters,
    pick_boundary_marker,
    resolve,
)


def make_nodes(labels, parents=None):
    parents = parents or [None] * len(labels)
    return [
        RequirementNode(
            id=f"n{i}",
            raw_label=label,
            identifier=try_parse(label),
            declared_parent=parent,
        )
        for i, (label, parent) in enumerate(zip(labels, parents))
    ]


def labels_of(nodes):
    return [node.label for node in nodes]


class TestFindRepeaters:
    """Test duplicate detection."""

    def test_positions_in_first_seen_order(self):
        nodes = make_nodes(["2", "2a", "1", "2", "2a", "3"])
        repeaters = find_repeaters(nodes)
        assert list(repeaters.items()) == [("2", [0, 3]), ("2a", [1, 4])]

    def test_spelling_variants_are_distinct(self):
        assert not find_repeaters(make_nodes(["1a", "1(a)"]))
        assert list(find_repeaters(make_nodes(["1(a)", "1a", "1(a)"]))) == ["1(a)"]

    def test_unparsed_labels_compare_by_text(self):
        repeaters = find_repeaters(make_nodes(["6a beef", "6a beef "]))
        assert list(repeaters) == ["6a beef"]


class TestPickBoundaryMarker:
    """Test choosing the option boundary."""

    def test_shallowest_wins(self):
        repeaters = find_repeaters(make_nodes(["2a", "2", "2a", "2"]))
        assert pick_boundary_marker(repeaters) == parse_identifier("2")

    def test_deep_repeaters_are_not_markers(self):
        repeaters = find_repeaters(make_nodes(["1a(1)", "1a(1)"]))
        assert MAX_BOUNDARY_DEPTH == 1
        assert pick_boundary_marker(repeaters) is None

    def test_option_lettered_repeaters_are_not_markers(self):
        assert pick_boundary_marker(find_repeaters(make_nodes(["2A", "2A"]))) is None

    def test_unparsed_repeaters_are_not_markers(self):
        assert pick_boundary_marker(find_repeaters(make_nodes(["x", "x"]))) is None


class TestWalkState:
    """Test the fold state of the option walk."""

    def test_enter_option_resets_open_letter(self):
        state = WalkState().enter_option().open("b")
        assert state.option_letter == "A"
        assert state.open_letter == "b"
        state = state.enter_option()
        assert state.option_letter == "B"
        assert state.open_letter is None

    def test_no_letter_before_first_boundary_or_after_z(self):
        assert WalkState().option_letter is None
        assert WalkState(option_index=26).option_letter is None


class TestResolve:
    """Test full resolution of one outline."""

    def test_no_duplicates_is_unchanged(self):
        nodes = make_nodes(["1", "1a", "2"])
        result = resolve(nodes)
        assert result.strategy == "unchanged"
        assert not result.changed
        assert labels_of(result.nodes) == ["1", "1a", "2"]

    def test_two_option_badge(self):
        result = resolve(make_nodes(["2", "2a", "2a(1)", "2", "2a", "2a(1)"]))
        assert labels_of(result.nodes) == ["2A", "2Aa", "2Aa(1)", "2B", "2Ba", "2Ba(1)"]
        assert result.strategy == "option_boundary"
        assert result.boundary_marker == parse_identifier("2")
        assert result.option_count == 2
        assert result.renamed["n3"] == ("2", "2B")

    def test_shared_header_stays(self):
        result = resolve(make_nodes(["2", "2a", "2a(1)", "2a", "2a(1)", "3"]))
        assert labels_of(result.nodes) == ["2", "2Aa", "2Aa(1)", "2Ba", "2Ba(1)", "3"]
        assert result.boundary_marker == parse_identifier("2a")

    def test_other_families_untouched(self):
        result = resolve(make_nodes(["1", "1a", "2", "2a", "2", "2a", "3a"]))
        assert labels_of(result.nodes) == ["1", "1a", "2A", "2Aa", "2B", "2Ba", "3a"]

    def test_numbered_child_follows_open_letter(self):
        result = resolve(make_nodes(["3", "3a", "3(1)", "3", "3a", "3(1)"]))
        assert labels_of(result.nodes) == ["3A", "3Aa", "3Aa(1)", "3B", "3Ba", "3Ba(1)"]

    def test_declared_parents_follow_rewrite(self):
        nodes = make_nodes(
            ["2", "2a", "2a(1)", "2a", "2a(1)"],
            [None, "2", "2a", "2", "2a"],
        )
        result = resolve(nodes)
        assert [n.declared_parent for n in result.nodes] == [None, "2", "2Aa", "2", "2Ba"]

    def test_reparented_index_gets_lettered_parent(self):
        nodes = make_nodes(
            ["3", "3a", "3(1)", "3a", "3(1)"],
            [None, "3", "3", "3", "3"],
        )
        result = resolve(nodes)
        assert labels_of(result.nodes) == ["3", "3Aa", "3Aa(1)", "3Ba", "3Ba(1)"]
        assert [n.declared_parent for n in result.nodes] == [None, "3", "3Aa", "3", "3Ba"]

    def test_positional_fallback(self):
        result = resolve(make_nodes(["1", "1a", "1a(1)", "1a(1)"]))
        assert labels_of(result.nodes) == ["1", "1a", "1a(1)", "1a(1)_2"]
        assert result.strategy == "positional"
        assert result.nodes[3].is_disambiguated

    def test_positional_skips_taken_suffix(self):
        result = resolve(make_nodes(["1a(1)", "1a(1)_2", "1a(1)"]))
        assert labels_of(result.nodes) == ["1a(1)", "1a(1)_2", "1a(1)_3"]

    def test_unparsed_duplicates(self):
        result = resolve(make_nodes(["Option A", "Option A"]))
        assert labels_of(result.nodes) == ["Option A", "Option A_2"]
        assert result.nodes[1].disambiguator == 2

    def test_more_options_than_letters(self):
        result = resolve(make_nodes(["1"] * 28))
        assert labels_of(result.nodes)[:3] == ["1A", "1B", "1C"]
        assert labels_of(result.nodes)[25] == "1Z"
        assert labels_of(result.nodes)[26:] == ["1", "1_2"]
        assert result.strategy == "option_boundary+positional"

    def test_spelling_variant_does_not_open_options(self):
        result = resolve(make_nodes(["1", "1a", "1(a)"]))
        assert labels_of(result.nodes) == ["1", "1a", "1(a)"]
        assert result.strategy == "unchanged"
        assert result.boundary_marker is None

    def test_input_is_not_mutated(self):
        nodes = make_nodes(["2", "2", "2a"])
        resolve(nodes)
        assert labels_of(nodes) == ["2", "2", "2a"]

    def test_unresolved_error_carries_positions(self):
        error = UnresolvedDuplicatesError({"2A": [0, 3]})
        assert error.duplicates == {"2A": [0, 3]}
        assert "2A" in str(error)


POOL = ["1", "1a", "1b", "1a(1)", "2", "2a", "2a(1)", "2b", "3", "3(1)", "6a beef", "Option A"]


class TestResolveProperties:
    """Uniqueness and idempotence over random outlines."""

    @pytest.mark.parametrize("seed", range(40))
    def test_unique_and_idempotent(self, seed):
        rng = random.Random(seed)
        labels = [rng.choice(POOL) for _ in range(rng.randint(1, 18))]
        result = resolve(make_nodes(labels))

        keys = [node.key for node in result.nodes]
        assert len(keys) == len(set(keys))
        assert len(result.nodes) == len(labels)
        assert [n.id for n in result.nodes] == [f"n{i}" for i in range(len(labels))]

        again = resolve(result.nodes)
        assert again.strategy == "unchanged"
        assert labels_of(again.nodes) == labels_of(result.nodes)
