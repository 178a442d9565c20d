"""Tests for post-build consistency checks."""

from reqtree.hierarchy import Forest, build
from reqtree.identifier import try_parse
from reqtree.models import RequirementNode
from reqtree.validation import validate_forest


def make_nodes(labels, headers=()):
    return [
        RequirementNode(
            id=f"n{i}",
            raw_label=label,
            identifier=try_parse(label),
            is_header=label in headers,
        )
        for i, label in enumerate(labels)
    ]


def issue_types(issues):
    return sorted(issue.type for issue in issues)


class TestValidateForest:
    """Test issue detection on built forests."""

    def test_clean_outline(self):
        forest = build(make_nodes(["1", "1a", "1b", "2"], headers=("1",)))
        assert validate_forest(forest) == []

    def test_empty_header(self):
        forest = build(make_nodes(["1", "1a", "2"], headers=("1", "2")))
        issues = validate_forest(forest)
        assert issue_types(issues) == ["empty_header"]
        assert issues[0].requirement == "2"

    def test_depth_jump(self):
        forest = build(make_nodes(["3", "3a(1)"]))
        issues = validate_forest(forest)
        assert issue_types(issues) == ["depth_jump"]
        assert issues[0].node_id == "n1"

    def test_unparsed_label(self):
        forest = build(make_nodes(["1", "4(e)_weird!"]))
        assert issue_types(validate_forest(forest)) == ["unparsed_label"]

    def test_display_order_problems(self):
        nodes = make_nodes(["1", "2", "3"])
        for node, order in zip(nodes, [1, 1, 5]):
            node.display_order = order
        forest = Forest(nodes=nodes, roots=["n0", "n1", "n2"])
        assert issue_types(validate_forest(forest)) == ["display_order_gap", "duplicate_display_order"]
