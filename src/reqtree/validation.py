"""
Consistency checks for a built forest.

Issues are reported, never fixed here:

- empty_header            header row without children
- duplicate_display_order two rows share a display order
- display_order_gap       display orders are not consecutive
- depth_jump              a link skips a nesting level (skip-level parent)
- unparsed_label          the requirement number did not parse
"""

from collections import Counter
from dataclasses import dataclass
from typing import List, Optional

from .hierarchy import Forest

EMPTY_HEADER = "empty_header"
DUPLICATE_DISPLAY_ORDER = "duplicate_display_order"
DISPLAY_ORDER_GAP = "display_order_gap"
DEPTH_JUMP = "depth_jump"
UNPARSED_LABEL = "unparsed_label"


@dataclass
class ValidationIssue:
    type: str
    details: str
    node_id: Optional[str] = None
    requirement: Optional[str] = None


def validate_forest(forest: Forest) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    for node in forest.nodes:
        if node.is_header and not forest.children.get(node.id):
            issues.append(ValidationIssue(
                EMPTY_HEADER, f"Header {node.label} has no children", node.id, node.label,
            ))

        if node.identifier is None:
            issues.append(ValidationIssue(
                UNPARSED_LABEL, f"Requirement number {node.raw_label!r} did not parse",
                node.id, node.label,
            ))
            continue

        parent = forest.parent_of(node.id)
        if parent is None or parent.identifier is None:
            continue
        jump = node.identifier.nesting_depth - parent.identifier.nesting_depth
        if jump > 1:
            issues.append(ValidationIssue(
                DEPTH_JUMP,
                f"{node.label} sits {jump} levels below its parent {parent.label}",
                node.id, node.label,
            ))

    orders = [node.display_order for node in forest.nodes if node.display_order is not None]
    for order, count in sorted(Counter(orders).items()):
        if count > 1:
            issues.append(ValidationIssue(
                DUPLICATE_DISPLAY_ORDER, f"Display order {order} used {count} times",
            ))

    distinct = sorted(set(orders))
    for previous, current in zip(distinct, distinct[1:]):
        if current - previous > 1:
            issues.append(ValidationIssue(
                DISPLAY_ORDER_GAP, f"Display order jumps from {previous} to {current}",
            ))

    return issues
