"""
Build an ordered requirement forest from a flat outline.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .errors import CycleError, DanglingParentError
from .identifier import Identifier, Index
from .inference import DEFAULT_RULES, InferenceRule, ParentMatch, rank_parent_candidates
from .models import RequirementNode


@dataclass
class Forest:
    """Linked and ordered outline."""

    nodes: List[RequirementNode]
    roots: List[str] = field(default_factory=list)
    children: Dict[str, List[str]] = field(default_factory=dict)
    orphans: List[str] = field(default_factory=list)
    inferred: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        self._by_id = {node.id: node for node in self.nodes}

    def node(self, node_id: str) -> RequirementNode:
        return self._by_id[node_id]

    def parent_of(self, node_id: str) -> Optional[RequirementNode]:
        parent_id = self._by_id[node_id].parent_id
        return self._by_id[parent_id] if parent_id is not None else None

    def walk(self) -> Iterator[Tuple[RequirementNode, int]]:
        """Depth-first (node, depth) pairs in display order."""
        stack = [(root, 0) for root in reversed(self.roots)]
        while stack:
            node_id, depth = stack.pop()
            yield self._by_id[node_id], depth
            for child in reversed(self.children.get(node_id, [])):
                stack.append((child, depth + 1))

    def max_depth(self) -> int:
        return max((depth for _, depth in self.walk()), default=0)


def _natural_key(text: str) -> Tuple:
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
        for part in re.findall(r"\d+|\D+", text)
    )


def identifier_sort_key(identifier: Identifier) -> Tuple:
    option = (0, identifier.option_letter) if identifier.option_letter else (1, "")
    components = tuple(
        (0, c.number, "") if isinstance(c, Index) else (1, 0, c.char.lower())
        for c in identifier.components
    )
    return (0, identifier.base_number, option, components, identifier.ordinal or 0)


def requirement_sort_key(value: Union[RequirementNode, Identifier, str]) -> Tuple:
    """
    Numeric-aware ordering key.

    ``9`` sorts before ``10``, option branches (``2A``) before other siblings,
    indexes before letters, letters case-insensitively. Labels that did not
    parse sort after parsed ones, by natural order.
    """
    if isinstance(value, RequirementNode):
        if value.identifier is not None:
            return identifier_sort_key(value.identifier)
        return (1, _natural_key(value.label))
    if isinstance(value, Identifier):
        return identifier_sort_key(value)
    return (1, _natural_key(value))


def detect_cycle(parents: Mapping[str, Optional[str]]) -> Optional[List[str]]:
    """Return one parent cycle as a list of ids (first id repeated at the end)."""
    finished = set()
    for start in parents:
        path: List[str] = []
        seen_at: Dict[str, int] = {}
        current = start
        while current is not None and current not in finished:
            if current in seen_at:
                return path[seen_at[current]:] + [current]
            seen_at[current] = len(path)
            path.append(current)
            current = parents.get(current)
        finished.update(path)
    return None


def _infer(
    node: RequirementNode,
    candidates: List[Identifier],
    headers: List[Identifier],
    rules: Sequence[InferenceRule],
) -> Optional[ParentMatch]:
    if node.identifier is not None and node.identifier.is_top_level:
        return None
    child = node.identifier if node.identifier is not None else node.raw_label
    matches = rank_parent_candidates(child, candidates, headers=headers, rules=rules)
    return matches[0] if matches else None


def build(
    nodes: Sequence[RequirementNode],
    display_offset: int = 1,
    rules: Sequence[InferenceRule] = DEFAULT_RULES,
) -> Forest:
    """
    Link, order and number one outline.

    Nodes without a ``parent_id`` get one from parent inference. Children are
    ordered by ``requirement_sort_key`` and ``display_order`` is assigned
    depth-first starting at ``display_offset``. Nodes are only modified once
    every check has passed.

    Raises:
        DanglingParentError: a declared parent id is not part of the outline.
        CycleError: a node is its own ancestor.
    """
    nodes = list(nodes)
    by_id: Dict[str, RequirementNode] = {}
    for node in nodes:
        if node.id in by_id:
            raise ValueError(f"Duplicate node id {node.id!r} in outline")
        by_id[node.id] = node
    position = {node.id: index for index, node in enumerate(nodes)}

    by_identifier: Dict[Identifier, str] = {}
    for node in nodes:
        if node.identifier is not None:
            by_identifier.setdefault(node.identifier, node.id)
    candidates = list(by_identifier)
    headers = [node.identifier for node in nodes if node.identifier is not None and node.is_header]

    parents: Dict[str, Optional[str]] = {}
    inferred: Dict[str, str] = {}
    orphans: List[str] = []
    for node in nodes:
        if node.parent_id is not None:
            if node.parent_id not in by_id:
                raise DanglingParentError(node.id, node.parent_id)
            parents[node.id] = node.parent_id
            continue

        match = _infer(node, candidates, headers, rules)
        if match is not None:
            parents[node.id] = by_identifier[match.parent]
            inferred[node.id] = match.rule.name
            continue

        parents[node.id] = None
        if node.identifier is None or not node.identifier.is_top_level:
            orphans.append(node.id)

    cycle = detect_cycle(parents)
    if cycle:
        raise CycleError(cycle)

    def ordered(ids: List[str]) -> List[str]:
        return sorted(ids, key=lambda i: (requirement_sort_key(by_id[i]), position[i]))

    children: Dict[str, List[str]] = {}
    roots: List[str] = []
    for node in nodes:
        parent_id = parents[node.id]
        if parent_id is None:
            roots.append(node.id)
        else:
            children.setdefault(parent_id, []).append(node.id)
    roots = ordered(roots)
    children = {parent_id: ordered(ids) for parent_id, ids in children.items()}

    sequence: List[str] = []
    stack = list(reversed(roots))
    while stack:
        node_id = stack.pop()
        sequence.append(node_id)
        stack.extend(reversed(children.get(node_id, [])))

    for order, node_id in enumerate(sequence, start=display_offset):
        by_id[node_id].parent_id = parents[node_id]
        by_id[node_id].display_order = order

    return Forest(
        nodes=[by_id[node_id] for node_id in sequence],
        roots=roots,
        children=children,
        orphans=orphans,
        inferred=inferred,
    )
