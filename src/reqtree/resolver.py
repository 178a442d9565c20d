"""
Duplicate and option-boundary resolution.

The scraper walks a rendered outline top to bottom and cannot tell when it
has crossed from one Option's content into the next, so a badge with
"Option A / Option B" branches comes back with the same requirement numbers
repeated, e.g.::

    2, 2a, 2a(1), 2, 2a, 2a(1)

Resolution:

1. Find repeaters (numbers that occur more than once).
2. Take the shallowest repeater as boundary marker; each of its occurrences
   starts a new option branch.
3. Walk the outline once and insert option letters A, B, C, ... after the
   base number of every affected node (2A, 2Aa, 2Aa(1), 2B, ...).
4. If duplicates remain, suffix later occurrences with _2, _3, ...
5. Verify that no duplicates remain.
"""

import dataclasses
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .errors import UnresolvedDuplicatesError
from .identifier import OPTION_LETTERS, Identifier, Index, Letter, format_identifier, try_parse
from .models import RequirementNode

# Markers deeper than this are treated as stray duplicates, not option starts
MAX_BOUNDARY_DEPTH = 1

UNCHANGED = "unchanged"
OPTION_BOUNDARY = "option_boundary"
POSITIONAL = "positional"


@dataclass(frozen=True)
class WalkState:
    """Fold state threaded through the single forward pass of step 3."""

    option_index: int = -1
    open_letter: Optional[str] = None

    def enter_option(self) -> "WalkState":
        return WalkState(self.option_index + 1, None)

    def open(self, letter: str) -> "WalkState":
        return WalkState(self.option_index, letter)

    @property
    def option_letter(self) -> Optional[str]:
        if 0 <= self.option_index < len(OPTION_LETTERS):
            return OPTION_LETTERS[self.option_index]
        return None


@dataclass
class ResolvedOutline:
    """Result of resolving one outline."""

    nodes: List[RequirementNode]
    strategy: str = UNCHANGED
    boundary_marker: Optional[Identifier] = None
    option_count: int = 0
    renamed: Dict[str, Tuple[str, str]] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return bool(self.renamed)


def find_repeaters(nodes: Sequence[RequirementNode]) -> "OrderedDict[str, List[int]]":
    """Positions of every number string that occurs more than once, in first-seen order."""
    positions: "OrderedDict[str, List[int]]" = OrderedDict()
    for index, node in enumerate(nodes):
        positions.setdefault(node.key, []).append(index)
    return OrderedDict((key, idx) for key, idx in positions.items() if len(idx) > 1)


def pick_boundary_marker(repeaters: "OrderedDict[str, List[int]]") -> Optional[Identifier]:
    """
    Shallowest repeater that can take an option letter.

    Ties go to the earliest first occurrence. Returns None when no repeater
    qualifies.
    """
    eligible = []
    for key, positions in repeaters.items():
        identifier = try_parse(key)
        if (
            identifier is not None
            and identifier.option_letter is None
            and identifier.ordinal is None
            and len(identifier.components) <= MAX_BOUNDARY_DEPTH
        ):
            eligible.append((len(identifier.components), positions[0], identifier))
    if not eligible:
        return None
    eligible.sort(key=lambda item: (item[0], item[1]))
    return eligible[0][2]


def _in_family(identifier: Identifier, marker: Identifier) -> bool:
    if identifier.base_number != marker.base_number:
        return False
    if identifier.option_letter is not None or identifier.ordinal is not None:
        return False
    if identifier.is_top_level and not marker.is_top_level:
        # Shared header above the options (e.g. "2" when the marker is "2a")
        return False
    return True


def _rewrite_parent(
    declared: Optional[str],
    marker: Identifier,
    letter: str,
    reparented_under: Optional[str],
) -> Optional[str]:
    parent = try_parse(declared)
    if parent is None or parent.base_number != marker.base_number:
        return declared
    if parent.option_letter is not None or parent.ordinal is not None:
        return declared
    if parent.is_top_level and not marker.is_top_level:
        if reparented_under is None:
            return declared
        return format_identifier(
            Identifier(parent.base_number, letter, (Letter(reparented_under),))
        )
    return format_identifier(parent.with_option_letter(letter))


def _step(
    node: RequirementNode,
    state: WalkState,
    marker: Identifier,
) -> Tuple[RequirementNode, WalkState]:
    identifier = node.identifier
    letter = state.option_letter
    if identifier is None or letter is None or not _in_family(identifier, marker):
        return node, state

    components = identifier.components
    reparented_under = None
    if len(components) == 1 and isinstance(components[0], Letter):
        state = state.open(components[0].char)
    elif len(components) == 1 and isinstance(components[0], Index) and state.open_letter:
        reparented_under = state.open_letter
        components = (Letter(state.open_letter), components[0])

    rewritten = Identifier(
        identifier.base_number, letter, components, identifier.ordinal, raw=identifier.raw
    )
    declared = _rewrite_parent(node.declared_parent, marker, letter, reparented_under)
    return dataclasses.replace(node, identifier=rewritten, declared_parent=declared), state


def assign_options(
    nodes: Sequence[RequirementNode],
    marker: Identifier,
    boundaries: Sequence[int],
) -> Tuple[List[RequirementNode], int]:
    """
    Insert option letters for every branch that starts at a boundary.

    Returns the rewritten nodes and the number of option branches.
    """
    starts: Set[int] = set(boundaries)
    first = min(boundaries)
    state = WalkState()
    result = []
    for index, node in enumerate(nodes):
        if index in starts:
            state = state.enter_option()
        if index < first:
            result.append(node)
            continue
        node, state = _step(node, state, marker)
        result.append(node)
    return result, len(boundaries)


def deduplicate_by_position(nodes: Sequence[RequirementNode]) -> List[RequirementNode]:
    """
    Suffix every repeated occurrence after the first with _2, _3, ...

    The suffix skips values already taken by other nodes, so the result is
    always unique. Suffixed numbers are placeholders that need manual review.
    """
    taken: Set[str] = {node.key for node in nodes}
    seen: Dict[str, int] = {}
    result = []
    for node in nodes:
        key = node.key
        count = seen.get(key, 0) + 1
        seen[key] = count
        if count == 1:
            result.append(node)
            continue

        ordinal = count
        while True:
            candidate = _with_suffix(node, ordinal)
            if candidate.key not in taken:
                break
            ordinal += 1
        taken.add(candidate.key)
        result.append(candidate)
    return result


def _with_suffix(node: RequirementNode, ordinal: int) -> RequirementNode:
    if node.identifier is not None:
        return dataclasses.replace(node, identifier=node.identifier.with_ordinal(ordinal))
    return dataclasses.replace(node, disambiguator=ordinal)


def resolve(nodes: Sequence[RequirementNode]) -> ResolvedOutline:
    """
    Make every requirement number of one outline unique.

    Resolving an already-resolved outline is a no-op.

    Raises:
        UnresolvedDuplicatesError: if duplicates survive positional dedup.
    """
    original = list(nodes)
    repeaters = find_repeaters(original)
    if not repeaters:
        return ResolvedOutline(nodes=original)

    current = original
    strategies = []
    marker = pick_boundary_marker(repeaters)
    option_count = 0
    if marker is not None:
        boundaries = repeaters[format_identifier(marker)]
        current, option_count = assign_options(current, marker, boundaries)
        strategies.append(OPTION_BOUNDARY)

    if find_repeaters(current):
        current = deduplicate_by_position(current)
        strategies.append(POSITIONAL)

    remaining = find_repeaters(current)
    if remaining:
        raise UnresolvedDuplicatesError(dict(remaining))

    renamed = {
        before.id: (before.label, after.label)
        for before, after in zip(original, current)
        if before.label != after.label
    }
    return ResolvedOutline(
        nodes=current,
        strategy="+".join(strategies),
        boundary_marker=marker,
        option_count=option_count,
        renamed=renamed,
    )
