"""
Parent inference for requirement numbers.

Whether one requirement number is the direct parent of another is decided by
an ordered rule table. Rules are tried in order and the first that matches
wins; every rule also carries a specificity rank that ``find_direct_parent``
uses to choose between several matching candidates.

Rules (in priority order):

    exact_parent        6A(a) -> 6A(a)(1), 1 -> 1a, 6 -> 6A        rank 40
    skip_level          3 -> 3a(1) when 3a is not in the outline     rank 30
    named_option        6 -> "6a beef"                               rank 20
    named_sub_option    6a -> "6a1 beef"                             rank 20
    named_option_group  6 -> "6 beef (1)", "6 avian (4)(a)"          rank 20
    case_folded_parent  3A -> 3a(1) when 3a is not in the outline    rank 10

The named-option rules look at the raw label, because badge-specific option
names are free text outside the grammar.
"""

import re
from dataclasses import dataclass
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Tuple, Union

from .identifier import Identifier, Letter, try_parse

ChildRef = Union[Identifier, str]
RulePredicate = Callable[
    [Identifier, Optional[Identifier], str, Optional["InferenceContext"]], bool
]


@dataclass(frozen=True)
class InferenceContext:
    """The rest of the outline, as seen by rules that need it."""

    candidates: FrozenSet[Identifier] = frozenset()
    headers: FrozenSet[Identifier] = frozenset()

    @classmethod
    def from_identifiers(
        cls,
        candidates: Iterable[Identifier],
        headers: Iterable[Identifier] = (),
    ) -> "InferenceContext":
        return cls(frozenset(candidates), frozenset(headers))


@dataclass(frozen=True)
class InferenceRule:
    """One entry of the rule table."""

    name: str
    rank: int
    predicate: RulePredicate
    description: str = ""

    def matches(
        self,
        parent: Identifier,
        child: Optional[Identifier],
        raw: str,
        context: Optional[InferenceContext],
    ) -> bool:
        return self.predicate(parent, child, raw, context)


@dataclass(frozen=True)
class ParentMatch:
    """A candidate parent together with the rule that accepted it."""

    parent: Identifier
    rule: InferenceRule


def _plain(identifier: Identifier) -> bool:
    return identifier.ordinal is None


def _exact_parent(parent, child, raw, context) -> bool:
    return child is not None and child.parent_identifier() == parent


def _skip_level(parent, child, raw, context) -> bool:
    if child is None or context is None:
        return False
    intermediate = child.parent_identifier()
    if intermediate is None or intermediate in context.candidates:
        return False
    return intermediate.parent_identifier() == parent


def _named_option(parent, child, raw, context) -> bool:
    if not parent.is_top_level or not _plain(parent):
        return False
    # One free-text word only ("6a beef"); "6a beef cattle" needs its own rule
    return re.fullmatch(rf"{parent.base_number} ?[a-z]\.? \w+", raw.strip()) is not None


def _named_sub_option(parent, child, raw, context) -> bool:
    if parent.option_letter is not None or not _plain(parent):
        return False
    if len(parent.components) != 1 or not isinstance(parent.components[0], Letter):
        return False
    letter = parent.components[0].char
    return re.fullmatch(rf"{parent.base_number}{letter}\d+\.? \w+", raw.strip()) is not None


def _named_option_group(parent, child, raw, context) -> bool:
    if not parent.is_top_level or not _plain(parent):
        return False
    pattern = rf"{parent.base_number} \w+ \(\d+\)(?:\([a-z]\))?"
    return re.fullmatch(pattern, raw.strip()) is not None


def _folded(identifier: Identifier) -> str:
    # 3A and 3a fold together; 11, 1(1) and 1(1)(1) stay apart
    parts = [identifier.option_letter] if identifier.option_letter else []
    parts.extend(c.token for c in identifier.components)
    return f"{identifier.base_number}:{'.'.join(parts)}".upper()


def _case_folded_parent(parent, child, raw, context) -> bool:
    if child is None or not _plain(parent):
        return False
    expected = child.parent_identifier()
    if expected is None or expected == parent:
        return False
    if context is not None and expected in context.candidates:
        return False
    return _folded(expected) == _folded(parent)


EXACT_PARENT = InferenceRule(
    "exact_parent", 40, _exact_parent,
    "child minus its last structural element equals the candidate",
)
SKIP_LEVEL = InferenceRule(
    "skip_level", 30, _skip_level,
    "candidate is the grandparent and the intermediate level is missing",
)
NAMED_OPTION = InferenceRule(
    "named_option", 20, _named_option,
    "raw label '<base><letter> <name>' under the bare base number",
)
NAMED_SUB_OPTION = InferenceRule(
    "named_sub_option", 20, _named_sub_option,
    "raw label '<base><letter><n> <name>' under '<base><letter>'",
)
NAMED_OPTION_GROUP = InferenceRule(
    "named_option_group", 20, _named_option_group,
    "raw label '<base> <name> (<n>)' under the bare base number",
)
CASE_FOLDED_PARENT = InferenceRule(
    "case_folded_parent", 10, _case_folded_parent,
    "structural parent differs from the candidate only by letter case",
)

DEFAULT_RULES: Tuple[InferenceRule, ...] = (
    EXACT_PARENT,
    SKIP_LEVEL,
    NAMED_OPTION,
    NAMED_SUB_OPTION,
    NAMED_OPTION_GROUP,
    CASE_FOLDED_PARENT,
)


def _split_child(child: ChildRef) -> Tuple[Optional[Identifier], str]:
    if isinstance(child, Identifier):
        return child, child.raw or str(child)
    return try_parse(child), child


def match_rule(
    candidate_parent: Identifier,
    child: ChildRef,
    context: Optional[InferenceContext] = None,
    rules: Sequence[InferenceRule] = DEFAULT_RULES,
) -> Optional[InferenceRule]:
    """Return the first rule under which ``candidate_parent`` parents ``child``."""
    identifier, raw = _split_child(child)
    if identifier is not None and identifier == candidate_parent:
        return None
    for rule in rules:
        if rule.matches(candidate_parent, identifier, raw, context):
            return rule
    return None


def is_direct_child(
    candidate_parent: Identifier,
    child: ChildRef,
    candidates: Optional[Iterable[Identifier]] = None,
    rules: Sequence[InferenceRule] = DEFAULT_RULES,
) -> bool:
    """
    Decide whether ``candidate_parent`` is the direct parent of ``child``.

    ``child`` may be an Identifier or a raw label; labels that do not parse
    can only match the named-option rules. Without ``candidates`` the
    skip-level rule cannot tell whether the intermediate level is missing and
    never applies.
    """
    context = None if candidates is None else InferenceContext.from_identifiers(candidates)
    return match_rule(candidate_parent, child, context, rules) is not None


def rank_parent_candidates(
    child: ChildRef,
    candidates: Iterable[Identifier],
    current_parent: Optional[Identifier] = None,
    headers: Iterable[Identifier] = (),
    rules: Sequence[InferenceRule] = DEFAULT_RULES,
) -> List[ParentMatch]:
    """
    All matching candidates, best first.

    Order: deeper candidates first, then higher rule rank, then the current
    parent, then header rows, then canonical spelling.
    """
    context = InferenceContext.from_identifiers(candidates, headers)
    matches = []
    for candidate in context.candidates:
        rule = match_rule(candidate, child, context, rules)
        if rule is not None:
            matches.append(ParentMatch(candidate, rule))

    matches.sort(
        key=lambda m: (
            -m.parent.nesting_depth,
            -m.rule.rank,
            0 if m.parent == current_parent else 1,
            0 if m.parent in context.headers else 1,
            str(m.parent),
        )
    )
    return matches


def find_direct_parent(
    child: ChildRef,
    candidates: Iterable[Identifier],
    current_parent: Optional[Identifier] = None,
    headers: Iterable[Identifier] = (),
    rules: Sequence[InferenceRule] = DEFAULT_RULES,
) -> Optional[Identifier]:
    """Most specific direct parent of ``child`` among ``candidates``, or None."""
    matches = rank_parent_candidates(child, candidates, current_parent, headers, rules)
    return matches[0].parent if matches else None
