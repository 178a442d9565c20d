"""
Error types raised by the requirement-numbering engine.
"""

from typing import Dict, List, Optional


class RequirementNumberError(Exception):
    """Base class for all engine errors."""


class ParseError(RequirementNumberError, ValueError):
    """A raw label could not be turned into an Identifier."""

    def __init__(self, raw: str, reason: str = "malformed"):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Cannot parse requirement number {raw!r}: {reason}")


class MalformedIdentifierError(ParseError):
    """The label matches neither the canonical nor the legacy grammar."""


class ResolutionError(RequirementNumberError):
    """Duplicate resolution could not produce a usable outline."""


class UnresolvedDuplicatesError(ResolutionError):
    """Duplicates survived every resolution step."""

    def __init__(self, duplicates: Dict[str, List[int]]):
        self.duplicates = duplicates
        labels = ", ".join(sorted(duplicates))
        super().__init__(f"Duplicate requirement numbers remain after resolution: {labels}")


class HierarchyError(RequirementNumberError):
    """The outline cannot be turned into a forest."""


class CycleError(HierarchyError):
    """A node is its own transitive ancestor."""

    def __init__(self, cycle: List[str]):
        self.cycle = cycle
        path = " -> ".join(cycle)
        super().__init__(f"Parent cycle detected: {path}")


class DanglingParentError(HierarchyError):
    """A declared parent id does not belong to the outline."""

    def __init__(self, node_id: str, parent_id: Optional[str]):
        self.node_id = node_id
        self.parent_id = parent_id
        super().__init__(f"Node {node_id} references unknown parent {parent_id}")
