"""
Data model for outline repair.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .identifier import Identifier, format_identifier


@dataclass
class RequirementNode:
    """
    One row of an outline being repaired.

    Only ``parent_id`` and ``display_order`` are changed in place; rewrites of
    the requirement number produce a new node with a new Identifier.
    """

    id: str
    raw_label: str
    identifier: Optional[Identifier] = None
    parent_id: Optional[str] = None
    display_order: Optional[int] = None
    is_header: bool = False
    declared_parent: Optional[str] = None
    description: str = ""
    # Dedup suffix for labels that never parsed
    disambiguator: Optional[int] = None
    synthetic: bool = False

    @property
    def is_parsed(self) -> bool:
        return self.identifier is not None

    @property
    def label(self) -> str:
        """Canonical requirement number, or the raw label when it did not parse."""
        if self.identifier is not None:
            return format_identifier(self.identifier)
        text = self.raw_label.strip()
        if self.disambiguator is not None:
            return f"{text}_{self.disambiguator}"
        return text

    @property
    def key(self) -> str:
        """
        Identity used for duplicate detection within one outline.

        This is the output string, so ``1a`` and ``1(a)`` are distinct numbers
        even though their identifiers compare equal.
        """
        return self.label

    @property
    def is_disambiguated(self) -> bool:
        if self.identifier is not None:
            return self.identifier.ordinal is not None
        return self.disambiguator is not None


@dataclass
class InputRow:
    """One scraped requirement as delivered by the scraper."""

    raw_label: str
    declared_parent_label: Optional[str] = None
    has_checkbox: bool = True
    description: str = ""


@dataclass
class OutlineInput:
    """All scraped rows for one badge version."""

    badge: str
    version_year: int
    rows: List[InputRow] = field(default_factory=list)

    @property
    def key(self) -> Tuple[str, int]:
        return (self.badge, self.version_year)


@dataclass
class OutputRow:
    """One repaired row, ready for the persistence layer."""

    identifier: str
    parent_identifier: Optional[str]
    display_order: int
    needs_review: bool
    is_header: bool = False
    raw_label: str = ""
    legacy_display: str = ""
    synthetic: bool = False
    description: str = ""

    def as_tuple(self) -> Tuple[str, Optional[str], int, bool]:
        return (self.identifier, self.parent_identifier, self.display_order, self.needs_review)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requirement_number": self.identifier,
            "parent_requirement_number": self.parent_identifier,
            "display_order": self.display_order,
            "needs_review": self.needs_review,
            "is_header": self.is_header,
            "raw_label": self.raw_label,
            "legacy_display": self.legacy_display,
            "synthetic": self.synthetic,
            "description": self.description,
        }


@dataclass
class OutlineResult:
    """Outcome of repairing one outline."""

    badge: str
    version_year: int
    rows: List[OutputRow] = field(default_factory=list)
    parse_errors: List[str] = field(default_factory=list)
    orphans: List[str] = field(default_factory=list)
    strategy: str = "unchanged"
    renamed: List[Tuple[str, str]] = field(default_factory=list)
    issues: List[Any] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def needs_review(self) -> List[OutputRow]:
        return [row for row in self.rows if row.needs_review]
