"""
Badge-specific renumbering tables.

Some badge versions carry numbering that no general rule can repair (the
upstream page itself is wrong). Those corrections are data: a YAML file maps,
per badge name and version year, old requirement numbers to new ones.

Example::

    outlines:
      - badge: Cycling
        version_year: 2026
        numbers:
          "6A(a)": "6A(1)(a)"
          "6A(1)":
            new_number: "6A(1)"
            is_header: true
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from loguru import logger

from .config import Config


@dataclass(frozen=True)
class Renumbering:
    new_number: str
    is_header: Optional[bool] = None


@dataclass
class RenumberingTable:
    """Corrections for one badge version."""

    badge: str
    version_year: int
    numbers: Dict[str, Renumbering] = field(default_factory=dict)

    def entry_for(self, label: Optional[str], occurrence: int = 1) -> Optional[Renumbering]:
        """
        Correction for the ``occurrence``-th copy of ``label`` in an outline.

        Repeated copies are keyed like positional duplicates (``6A(a)_2``) and
        fall back to the plain entry when no such key exists.
        """
        if label is None:
            return None
        label = label.strip()
        if occurrence > 1:
            entry = self.numbers.get(f"{label}_{occurrence}")
            if entry is not None:
                return entry
        return self.numbers.get(label)

    def apply(self, label: Optional[str], occurrence: int = 1) -> Optional[str]:
        entry = self.entry_for(label, occurrence)
        return entry.new_number if entry else label

    def header_override(self, label: Optional[str], occurrence: int = 1) -> Optional[bool]:
        entry = self.entry_for(label, occurrence)
        return entry.is_header if entry else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RenumberingTable":
        try:
            badge = str(data["badge"])
            version_year = int(data["version_year"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Renumbering entry needs 'badge' and 'version_year': {data}") from e

        numbers = {}
        for old, value in (data.get("numbers") or {}).items():
            if isinstance(value, dict):
                if "new_number" not in value:
                    raise ValueError(f"{badge} {version_year}: '{old}' has no new_number")
                entry = Renumbering(str(value["new_number"]), value.get("is_header"))
            else:
                entry = Renumbering(str(value))
            numbers[str(old).strip()] = entry
        return cls(badge, version_year, numbers)


class RenumberingTables:
    """All configured tables, looked up by (badge, version year)."""

    def __init__(self, tables: Iterable[RenumberingTable] = ()):
        self._tables: Dict[Tuple[str, int], RenumberingTable] = {}
        for table in tables:
            self._tables[(table.badge.lower(), table.version_year)] = table

    def __len__(self) -> int:
        return len(self._tables)

    def for_outline(self, badge: str, version_year: int) -> Optional[RenumberingTable]:
        return self._tables.get((badge.lower(), int(version_year)))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RenumberingTables":
        entries: List[Dict[str, Any]] = (data or {}).get("outlines") or []
        return cls(RenumberingTable.from_dict(entry) for entry in entries)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "RenumberingTables":
        """Load tables from YAML; a missing file gives no tables."""
        tables = cls.from_dict(Config.load_yaml(path))
        if tables:
            logger.info(f"Loaded {len(tables)} renumbering tables from {path}")
        return tables
