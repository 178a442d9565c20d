"""
Requirement numbering repair for scraped merit badge outlines.
"""

__version__ = "0.1.0"

from . import config, utils
from .errors import (
    CycleError,
    DanglingParentError,
    HierarchyError,
    MalformedIdentifierError,
    ParseError,
    RequirementNumberError,
    ResolutionError,
    UnresolvedDuplicatesError,
)
from .hierarchy import Forest, build, requirement_sort_key
from .identifier import FormatStyle, Identifier, Index, Letter, format_identifier, parse_identifier, try_parse
from .inference import find_direct_parent, is_direct_child
from .legacy import from_legacy_display, normalize_requirement_number, to_legacy_display
from .models import InputRow, OutlineInput, OutlineResult, OutputRow, RequirementNode
from .pipeline import RepairSettings, repair_outline, repair_outlines
from .resolver import ResolvedOutline, resolve

__all__ = [
    "config",
    "utils",
    "CycleError",
    "DanglingParentError",
    "HierarchyError",
    "MalformedIdentifierError",
    "ParseError",
    "RequirementNumberError",
    "ResolutionError",
    "UnresolvedDuplicatesError",
    "Forest",
    "build",
    "requirement_sort_key",
    "FormatStyle",
    "Identifier",
    "Index",
    "Letter",
    "format_identifier",
    "parse_identifier",
    "try_parse",
    "find_direct_parent",
    "is_direct_child",
    "from_legacy_display",
    "normalize_requirement_number",
    "to_legacy_display",
    "InputRow",
    "OutlineInput",
    "OutlineResult",
    "OutputRow",
    "RequirementNode",
    "RepairSettings",
    "repair_outline",
    "repair_outlines",
    "ResolvedOutline",
    "resolve",
]
