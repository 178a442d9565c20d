"""
Utility functions for reading scraped outlines and writing repaired ones.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
from loguru import logger

from .headers import looks_like_header
from .models import InputRow, OutlineInput, OutlineResult

# Scraped rows arrive either snake_case (CSV exports) or camelCase (scraper JSON)
_FIELD_ALIASES = {
    "requirement_number": ("requirement_number", "requirementNumber", "number", "label"),
    "parent_requirement_number": (
        "parent_requirement_number", "parent_number", "parentRequirementNumber", "parentNumber", "parent",
    ),
    "has_checkbox": ("has_checkbox", "hasCheckbox"),
    "description": ("description", "text"),
}

CSV_COLUMNS = [
    "badge",
    "version_year",
    "requirement_number",
    "parent_requirement_number",
    "display_order",
    "needs_review",
    "is_header",
    "raw_label",
    "legacy_display",
    "synthetic",
    "description",
]


def load_json(filepath: Path) -> Dict[str, Any]:
    """Load JSON file."""
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        logger.error(f"File not found: {filepath}")
        return {}
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in file: {filepath}")
        return {}


def save_json(data: Any, filepath: Path, pretty: bool = True) -> None:
    """Save data to JSON file."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)
    logger.info(f"Saved JSON to {filepath}")


def load_csv(filepath: Path, **kwargs) -> Optional[pd.DataFrame]:
    """Load CSV file as DataFrame."""
    try:
        return pd.read_csv(filepath, **kwargs)
    except FileNotFoundError:
        logger.error(f"File not found: {filepath}")
        return None
    except Exception as e:
        logger.error(f"Error reading CSV {filepath}: {e}")
        return None


def save_csv(df: pd.DataFrame, filepath: Path, **kwargs) -> None:
    """Save DataFrame to CSV file."""
    filepath.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(filepath, index=False, encoding="utf-8", **kwargs)
    logger.info(f"Saved CSV to {filepath}")


def _field(record: Dict[str, Any], name: str) -> Any:
    for alias in _FIELD_ALIASES[name]:
        value = record.get(alias)
        if value is not None and value != "":
            return value
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y", "t")
    return bool(value)


def row_from_record(record: Dict[str, Any]) -> InputRow:
    """
    Build an InputRow from one scraped record.

    When the scraper did not record a checkbox, header rows are recognised
    from their description ("Do the following:", "Option A ...").
    """
    description = str(_field(record, "description") or "")
    has_checkbox = _field(record, "has_checkbox")
    if has_checkbox is None:
        has_checkbox = not looks_like_header(description)
    parent = _field(record, "parent_requirement_number")
    return InputRow(
        raw_label=str(_field(record, "requirement_number") or ""),
        declared_parent_label=str(parent) if parent is not None else None,
        has_checkbox=_as_bool(has_checkbox),
        description=description,
    )


def outlines_from_payload(data: Any) -> List[OutlineInput]:
    """
    Parse scraper JSON.

    Accepts ``{"badges": [...]}``, ``{"outlines": [...]}`` or a bare list,
    each outline holding ``badgeName``/``badge``, ``versionYear``/``version_year``
    and ``requirements``.
    """
    if isinstance(data, dict):
        entries = data.get("badges") or data.get("outlines") or []
    else:
        entries = data or []
    outlines = []
    for entry in entries:
        badge = entry.get("badgeName") or entry.get("badge") or entry.get("badge_name")
        year = entry.get("version_year") or entry.get("versionYear")
        if not badge or year is None:
            logger.warning(f"Skipping outline without badge/version_year: {list(entry)[:5]}")
            continue
        rows = [row_from_record(record) for record in entry.get("requirements", [])]
        outlines.append(OutlineInput(str(badge), int(year), rows))
    return outlines


def outlines_from_frame(df: pd.DataFrame) -> List[OutlineInput]:
    """Group a flat CSV export (one row per requirement) into outlines, keeping row order."""
    outlines = []
    for (badge, year), group in df.groupby(["badge", "version_year"], sort=False):
        rows = [row_from_record(record) for record in group.to_dict(orient="records")]
        outlines.append(OutlineInput(str(badge), int(year), rows))
    return outlines


def load_scraped_outlines(filepath: Path, badge: Optional[str] = None) -> List[OutlineInput]:
    """Load outlines from a scraper JSON file or a flat CSV export."""
    filepath = Path(filepath)
    if filepath.suffix.lower() == ".csv":
        df = load_csv(filepath, dtype=str, keep_default_na=False)
        outlines = outlines_from_frame(df) if df is not None else []
    else:
        outlines = outlines_from_payload(load_json(filepath))

    if badge:
        outlines = [o for o in outlines if o.badge.lower() == badge.lower()]
    logger.info(f"Loaded {len(outlines)} outlines from {filepath}")
    return outlines


def results_to_frame(results: Iterable[OutlineResult]) -> pd.DataFrame:
    """Flatten repaired outlines into one row per requirement."""
    records = []
    for result in results:
        for row in result.rows:
            records.append({"badge": result.badge, "version_year": result.version_year, **row.to_dict()})
    return pd.DataFrame(records, columns=CSV_COLUMNS)


def results_to_payload(results: Iterable[OutlineResult]) -> Dict[str, Any]:
    """JSON payload mirroring the scraper format, plus repair diagnostics."""
    outlines = []
    for result in results:
        outlines.append({
            "badge": result.badge,
            "version_year": result.version_year,
            "strategy": result.strategy,
            "error": result.error,
            "renamed": [{"from": old, "to": new} for old, new in result.renamed],
            "parse_errors": result.parse_errors,
            "orphans": result.orphans,
            "issues": [
                {"type": issue.type, "details": issue.details, "requirement": issue.requirement}
                for issue in result.issues
            ],
            "requirements": [row.to_dict() for row in result.rows],
        })
    return {"outlines": outlines}
