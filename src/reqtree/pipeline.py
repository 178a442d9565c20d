"""
Outline repair pipeline.

Wires the engine together for one outline (one badge version):

    renumber -> parse -> resolve duplicates -> link declared parents
             -> (synthesize missing parents) -> build -> validate

Parse failures and orphans are collected on the result; duplicate and
hierarchy failures abort the outline they belong to, never the others.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple, Union

from loguru import logger

from .config import Config
from .errors import HierarchyError, ParseError, ResolutionError
from .headers import option_header_description
from .hierarchy import Forest, build
from .identifier import parse_identifier, try_parse
from .legacy import to_legacy_display
from .models import OutlineInput, OutlineResult, OutputRow, RequirementNode
from .renumbering import RenumberingTable, RenumberingTables
from .resolver import resolve
from .validation import validate_forest


@dataclass
class RepairSettings:
    """Knobs for one repair run."""

    display_offset: int = 1
    synthesize_missing_parents: bool = False
    renumbering: RenumberingTables = field(default_factory=RenumberingTables)

    @classmethod
    def from_config(cls, renumbering_path: Optional[Union[str, Path]] = None) -> "RepairSettings":
        return cls(
            display_offset=Config.DISPLAY_ORDER_OFFSET,
            synthesize_missing_parents=Config.SYNTHESIZE_MISSING_PARENTS,
            renumbering=RenumberingTables.from_yaml(renumbering_path or Config.RENUMBERING_FILE),
        )


def load_nodes(
    outline: OutlineInput,
    table: Optional[RenumberingTable] = None,
) -> Tuple[List[RequirementNode], List[str]]:
    """Turn scraped rows into nodes; unparseable labels are kept as raw labels."""
    nodes = []
    parse_errors = []
    seen: Dict[str, int] = {}
    for index, row in enumerate(outline.rows, start=1):
        label = row.raw_label
        declared = row.declared_parent_label or None
        is_header = not row.has_checkbox
        occurrence = seen.get(label.strip(), 0) + 1
        seen[label.strip()] = occurrence
        if table is not None:
            override = table.header_override(label, occurrence)
            if override is not None:
                is_header = override
            renamed = table.apply(label, occurrence)
            if renamed != label:
                logger.debug(f"Renumbered {label} -> {renamed}")
            label = renamed
            declared = table.apply(declared)

        try:
            identifier = parse_identifier(label)
        except ParseError as e:
            identifier = None
            parse_errors.append(str(e))
            logger.warning(f"{outline.badge} ({outline.version_year}): {e}")

        nodes.append(RequirementNode(
            id=f"n{index}",
            raw_label=label,
            identifier=identifier,
            is_header=is_header,
            declared_parent=declared,
            description=row.description,
        ))
    return nodes, parse_errors


def link_declared_parents(nodes: List[RequirementNode]) -> List[str]:
    """
    Resolve declared parent labels to node ids.

    Labels that match no node are left for parent inference and returned.
    """
    by_key = {}
    for node in nodes:
        # 1a and 1(a) name the same parent
        by_key.setdefault(node.identifier if node.identifier is not None else node.label, node.id)

    unresolved = []
    for node in nodes:
        if node.parent_id is not None or not node.declared_parent:
            continue
        parent = try_parse(node.declared_parent)
        key = parent if parent is not None else node.declared_parent.strip()
        parent_id = by_key.get(key)
        if parent_id is None or parent_id == node.id:
            unresolved.append(node.declared_parent)
            continue
        node.parent_id = parent_id
    return unresolved


def synthesize_missing_parents(nodes: List[RequirementNode]) -> List[RequirementNode]:
    """Header rows for every missing structural ancestor of an unlinked node."""
    existing = {node.identifier for node in nodes if node.identifier is not None}
    created: List[RequirementNode] = []
    for node in nodes:
        if node.parent_id is not None or node.identifier is None:
            continue
        if node.identifier.ordinal is not None:
            continue
        missing = node.identifier.parent_identifier()
        while missing is not None and missing not in existing:
            existing.add(missing)
            description = ""
            if missing.option_letter and not missing.components:
                description = option_header_description(missing.option_letter)
            created.append(RequirementNode(
                id=f"s{len(created) + 1}",
                raw_label=str(missing),
                identifier=missing,
                is_header=True,
                description=description,
                synthetic=True,
            ))
            logger.debug(f"Synthesized missing parent {missing} for {node.label}")
            missing = missing.parent_identifier()
    return created


def _needs_review(node: RequirementNode, forest: Forest, orphans: Set[str]) -> bool:
    if node.id in orphans or node.is_disambiguated or node.synthetic:
        return True
    return node.identifier is None and node.id not in forest.inferred


def to_output_rows(forest: Forest) -> List[OutputRow]:
    orphans = set(forest.orphans)
    rows = []
    for node in forest.nodes:
        parent = forest.parent_of(node.id)
        legacy = to_legacy_display(node.identifier) if node.identifier is not None else node.label
        rows.append(OutputRow(
            identifier=node.label,
            parent_identifier=parent.label if parent is not None else None,
            display_order=node.display_order,
            needs_review=_needs_review(node, forest, orphans),
            is_header=node.is_header,
            raw_label=node.raw_label,
            legacy_display=legacy,
            synthetic=node.synthetic,
            description=node.description,
        ))
    return rows


def repair_outline(outline: OutlineInput, settings: Optional[RepairSettings] = None) -> OutlineResult:
    """
    Repair one badge version.

    Raises:
        ResolutionError: duplicates could not be made unique.
        HierarchyError: a declared parent is dangling or forms a cycle.
    """
    settings = settings or RepairSettings()
    name = f"{outline.badge} ({outline.version_year})"
    table = settings.renumbering.for_outline(outline.badge, outline.version_year)

    nodes, parse_errors = load_nodes(outline, table)

    resolution = resolve(nodes)
    if resolution.changed:
        logger.info(
            f"{name}: {len(resolution.renamed)} numbers rewritten "
            f"({resolution.strategy}, {resolution.option_count} options)"
        )
        for old, new in resolution.renamed.values():
            logger.debug(f"  {old} -> {new}")
    nodes = resolution.nodes

    unresolved = link_declared_parents(nodes)
    for label in unresolved:
        logger.debug(f"{name}: declared parent {label!r} not in outline, inferring instead")

    if settings.synthesize_missing_parents:
        nodes = nodes + synthesize_missing_parents(nodes)

    forest = build(nodes, display_offset=settings.display_offset)
    for node_id, rule in forest.inferred.items():
        logger.debug(f"{name}: {forest.node(node_id).label} -> parent via {rule}")

    issues = validate_forest(forest)
    for issue in issues:
        logger.warning(f"{name}: {issue.details}")

    orphans = [forest.node(node_id).label for node_id in forest.orphans]
    if orphans:
        logger.warning(f"{name}: no parent found for {', '.join(orphans)}")

    rows = to_output_rows(forest)
    logger.info(
        f"{name}: {len(rows)} requirements, depth {forest.max_depth()}, "
        f"{sum(1 for r in rows if r.needs_review)} need review"
    )
    return OutlineResult(
        badge=outline.badge,
        version_year=outline.version_year,
        rows=rows,
        parse_errors=parse_errors,
        orphans=orphans,
        strategy=resolution.strategy,
        renamed=list(resolution.renamed.values()),
        issues=issues,
    )


def repair_outlines(
    outlines: Iterable[OutlineInput],
    settings: Optional[RepairSettings] = None,
) -> List[OutlineResult]:
    """Repair each outline independently; a fatal error only stops its own outline."""
    settings = settings or RepairSettings()
    results = []
    for outline in outlines:
        try:
            results.append(repair_outline(outline, settings))
        except (ResolutionError, HierarchyError) as e:
            logger.error(f"{outline.badge} ({outline.version_year}): {e}")
            results.append(OutlineResult(
                badge=outline.badge,
                version_year=outline.version_year,
                error=str(e),
            ))
    return results
