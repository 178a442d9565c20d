#!/usr/bin/env python3
"""
Repair requirement numbering of scraped badge outlines.

Reads scraped outlines (scraper JSON or flat CSV), resolves duplicate and
option-boundary numbering, infers missing parents and assigns display order.

Usage:
  # Dry run: writes scraped-repaired.json next to the input
  python repair_outlines.py --input data/scraped/badges.json

  # One badge, CSV output, written to the given path
  python repair_outlines.py --input data/scraped/badges.json \\
    --badge Cycling --format csv --output data/repaired/cycling.csv --confirm

  # Create header rows for missing Option parents
  python repair_outlines.py --input data/scraped/badges.json --synthesize-parents

Output Structure:
  data/repaired/
  └── job_metadata/
      └── {job_id}.json         [Job summary: outlines, rewrites, review counts]
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger
from tqdm import tqdm

from reqtree.config import Config, configure_logging
from reqtree.models import OutlineResult
from reqtree.pipeline import RepairSettings, repair_outlines
from reqtree.renumbering import RenumberingTables
from reqtree.utils import (
    load_scraped_outlines,
    results_to_frame,
    results_to_payload,
    save_csv,
    save_json,
)


def default_output_path(input_path: Path, fmt: str, confirm: bool) -> Path:
    """
    Output path when --output is not given.

    Without --confirm the result goes to a ``-repaired`` sibling so the input
    is never touched by a dry run.
    """
    suffix = f".{fmt}"
    if confirm:
        return Config.REPAIRED_DATA / f"{input_path.stem}{suffix}"
    return input_path.with_name(f"{input_path.stem}-repaired{suffix}")


def summarize(results: List[OutlineResult]) -> Dict[str, Any]:
    failed = [r for r in results if not r.ok]
    return {
        "outlines": {
            "total": len(results),
            "repaired": len(results) - len(failed),
            "failed": len(failed),
            "failed_list": [f"{r.badge} ({r.version_year}): {r.error}" for r in failed],
        },
        "requirements": {
            "total": sum(len(r.rows) for r in results),
            "needs_review": sum(len(r.needs_review) for r in results),
            "parse_errors": sum(len(r.parse_errors) for r in results),
            "orphans": sum(len(r.orphans) for r in results),
            "renamed": sum(len(r.renamed) for r in results),
        },
        "strategies": {
            f"{r.badge} ({r.version_year})": r.strategy
            for r in results
            if r.ok and r.strategy != "unchanged"
        },
    }


def save_job_summary(job_id: str, metadata: Dict[str, Any], output_dir: Optional[Path] = None) -> Path:
    output_dir = output_dir or Config.REPAIRED_DATA
    summary_file = output_dir / "job_metadata" / f"{job_id}.json"
    save_json(metadata, summary_file)
    return summary_file


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Repair requirement numbering of scraped badge outlines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python repair_outlines.py --input data/scraped/badges.json
  python repair_outlines.py --input data/scraped/badges.csv --format csv --confirm
  python repair_outlines.py --input data/scraped/badges.json --badge Cycling --log-level DEBUG
        """)

    parser.add_argument("--input", type=Path, required=True, help="Scraped outlines (.json or .csv)")
    parser.add_argument("--output", type=Path, help="Output file (default depends on --confirm)")
    parser.add_argument("--format", choices=["json", "csv"], default="json", help="Output format")
    parser.add_argument("--badge", type=str, help="Only repair outlines of this badge")
    parser.add_argument(
        "--renumbering",
        type=Path,
        default=Config.RENUMBERING_FILE,
        help=f"Renumbering tables YAML (default: {Config.RENUMBERING_FILE})",
    )
    parser.add_argument(
        "--synthesize-parents",
        action="store_true",
        default=Config.SYNTHESIZE_MISSING_PARENTS,
        help="Create header rows for missing parent requirements",
    )
    parser.add_argument(
        "--display-offset",
        type=int,
        default=Config.DISPLAY_ORDER_OFFSET,
        help="First display order value",
    )
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Write to --output / data/repaired instead of a -repaired sibling file",
    )
    parser.add_argument("--log-level", type=str, default=Config.LOG_LEVEL, help="Log level")

    args = parser.parse_args()
    configure_logging(args.log_level)

    if not args.input.exists():
        logger.error(f"Input not found: {args.input}")
        return 1

    job_id = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
    output_path = args.output or default_output_path(args.input, args.format, args.confirm)

    logger.info(f"\n{'#'*70}")
    logger.info("REPAIR OUTLINES")
    logger.info(f"{'#'*70}")
    logger.info(f"Job ID: {job_id}")
    logger.info(f"Input: {args.input}")
    logger.info(f"Output: {output_path}{'' if args.confirm else ' (dry run)'}")
    logger.info(f"{'#'*70}\n")

    outlines = load_scraped_outlines(args.input, badge=args.badge)
    if not outlines:
        logger.error("No outlines to repair")
        return 1

    settings = RepairSettings(
        display_offset=args.display_offset,
        synthesize_missing_parents=args.synthesize_parents,
        renumbering=RenumberingTables.from_yaml(args.renumbering),
    )
    results = repair_outlines(tqdm(outlines, desc="Repairing", unit="outline"), settings)

    if args.format == "csv":
        save_csv(results_to_frame(results), output_path)
    else:
        save_json(results_to_payload(results), output_path)

    summary = summarize(results)
    metadata = {
        "status": "completed",
        "job_id": job_id,
        "dry_run": not args.confirm,
        "input": str(args.input),
        "output": str(output_path),
        "config": {
            "badge": args.badge,
            "renumbering": str(args.renumbering),
            "synthesize_parents": args.synthesize_parents,
            "display_offset": args.display_offset,
        },
        **summary,
    }
    save_job_summary(job_id, metadata, output_path.parent if not args.confirm else None)

    logger.info(f"\n{'#'*70}")
    logger.info("Repair complete")
    logger.info(f"Outlines repaired: {summary['outlines']['repaired']}/{summary['outlines']['total']}")
    logger.info(f"Requirements needing review: {summary['requirements']['needs_review']}")
    logger.info(f"{'#'*70}\n")

    return 0 if not summary["outlines"]["failed"] else 2


if __name__ == "__main__":
    sys.exit(main())
