"""
Reporting and export utilities.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Sequence

import pandas as pd

from .graph import ImpactSummary, TotalImpact
from .ice import IceEntry
from .roots import RootRegression


logger = logging.getLogger(__name__)

LIST_LIMIT = 20


def log_impact_summary(summary: ImpactSummary, quiet: bool = False) -> None:
    """Log what breaks when ``summary.root`` breaks, listing small results."""
    if len(summary.latest) < LIST_LIMIT and not quiet:
        logger.info(
            "dependents on %s: %d crates, %d versions: %s",
            summary.root,
            summary.crate_count,
            len(summary.latest),
            ", ".join(str(p) for p in summary.latest_versions),
        )
    else:
        logger.info(
            "dependents on %s: %d crates, %d versions",
            summary.root,
            summary.crate_count,
            len(summary.latest),
        )


def log_total_impact(total: TotalImpact) -> None:
    logger.info("=" * 60)
    logger.info("total versions broken: %d (%.2f%%)", len(total.versions), total.version_share)
    logger.info("total crates broken: %d (%.2f%%)", len(total.crate_names), total.crate_share)
    logger.info("=" * 60)


def render_roots_report(rows: Sequence[RootRegression]) -> str:
    lines = [f"{len(rows)} root regressions"]
    for row in rows:
        lines.append(
            f" - [{row.name}]({row.url}): [a log]({row.baseline_log}/log.txt) "
            f"vs. [b log]({row.candidate_log}/log.txt) "
            f"({row.dependent_crates} dependent crates)"
        )
    return "\n".join(lines) + "\n"


def render_ice_report(entries: Iterable[IceEntry]) -> str:
    lines: List[str] = []
    current_category = None
    for entry in entries:
        if entry.category != current_category:
            lines.append(f"#### {entry.category}")
            current_category = entry.category
        lines.append(f" - [{entry.name}]({entry.url}): [log]({entry.log_url})")
    return "\n".join(lines) + "\n" if lines else ""


def write_report(report: str, output_dir: Path, filename: str = "report.md") -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    report_file = output_dir / filename
    report_file.write_text(report, encoding="utf-8")
    return report_file


def export_roots_csv(rows: Sequence[RootRegression], output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    roots_file = output_dir / "root_regressions.csv"
    columns = ["name", "url", "baseline_log", "candidate_log", "dependent_crates"]
    df = pd.DataFrame(
        [[getattr(row, col) for col in columns] for row in rows],
        columns=columns,
    )
    df.to_csv(roots_file, index=False)
    return roots_file


def export_impact_csv(summaries: Sequence[ImpactSummary], output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    impact_file = output_dir / "impact.csv"
    df = pd.DataFrame(
        [
            {
                "name": s.root.name,
                "version": str(s.root.version),
                "versions": s.version_count,
                "crates": s.crate_count,
                "latest": len(s.latest),
            }
            for s in summaries
        ],
        columns=["name", "version", "versions", "crates", "latest"],
    )
    df.to_csv(impact_file, index=False)
    return impact_file
