"""
Separating independent regressions from their downstream consequences.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Set

from .graph import DependencyGraph, impact_of
from .models import PackageComparison, PackageId, TestResults
from .results import parse_package_url


logger = logging.getLogger(__name__)

ImpactFn = Callable[[DependencyGraph, PackageId], Set[PackageId]]


@dataclass(frozen=True)
class RegressedPackage:
    """A regressed comparison tied to its graph node. Identity is the id."""

    id: PackageId
    comparison: Optional[PackageComparison] = field(default=None, compare=False)


@dataclass(frozen=True)
class RootRegression:
    """One line of the root regression report."""

    name: str
    url: str
    baseline_log: str
    candidate_log: str
    dependent_crates: int


def filter_roots(
    regressed: Iterable[RegressedPackage],
    graph: DependencyGraph,
    impact_fn: ImpactFn = impact_of,
) -> List[RegressedPackage]:
    """Keep the regressions whose dependents contain no other regression.

    A package is dropped as soon as another regressed package shows up among
    the versions that transitively depend on it. Input order is preserved.
    """
    regressed = list(regressed)
    ids = {r.id for r in regressed}
    roots = []
    for package in regressed:
        others = ids - {package.id}
        if others.isdisjoint(impact_fn(graph, package.id)):
            roots.append(package)
    return roots


def collect_regressed(results: TestResults, graph: DependencyGraph) -> List[RegressedPackage]:
    """Regressed comparisons that map onto a node of ``graph``."""
    regressed = []
    for comparison in results.regressed():
        package_id = parse_package_url(comparison.url)
        if package_id is None:
            logger.debug("Skipping %s: not a registry URL (%s)", comparison.name, comparison.url)
            continue
        if package_id not in graph:
            logger.warning("Skipping %s: %s is not in the registry snapshot", comparison.name, package_id)
            continue
        regressed.append(RegressedPackage(package_id, comparison))
    return regressed


def find_root_regressions(results: TestResults, graph: DependencyGraph) -> List[RootRegression]:
    """Root regressions of ``results``, most depended-upon first."""
    regressed = collect_regressed(results, graph)
    logger.info("Finding roots among %d regressions...", len(regressed))
    roots = filter_roots(regressed, graph)

    rows = []
    for root in roots:
        comparison = root.comparison
        summary = graph.impact_summary(root.id)
        rows.append(RootRegression(
            name=comparison.name,
            url=comparison.url,
            baseline_log=comparison.baseline.log if comparison.baseline else "",
            candidate_log=comparison.candidate.log if comparison.candidate else "",
            dependent_crates=summary.crate_count,
        ))
    rows.sort(key=lambda r: (r.dependent_crates, r.name), reverse=True)
    return rows
