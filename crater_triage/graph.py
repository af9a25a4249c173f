"""
Package-version dependency graph and reverse impact analysis.

Nodes are :class:`PackageId` values and an edge ``A -> B`` means "A declares
a requirement that B satisfies". Every satisfying version gets its own edge,
so ambiguous resolutions are kept rather than collapsed to the newest match.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Iterator, List, Set, Tuple

import networkx as nx
import semantic_version

from .errors import InvalidRequirementError, MissingDependencyError, UnknownPackageError
from .models import PackageId, PackageRecord
from .versions import normalize_dependency_name, parse_requirement


logger = logging.getLogger(__name__)


class LatestReleaseIndex(Mapping):
    """Package name -> highest version seen in the snapshot."""

    def __init__(self) -> None:
        self._latest: Dict[str, semantic_version.Version] = {}

    def observe(self, package_id: PackageId) -> None:
        current = self._latest.get(package_id.name)
        if current is None or package_id.version > current:
            self._latest[package_id.name] = package_id.version

    def is_latest(self, package_id: PackageId) -> bool:
        return self._latest.get(package_id.name) == package_id.version

    def __getitem__(self, name: str) -> semantic_version.Version:
        return self._latest[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._latest)

    def __len__(self) -> int:
        return len(self._latest)


@dataclass(frozen=True)
class ImpactSummary:
    """Everything that breaks when ``root`` breaks."""

    root: PackageId
    versions: FrozenSet[PackageId]
    crate_names: FrozenSet[str]
    latest: Tuple[str, ...]
    latest_versions: Tuple[PackageId, ...] = ()

    @property
    def version_count(self) -> int:
        return len(self.versions)

    @property
    def crate_count(self) -> int:
        return len(self.crate_names)


@dataclass(frozen=True)
class TotalImpact:
    """Union of the impact of several roots, relative to the whole registry."""

    roots: Tuple[PackageId, ...]
    versions: FrozenSet[PackageId]
    crate_names: FrozenSet[str]
    version_share: float
    crate_share: float


class DependencyGraph:
    """Read-only dependency graph over every version of a registry snapshot."""

    def __init__(
        self,
        graph: nx.DiGraph,
        latest_release: LatestReleaseIndex,
        versions_by_name: Dict[str, List[PackageId]],
    ) -> None:
        self._graph = graph
        self.latest_release = latest_release
        self._versions_by_name = versions_by_name

    @classmethod
    def build(cls, records: Mapping) -> "DependencyGraph":
        """Build the graph from ``name -> [PackageRecord]``.

        Raises:
            MissingDependencyError: a requirement names a package that is not
                in the snapshot under its own or its hyphenated name.
            InvalidRequirementError: a requirement string cannot be parsed.
        """
        started = time.perf_counter()
        graph: nx.DiGraph = nx.DiGraph()
        latest_release = LatestReleaseIndex()
        versions_by_name: Dict[str, List[PackageId]] = {}
        seen: Set[PackageId] = set()

        for record in _iter_records(records):
            latest_release.observe(record.id)
            # Dependency edges may already have created this node.
            graph.add_node(record.id)
            if record.id not in seen:
                seen.add(record.id)
                versions_by_name.setdefault(record.name, []).append(record.id)

            for dependency in record.dependencies:
                candidates = records.get(dependency.name)
                if candidates is None:
                    candidates = records.get(normalize_dependency_name(dependency.name))
                if candidates is None:
                    raise MissingDependencyError(str(record.id), dependency.name)

                try:
                    matched = [c.id for c in candidates if dependency.matches(c.version)]
                except ValueError as e:
                    raise InvalidRequirementError(str(record.id), dependency.req, str(e)) from e

                for candidate_id in matched:
                    graph.add_edge(record.id, candidate_id)

        logger.info(
            "Created crate graph with %d nodes and %d edges in %.2fs",
            graph.number_of_nodes(),
            graph.number_of_edges(),
            time.perf_counter() - started,
        )
        return cls(graph, latest_release, versions_by_name)

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    @property
    def crate_count(self) -> int:
        return len(self.latest_release)

    def has_edge(self, source: PackageId, target: PackageId) -> bool:
        return self._graph.has_edge(source, target)

    def dependencies(self, package_id: PackageId) -> List[PackageId]:
        self._require(package_id)
        return sorted(self._graph.successors(package_id))

    def dependents(self, package_id: PackageId) -> List[PackageId]:
        self._require(package_id)
        return sorted(self._graph.predecessors(package_id))

    def impact_of(self, root: PackageId) -> Set[PackageId]:
        """Return ``root`` and every version that transitively depends on it.

        Incoming edges come from the packages that depend on a node, so the
        walk follows predecessors.
        """
        self._require(root)
        visited = {root}
        to_process = [root]
        while to_process:
            node = to_process.pop()
            for dependent in self._graph.predecessors(node):
                if dependent not in visited:
                    visited.add(dependent)
                    to_process.append(dependent)
        return visited

    def latest_only(self, impact: Iterable[PackageId]) -> List[str]:
        """Names of impacted packages whose impacted version is the latest release."""
        return latest_only(self, self.latest_release, impact)

    def impact_summary(self, root: PackageId) -> ImpactSummary:
        versions = self.impact_of(root)
        return ImpactSummary(
            root=root,
            versions=frozenset(versions),
            crate_names=frozenset(p.name for p in versions),
            latest=tuple(self.latest_only(versions)),
            latest_versions=tuple(
                sorted(p for p in versions if self.latest_release.is_latest(p))
            ),
        )

    def find_roots(self, name: str, req: str = "*") -> List[PackageId]:
        """Every version of ``name`` that satisfies ``req``."""
        try:
            spec = parse_requirement(req)
        except ValueError as e:
            raise InvalidRequirementError(name, req, str(e)) from e
        return sorted(
            p for p in self._versions_by_name.get(name, []) if spec.match(p.version)
        )

    def total_impact(self, roots: Iterable[PackageId]) -> TotalImpact:
        roots = tuple(sorted(roots))
        versions: Set[PackageId] = set()
        for root in roots:
            versions |= self.impact_of(root)
        crate_names = {p.name for p in versions}
        return TotalImpact(
            roots=roots,
            versions=frozenset(versions),
            crate_names=frozenset(crate_names),
            version_share=_share(len(versions), len(self)),
            crate_share=_share(len(crate_names), self.crate_count),
        )

    def _require(self, package_id: PackageId) -> None:
        if package_id not in self._graph:
            raise UnknownPackageError(package_id)


def _iter_records(records: Mapping) -> Iterator[PackageRecord]:
    for versions in records.values():
        yield from versions


def _share(part: int, whole: int) -> float:
    return (part / whole) * 100.0 if whole else 0.0


def build_graph(records: Mapping) -> Tuple[DependencyGraph, LatestReleaseIndex]:
    graph = DependencyGraph.build(records)
    return graph, graph.latest_release


def impact_of(graph: DependencyGraph, root: PackageId) -> Set[PackageId]:
    return graph.impact_of(root)


def latest_only(
    graph: DependencyGraph,
    latest_release: LatestReleaseIndex,
    impact: Iterable[PackageId],
) -> List[str]:
    return sorted({p.name for p in impact if latest_release.is_latest(p)})
