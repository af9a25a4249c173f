"""
Core data models for registry snapshots and regression-test results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

import semantic_version

from .versions import parse_requirement


def _enum_key(value: str) -> str:
    return value.replace("-", "").replace("_", "").lower()


class _ParsableEnum(Enum):
    """Enum parsed from its value or its name, ignoring case and separators."""

    @classmethod
    def parse(cls, value: str):
        key = _enum_key(value.strip())
        for member in cls:
            if key in (_enum_key(member.name), _enum_key(member.value)):
                return member
        raise ValueError(f"invalid {cls.__name__}: {value}")

    def __str__(self) -> str:
        return self.value

    @property
    def variant(self) -> str:
        """CamelCase member name, as written in result documents."""
        return "".join(part.capitalize() for part in self.name.split("_"))


class TestOutcome(_ParsableEnum):
    """Raw result of one package under one toolchain."""

    __test__ = False

    BUILD_FAIL = "build-fail"
    TEST_FAIL = "test-fail"
    TEST_SKIPPED = "test-skipped"
    TEST_PASS = "test-pass"


class Comparison(_ParsableEnum):
    """Classification of a baseline/candidate outcome pair."""

    REGRESSED = "Regressed"
    FIXED = "Fixed"
    SKIPPED = "Skipped"
    UNKNOWN = "Unknown"
    SAME_BUILD_FAIL = "SameBuildFail"
    SAME_TEST_FAIL = "SameTestFail"
    SAME_TEST_SKIPPED = "SameTestSkipped"
    SAME_TEST_PASS = "SameTestPass"


@dataclass(frozen=True, order=True)
class PackageId:
    """Unique identity of one published package version."""

    name: str
    version: semantic_version.Version

    @classmethod
    def of(cls, name: str, version: str) -> "PackageId":
        return cls(name, semantic_version.Version(version))

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


@dataclass(frozen=True)
class DependencyRequirement:
    """Dependency requirement as declared by a package version."""

    name: str
    req: str
    kind: str = "normal"
    optional: bool = False

    def matches(self, version: semantic_version.Version) -> bool:
        """Whether `version` satisfies this requirement.

        Raises:
            ValueError: the requirement string is not valid syntax.
        """
        return parse_requirement(self.req).match(version)


@dataclass(frozen=True)
class PackageRecord:
    """One published version and its declared requirements."""

    id: PackageId
    dependencies: Tuple[DependencyRequirement, ...] = ()
    yanked: bool = False

    @property
    def name(self) -> str:
        return self.id.name

    @property
    def version(self) -> semantic_version.Version:
        return self.id.version


@dataclass
class RunResult:
    """Outcome of a single run together with its log reference."""

    outcome: TestOutcome
    log: str


@dataclass
class PackageComparison:
    """Baseline and candidate runs of one package and their comparison.

    ``runs[0]`` holds the baseline run and ``runs[1]`` the candidate run.
    """

    name: str
    url: str
    comparison: Comparison = Comparison.UNKNOWN
    runs: List[Optional[RunResult]] = field(default_factory=lambda: [None, None])

    @property
    def baseline(self) -> Optional[RunResult]:
        return self.runs[0]

    @property
    def candidate(self) -> Optional[RunResult]:
        return self.runs[1]


@dataclass
class TestResults:
    """A full result document."""

    __test__ = False

    crates: List[PackageComparison] = field(default_factory=list)

    def regressed(self) -> List[PackageComparison]:
        return [c for c in self.crates if c.comparison is Comparison.REGRESSED]
