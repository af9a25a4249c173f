"""
Exception types raised by the triage pipeline.

Every condition listed here terminates the run: the tool is a single-pass
batch job and never retries.
"""

from __future__ import annotations


class TriageError(Exception):
    """Base class for fatal triage errors."""


class RegistryError(TriageError):
    """The registry snapshot could not be obtained or parsed."""


class InvalidRequirementError(TriageError):
    """A dependency requirement string could not be parsed."""

    def __init__(self, package: str, requirement: str, reason: str) -> None:
        self.package = package
        self.requirement = requirement
        super().__init__(
            f"invalid version requirement {requirement!r} declared by {package}: {reason}"
        )


class MissingDependencyError(TriageError):
    """A declared dependency does not exist anywhere in the registry snapshot."""

    def __init__(self, package: str, dependency: str) -> None:
        self.package = package
        self.dependency = dependency
        super().__init__(f"could not find {dependency} (required by {package})")


class UnknownPackageError(TriageError, KeyError):
    """A package version was queried that is not a node of the graph."""

    def __init__(self, package_id) -> None:
        self.package_id = package_id
        super().__init__(f"{package_id} is not in the dependency graph")

    def __str__(self) -> str:
        return self.args[0]


class IncomparableOutcomesError(TriageError, ValueError):
    """Two test outcomes have no defined ordering."""

    def __init__(self, baseline, candidate) -> None:
        self.baseline = baseline
        self.candidate = candidate
        super().__init__(f"can't compare {baseline} with {candidate}")


class DuplicateResultError(TriageError):
    """A result document lists the same package more than once."""


class LogFetchError(TriageError):
    """A remote build log could not be downloaded."""
