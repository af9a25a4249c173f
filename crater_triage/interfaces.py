"""
Interfaces for the registry snapshot and build-log collaborators.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Protocol

from .models import PackageComparison, PackageRecord


class RegistrySource(Protocol):
    """Provide every published package version of a registry snapshot."""

    def load(self) -> Mapping[str, List[PackageRecord]]:
        ...


class LogSource(Protocol):
    """Provide candidate-run build logs for compared packages."""

    def fetch(self, comparisons: Iterable[PackageComparison]) -> int:
        ...

    def read(self, name: str) -> Optional[str]:
        ...
