"""
Registry index acquisition and loading.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping

from .errors import RegistryError
from .interfaces import RegistrySource
from .models import DependencyRequirement, PackageId, PackageRecord


logger = logging.getLogger(__name__)

CONFIG_FILE = "config.json"


class IndexRepository:
    """Local git checkout of the registry index."""

    def __init__(self, path: Path, url: str) -> None:
        self.path = Path(path)
        self.url = url

    def ensure(self) -> Path:
        """Clone the index if needed and pull the latest snapshot."""
        if not self.path.exists():
            logger.info("Cloning %s into %s", self.url, self.path)
            result = self._git(["clone", self.url, str(self.path)], cwd=self.path.parent)
            if result.returncode != 0:
                raise RegistryError(
                    f"failed to clone {self.url}: {result.stderr.strip()}"
                )

        result = self._git(["pull"], cwd=self.path)
        if result.returncode != 0:
            logger.warning("failed to update index at %s: %s", self.path, result.stderr.strip())
        return self.path

    def _git(self, args: List[str], cwd: Path) -> subprocess.CompletedProcess:
        cwd.mkdir(parents=True, exist_ok=True)
        try:
            return subprocess.run(
                ["git", *args],
                cwd=cwd,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise RegistryError("git executable not found") from e


class RegistryLoader(RegistrySource):
    """Read a registry index directory into package records.

    Every file below ``root`` (except ``config.json`` and anything under a
    ``.git`` directory) holds one JSON record per line, one line per
    published version.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def load(self) -> Mapping[str, List[PackageRecord]]:
        if not self.root.is_dir():
            raise RegistryError(f"registry index not found at {self.root}")

        records: Dict[str, List[PackageRecord]] = {}
        for path in self._index_files():
            for record in self._read_file(path):
                records.setdefault(record.name, []).append(record)

        version_count = sum(len(v) for v in records.values())
        logger.info("loaded %d unique crates and %d versions", len(records), version_count)
        return MappingProxyType(records)

    def _index_files(self) -> Iterator[Path]:
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if ".git" not in d)
            for filename in sorted(filenames):
                if filename == CONFIG_FILE:
                    continue
                yield Path(dirpath) / filename

    def _read_file(self, path: Path) -> Iterator[PackageRecord]:
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise RegistryError(f"failed to read {path}: {e}") from e

        for lineno, line in enumerate(content.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                yield parse_record(json.loads(line))
            except (ValueError, KeyError, TypeError) as e:
                raise RegistryError(f"failed to parse {path}:{lineno}: {e}") from e


def parse_record(data: Dict) -> PackageRecord:
    """Build a PackageRecord from one decoded index line."""
    dependencies = []
    for dep in data.get("deps") or []:
        # Renamed dependencies are published under ``package``.
        name = dep.get("package") or dep["name"]
        dependencies.append(DependencyRequirement(
            name=name,
            req=dep["req"],
            kind=dep.get("kind") or "normal",
            optional=bool(dep.get("optional", False)),
        ))
    return PackageRecord(
        id=PackageId.of(data["name"], data["vers"]),
        dependencies=tuple(dependencies),
        yanked=bool(data.get("yanked", False)),
    )
