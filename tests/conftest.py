"""Shared fixtures for building small registry snapshots."""

import json
from pathlib import Path

import pytest

from crater_triage.models import DependencyRequirement, PackageId, PackageRecord


def make_record(name, version, *deps):
    """Build a PackageRecord; ``deps`` are ``(name, req)`` pairs."""
    return PackageRecord(
        id=PackageId.of(name, version),
        dependencies=tuple(DependencyRequirement(dep, req) for dep, req in deps),
    )


def make_records(*records):
    grouped = {}
    for record in records:
        grouped.setdefault(record.name, []).append(record)
    return grouped


@pytest.fixture
def write_index(tmp_path: Path):
    """Write index lines (dicts) into a crates.io style directory tree."""

    def _write(entries):
        root = tmp_path / "index"
        (root / ".git").mkdir(parents=True)
        (root / ".git" / "HEAD").write_text("not an index file\n", encoding="utf-8")
        (root / "config.json").write_text('{"dl": "https://example.invalid"}', encoding="utf-8")
        by_name = {}
        for entry in entries:
            by_name.setdefault(entry["name"], []).append(entry)
        for name, lines in by_name.items():
            path = root / name[:2] / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("\n".join(json.dumps(line) for line in lines) + "\n", encoding="utf-8")
        return root

    return _write


def index_line(name, vers, *deps, **extra):
    line = {
        "name": name,
        "vers": vers,
        "deps": [
            {"name": dep, "req": req, "kind": "normal", "optional": False}
            for dep, req in deps
        ],
        "yanked": False,
    }
    line.update(extra)
    return line
