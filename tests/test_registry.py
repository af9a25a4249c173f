"""Tests for registry index loading and syncing."""

import subprocess
from pathlib import Path

import pytest

from conftest import index_line
from crater_triage import registry
from crater_triage.errors import RegistryError
from crater_triage.graph import DependencyGraph
from crater_triage.models import PackageId
from crater_triage.registry import IndexRepository, RegistryLoader, parse_record


def test_loader_groups_versions_by_name(write_index):
    root = write_index([
        index_line("serde", "1.0.0"),
        index_line("serde", "1.0.1"),
        index_line("app", "0.1.0", ("serde", "^1.0")),
    ])

    records = RegistryLoader(root).load()

    assert sorted(records) == ["app", "serde"]
    assert [str(r.version) for r in records["serde"]] == ["1.0.0", "1.0.1"]
    assert records["app"][0].dependencies[0].name == "serde"
    assert records["app"][0].dependencies[0].req == "^1.0"


def test_loader_output_feeds_graph_builder(write_index):
    root = write_index([
        index_line("serde", "1.0.0"),
        index_line("app", "0.1.0", ("serde", "1")),
    ])

    graph = DependencyGraph.build(RegistryLoader(root).load())

    assert graph.has_edge(PackageId.of("app", "0.1.0"), PackageId.of("serde", "1.0.0"))


def test_loader_reports_malformed_lines(write_index):
    root = write_index([index_line("serde", "1.0.0")])
    (root / "se" / "serde").write_text('{"name": "serde", "vers": "1.0.0"}\n{broken\n', encoding="utf-8")

    with pytest.raises(RegistryError, match="serde:2"):
        RegistryLoader(root).load()


def test_loader_requires_directory(tmp_path: Path):
    with pytest.raises(RegistryError):
        RegistryLoader(tmp_path / "missing").load()


def test_loader_result_is_read_only(write_index):
    records = RegistryLoader(write_index([index_line("serde", "1.0.0")])).load()

    with pytest.raises(TypeError):
        records["other"] = []


def test_parse_record_uses_renamed_package():
    record = parse_record({
        "name": "app",
        "vers": "1.0.0",
        "deps": [
            {"name": "json", "package": "serde_json", "req": "^1", "kind": "dev", "optional": True},
            {"name": "log", "req": "0.4", "kind": None},
        ],
        "yanked": True,
    })

    renamed, log = record.dependencies
    assert renamed.name == "serde_json"
    assert renamed.kind == "dev"
    assert renamed.optional is True
    assert log.kind == "normal"
    assert record.yanked is True


def _completed(returncode, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


def test_index_repository_clones_then_pulls(tmp_path: Path, monkeypatch):
    calls = []

    def fake_run(cmd, cwd, capture_output, text):
        calls.append((cmd, Path(cwd)))
        return _completed(0)

    monkeypatch.setattr(registry.subprocess, "run", fake_run)
    path = tmp_path / "crates.io-index"

    assert IndexRepository(path, "https://example.invalid/index").ensure() == path
    assert calls[0] == (["git", "clone", "https://example.invalid/index", str(path)], tmp_path)
    assert calls[1] == (["git", "pull"], path)


def test_index_repository_tolerates_failed_pull(tmp_path: Path, monkeypatch, caplog):
    monkeypatch.setattr(registry.subprocess, "run", lambda cmd, **kw: _completed(1, "offline"))
    path = tmp_path / "index"
    path.mkdir()

    with caplog.at_level("WARNING"):
        IndexRepository(path, "url").ensure()

    assert "failed to update index" in caplog.text


def test_index_repository_fails_on_clone_error(tmp_path: Path, monkeypatch):
    monkeypatch.setattr(registry.subprocess, "run", lambda cmd, **kw: _completed(128, "denied"))

    with pytest.raises(RegistryError, match="denied"):
        IndexRepository(tmp_path / "index", "url").ensure()
