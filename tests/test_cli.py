"""End-to-end tests for the command-line interface."""

import json
from pathlib import Path

import pytest

from conftest import index_line
from crater_triage.cli import main, parse_root_spec


def _write_results(path: Path, crates):
    path.write_text(json.dumps({"crates": crates}), encoding="utf-8")
    return path


def _crate(name, res, runs):
    return {
        "name": name,
        "url": f"https://crates.io/crates/{name}/1.0.0",
        "res": res,
        "runs": runs,
    }


def test_parse_root_spec():
    assert parse_root_spec("url 1.7.0") == ("url", "1.7.0")
    assert parse_root_spec("url") == ("url", "*")
    assert parse_root_spec("url >= 1.0.0, < 2.0.0") == ("url", ">= 1.0.0, < 2.0.0")


def test_merge_command(tmp_path: Path):
    baseline = _write_results(tmp_path / "baseline.json", [
        _crate("a", "Unknown", [{"res": "test-pass", "log": "stable/a"}, None]),
    ])
    candidate = _write_results(tmp_path / "candidate.json", [
        _crate("a", "Unknown", [None, {"res": "build-fail", "log": "beta/a"}]),
    ])
    output_dir = tmp_path / "out"

    main([
        "--output-dir", str(output_dir),
        "merge", str(candidate), str(baseline),
        "--log-base-url", "https://logs.example",
        "--baseline-run", "pr-1",
        "--candidate-run", "nll-1",
    ])

    merged = json.loads((output_dir / "results-merged.json").read_text(encoding="utf-8"))
    assert merged["crates"][0]["res"] == "Regressed"
    assert merged["crates"][0]["runs"] == [
        {"res": "TestPass", "log": "https://logs.example/pr-1/stable/a"},
        {"res": "BuildFail", "log": "https://logs.example/nll-1/beta/a"},
    ]


def test_merge_command_exits_on_incomparable_outcomes(tmp_path: Path, capsys):
    baseline = _write_results(tmp_path / "baseline.json", [
        _crate("a", "Unknown", [{"res": "test-skipped", "log": "a"}, None]),
    ])
    candidate = _write_results(tmp_path / "candidate.json", [
        _crate("a", "Unknown", [None, {"res": "test-fail", "log": "a"}]),
    ])

    with pytest.raises(SystemExit) as excinfo:
        main(["--output-dir", str(tmp_path), "merge", str(candidate), str(baseline)])

    assert excinfo.value.code == 1
    assert "can't compare" in capsys.readouterr().err


def test_roots_command(tmp_path: Path, write_index):
    index = write_index([
        index_line("a", "1.0.0", ("b", "^1")),
        index_line("b", "1.0.0"),
        index_line("c", "1.0.0"),
    ])
    runs = [{"res": "test-pass", "log": "https://l/base"}, {"res": "build-fail", "log": "https://l/cand"}]
    results = _write_results(tmp_path / "merged.json", [
        _crate("a", "Regressed", runs),
        _crate("b", "Regressed", runs),
        _crate("c", "SameTestPass", runs),
    ])
    output_dir = tmp_path / "out"

    main(["--output-dir", str(output_dir), "roots", str(results), "--index-dir", str(index), "--csv"])

    report = (output_dir / "report.md").read_text(encoding="utf-8").splitlines()
    assert report[0] == "1 root regressions"
    assert report[1].startswith(" - [a](https://crates.io/crates/a/1.0.0)")
    assert (output_dir / "root_regressions.csv").exists()


def test_roots_command_fails_on_missing_dependency(tmp_path: Path, write_index, capsys):
    index = write_index([index_line("a", "1.0.0", ("ghost", "^1"))])
    results = _write_results(tmp_path / "merged.json", [])

    with pytest.raises(SystemExit):
        main(["--output-dir", str(tmp_path), "roots", str(results), "--index-dir", str(index)])

    assert "could not find ghost" in capsys.readouterr().err


def test_impact_command(tmp_path: Path, write_index, caplog, monkeypatch):
    monkeypatch.delenv("QUIET", raising=False)
    index = write_index([
        index_line("url", "1.7.0"),
        index_line("url", "2.0.0"),
        index_line("reqwest", "0.9.0", ("url", "^1.7")),
    ])
    output_dir = tmp_path / "out"

    with caplog.at_level("INFO"):
        main(["--output-dir", str(output_dir), "impact", "url 1.7.0", "--index-dir", str(index), "--csv"])

    assert "dependents on url 1.7.0: 2 crates, 1 versions: reqwest 0.9.0" in caplog.text
    assert "total versions broken: 2 (66.67%)" in caplog.text
    assert (output_dir / "impact.csv").exists()
