"""
Loading and saving result documents, and recovering package ids from URLs.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from .models import Comparison, PackageComparison, PackageId, RunResult, TestOutcome, TestResults
from .versions import parse_version


logger = logging.getLogger(__name__)

REGISTRY_HOST = "crates.io"


def _run_from_dict(data: Optional[Dict[str, Any]]) -> Optional[RunResult]:
    if data is None:
        return None
    return RunResult(outcome=TestOutcome.parse(data["res"]), log=data["log"])


def _run_to_dict(run: Optional[RunResult]) -> Optional[Dict[str, str]]:
    if run is None:
        return None
    return {"res": run.outcome.variant, "log": run.log}


def comparison_from_dict(data: Dict[str, Any]) -> PackageComparison:
    runs = list(data.get("runs") or [])
    runs += [None] * (2 - len(runs))
    res = data.get("res")
    return PackageComparison(
        name=data["name"],
        url=data["url"],
        comparison=Comparison.parse(res) if res else Comparison.UNKNOWN,
        runs=[_run_from_dict(runs[0]), _run_from_dict(runs[1])],
    )


def comparison_to_dict(result: PackageComparison) -> Dict[str, Any]:
    return {
        "name": result.name,
        "url": result.url,
        "res": result.comparison.variant,
        "runs": [_run_to_dict(run) for run in result.runs],
    }


def load_results(path: Path) -> TestResults:
    """Read a result document.

    Raises:
        ValueError: the file is not a valid result document.
    """
    path = Path(path)
    logger.info("Loading results from %s", path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    try:
        crates = [comparison_from_dict(item) for item in data["crates"]]
    except (KeyError, TypeError) as e:
        raise ValueError(f"failed to parse result file {path}: {e}") from e
    return TestResults(crates=crates)


def save_results(results: TestResults, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"crates": [comparison_to_dict(c) for c in results.crates]}, f)
    return path


def parse_package_url(url: str) -> Optional[PackageId]:
    """Recover the package version a registry URL points at.

    Returns ``None`` for URLs that are not registry URLs or carry no
    ``crates/<name>/<version>`` segment.

    Raises:
        ValueError: a registry URL whose version segment is not SemVer.
    """
    parsed = urlparse(url)
    host = parsed.hostname or ""
    if host != REGISTRY_HOST and not host.endswith("." + REGISTRY_HOST):
        return None

    segments = [s for s in parsed.path.split("/") if s]
    try:
        idx = segments.index("crates")
        name, version = segments[idx + 1], segments[idx + 2]
    except (ValueError, IndexError):
        return None

    try:
        return PackageId(name, parse_version(version))
    except ValueError as e:
        raise ValueError(f"failed to parse version: {url}") from e
