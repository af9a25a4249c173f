"""
Shared SemVer helpers for registry versions and Cargo-style requirements.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List

import semantic_version

_BARE_VERSION = re.compile(r"^\d+(\.\d+){0,2}([-+].*)?$")


def parse_version(value: str) -> semantic_version.Version:
    """Parse a strict SemVer version string."""
    return semantic_version.Version(value.strip())


def normalize_dependency_name(name: str) -> str:
    """Rewrite underscores to hyphens, the separator the registry publishes under."""
    return name.replace("_", "-")


def normalize_requirement(req: str) -> str:
    """Translate a Cargo requirement into npm range syntax.

    Cargo treats a bare version as a caret requirement, separates comparators
    with commas and allows whitespace between an operator and its version.
    """
    clauses: List[str] = []
    for clause in req.split(","):
        clause = "".join(clause.split())
        if not clause:
            continue
        if _BARE_VERSION.match(clause):
            clause = "^" + clause
        clauses.append(clause)
    return " ".join(clauses) or "*"


@lru_cache(maxsize=None)
def parse_requirement(req: str) -> semantic_version.NpmSpec:
    """Parse (and memoize) a Cargo requirement string.

    Pre-release versions only match a comparator that names a pre-release
    of the same major.minor.patch, as in Cargo.

    Raises:
        ValueError: if the requirement is not valid syntax.
    """
    return semantic_version.NpmSpec(normalize_requirement(req))
