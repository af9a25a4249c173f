"""
Crater Triage

Classify baseline/candidate compiler regression-test results and find the
root regressions using the crates.io dependency graph.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]
