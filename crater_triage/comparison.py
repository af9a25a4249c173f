"""
Baseline/candidate outcome classification and result merging.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict

from .errors import DuplicateResultError, IncomparableOutcomesError, TriageError
from .models import Comparison, TestOutcome, TestResults


logger = logging.getLogger(__name__)

_BF = TestOutcome.BUILD_FAIL
_TF = TestOutcome.TEST_FAIL
_TS = TestOutcome.TEST_SKIPPED
_TP = TestOutcome.TEST_PASS

# A build failure is worse than any test-level outcome and a test failure is
# worse than a pass. Skipped has no ordering against failed or passed and
# those four pairs are not in the table.
COMPARISON_TABLE: Dict[tuple, Comparison] = {
    (_BF, _BF): Comparison.SAME_BUILD_FAIL,
    (_TF, _TF): Comparison.SAME_TEST_FAIL,
    (_TS, _TS): Comparison.SAME_TEST_SKIPPED,
    (_TP, _TP): Comparison.SAME_TEST_PASS,
    (_BF, _TF): Comparison.FIXED,
    (_BF, _TS): Comparison.FIXED,
    (_BF, _TP): Comparison.FIXED,
    (_TF, _TP): Comparison.FIXED,
    (_TP, _TF): Comparison.REGRESSED,
    (_TP, _BF): Comparison.REGRESSED,
    (_TS, _BF): Comparison.REGRESSED,
    (_TF, _BF): Comparison.REGRESSED,
}


def compare(baseline: TestOutcome, candidate: TestOutcome) -> Comparison:
    """Classify the change from ``baseline`` to ``candidate``.

    Raises:
        IncomparableOutcomesError: one side is skipped and the other passed
            or failed its tests.
    """
    try:
        return COMPARISON_TABLE[(baseline, candidate)]
    except KeyError:
        raise IncomparableOutcomesError(baseline, candidate) from None


def _prefixed(prefix: str, log: str) -> str:
    return f"{prefix.rstrip('/')}/{log}"


def merge_results(
    candidate: TestResults,
    baseline: TestResults,
    baseline_log_prefix: str,
    candidate_log_prefix: str,
) -> TestResults:
    """Merge the baseline runs into ``candidate`` and classify each package.

    Packages missing from ``baseline`` are left untouched. For the others the
    baseline run is copied into ``runs[0]``, the comparison is assigned and
    both log references are rewritten to absolute URLs. ``candidate`` is
    updated in place and returned.
    """
    baseline_index: Dict[str, int] = {}
    for idx, result in enumerate(baseline.crates):
        if result.name in baseline_index:
            raise DuplicateResultError(f"{result.name} appears more than once in the baseline results")
        baseline_index[result.name] = idx

    skipped = 0
    for result in candidate.crates:
        if result.name not in baseline_index:
            skipped += 1
            continue

        baseline_run = baseline.crates[baseline_index[result.name]].baseline
        if baseline_run is not None:
            if result.candidate is None:
                raise TriageError(f"{result.name} has no candidate run")
            result.runs[0] = replace(baseline_run)
            result.comparison = compare(baseline_run.outcome, result.candidate.outcome)

        if result.baseline is not None:
            result.baseline.log = _prefixed(baseline_log_prefix, result.baseline.log)
        if result.candidate is not None:
            result.candidate.log = _prefixed(candidate_log_prefix, result.candidate.log)

    logger.info("candidate results: %d", len(candidate.crates))
    logger.info("baseline results: %d", len(baseline.crates))
    if skipped:
        logger.info("%d packages only present in the candidate results", skipped)
    return candidate
