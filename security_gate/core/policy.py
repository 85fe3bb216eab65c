# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Policy evaluator.

Turns a set of findings and a severity threshold into a pass/fail
decision.  Pure functions only: no I/O, inputs are never mutated.

Decision table:

=========  ==============================  ======
fail_on    failing severities              result
=========  ==============================  ======
high       high                            FAIL if any
medium     high, medium                    FAIL if any
low        high, medium, low               FAIL if any
=========  ==============================  ======
"""

from __future__ import annotations

from typing import Iterable

from .exceptions import ConfigurationError
from .models import SEVERITY_ORDER, Finding, PolicyResult, ScanResults, Severity, SeverityCounts

THRESHOLD_SEVERITIES: dict[Severity, tuple[Severity, ...]] = {
    Severity.HIGH: (Severity.HIGH,),
    Severity.MEDIUM: (Severity.HIGH, Severity.MEDIUM),
    Severity.LOW: (Severity.HIGH, Severity.MEDIUM, Severity.LOW),
}


def is_valid_threshold(value: object) -> bool:
    """Check if *value* names a threshold (``high``, ``medium`` or ``low``)."""
    if isinstance(value, Severity):
        return True
    return isinstance(value, str) and value in {s.value for s in Severity}


def count_findings(findings: Iterable[Finding]) -> SeverityCounts:
    """Count findings by severity."""
    tally = dict.fromkeys(SEVERITY_ORDER, 0)
    for finding in findings:
        tally[finding.severity] += 1
    return SeverityCounts(
        high=tally[Severity.HIGH],
        medium=tally[Severity.MEDIUM],
        low=tally[Severity.LOW],
        total=sum(tally.values()),
    )


def _format_counts(counts: SeverityCounts) -> str:
    parts = [f"{counts.get(severity)} {severity.value}" for severity in SEVERITY_ORDER if counts.get(severity)]
    return ", ".join(parts)


def format_failure_reason(counts: SeverityCounts, fail_on: Severity, triggered: Severity) -> str:
    """Human-readable reason for a failed policy check."""
    return (
        f"Policy check failed: found {_format_counts(counts)} severity findings "
        f"(threshold: {fail_on.value}, triggered by: {triggered.value})"
    )


def should_fail(high: int, medium: int, low: int, fail_on: Severity | str) -> bool:
    """Decide pass/fail from raw counts. Unknown thresholds behave like ``high``."""
    threshold = Severity(fail_on) if is_valid_threshold(fail_on) else Severity.HIGH
    counts = {Severity.HIGH: high, Severity.MEDIUM: medium, Severity.LOW: low}
    return any(counts[severity] > 0 for severity in THRESHOLD_SEVERITIES[threshold])


def evaluate_policy(findings: Iterable[Finding], fail_on: Severity | str) -> PolicyResult:
    """Evaluate *findings* against the *fail_on* threshold.

    The first severity of the threshold's failing set (most severe first)
    with at least one finding triggers the failure.

    Raises:
        ConfigurationError: If *fail_on* is not a valid threshold.
    """
    if not is_valid_threshold(fail_on):
        raise ConfigurationError(f"Invalid fail_on '{fail_on}' (expected one of: high, medium, low)")
    threshold = Severity(fail_on)
    counts = count_findings(findings)

    for severity in THRESHOLD_SEVERITIES[threshold]:
        if counts.get(severity) > 0:
            return PolicyResult(
                passed=False,
                fail_on=threshold,
                counts=counts,
                threshold_triggered=severity,
                failure_reason=format_failure_reason(counts, threshold, severity),
            )

    return PolicyResult(passed=True, fail_on=threshold, counts=counts)


def evaluate_policy_from_results(results: ScanResults, fail_on: Severity | str) -> PolicyResult:
    """Evaluate the findings of every scanner; an invalid threshold falls back to ``high``."""
    threshold = Severity(fail_on) if is_valid_threshold(fail_on) else Severity.HIGH
    return evaluate_policy(results.findings, threshold)


def format_policy_summary(result: PolicyResult) -> str:
    """One-line status for reports, e.g. ``Failed (1 high, 2 medium findings, threshold: medium)``."""
    if result.counts.total == 0:
        return "Passed (no findings)"

    status = "Passed" if result.passed else "Failed"
    return f"{status} ({_format_counts(result.counts)} findings, threshold: {result.fail_on.value})"
