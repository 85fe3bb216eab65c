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
Tests for the severity-threshold policy evaluator.
"""

import pytest

from security_gate.core.exceptions import ConfigurationError
from security_gate.core.models import ScannerName, ScannerResult, ScanResults, Severity
from security_gate.core.policy import (
    count_findings,
    evaluate_policy,
    evaluate_policy_from_results,
    format_policy_summary,
    is_valid_threshold,
    should_fail,
)


def findings_for(make_finding, high=0, medium=0, low=0):
    out = []
    for severity, count in (("high", high), ("medium", medium), ("low", low)):
        out.extend(make_finding(severity=severity, line=i + 1, file=f"{severity}.py") for i in range(count))
    return out


# =============================================================================
# Decision table
# =============================================================================


class TestDecisionTable:
    @pytest.mark.parametrize(
        "fail_on,counts,passed,triggered",
        [
            ("high", (0, 0, 0), True, None),
            ("high", (1, 0, 0), False, "high"),
            ("high", (0, 5, 5), True, None),
            ("medium", (0, 1, 0), False, "medium"),
            ("medium", (1, 1, 0), False, "high"),
            ("medium", (0, 0, 3), True, None),
            ("low", (0, 0, 1), False, "low"),
            ("low", (0, 2, 1), False, "medium"),
            ("low", (0, 0, 0), True, None),
        ],
    )
    def test_golden(self, make_finding, fail_on, counts, passed, triggered):
        high, medium, low = counts
        result = evaluate_policy(findings_for(make_finding, high, medium, low), fail_on)

        assert result.passed is passed
        assert result.fail_on == Severity(fail_on)
        assert (result.threshold_triggered.value if result.threshold_triggered else None) == triggered
        assert should_fail(high, medium, low, fail_on) is (not passed)

    def test_counts(self, make_finding):
        counts = count_findings(findings_for(make_finding, 1, 2, 3))
        assert counts.to_dict() == {"high": 1, "medium": 2, "low": 3, "total": 6}

    def test_failure_reason(self, make_finding):
        result = evaluate_policy(findings_for(make_finding, 1, 2, 0), "medium")
        assert result.failure_reason == (
            "Policy check failed: found 1 high, 2 medium severity findings (threshold: medium, triggered by: high)"
        )

    def test_passed_has_no_reason(self, make_finding):
        result = evaluate_policy(findings_for(make_finding, low=1), "high")
        assert result.failure_reason is None

    def test_input_not_mutated(self, make_finding):
        findings = findings_for(make_finding, 1, 1, 1)
        snapshot = list(findings)
        evaluate_policy(findings, "low")
        assert findings == snapshot


# =============================================================================
# Thresholds
# =============================================================================


class TestThresholds:
    @pytest.mark.parametrize("value", ["high", "medium", "low", Severity.LOW])
    def test_valid(self, value):
        assert is_valid_threshold(value)

    @pytest.mark.parametrize("value", ["HIGH", "critical", "", None, 1])
    def test_invalid(self, value):
        assert not is_valid_threshold(value)

    def test_evaluate_rejects_invalid(self):
        with pytest.raises(ConfigurationError, match="Invalid fail_on 'critical'"):
            evaluate_policy([], "critical")

    def test_should_fail_unknown_threshold_behaves_like_high(self):
        assert not should_fail(0, 1, 0, "critical")
        assert should_fail(1, 0, 0, "critical")

    def test_from_results_falls_back_to_high(self, make_finding):
        results = ScanResults(
            scanners=[ScannerResult(name=ScannerName.SECRETS, findings=findings_for(make_finding, medium=1))]
        )
        result = evaluate_policy_from_results(results, "bogus")
        assert result.passed
        assert result.fail_on == Severity.HIGH


# =============================================================================
# Summary line
# =============================================================================


class TestPolicySummary:
    def test_no_findings(self):
        assert format_policy_summary(evaluate_policy([], "high")) == "Passed (no findings)"

    def test_failed(self, make_finding):
        result = evaluate_policy(findings_for(make_finding, 1, 2, 0), "medium")
        assert format_policy_summary(result) == "Failed (1 high, 2 medium findings, threshold: medium)"

    def test_passed_with_findings(self, make_finding):
        result = evaluate_policy(findings_for(make_finding, low=2), "medium")
        assert format_policy_summary(result) == "Passed (2 low findings, threshold: medium)"
