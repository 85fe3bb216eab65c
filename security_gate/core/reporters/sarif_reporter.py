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
SARIF format reporter for GitHub Code Scanning integration.

Implements SARIF 2.1.0 specification for security gate results.
https://docs.oasis-open.org/sarif/sarif/v2.1.0/sarif-v2.1.0.html
"""

import json
from typing import Any

from ...config.constants import SecurityGateConstants
from ..models import Finding, PolicyResult, ScanResults, Severity


class SARIFReporter:
    """Generates SARIF 2.1.0 format reports for GitHub Code Scanning."""

    SARIF_VERSION = "2.1.0"
    SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"

    # Map severity to SARIF levels
    SEVERITY_TO_LEVEL = {
        Severity.HIGH: "error",
        Severity.MEDIUM: "warning",
        Severity.LOW: "note",
    }

    def __init__(self, tool_name: str = "security-gate", tool_version: str = SecurityGateConstants.VERSION):
        """
        Initialize SARIF reporter.

        Args:
            tool_name: Name of the scanning tool
            tool_version: Version of the scanning tool
        """
        self.tool_name = tool_name
        self.tool_version = tool_version

    def generate_report(self, results: ScanResults, policy: PolicyResult | None = None) -> str:
        """
        Generate SARIF report.

        Args:
            results: Results of a gate run (after suppression)
            policy: Policy decision, recorded on the invocation when given

        Returns:
            SARIF JSON string
        """
        return json.dumps(self.build(results, policy), indent=2, default=str)

    def build(self, results: ScanResults, policy: PolicyResult | None = None) -> dict[str, Any]:
        """Build the SARIF log as a dictionary."""
        findings = results.findings
        invocation: dict[str, Any] = {
            "executionSuccessful": not results.has_errors,
            "endTimeUtc": results.timestamp.isoformat(),
        }
        if policy is not None:
            invocation["properties"] = {
                "policyPassed": policy.passed,
                "failOn": policy.fail_on.value,
                "suppressedCount": results.suppressed_count,
            }

        return {
            "$schema": self.SARIF_SCHEMA,
            "version": self.SARIF_VERSION,
            "runs": [
                {
                    "tool": self._create_tool_component(self._extract_rules(findings)),
                    "results": self._convert_findings(findings),
                    "invocations": [invocation],
                }
            ],
        }

    def _create_tool_component(self, rules: list[dict[str, Any]]) -> dict[str, Any]:
        """Create the tool component with rules."""
        return {
            "driver": {
                "name": self.tool_name,
                "version": self.tool_version,
                "rules": rules,
            }
        }

    @staticmethod
    def _sarif_rule_id(finding: Finding) -> str:
        return finding.rule_id or f"{finding.scanner.value}-finding"

    def _extract_rules(self, findings: list[Finding]) -> list[dict[str, Any]]:
        """Extract unique rules from findings."""
        seen_rules: set[str] = set()
        rules = []

        for finding in findings:
            rule_id = self._sarif_rule_id(finding)
            if rule_id in seen_rules:
                continue
            seen_rules.add(rule_id)

            rules.append(
                {
                    "id": rule_id,
                    "name": finding.title,
                    "shortDescription": {
                        "text": finding.title,
                    },
                    "fullDescription": {
                        "text": finding.message,
                    },
                    "defaultConfiguration": {
                        "level": self.SEVERITY_TO_LEVEL.get(finding.severity, "warning"),
                    },
                    "properties": {
                        "scanner": finding.scanner.value,
                        "severity": finding.severity.value,
                        "tags": [finding.scanner.value, "security"],
                    },
                }
            )

        return rules

    def _convert_findings(self, findings: list[Finding]) -> list[dict[str, Any]]:
        """Convert findings to SARIF results."""
        results = []

        for finding in findings:
            result: dict[str, Any] = {
                "ruleId": self._sarif_rule_id(finding),
                "level": self.SEVERITY_TO_LEVEL.get(finding.severity, "warning"),
                "message": {
                    "text": finding.message,
                },
                "properties": {
                    "scanner": finding.scanner.value,
                    "severity": finding.severity.value,
                },
            }

            location: dict[str, Any] = {
                "physicalLocation": {
                    "artifactLocation": {
                        "uri": finding.file or ".",
                        "uriBaseId": "%SRCROOT%",
                    },
                }
            }

            if finding.start_line:
                region: dict[str, Any] = {"startLine": finding.start_line}
                if finding.end_line:
                    region["endLine"] = finding.end_line
                # Snippets are masked by the scanner before the finding is built
                if finding.snippet:
                    region["snippet"] = {"text": finding.snippet}
                location["physicalLocation"]["region"] = region

            result["locations"] = [location]

            # Stable id doubles as the fingerprint for deduplication
            result["fingerprints"] = {
                "securityGate/v1": finding.id,
            }

            results.append(result)

        return results

    def save_report(self, results: ScanResults, output_path: str, policy: PolicyResult | None = None):
        """
        Save SARIF report to file.

        Args:
            results: Results of a gate run
            output_path: Path to save file
            policy: Optional policy decision
        """
        report_json = self.generate_report(results, policy)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(report_json)
