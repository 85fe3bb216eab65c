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
Markdown format reporter for gate results.

Suitable for CI job summaries and pull request comments.
"""

from ...config.constants import SecurityGateConstants
from ..models import SEVERITY_ORDER, Finding, PolicyResult, ScanResults, Severity
from ..policy import format_policy_summary

SCANNER_TITLES = {
    "secrets": "Secrets",
    "dependencies": "Dependencies",
    "iac": "Infrastructure",
    "container": "Containers",
}


class MarkdownReporter:
    """Generates Markdown format reports."""

    # High findings are listed in full, the rest go in collapsed sections
    MAX_EXPANDED_HIGH_FINDINGS = 20
    MAX_COLLAPSED_FINDINGS = 50

    def __init__(self, detailed: bool = True):
        """
        Initialize Markdown reporter.

        Args:
            detailed: If True, include snippets in finding blocks
        """
        self.detailed = detailed

    def generate_report(self, results: ScanResults, policy: PolicyResult) -> str:
        """
        Generate Markdown report.

        Args:
            results: Results of a gate run (after suppression)
            policy: Policy decision for the run

        Returns:
            Markdown string
        """
        lines = []

        # Header
        lines.append("## Security Gate Results")
        lines.append("")
        lines.append(f"**Status:** {'[OK]' if policy.passed else '[FAIL]'} {format_policy_summary(policy)}")
        lines.append(
            f"**Scanned:** {len(results.scanners)} scanner(s), {results.total_files_scanned} file(s), "
            f"{results.total_duration_ms / 1000:.1f}s"
        )
        if policy.failure_reason:
            lines.append("")
            lines.append(f"> {policy.failure_reason}")
        lines.append("")

        # Per-scanner table
        lines.append("### Findings by Scanner")
        lines.append("")
        lines.append("| Scanner | High | Medium | Low | Suppressed |")
        lines.append("| ------- | ---- | ------ | --- | ---------- |")
        for result in results.scanners:
            name = result.name.value
            counts = {sev: sum(1 for f in result.findings if f.severity == sev) for sev in SEVERITY_ORDER}
            title = SCANNER_TITLES.get(name, name)
            if result.error:
                title += " (error)"
            lines.append(
                f"| {title} | {counts[Severity.HIGH]} | {counts[Severity.MEDIUM]} | {counts[Severity.LOW]} "
                f"| {results.suppressed_by_scanner.get(name, 0)} |"
            )
        lines.append("")

        errors = [r for r in results.scanners if r.error]
        if errors:
            lines.append("### Scanner Errors")
            lines.append("")
            for result in errors:
                lines.append(f"- **{SCANNER_TITLES.get(result.name.value, result.name.value)}:** {result.error}")
            lines.append("")

        if results.allowlist_warnings:
            lines.append("### Expired Allowlist Entries")
            lines.append("")
            for warning in results.allowlist_warnings:
                lines.append(f"- {warning}")
            lines.append("")

        high = results.get_findings_by_severity(Severity.HIGH)
        if high:
            lines.append("### High Severity Findings")
            lines.append("")
            lines.extend(self._format_findings(high, self.MAX_EXPANDED_HIGH_FINDINGS))

        for severity in (Severity.MEDIUM, Severity.LOW):
            findings = results.get_findings_by_severity(severity)
            if not findings:
                continue
            lines.append("<details>")
            lines.append(f"<summary>{severity.value.title()} Severity Findings ({len(findings)})</summary>")
            lines.append("")
            lines.extend(self._format_findings(findings, self.MAX_COLLAPSED_FINDINGS))
            lines.append("</details>")
            lines.append("")

        if not results.findings:
            lines.append("No security issues were detected in this scan.")
            lines.append("")

        # Footer
        lines.append("---")
        lines.append("")
        lines.append(f"_Security Gate v{SecurityGateConstants.VERSION}_")

        return "\n".join(lines)

    def _format_findings(self, findings: list[Finding], limit: int) -> list[str]:
        lines = []
        for finding in findings[:limit]:
            lines.extend(self._format_finding(finding))
            lines.append("")
        if len(findings) > limit:
            lines.append(f"_...and {len(findings) - limit} more findings_")
            lines.append("")
        return lines

    def _format_finding(self, finding: Finding) -> list[str]:
        """Format a single finding as markdown lines."""
        lines = []
        rule = f": {finding.rule_id}" if finding.rule_id else ""
        lines.append(f"#### [{finding.severity.value.upper()}] {finding.title}{rule}")
        lines.append("")

        location = finding.file
        if finding.start_line is not None:
            location += f":{finding.start_line}"
            if finding.end_line is not None and finding.end_line != finding.start_line:
                location += f"-{finding.end_line}"
        lines.append(f"- **File:** `{location}`")
        lines.append(f"- **Message:** {finding.message}")

        # Snippet is already masked
        if self.detailed and finding.snippet:
            lines.append("")
            lines.append("```")
            lines.append(finding.snippet)
            lines.append("```")

        return lines

    def save_report(self, results: ScanResults, policy: PolicyResult, output_path: str):
        """
        Save Markdown report to file.

        Args:
            results: Results of a gate run
            policy: Policy decision for the run
            output_path: Path to save file
        """
        report_md = self.generate_report(results, policy)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(report_md)
