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
Data models for security findings, scanner results and policy decisions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class Severity(str, Enum):
    """Severity levels for security findings."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Most severe first
SEVERITY_ORDER: tuple[Severity, ...] = (Severity.HIGH, Severity.MEDIUM, Severity.LOW)


class ScannerName(str, Enum):
    """Scanners that can contribute findings to a gate run."""

    SECRETS = "secrets"
    DEPENDENCIES = "dependencies"
    IAC = "iac"
    CONTAINER = "container"


def create_finding_id(scanner: ScannerName | str, rule_id: str, file: str, line: int | None = None) -> str:
    """Build the stable identifier of a finding.

    The id is ``scanner:rule:file`` with ``:line`` appended when the finding
    has a location, e.g. ``secrets:SEC001:config/app.py:12``.
    """
    scanner_value = scanner.value if isinstance(scanner, ScannerName) else str(scanner)
    parts = [scanner_value, rule_id, file]
    if line is not None:
        parts.append(str(line))
    return ":".join(parts)


@dataclass(frozen=True)
class Finding:
    """A security issue detected by one of the scanners.

    Findings are immutable.  Snippets attached by the secrets scanner are
    always masked before the finding is built.
    """

    id: str
    severity: Severity
    title: str
    message: str
    file: str
    scanner: ScannerName
    start_line: int | None = None
    end_line: int | None = None
    rule_id: str | None = None
    snippet: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        """Coerce enum fields and freeze the metadata mapping."""
        object.__setattr__(self, "severity", Severity(self.severity))
        object.__setattr__(self, "scanner", ScannerName(self.scanner))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata or {})))

    def to_dict(self) -> dict[str, Any]:
        """Convert finding to dictionary."""
        return {
            "id": self.id,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
            "file": self.file,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "rule_id": self.rule_id,
            "scanner": self.scanner.value,
            "snippet": self.snippet,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Finding:
        """Build a finding from the dictionary shape produced by :meth:`to_dict`.

        Used to ingest pre-classified findings from external scanners.
        Raises :class:`ValueError` / :class:`KeyError` on malformed input.
        """
        return cls(
            id=str(data["id"]),
            severity=Severity(str(data["severity"]).lower()),
            title=str(data["title"]),
            message=str(data.get("message", "")),
            file=str(data.get("file", "")),
            scanner=ScannerName(data["scanner"]),
            start_line=data.get("start_line"),
            end_line=data.get("end_line"),
            rule_id=data.get("rule_id"),
            snippet=data.get("snippet"),
            metadata=data.get("metadata") or {},
        )


@dataclass(frozen=True)
class SeverityCounts:
    """Number of findings per severity plus the total."""

    high: int = 0
    medium: int = 0
    low: int = 0
    total: int = 0

    def get(self, severity: Severity) -> int:
        return getattr(self, severity.value)

    def to_dict(self) -> dict[str, int]:
        return {"high": self.high, "medium": self.medium, "low": self.low, "total": self.total}


@dataclass(frozen=True)
class PolicyResult:
    """Outcome of evaluating findings against the severity threshold."""

    passed: bool
    fail_on: Severity
    counts: SeverityCounts
    threshold_triggered: Severity | None = None
    failure_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "fail_on": self.fail_on.value,
            "counts": self.counts.to_dict(),
            "threshold_triggered": self.threshold_triggered.value if self.threshold_triggered else None,
            "failure_reason": self.failure_reason,
        }


@dataclass
class ScannerResult:
    """Results from running a single scanner."""

    name: ScannerName
    findings: list[Finding] = field(default_factory=list)
    duration_ms: int = 0
    files_scanned: int | None = None
    error: str | None = None  # Scanner failed; findings may be partial
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name.value,
            "findings": [f.to_dict() for f in self.findings],
            "duration_ms": self.duration_ms,
            "files_scanned": self.files_scanned,
            "error": self.error,
            "metadata": self.metadata,
        }


@dataclass
class ScanResults:
    """Aggregated results from all scanners of a gate run."""

    scanners: list[ScannerResult] = field(default_factory=list)
    total_duration_ms: int = 0
    suppressed_findings: list[Finding] = field(default_factory=list)
    suppressed_by_scanner: dict[str, int] = field(default_factory=dict)
    allowlist_warnings: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def findings(self) -> list[Finding]:
        """All findings across scanners, in scanner order."""
        return [finding for result in self.scanners for finding in result.findings]

    @property
    def total_findings(self) -> int:
        return sum(len(result.findings) for result in self.scanners)

    @property
    def total_files_scanned(self) -> int:
        return sum(result.files_scanned or 0 for result in self.scanners)

    @property
    def has_errors(self) -> bool:
        return any(result.error for result in self.scanners)

    @property
    def suppressed_count(self) -> int:
        return len(self.suppressed_findings)

    def get_findings_by_severity(self, severity: Severity) -> list[Finding]:
        """Get all findings of a specific severity."""
        return [f for f in self.findings if f.severity == severity]

    def to_dict(self) -> dict[str, Any]:
        """Convert scan results to dictionary."""
        return {
            "scanners": [result.to_dict() for result in self.scanners],
            "total_findings": self.total_findings,
            "high_count": len(self.get_findings_by_severity(Severity.HIGH)),
            "medium_count": len(self.get_findings_by_severity(Severity.MEDIUM)),
            "low_count": len(self.get_findings_by_severity(Severity.LOW)),
            "total_duration_ms": self.total_duration_ms,
            "total_files_scanned": self.total_files_scanned,
            "has_errors": self.has_errors,
            "suppressed_count": self.suppressed_count,
            "suppressed_by_scanner": dict(self.suppressed_by_scanner),
            "suppressed_findings": [f.to_dict() for f in self.suppressed_findings],
            "allowlist_warnings": list(self.allowlist_warnings),
            "timestamp": self.timestamp.isoformat(),
        }
