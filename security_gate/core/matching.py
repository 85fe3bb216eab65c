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
Per-line matching pipeline.

For every line, built-in detectors run first, then the custom rules whose
file globs accept the file.  Each detector reports every non-overlapping
match with its column; there is no deduplication across detectors, so one
secret matched by two detectors yields two findings.

Ordering contract: the raw value of a match is registered with the
injected :class:`~security_gate.core.masking.SecretSink` before any
snippet, message or log line is formatted from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from .masking import SecretSink, mask_snippet
from .models import Finding, ScannerName, Severity, create_finding_id
from .rules import CompiledRule, is_match_allowlisted
from .secret_patterns import SECRET_PATTERNS, SecretPattern

logger = logging.getLogger(__name__)

CUSTOM_RULE_PREFIX = "CUSTOM"


@dataclass(frozen=True)
class LineMatch:
    """A single detector hit on one line."""

    detector_id: str
    detector_name: str
    severity: Severity
    message: str
    value: str
    column: int
    is_custom: bool = False


def _is_reportable(value: str) -> bool:
    return bool(value) and not value.isspace()


def scan_line_builtin(line: str, patterns: Iterable[SecretPattern] = SECRET_PATTERNS) -> list[LineMatch]:
    """Collect every built-in detector match on *line*."""
    matches = []
    for pattern in patterns:
        for match in pattern.regex.finditer(line):
            value = match.group(0)
            if not _is_reportable(value):
                continue
            matches.append(
                LineMatch(
                    detector_id=pattern.id,
                    detector_name=pattern.name,
                    severity=pattern.severity,
                    message=pattern.message,
                    value=value,
                    column=match.start(),
                )
            )
    return matches


def scan_line_custom(line: str, rules: Iterable[CompiledRule], file_path: str) -> list[LineMatch]:
    """Collect custom rule matches on *line*, honouring globs and inline allowlists."""
    matches = []
    for rule in rules:
        if not rule.applies_to(file_path):
            continue

        for match in rule.regex.finditer(line):
            value = match.group(0)
            if not _is_reportable(value):
                continue
            if is_match_allowlisted(value, rule.allowlist):
                continue
            matches.append(
                LineMatch(
                    detector_id=rule.id,
                    detector_name=rule.name,
                    severity=rule.severity,
                    message=rule.description or f"Custom rule {rule.id} matched",
                    value=value,
                    column=match.start(),
                    is_custom=True,
                )
            )
    return matches


def _build_finding(match: LineMatch, snippet: str, line_number: int, file_path: str) -> Finding:
    if match.is_custom:
        finding_rule = f"{CUSTOM_RULE_PREFIX}:{match.detector_id}"
        metadata = {
            "column": match.column,
            "rule_id": match.detector_id,
            "rule_name": match.detector_name,
            "is_custom_rule": True,
        }
    else:
        finding_rule = match.detector_id
        metadata = {
            "column": match.column,
            "pattern_id": match.detector_id,
            "pattern_name": match.detector_name,
            "is_custom_rule": False,
        }

    return Finding(
        id=create_finding_id(ScannerName.SECRETS, finding_rule, file_path, line_number),
        severity=match.severity,
        title=match.detector_name,
        message=match.message,
        file=file_path,
        scanner=ScannerName.SECRETS,
        start_line=line_number,
        end_line=line_number,
        rule_id=match.detector_id,
        snippet=snippet,
        metadata=metadata,
    )


def match_line(
    line: str,
    line_number: int,
    file_path: str,
    rules: Sequence[CompiledRule] = (),
    sink: SecretSink | None = None,
    patterns: Iterable[SecretPattern] = SECRET_PATTERNS,
) -> list[Finding]:
    """Run every applicable detector over one line and build masked findings.

    Args:
        line: Line content without its terminator.
        line_number: 1-based line number.
        file_path: Path of the file relative to the scan root.
        rules: Compiled custom rules.
        sink: Receives each raw matched value before formatting.
        patterns: Built-in detectors to run.

    Returns:
        One finding per (detector, match), built-ins first.
    """
    matches = scan_line_builtin(line, patterns)
    if rules:
        matches.extend(scan_line_custom(line, rules, file_path))

    if not matches:
        return []

    if sink is not None:
        for match in matches:
            sink.register(match.value)

    # Every value found on the line is masked in every snippet taken from it
    snippet = mask_snippet(line, [match.value for match in matches])
    findings = []
    for match in matches:
        findings.append(_build_finding(match, snippet, line_number, file_path))
        logger.debug("%s matched in %s:%d", match.detector_id, file_path, line_number)

    return findings


def scan_content(
    content: str,
    file_path: str,
    rules: Sequence[CompiledRule] = (),
    sink: SecretSink | None = None,
) -> list[Finding]:
    """Run :func:`match_line` over every line of *content*."""
    findings = []
    for line_number, line in enumerate(content.split("\n"), start=1):
        findings.extend(match_line(line.rstrip("\r"), line_number, file_path, rules, sink))
    return findings
