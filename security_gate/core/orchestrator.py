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
Gate orchestrator.

Runs one gate evaluation end to end:

1. compile custom rules (any error aborts the run before scanning);
2. decide which scanners run and execute them;
3. apply the allowlist and warn about expired entries;
4. evaluate the severity threshold.

Scanner failures are recorded on that scanner's result and do not stop
the later stages.  Configuration errors propagate to the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from ..config.constants import SecurityGateConstants
from .exceptions import ConfigurationError
from .exclusions import AllowlistResult, apply_allowlist, get_all_ignore_patterns, warn_expired_entries
from .gate_config import GateConfig, GateMode
from .masking import SecretSink
from .models import PolicyResult, ScannerName, ScannerResult, ScanResults, Severity
from .policy import evaluate_policy, is_valid_threshold
from .rules import CompiledRule, compile_rules
from .scanners import BaseScanner, ExternalFindingsScanner, ScannerContext, SecretsScanner

logger = logging.getLogger(__name__)

_EXTERNAL_SCANNERS = (ScannerName.DEPENDENCIES, ScannerName.IAC, ScannerName.CONTAINER)


@dataclass
class GateOutcome:
    """Everything produced by one gate run."""

    results: ScanResults
    policy: PolicyResult
    allowlist: AllowlistResult
    rules: list[CompiledRule]

    @property
    def passed(self) -> bool:
        return self.policy.passed


class GateRunner:
    """Runs the scanners, suppression and policy stages for a repository."""

    def __init__(
        self,
        config: GateConfig | None = None,
        working_directory: str | Path = ".",
        sink: SecretSink | None = None,
        fail_on: Severity | str | None = None,
        mode: GateMode | str | None = None,
        findings_files: Mapping[ScannerName | str, str | Path] | None = None,
        max_file_size_bytes: int = SecurityGateConstants.DEFAULT_MAX_FILE_SIZE_BYTES,
    ):
        """
        Initialize the runner.

        Args:
            config: Gate configuration. If None, built-in defaults are used.
            working_directory: Repository root to scan
            sink: Receives raw secret values as they are matched
            fail_on: Overrides the configured threshold
            mode: Overrides the configured scanner selection mode
            findings_files: External findings files per scanner, overriding
                ``scanners.<name>.findings_file`` from the config
            max_file_size_bytes: Files larger than this are not scanned for secrets
        """
        self.config = config or GateConfig.default()
        self.working_directory = Path(working_directory)
        self.sink = sink
        if fail_on and not is_valid_threshold(fail_on):
            raise ConfigurationError(f"Invalid fail_on '{fail_on}' (expected one of: high, medium, low)")
        self.fail_on = Severity(fail_on) if fail_on else self.config.fail_on
        if mode and mode not in {m.value for m in GateMode}:
            raise ConfigurationError(f"Invalid mode '{mode}' (expected auto or explicit)")
        self.mode = GateMode(mode) if mode else self.config.mode
        self.max_file_size_bytes = max_file_size_bytes

        self.findings_files: dict[ScannerName, Path] = {}
        for name in _EXTERNAL_SCANNERS:
            configured = self.config.scanners.get(name).findings_file
            if configured:
                self.findings_files[name] = Path(configured)
        for name, path in (findings_files or {}).items():
            self.findings_files[ScannerName(name)] = Path(path)

    def determine_scanners(self) -> list[ScannerName]:
        """Decide which scanners run, in fixed order.

        ``explicit`` mode runs every enabled scanner.  ``auto`` mode runs the
        secrets scanner and any enabled external scanner that has a
        findings file.
        """
        selected = []
        for name in ScannerName:
            if not self.config.scanners.get(name).enabled:
                continue
            if self.mode == GateMode.AUTO and name in _EXTERNAL_SCANNERS and name not in self.findings_files:
                logger.debug("Skipping %s scanner: no findings file supplied", name.value)
                continue
            selected.append(name)
        return selected

    def _build_scanner(self, name: ScannerName) -> BaseScanner:
        if name == ScannerName.SECRETS:
            return SecretsScanner()
        return ExternalFindingsScanner(name)

    def run(self) -> GateOutcome:
        """
        Run the gate.

        Returns:
            GateOutcome with scan results, suppression report and policy decision

        Raises:
            ConfigurationError: On invalid rules or allowlist expiry dates
        """
        start = time.perf_counter()

        rules = compile_rules(self.config.rules)
        ignore_patterns = get_all_ignore_patterns(self.config.ignore_paths, self.config.exclude_paths)

        scanner_results: list[ScannerResult] = []
        for name in self.determine_scanners():
            context = ScannerContext(
                working_directory=self.working_directory,
                rules=rules,
                ignore_patterns=ignore_patterns,
                sink=self.sink,
                max_file_size_bytes=self.max_file_size_bytes,
                findings_file=self.findings_files.get(name),
            )
            scanner_results.append(self._build_scanner(name).run(context))

        all_findings = [finding for result in scanner_results for finding in result.findings]
        allowlist_result = apply_allowlist(all_findings, self.config.allowlist)

        # Equal findings can repeat (same detector twice on one line), so filter by identity
        suppressed = {id(finding) for finding in allowlist_result.suppressed}
        for result in scanner_results:
            result.findings = [f for f in result.findings if id(f) not in suppressed]

        warnings = warn_expired_entries(allowlist_result.expired_entries)

        results = ScanResults(
            scanners=scanner_results,
            suppressed_findings=list(allowlist_result.suppressed),
            suppressed_by_scanner=dict(allowlist_result.suppressed_by_scanner),
            allowlist_warnings=warnings,
        )
        policy = evaluate_policy(results.findings, self.fail_on)
        results.total_duration_ms = int((time.perf_counter() - start) * 1000)

        logger.info(
            "Gate %s: %d findings (%d suppressed) from %d scanner(s)",
            "passed" if policy.passed else "failed",
            results.total_findings,
            results.suppressed_count,
            len(scanner_results),
        )
        return GateOutcome(results=results, policy=policy, allowlist=allowlist_result, rules=rules)


def run_gate(
    working_directory: str | Path = ".",
    config: GateConfig | None = None,
    **kwargs,
) -> GateOutcome:
    """
    Convenience function to run the gate on a repository.

    Args:
        working_directory: Repository root
        config: Gate configuration. If omitted, it is discovered in
            *working_directory* (falling back to defaults).
        **kwargs: Passed through to :class:`GateRunner`

    Returns:
        GateOutcome
    """
    if config is None:
        config = GateConfig.discover(working_directory)
    return GateRunner(config=config, working_directory=working_directory, **kwargs).run()
