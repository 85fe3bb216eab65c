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
Scanner for findings produced by external tools.

Dependency, infrastructure and container findings are computed elsewhere
(OSV, Trivy, Hadolint, ...) and handed to the gate as a JSON file holding
a list of finding objects, or ``{"findings": [...]}``.  This scanner only
loads and tags them; suppression and policy then treat them like any
other finding.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from ..exceptions import ScannerError
from ..globs import match_glob
from ..models import Finding, ScannerName, ScannerResult
from .base import BaseScanner, ScannerContext

logger = logging.getLogger(__name__)


class ExternalFindingsScanner(BaseScanner):
    """Loads pre-classified findings for one scanner from a JSON file."""

    def scan(self, context: ScannerContext, result: ScannerResult) -> None:
        if context.findings_file is None:
            raise ScannerError(f"No findings file configured for the {self.name.value} scanner")

        path = context.findings_file
        if not path.is_absolute():
            path = context.working_directory / path

        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as e:
            raise ScannerError(f"Invalid JSON in findings file {path}: {e}") from e

        raw_findings = data.get("findings", []) if isinstance(data, dict) else data
        if not isinstance(raw_findings, list):
            raise ScannerError(f"Findings file {path} must contain a list of findings")

        files = set()
        for index, raw in enumerate(raw_findings):
            finding = self._parse_finding(raw, index, path)
            if any(match_glob(finding.file, pattern) for pattern in context.ignore_patterns):
                logger.debug("%s scanner: dropping finding in ignored path %s", self.name.value, finding.file)
                continue
            result.findings.append(finding)
            if finding.file:
                files.add(finding.file)

        result.files_scanned = len(files)
        result.metadata["findings_file"] = str(path)

    def _parse_finding(self, raw: Any, index: int, path) -> Finding:
        if not isinstance(raw, dict):
            raise ScannerError(f"Finding #{index} in {path} is not an object")

        data = dict(raw)
        data.setdefault("scanner", self.name.value)
        if data["scanner"] != self.name.value:
            raise ScannerError(
                f"Finding #{index} in {path} belongs to scanner '{data['scanner']}', expected '{self.name.value}'"
            )
        try:
            return Finding.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            raise ScannerError(f"Finding #{index} in {path} is malformed: {e}") from e
