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
Base scanner interface.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from ...config.constants import SecurityGateConstants
from ..exceptions import ScannerError
from ..masking import SecretSink
from ..models import ScannerName, ScannerResult
from ..rules import CompiledRule

logger = logging.getLogger(__name__)


@dataclass
class ScannerContext:
    """Everything a scanner needs for one run."""

    working_directory: Path
    rules: Sequence[CompiledRule] = ()
    ignore_patterns: list[str] = field(default_factory=list)
    sink: SecretSink | None = None
    max_file_size_bytes: int = SecurityGateConstants.DEFAULT_MAX_FILE_SIZE_BYTES
    # External scanners: path of the pre-classified findings file
    findings_file: Path | None = None


class BaseScanner(ABC):
    """Abstract base class for all scanners."""

    def __init__(self, name: ScannerName):
        """
        Initialize scanner.

        Args:
            name: Origin tag given to every finding this scanner produces
        """
        self.name = ScannerName(name)

    @abstractmethod
    def scan(self, context: ScannerContext, result: ScannerResult) -> None:
        """
        Scan and record findings on *result*.

        Findings appended before an exception is raised are kept as a
        partial result.

        Raises:
            ScannerError: If the scanner cannot complete.
        """
        pass

    def run(self, context: ScannerContext) -> ScannerResult:
        """Run the scanner, timing it and recording soft failures on the result.

        Configuration errors are not caught; they abort the gate run.
        """
        result = ScannerResult(name=self.name)
        start = time.perf_counter()
        try:
            self.scan(context, result)
        except (ScannerError, OSError) as e:
            result.error = str(e)
            logger.warning("%s scanner encountered an error: %s", self.name.value, e)
        result.duration_ms = int((time.perf_counter() - start) * 1000)
        logger.debug(
            "%s scanner: %d findings in %d ms", self.name.value, len(result.findings), result.duration_ms
        )
        return result

    def get_name(self) -> str:
        """Get the scanner name."""
        return self.name.value
