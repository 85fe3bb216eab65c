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
Secrets scanner.

Walks the working directory and runs the built-in secret detectors plus
the compiled custom rules over every text file.  Raw secret values never
leave the matching pipeline unmasked.
"""

from __future__ import annotations

import logging

from ..files import has_binary_extension, is_binary_file, iter_candidate_files, read_text_file, relative_posix
from ..matching import scan_content
from ..models import ScannerName, ScannerResult
from .base import BaseScanner, ScannerContext

logger = logging.getLogger(__name__)


class SecretsScanner(BaseScanner):
    """Detects leaked credentials and API keys in source files."""

    def __init__(self):
        super().__init__(ScannerName.SECRETS)

    def scan(self, context: ScannerContext, result: ScannerResult) -> None:
        root = context.working_directory
        logger.debug("Secrets scanner: starting scan in %s", root)
        if context.rules:
            logger.debug("Secrets scanner: %d custom rules active", len(context.rules))

        files_scanned = 0
        for path in iter_candidate_files(root, context.ignore_patterns):
            relative = relative_posix(path, root)
            if has_binary_extension(path):
                logger.debug("Secrets scanner: skipping %s (binary extension)", relative)
                continue

            files_scanned += 1
            try:
                size = path.stat().st_size
                if size > context.max_file_size_bytes:
                    logger.debug(
                        "Secrets scanner: skipping %s (%d bytes exceeds %d byte limit)",
                        relative,
                        size,
                        context.max_file_size_bytes,
                    )
                    continue
                if is_binary_file(path):
                    logger.debug("Secrets scanner: skipping binary file %s", relative)
                    continue
            except OSError as e:
                logger.debug("Secrets scanner: cannot read %s: %s", relative, e)
                continue

            content = read_text_file(path, context.max_file_size_bytes)
            if content is None:
                continue

            result.findings.extend(scan_content(content, relative, context.rules, context.sink))

        result.files_scanned = files_scanned
        logger.debug("Secrets scanner: scanned %d files, found %d findings", files_scanned, len(result.findings))
