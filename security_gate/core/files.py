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
File discovery and safe reads for the secrets scanner.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator

from ..config.constants import SecurityGateConstants
from .globs import match_glob

logger = logging.getLogger(__name__)


def relative_posix(path: Path, root: Path) -> str:
    """Path of *path* relative to *root*, always with ``/`` separators."""
    return path.relative_to(root).as_posix()


def has_binary_extension(path: str | Path) -> bool:
    """Check if the file extension marks a binary or media file."""
    suffix = Path(path).suffix
    return bool(suffix) and suffix[1:].lower() in SecurityGateConstants.BINARY_EXTENSIONS


def is_binary_file(path: Path, check_bytes: int = SecurityGateConstants.BINARY_CHECK_BYTES) -> bool:
    """Check for NUL bytes in the first *check_bytes* of the file.

    Raises:
        OSError: If the file cannot be read.
    """
    with open(path, "rb") as fh:
        return b"\x00" in fh.read(check_bytes)


def read_text_file(path: Path, max_bytes: int = SecurityGateConstants.DEFAULT_MAX_FILE_SIZE_BYTES) -> str | None:
    """Read up to *max_bytes* of a file as UTF-8; ``None`` if it cannot be read."""
    try:
        with open(path, "rb") as fh:
            data = fh.read(max_bytes)
    except OSError as e:
        logger.debug("Failed to read %s: %s", path, e)
        return None
    return data.decode("utf-8", errors="replace")


def iter_candidate_files(root: Path, ignore_patterns: Iterable[str] = ()) -> Iterator[Path]:
    """Yield files under *root* in sorted order.

    Skips default excluded directories and anything matching one of the
    (already normalised) *ignore_patterns*.
    """
    patterns = list(ignore_patterns)
    for path in sorted(root.rglob("*")):
        rel_parts = path.relative_to(root).parts
        if any(part in SecurityGateConstants.EXCLUDED_DIRECTORIES for part in rel_parts[:-1]):
            continue
        if not path.is_file():
            continue

        relative = "/".join(rel_parts)
        if any(match_glob(relative, pattern) for pattern in patterns):
            logger.debug("Skipping ignored path %s", relative)
            continue
        yield path
