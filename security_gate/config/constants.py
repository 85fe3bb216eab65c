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
Constants for Security Gate.
"""

from .. import __version__ as PACKAGE_VERSION


class SecurityGateConstants:
    """Constants used throughout the gate."""

    VERSION = PACKAGE_VERSION

    # Configuration files, checked in order
    DEFAULT_CONFIG_FILENAME = ".security-gate.yml"
    ALTERNATIVE_CONFIG_FILENAMES = (
        ".security-gate.yaml",
        "security-gate.yml",
        "security-gate.yaml",
    )
    CONFIG_FILENAMES = (DEFAULT_CONFIG_FILENAME, *ALTERNATIVE_CONFIG_FILENAMES)

    # Default values
    DEFAULT_FAIL_ON = "high"
    DEFAULT_MODE = "auto"
    DEFAULT_MAX_FILE_SIZE_BYTES = 1024 * 1024  # 1 MB
    BINARY_CHECK_BYTES = 8192

    # Directories never walked by the secrets scanner
    EXCLUDED_DIRECTORIES = frozenset(
        {
            "node_modules",
            ".git",
            "dist",
            "build",
            "coverage",
            ".next",
            ".turbo",
            ".cache",
            "vendor",
            "__pycache__",
            ".venv",
            "venv",
            ".terraform",
        }
    )

    # Extensions skipped without reading the file
    BINARY_EXTENSIONS = frozenset(
        {
            "png", "jpg", "jpeg", "gif", "bmp", "ico", "webp", "svg", "pdf",
            "zip", "tar", "gz", "rar", "7z",
            "exe", "dll", "so", "dylib", "bin", "obj", "o", "a", "lib", "wasm",
            "woff", "woff2", "ttf", "eot", "otf",
            "mp3", "mp4", "wav", "avi", "mov", "mkv",
            "db", "sqlite", "sqlite3",
        }
    )  # fmt: skip

    # Masking
    MAX_SNIPPET_LENGTH = 120
    MIN_REVEAL_LENGTH = 8
    MASK_VISIBLE_START = 4
    MASK_VISIBLE_END = 2
    MASK_CHAR = "*"

    # Config list bounds
    MAX_EXCLUDE_PATHS = 100
    MAX_IGNORE_PATHS = 100
    MAX_ALLOWLIST_ENTRIES = 200


class RuleLimits:
    """Bounds enforced on operator-supplied custom rules."""

    MAX_RULES = 50
    MAX_REGEX_LENGTH = 500
    MAX_GLOBS_PER_RULE = 25
    MAX_ALLOWLIST_PER_RULE = 50
    MIN_RULE_ID_LENGTH = 3
    MAX_RULE_ID_LENGTH = 32
    MAX_NAME_LENGTH = 100
    VALID_FLAGS = frozenset("gimsu")


class RegexComplexityLimits:
    """Heuristic complexity ceilings for custom rule patterns."""

    MAX_QUANTIFIERS = 10
    MAX_ALTERNATIONS = 15
    MAX_NESTING_DEPTH = 5
    MAX_GROUPS = 10


class AllowlistLimits:
    """Maximum lengths of allowlist entry fields."""

    MAX_FIELD_LENGTHS = {
        "id": 64,
        "reason": 500,
        "finding_id": 200,
        "rule_id": 64,
        "path_glob": 300,
        "message_contains": 100,
    }
