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
Runtime configuration for Security Gate.

Values not given explicitly are read from ``SECURITY_GATE_*`` environment
variables.  The repository-level policy (rules, allowlist, threshold) lives
in ``.security-gate.yml``; see :mod:`security_gate.core.gate_config`.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from ..core.exceptions import ConfigurationError
from .constants import SecurityGateConstants


@dataclass
class Config:
    """
    Process-level settings for a gate run.

    Explicit values win over the environment; the environment wins over
    the repository config file for ``fail_on``.
    """

    # Threshold override (high / medium / low); None keeps the config file value
    fail_on: str | None = None

    # Path to the gate config file; None searches the working directory
    config_path: str | None = None

    # Scanning Options
    max_file_size_kb: int = SecurityGateConstants.DEFAULT_MAX_FILE_SIZE_BYTES // 1024

    # Output Options
    output_format: str = "summary"
    verbose: bool = False

    def __post_init__(self):
        """Load configuration from environment variables if not provided."""

        if self.fail_on is None:
            self.fail_on = os.getenv("SECURITY_GATE_FAIL_ON") or None

        if self.config_path is None:
            self.config_path = os.getenv("SECURITY_GATE_CONFIG") or None

        if self.max_file_size_kb == SecurityGateConstants.DEFAULT_MAX_FILE_SIZE_BYTES // 1024:
            if env_size := os.getenv("SECURITY_GATE_MAX_FILE_SIZE_KB"):
                try:
                    self.max_file_size_kb = int(env_size)
                except ValueError:
                    raise ConfigurationError(
                        f"SECURITY_GATE_MAX_FILE_SIZE_KB must be an integer, got {env_size!r}"
                    ) from None
        if self.max_file_size_kb <= 0:
            raise ConfigurationError(f"max_file_size_kb must be positive, got {self.max_file_size_kb}")

        if os.getenv("SECURITY_GATE_VERBOSE", "").lower() in ("true", "1"):
            self.verbose = True

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_kb * 1024

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create configuration from environment variables.

        Returns:
            Config instance with values from environment
        """
        return cls()

    @classmethod
    def from_file(cls, config_file: Path) -> "Config":
        """
        Load configuration from a .env file.

        Args:
            config_file: Path to .env file

        Returns:
            Config instance
        """
        if config_file.exists():
            load_dotenv(config_file, override=True)

        return cls.from_env()
