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
Built-in secret detectors.

High-signal patterns for leaked credentials and API keys, ordered by id
(SEC001-SEC010) so rule ids stay stable across releases.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .models import Severity


@dataclass(frozen=True)
class SecretPattern:
    """A built-in detector for one kind of credential."""

    id: str
    name: str
    regex: re.Pattern[str]
    severity: Severity
    message: str


SECRET_PATTERNS: tuple[SecretPattern, ...] = (
    SecretPattern(
        id="SEC001",
        name="AWS Access Key",
        regex=re.compile(r"AKIA[0-9A-Z]{16}"),
        severity=Severity.HIGH,
        message="AWS access key ID detected. Rotate this key immediately.",
    ),
    SecretPattern(
        id="SEC002",
        name="AWS Secret Key",
        regex=re.compile(r"""aws_secret_access_key\s*=\s*['"][A-Za-z0-9/+=]{40}['"]""", re.IGNORECASE),
        severity=Severity.HIGH,
        message="AWS secret access key detected. Rotate this key immediately.",
    ),
    SecretPattern(
        id="SEC003",
        name="GitHub Token",
        regex=re.compile(r"ghp_[A-Za-z0-9]{36}"),
        severity=Severity.HIGH,
        message="GitHub personal access token detected. Revoke and regenerate this token.",
    ),
    SecretPattern(
        id="SEC004",
        name="GitHub OAuth Token",
        regex=re.compile(r"gho_[A-Za-z0-9]{36}"),
        severity=Severity.HIGH,
        message="GitHub OAuth token detected. Revoke this token immediately.",
    ),
    SecretPattern(
        id="SEC005",
        name="GitHub Fine-Grained PAT",
        regex=re.compile(r"github_pat_[A-Za-z0-9]{22}_[A-Za-z0-9]{59}"),
        severity=Severity.HIGH,
        message="GitHub fine-grained personal access token detected. Revoke and regenerate this token.",
    ),
    SecretPattern(
        id="SEC006",
        name="Private Key",
        regex=re.compile(r"-----BEGIN\s+(RSA|EC|OPENSSH)\s+PRIVATE\s+KEY-----"),
        severity=Severity.HIGH,
        message="Private key header detected. Remove this key and generate a new one.",
    ),
    SecretPattern(
        id="SEC007",
        name="Generic API Key",
        regex=re.compile(r"""(api[_-]?key|apikey)\s*[:=]\s*['"][A-Za-z0-9]{20,}['"]""", re.IGNORECASE),
        severity=Severity.MEDIUM,
        message="Possible API key detected. Verify and rotate if this is a real credential.",
    ),
    SecretPattern(
        id="SEC008",
        name="Generic Secret",
        regex=re.compile(r"""(secret|password|passwd)\s*[:=]\s*['"][^'"]{8,}['"]""", re.IGNORECASE),
        severity=Severity.MEDIUM,
        message="Possible secret or password detected. Verify and rotate if this is a real credential.",
    ),
    SecretPattern(
        id="SEC009",
        name="Slack Token",
        regex=re.compile(r"xox[baprs]-[0-9]{10,}-[0-9]{10,}-[A-Za-z0-9]{24}"),
        severity=Severity.HIGH,
        message="Slack token detected. Revoke and regenerate this token.",
    ),
    SecretPattern(
        id="SEC010",
        name="Stripe Live Key",
        regex=re.compile(r"sk_live_[A-Za-z0-9]{24}"),
        severity=Severity.HIGH,
        message="Stripe live secret key detected. Rotate this key immediately.",
    ),
)


def get_pattern_by_id(pattern_id: str) -> SecretPattern | None:
    """Get a built-in pattern by its id (e.g. ``SEC001``)."""
    for pattern in SECRET_PATTERNS:
        if pattern.id == pattern_id:
            return pattern
    return None


def get_patterns_by_severity(severity: Severity) -> list[SecretPattern]:
    """Get all built-in patterns of a specific severity."""
    return [p for p in SECRET_PATTERNS if p.severity == severity]
