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

"""Security Gate exceptions.

This module defines custom exceptions for Security Gate operations.
All exceptions inherit from SecurityGateError for easy catching.

Configuration-class errors (:class:`ConfigurationError` and its subclasses)
abort a gate run before any finding is produced.  They always name the
offending rule or allowlist entry and the violated constraint.

Example:
    >>> from security_gate.core.rules import compile_rules
    >>> from security_gate.core.exceptions import RuleValidationError
    >>>
    >>> try:
    ...     rules = compile_rules(raw_rules)
    ... except RuleValidationError as e:
    ...     print(f"Rule {e.rule_id} rejected: {e.reason}")
"""


class SecurityGateError(Exception):
    """Base exception for all Security Gate errors."""

    pass


class ConfigurationError(SecurityGateError):
    """Raised when the gate configuration is unusable.

    This can indicate:
    - Unreadable or malformed configuration file
    - Unknown threshold or mode value
    - Structurally invalid rule or allowlist definitions
    """

    pass


class RuleValidationError(ConfigurationError):
    """Raised when a custom rule fails validation.

    Attributes:
        rule_id: The offending rule id (``"N/A"`` for set-level failures
            such as the total rule count).
        reason: Short name of the violated constraint.
    """

    def __init__(self, message: str, rule_id: str, reason: str):
        super().__init__(message)
        self.rule_id = rule_id
        self.reason = reason


class UnsafeRegexError(RuleValidationError):
    """Raised when a rule pattern is rejected by the backtracking heuristics."""

    def __init__(self, rule_id: str, reason: str):
        super().__init__(f"Rule '{rule_id}' contains an unsafe regex pattern: {reason}", rule_id, reason)


class AllowlistEntryError(ConfigurationError):
    """Raised when an allowlist entry is structurally invalid (e.g. no match criteria)."""

    def __init__(self, message: str, entry_id: str):
        super().__init__(message)
        self.entry_id = entry_id


class ExpiryFormatError(ConfigurationError):
    """Raised when an allowlist entry's ``expires`` value cannot be parsed.

    Never treated as "not expired" or "already expired"; the run fails closed.
    """

    def __init__(self, entry_id: str, value: str):
        super().__init__(f"Allowlist entry '{entry_id}' has invalid expires date: {value}")
        self.entry_id = entry_id
        self.value = value


class ScannerError(SecurityGateError):
    """Raised by a scanner that cannot produce findings.

    The orchestrator records it on the scanner's result; it does not abort
    the suppression or policy stages.
    """

    pass
