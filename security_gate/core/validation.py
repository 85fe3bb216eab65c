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
Tagged validation results.

Each validation stage (a single rule, a rule set, a single allowlist entry)
returns a :class:`ValidationResult` instead of raising, so callers decide
between fail-fast (:meth:`ValidationResult.unwrap`) and collecting every
error for a report (:attr:`ValidationResult.errors`).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from .exceptions import ConfigurationError

T = TypeVar("T")


class ValidationStage(str, Enum):
    """Which validation stage produced a result."""

    RULE = "rule"
    RULE_SET = "rule_set"
    ALLOWLIST_ENTRY = "allowlist_entry"


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Either a validated value or the errors that prevented it."""

    stage: ValidationStage
    value: T | None = None
    errors: tuple[ConfigurationError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> T:
        """Return the value, raising the first error if validation failed."""
        if self.errors:
            raise self.errors[0]
        return self.value  # type: ignore[return-value]

    @classmethod
    def success(cls, stage: ValidationStage, value: T) -> ValidationResult[T]:
        return cls(stage=stage, value=value)

    @classmethod
    def failure(cls, stage: ValidationStage, *errors: ConfigurationError) -> ValidationResult[T]:
        return cls(stage=stage, errors=tuple(errors))
