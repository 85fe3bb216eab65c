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
Custom rule compiler with regular-expression safety validation.

Operator-supplied patterns run against every scanned line on every run, so
a pattern prone to catastrophic backtracking is an availability risk.
Compilation is a two-stage pipeline:

1. **Static heuristic rejection** (:func:`validate_regex_safety`) looks for
   constructs known to backtrack badly and enforces complexity ceilings.
2. **Native compilation** with :mod:`re`; syntax errors are reported
   separately from safety rejections.

Stage 1 is a mitigation, not a proof of linear-time matching.  A caller
that needs a hard guarantee should wrap matching in an execution budget.

Usage
-----
    from security_gate.core.rules import compile_rules

    compiled = compile_rules(config.rules)      # fail-fast, raises
    result = check_rules(config.rules)          # collect every error
    for error in result.errors:
        print(error.rule_id, error.reason)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from ..config.constants import RegexComplexityLimits, RuleLimits
from .exceptions import RuleValidationError, UnsafeRegexError
from .globs import match_glob, match_normalised_glob
from .models import Severity
from .validation import ValidationResult, ValidationStage

logger = logging.getLogger(__name__)

_RULE_ID_RE = re.compile(r"^[A-Z0-9_-]+$")

# Constructs that commonly cause catastrophic backtracking, checked against
# the pattern source in order.
_DANGEROUS_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\([^)]*[+*][^)]*\)[+*]"), "nested quantifiers (e.g., (a+)+)"),
    (re.compile(r"\([^)]*\|[^)]*\)[+*]"), "alternation with quantifier may cause backtracking"),
    (re.compile(r"\.\*\.\*"), "multiple greedy wildcards (.*.*)"),
    (re.compile(r"\{[0-9]+,[0-9]+\}[^}]*\{[0-9]+,[0-9]+\}"), "nested range quantifiers"),
    (re.compile(r"\[[^\]]+\][+*]\[[^\]]+\][+*]"), "adjacent quantified character classes"),
    (re.compile(r"\(\.\*[^)]+\)\{"), "greedy wildcard in quantified group"),
)

_QUANTIFIER_RE = re.compile(r"[+*?]|\{\d+,?\d*\}")

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": re.UNICODE,
    "g": 0,  # detectors always collect every match
}

# Guards CompiledRule construction; only this module holds it.
_COMPILER_KEY = object()


# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleAllowlistEntry:
    """Inline suppression for a single custom rule's matches."""

    pattern: str
    reason: str | None = None


@dataclass(frozen=True)
class CustomRuleDefinition:
    """A raw custom rule as written in the configuration file."""

    id: str
    name: str
    pattern: str
    severity: Severity = Severity.MEDIUM
    description: str | None = None
    flags: str = "g"
    file_globs: tuple[str, ...] | None = None
    allowlist: tuple[RuleAllowlistEntry, ...] | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CustomRuleDefinition:
        """Build a definition from a config mapping.

        The pattern is read from ``regex`` (config key) or ``pattern``.

        Raises:
            RuleValidationError: On missing keys or wrongly typed values.
        """
        rule_id = str(data.get("id", "N/A"))
        pattern = data.get("regex", data.get("pattern"))
        if not isinstance(pattern, str) or not pattern:
            raise RuleValidationError(f"Rule '{rule_id}' is missing a regex pattern", rule_id, "Missing regex")
        if not isinstance(data.get("name"), str):
            raise RuleValidationError(f"Rule '{rule_id}' is missing a name", rule_id, "Missing name")

        try:
            severity = Severity(str(data.get("severity", Severity.MEDIUM.value)).lower())
        except ValueError:
            raise RuleValidationError(
                f"Rule '{rule_id}' has invalid severity '{data.get('severity')}'", rule_id, "Invalid severity"
            ) from None

        globs = data.get("file_globs")
        allowlist = data.get("allowlist")
        return cls(
            id=rule_id,
            name=data["name"],
            pattern=pattern,
            severity=severity,
            description=data.get("description"),
            flags=str(data.get("flags", "g")),
            file_globs=tuple(str(g) for g in globs) if globs is not None else None,
            allowlist=(
                tuple(_allowlist_entry_from_config(rule_id, entry) for entry in allowlist)
                if allowlist is not None
                else None
            ),
        )


def _allowlist_entry_from_config(rule_id: str, entry: Any) -> RuleAllowlistEntry:
    if isinstance(entry, str):
        return RuleAllowlistEntry(pattern=entry)
    if isinstance(entry, Mapping) and isinstance(entry.get("pattern"), str) and entry["pattern"]:
        return RuleAllowlistEntry(pattern=entry["pattern"], reason=entry.get("reason"))
    raise RuleValidationError(
        f"Rule '{rule_id}' has an allowlist entry without a pattern", rule_id, "Invalid allowlist entry"
    )


@dataclass(frozen=True)
class CompiledRule:
    """A validated detector, immutable for the duration of a run.

    Instances are only produced by :func:`compile_rule` / :func:`compile_rules`;
    direct construction raises :class:`TypeError`.
    """

    id: str
    name: str
    severity: Severity
    regex: re.Pattern[str]
    description: str | None = None
    file_globs: tuple[str, ...] | None = None
    allowlist: tuple[str, ...] | None = None
    is_custom: bool = True
    _key: object = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self._key is not _COMPILER_KEY:
            raise TypeError("CompiledRule can only be created by compile_rule()")

    def applies_to(self, file_path: str) -> bool:
        """Check if this rule's file globs accept *file_path*."""
        return file_matches_globs(file_path, self.file_globs)


# ---------------------------------------------------------------------------
# Safety heuristics
# ---------------------------------------------------------------------------


def calculate_nesting_depth(pattern: str) -> int:
    """Maximum depth of unescaped parentheses outside character classes."""
    max_depth = 0
    depth = 0
    escaped = False
    in_char_class = False

    for char in pattern:
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == "[" and not in_char_class:
            in_char_class = True
            continue
        if char == "]" and in_char_class:
            in_char_class = False
            continue
        if in_char_class:
            continue

        if char == "(":
            depth += 1
            max_depth = max(max_depth, depth)
        elif char == ")":
            depth = max(0, depth - 1)

    return max_depth


def validate_regex_safety(pattern: str, rule_id: str) -> None:
    """Reject *pattern* if it looks prone to catastrophic backtracking.

    Raises:
        UnsafeRegexError: Naming the violated heuristic.
    """
    if len(pattern) > RuleLimits.MAX_REGEX_LENGTH:
        raise UnsafeRegexError(rule_id, f"Pattern exceeds maximum length of {RuleLimits.MAX_REGEX_LENGTH} characters")

    for dangerous, description in _DANGEROUS_PATTERNS:
        if dangerous.search(pattern):
            raise UnsafeRegexError(rule_id, description)

    quantifiers = len(_QUANTIFIER_RE.findall(pattern))
    if quantifiers > RegexComplexityLimits.MAX_QUANTIFIERS:
        raise UnsafeRegexError(
            rule_id, f"Too many quantifiers ({quantifiers} > {RegexComplexityLimits.MAX_QUANTIFIERS})"
        )

    alternations = pattern.count("|")
    if alternations > RegexComplexityLimits.MAX_ALTERNATIONS:
        raise UnsafeRegexError(
            rule_id, f"Too many alternations ({alternations} > {RegexComplexityLimits.MAX_ALTERNATIONS})"
        )

    depth = calculate_nesting_depth(pattern)
    if depth > RegexComplexityLimits.MAX_NESTING_DEPTH:
        raise UnsafeRegexError(rule_id, f"Nesting too deep ({depth} > {RegexComplexityLimits.MAX_NESTING_DEPTH})")

    groups = pattern.count("(")
    if groups > RegexComplexityLimits.MAX_GROUPS:
        raise UnsafeRegexError(rule_id, f"Too many groups ({groups} > {RegexComplexityLimits.MAX_GROUPS})")


def _validate_rule_shape(rule: CustomRuleDefinition) -> None:
    """Id, name, flag and list-size checks that precede the pattern checks."""
    rule_id = rule.id
    if not RuleLimits.MIN_RULE_ID_LENGTH <= len(rule_id) <= RuleLimits.MAX_RULE_ID_LENGTH:
        raise RuleValidationError(
            f"Rule ID '{rule_id}' must be between {RuleLimits.MIN_RULE_ID_LENGTH} and "
            f"{RuleLimits.MAX_RULE_ID_LENGTH} characters",
            rule_id,
            "Invalid rule ID length",
        )
    if not _RULE_ID_RE.match(rule_id):
        raise RuleValidationError(
            f"Rule ID '{rule_id}' may only contain uppercase letters, digits, '_' and '-'",
            rule_id,
            "Invalid rule ID format",
        )
    if not rule.name or len(rule.name) > RuleLimits.MAX_NAME_LENGTH:
        raise RuleValidationError(
            f"Rule '{rule_id}' name must be 1-{RuleLimits.MAX_NAME_LENGTH} characters", rule_id, "Invalid name"
        )

    bad_flags = sorted(set(rule.flags) - RuleLimits.VALID_FLAGS)
    if bad_flags:
        raise RuleValidationError(
            f"Rule '{rule_id}' has unsupported flags {''.join(bad_flags)!r} "
            f"(allowed: {', '.join(sorted(RuleLimits.VALID_FLAGS))})",
            rule_id,
            "Invalid flags",
        )

    if rule.file_globs is not None and len(rule.file_globs) > RuleLimits.MAX_GLOBS_PER_RULE:
        raise RuleValidationError(
            f"Rule '{rule_id}' has {len(rule.file_globs)} file globs (max {RuleLimits.MAX_GLOBS_PER_RULE})",
            rule_id,
            "Too many file globs",
        )
    if rule.allowlist is not None and len(rule.allowlist) > RuleLimits.MAX_ALLOWLIST_PER_RULE:
        raise RuleValidationError(
            f"Rule '{rule_id}' has {len(rule.allowlist)} allowlist entries "
            f"(max {RuleLimits.MAX_ALLOWLIST_PER_RULE})",
            rule_id,
            "Too many allowlist entries",
        )


def _regex_flags(flags: str) -> int:
    value = 0
    for flag in flags:
        value |= _FLAG_MAP[flag]
    return value


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def _coerce_definition(rule: CustomRuleDefinition | Mapping[str, Any]) -> CustomRuleDefinition:
    if isinstance(rule, CustomRuleDefinition):
        return rule
    return CustomRuleDefinition.from_dict(rule)


def check_rule(rule: CustomRuleDefinition | Mapping[str, Any]) -> ValidationResult[CompiledRule]:
    """Validate and compile a single rule without raising."""
    try:
        definition = _coerce_definition(rule)
        _validate_rule_shape(definition)
        validate_regex_safety(definition.pattern, definition.id)
        try:
            regex = re.compile(definition.pattern, _regex_flags(definition.flags))
        except re.error as e:
            raise RuleValidationError(
                f"Rule '{definition.id}' has invalid regex: {e}", definition.id, "Invalid regex syntax"
            ) from e
    except RuleValidationError as e:
        return ValidationResult.failure(ValidationStage.RULE, e)

    compiled = CompiledRule(
        id=definition.id,
        name=definition.name,
        severity=definition.severity,
        regex=regex,
        description=definition.description,
        file_globs=definition.file_globs,
        allowlist=tuple(entry.pattern for entry in definition.allowlist) if definition.allowlist is not None else None,
        is_custom=True,
        _key=_COMPILER_KEY,
    )
    return ValidationResult.success(ValidationStage.RULE, compiled)


def compile_rule(rule: CustomRuleDefinition | Mapping[str, Any]) -> CompiledRule:
    """Compile a single custom rule.

    Raises:
        RuleValidationError: If the rule is malformed or its regex is invalid.
        UnsafeRegexError: If the regex is rejected by the safety heuristics.
    """
    return check_rule(rule).unwrap()


def check_rules(rules: Sequence[CustomRuleDefinition | Mapping[str, Any]]) -> ValidationResult[tuple[CompiledRule, ...]]:
    """Validate a whole rule set, collecting every error.

    Set-level checks (rule count, duplicate ids) run before any individual
    rule is compiled; if they fail no rule is compiled at all.
    """
    if len(rules) > RuleLimits.MAX_RULES:
        return ValidationResult.failure(
            ValidationStage.RULE_SET,
            RuleValidationError(
                f"Too many custom rules: {len(rules)} exceeds maximum of {RuleLimits.MAX_RULES}",
                "N/A",
                "Too many rules",
            ),
        )

    seen: set[str] = set()
    duplicates: list[RuleValidationError] = []
    for rule in rules:
        rule_id = rule.id if isinstance(rule, CustomRuleDefinition) else str(rule.get("id", "N/A"))
        if rule_id in seen:
            duplicates.append(RuleValidationError(f"Duplicate rule ID: '{rule_id}'", rule_id, "Duplicate rule ID"))
        seen.add(rule_id)
    if duplicates:
        return ValidationResult.failure(ValidationStage.RULE_SET, *duplicates)

    compiled: list[CompiledRule] = []
    errors: list[RuleValidationError] = []
    for rule in rules:
        result = check_rule(rule)
        if result.ok:
            compiled.append(result.value)  # type: ignore[arg-type]
        else:
            errors.extend(result.errors)  # type: ignore[arg-type]

    if errors:
        return ValidationResult.failure(ValidationStage.RULE_SET, *errors)
    return ValidationResult.success(ValidationStage.RULE_SET, tuple(compiled))


def compile_rules(rules: Sequence[CustomRuleDefinition | Mapping[str, Any]]) -> list[CompiledRule]:
    """Compile and validate a set of custom rules, failing on the first error.

    Raises:
        RuleValidationError: If any rule (or the set as a whole) is invalid.
    """
    compiled = list(check_rules(rules).unwrap())
    if compiled:
        logger.debug("Compiled %d custom rules", len(compiled))
    return compiled


# ---------------------------------------------------------------------------
# Rule scoping helpers
# ---------------------------------------------------------------------------


def file_matches_globs(file_path: str, globs: Iterable[str] | None) -> bool:
    """Check if *file_path* matches any of *globs* (no globs matches every file)."""
    if not globs:
        return True
    return any(match_normalised_glob(file_path, glob) for glob in globs)


def is_match_allowlisted(match_value: str, allowlist: Iterable[str] | None) -> bool:
    """Check if a matched value is suppressed by a rule's inline allowlist.

    A pattern suppresses the value when it equals it, is contained in it, or
    matches it as a glob.
    """
    if not allowlist:
        return False

    for pattern in allowlist:
        if pattern == match_value or pattern in match_value:
            return True
        if match_glob(match_value, pattern):
            return True

    return False
