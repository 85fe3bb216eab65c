# Copyright 2026 Cisco Systems, Inc.
# SPDX-License-Identifier: Apache-2.0

"""Tests for the custom rule compiler and regex safety validation."""

import re

import pytest

from security_gate.core.exceptions import ConfigurationError, RuleValidationError, UnsafeRegexError
from security_gate.core.models import Severity
from security_gate.core.rules import (
    CompiledRule,
    CustomRuleDefinition,
    calculate_nesting_depth,
    check_rule,
    check_rules,
    compile_rule,
    compile_rules,
    file_matches_globs,
    is_match_allowlisted,
    validate_regex_safety,
)
from security_gate.core.validation import ValidationStage


def make_rule(rule_id="TEST-001", regex="TOKEN_[A-Z0-9]{10}", **extra):
    return {"id": rule_id, "name": f"Rule {rule_id}", "regex": regex, **extra}


# =============================================================================
# Regex safety corpus
# =============================================================================
class TestRegexSafety:
    """Patterns known to backtrack badly are rejected before compilation."""

    @pytest.mark.parametrize(
        "pattern,reason_fragment",
        [
            ("(a+)+", "nested quantifiers"),
            ("(x*)*", "nested quantifiers"),
            (".*.*", "multiple greedy wildcards"),
            ("(a|b)+", "alternation with quantifier"),
            ("a" * 600, "maximum length"),
            ("a+b+c+d+e+f+g+h+i+j+k+", "Too many quantifiers"),
            ("|".join(f"w{i}" for i in range(21)), "Too many alternations"),
            ("((((((a))))))", "Nesting too deep"),
            ("(a)" * 12, "Too many groups"),
            ("[a-z]+[0-9]+", "adjacent quantified character classes"),
            ("[a-z]{1,3}x[0-9]{2,4}", "nested range quantifiers"),
            ("(.*abc){2}", "greedy wildcard in quantified group"),
        ],
    )
    def test_unsafe_patterns_rejected(self, pattern, reason_fragment):
        with pytest.raises(UnsafeRegexError) as exc_info:
            validate_regex_safety(pattern, "UNSAFE-1")
        assert reason_fragment in exc_info.value.reason
        assert exc_info.value.rule_id == "UNSAFE-1"
        assert "UNSAFE-1" in str(exc_info.value)

    @pytest.mark.parametrize(
        "pattern",
        [
            "test",
            "[A-Z]{10}",
            "(foo|bar)",
            "TOKEN_[A-Z0-9]{10}",
            "prefix_[a-z0-9]+_suffix",
            "a" * 500,
        ],
    )
    def test_safe_patterns_compile(self, pattern):
        compiled = compile_rule(make_rule(regex=pattern))
        assert isinstance(compiled.regex, re.Pattern)

    def test_length_checked_before_heuristics(self):
        with pytest.raises(UnsafeRegexError) as exc_info:
            validate_regex_safety("(a+)+" + "b" * 600, "LONG-1")
        assert "maximum length" in exc_info.value.reason

    def test_unsafe_error_is_a_rule_validation_error(self):
        with pytest.raises(RuleValidationError):
            compile_rule(make_rule(regex="(a+)+"))
        with pytest.raises(ConfigurationError):
            compile_rule(make_rule(regex="(a+)+"))


class TestNestingDepth:
    @pytest.mark.parametrize(
        "pattern,depth",
        [
            ("abc", 0),
            ("(a)", 1),
            ("((a)(b))", 2),
            (r"\(\(\(", 0),
            ("[(((]", 0),
            ("(a[)]b)", 1),
        ],
    )
    def test_depth(self, pattern, depth):
        assert calculate_nesting_depth(pattern) == depth


# =============================================================================
# Single rule validation
# =============================================================================
class TestCompileRule:
    def test_compiles_definition(self):
        compiled = compile_rule(make_rule(severity="high", description="Internal token"))
        assert compiled.id == "TEST-001"
        assert compiled.severity == Severity.HIGH
        assert compiled.description == "Internal token"
        assert compiled.is_custom is True
        assert compiled.regex.search('x = "TOKEN_ABCDEFGHIJ"')

    def test_default_severity_is_medium(self):
        assert compile_rule(make_rule()).severity == Severity.MEDIUM

    def test_accepts_definition_objects(self):
        definition = CustomRuleDefinition(id="OBJ-RULE", name="Object rule", pattern="secret_[0-9]{4}")
        assert compile_rule(definition).id == "OBJ-RULE"

    def test_pattern_key_is_accepted(self):
        rule = {"id": "PAT-001", "name": "Pattern key", "pattern": "abc"}
        assert compile_rule(rule).regex.pattern == "abc"

    @pytest.mark.parametrize("rule_id", ["AB", "X" * 33])
    def test_rule_id_length(self, rule_id):
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rule(make_rule(rule_id=rule_id))
        assert exc_info.value.reason == "Invalid rule ID length"

    @pytest.mark.parametrize("rule_id", ["lowercase", "HAS SPACE", "DOT.ID"])
    def test_rule_id_format(self, rule_id):
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rule(make_rule(rule_id=rule_id))
        assert exc_info.value.reason == "Invalid rule ID format"
        assert exc_info.value.rule_id == rule_id

    def test_invalid_flags(self):
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rule(make_rule(flags="gx"))
        assert exc_info.value.reason == "Invalid flags"

    def test_ignorecase_flag(self):
        compiled = compile_rule(make_rule(regex="token_[a-z]{4}", flags="gi"))
        assert compiled.regex.search("TOKEN_ABCD")

    def test_invalid_regex_syntax_is_not_unsafe(self):
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rule(make_rule(regex="[unclosed"))
        assert not isinstance(exc_info.value, UnsafeRegexError)
        assert exc_info.value.reason == "Invalid regex syntax"
        assert str(exc_info.value).startswith("Rule 'TEST-001' has invalid regex:")

    def test_too_many_globs(self):
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rule(make_rule(file_globs=[f"dir{i}/**" for i in range(26)]))
        assert exc_info.value.reason == "Too many file globs"

    def test_too_many_inline_allowlist_entries(self):
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rule(make_rule(allowlist=[f"VALUE{i}" for i in range(51)]))
        assert exc_info.value.reason == "Too many allowlist entries"

    def test_missing_regex(self):
        with pytest.raises(RuleValidationError, match="missing a regex"):
            compile_rule({"id": "NO-REGEX", "name": "No regex"})

    def test_invalid_severity(self):
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rule(make_rule(severity="critical"))
        assert exc_info.value.reason == "Invalid severity"

    def test_inline_allowlist_entries(self):
        compiled = compile_rule(make_rule(allowlist=["TOKEN_EXAMPLE", {"pattern": "TOKEN_TEST*", "reason": "tests"}]))
        assert compiled.allowlist == ("TOKEN_EXAMPLE", "TOKEN_TEST*")

    def test_check_rule_returns_tagged_failure(self):
        result = check_rule(make_rule(regex="(a+)+"))
        assert not result.ok
        assert result.stage == ValidationStage.RULE
        assert isinstance(result.errors[0], UnsafeRegexError)


class TestCompiledRuleConstruction:
    def test_direct_construction_rejected(self):
        with pytest.raises(TypeError):
            CompiledRule(id="DIRECT", name="Direct", severity=Severity.HIGH, regex=re.compile("x"))

    def test_compiled_rule_is_frozen(self):
        compiled = compile_rule(make_rule())
        with pytest.raises(AttributeError):
            compiled.id = "OTHER"


# =============================================================================
# Rule sets
# =============================================================================
class TestCompileRules:
    def test_empty(self):
        assert compile_rules([]) == []

    def test_preserves_order(self):
        compiled = compile_rules([make_rule("RULE-B"), make_rule("RULE-A")])
        assert [r.id for r in compiled] == ["RULE-B", "RULE-A"]

    def test_too_many_rules(self):
        rules = [make_rule(f"RULE-{i:03d}") for i in range(51)]
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rules(rules)
        assert exc_info.value.rule_id == "N/A"
        assert str(exc_info.value) == "Too many custom rules: 51 exceeds maximum of 50"

    def test_fifty_rules_allowed(self):
        rules = [make_rule(f"RULE-{i:03d}") for i in range(50)]
        assert len(compile_rules(rules)) == 50

    def test_duplicate_ids_rejected_before_compiling(self):
        rules = [make_rule("DUP-001"), make_rule("DUP-001"), make_rule("BAD-001", regex="(a+)+")]
        with pytest.raises(RuleValidationError) as exc_info:
            compile_rules(rules)
        assert not isinstance(exc_info.value, UnsafeRegexError)
        assert str(exc_info.value) == "Duplicate rule ID: 'DUP-001'"

    def test_fail_fast_raises_first_error(self):
        rules = [make_rule("GOOD-001"), make_rule("BAD-001", regex="(a+)+"), make_rule("BAD-002", regex="[x")]
        with pytest.raises(UnsafeRegexError) as exc_info:
            compile_rules(rules)
        assert exc_info.value.rule_id == "BAD-001"

    def test_check_rules_collects_every_error(self):
        rules = [make_rule("BAD-001", regex="(a+)+"), make_rule("GOOD-001"), make_rule("BAD-002", regex="[x")]
        result = check_rules(rules)
        assert not result.ok
        assert result.stage == ValidationStage.RULE_SET
        assert [e.rule_id for e in result.errors] == ["BAD-001", "BAD-002"]
        assert result.value is None

    def test_check_rules_success(self):
        result = check_rules([make_rule()])
        assert result.ok
        assert [r.id for r in result.unwrap()] == ["TEST-001"]


# =============================================================================
# Scoping helpers
# =============================================================================
class TestFileMatchesGlobs:
    def test_no_globs_matches_everything(self):
        assert file_matches_globs("any/file.txt", None)
        assert file_matches_globs("any/file.txt", [])

    def test_globstar(self):
        assert file_matches_globs("src/a/b.py", ["src/**"])
        assert not file_matches_globs("lib/a.py", ["src/**"])

    def test_single_star_stays_in_segment(self):
        assert file_matches_globs("app.py", ["*.py"])
        assert not file_matches_globs("src/app.py", ["*.py"])

    def test_any_glob_matches(self):
        assert file_matches_globs("lib/a.py", ["src/**", "lib/**"])


class TestIsMatchAllowlisted:
    def test_exact(self):
        assert is_match_allowlisted("TOKEN_EXAMPLE1", ["TOKEN_EXAMPLE1"])

    def test_substring(self):
        assert is_match_allowlisted("TOKEN_EXAMPLE123", ["EXAMPLE"])

    def test_glob(self):
        assert is_match_allowlisted("TOKEN_TESTABCDEF", ["TOKEN_TEST*"])

    def test_no_match(self):
        assert not is_match_allowlisted("TOKEN_REALVALUE", ["TOKEN_TEST*", "EXAMPLE"])

    def test_empty_allowlist(self):
        assert not is_match_allowlisted("TOKEN_REALVALUE", None)
        assert not is_match_allowlisted("TOKEN_REALVALUE", [])
