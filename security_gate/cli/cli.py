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

"""Command-line interface for Security Gate."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ..config.config import Config
from ..core.exceptions import ConfigurationError, ExpiryFormatError, SecurityGateError
from ..core.exclusions import is_allowlist_entry_expired
from ..core.gate_config import GateConfig, GateMode
from ..core.masking import LogRedactionSink
from ..core.models import SEVERITY_ORDER, ScannerName, Severity
from ..core.orchestrator import GateOutcome, GateRunner
from ..core.policy import format_policy_summary
from ..core.reporters.json_reporter import JSONReporter
from ..core.reporters.markdown_reporter import MarkdownReporter
from ..core.reporters.sarif_reporter import SARIFReporter
from ..core.rules import check_rules
from ..core.secret_patterns import SECRET_PATTERNS

logger = logging.getLogger("security_gate.cli")

EXIT_PASSED = 0
EXIT_POLICY_FAILED = 1
EXIT_CONFIG_ERROR = 2

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool, sink: LogRedactionSink) -> None:
    """Route logs to stderr with registered secrets redacted."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=_LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(sink)


def _parse_findings_args(values: list[str] | None) -> dict[ScannerName, Path]:
    """Parse repeated ``SCANNER=FILE`` options."""
    files: dict[ScannerName, Path] = {}
    for value in values or []:
        name, sep, path = value.partition("=")
        if not sep or not path:
            raise ConfigurationError(f"--findings expects SCANNER=FILE, got '{value}'")
        try:
            scanner = ScannerName(name.strip().lower())
        except ValueError:
            raise ConfigurationError(f"Unknown scanner '{name}' in --findings") from None
        if scanner == ScannerName.SECRETS:
            raise ConfigurationError("The secrets scanner does not read a findings file")
        files[scanner] = Path(path)
    return files


def _load_gate_config(directory: Path, config_path: str | None) -> GateConfig:
    config = GateConfig.discover(directory, config_path)
    if config.source_path:
        logger.info("Using configuration: %s", config.source_path)
    else:
        logger.info("No configuration file found, using defaults")
    return config


def _format_output(fmt: str, outcome: GateOutcome, compact: bool = False) -> str:
    """Generate the formatted output string for a gate run."""
    if fmt == "json":
        return JSONReporter(pretty=not compact).generate_report(outcome.results, outcome.policy)
    if fmt == "markdown":
        return MarkdownReporter().generate_report(outcome.results, outcome.policy)
    if fmt == "sarif":
        return SARIFReporter().generate_report(outcome.results, outcome.policy)
    return _generate_summary(outcome)


def _write_output(args: argparse.Namespace, output: str) -> None:
    """Write *output* to a file or stdout."""
    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        print(f"Report saved to: {args.output}", file=sys.stderr)
    else:
        print(output)


def _generate_summary(outcome: GateOutcome) -> str:
    results, policy = outcome.results, outcome.policy
    lines = [
        "=" * 60,
        "Security Gate",
        "=" * 60,
        f"Status: {'[OK]' if policy.passed else '[FAIL]'} {format_policy_summary(policy)}",
        f"Scanners: {', '.join(r.name.value for r in results.scanners) or 'none'}",
        f"Files Scanned: {results.total_files_scanned}",
        f"Total Findings: {results.total_findings}",
        f"Suppressed: {results.suppressed_count}",
        f"Scan Duration: {results.total_duration_ms / 1000:.2f}s",
        "",
    ]
    if results.findings:
        lines.append("Findings Summary:")
        for sev in SEVERITY_ORDER:
            lines.append(f"  {sev.value:>8s}: {policy.counts.get(sev)}")
        lines.append("")
        lines.append("Findings:")
        for finding in results.findings:
            location = finding.file + (f":{finding.start_line}" if finding.start_line is not None else "")
            lines.append(f"  [{finding.severity.value.upper()}] {finding.rule_id or finding.scanner.value} {location}")
            lines.append(f"      {finding.message}")
    for result in results.scanners:
        if result.error:
            lines.append(f"[WARN] {result.name.value} scanner error: {result.error}")
    for warning in results.allowlist_warnings:
        lines.append(f"[WARN] {warning}")
    if policy.failure_reason:
        lines.append("")
        lines.append(policy.failure_reason)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def scan_command(args: argparse.Namespace) -> int:
    """Handle the ``scan`` command."""
    sink = LogRedactionSink()
    try:
        runtime = Config(
            fail_on=args.fail_on,
            config_path=args.config,
            verbose=args.verbose,
            output_format=args.format,
        )
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    _configure_logging(runtime.verbose, sink)

    directory = Path(args.path)
    if not directory.is_dir():
        print(f"Error: Directory does not exist: {directory}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    try:
        if runtime.fail_on and runtime.fail_on.lower() not in {s.value for s in Severity}:
            raise ConfigurationError(f"Invalid fail_on '{runtime.fail_on}' (expected one of: high, medium, low)")
        gate_config = _load_gate_config(directory, runtime.config_path)
        runner = GateRunner(
            config=gate_config,
            working_directory=directory,
            sink=sink,
            fail_on=runtime.fail_on.lower() if runtime.fail_on else None,
            mode=args.mode,
            findings_files=_parse_findings_args(args.findings),
            max_file_size_bytes=runtime.max_file_size_bytes,
        )
        outcome = runner.run()
    except SecurityGateError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    _write_output(args, _format_output(runtime.output_format, outcome, compact=args.compact))

    return EXIT_PASSED if outcome.passed else EXIT_POLICY_FAILED


def validate_config_command(args: argparse.Namespace) -> int:
    """Handle the ``validate-config`` command, reporting every problem found."""
    directory = Path(args.path)
    try:
        gate_config = _load_gate_config(directory, args.config)
    except ConfigurationError as e:
        print(f"[FAIL] {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    problems = []
    rules_result = check_rules(gate_config.rules)
    problems.extend(str(error) for error in rules_result.errors)

    expired = 0
    for entry in gate_config.allowlist:
        try:
            if is_allowlist_entry_expired(entry.expires):
                expired += 1
                print(f"[WARN] Allowlist entry '{entry.id}' has expired (expires: {entry.expires})")
        except ValueError:
            problems.append(str(ExpiryFormatError(entry.id, str(entry.expires))))

    if problems:
        for problem in problems:
            print(f"[FAIL] {problem}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    source = gate_config.source_path or "built-in defaults"
    print(f"[OK] Configuration is valid: {source}")
    print(f"  - fail_on: {gate_config.fail_on.value}")
    print(f"  - mode: {gate_config.mode.value}")
    print(f"  - custom rules: {len(gate_config.rules)}")
    print(f"  - allowlist entries: {len(gate_config.allowlist)} ({expired} expired)")
    return EXIT_PASSED


def list_rules_command(_args: argparse.Namespace) -> int:
    """Handle the ``list-rules`` command."""
    print("Built-in secret detectors:\n")
    for pattern in SECRET_PATTERNS:
        print(f"  {pattern.id}  {pattern.severity.value:<6s}  {pattern.name}")
    return EXIT_PASSED


def generate_config_command(args: argparse.Namespace) -> int:
    """Handle the ``generate-config`` command."""
    output_path = Path(args.output)
    if output_path.exists() and not args.force:
        print(f"Error: {output_path} already exists (use --force to overwrite)", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    GateConfig.default().to_yaml(output_path)
    print(f"Generated default configuration: {output_path}")
    return EXIT_PASSED


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="security-gate",
        description="Security Gate - Policy gate for leaked secrets and security findings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  security-gate scan
  security-gate scan /path/to/repo --fail-on medium
  security-gate scan --findings dependencies=osv.json --format sarif -o gate.sarif
  security-gate validate-config
  security-gate generate-config -o .security-gate.yml

Exit codes: 0 passed, 1 policy failed, 2 configuration error
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -- scan --------------------------------------------------------------
    scan_p = subparsers.add_parser("scan", help="Scan a repository and evaluate the policy")
    scan_p.add_argument("path", nargs="?", default=".", help="Repository root (default: current directory)")
    scan_p.add_argument("--config", "-c", default=None, help="Path to the gate configuration file")
    scan_p.add_argument(
        "--fail-on", choices=[s.value for s in Severity], default=None, help="Override the severity threshold"
    )
    scan_p.add_argument(
        "--mode", choices=[m.value for m in GateMode], default=None, help="Override scanner selection mode"
    )
    scan_p.add_argument(
        "--findings",
        action="append",
        metavar="SCANNER=FILE",
        help="JSON findings from an external scanner (dependencies, iac, container); repeatable",
    )
    scan_p.add_argument(
        "--format",
        choices=["summary", "json", "sarif", "markdown"],
        default="summary",
        help="Output format (default: summary)",
    )
    scan_p.add_argument("--output", "-o", help="Output file path")
    scan_p.add_argument("--compact", action="store_true", help="Compact JSON output")
    scan_p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    # -- validate-config ---------------------------------------------------
    vc_p = subparsers.add_parser("validate-config", help="Validate the gate configuration and custom rules")
    vc_p.add_argument("path", nargs="?", default=".", help="Repository root (default: current directory)")
    vc_p.add_argument("--config", "-c", default=None, help="Path to the gate configuration file")

    # -- list-rules --------------------------------------------------------
    subparsers.add_parser("list-rules", help="List built-in secret detectors")

    # -- generate-config ---------------------------------------------------
    gc_p = subparsers.add_parser("generate-config", help="Write a default configuration file")
    gc_p.add_argument("--output", "-o", default=".security-gate.yml", help="Output file path")
    gc_p.add_argument("--force", action="store_true", help="Overwrite an existing file")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_CONFIG_ERROR

    dispatch = {
        "scan": scan_command,
        "validate-config": validate_config_command,
        "list-rules": list_rules_command,
        "generate-config": generate_config_command,
    }
    handler = dispatch.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
