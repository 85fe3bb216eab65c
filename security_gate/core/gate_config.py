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
Gate configuration loaded from ``.security-gate.yml``.

The YAML file is merged on top of the built-in defaults so users only
need to write the keys they want to change.  Lists (rules, paths,
allowlist) replace the defaults rather than extending them.

Example
-------
.. code-block:: yaml

    version: "1"
    fail_on: medium
    mode: auto
    scanners:
      dependencies:
        findings_file: reports/osv.json
    exclude_paths:
      - "docs/**"
    rules:
      - id: INTERNAL-TOKEN
        name: Internal service token
        regex: "itk_[A-Za-z0-9]{32}"
        severity: high
    allowlist:
      - id: fixture-keys
        reason: Test fixtures use revoked keys
        expires: 2026-12-31
        match:
          scanner: secrets
          path_glob: "tests/fixtures/**"
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from ..config.constants import SecurityGateConstants
from .exceptions import ConfigurationError
from .exclusions import AllowlistEntry
from .models import ScannerName, Severity
from .rules import CustomRuleDefinition

logger = logging.getLogger(__name__)


class GateMode(str, Enum):
    """How the set of scanners to run is decided."""

    AUTO = "auto"  # secrets always, external scanners when they have input
    EXPLICIT = "explicit"  # only scanners enabled in the config


_DEFAULT_RAW: dict[str, Any] = {
    "version": "1",
    "fail_on": SecurityGateConstants.DEFAULT_FAIL_ON,
    "mode": SecurityGateConstants.DEFAULT_MODE,
    "scanners": {name.value: {"enabled": True} for name in ScannerName},
}


@dataclass
class ScannerSettings:
    """Per-scanner switches."""

    enabled: bool = True
    # External scanners only: JSON file of already-classified findings
    findings_file: str | None = None


@dataclass
class ScannersConfig:
    secrets: ScannerSettings = field(default_factory=ScannerSettings)
    dependencies: ScannerSettings = field(default_factory=ScannerSettings)
    iac: ScannerSettings = field(default_factory=ScannerSettings)
    container: ScannerSettings = field(default_factory=ScannerSettings)

    def get(self, name: ScannerName | str) -> ScannerSettings:
        return getattr(self, ScannerName(name).value)


@dataclass
class GateConfig:
    """Typed view of the gate configuration file."""

    version: str = "1"
    fail_on: Severity = Severity.HIGH
    mode: GateMode = GateMode.AUTO
    scanners: ScannersConfig = field(default_factory=ScannersConfig)
    exclude_paths: list[str] = field(default_factory=list)
    rules: list[CustomRuleDefinition] = field(default_factory=list)
    ignore_paths: list[str] = field(default_factory=list)
    allowlist: list[AllowlistEntry] = field(default_factory=list)

    # Set when loaded from disk; None means built-in defaults
    source_path: Path | None = None

    @property
    def using_defaults(self) -> bool:
        return self.source_path is None

    # -----------------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------------

    @classmethod
    def default(cls) -> GateConfig:
        """Built-in defaults (used when no config file exists)."""
        return cls._from_dict(copy.deepcopy(_DEFAULT_RAW))

    @classmethod
    def find_config_file(cls, directory: str | Path) -> Path | None:
        """Return the first known config file name present in *directory*."""
        directory = Path(directory)
        for name in SecurityGateConstants.CONFIG_FILENAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None

    @classmethod
    def discover(cls, directory: str | Path, config_path: str | Path | None = None) -> GateConfig:
        """Load the config for a repository.

        An explicit *config_path* is resolved against *directory*; if it
        does not exist the defaults are used and a warning is logged.
        Otherwise the standard file names are tried in order.
        """
        directory = Path(directory)
        if config_path:
            path = Path(config_path)
            if not path.is_absolute():
                path = directory / path
            if path.is_file():
                return cls.from_yaml(path)
            logger.warning("Configuration file not found at '%s', using defaults", config_path)
            return cls.default()

        found = cls.find_config_file(directory)
        if found is None:
            logger.debug("No configuration file found in %s, using defaults", directory)
            return cls.default()
        return cls.from_yaml(found)

    @classmethod
    def from_yaml(cls, path: str | Path) -> GateConfig:
        """Load a config file, overlaying it on the defaults.

        Raises:
            ConfigurationError: If the file cannot be read, is not valid
                YAML, or holds invalid values.
        """
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}") from e

        config = cls.from_dict(raw)
        config.source_path = path
        logger.debug("Loaded configuration from %s", path)
        return config

    @classmethod
    def from_dict(cls, data: Any) -> GateConfig:
        """Build a config from an already-parsed mapping, merged over defaults."""
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a mapping")
        return cls._from_dict(cls._deep_merge(copy.deepcopy(_DEFAULT_RAW), data))

    def to_yaml(self, path: str | Path) -> None:
        """Write the effective configuration as YAML."""
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("# Security Gate configuration\n")
            yaml.safe_dump(self._to_dict(), fh, default_flow_style=False, sort_keys=False, width=120)

    # -----------------------------------------------------------------------
    # Internal parsing
    # -----------------------------------------------------------------------

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Recursively merge *override* into *base*; lists replace, not extend."""
        result = dict(base)
        for key, val in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(val, dict):
                result[key] = GateConfig._deep_merge(result[key], val)
            else:
                result[key] = val
        return result

    @staticmethod
    def _string_list(d: dict[str, Any], key: str, limit: int) -> list[str]:
        values = d.get(key) or []
        if not isinstance(values, list) or not all(isinstance(v, str) and v for v in values):
            raise ConfigurationError(f"'{key}' must be a list of non-empty strings")
        if len(values) > limit:
            raise ConfigurationError(f"'{key}' has {len(values)} entries (max {limit})")
        return list(values)

    @classmethod
    def _from_dict(cls, d: dict[str, Any]) -> GateConfig:
        try:
            fail_on = Severity(str(d.get("fail_on", "high")).lower())
        except ValueError:
            raise ConfigurationError(
                f"Invalid fail_on '{d.get('fail_on')}' (expected one of: high, medium, low)"
            ) from None
        try:
            mode = GateMode(str(d.get("mode", "auto")).lower())
        except ValueError:
            raise ConfigurationError(f"Invalid mode '{d.get('mode')}' (expected auto or explicit)") from None

        sc = d.get("scanners") or {}
        if not isinstance(sc, dict):
            raise ConfigurationError("'scanners' must be a mapping")
        unknown = sorted(set(sc) - {name.value for name in ScannerName})
        if unknown:
            raise ConfigurationError(f"Unknown scanners in configuration: {', '.join(unknown)}")

        scanners = ScannersConfig(
            **{
                name.value: ScannerSettings(
                    enabled=bool((sc.get(name.value) or {}).get("enabled", True)),
                    findings_file=(sc.get(name.value) or {}).get("findings_file"),
                )
                for name in ScannerName
            }
        )
        if not any(scanners.get(name).enabled for name in ScannerName):
            raise ConfigurationError("At least one scanner must be enabled")

        raw_rules = d.get("rules") or []
        if not isinstance(raw_rules, list) or not all(isinstance(r, dict) for r in raw_rules):
            raise ConfigurationError("'rules' must be a list of mappings")

        raw_allowlist = d.get("allowlist") or []
        if not isinstance(raw_allowlist, list) or not all(isinstance(e, dict) for e in raw_allowlist):
            raise ConfigurationError("'allowlist' must be a list of mappings")
        if len(raw_allowlist) > SecurityGateConstants.MAX_ALLOWLIST_ENTRIES:
            raise ConfigurationError(
                f"'allowlist' has {len(raw_allowlist)} entries (max {SecurityGateConstants.MAX_ALLOWLIST_ENTRIES})"
            )

        ignore = d.get("ignore") or {}
        if not isinstance(ignore, dict):
            raise ConfigurationError("'ignore' must be a mapping")

        return cls(
            version=str(d.get("version", "1")),
            fail_on=fail_on,
            mode=mode,
            scanners=scanners,
            exclude_paths=cls._string_list(d, "exclude_paths", SecurityGateConstants.MAX_EXCLUDE_PATHS),
            # Rule count is enforced by the rule compiler with its own error
            rules=[CustomRuleDefinition.from_dict(r) for r in raw_rules],
            ignore_paths=cls._string_list(ignore, "paths", SecurityGateConstants.MAX_IGNORE_PATHS),
            allowlist=[AllowlistEntry.from_dict(e) for e in raw_allowlist],
        )

    def _to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "fail_on": self.fail_on.value,
            "mode": self.mode.value,
            "scanners": {},
        }
        for name in ScannerName:
            settings = self.scanners.get(name)
            section: dict[str, Any] = {"enabled": settings.enabled}
            if settings.findings_file:
                section["findings_file"] = settings.findings_file
            data["scanners"][name.value] = section

        if self.exclude_paths:
            data["exclude_paths"] = list(self.exclude_paths)
        if self.rules:
            data["rules"] = [_rule_to_dict(rule) for rule in self.rules]
        if self.ignore_paths:
            data["ignore"] = {"paths": list(self.ignore_paths)}
        if self.allowlist:
            data["allowlist"] = [entry.to_dict() for entry in self.allowlist]
        return data


def _rule_to_dict(rule: CustomRuleDefinition) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": rule.id,
        "name": rule.name,
        "regex": rule.pattern,
        "severity": rule.severity.value,
        "flags": rule.flags,
    }
    if rule.description:
        data["description"] = rule.description
    if rule.file_globs is not None:
        data["file_globs"] = list(rule.file_globs)
    if rule.allowlist is not None:
        data["allowlist"] = [
            {"pattern": entry.pattern, **({"reason": entry.reason} if entry.reason else {})}
            for entry in rule.allowlist
        ]
    return data
