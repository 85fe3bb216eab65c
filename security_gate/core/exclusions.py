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
Path exclusions and the finding allowlist.

Two layers of suppression are supported:

* **Path ignores** (``ignore.paths`` and ``exclude_paths``) keep files out
  of scanning altogether.
* **Allowlist entries** suppress individual findings after scanning.  Each
  entry carries a mandatory reason and an optional expiry date; an expired
  entry stops suppressing and produces a warning instead.

Every suppression is reported back (:class:`AllowlistResult`) so the
decision stays auditable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from ..config.constants import AllowlistLimits
from .exceptions import AllowlistEntryError, ExpiryFormatError
from .globs import match_glob, normalise_glob
from .models import Finding, ScannerName
from .validation import ValidationResult, ValidationStage

logger = logging.getLogger(__name__)

_MATCH_KEYS = ("scanner", "finding_id", "rule_id", "path_glob", "message_contains")


# ---------------------------------------------------------------------------
# Allowlist entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AllowlistMatch:
    """Match criteria of an allowlist entry; every given criterion must hold."""

    scanner: str | None = None
    finding_id: str | None = None
    rule_id: str | None = None
    path_glob: str | None = None
    message_contains: str | None = None

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, key) for key in _MATCH_KEYS)

    def to_dict(self) -> dict[str, str]:
        return {key: getattr(self, key) for key in _MATCH_KEYS if getattr(self, key)}


def _string_field(entry_id: str, name: str, value: Any) -> str | None:
    """Check an optional string field against its length limit."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise AllowlistEntryError(
            f"Allowlist entry '{entry_id}' field '{name}' must be a string, got {type(value).__name__}", entry_id
        )
    limit = AllowlistLimits.MAX_FIELD_LENGTHS[name]
    if len(value) > limit:
        raise AllowlistEntryError(
            f"Allowlist entry '{entry_id}' field '{name}' is {len(value)} characters (max {limit})", entry_id
        )
    return value


@dataclass(frozen=True)
class AllowlistEntry:
    """A reviewed exception that suppresses matching findings."""

    id: str
    reason: str
    match: AllowlistMatch = field(default_factory=AllowlistMatch)
    expires: str | None = None

    def __post_init__(self):
        if not self.id:
            raise AllowlistEntryError("Allowlist entry is missing an id", "N/A")
        if not self.reason or not self.reason.strip():
            raise AllowlistEntryError(f"Allowlist entry '{self.id}' must give a reason", self.id)
        if self.match.is_empty:
            raise AllowlistEntryError(
                f"Allowlist entry '{self.id}' has no match criteria "
                f"(expected at least one of: {', '.join(_MATCH_KEYS)})",
                self.id,
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AllowlistEntry:
        """Build an entry from a config mapping.

        YAML date values for ``expires`` are kept as ISO strings; parsing
        (and any format error) is deferred until the allowlist is applied.
        """
        entry_id = _string_field("N/A", "id", data.get("id")) or ""
        raw_match = data.get("match") or {}
        if not isinstance(raw_match, Mapping):
            raise AllowlistEntryError(f"Allowlist entry '{entry_id}' match must be a mapping", entry_id or "N/A")

        unknown = sorted(set(raw_match) - set(_MATCH_KEYS))
        if unknown:
            raise AllowlistEntryError(
                f"Allowlist entry '{entry_id}' has unknown match keys: {', '.join(unknown)}", entry_id or "N/A"
            )

        scanner = raw_match.get("scanner")
        if scanner is not None:
            try:
                scanner = ScannerName(str(scanner)).value
            except ValueError:
                raise AllowlistEntryError(
                    f"Allowlist entry '{entry_id}' has unknown scanner '{scanner}'", entry_id or "N/A"
                ) from None

        expires = data.get("expires")
        if isinstance(expires, (date, datetime)):
            expires = expires.isoformat()

        owner = entry_id or "N/A"
        return cls(
            id=entry_id,
            reason=_string_field(owner, "reason", data.get("reason")) or "",
            match=AllowlistMatch(
                scanner=scanner,
                finding_id=_string_field(owner, "finding_id", raw_match.get("finding_id")),
                rule_id=_string_field(owner, "rule_id", raw_match.get("rule_id")),
                path_glob=_string_field(owner, "path_glob", raw_match.get("path_glob")),
                message_contains=_string_field(owner, "message_contains", raw_match.get("message_contains")),
            ),
            expires=str(expires) if expires is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "reason": self.reason, "match": self.match.to_dict()}
        if self.expires:
            data["expires"] = self.expires
        return data


def check_allowlist_entry(data: Mapping[str, Any] | AllowlistEntry) -> ValidationResult[AllowlistEntry]:
    """Validate a single allowlist entry without raising."""
    if isinstance(data, AllowlistEntry):
        return ValidationResult.success(ValidationStage.ALLOWLIST_ENTRY, data)
    try:
        return ValidationResult.success(ValidationStage.ALLOWLIST_ENTRY, AllowlistEntry.from_dict(data))
    except AllowlistEntryError as e:
        return ValidationResult.failure(ValidationStage.ALLOWLIST_ENTRY, e)


# ---------------------------------------------------------------------------
# Path ignores
# ---------------------------------------------------------------------------


def get_all_ignore_patterns(
    ignore_paths: Iterable[str] | None = None, exclude_paths: Iterable[str] | None = None
) -> list[str]:
    """Collect normalised ignore patterns, dropping invalid ones."""
    patterns = []
    for source in (ignore_paths, exclude_paths):
        for pattern in source or ():
            normalised = normalise_glob(pattern)
            if normalised:
                patterns.append(normalised)
            else:
                logger.debug("Ignoring invalid path pattern %r", pattern)
    return patterns


def should_ignore_path(
    path: str, ignore_paths: Iterable[str] | None = None, exclude_paths: Iterable[str] | None = None
) -> bool:
    """Check if *path* matches any ignore or exclude pattern."""
    return any(match_glob(path, pattern) for pattern in get_all_ignore_patterns(ignore_paths, exclude_paths))


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


def parse_expiry(value: str) -> datetime:
    """Parse an ISO 8601 date or datetime into an aware UTC-based datetime.

    A bare date means the start of that day in UTC, so an entry expiring
    "today" is already expired for the rest of the day.  Naive datetimes
    are taken as UTC.

    Raises:
        ValueError: If *value* is not ISO 8601.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        day = date.fromisoformat(text)
    except ValueError:
        parsed = datetime.fromisoformat(text)
    else:
        parsed = datetime(day.year, day.month, day.day)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_allowlist_entry_expired(expires: str | None, now: datetime | None = None) -> bool:
    """Check if an expiry date has passed. No expiry never expires.

    Raises:
        ValueError: If *expires* cannot be parsed.
    """
    if not expires:
        return False
    current = now or datetime.now(timezone.utc)
    return current > parse_expiry(expires)


# ---------------------------------------------------------------------------
# Matching and application
# ---------------------------------------------------------------------------


def finding_matches_entry(finding: Finding, entry: AllowlistEntry) -> bool:
    """Check if *finding* satisfies every criterion set on *entry*."""
    criteria = entry.match
    if criteria.is_empty:
        return False

    if criteria.scanner and finding.scanner.value != criteria.scanner:
        return False

    if criteria.finding_id:
        if criteria.finding_id.endswith("*"):
            if not finding.id.startswith(criteria.finding_id[:-1]):
                return False
        elif finding.id != criteria.finding_id:
            return False

    if criteria.rule_id and finding.rule_id != criteria.rule_id:
        return False

    if criteria.path_glob:
        pattern = normalise_glob(criteria.path_glob)
        if not pattern or not match_glob(finding.file, pattern):
            return False

    if criteria.message_contains and criteria.message_contains not in finding.message:
        return False

    return True


@dataclass
class AllowlistResult:
    """Outcome of applying the allowlist to a set of findings."""

    findings: list[Finding] = field(default_factory=list)
    suppressed: list[Finding] = field(default_factory=list)
    suppressed_by_scanner: dict[str, int] = field(default_factory=dict)
    expired_entries: list[AllowlistEntry] = field(default_factory=list)
    # finding id -> id of the entry that suppressed it
    suppressed_by_entry: dict[str, str] = field(default_factory=dict)

    @property
    def suppressed_count(self) -> int:
        return len(self.suppressed)


def _coerce_entries(allowlist: Iterable[AllowlistEntry | Mapping[str, Any]]) -> list[AllowlistEntry]:
    return [entry if isinstance(entry, AllowlistEntry) else AllowlistEntry.from_dict(entry) for entry in allowlist]


def apply_allowlist(
    findings: Sequence[Finding],
    allowlist: Iterable[AllowlistEntry | Mapping[str, Any]] | None,
    now: datetime | None = None,
) -> AllowlistResult:
    """Suppress findings that match a non-expired allowlist entry.

    Entries are first split into valid and expired (configured order is
    kept); for each finding the first matching valid entry wins.

    Raises:
        ExpiryFormatError: If an entry's expiry date cannot be parsed.
        AllowlistEntryError: If a raw mapping is not a valid entry.
    """
    entries = _coerce_entries(allowlist or ())
    if not entries:
        return AllowlistResult(findings=list(findings))

    current = now or datetime.now(timezone.utc)
    result = AllowlistResult()
    valid: list[AllowlistEntry] = []
    for entry in entries:
        try:
            expired = is_allowlist_entry_expired(entry.expires, current)
        except ValueError:
            raise ExpiryFormatError(entry.id, str(entry.expires)) from None
        if expired:
            result.expired_entries.append(entry)
        else:
            valid.append(entry)

    for finding in findings:
        for entry in valid:
            if finding_matches_entry(finding, entry):
                result.suppressed.append(finding)
                result.suppressed_by_entry[finding.id] = entry.id
                scanner = finding.scanner.value
                result.suppressed_by_scanner[scanner] = result.suppressed_by_scanner.get(scanner, 0) + 1
                break
        else:
            result.findings.append(finding)

    if result.suppressed:
        logger.debug("Allowlist suppressed %d of %d findings", result.suppressed_count, len(findings))
    return result


def format_expired_warning(entry: AllowlistEntry) -> str:
    return (
        f"Allowlist entry '{entry.id}' has expired (expires: {entry.expires}). "
        "The entry will not suppress findings. Remove or update the expiry date."
    )


def warn_expired_entries(expired_entries: Iterable[AllowlistEntry]) -> list[str]:
    """Log one warning per expired entry and return the messages."""
    messages = []
    for entry in expired_entries:
        message = format_expired_warning(entry)
        logger.warning("%s", message)
        messages.append(message)
    return messages
