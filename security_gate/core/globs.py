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
Glob matching for path filters.

Only two wildcards are supported:

* ``*``  – any run of characters except the path separator ``/``
* ``**`` – any run of characters, including ``/``

Every other character is matched literally and the resulting pattern is
anchored at both ends, so ``*.md`` matches ``README.md`` but not
``docs/guide.md``.
"""

from __future__ import annotations

import functools
import re

_GLOBSTAR = "**"
_REPEATED_SEPARATORS_RE = re.compile(r"/+")


def normalise_glob(glob: str) -> str | None:
    """Normalise a glob pattern for consistent matching.

    - Converts Windows separators to ``/``
    - Removes a leading ``./``
    - Collapses repeated separators

    Returns ``None`` for patterns that start with ``..`` or contain ``../``; such a
    pattern never matches anything.
    """
    normalised = glob.replace("\\", "/")
    while normalised.startswith("./"):
        normalised = normalised[2:]

    if "../" in normalised or normalised.startswith(".."):
        return None

    return _REPEATED_SEPARATORS_RE.sub("/", normalised)


@functools.lru_cache(maxsize=1024)
def glob_to_regex(glob: str) -> re.Pattern[str]:
    """Translate *glob* into an anchored compiled regex."""
    parts = []
    for segment in glob.split(_GLOBSTAR):
        parts.append("[^/]*".join(re.escape(piece) for piece in segment.split("*")))
    return re.compile("^" + ".*".join(parts) + "$")


def match_glob(path: str, glob: str) -> bool:
    """Return True if *path* matches the (already normalised) *glob*."""
    return glob_to_regex(glob).match(path.replace("\\", "/")) is not None


def match_normalised_glob(path: str, glob: str) -> bool:
    """Normalise *glob* and match it; traversal patterns never match."""
    normalised = normalise_glob(glob)
    if normalised is None:
        return False
    return match_glob(path, normalised)
