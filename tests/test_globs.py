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
Tests for glob normalisation and matching.
"""

import pytest

from security_gate.core.globs import match_glob, match_normalised_glob, normalise_glob


class TestNormaliseGlob:
    @pytest.mark.parametrize(
        "glob,expected",
        [
            ("src/*.py", "src/*.py"),
            ("./src/*.py", "src/*.py"),
            ("././docs/**", "docs/**"),
            ("src\\app\\*.py", "src/app/*.py"),
            ("src//nested///*.md", "src/nested/*.md"),
        ],
    )
    def test_normalises(self, glob, expected):
        assert normalise_glob(glob) == expected

    @pytest.mark.parametrize("glob", ["../secrets/*", "src/../../etc", "..", "..\\windows\\*"])
    def test_traversal_rejected(self, glob):
        assert normalise_glob(glob) is None


class TestMatchGlob:
    @pytest.mark.parametrize(
        "path,glob",
        [
            ("README.md", "*.md"),
            ("docs/guide.md", "docs/*.md"),
            ("docs/a/b/guide.md", "docs/**"),
            ("src/pkg/mod/app.py", "src/**/*.py"),
            ("tests/fixtures/keys.txt", "**/fixtures/**"),
            ("a+b(c).txt", "a+b(c).txt"),
        ],
    )
    def test_matches(self, path, glob):
        assert match_glob(path, glob)

    @pytest.mark.parametrize(
        "path,glob",
        [
            ("docs/guide.md", "*.md"),
            ("src/app.pyc", "src/*.py"),
            ("other/docs/guide.md", "docs/*.md"),
            ("abc.txt", "a?c.txt"),
        ],
    )
    def test_does_not_match(self, path, glob):
        assert not match_glob(path, glob)

    def test_windows_path_separators(self):
        assert match_glob("docs\\guide.md", "docs/*.md")

    def test_normalised_traversal_never_matches(self):
        assert not match_normalised_glob("etc/passwd", "../etc/*")
        assert match_normalised_glob("docs/guide.md", "./docs/*.md")
