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
JSON format reporter.
"""

import json
from typing import Any

from ..models import PolicyResult, ScanResults


class JSONReporter:
    """Serialises gate results and the policy decision as JSON."""

    def __init__(self, pretty: bool = True):
        self.pretty = pretty

    def build(self, results: ScanResults, policy: PolicyResult) -> dict[str, Any]:
        data = results.to_dict()
        data["policy"] = policy.to_dict()
        return data

    def generate_report(self, results: ScanResults, policy: PolicyResult) -> str:
        return json.dumps(self.build(results, policy), indent=2 if self.pretty else None, default=str)
