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
Security Gate - Policy gate for leaked secrets and security findings.
"""

__version__ = "1.0.0"

__author__ = "Cisco Systems, Inc."


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Keeps ``python -m security_gate.cli.cli`` from importing the whole
    scanning pipeline just to resolve the package.
    """
    _lazy_map = {
        "Config": (".config.config", "Config"),
        "SecurityGateConstants": (".config.constants", "SecurityGateConstants"),
        "Finding": (".core.models", "Finding"),
        "PolicyResult": (".core.models", "PolicyResult"),
        "ScanResults": (".core.models", "ScanResults"),
        "Severity": (".core.models", "Severity"),
        "GateConfig": (".core.gate_config", "GateConfig"),
        "GateRunner": (".core.orchestrator", "GateRunner"),
        "run_gate": (".core.orchestrator", "run_gate"),
        "compile_rules": (".core.rules", "compile_rules"),
        "apply_allowlist": (".core.exclusions", "apply_allowlist"),
        "evaluate_policy": (".core.policy", "evaluate_policy"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "GateRunner",
    "run_gate",
    "GateConfig",
    "Finding",
    "ScanResults",
    "PolicyResult",
    "Severity",
    "compile_rules",
    "apply_allowlist",
    "evaluate_policy",
    "Config",
    "SecurityGateConstants",
]
