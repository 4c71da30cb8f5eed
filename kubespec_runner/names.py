# /*
# Copyright 2026 The Grove Authors.
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
# */

"""Test display names and deterministic instance identities."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from kubespec_runner.apis import Test
from kubespec_runner.config import Configuration
from kubespec_runner.errors import InvalidSpec


@dataclass(frozen=True)
class InstanceIdentity:
    """Identity of one scheduled test instance.

    Attributes:
        name: Display name of the declared test.
        test_id: 1-based declaration order of the test.
        scenario_id: 1-based order of the scenario within the test.
        scenarios: Number of instances the test expanded into.
    """

    name: str
    test_id: int
    scenario_id: int
    scenarios: int = 1

    @property
    def display(self) -> str:
        if self.scenarios > 1:
            return f"{self.name}#{self.scenario_id}"
        return self.name


def display_name(config: Configuration, test: Test, base_path: Path | str = "") -> str:
    """Compute the display name of a declared test.

    Raises:
        InvalidSpec: If the test has no name.
    """
    name = test.metadata.name
    if not name:
        raise InvalidSpec(f"test name must not be empty ({base_path or 'inline test'})")
    if not config.discovery.full_name or not base_path:
        return name
    return f"{os.path.relpath(base_path)}[{name}]"


def identity(name: str, test_id: int, scenario_id: int, scenarios: int = 1) -> InstanceIdentity:
    """Build the identity of instance *scenario_id* of test *test_id*."""
    return InstanceIdentity(name=name, test_id=test_id, scenario_id=scenario_id, scenarios=scenarios)
