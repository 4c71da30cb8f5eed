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

"""Run report: timings and per-test outcomes, saved as JSON or YAML."""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import yaml

from kubespec_runner.constants import REPORT_FORMAT_JSON, REPORT_FORMAT_YAML


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class InstanceReport:
    """Outcome of one test instance."""

    name: str
    base_path: str = ""
    id: int = 0
    scenario_id: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None
    failed: bool = False
    skipped: bool = False
    failures: list[str] = field(default_factory=list)

    def set_start_time(self, when: datetime | None = None) -> None:
        self.start_time = when or _now()

    def set_end_time(self, when: datetime | None = None) -> None:
        self.end_time = when or _now()


class Report:
    """Collects test reports from concurrent tests."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.start_time: datetime | None = None
        self.end_time: datetime | None = None
        self._tests: list[InstanceReport] = []
        self._lock = threading.Lock()

    def set_start_time(self, when: datetime | None = None) -> None:
        self.start_time = when or _now()

    def set_end_time(self, when: datetime | None = None) -> None:
        self.end_time = when or _now()

    def for_test(self, name: str, base_path: str = "", test_id: int = 0, scenario_id: int = 0) -> InstanceReport:
        test = InstanceReport(name=name, base_path=base_path, id=test_id, scenario_id=scenario_id)
        with self._lock:
            self._tests.append(test)
        return test

    @property
    def tests(self) -> list[InstanceReport]:
        with self._lock:
            return sorted(self._tests, key=lambda t: (t.id, t.scenario_id))

    def to_dict(self) -> dict:
        def _ts(value: datetime | None) -> str | None:
            return value.isoformat() if value else None

        tests = []
        for test in self.tests:
            data = asdict(test)
            data["start_time"] = _ts(test.start_time)
            data["end_time"] = _ts(test.end_time)
            tests.append(data)
        return {
            "name": self.name,
            "start_time": _ts(self.start_time),
            "end_time": _ts(self.end_time),
            "tests": tests,
        }

    def save(self, fmt: str, path: Path) -> Path:
        """Write the report to folder *path*.

        Args:
            fmt: ``JSON`` or ``YAML``.
            path: Destination folder, created when missing.

        Returns:
            Path of the written file.

        Raises:
            ValueError: If *fmt* is not supported.
        """
        path.mkdir(parents=True, exist_ok=True)
        if fmt == REPORT_FORMAT_JSON:
            target = path / f"{self.name}.json"
            target.write_text(json.dumps(self.to_dict(), indent=2))
        elif fmt == REPORT_FORMAT_YAML:
            target = path / f"{self.name}.yaml"
            target.write_text(yaml.safe_dump(self.to_dict(), sort_keys=False))
        else:
            raise ValueError(f"unsupported report format: {fmt}")
        return target
