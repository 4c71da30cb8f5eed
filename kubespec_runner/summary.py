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

"""Run-wide shared state: outcome counters and the fail-fast flag."""

from __future__ import annotations

import threading


class FailFast:
    """One-way flag tripped by the first failed test of a run."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def mark(self) -> None:
        self._event.set()

    def is_tripped(self) -> bool:
        return self._event.is_set()


class Summary:
    """Thread-safe passed/failed/skipped counters."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._passed = 0
        self._failed = 0
        self._skipped = 0

    def inc_passed(self) -> None:
        with self._lock:
            self._passed += 1

    def inc_failed(self) -> None:
        with self._lock:
            self._failed += 1

    def inc_skipped(self) -> None:
        with self._lock:
            self._skipped += 1

    @property
    def passed(self) -> int:
        with self._lock:
            return self._passed

    @property
    def failed(self) -> int:
        with self._lock:
            return self._failed

    @property
    def skipped(self) -> int:
        with self._lock:
            return self._skipped

    def as_dict(self) -> dict[str, int]:
        with self._lock:
            return {"passed": self._passed, "failed": self._failed, "skipped": self._skipped}
