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

"""Execution scopes with failure state and LIFO cleanup stacks."""

from __future__ import annotations

import threading
from collections.abc import Callable

from kubespec_runner import logger


class FailNow(Exception):
    """Aborts the current scope after marking it failed."""


class SkipNow(Exception):
    """Aborts the current scope after marking it skipped."""


class Scope:
    """Outcome state and deferred cleanups of one run, test, or step.

    A failure propagates to every ancestor so a run with a failed test is
    itself failed. Cleanups run in reverse registration order when the
    scope exits, however it exits.
    """

    def __init__(self, name: str = "", parent: Scope | None = None) -> None:
        self.name = name
        self.parent = parent
        self._failed = False
        self._skipped = False
        self._messages: list[str] = []
        self._cleanups: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        if self.parent is None or not self.parent.path:
            return self.name
        return f"{self.parent.path}/{self.name}"

    @property
    def failed(self) -> bool:
        with self._lock:
            return self._failed

    @property
    def skipped(self) -> bool:
        with self._lock:
            return self._skipped

    @property
    def messages(self) -> list[str]:
        with self._lock:
            return list(self._messages)

    def child(self, name: str) -> Scope:
        return Scope(name, parent=self)

    def error(self, message: str) -> None:
        """Record a failure message and mark the scope failed."""
        with self._lock:
            self._messages.append(message)
        self.fail()

    def fail(self) -> None:
        scope: Scope | None = self
        while scope is not None:
            with scope._lock:
                scope._failed = True
            scope = scope.parent

    def fail_now(self) -> None:
        self.fail()
        raise FailNow(self.path)

    def skip_now(self) -> None:
        with self._lock:
            self._skipped = True
        raise SkipNow(self.path)

    def cleanup(self, fn: Callable[[], None]) -> None:
        """Register *fn* to run when the scope exits."""
        with self._lock:
            self._cleanups.append(fn)

    def run_cleanups(self) -> None:
        """Drain the cleanup stack, last registered first.

        A failing cleanup is logged and the remaining ones still run.
        """
        while True:
            with self._lock:
                if not self._cleanups:
                    return
                fn = self._cleanups.pop()
            try:
                fn()
            except (FailNow, SkipNow):
                logger.warning("cleanup of %s aborted", self.path or "run")
            except Exception:
                logger.exception("cleanup of %s failed", self.path or "run")


def run_in_scope(scope: Scope, fn: Callable[[Scope], None]) -> Scope:
    """Run *fn* in *scope*, then its cleanups, and return the scope.

    ``FailNow`` and ``SkipNow`` end the body early; any other exception marks
    the scope failed. Cleanups always run.
    """
    try:
        fn(scope)
    except (FailNow, SkipNow):
        pass
    except Exception as err:
        logger.exception("unexpected error in %s", scope.path or "run")
        scope.error(str(err))
    finally:
        scope.run_cleanups()
    return scope
