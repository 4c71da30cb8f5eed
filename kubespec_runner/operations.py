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

"""Timeout-bounded operations built lazily from the current bindings."""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass
from typing import Any

from rich.markup import escape

from kubespec_runner import console, logger
from kubespec_runner.bindings import Bindings
from kubespec_runner.constants import TIMEOUT_GRACE_SECONDS
from kubespec_runner.errors import OperationTimeout
from kubespec_runner.scope import Scope

Action = Callable[[float | None], dict[str, Any] | None]
OperationFactory = Callable[[Bindings], tuple[Action, Bindings]]


@dataclass(frozen=True)
class OperationInfo:
    """Display metadata of an operation.

    Attributes:
        id: 1-based position of the operation in its step block.
        resource_id: 1-based position of the resource in a multi-document file.
        kind: Operation kind (``create``, ``assert``...).
        description: Free-form description from the test file.
    """

    id: int = 0
    resource_id: int = 0
    kind: str = ""
    description: str = ""

    def __str__(self) -> str:
        label = self.kind or "operation"
        if self.id:
            label = f"{label} #{self.id}"
        if self.resource_id:
            label = f"{label}.{self.resource_id}"
        if self.description:
            label = f"{label} ({self.description})"
        return label


@dataclass
class OperationResult:
    outputs: dict[str, Any] | None
    bindings: Bindings
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_timeout(value: float | None, default: float | None) -> float | None:
    """Return the operation's own timeout, or *default* when it has none."""
    return value if value is not None else default


def run_with_timeout(
    action: Action, timeout: float | None, grace: float = TIMEOUT_GRACE_SECONDS,
) -> dict[str, Any] | None:
    """Run *action* in a worker thread and wait at most *timeout* plus *grace* seconds.

    The action receives *timeout* alone so blocking calls it makes can
    honour it and fail with their own error first; a worker that still
    overruns the grace period is abandoned, not killed.

    Raises:
        OperationTimeout: If the action does not finish in time.
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="operation")
    future = executor.submit(action, timeout)
    try:
        return future.result(timeout=None if timeout is None else timeout + grace)
    except FutureTimeout as err:
        if future.done():
            raise
        raise OperationTimeout(f"timed out after {timeout:g}s") from err
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


class Operation:
    """A unit of cluster work with a timeout and a lazily built action.

    The factory runs at execution time so cluster and namespace bindings are
    those current when the operation executes, not when it was registered.
    Cleanup operations only log their failures.
    """

    def __init__(
        self,
        info: OperationInfo,
        cleanup: bool,
        timeout: float | None,
        factory: OperationFactory,
        state: dict[str, Any] | None = None,
    ) -> None:
        self.info = info
        self.cleanup = cleanup
        self.timeout = timeout
        self.factory = factory
        self.state = state

    def execute(self, scope: Scope, bindings: Bindings) -> OperationResult:
        """Build and run the action, returning its outputs and bindings.

        Outputs are registered as bindings so later operations can use them.

        Raises:
            FailNow: If the factory fails for a non-cleanup operation.
        """
        try:
            action, bindings = self.factory(bindings)
        except Exception as err:
            logger.error("failed to prepare %s: %s", self.info, err)
            if self.cleanup:
                return OperationResult(None, bindings, err)
            scope.error(f"{self.info}: {err}")
            scope.fail_now()
        try:
            outputs = run_with_timeout(action, self.timeout)
        except Exception as err:
            console.print(f"[red]✗ {escape(str(self.info))} - {escape(str(err))}[/red]")
            if self.cleanup:
                logger.warning("cleanup %s failed: %s", self.info, err)
            else:
                scope.error(f"{self.info}: {err}")
            return OperationResult(None, bindings, err)
        console.print(f"[green]✓ {escape(str(self.info))}[/green]")
        if outputs:
            for name, value in outputs.items():
                if isinstance(value, str) and value.strip():
                    console.print(escape(value.rstrip()), highlight=False)
                bindings = bindings.register(name, value)
            self.state = outputs
        return OperationResult(outputs, bindings, None)
