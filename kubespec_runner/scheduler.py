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

"""Top-level test scheduler: cluster, namespace, scenarios, and fail-fast."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Protocol

from rich.markup import escape
from rich.panel import Panel

from kubespec_runner import console, logger
from kubespec_runner.bindings import Bindings, register_cluster_bindings
from kubespec_runner.client import Namespacer
from kubespec_runner.clusters import Registry
from kubespec_runner.config import Configuration
from kubespec_runner.constants import BINDING_TEST
from kubespec_runner.discovery import DiscoveredTest
from kubespec_runner.errors import ClusterError, KubespecError
from kubespec_runner.names import InstanceIdentity, display_name, identity
from kubespec_runner.namespaces import provision_namespace
from kubespec_runner.processors import TestProcessor
from kubespec_runner.report import InstanceReport, Report
from kubespec_runner.scope import Scope, run_in_scope
from kubespec_runner.summary import FailFast, Summary


class InstanceRunner(Protocol):
    def run(self, scope: Scope, bindings: Bindings, namespacer: Namespacer | None) -> None: ...


ProcessorFactory = Callable[[DiscoveredTest], InstanceRunner]


@dataclass(frozen=True)
class ScheduledTest:
    """A test instance ready to be scheduled."""

    identity: InstanceIdentity
    test: DiscoveredTest

    @property
    def concurrent(self) -> bool:
        return self.test.test.spec.concurrent is None or self.test.test.spec.concurrent

    @property
    def skip(self) -> bool:
        return bool(self.test.test.spec.skip)


def expand_scenarios(test: DiscoveredTest) -> list[DiscoveredTest]:
    """Expand a test into one instance per scenario.

    A test without scenarios is its own single instance. Otherwise each
    instance carries the scenario bindings followed by the test bindings,
    and no scenarios of its own.
    """
    scenarios = test.test.spec.scenarios
    if not scenarios:
        return [test]
    instances = []
    for scenario in scenarios:
        copy = test.test.model_copy(deep=True)
        copy.spec.scenarios = []
        copy.spec.bindings = [b.model_copy(deep=True) for b in scenario.bindings] + copy.spec.bindings
        instances.append(DiscoveredTest(base_path=test.base_path, test=copy))
    return instances


def schedule(config: Configuration, tests: Iterable[DiscoveredTest]) -> list[ScheduledTest]:
    """Expand *tests* into instances with identities in declaration order.

    Raises:
        InvalidSpec: If a test has no valid name.
    """
    scheduled = []
    for test_id, test in enumerate(tests, 1):
        name = display_name(config, test.test, test.base_path)
        instances = expand_scenarios(test)
        for scenario_id, instance in enumerate(instances, 1):
            scheduled.append(ScheduledTest(identity(name, test_id, scenario_id, len(instances)), instance))
    return scheduled


class TestsProcessor:
    """Runs every discovered test against the default cluster.

    Cluster resolution and namespace provisioning happen once; any failure
    there aborts the run before a test is scheduled. Concurrent instances go
    to a worker pool, the others run inline on the scheduling thread.
    """

    def __init__(
        self,
        config: Configuration,
        clusters: Registry,
        summary: Summary | None = None,
        report: Report | None = None,
        tests: Iterable[DiscoveredTest] = (),
        processor_factory: ProcessorFactory | None = None,
    ) -> None:
        self.config = config
        self.clusters = clusters
        self.summary = summary
        self.report = report
        self.tests = list(tests)
        self.processor_factory = processor_factory
        self._output_lock = threading.Lock()

    def create_test_processor(self, test: DiscoveredTest) -> InstanceRunner:
        if self.processor_factory is not None:
            return self.processor_factory(test)
        return TestProcessor(self.config, self.clusters, test)

    def run(self, scope: Scope, bindings: Bindings | None = None) -> None:
        if bindings is None:
            bindings = Bindings()
        if self.report is not None:
            self.report.set_start_time()
            scope.cleanup(self.report.set_end_time)
        try:
            cluster, client = self.clusters.resolve(False)
        except ClusterError as err:
            logger.error("failed to resolve default cluster: %s", err)
            scope.error(str(err))
            scope.fail_now()
        bindings = register_cluster_bindings(bindings, cluster, client)
        namespacer = None
        if client is not None:
            namespace = self.config.namespace
            bindings, namespacer = provision_namespace(
                scope, namespace.name, namespace.template, client, bindings, cluster,
                self.config.cleanup.skip_delete, self.config.timeouts.cleanup,
            )
        try:
            instances = schedule(self.config, self.tests)
        except KubespecError as err:
            logger.error("failed to schedule tests: %s", err)
            scope.error(str(err))
            scope.fail_now()
        fail_fast = FailFast()
        with ThreadPoolExecutor(max_workers=self.config.execution.parallel, thread_name_prefix="test") as executor:
            futures = []
            for instance in instances:
                if instance.concurrent:
                    futures.append(executor.submit(self._run_instance, scope, instance, bindings, namespacer, fail_fast))
                else:
                    self._run_instance(scope, instance, bindings, namespacer, fail_fast)
            for future in as_completed(futures):
                future.result()

    def _run_instance(
        self,
        parent: Scope,
        instance: ScheduledTest,
        bindings: Bindings,
        namespacer: Namespacer | None,
        fail_fast: FailFast,
    ) -> None:
        scope = parent.child(instance.identity.display)
        report = None
        if self.report is not None:
            report = self.report.for_test(
                instance.identity.display, str(instance.test.base_path),
                instance.identity.test_id, instance.identity.scenario_id,
            )
        scope.cleanup(lambda: self._record_outcome(scope, report))
        scope.cleanup(lambda: fail_fast.mark() if scope.failed else None)
        with console.buffered() as buf:
            console.print(Panel.fit(f"Running {escape(instance.identity.display)}", style="bold blue"))
            run_in_scope(scope, lambda s: self._run_test(s, instance, bindings, namespacer, fail_fast, report))
            if scope.skipped:
                console.print(f"[yellow]⏭  {escape(instance.identity.display)} skipped[/yellow]")
            elif scope.failed:
                console.print(f"[red]❌ {escape(instance.identity.display)} failed[/red]")
            else:
                console.print(f"[green]✅ {escape(instance.identity.display)} passed[/green]")
            output = buf.getvalue()
        with self._output_lock:
            console.print(output, end="", markup=False, highlight=False)

    def _run_test(
        self,
        scope: Scope,
        instance: ScheduledTest,
        bindings: Bindings,
        namespacer: Namespacer | None,
        fail_fast: FailFast,
        report: InstanceReport | None,
    ) -> None:
        if instance.skip:
            scope.skip_now()
        if self.config.execution.fail_fast and fail_fast.is_tripped():
            scope.skip_now()
        if report is not None:
            report.set_start_time()
        info = {
            "id": instance.identity.test_id,
            "scenarioId": instance.identity.scenario_id,
            "metadata": instance.test.test.metadata.model_dump(by_alias=True),
        }
        processor = self.create_test_processor(instance.test)
        processor.run(scope, bindings.register(BINDING_TEST, info), namespacer)

    def _record_outcome(self, scope: Scope, report: InstanceReport | None) -> None:
        if self.summary is not None:
            if scope.skipped:
                self.summary.inc_skipped()
            elif scope.failed:
                self.summary.inc_failed()
            else:
                self.summary.inc_passed()
        if report is not None:
            report.skipped = scope.skipped
            report.failed = scope.failed and not scope.skipped
            report.failures = scope.messages
            report.set_end_time()
