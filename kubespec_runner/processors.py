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

"""Per-test and per-step processors turning test steps into operations."""

from __future__ import annotations

import time
from functools import partial

from rich.markup import escape

from kubespec_runner import apis, collectors, console, logger, template
from kubespec_runner.actions import (
    apply_action,
    assert_action,
    command_action,
    command_env,
    create_action,
    delete_action,
    load_resources,
    script_action,
    sleep_action,
)
from kubespec_runner.bindings import Bindings, register_bindings, register_cluster_bindings
from kubespec_runner.client import Client, Namespacer
from kubespec_runner.clusters import ClusterConfig, Registry
from kubespec_runner.config import Configuration, TimeoutsConfig
from kubespec_runner.constants import BINDING_NAMESPACE, BINDING_STEP, POLL_INTERVAL_SECONDS, PROPAGATION_BACKGROUND
from kubespec_runner.discovery import DiscoveredTest
from kubespec_runner.errors import ClusterError, KubespecError
from kubespec_runner.namespaces import ephemeral_namespace_name, provision_namespace, skip_delete
from kubespec_runner.operations import Operation, OperationInfo, resolve_timeout
from kubespec_runner.scope import FailNow, Scope


class TestProcessor:
    """Runs the steps of one test instance in its own scope.

    Resolves the test's cluster, provisions a namespace when the run did not
    provide one (or the test asks for its own), registers the test bindings
    and runs the steps in order, stopping at the first failed step.
    """

    def __init__(
        self,
        config: Configuration,
        clusters: Registry,
        test: DiscoveredTest,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self.config = config
        self.clusters = clusters
        self.test = test
        self.poll_interval = poll_interval

    def run(self, scope: Scope, bindings: Bindings, namespacer: Namespacer | None) -> None:
        spec = self.test.test.spec
        timeouts = self.config.timeouts.with_overrides(spec.timeouts)
        try:
            cluster, client = self.clusters.resolve(bool(spec.cluster), spec.cluster)
        except ClusterError as err:
            logger.error("failed to resolve cluster %s: %s", spec.cluster, err)
            scope.error(str(err))
            scope.fail_now()
        bindings = register_cluster_bindings(bindings, cluster, client, spec.cluster)
        skip = skip_delete(self.config.cleanup.skip_delete, spec.skip_delete)
        if client is not None and (namespacer is None or spec.namespace or spec.cluster):
            try:
                name = template.string(spec.namespace, bindings) or ephemeral_namespace_name()
            except KubespecError as err:
                scope.error(f"namespace: {err}")
                scope.fail_now()
            bindings, namespacer = provision_namespace(
                scope, name, spec.namespace_template or self.config.namespace.template,
                client, bindings, cluster, skip, timeouts.cleanup,
            )
        try:
            bindings = register_bindings(bindings, spec.bindings, template.resolve)
        except KubespecError as err:
            logger.error("failed to register bindings: %s", err)
            scope.error(f"bindings: {err}")
            scope.fail_now()
        try:
            for step_id, step in enumerate(spec.steps, 1):
                processor = StepProcessor(
                    self.test, step, step_id, self.clusters, cluster, client, namespacer, timeouts, skip,
                    self.poll_interval,
                )
                processor.run(scope, bindings)
                if scope.failed:
                    break
        finally:
            if self.config.cleanup.delay_before_cleanup:
                scope.cleanup(partial(time.sleep, self.config.cleanup.delay_before_cleanup))


class StepProcessor:
    """Runs one step: ``try`` until the first failure, ``catch`` on failure, ``finally`` always.

    The step's ``cleanup`` block is registered on the test scope, so it runs
    when the test ends, after later steps' cleanups.
    """

    def __init__(
        self,
        test: DiscoveredTest,
        step: apis.TestStep,
        step_id: int,
        clusters: Registry,
        cluster: ClusterConfig | None,
        client: Client | None,
        namespacer: Namespacer | None,
        timeouts: TimeoutsConfig,
        skip: bool,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self.test = test
        self.step = step
        self.step_id = step_id
        self.clusters = clusters
        self.cluster = cluster
        self.client = client
        self.namespacer = namespacer
        self.timeouts = timeouts
        self.skip = skip
        self.poll_interval = poll_interval

    def run(self, scope: Scope, bindings: Bindings) -> None:
        console.print(f"[bold]Step {self.step_id}[/bold] {escape(self.step.name)}")
        bindings = bindings.register(BINDING_STEP, {"id": self.step_id, "name": self.step.name})
        try:
            bindings = register_bindings(bindings, self.step.bindings, template.resolve)
        except KubespecError as err:
            scope.error(f"step {self.step_id} bindings: {err}")
            return
        if self.step.cleanup:
            scope.cleanup(partial(self._run_block, scope, bindings, self.step.cleanup, True))
        bindings, ok = self._run_block(scope, bindings, self.step.try_)
        if not ok:
            self._run_block(scope, bindings, self.step.catch)
        self._run_block(scope, bindings, self.step.finally_)

    def _run_block(
        self,
        scope: Scope,
        bindings: Bindings,
        block: list[apis.Operation],
        cleanup: bool = False,
    ) -> tuple[Bindings, bool]:
        """Run operations in order until one fails, threading bindings forward."""
        for op_id, spec in enumerate(block, 1):
            try:
                operations = self._operations(scope, op_id, spec, cleanup)
            except KubespecError as err:
                logger.error("invalid operation %s: %s", op_id, err)
                if not cleanup:
                    scope.error(f"{spec.kind} #{op_id}: {err}")
                return bindings, False
            for operation in operations:
                try:
                    result = operation.execute(scope, bindings)
                except FailNow:
                    return bindings, False
                bindings = result.bindings
                if not result.ok:
                    return bindings, False
        return bindings, True

    # -- operation builders --

    def _resolve_cluster(self, name: str) -> tuple[ClusterConfig | None, Client | None]:
        if not name:
            return self.cluster, self.client
        return self.clusters.resolve(True, name)

    def _require_client(self, client: Client | None) -> Client:
        if client is None:
            raise ClusterError("no cluster configured")
        return client

    def _operations(self, scope: Scope, op_id: int, spec: apis.Operation, cleanup: bool) -> list[Operation]:
        body = spec.body
        kind = spec.kind
        info = OperationInfo(id=op_id, kind=kind, description=spec.description)
        if kind in ("apply", "create", "assert"):
            resources = load_resources(body.file, body.resource, self.test.base_path)
            default = self.timeouts.assertion if kind == "assert" else self.timeouts.apply
            timeout = resolve_timeout(body.timeout, default)
            return [
                Operation(
                    OperationInfo(id=op_id, resource_id=i if len(resources) > 1 else 0, kind=kind,
                                  description=spec.description),
                    cleanup, timeout, partial(self._resource_factory, scope, kind, resource),
                )
                for i, resource in enumerate(resources, 1)
            ]
        if kind == "delete":
            if body.file:
                resources = load_resources(body.file, None, self.test.base_path)
            else:
                resources = [{
                    "apiVersion": body.api_version,
                    "kind": body.kind,
                    "metadata": {"name": body.name, "namespace": body.namespace},
                }]
            propagation = body.propagation_policy or PROPAGATION_BACKGROUND
            timeout = resolve_timeout(body.timeout, self.timeouts.delete)
            return [
                Operation(info, cleanup, timeout, partial(self._delete_factory, resource, propagation))
                for resource in resources
            ]
        if kind == "sleep":
            return [Operation(info, cleanup, None, lambda bindings: (sleep_action(body.duration), bindings))]
        timeout = resolve_timeout(body.timeout, self.timeouts.exec)
        return [Operation(info, cleanup, timeout, partial(self._process_factory, kind, body))]

    def _resource_factory(self, scope: Scope, kind: str, resource: dict, bindings: Bindings):
        client = self._require_client(self.client)
        obj = template.resolve(resource, bindings)
        if self.namespacer is not None:
            self.namespacer.apply(obj)
        if kind == "assert":
            return assert_action(client, obj, self.poll_interval), bindings
        if kind == "apply":
            return apply_action(client, obj), bindings
        if not self.skip:
            scope.cleanup(partial(self._delete_created, scope, client, obj, bindings))
        return create_action(client, obj), bindings

    def _delete_created(self, scope: Scope, client: Client, obj: dict, bindings: Bindings) -> None:
        def _factory(bindings: Bindings):
            bindings = register_cluster_bindings(bindings, self.cluster, client, self.test.test.spec.cluster)
            return delete_action(client, obj, PROPAGATION_BACKGROUND, self.poll_interval), bindings

        info = OperationInfo(kind="delete", description=f"cleanup {obj.get('kind', '')} {obj['metadata'].get('name', '')}")
        Operation(info, True, self.timeouts.cleanup, _factory).execute(scope, bindings)

    def _delete_factory(self, resource: dict, propagation: str, bindings: Bindings):
        client = self._require_client(self.client)
        obj = template.resolve(resource, bindings)
        if not obj["metadata"].get("namespace"):
            obj["metadata"].pop("namespace", None)
        if self.namespacer is not None:
            self.namespacer.apply(obj)
        return delete_action(client, obj, propagation, self.poll_interval), bindings

    def _process_factory(self, kind: str, body, bindings: Bindings):
        cluster, client = self._resolve_cluster(template.string(body.cluster, bindings))
        if kind == "describe":
            command = collectors.describe(self._require_client(client), bindings, body)
        elif kind == "pod_logs":
            command = collectors.logs_command(bindings, body)
        elif kind == "command":
            command = apis.Command(
                entrypoint=template.string(body.entrypoint, bindings),
                args=[str(arg) for arg in template.resolve(body.args, bindings)],
                cluster=template.string(body.cluster, bindings),
                timeout=body.timeout,
            )
        else:
            command = None
        env = command_env(str(bindings.get(BINDING_NAMESPACE) or ""), cluster)
        if command is None:
            return script_action(body.content, env), bindings
        return command_action(command, env, cluster), bindings
