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

"""Namespace provisioning with get-or-create semantics and deferred deletion."""

from __future__ import annotations

import uuid

from rich.markup import escape

from kubespec_runner import console, logger, template
from kubespec_runner.actions import delete_action
from kubespec_runner.bindings import Bindings, register_cluster_bindings
from kubespec_runner.client import Client, Namespacer, ObjectKey, namespace_object
from kubespec_runner.clusters import ClusterConfig
from kubespec_runner.constants import (
    BINDING_NAMESPACE,
    NAMESPACE_PREFIX,
    NAMESPACE_SUFFIX_LENGTH,
    PROPAGATION_BACKGROUND,
)
from kubespec_runner.errors import KubespecError, NotFoundError
from kubespec_runner.operations import Operation, OperationInfo
from kubespec_runner.scope import Scope


def ephemeral_namespace_name() -> str:
    """Generate a unique namespace name for a single test."""
    return f"{NAMESPACE_PREFIX}-{uuid.uuid4().hex[:NAMESPACE_SUFFIX_LENGTH]}"


def skip_delete(*policies: bool | None) -> bool:
    """Return the innermost explicit skip-delete policy, False if none is set.

    Args:
        *policies: Policies from the outermost (configuration) to the
            innermost (test or step) level; None means "not set".
    """
    result = False
    for policy in policies:
        if policy is not None:
            result = policy
    return result


def provision_namespace(
    scope: Scope,
    name: str,
    namespace_template: dict | None,
    client: Client | None,
    bindings: Bindings,
    cluster: ClusterConfig | None,
    skip: bool,
    cleanup_timeout: float | None,
) -> tuple[Bindings, Namespacer | None]:
    """Make sure the namespace *name* exists before tests use it.

    An existing namespace is reused and left alone. A missing one is created,
    and its deletion is registered on *scope* before the create call so a
    half-created namespace is still cleaned up.

    Args:
        scope: Scope that owns the namespace and its cleanup.
        name: Namespace name; empty means no provisioning.
        namespace_template: Optional template merged over the namespace.
        client: Cluster client, or None when no cluster is configured.
        bindings: Context to extend with the ``namespace`` binding.
        cluster: Cluster configuration re-registered at cleanup time.
        skip: When True the deletion is not registered.
        cleanup_timeout: Timeout of the deletion operation.

    Returns:
        Tuple of (bindings, namespacer); the namespacer is None when nothing
        was provisioned.

    Raises:
        FailNow: If the template, the lookup, or the creation fails.
    """
    if not name or client is None:
        return bindings, None
    obj = namespace_object(name)
    bindings = bindings.register(BINDING_NAMESPACE, name)
    if namespace_template:
        try:
            obj = template.merge(obj, bindings, namespace_template)
        except KubespecError as err:
            logger.error("failed to merge namespace template: %s", err)
            scope.error(f"namespace template: {err}")
            scope.fail_now()
        name = obj["metadata"]["name"]
        bindings = bindings.register(BINDING_NAMESPACE, name)
    namespacer = Namespacer(client, name)
    try:
        client.get(ObjectKey.of(obj))
        console.print(f"[yellow]ℹ️  Using existing namespace {escape(name)}[/yellow]")
        return bindings, namespacer
    except NotFoundError:
        pass
    except Exception as err:
        logger.error("failed to get namespace %s: %s", name, err)
        scope.error(f"get namespace {name}: {err}")
        scope.fail_now()
    if not skip:
        scope.cleanup(lambda: _delete_namespace(scope, obj, client, cluster, bindings, cleanup_timeout))
    try:
        client.create(obj)
    except Exception as err:
        logger.error("failed to create namespace %s: %s", name, err)
        scope.error(f"create namespace {name}: {err}")
        scope.fail_now()
    console.print(f"[green]✓ Created namespace {escape(name)}[/green]")
    return bindings, namespacer


def _delete_namespace(
    scope: Scope,
    obj: dict,
    client: Client,
    cluster: ClusterConfig | None,
    bindings: Bindings,
    timeout: float | None,
) -> None:
    def _factory(bindings: Bindings):
        bindings = register_cluster_bindings(bindings, cluster, client)
        return delete_action(client, obj, PROPAGATION_BACKGROUND), bindings

    operation = Operation(
        OperationInfo(kind="delete", description=f"namespace {obj['metadata']['name']}"),
        True,
        timeout,
        _factory,
    )
    operation.execute(scope, bindings)
