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

"""Build kubectl invocations for pod log and describe collectors.

Both builders are pure: they resolve the collector's templated fields
against the bindings, validate them, and return the command. ``$NAMESPACE``
is left in the arguments when no namespace is given; it is substituted with
the ambient namespace when the command runs.
"""

from __future__ import annotations

from kubespec_runner import template
from kubespec_runner.apis import Command, Describe, PodLogs
from kubespec_runner.bindings import Bindings
from kubespec_runner.client import Client
from kubespec_runner.constants import ALL_NAMESPACES, KUBECTL, NAMESPACE_PLACEHOLDER
from kubespec_runner.errors import InvalidSpec
from kubespec_runner.resources import ResourceMapper, map_resource


def _check_target(name: str, selector: str) -> None:
    if not name and not selector:
        raise InvalidSpec("a name or selector must be specified")
    if name and selector:
        raise InvalidSpec("name cannot be provided when a selector is specified")


def logs(bindings: Bindings, collector: PodLogs | None) -> tuple[str, list[str]]:
    """Build the ``kubectl logs`` invocation for a pod logs collector.

    Args:
        bindings: Context used to resolve templated fields.
        collector: Pod logs collector spec.

    Returns:
        Tuple of (entrypoint, args).

    Raises:
        InvalidSpec: If the collector is missing or name/selector are invalid.
        TemplateError: If a field fails to resolve.
    """
    if collector is None:
        raise InvalidSpec("collector is null")
    name = template.string(collector.name, bindings)
    namespace = template.string(collector.namespace, bindings)
    selector = template.string(collector.selector, bindings)
    container = template.string(collector.container, bindings)
    _check_target(name, selector)
    args = ["logs", "--prefix"]
    if name:
        args.append(name)
    else:
        args += ["-l", selector]
    args += ["-n", namespace or NAMESPACE_PLACEHOLDER]
    if container:
        args += ["-c", container]
    else:
        args.append("--all-containers")
    tail = template.integer(collector.tail, bindings)
    if tail is not None:
        args += ["--tail", str(tail)]
    return KUBECTL, args


def logs_command(bindings: Bindings, collector: PodLogs | None) -> Command:
    """Wrap the pod logs invocation into a ``Command`` bound to its cluster."""
    entrypoint, args = logs(bindings, collector)
    cluster = template.string(collector.cluster, bindings)
    return Command(entrypoint=entrypoint, args=args, cluster=cluster, timeout=collector.timeout)


def describe(
    client: Client,
    bindings: Bindings,
    collector: Describe | None,
    mapper: ResourceMapper = map_resource,
) -> Command:
    """Build the ``kubectl describe`` command for a describe collector.

    Cluster-scoped resources never carry namespace flags; for namespaced
    resources ``*`` selects ``--all-namespaces`` and an empty namespace
    falls back to ``$NAMESPACE``.

    Args:
        client: Cluster client used by *mapper* for discovery.
        bindings: Context used to resolve templated fields.
        collector: Describe collector spec.
        mapper: Resolves the resource string and whether it is cluster scoped.

    Returns:
        The command to run, targeting the collector's cluster.

    Raises:
        InvalidSpec: If the collector is missing or name/selector are invalid.
        TemplateError: If a field fails to resolve.
        ClusterError: If the resource cannot be mapped.
    """
    if collector is None:
        raise InvalidSpec("collector is null")
    name = template.string(collector.name, bindings)
    namespace = template.string(collector.namespace, bindings)
    selector = template.string(collector.selector, bindings)
    cluster = template.string(collector.cluster, bindings)
    _check_target(name, selector)
    resource, clustered = mapper(client, bindings, collector)
    args = ["describe", resource]
    if name:
        args.append(name)
    else:
        args += ["-l", selector]
    if not clustered:
        if namespace == ALL_NAMESPACES:
            args.append("--all-namespaces")
        else:
            args += ["-n", namespace or NAMESPACE_PLACEHOLDER]
    if collector.show_events is not None:
        args.append(f"--show-events={str(collector.show_events).lower()}")
    return Command(entrypoint=KUBECTL, args=args, cluster=cluster, timeout=collector.timeout)
