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

"""Tests for the pod logs and describe command builders."""

from __future__ import annotations

import pytest

from kubespec_runner import collectors
from kubespec_runner.apis import Describe, PodLogs
from kubespec_runner.bindings import Bindings
from kubespec_runner.errors import InvalidSpec, TemplateError


def _clustered_mapper(client, bindings, reference):
    return "nodes", True


def _namespaced_mapper(client, bindings, reference):
    return "pods", False


# ============================================================================
# logs
# ============================================================================


@pytest.mark.parametrize("collector", [PodLogs(), PodLogs(namespace="ns1", container="c1")])
def test_logs_requires_name_or_selector(collector):
    with pytest.raises(InvalidSpec, match="must be specified"):
        collectors.logs(Bindings(), collector)


def test_logs_rejects_name_and_selector():
    with pytest.raises(InvalidSpec, match="cannot be provided"):
        collectors.logs(Bindings(), PodLogs(name="web-0", selector="app=web"))


def test_logs_rejects_missing_collector():
    with pytest.raises(InvalidSpec, match="collector is null"):
        collectors.logs(Bindings(), None)


def test_logs_defaults_to_namespace_placeholder_and_all_containers():
    entrypoint, args = collectors.logs(Bindings(), PodLogs(name="web-0"))
    assert entrypoint == "kubectl"
    assert args == ["logs", "--prefix", "web-0", "-n", "$NAMESPACE", "--all-containers"]


def test_logs_with_namespace_container_and_tail():
    _, args = collectors.logs(Bindings(), PodLogs(selector="app=web", namespace="ns1", container="c1", tail=10))
    assert args == ["logs", "--prefix", "-l", "app=web", "-n", "ns1", "-c", "c1", "--tail", "10"]
    assert "--all-containers" not in args


def test_logs_resolves_templates():
    bindings = Bindings().register("pod", "web-1").register("lines", 5)
    _, args = collectors.logs(bindings, PodLogs(name="($pod)", tail="($lines)"))
    assert args[2] == "web-1"
    assert args[-2:] == ["--tail", "5"]


def test_logs_undefined_variable_is_template_error():
    with pytest.raises(TemplateError):
        collectors.logs(Bindings(), PodLogs(name="($missing)"))


def test_logs_command_carries_cluster_and_timeout():
    command = collectors.logs_command(Bindings(), PodLogs(name="web-0", cluster="other", timeout="1m"))
    assert command.entrypoint == "kubectl"
    assert command.cluster == "other"
    assert command.timeout == 60


# ============================================================================
# describe
# ============================================================================


def test_describe_requires_name_or_selector(client):
    with pytest.raises(InvalidSpec, match="must be specified"):
        collectors.describe(client, Bindings(), Describe(resource="pods"), _namespaced_mapper)


def test_describe_rejects_name_and_selector(client):
    collector = Describe(resource="pods", name="web-0", selector="app=web")
    with pytest.raises(InvalidSpec, match="cannot be provided"):
        collectors.describe(client, Bindings(), collector, _namespaced_mapper)


@pytest.mark.parametrize("namespace", ["", "ns1", "*"])
def test_describe_cluster_scoped_has_no_namespace_flags(client, namespace):
    collector = Describe(resource="nodes", name="node-1", namespace=namespace)
    command = collectors.describe(client, Bindings(), collector, _clustered_mapper)
    assert command.args == ["describe", "nodes", "node-1"]
    assert "-n" not in command.args
    assert "--all-namespaces" not in command.args


def test_describe_all_namespaces(client):
    collector = Describe(resource="pods", selector="app=web", namespace="*")
    command = collectors.describe(client, Bindings(), collector, _namespaced_mapper)
    assert command.args == ["describe", "pods", "-l", "app=web", "--all-namespaces"]


def test_describe_namespace_placeholder_and_events(client):
    collector = Describe(resource="pods", name="web-0", show_events=False)
    command = collectors.describe(client, Bindings(), collector, _namespaced_mapper)
    assert command.args == ["describe", "pods", "web-0", "-n", "$NAMESPACE", "--show-events=false"]


def test_describe_maps_api_version_and_kind(client):
    collector = Describe(api_version="apps/v1", kind="Deployment", name="web", namespace="ns1", cluster="other")
    command = collectors.describe(client, Bindings(), collector)
    assert command.entrypoint == "kubectl"
    assert command.args == ["describe", "deployments.apps", "web", "-n", "ns1"]
    assert command.cluster == "other"


def test_describe_default_mapper_rejects_ambiguous_reference(client):
    collector = Describe(resource="pods", api_version="v1", kind="Pod", name="web-0")
    with pytest.raises(InvalidSpec):
        collectors.describe(client, Bindings(), collector)
