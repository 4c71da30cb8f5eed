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

"""Tests for the kubectl-backed client's discovery and error mapping."""

from __future__ import annotations

import pytest

from kubespec_runner import client as client_module
from kubespec_runner import collectors
from kubespec_runner.apis import Describe
from kubespec_runner.bindings import Bindings
from kubespec_runner.client import KubectlClient, parse_api_resources
from kubespec_runner.errors import ClusterError, NotFoundError

API_RESOURCES = """\
NAME                              SHORTNAMES   APIVERSION                        NAMESPACED   KIND                             VERBS
componentstatuses                 cs           v1                                false        ComponentStatus                  get,list
namespaces                        ns           v1                                false        Namespace                        create,delete,get,list
nodes                             no           v1                                false        Node                             create,delete,get,list
persistentvolumes                 pv           v1                                false        PersistentVolume                 create,delete,get,list
clusterroles                                   rbac.authorization.k8s.io/v1      false        ClusterRole                      create,delete,get,list
"""


@pytest.fixture
def kubectl():
    """KubectlClient answering ``api-resources`` from a canned table."""
    client = KubectlClient()
    client.calls = []

    def _kubectl(args, stdin=None):
        client.calls.append(args)
        if args[0] == "api-resources":
            return True, API_RESOURCES, ""
        return False, "", "unexpected call"

    client._kubectl = _kubectl
    return client


# ============================================================================
# Discovery
# ============================================================================


def test_parse_api_resources_handles_blank_short_names():
    rows = {row.name: row for row in parse_api_resources(API_RESOURCES)}
    assert rows["namespaces"].short_names == ("ns",)
    assert rows["clusterroles"].short_names == ()
    assert rows["clusterroles"].api_version == "rbac.authorization.k8s.io/v1"
    assert rows["clusterroles"].kind == "ClusterRole"


@pytest.mark.parametrize(
    "resource",
    [
        "namespaces",
        "namespace",
        "ns",
        "Namespace",
        "nodes",
        "node",
        "no",
        "clusterroles.rbac.authorization.k8s.io",
        "clusterrole.rbac.authorization.k8s.io",
        "clusterroles.v1.rbac.authorization.k8s.io",
        "namespaces.v1",
    ],
)
def test_cluster_scoped_accepts_every_kubectl_spelling(kubectl, resource):
    assert kubectl.is_cluster_scoped(resource)


@pytest.mark.parametrize("resource", ["pods", "pod", "deployments.apps", "clusterroles.apps", "nsx"])
def test_namespaced_or_unknown_resources_are_not_cluster_scoped(kubectl, resource):
    assert not kubectl.is_cluster_scoped(resource)


def test_discovery_table_is_fetched_once(kubectl):
    kubectl.is_cluster_scoped("ns")
    kubectl.is_cluster_scoped("pods")
    assert kubectl.calls == [["api-resources", "--namespaced=false", "-o", "wide"]]


def test_describe_singular_cluster_resource_has_no_namespace(kubectl):
    command = collectors.describe(kubectl, Bindings(), Describe(resource="namespace", name="foo"))
    assert command.args == ["describe", "namespace", "foo"]


# ============================================================================
# Error mapping
# ============================================================================


def test_server_not_found_maps_to_not_found_error():
    with pytest.raises(NotFoundError):
        client_module._raise_for('Error from server (NotFound): pods "x" not found', "failed to get pod")


@pytest.mark.parametrize(
    "stderr",
    [
        "error: context was not found for specified context: foo",
        'error: the server doesn\'t have a resource type "widgets"',
        "Unable to connect to the server: dial tcp: lookup cluster: no such host",
    ],
)
def test_other_failures_map_to_cluster_error(stderr):
    with pytest.raises(ClusterError) as excinfo:
        client_module._raise_for(stderr, "failed to get pod")
    assert not isinstance(excinfo.value, NotFoundError)
