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

"""Tests for namespace provisioning."""

from __future__ import annotations

import pytest

from kubespec_runner.bindings import Bindings
from kubespec_runner.client import ObjectKey, namespace_object
from kubespec_runner.clusters import ClusterConfig
from kubespec_runner.errors import ClusterError
from kubespec_runner.namespaces import ephemeral_namespace_name, provision_namespace, skip_delete
from kubespec_runner.scope import FailNow, Scope, run_in_scope

NS1 = ObjectKey.of(namespace_object("ns1"))


def _provision(scope, client, name="ns1", template=None, skip=False):
    return provision_namespace(scope, name, template, client, Bindings(), ClusterConfig(), skip, 5)


def test_empty_name_is_a_noop(client):
    bindings, namespacer = _provision(Scope(), client, name="")
    assert namespacer is None
    assert "namespace" not in bindings
    assert client.calls == []


def test_existing_namespace_is_reused_twice_without_create_or_cleanup(client):
    client.objects[NS1] = namespace_object("ns1")
    for _ in range(2):
        scope = Scope()
        bindings, namespacer = _provision(scope, client)
        assert bindings["namespace"] == "ns1"
        assert namespacer.namespace == "ns1"
        run_in_scope(scope, lambda s: None)
    assert client.verbs("create") == []
    assert client.verbs("delete") == []


def test_missing_namespace_is_created_and_deleted_on_exit(client):
    scope = Scope()
    _provision(scope, client)
    assert client.verbs("create") == [NS1]
    run_in_scope(scope, lambda s: None)
    assert client.verbs("delete") == [NS1]
    assert NS1 not in client.objects
    assert not scope.failed


def test_skip_delete_keeps_namespace(client):
    scope = Scope()
    _provision(scope, client, skip=True)
    run_in_scope(scope, lambda s: None)
    assert client.verbs("delete") == []
    assert NS1 in client.objects


def test_cleanup_is_registered_before_create(client):
    client.fail_create = ClusterError("quota exceeded")
    scope = run_in_scope(Scope(), lambda s: _provision(s, client))
    assert scope.failed
    assert client.verbs("create") == [NS1]
    assert client.verbs("delete") == [NS1]


def test_get_error_is_fatal(client):
    client.fail_get = ClusterError("connection refused")
    scope = Scope()
    with pytest.raises(FailNow):
        _provision(scope, client)
    assert scope.failed
    assert client.verbs("create") == []


def test_template_renames_namespace(client):
    bindings = Bindings().register("suffix", "blue")
    scope = Scope()
    template = {"metadata": {"name": "(join('-', [$namespace, $suffix]))", "labels": {"team": "core"}}}
    bindings, namespacer = provision_namespace(scope, "ns1", template, client, bindings, None, True, 5)
    key = ObjectKey.of(namespace_object("ns1-blue"))
    assert bindings["namespace"] == "ns1-blue"
    assert namespacer.namespace == "ns1-blue"
    assert client.objects[key]["metadata"]["labels"] == {"team": "core"}


def test_template_error_is_fatal(client):
    scope = Scope()
    with pytest.raises(FailNow):
        _provision(scope, client, template={"metadata": {"name": "($undefined)"}})
    assert client.calls == []


def test_skip_delete_innermost_wins():
    assert skip_delete(None, None) is False
    assert skip_delete(True, None) is True
    assert skip_delete(True, False) is False


def test_ephemeral_namespace_names_are_unique():
    first, second = ephemeral_namespace_name(), ephemeral_namespace_name()
    assert first.startswith("kubespec-")
    assert first != second
