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

"""Tests for the operation wrapper and its actions."""

from __future__ import annotations

import time

import pytest

from kubespec_runner.actions import assert_action, command_action, delete_action, mismatch, script_action
from kubespec_runner.apis import Command
from kubespec_runner.bindings import Bindings
from kubespec_runner.client import ObjectKey
from kubespec_runner.clusters import ClusterConfig
from kubespec_runner.errors import AssertionFailed, CommandFailed, OperationTimeout
from kubespec_runner.operations import Operation, OperationInfo, resolve_timeout, run_with_timeout
from kubespec_runner.scope import FailNow, Scope

CONFIGMAP = {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "cm", "namespace": "ns1"}, "data": {"a": "1"}}


def _operation(action, cleanup=False, timeout=None):
    return Operation(OperationInfo(id=1, kind="script"), cleanup, timeout, lambda bindings: (action, bindings))


def test_outputs_are_registered_as_bindings():
    result = _operation(lambda timeout: {"stdout": "hello"}).execute(Scope(), Bindings())
    assert result.ok
    assert result.bindings["stdout"] == "hello"


def test_action_error_fails_scope():
    def _boom(timeout):
        raise RuntimeError("boom")

    scope = Scope()
    result = _operation(_boom).execute(scope, Bindings())
    assert not result.ok
    assert scope.failed


def test_cleanup_action_error_is_only_logged():
    def _boom(timeout):
        raise RuntimeError("boom")

    scope = Scope()
    result = _operation(_boom, cleanup=True).execute(scope, Bindings())
    assert not result.ok
    assert not scope.failed


def test_factory_error_aborts_scope():
    def _factory(bindings):
        raise ValueError("bad spec")

    scope = Scope()
    with pytest.raises(FailNow):
        Operation(OperationInfo(kind="apply"), False, None, _factory).execute(scope, Bindings())
    assert scope.failed


def test_factory_sees_bindings_at_execution_time():
    seen = []

    def _factory(bindings):
        seen.append(bindings["namespace"])
        return (lambda timeout: None), bindings

    operation = Operation(OperationInfo(kind="apply"), False, None, _factory)
    operation.execute(Scope(), Bindings().register("namespace", "late"))
    assert seen == ["late"]


def test_timeout_expires():
    with pytest.raises(OperationTimeout):
        run_with_timeout(lambda timeout: time.sleep(2), 0.05, grace=0)


def test_action_receives_timeout_without_grace():
    seen = []
    run_with_timeout(seen.append, 0.5, grace=2)
    assert seen == [0.5]


def test_assertion_failure_is_reported_instead_of_timeout(client):
    operation = _operation(assert_action(client, CONFIGMAP, poll=0.01), timeout=0.05)
    scope = Scope()
    result = operation.execute(scope, Bindings())
    assert isinstance(result.error, AssertionFailed)
    assert not isinstance(result.error, OperationTimeout)
    assert scope.failed


def test_resolve_timeout():
    assert resolve_timeout(None, 5) == 5
    assert resolve_timeout(1.5, 5) == 1.5


def test_info_label():
    assert str(OperationInfo(id=2, resource_id=3, kind="create", description="web")) == "create #2.3 (web)"


# ============================================================================
# actions
# ============================================================================


def test_mismatch_reports_first_difference():
    assert mismatch({"data": {"a": "1"}}, CONFIGMAP) is None
    assert mismatch({"data": {"a": "2"}}, CONFIGMAP) == ".data.a: expected '2', got '1'"
    assert mismatch({"data": {"b": "1"}}, CONFIGMAP) == ".data.b: missing"


def test_assert_action_passes_when_object_matches(client):
    client.objects[ObjectKey.of(CONFIGMAP)] = CONFIGMAP
    assert_action(client, {**CONFIGMAP, "data": {"a": "1"}}, poll=0.01)(1)


def test_assert_action_times_out_with_last_mismatch(client):
    with pytest.raises(AssertionFailed, match="not found"):
        assert_action(client, CONFIGMAP, poll=0.01)(0.05)


def test_delete_action_waits_until_gone(client):
    client.objects[ObjectKey.of(CONFIGMAP)] = CONFIGMAP
    delete_action(client, CONFIGMAP, "Background", poll=0.01)(1)
    assert ObjectKey.of(CONFIGMAP) not in client.objects


def test_delete_action_ignores_missing_object(client):
    delete_action(client, CONFIGMAP, "Background", poll=0.01)(1)
    assert client.verbs("delete") == [ObjectKey.of(CONFIGMAP)]


def test_script_action_exposes_environment():
    outputs = script_action('echo "$NAMESPACE"', {"NAMESPACE": "ns1", "PATH": "/usr/bin:/bin"})(5)
    assert outputs["stdout"] == "ns1\n"


def test_script_action_failure():
    with pytest.raises(CommandFailed) as info:
        script_action("exit 3", {"PATH": "/usr/bin:/bin"})(5)
    assert info.value.returncode == 3


def test_command_action_substitutes_environment():
    command = Command(entrypoint="echo", args=["$NAMESPACE", "${NAMESPACE}-x"])
    outputs = command_action(command, {"NAMESPACE": "ns1", "PATH": "/usr/bin:/bin"}, ClusterConfig())(5)
    assert outputs["stdout"] == "ns1 ns1-x\n"
