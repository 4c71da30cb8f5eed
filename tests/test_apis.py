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

"""Tests for the test spec models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from kubespec_runner import apis
from kubespec_runner.utils import parse_duration


@pytest.mark.parametrize(
    ("value", "seconds"),
    [("500ms", 0.5), ("1m30s", 90), ("2h", 7200), ("10", 10), (3, 3.0), (None, None)],
)
def test_parse_duration(value, seconds):
    assert parse_duration(value) == seconds


@pytest.mark.parametrize("value", ["", "1x", "m5", "5s garbage"])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_operation_requires_exactly_one_kind():
    with pytest.raises(ValidationError):
        apis.Operation.model_validate({})
    with pytest.raises(ValidationError):
        apis.Operation.model_validate({"sleep": {"duration": "1s"}, "script": {"content": "true"}})


def test_operation_kind_and_body():
    operation = apis.Operation.model_validate({"assert": {"file": "expected.yaml"}})
    assert operation.kind == "assert"
    assert operation.body.file == "expected.yaml"
    logs = apis.Operation.model_validate({"podLogs": {"selector": "app=web", "tail": 5}})
    assert logs.kind == "pod_logs"
    assert logs.body.tail == 5


def test_file_or_resource_is_exclusive():
    with pytest.raises(ValidationError):
        apis.Apply.model_validate({})
    with pytest.raises(ValidationError):
        apis.Apply.model_validate({"file": "a.yaml", "resource": {"kind": "Pod"}})


def test_delete_requires_a_target():
    with pytest.raises(ValidationError):
        apis.Delete.model_validate({"kind": "Pod"})
    delete = apis.Delete.model_validate({"apiVersion": "v1", "kind": "Pod", "name": "web", "propagationPolicy": "Foreground"})
    assert delete.propagation_policy == "Foreground"


def test_unknown_fields_are_rejected():
    with pytest.raises(ValidationError):
        apis.TestSpec.model_validate({"steps": [], "unknown": True})


def test_full_test_document():
    test = apis.Test.model_validate({
        "apiVersion": "kubespec.dev/v1alpha1",
        "kind": "Test",
        "metadata": {"name": "web", "labels": {"suite": "smoke"}},
        "spec": {
            "concurrent": False,
            "skipDelete": True,
            "timeouts": {"assert": "45s"},
            "steps": [{
                "name": "deploy",
                "try": [{"apply": {"file": "deploy.yaml"}}],
                "catch": [{"describe": {"resource": "pods", "selector": "app=web", "showEvents": True}}],
                "finally": [{"sleep": {"duration": "100ms"}}],
            }],
        },
    })
    assert test.spec.concurrent is False
    assert test.spec.skip_delete is True
    assert test.spec.timeouts.assert_ == 45
    step = test.spec.steps[0]
    assert step.catch[0].body.show_events is True
    assert step.finally_[0].body.duration == 0.1
