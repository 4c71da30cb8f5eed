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

"""Tests for test discovery, naming and reports."""

from __future__ import annotations

import json

import pytest
import yaml

from kubespec_runner import apis
from kubespec_runner.config import Configuration, DiscoveryConfig
from kubespec_runner.discovery import discover_tests
from kubespec_runner.errors import InvalidSpec
from kubespec_runner.names import display_name
from kubespec_runner.report import Report

TEST_DOC = "apiVersion: kubespec.dev/v1alpha1\nkind: Test\nmetadata:\n  name: {name}\nspec:\n  steps: []\n"


@pytest.fixture
def suite(tmp_path):
    (tmp_path / "b").mkdir()
    (tmp_path / "a" / "nested").mkdir(parents=True)
    (tmp_path / "b" / "kubespec-test.yaml").write_text(TEST_DOC.format(name="beta"))
    (tmp_path / "a" / "kubespec-test.yaml").write_text(
        TEST_DOC.format(name="alpha") + "---\n" + TEST_DOC.format(name="alpha-two")
    )
    (tmp_path / "a" / "nested" / "kubespec-test.yml").write_text(TEST_DOC.format(name="nested"))
    (tmp_path / "a" / "other.yaml").write_text(TEST_DOC.format(name="ignored"))
    return tmp_path


def test_discovery_order_is_stable(suite):
    tests = discover_tests([suite], DiscoveryConfig())
    assert [t.test.metadata.name for t in tests] == ["alpha", "alpha-two", "nested", "beta"]
    assert tests[2].base_path == suite / "a" / "nested"


def test_include_and_exclude_filters(suite):
    config = DiscoveryConfig(include_test_regex="^alpha", exclude_test_regex="two$")
    assert [t.test.metadata.name for t in discover_tests([suite], config)] == ["alpha"]


def test_missing_path(tmp_path):
    with pytest.raises(InvalidSpec, match="path not found"):
        discover_tests([tmp_path / "nope"], DiscoveryConfig())


def test_invalid_test_file(tmp_path):
    (tmp_path / "kubespec-test.yaml").write_text("kind: Test\nspec:\n  bogus: 1\n")
    with pytest.raises(InvalidSpec, match="invalid test"):
        discover_tests([tmp_path], DiscoveryConfig())


def test_display_name():
    test = apis.Test.model_validate({"metadata": {"name": "web"}})
    assert display_name(Configuration(), test, "suite/web") == "web"
    full = Configuration(discovery=DiscoveryConfig(full_name=True))
    assert display_name(full, test, "suite/web") == "suite/web[web]"
    with pytest.raises(InvalidSpec):
        display_name(Configuration(), apis.Test())


@pytest.mark.parametrize(("fmt", "loader"), [("JSON", json.loads), ("YAML", yaml.safe_load)])
def test_report_save(tmp_path, fmt, loader):
    report = Report("run")
    report.set_start_time()
    second = report.for_test("second", test_id=2, scenario_id=1)
    first = report.for_test("first", test_id=1, scenario_id=1)
    second.failed = True
    second.failures = ["boom"]
    first.set_start_time()
    first.set_end_time()
    report.set_end_time()
    data = loader(report.save(fmt, tmp_path / "out").read_text())
    assert data["name"] == "run"
    assert [t["name"] for t in data["tests"]] == ["first", "second"]
    assert data["tests"][1]["failures"] == ["boom"]


def test_report_rejects_unknown_format(tmp_path):
    with pytest.raises(ValueError):
        Report("run").save("XML", tmp_path)
