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

"""Test subcommand: discover and run tests."""

from __future__ import annotations

from pathlib import Path

import typer

from kubespec_runner.clusters import DEFAULT_CLUSTER, ClusterConfig, Registry
from kubespec_runner.config import display_config, resolve_config
from kubespec_runner.constants import KUBECTL
from kubespec_runner.discovery import discover_tests
from kubespec_runner.orchestrator import run_tests
from kubespec_runner.utils import require_command


def parse_cluster(value: str) -> tuple[str, ClusterConfig]:
    """Parse a ``name=kubeconfig[:context]`` cluster flag.

    Raises:
        typer.BadParameter: If the value has no name or no kubeconfig.
    """
    name, sep, target = value.partition("=")
    if not sep or not name or not target:
        raise typer.BadParameter(f"expected name=kubeconfig[:context], got {value!r}")
    kubeconfig, _, context = target.partition(":")
    return name, ClusterConfig(kubeconfig=kubeconfig, context=context or None)


def build_registry(kubeconfig: str | None, context: str | None, clusters: list[str]) -> Registry:
    registry = Registry()
    registry.register(DEFAULT_CLUSTER, ClusterConfig(kubeconfig=kubeconfig, context=context))
    for value in clusters:
        name, config = parse_cluster(value)
        registry.register(name, config)
    return registry


def run(
    paths: list[Path] = typer.Argument(..., help="Folders or files containing tests"),
    namespace: str | None = typer.Option(None, "--namespace", "-n", help="Namespace shared by every test"),
    fail_fast: bool | None = typer.Option(None, "--fail-fast/--no-fail-fast", help="Skip remaining tests after a failure"),
    parallel: int | None = typer.Option(None, "--parallel", help="Maximum number of concurrent tests"),
    skip_delete: bool | None = typer.Option(None, "--skip-delete/--no-skip-delete", help="Keep created resources"),
    test_file: str | None = typer.Option(None, "--test-file", help="Base name of test files"),
    full_name: bool | None = typer.Option(None, "--full-name/--no-full-name", help="Prefix test names with their folder"),
    include_test_regex: str | None = typer.Option(None, "--include-test-regex", help="Only run matching tests"),
    exclude_test_regex: str | None = typer.Option(None, "--exclude-test-regex", help="Skip matching tests"),
    apply_timeout: float | None = typer.Option(None, "--apply-timeout", help="Apply timeout in seconds"),
    assert_timeout: float | None = typer.Option(None, "--assert-timeout", help="Assert timeout in seconds"),
    cleanup_timeout: float | None = typer.Option(None, "--cleanup-timeout", help="Cleanup timeout in seconds"),
    delete_timeout: float | None = typer.Option(None, "--delete-timeout", help="Delete timeout in seconds"),
    exec_timeout: float | None = typer.Option(None, "--exec-timeout", help="Command timeout in seconds"),
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="kubeconfig of the default cluster"),
    context: str | None = typer.Option(None, "--context", help="kubeconfig context of the default cluster"),
    cluster: list[str] = typer.Option([], "--cluster", help="Additional cluster as name=kubeconfig[:context]"),
    report_format: str | None = typer.Option(None, "--report-format", help="Report format (JSON or YAML)"),
    report_path: str | None = typer.Option(None, "--report-path", help="Report folder"),
    report_name: str | None = typer.Option(None, "--report-name", help="Report file name"),
) -> None:
    """Discover and run tests, exiting non-zero on failure."""
    require_command(KUBECTL)
    timeouts = {
        "apply": apply_timeout,
        "assertion": assert_timeout,
        "cleanup": cleanup_timeout,
        "delete": delete_timeout,
        "exec": exec_timeout,
    }
    config = resolve_config(
        namespace=namespace,
        fail_fast=fail_fast,
        parallel=parallel,
        skip_delete=skip_delete,
        test_file=test_file,
        full_name=full_name,
        include_test_regex=include_test_regex,
        exclude_test_regex=exclude_test_regex,
        report_format=report_format.upper() if report_format else None,
        report_path=report_path,
        report_name=report_name,
        timeouts={k: v for k, v in timeouts.items() if v is not None},
    )
    display_config(config)
    registry = build_registry(kubeconfig, context, cluster)
    tests = discover_tests(paths, config.discovery)
    result = run_tests(config, registry, tests)
    if result.failed:
        raise typer.Exit(code=1)
