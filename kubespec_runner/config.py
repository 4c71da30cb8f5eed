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

"""Configuration classes, config resolution, and display."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from kubespec_runner import console
from kubespec_runner.constants import (
    DEFAULT_APPLY_TIMEOUT,
    DEFAULT_ASSERT_TIMEOUT,
    DEFAULT_CLEANUP_TIMEOUT,
    DEFAULT_DELETE_TIMEOUT,
    DEFAULT_EXEC_TIMEOUT,
    DEFAULT_PARALLEL,
    DEFAULT_REPORT_NAME,
    DEFAULT_TEST_FILE,
    ENV_PREFIX,
    MAX_PARALLEL,
)


# ============================================================================
# Configuration classes
# ============================================================================

class TimeoutsConfig(BaseSettings):
    """Default operation timeouts in seconds, auto-loaded from KUBESPEC_TIMEOUT_* env vars.

    Attributes:
        apply: Timeout of apply and create operations.
        assertion: Timeout of assert operations.
        cleanup: Timeout of deferred cleanup deletions.
        delete: Timeout of delete operations.
        exec: Timeout of commands, scripts and collectors.
    """

    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}TIMEOUT_", extra="ignore")

    apply: float = Field(default=DEFAULT_APPLY_TIMEOUT, gt=0)
    assertion: float = Field(default=DEFAULT_ASSERT_TIMEOUT, gt=0)
    cleanup: float = Field(default=DEFAULT_CLEANUP_TIMEOUT, gt=0)
    delete: float = Field(default=DEFAULT_DELETE_TIMEOUT, gt=0)
    exec: float = Field(default=DEFAULT_EXEC_TIMEOUT, gt=0)

    def with_overrides(self, timeouts: Any) -> TimeoutsConfig:
        """Return a copy where the test's own timeouts win.

        Args:
            timeouts: ``apis.Timeouts`` of a test; unset fields are ignored.
        """
        overrides = {
            "apply": timeouts.apply,
            "assertion": timeouts.assert_,
            "cleanup": timeouts.cleanup,
            "delete": timeouts.delete,
            "exec": timeouts.exec,
        }
        return self.model_copy(update={k: v for k, v in overrides.items() if v is not None})


class NamespaceConfig(BaseSettings):
    """Run-level namespace, auto-loaded from KUBESPEC_NAMESPACE_* env vars.

    Attributes:
        name: Namespace shared by every test, or empty for one per test.
        template: Mapping merged over the namespace manifest (JSON in env).
    """

    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}NAMESPACE_", extra="ignore")

    name: str = ""
    template: dict[str, Any] | None = None


class CleanupConfig(BaseSettings):
    """Cleanup policy, auto-loaded from KUBESPEC_CLEANUP_* env vars.

    Attributes:
        skip_delete: Keep created resources instead of deleting them.
        delay_before_cleanup: Seconds to wait before a test's cleanups run.
    """

    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}CLEANUP_", extra="ignore")

    skip_delete: bool = False
    delay_before_cleanup: float = Field(default=0.0, ge=0)


class ExecutionConfig(BaseSettings):
    """Scheduling policy, auto-loaded from KUBESPEC_EXECUTION_* env vars.

    Attributes:
        fail_fast: Skip tests that have not started once a test failed.
        parallel: Maximum number of concurrent tests.
    """

    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}EXECUTION_", extra="ignore")

    fail_fast: bool = False
    parallel: int = Field(default=DEFAULT_PARALLEL, ge=1, le=MAX_PARALLEL)


class DiscoveryConfig(BaseSettings):
    """Test discovery, auto-loaded from KUBESPEC_DISCOVERY_* env vars.

    Attributes:
        test_file: Base name of test files (without extension).
        full_name: Prefix test names with their folder.
        include_test_regex: Only run tests whose name matches.
        exclude_test_regex: Skip tests whose name matches.
    """

    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}DISCOVERY_", extra="ignore")

    test_file: str = DEFAULT_TEST_FILE
    full_name: bool = False
    include_test_regex: str = ""
    exclude_test_regex: str = ""


class ReportConfig(BaseSettings):
    """Report output, auto-loaded from KUBESPEC_REPORT_* env vars.

    Attributes:
        format: ``JSON``, ``YAML``, or empty to disable the report.
        path: Folder the report is written to.
        name: Report file name without extension.
    """

    model_config = SettingsConfigDict(env_prefix=f"{ENV_PREFIX}REPORT_", extra="ignore")

    format: str = Field(default="", pattern=r"^(|JSON|YAML)$")
    path: str = "."
    name: str = DEFAULT_REPORT_NAME


@dataclass(frozen=True)
class Configuration:
    """Effective configuration of a run."""

    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)
    namespace: NamespaceConfig = field(default_factory=NamespaceConfig)
    cleanup: CleanupConfig = field(default_factory=CleanupConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


# ============================================================================
# Config resolution
# ============================================================================

def resolve_config(
    namespace: str | None = None,
    fail_fast: bool | None = None,
    parallel: int | None = None,
    skip_delete: bool | None = None,
    test_file: str | None = None,
    full_name: bool | None = None,
    include_test_regex: str | None = None,
    exclude_test_regex: str | None = None,
    report_format: str | None = None,
    report_path: str | None = None,
    report_name: str | None = None,
    timeouts: dict[str, float] | None = None,
) -> Configuration:
    """Merge CLI overrides, environment variables, and defaults into a Configuration.

    Resolution priority: CLI arguments > KUBESPEC_* environment variables > defaults.

    Args:
        namespace: Run-level namespace override, or None.
        fail_fast: Fail-fast override, or None.
        parallel: Concurrency override, or None.
        skip_delete: Skip-delete override, or None.
        test_file: Test file base name override, or None.
        full_name: Full test name override, or None.
        include_test_regex: Include filter override, or None.
        exclude_test_regex: Exclude filter override, or None.
        report_format: Report format override, or None.
        report_path: Report folder override, or None.
        report_name: Report name override, or None.
        timeouts: Timeout overrides keyed by TimeoutsConfig field, or None.

    Returns:
        The resolved configuration.
    """
    def _updates(**values: Any) -> dict[str, Any]:
        return {k: v for k, v in values.items() if v is not None}

    def _apply(cfg, **values: Any):
        # model_copy skips validation, so overrides go through the constructor
        updates = _updates(**values)
        return type(cfg)(**{**cfg.model_dump(), **updates}) if updates else cfg

    return Configuration(
        timeouts=_apply(TimeoutsConfig(), **(timeouts or {})),
        namespace=_apply(NamespaceConfig(), name=namespace),
        cleanup=_apply(CleanupConfig(), skip_delete=skip_delete),
        execution=_apply(ExecutionConfig(), fail_fast=fail_fast, parallel=parallel),
        discovery=_apply(
            DiscoveryConfig(),
            test_file=test_file,
            full_name=full_name,
            include_test_regex=include_test_regex,
            exclude_test_regex=exclude_test_regex,
        ),
        report=_apply(ReportConfig(), format=report_format, path=report_path, name=report_name),
    )


# ============================================================================
# Display
# ============================================================================

def display_config(config: Configuration) -> None:
    """Print the effective configuration.

    Args:
        config: Configuration to display.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print("[yellow]Execution:[/yellow]")
    console.print(f"  fail_fast       : {config.execution.fail_fast}")
    console.print(f"  parallel        : {config.execution.parallel}")
    console.print("[yellow]Namespace:[/yellow]")
    console.print(f"  name            : {config.namespace.name or '(one per test)'}")
    console.print(f"  template        : {'yes' if config.namespace.template else 'no'}")
    console.print(f"  skip_delete     : {config.cleanup.skip_delete}")
    console.print("[yellow]Timeouts:[/yellow]")
    for key, value in config.timeouts.model_dump().items():
        console.print(f"  {key:<16}: {value:g}s")
    if config.report.format:
        console.print("[yellow]Report:[/yellow]")
        console.print(f"  format          : {config.report.format}")
        console.print(f"  path            : {config.report.path}")
