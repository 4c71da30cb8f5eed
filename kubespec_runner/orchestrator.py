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

"""Orchestration functions that compose domain modules into a test run."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rich.panel import Panel
from rich.table import Table

from kubespec_runner import console, logger
from kubespec_runner.bindings import Bindings
from kubespec_runner.clusters import Registry
from kubespec_runner.config import Configuration
from kubespec_runner.discovery import DiscoveredTest
from kubespec_runner.report import Report
from kubespec_runner.scheduler import ProcessorFactory, TestsProcessor
from kubespec_runner.scope import Scope, run_in_scope
from kubespec_runner.summary import Summary


@dataclass
class RunResult:
    """Outcome of a whole run.

    Attributes:
        summary: Passed/failed/skipped counters.
        report: Per-test report.
        failed: True if any test or the run setup failed.
        report_file: Path of the saved report, if one was written.
    """

    summary: Summary
    report: Report
    failed: bool
    report_file: Path | None = None


# ============================================================================
# Internal helpers
# ============================================================================


def _display_summary(result: RunResult) -> None:
    table = Table(show_header=False, box=None)
    table.add_row("[green]Passed[/green]", str(result.summary.passed))
    table.add_row("[red]Failed[/red]", str(result.summary.failed))
    table.add_row("[yellow]Skipped[/yellow]", str(result.summary.skipped))
    style = "bold red" if result.failed else "bold green"
    console.print(Panel.fit(table, title="Summary", style=style))


def _save_report(config: Configuration, report: Report) -> Path | None:
    if not config.report.format:
        return None
    path = report.save(config.report.format, Path(config.report.path))
    console.print(f"[green]  ✓ Report written to {path}[/green]")
    return path


# ============================================================================
# Public API
# ============================================================================


def run_tests(
    config: Configuration,
    registry: Registry,
    tests: list[DiscoveredTest],
    bindings: Bindings | None = None,
    processor_factory: ProcessorFactory | None = None,
) -> RunResult:
    """Run *tests* against the clusters of *registry*.

    Args:
        config: Effective run configuration.
        registry: Clusters, with the default one under the empty name.
        tests: Discovered tests in declaration order.
        bindings: Extra bindings visible to every test, or None.
        processor_factory: Override of the per-test processor, or None.

    Returns:
        The run result; the report is saved when a report format is set.
    """
    summary = Summary()
    report = Report(config.report.name)
    processor = TestsProcessor(
        config, registry, summary=summary, report=report, tests=tests, processor_factory=processor_factory,
    )
    console.print(Panel.fit(f"Running {len(tests)} test(s)", style="bold blue"))
    scope = run_in_scope(Scope(), lambda s: processor.run(s, bindings))
    for message in scope.messages:
        logger.error("%s", message)
    result = RunResult(summary=summary, report=report, failed=scope.failed)
    result.report_file = _save_report(config, report)
    _display_summary(result)
    return result
