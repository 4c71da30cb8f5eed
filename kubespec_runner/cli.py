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

"""
cli.py - CLI for running declarative Kubernetes tests.

Subcommands:
    test       Discover and run tests under the given folders
    collect    Print the kubectl commands of collectors (logs, describe)

Examples:
    # Run every test under ./tests in one shared namespace
    kubespec-runner test ./tests --namespace e2e

    # Stop scheduling tests after the first failure and write a JSON report
    kubespec-runner test ./tests --fail-fast --report-format JSON

    # Show the command a pod logs collector would run
    kubespec-runner collect logs --selector app=web --tail 20

For detailed usage information, run: kubespec-runner --help
"""

from __future__ import annotations

import logging
import sys

import typer

from kubespec_runner import console
from kubespec_runner.commands import collect_cmd, run_cmd

app = typer.Typer(
    help="Declarative Kubernetes test runner.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.command("test")(run_cmd.run)
app.add_typer(collect_cmd.app, name="collect")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
