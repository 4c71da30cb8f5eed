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

"""Collect subcommands (logs, describe) printing the kubectl command to run."""

from __future__ import annotations

import shlex

import typer

from kubespec_runner import collectors, console
from kubespec_runner.apis import Command, Describe, PodLogs
from kubespec_runner.bindings import Bindings
from kubespec_runner.client import KubectlClient

app = typer.Typer(help="Print the commands of collectors.")


def _print(command: Command) -> None:
    console.print(shlex.join([command.entrypoint, *command.args]), markup=False, highlight=False, soft_wrap=True)


@app.command()
def logs(
    name: str = typer.Option("", "--name", help="Pod name"),
    selector: str = typer.Option("", "--selector", "-l", help="Label selector"),
    namespace: str = typer.Option("", "--namespace", "-n", help="Namespace, $NAMESPACE when empty"),
    container: str = typer.Option("", "--container", "-c", help="Container, all containers when empty"),
    tail: int | None = typer.Option(None, "--tail", help="Number of lines to show"),
) -> None:
    """Print the kubectl logs command of a pod logs collector."""
    collector = PodLogs(name=name, selector=selector, namespace=namespace, container=container, tail=tail)
    _print(collectors.logs_command(Bindings(), collector))


@app.command()
def describe(
    resource: str = typer.Option("", "--resource", help="Resource, like pods or deployments.apps"),
    api_version: str = typer.Option("", "--api-version", help="apiVersion, used with --kind"),
    kind: str = typer.Option("", "--kind", help="Kind, used with --api-version"),
    name: str = typer.Option("", "--name", help="Resource name"),
    selector: str = typer.Option("", "--selector", "-l", help="Label selector"),
    namespace: str = typer.Option("", "--namespace", "-n", help="Namespace, * for all namespaces"),
    show_events: bool | None = typer.Option(None, "--show-events/--no-show-events", help="Include events"),
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="kubeconfig used for discovery"),
    context: str | None = typer.Option(None, "--context", help="kubeconfig context used for discovery"),
) -> None:
    """Print the kubectl describe command of a describe collector."""
    collector = Describe(
        resource=resource,
        api_version=api_version,
        kind=kind,
        name=name,
        selector=selector,
        namespace=namespace,
        show_events=show_events,
    )
    client = KubectlClient(kubeconfig=kubeconfig, context=context)
    _print(collectors.describe(client, Bindings(), collector))
