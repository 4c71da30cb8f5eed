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

"""Cluster-affecting actions wrapped by operations.

Each builder returns a callable taking the operation timeout (seconds or
None) and returning the action outputs, if any.
"""

from __future__ import annotations

import os
import string
import subprocess
import time
from pathlib import Path
from typing import Any

import yaml
from tenacity import RetryError, retry, retry_if_result, stop_after_delay, stop_never, wait_fixed

from kubespec_runner.apis import Command
from kubespec_runner.client import Client, ObjectKey
from kubespec_runner.clusters import ClusterConfig
from kubespec_runner.constants import ENV_KUBECONFIG, ENV_NAMESPACE, KUBECTL, POLL_INTERVAL_SECONDS, SHELL
from kubespec_runner.errors import AssertionFailed, CommandFailed, InvalidSpec, NotFoundError, OperationError
from kubespec_runner.operations import Action
from kubespec_runner.utils import kubectl_args


# ============================================================================
# Manifests
# ============================================================================

def load_resources(file: str, resource: dict | None, base_path: Path) -> list[dict]:
    """Load the manifests of a file reference or an inline resource.

    Args:
        file: Manifest path relative to the test folder, or empty.
        resource: Inline manifest, or None.
        base_path: Folder of the test file.

    Returns:
        List of manifests, one per non-empty YAML document.

    Raises:
        InvalidSpec: If the file cannot be read or holds a non-mapping document.
    """
    if not file:
        return [resource] if resource is not None else []
    path = Path(file) if Path(file).is_absolute() else base_path / file
    try:
        with open(path) as f:
            documents = [doc for doc in yaml.safe_load_all(f) if doc is not None]
    except (OSError, yaml.YAMLError) as err:
        raise InvalidSpec(f"failed to load {path}: {err}") from err
    for doc in documents:
        if not isinstance(doc, dict):
            raise InvalidSpec(f"{path}: every document must be a mapping")
    return documents


def mismatch(expected: Any, actual: Any, path: str = "") -> str | None:
    """Return the first path where *actual* does not contain *expected*, or None."""
    if isinstance(expected, dict):
        if not isinstance(actual, dict):
            return f"{path or '.'}: expected a mapping"
        for key, value in expected.items():
            if key not in actual:
                return f"{path}.{key}: missing"
            found = mismatch(value, actual[key], f"{path}.{key}")
            if found:
                return found
        return None
    if isinstance(expected, list):
        if not isinstance(actual, list) or len(actual) != len(expected):
            return f"{path or '.'}: expected a list of {len(expected)} items"
        for i, (want, got) in enumerate(zip(expected, actual)):
            found = mismatch(want, got, f"{path}[{i}]")
            if found:
                return found
        return None
    if expected != actual:
        return f"{path or '.'}: expected {expected!r}, got {actual!r}"
    return None


def _stop(timeout: float | None):
    return stop_after_delay(timeout) if timeout else stop_never


# ============================================================================
# Resource actions
# ============================================================================

def create_action(client: Client, obj: dict) -> Action:
    def _create(timeout: float | None) -> None:
        client.create(obj)
    return _create


def apply_action(client: Client, obj: dict) -> Action:
    def _apply(timeout: float | None) -> None:
        client.apply(obj)
    return _apply


def delete_action(client: Client, obj: dict, propagation: str, poll: float = POLL_INTERVAL_SECONDS) -> Action:
    """Delete *obj* and wait until the cluster no longer returns it."""
    key = ObjectKey.of(obj)

    def _present() -> bool:
        try:
            client.get(key)
        except NotFoundError:
            return False
        return True

    def _delete(timeout: float | None) -> None:
        try:
            client.delete(obj, propagation)
        except NotFoundError:
            return

        @retry(stop=_stop(timeout), wait=wait_fixed(poll), retry=retry_if_result(lambda present: present))
        def _wait_gone() -> bool:
            return _present()

        try:
            _wait_gone()
        except RetryError as err:
            raise OperationError(f"{key} still present after deletion") from err

    return _delete


def assert_action(client: Client, expected: dict, poll: float = POLL_INTERVAL_SECONDS) -> Action:
    """Poll the live object until it contains *expected*."""
    key = ObjectKey.of(expected)

    def _check() -> str | None:
        try:
            actual = client.get(key)
        except NotFoundError:
            return f"{key} not found"
        return mismatch(expected, actual)

    def _assert(timeout: float | None) -> None:
        @retry(stop=_stop(timeout), wait=wait_fixed(poll), retry=retry_if_result(lambda found: found is not None))
        def _poll() -> str | None:
            return _check()

        try:
            _poll()
        except RetryError as err:
            raise AssertionFailed(f"{key}: {err.last_attempt.result()}") from err

    return _assert


# ============================================================================
# Process actions
# ============================================================================

def command_env(namespace: str, cluster: ClusterConfig | None) -> dict[str, str]:
    """Build the process environment exposing the namespace and kubeconfig."""
    env = dict(os.environ)
    env[ENV_NAMESPACE] = namespace
    if cluster is not None and cluster.kubeconfig:
        env[ENV_KUBECONFIG] = cluster.kubeconfig
    return env


def _run(argv: list[str], env: dict[str, str], timeout: float | None) -> dict[str, str]:
    try:
        result = subprocess.run(argv, capture_output=True, text=True, env=env, timeout=timeout)
    except subprocess.TimeoutExpired as err:
        raise CommandFailed(f"{argv[0]} timed out after {timeout:g}s", -1) from err
    except OSError as err:
        raise CommandFailed(f"failed to run {argv[0]}: {err}", -1) from err
    if result.returncode != 0:
        raise CommandFailed(
            f"{argv[0]} exited with status {result.returncode}: {result.stderr.strip()}",
            result.returncode, result.stdout, result.stderr,
        )
    return {"stdout": result.stdout, "stderr": result.stderr}


def command_action(command: Command, env: dict[str, str], cluster: ClusterConfig | None) -> Action:
    """Run *command* with ``$VAR`` references in its args expanded from *env*.

    kubectl invocations get the cluster's kubeconfig and context flags.
    """
    args = [string.Template(arg).safe_substitute(env) for arg in command.args]
    if command.entrypoint == KUBECTL and cluster is not None:
        argv = kubectl_args(args, cluster.kubeconfig, cluster.context)
    else:
        argv = [command.entrypoint, *args]

    def _command(timeout: float | None) -> dict[str, str]:
        return _run(argv, env, timeout)
    return _command


def script_action(content: str, env: dict[str, str]) -> Action:
    def _script(timeout: float | None) -> dict[str, str]:
        return _run([SHELL, "-c", content], env, timeout)
    return _script


def sleep_action(duration: float) -> Action:
    def _sleep(timeout: float | None) -> None:
        time.sleep(duration)
    return _sleep
