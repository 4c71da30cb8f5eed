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

"""Utility functions for kubectl invocation, durations, and command checks."""

from __future__ import annotations

import re
import subprocess

import sh

from kubespec_runner.constants import KUBECTL

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|s|m|h)")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err


def kubectl_args(args: list[str], kubeconfig: str | None = None, context: str | None = None) -> list[str]:
    """Prefix kubectl arguments with the cluster selection flags.

    Args:
        args: kubectl arguments (e.g. ``["get", "pods"]``).
        kubeconfig: Path of the kubeconfig file, or None for the default.
        context: kubeconfig context name, or None for the current context.

    Returns:
        Full argument list starting with the ``kubectl`` entrypoint.
    """
    cmd = [KUBECTL]
    if kubeconfig:
        cmd += ["--kubeconfig", kubeconfig]
    if context:
        cmd += ["--context", context]
    return [*cmd, *args]


def run_kubectl(
    args: list[str],
    timeout: float = 30,
    kubeconfig: str | None = None,
    context: str | None = None,
    stdin: str | None = None,
) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Uses subprocess instead of sh because the client needs stdout and stderr
    separated to tell ``NotFound`` answers apart from other failures.

    Args:
        args: kubectl arguments (e.g. ``["get", "pods", "-n", "default"]``).
        timeout: Maximum seconds to wait for the command to complete.
        kubeconfig: Path of the kubeconfig file, or None for the default.
        context: kubeconfig context name, or None for the current context.
        stdin: Text fed to the command's standard input, or None.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            kubectl_args(args, kubeconfig, context),
            capture_output=True,
            text=True,
            timeout=timeout,
            input=stdin,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def parse_duration(value: str | int | float | None) -> float | None:
    """Parse a Go-style duration (``1m30s``, ``500ms``) into seconds.

    Args:
        value: Duration string, a number of seconds, or None.

    Returns:
        Number of seconds, or None when *value* is None.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass
    parts = _DURATION_PART.findall(text)
    if not parts or "".join(n + u for n, u in parts) != text:
        raise ValueError(f"invalid duration: {value!r}")
    return sum(float(n) * _DURATION_UNITS[u] for n, u in parts)
