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

"""Exception hierarchy raised by the engine and its collaborators."""

from __future__ import annotations


class KubespecError(Exception):
    """Base class for all engine errors."""


class InvalidSpec(KubespecError):
    """A declarative spec failed validation."""


class TemplateError(KubespecError):
    """A template expression is malformed or references an unknown binding."""


class ClusterError(KubespecError):
    """A cluster could not be resolved or a cluster call failed."""


class NotFoundError(ClusterError):
    """The requested object does not exist in the cluster."""


class OperationError(KubespecError):
    """An operation failed while running against the cluster."""


class OperationTimeout(OperationError):
    """An operation did not complete within its timeout."""


class AssertionFailed(OperationError):
    """A resource never reached the expected state."""


class CommandFailed(OperationError):
    """A command or script exited with a non-zero status."""

    def __init__(self, message: str, returncode: int, stdout: str = "", stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
