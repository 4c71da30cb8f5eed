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

"""Declarative test spec models loaded from YAML test files."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from kubespec_runner.constants import KUBECTL, TEST_API_VERSION, TEST_KIND
from kubespec_runner.utils import parse_duration

Duration = Annotated[float | None, BeforeValidator(parse_duration)]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


# ============================================================================
# Shared building blocks
# ============================================================================

class Binding(_Model):
    """A named value, possibly a ``(expression)`` resolved against bindings."""

    name: str
    value: Any = None


class ObjectMeta(_Model):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class ResourceReference(_Model):
    """Either a resource name (``pods``, ``deployments.apps``) or an apiVersion/kind pair."""

    api_version: str = ""
    kind: str = ""
    resource: str = ""


class FileRefOrResource(_Model):
    """A manifest given as a file path or inline; exactly one must be set."""

    file: str = ""
    resource: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _check_one_of(self):
        if bool(self.file) == (self.resource is not None):
            raise ValueError("exactly one of file or resource must be specified")
        return self


# ============================================================================
# Collectors
# ============================================================================

class PodLogs(_Model):
    """Collect container logs of pods selected by name or label selector."""

    name: str = ""
    namespace: str = ""
    selector: str = ""
    container: str = ""
    tail: int | str | None = None
    cluster: str = ""
    timeout: Duration = None


class Describe(ResourceReference):
    """Describe resources selected by name or label selector."""

    name: str = ""
    namespace: str = ""
    selector: str = ""
    show_events: bool | None = None
    cluster: str = ""
    timeout: Duration = None


class Command(_Model):
    """A process invocation against a (possibly non-default) cluster."""

    entrypoint: str = KUBECTL
    args: list[str] = Field(default_factory=list)
    cluster: str = ""
    timeout: Duration = None


# ============================================================================
# Operations
# ============================================================================

class Apply(FileRefOrResource):
    timeout: Duration = None


class Create(FileRefOrResource):
    timeout: Duration = None


class Assert(FileRefOrResource):
    """A condition expected to hold, polled until it does or the timeout elapses."""

    timeout: Duration = None


class Delete(_Model):
    """Delete objects given by file, or by apiVersion/kind/name reference."""

    file: str = ""
    api_version: str = ""
    kind: str = ""
    name: str = ""
    namespace: str = ""
    propagation_policy: str = ""
    timeout: Duration = None

    @model_validator(mode="after")
    def _check_target(self):
        if not self.file and not (self.api_version and self.kind and self.name):
            raise ValueError("delete requires a file or apiVersion, kind and name")
        return self


class Script(_Model):
    content: str
    cluster: str = ""
    timeout: Duration = None


class Sleep(_Model):
    duration: Duration


OPERATION_KINDS = ("apply", "assert_", "command", "create", "delete", "describe", "pod_logs", "script", "sleep")


class Operation(_Model):
    """One step operation; exactly one of the typed fields is set."""

    description: str = ""
    apply: Apply | None = None
    assert_: Assert | None = Field(default=None, alias="assert")
    command: Command | None = None
    create: Create | None = None
    delete: Delete | None = None
    describe: Describe | None = None
    pod_logs: PodLogs | None = None
    script: Script | None = None
    sleep: Sleep | None = None

    @model_validator(mode="after")
    def _check_one_of(self):
        if sum(getattr(self, kind) is not None for kind in OPERATION_KINDS) != 1:
            raise ValueError(f"exactly one of {', '.join(k.rstrip('_') for k in OPERATION_KINDS)} must be specified")
        return self

    @property
    def kind(self) -> str:
        return next(kind for kind in OPERATION_KINDS if getattr(self, kind) is not None).rstrip("_")

    @property
    def body(self) -> Any:
        return next(getattr(self, kind) for kind in OPERATION_KINDS if getattr(self, kind) is not None)


# ============================================================================
# Tests
# ============================================================================

class Timeouts(_Model):
    apply: Duration = None
    assert_: Duration = Field(default=None, alias="assert")
    cleanup: Duration = None
    delete: Duration = None
    exec: Duration = None


class TestStep(_Model):
    name: str = ""
    bindings: list[Binding] = Field(default_factory=list)
    try_: list[Operation] = Field(default_factory=list, alias="try")
    catch: list[Operation] = Field(default_factory=list)
    finally_: list[Operation] = Field(default_factory=list, alias="finally")
    cleanup: list[Operation] = Field(default_factory=list)


class Scenario(_Model):
    bindings: list[Binding] = Field(default_factory=list)


class TestSpec(_Model):
    description: str = ""
    cluster: str = ""
    namespace: str = ""
    namespace_template: dict[str, Any] | None = None
    skip: bool | None = None
    concurrent: bool | None = None
    skip_delete: bool | None = None
    timeouts: Timeouts = Field(default_factory=Timeouts)
    bindings: list[Binding] = Field(default_factory=list)
    scenarios: list[Scenario] = Field(default_factory=list)
    steps: list[TestStep] = Field(default_factory=list)


class Test(_Model):
    api_version: str = TEST_API_VERSION
    kind: str = TEST_KIND
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: TestSpec = Field(default_factory=TestSpec)
