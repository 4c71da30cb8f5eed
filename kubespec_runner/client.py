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

"""Cluster client interface, the kubectl-backed client, and the namespacer."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Any, Protocol

import yaml

from kubespec_runner import logger
from kubespec_runner.constants import PROPAGATION_BACKGROUND
from kubespec_runner.errors import ClusterError, NotFoundError
from kubespec_runner.utils import run_kubectl

_NOT_FOUND_MARKER = "(NotFound)"


# ============================================================================
# Object helpers
# ============================================================================

@dataclass(frozen=True)
class ObjectKey:
    """Identity of a Kubernetes object.

    Attributes:
        api_version: Group/version of the object (``v1``, ``apps/v1``).
        kind: Object kind (``Namespace``, ``Deployment``).
        name: Object name.
        namespace: Object namespace, empty for cluster-scoped objects.
    """

    api_version: str
    kind: str
    name: str
    namespace: str = ""

    @classmethod
    def of(cls, obj: dict) -> ObjectKey:
        metadata = obj.get("metadata") or {}
        return cls(
            api_version=obj.get("apiVersion", ""),
            kind=obj.get("kind", ""),
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", "") or "",
        )

    def __str__(self) -> str:
        path = f"{self.namespace}/{self.name}" if self.namespace else self.name
        return f"{self.api_version}/{self.kind} {path}"


def namespace_object(name: str) -> dict:
    """Build a bare ``v1/Namespace`` manifest."""
    return {"apiVersion": "v1", "kind": "Namespace", "metadata": {"name": name}}


def api_group(api_version: str) -> str:
    return api_version.split("/")[0] if "/" in api_version else ""


@dataclass(frozen=True)
class ResourceRow:
    """One row of ``kubectl api-resources -o wide``."""

    name: str
    short_names: tuple[str, ...]
    api_version: str
    kind: str

    def matches(self, resource: str) -> bool:
        """Report whether *resource* names this row the way kubectl accepts it.

        The first segment may be the plural, singular or short name, or the
        kind. A remaining suffix must be the group, or version and group.
        """
        head, _, suffix = resource.partition(".")
        names = {self.name, self.kind.lower(), *self.short_names}
        if head not in names and head != self.kind:
            return False
        if not suffix:
            return True
        group = api_group(self.api_version)
        version = self.api_version.rsplit("/", 1)[-1]
        return suffix in {group, f"{version}.{group}".rstrip(".")}


def parse_api_resources(output: str) -> list[ResourceRow]:
    """Parse the fixed-width table printed by ``kubectl api-resources -o wide``.

    Columns are sliced at the offsets of the header titles since the
    SHORTNAMES cell is blank for most resources.
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines:
        return []
    header = lines[0]
    titles = header.split()
    offsets = [header.index(title) for title in titles]
    rows = []
    for line in lines[1:]:
        cells = {}
        for i, title in enumerate(titles):
            end = offsets[i + 1] if i + 1 < len(offsets) else None
            cells[title] = line[offsets[i]:end].strip()
        short_names = tuple(s for s in cells.get("SHORTNAMES", "").split(",") if s)
        rows.append(ResourceRow(cells.get("NAME", ""), short_names, cells.get("APIVERSION", ""), cells.get("KIND", "")))
    return rows


# ============================================================================
# Client interface
# ============================================================================

class Client(Protocol):
    """Narrow cluster access used by the engine.

    ``get`` raises ``NotFoundError`` when the object is absent and
    ``ClusterError`` for every other failure.
    """

    def get(self, key: ObjectKey) -> dict: ...

    def create(self, obj: dict) -> None: ...

    def apply(self, obj: dict) -> None: ...

    def delete(self, obj: dict, propagation: str = PROPAGATION_BACKGROUND) -> None: ...

    def resource_mapping(self, api_version: str, kind: str) -> tuple[str, bool]: ...

    def is_cluster_scoped(self, resource: str) -> bool: ...

    def is_namespaced(self, api_version: str, kind: str) -> bool: ...


def _raise_for(stderr: str, what: str) -> None:
    if _NOT_FOUND_MARKER in stderr:
        raise NotFoundError(f"{what}: {stderr.strip()}")
    raise ClusterError(f"{what}: {stderr.strip()}")


class KubectlClient:
    """Client implementation that shells out to ``kubectl``.

    Discovery answers (resource names and scopes) are cached per client since
    they only change when CRDs are installed or removed.
    """

    def __init__(self, kubeconfig: str | None = None, context: str | None = None, timeout: float = 30) -> None:
        self.kubeconfig = kubeconfig
        self.context = context
        self.timeout = timeout
        self._lock = threading.Lock()
        self._discovery: dict[str, list[dict]] = {}
        self._cluster_scoped: list[ResourceRow] | None = None

    def _kubectl(self, args: list[str], stdin: str | None = None) -> tuple[bool, str, str]:
        return run_kubectl(args, timeout=self.timeout, kubeconfig=self.kubeconfig, context=self.context, stdin=stdin)

    def _target(self, key: ObjectKey) -> list[str]:
        resource, clustered = self.resource_mapping(key.api_version, key.kind)
        args = [resource, key.name]
        if key.namespace and not clustered:
            args += ["-n", key.namespace]
        return args

    def get(self, key: ObjectKey) -> dict:
        ok, stdout, stderr = self._kubectl(["get", *self._target(key), "-o", "json"])
        if not ok:
            _raise_for(stderr, f"failed to get {key}")
        return json.loads(stdout)

    def create(self, obj: dict) -> None:
        ok, _, stderr = self._kubectl(["create", "-f", "-"], stdin=yaml.safe_dump(obj))
        if not ok:
            raise ClusterError(f"failed to create {ObjectKey.of(obj)}: {stderr.strip()}")

    def apply(self, obj: dict) -> None:
        ok, _, stderr = self._kubectl(["apply", "-f", "-"], stdin=yaml.safe_dump(obj))
        if not ok:
            raise ClusterError(f"failed to apply {ObjectKey.of(obj)}: {stderr.strip()}")

    def delete(self, obj: dict, propagation: str = PROPAGATION_BACKGROUND) -> None:
        key = ObjectKey.of(obj)
        args = ["delete", *self._target(key), f"--cascade={propagation.lower()}", "--wait=false"]
        ok, _, stderr = self._kubectl(args)
        if not ok:
            _raise_for(stderr, f"failed to delete {key}")

    # -- discovery --

    def _api_resources(self, api_version: str) -> list[dict]:
        with self._lock:
            if api_version in self._discovery:
                return self._discovery[api_version]
        path = f"/api/{api_version}" if "/" not in api_version else f"/apis/{api_version}"
        ok, stdout, stderr = self._kubectl(["get", "--raw", path])
        if not ok:
            _raise_for(stderr, f"failed to discover {api_version}")
        resources = [r for r in json.loads(stdout).get("resources", []) if "/" not in r["name"]]
        with self._lock:
            self._discovery[api_version] = resources
        return resources

    def resource_mapping(self, api_version: str, kind: str) -> tuple[str, bool]:
        for resource in self._api_resources(api_version):
            if resource.get("kind") == kind:
                group = api_group(api_version)
                name = f"{resource['name']}.{group}" if group else resource["name"]
                return name, not resource.get("namespaced", False)
        raise NotFoundError(f"no resource mapping for {api_version}/{kind}")

    def is_cluster_scoped(self, resource: str) -> bool:
        with self._lock:
            rows = self._cluster_scoped
        if rows is None:
            ok, stdout, stderr = self._kubectl(["api-resources", "--namespaced=false", "-o", "wide"])
            if not ok:
                _raise_for(stderr, "failed to list cluster scoped resources")
            rows = parse_api_resources(stdout)
            with self._lock:
                self._cluster_scoped = rows
        return any(row.matches(resource) for row in rows)

    def is_namespaced(self, api_version: str, kind: str) -> bool:
        _, clustered = self.resource_mapping(api_version, kind)
        return not clustered


# ============================================================================
# Namespacer
# ============================================================================

class Namespacer:
    """Scopes namespaced objects to a fixed namespace."""

    def __init__(self, client: Client, namespace: str) -> None:
        self.client = client
        self.namespace = namespace

    def apply(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Set the namespace on *obj* when it is namespaced and has none.

        Raises:
            ClusterError: If the object kind cannot be mapped.
        """
        metadata = obj.setdefault("metadata", {})
        if metadata.get("namespace"):
            return obj
        if self.client.is_namespaced(obj.get("apiVersion", ""), obj.get("kind", "")):
            metadata["namespace"] = self.namespace
        else:
            logger.debug("%s is cluster scoped, namespace not set", ObjectKey.of(obj))
        return obj
