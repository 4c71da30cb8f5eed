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

"""Shared fixtures: an in-memory cluster client and a registry around it."""

from __future__ import annotations

import threading

import pytest

from kubespec_runner.client import ObjectKey
from kubespec_runner.clusters import DEFAULT_CLUSTER, ClusterConfig, Registry
from kubespec_runner.config import Configuration
from kubespec_runner.constants import PROPAGATION_BACKGROUND
from kubespec_runner.errors import ClusterError, NotFoundError

RESOURCES = {
    ("v1", "Namespace"): ("namespaces", True),
    ("v1", "ConfigMap"): ("configmaps", False),
    ("v1", "Pod"): ("pods", False),
    ("apps/v1", "Deployment"): ("deployments.apps", False),
    ("rbac.authorization.k8s.io/v1", "ClusterRole"): ("clusterroles.rbac.authorization.k8s.io", True),
}
CLUSTER_SCOPED = {"namespaces", "nodes", "clusterroles", "clusterroles.rbac.authorization.k8s.io"}


class FakeClient:
    """In-memory client storing objects by key and recording every call."""

    def __init__(self) -> None:
        self.objects: dict[ObjectKey, dict] = {}
        self.calls: list[tuple[str, ObjectKey]] = []
        self.fail_get: Exception | None = None
        self.fail_create: Exception | None = None
        self._lock = threading.Lock()

    def _record(self, verb: str, key: ObjectKey) -> None:
        with self._lock:
            self.calls.append((verb, key))

    def verbs(self, verb: str) -> list[ObjectKey]:
        with self._lock:
            return [key for v, key in self.calls if v == verb]

    def get(self, key: ObjectKey) -> dict:
        self._record("get", key)
        if self.fail_get is not None:
            raise self.fail_get
        with self._lock:
            if key not in self.objects:
                raise NotFoundError(f"{key} not found")
            return self.objects[key]

    def create(self, obj: dict) -> None:
        key = ObjectKey.of(obj)
        self._record("create", key)
        if self.fail_create is not None:
            raise self.fail_create
        with self._lock:
            if key in self.objects:
                raise ClusterError(f"{key} already exists")
            self.objects[key] = obj

    def apply(self, obj: dict) -> None:
        key = ObjectKey.of(obj)
        self._record("apply", key)
        with self._lock:
            self.objects[key] = obj

    def delete(self, obj: dict, propagation: str = PROPAGATION_BACKGROUND) -> None:
        key = ObjectKey.of(obj)
        self._record("delete", key)
        with self._lock:
            if key not in self.objects:
                raise NotFoundError(f"{key} not found")
            del self.objects[key]

    def resource_mapping(self, api_version: str, kind: str) -> tuple[str, bool]:
        try:
            return RESOURCES[(api_version, kind)]
        except KeyError:
            raise NotFoundError(f"no resource mapping for {api_version}/{kind}") from None

    def is_cluster_scoped(self, resource: str) -> bool:
        return resource in CLUSTER_SCOPED

    def is_namespaced(self, api_version: str, kind: str) -> bool:
        return not self.resource_mapping(api_version, kind)[1]


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def registry(client: FakeClient) -> Registry:
    return Registry().register(DEFAULT_CLUSTER, ClusterConfig(kubeconfig="/tmp/kubeconfig"), client)


@pytest.fixture
def config() -> Configuration:
    return Configuration()
