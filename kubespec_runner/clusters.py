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

"""Cluster registry resolving named clusters to (config, client) pairs."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import asdict, dataclass, field

from kubespec_runner.client import Client, KubectlClient
from kubespec_runner.errors import ClusterError

DEFAULT_CLUSTER = ""


@dataclass(frozen=True)
class ClusterConfig:
    """How to reach a cluster.

    Attributes:
        kubeconfig: Path of the kubeconfig file, or None for the default.
        context: kubeconfig context, or None for the current context.
    """

    kubeconfig: str | None = None
    context: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Cluster:
    """Resolved cluster descriptor, owned by the registry for the whole run."""

    name: str
    config: ClusterConfig
    client: Client | None = field(default=None, repr=False)


def kubectl_client_factory(config: ClusterConfig) -> Client:
    return KubectlClient(kubeconfig=config.kubeconfig, context=config.context)


class Registry:
    """Thread-safe map of cluster name to lazily built client.

    The default cluster is registered under the empty name.
    """

    def __init__(self, client_factory: Callable[[ClusterConfig], Client] = kubectl_client_factory) -> None:
        self._client_factory = client_factory
        self._clusters: dict[str, Cluster] = {}
        self._lock = threading.Lock()

    def register(self, name: str, config: ClusterConfig, client: Client | None = None) -> Registry:
        with self._lock:
            self._clusters[name] = Cluster(name=name, config=config, client=client)
        return self

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._clusters)

    def resolve(self, require_explicit_name: bool, name: str = "") -> tuple[ClusterConfig | None, Client | None]:
        """Resolve a cluster by name.

        Args:
            require_explicit_name: When True an empty *name* resolves to no
                cluster instead of the default one.
            name: Registry name of the cluster, empty for the default.

        Returns:
            Tuple of (config, client); both None when nothing applies.

        Raises:
            ClusterError: If *name* is not registered or the client fails to build.
        """
        if not name and require_explicit_name:
            return None, None
        with self._lock:
            cluster = self._clusters.get(name)
            if cluster is None:
                if not name:
                    return None, None
                raise ClusterError(f"cluster not found: {name}")
            if cluster.client is None:
                try:
                    cluster.client = self._client_factory(cluster.config)
                except Exception as err:
                    raise ClusterError(f"failed to create client for cluster {name or '(default)'}: {err}") from err
            return cluster.config, cluster.client
