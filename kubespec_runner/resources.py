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

"""Resource mapping: reference -> (resource string, cluster scoped)."""

from __future__ import annotations

from typing import Protocol

from kubespec_runner import template
from kubespec_runner.apis import ResourceReference
from kubespec_runner.bindings import Bindings
from kubespec_runner.client import Client
from kubespec_runner.errors import InvalidSpec


class ResourceMapper(Protocol):
    def __call__(self, client: Client, bindings: Bindings, reference: ResourceReference) -> tuple[str, bool]: ...


def map_resource(client: Client, bindings: Bindings, reference: ResourceReference) -> tuple[str, bool]:
    """Resolve a reference to the kubectl resource string and its scope.

    Args:
        client: Cluster client answering discovery questions.
        bindings: Context used to resolve templated reference fields.
        reference: Resource name, or apiVersion/kind pair.

    Returns:
        Tuple of (resource, clustered), e.g. ``("deployments.apps", False)``.

    Raises:
        InvalidSpec: If the reference names neither or both forms.
        TemplateError: If a templated field fails to resolve.
        ClusterError: If the cluster cannot map the reference.
    """
    resource = template.string(reference.resource, bindings)
    api_version = template.string(reference.api_version, bindings)
    kind = template.string(reference.kind, bindings)
    if resource and (api_version or kind):
        raise InvalidSpec("resource cannot be provided together with apiVersion and kind")
    if resource:
        return resource, client.is_cluster_scoped(resource)
    if not api_version or not kind:
        raise InvalidSpec("a resource or apiVersion and kind must be specified")
    return client.resource_mapping(api_version, kind)
