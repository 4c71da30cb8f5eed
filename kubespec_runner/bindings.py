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

"""Immutable binding context threaded through every scope of a run."""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import Any

from kubespec_runner.constants import BINDING_CLIENT, BINDING_CLUSTER, BINDING_CONFIG
from kubespec_runner.errors import InvalidSpec

_BINDING_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class Bindings:
    """Chained mapping from binding name to resolved value.

    Every ``register`` call returns a new child link; the receiver is never
    modified, so a context can be handed to concurrent branches and each
    branch extends its own copy. A child may shadow a parent's binding but
    the parent keeps seeing its own value.
    """

    __slots__ = ("_parent", "_name", "_value")

    def __init__(self, parent: Bindings | None = None, name: str | None = None, value: Any = None) -> None:
        self._parent = parent
        self._name = name
        self._value = value

    def register(self, name: str, value: Any) -> Bindings:
        return Bindings(self, name, value)

    def _links(self) -> Iterator[Bindings]:
        link: Bindings | None = self
        while link is not None:
            if link._name is not None:
                yield link
            link = link._parent

    def get(self, name: str, default: Any = None) -> Any:
        for link in self._links():
            if link._name == name:
                return link._value
        return default

    def __getitem__(self, name: str) -> Any:
        for link in self._links():
            if link._name == name:
                return link._value
        raise KeyError(name)

    def __contains__(self, name: object) -> bool:
        return any(link._name == name for link in self._links())

    def names(self) -> list[str]:
        """Return the visible binding names, innermost first."""
        seen: list[str] = []
        for link in self._links():
            if link._name not in seen:
                seen.append(link._name)
        return seen

    def to_dict(self) -> dict[str, Any]:
        """Snapshot the visible bindings, children shadowing parents."""
        snapshot: dict[str, Any] = {}
        for link in self._links():
            snapshot.setdefault(link._name, link._value)
        return snapshot

    def __repr__(self) -> str:
        return f"Bindings({', '.join(self.names())})"


def register_named_binding(bindings: Bindings, name: str, value: Any) -> Bindings:
    """Register *value* under *name* after validating the name.

    Raises:
        InvalidSpec: If *name* is not a valid identifier.
    """
    if not _BINDING_NAME.match(name or ""):
        raise InvalidSpec(f"invalid binding name: {name!r}")
    return bindings.register(name, value)


def register_cluster_bindings(bindings: Bindings, cluster, client, name: str = "") -> Bindings:
    """Register the cluster identity bindings (``client``, ``config``, ``cluster``).

    Args:
        bindings: Context to extend.
        cluster: Resolved cluster configuration, or None.
        client: Cluster client, or None.
        name: Registry name of the cluster, empty for the default cluster.

    Returns:
        A new context carrying the cluster identity.
    """
    config = cluster.to_dict() if cluster is not None else None
    bindings = bindings.register(BINDING_CLIENT, client)
    bindings = bindings.register(BINDING_CONFIG, config)
    return bindings.register(BINDING_CLUSTER, name)


def register_bindings(bindings: Bindings, specs: Iterable, resolver) -> Bindings:
    """Resolve declared bindings in order and register each one.

    Later bindings see the values of earlier ones.

    Args:
        bindings: Context to extend.
        specs: Declared bindings exposing ``name`` and ``value``.
        resolver: Callable ``(value, bindings) -> resolved value``.

    Returns:
        The extended context.
    """
    for spec in specs:
        value = resolver(spec.value, bindings)
        bindings = register_named_binding(bindings, spec.name, value)
    return bindings
