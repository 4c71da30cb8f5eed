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

"""JMESPath-backed template resolution over a binding context.

A string of the form ``(<expression>)`` is a JMESPath expression evaluated
against the visible bindings. Every binding is also in scope as the
variable ``$name``, so it can be used inside filters and projections where
the current node is not the binding context. Any other string is a literal.
Dicts and lists are resolved leaf by leaf.
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any

import jmespath
from jmespath.exceptions import JMESPathError

from kubespec_runner.bindings import Bindings
from kubespec_runner.errors import TemplateError

_EXPRESSION = re.compile(r"^\((.+)\)$", re.DOTALL)
_VARIABLE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def is_expression(value: Any) -> bool:
    return isinstance(value, str) and _EXPRESSION.match(value.strip()) is not None


def scoped(expression: str, names: list[str]) -> str:
    """Wrap *expression* in a ``let`` binding each of *names* as ``$name``.

    The variables are read from the root node by quoted identifier, so
    binding names that collide with JMESPath keywords stay valid.
    """
    names = [name for name in names if _VARIABLE.match(name)]
    if not names:
        return expression
    variables = ", ".join(f"${name} = {json.dumps(name)}" for name in names)
    return f"let {variables} in ({expression})"


def evaluate(expression: str, bindings: Bindings) -> Any:
    """Evaluate a bare JMESPath expression against *bindings*.

    Raises:
        TemplateError: If the expression is malformed or references an
            undefined variable.
    """
    try:
        return jmespath.search(scoped(expression, bindings.names()), bindings.to_dict())
    except JMESPathError as err:
        raise TemplateError(f"failed to evaluate {expression!r}: {err}") from err


def resolve(value: Any, bindings: Bindings) -> Any:
    """Resolve every expression found in *value*.

    Args:
        value: Scalar, dict or list possibly holding ``(expression)`` strings.
        bindings: Context the expressions are evaluated against.

    Returns:
        A new value with all expressions replaced by their results.
    """
    if isinstance(value, str):
        match = _EXPRESSION.match(value.strip())
        if match:
            return evaluate(match.group(1), bindings)
        return value
    if isinstance(value, dict):
        return {key: resolve(item, bindings) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve(item, bindings) for item in value]
    return value


def string(value: str | None, bindings: Bindings) -> str:
    """Resolve *value* to a string; empty and null results become ``""``.

    Raises:
        TemplateError: If the expression does not evaluate to a string.
    """
    if value is None:
        return ""
    result = resolve(value, bindings)
    if result is None:
        return ""
    if not isinstance(result, str):
        raise TemplateError(f"expression didn't evaluate to a string: {value!r}")
    return result


def integer(value: int | str | None, bindings: Bindings) -> int | None:
    """Resolve *value* to an int, keeping None as None.

    Raises:
        TemplateError: If the result is not an integer.
    """
    if value is None:
        return None
    result = resolve(value, bindings)
    if isinstance(result, bool) or not isinstance(result, (int, str)):
        raise TemplateError(f"expression didn't evaluate to an integer: {value!r}")
    try:
        return int(result)
    except ValueError as err:
        raise TemplateError(f"expression didn't evaluate to an integer: {value!r}") from err


def deep_merge(base: dict, overlay: dict) -> dict:
    """Merge *overlay* into *base* recursively; *overlay* wins on conflicts."""
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def merge(obj: dict, bindings: Bindings, template: dict) -> dict:
    """Resolve *template* and merge it over a copy of *obj*.

    Raises:
        TemplateError: If the template is not a mapping or fails to resolve.
    """
    resolved = resolve(template, bindings)
    if not isinstance(resolved, dict):
        raise TemplateError("template must resolve to a mapping")
    return deep_merge(copy.deepcopy(obj), resolved)
