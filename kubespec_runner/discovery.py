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

"""Test discovery: load and validate test files from folders."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import ValidationError

from kubespec_runner import logger
from kubespec_runner.apis import Test
from kubespec_runner.config import DiscoveryConfig
from kubespec_runner.constants import TEST_FILE_EXTENSIONS, TEST_KIND
from kubespec_runner.errors import InvalidSpec


@dataclass(frozen=True)
class DiscoveredTest:
    """A test declaration and the folder it was loaded from."""

    base_path: Path
    test: Test


def load_tests(path: Path) -> list[Test]:
    """Load every test document of a YAML file.

    Raises:
        InvalidSpec: If the file cannot be parsed or a document is invalid.
    """
    try:
        with open(path) as f:
            documents = [doc for doc in yaml.safe_load_all(f) if doc is not None]
    except (OSError, yaml.YAMLError) as err:
        raise InvalidSpec(f"failed to load {path}: {err}") from err
    tests = []
    for doc in documents:
        if not isinstance(doc, dict) or doc.get("kind", TEST_KIND) != TEST_KIND:
            logger.debug("ignoring non test document in %s", path)
            continue
        try:
            tests.append(Test.model_validate(doc))
        except ValidationError as err:
            raise InvalidSpec(f"invalid test in {path}: {err}") from err
    return tests


def _test_files(root: Path, test_file: str) -> list[Path]:
    if root.is_file():
        return [root]
    names = {f"{test_file}{ext}" for ext in TEST_FILE_EXTENSIONS}
    return sorted(p for p in root.rglob("*") if p.is_file() and p.name in names)


def discover_tests(paths: list[Path], config: DiscoveryConfig) -> list[DiscoveredTest]:
    """Discover tests under *paths*, in a stable order.

    Folders are walked recursively and sorted so identical trees always
    yield the same order.

    Args:
        paths: Folders or files to search.
        config: Discovery settings (file name and name filters).

    Returns:
        Discovered tests, in path order then document order.

    Raises:
        InvalidSpec: If a path does not exist or a test file is invalid.
    """
    include = re.compile(config.include_test_regex) if config.include_test_regex else None
    exclude = re.compile(config.exclude_test_regex) if config.exclude_test_regex else None
    discovered: list[DiscoveredTest] = []
    for root in paths:
        if not root.exists():
            raise InvalidSpec(f"path not found: {root}")
        for file in _test_files(root, config.test_file):
            for test in load_tests(file):
                name = test.metadata.name
                if include and not include.search(name):
                    continue
                if exclude and exclude.search(name):
                    continue
                discovered.append(DiscoveredTest(base_path=file.parent, test=test))
    return discovered
