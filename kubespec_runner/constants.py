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

"""Constants shared by the engine, the collectors and the CLI."""

from __future__ import annotations

# -- Environment --
ENV_PREFIX = "KUBESPEC_"

# -- Entrypoints --
KUBECTL = "kubectl"
SHELL = "sh"

# -- Binding names --
BINDING_NAMESPACE = "namespace"
BINDING_TEST = "test"
BINDING_STEP = "step"
BINDING_CLIENT = "client"
BINDING_CONFIG = "config"
BINDING_CLUSTER = "cluster"

# -- Collectors --
NAMESPACE_PLACEHOLDER = "$NAMESPACE"
ALL_NAMESPACES = "*"
ENV_NAMESPACE = "NAMESPACE"
ENV_KUBECONFIG = "KUBECONFIG"

# -- Namespaces --
NAMESPACE_PREFIX = "kubespec"
NAMESPACE_SUFFIX_LENGTH = 8

# -- Delete propagation policies --
PROPAGATION_BACKGROUND = "Background"
PROPAGATION_FOREGROUND = "Foreground"
PROPAGATION_ORPHAN = "Orphan"

# -- Timeout defaults (seconds) --
DEFAULT_APPLY_TIMEOUT = 5.0
DEFAULT_ASSERT_TIMEOUT = 30.0
DEFAULT_CLEANUP_TIMEOUT = 30.0
DEFAULT_DELETE_TIMEOUT = 15.0
DEFAULT_EXEC_TIMEOUT = 5.0

# Extra wait before an operation is abandoned, so an action that honours its
# own timeout reports its error instead of a bare timeout.
TIMEOUT_GRACE_SECONDS = 1.0

# -- Polling --
POLL_INTERVAL_SECONDS = 1.0

# -- Execution defaults --
DEFAULT_PARALLEL = 8
MAX_PARALLEL = 256

# -- Discovery defaults --
DEFAULT_TEST_FILE = "kubespec-test"
TEST_FILE_EXTENSIONS = (".yaml", ".yml")
TEST_API_VERSION = "kubespec.dev/v1alpha1"
TEST_KIND = "Test"

# -- Report defaults --
DEFAULT_REPORT_NAME = "kubespec-report"
REPORT_FORMAT_JSON = "JSON"
REPORT_FORMAT_YAML = "YAML"
