# /*
# Copyright 2026 The crossplane-kind Authors.
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

"""Defaults, resource names, and polling constants."""

from __future__ import annotations

# -- Run defaults --
DEFAULT_CLUSTER_NAME = "crossplane-kind"
DEFAULT_KINDEST_NODE_IMAGE = "kindest/node:v1.33.1"
DEFAULT_CROSSPLANE_VERSION = "v1.20.1"
DEFAULT_PROVIDER_AZURE_VERSION = "v1.13.0"
DEFAULT_FUNC_PAT_VERSION = "v0.9.0"
DEFAULT_FUNC_ENVCFG_VERSION = "v0.4.0"
DEFAULT_WAIT_TIMEOUT = "10m"

# -- Required tools --
REQUIRED_TOOLS = ("kind", "kubectl", "helm")
PREREQ_TOOLS = ("docker", *REQUIRED_TOOLS)
MIN_TOOL_VERSIONS = {
    "kind": (0, 20, 0),
    "kubectl": (1, 25, 0),
    "helm": (3, 11, 0),
}
TOOL_INSTALL_HINTS = {
    "kind": "https://kind.sigs.k8s.io/docs/user/quick-start/",
    "kubectl": "https://kubernetes.io/docs/tasks/tools/",
    "helm": "https://helm.sh/docs/intro/install/",
    "docker": "https://docs.docker.com/get-docker/",
}

# -- Namespaces --
NS_CROSSPLANE = "crossplane-system"

# -- Helm --
HELM_REPO_CROSSPLANE = "crossplane-stable"
HELM_REPO_CROSSPLANE_URL = "https://charts.crossplane.io/stable"
HELM_CHART_CROSSPLANE = "crossplane-stable/crossplane"
HELM_RELEASE_CROSSPLANE = "crossplane"

# -- Deployments --
DEPLOY_CROSSPLANE = "crossplane"
DEPLOY_RBAC_MANAGER = "crossplane-rbac-manager"

# -- Package API --
PKG_API_GROUP = "pkg.crossplane.io"
PROVIDER_API_VERSION = f"{PKG_API_GROUP}/v1"
FUNCTION_API_VERSION = f"{PKG_API_GROUP}/v1beta1"
KIND_PROVIDER = f"provider.{PKG_API_GROUP}"
KIND_FUNCTION = f"function.{PKG_API_GROUP}"
KIND_FUNCTION_REVISION = f"functionrevision.{PKG_API_GROUP}"
RESOURCE_FUNCTION_REVISIONS = f"functionrevisions.{PKG_API_GROUP}"
LABEL_PKG_REVISION = f"{PKG_API_GROUP}/revision"
CONDITION_HEALTHY = "Healthy"

PACKAGE_CRDS = (
    f"functions.{PKG_API_GROUP}",
    f"functionrevisions.{PKG_API_GROUP}",
    f"providers.{PKG_API_GROUP}",
    f"providerrevisions.{PKG_API_GROUP}",
)

# -- Packages --
PROVIDER_AZURE_NAME = "provider-family-azure"
PROVIDER_AZURE_PACKAGE = "xpkg.crossplane.io/crossplane-contrib/provider-family-azure"
FUNC_PAT_NAME = "function-patch-and-transform"
FUNC_PAT_PACKAGE = "xpkg.upbound.io/crossplane-contrib/function-patch-and-transform"
FUNC_ENVCFG_NAME = "function-environment-configs"
FUNC_ENVCFG_PACKAGE = "xpkg.upbound.io/crossplane-contrib/function-environment-configs"
FUNCTION_NAME_PREFIX = "function-"

# -- Polling --
HEALTH_POLL_INTERVAL_SECONDS = 3
LINGERING_CLEANUP_TIMEOUT_SECONDS = 60
LINGERING_CLEANUP_POLL_INTERVAL_SECONDS = 2

# -- Prerequisite checks --
CLUSTER_INFO_REQUEST_TIMEOUT = "10s"
NETWORK_CHECK_TIMEOUT_SECONDS = 10
NETWORK_CHECK_URLS = (
    f"{HELM_REPO_CROSSPLANE_URL}/index.yaml",
    "https://xpkg.crossplane.io/",
)
KIND_CONTEXT_PREFIX = "kind-"
KIND_NODE_MARKERS = ("kind.x-k8s.io", "kind://")
