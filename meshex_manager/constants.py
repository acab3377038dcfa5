# /*
# Copyright 2026 The Meshex Manager Authors.
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

"""Installer constants and lookups into the packaged dependencies.yaml."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# -- Resolved paths --
PACKAGE_DIR = Path(__file__).resolve().parent
NAMESPACES_MANIFEST = PACKAGE_DIR / "manifests" / "namespaces.yaml"
VM_SETUP_SCRIPT = PACKAGE_DIR / "scripts" / "setup-gce-vm.sh"
DEPENDENCIES_FILE = PACKAGE_DIR / "dependencies.yaml"


def load_dependencies(path: Path = DEPENDENCIES_FILE) -> dict:
    """Read the tools, per-project APIs and Istio release layout the installer relies on."""
    return yaml.safe_load(path.read_text()) or {}


DEPENDENCIES = load_dependencies()


def dep_value(*keys: str, default: Any = None) -> Any:
    """Look up a nested entry of dependencies.yaml.

    ``dep_value("istio", "manifests", "control_plane")`` returns the control
    plane manifest path; *default* is returned when any level is absent.
    """
    node: Any = DEPENDENCIES
    for key in keys:
        node = node.get(key) if isinstance(node, dict) else None
        if node is None:
            return default
    return node


DEFAULT_ENV_FILE = "istio.env"

# -- Host OS detection (uname -s -> release suffix) --
OS_TYPES = {"Linux": "linux", "Darwin": "osx"}

# -- Namespaces --
NS_ISTIO_SYSTEM = "istio-system"
DEFAULT_VM_NAMESPACE = "vm"
DEFAULT_BOOKINFO_NAMESPACE = "bookinfo"

# -- Cluster bootstrap --
CLUSTER_ADMIN_BINDING = "cluster-admin-binding"
CLUSTER_ADMIN_ROLE = "cluster-admin"

# -- Mesh expansion --
CLUSTER_ENV_FILE = "cluster.env"
AUTH_POLICY_KEY = "CONTROL_PLANE_AUTH_POLICY"
AUTH_POLICY_MUTUAL_TLS = "MUTUAL_TLS"
AUTH_POLICY_NONE = "NONE"
DEFAULT_VM_SERVICE_NAME = "mysqldb"
DEFAULT_VM_SERVICE_PORT = 3306

# -- Ingress --
INGRESS_GATEWAY_SERVICE = "istio-ingressgateway"
INGRESS_HTTP_PORT_NAME = "http"
PRODUCT_PAGE_PATH = "/productpage"
DEFAULT_INGRESS_WAIT_ATTEMPTS = 30
DEFAULT_INGRESS_POLL_INTERVAL_SECONDS = 10

# -- Relative paths inside the Istio release --
REL_ISTIOCTL = "bin/istioctl"
REL_SETUP_MESH_EX = "install/tools/setupMeshEx.sh"
REL_BOOKINFO_APP = "samples/bookinfo/platform/kube/bookinfo.yaml"
REL_BOOKINFO_RATINGS_MYSQL_VM = "samples/bookinfo/platform/kube/bookinfo-ratings-v2-mysql-vm.yaml"
REL_BOOKINFO_GATEWAY = "samples/bookinfo/networking/bookinfo-gateway.yaml"
REL_VS_ALL_V1 = "samples/bookinfo/networking/virtual-service-all-v1.yaml"
REL_VS_RATINGS_MYSQL_VM = "samples/bookinfo/networking/virtual-service-ratings-mysql-vm.yaml"
REL_VS_REVIEWS_V3 = "samples/bookinfo/networking/virtual-service-reviews-v3.yaml"
REL_DR_ALL = "samples/bookinfo/networking/destination-rule-all.yaml"
