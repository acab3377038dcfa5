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

"""kubectl operations: manifests and the operator's cluster-admin binding."""

from __future__ import annotations

from pathlib import Path

import sh

from meshex_manager import console
from meshex_manager.constants import CLUSTER_ADMIN_BINDING, CLUSTER_ADMIN_ROLE


def apply_manifest(manifest: Path, namespace: str | None = None) -> None:
    """Apply a manifest file, optionally into an explicit namespace.

    Args:
        manifest: Path of the YAML manifest.
        namespace: Target namespace, or None for the manifest's own/default namespace.
    """
    ns_args = ["-n", namespace] if namespace else []
    sh.kubectl("apply", *ns_args, "-f", str(manifest))
    where = f" (namespace {namespace})" if namespace else ""
    console.print(f"[green]  \u2713 Applied {manifest.name}{where}[/green]")


def apply_manifest_text(content: str, source: str, namespace: str | None = None) -> None:
    """Apply manifest content piped through stdin.

    Args:
        content: Rendered YAML, e.g. the output of ``istioctl kube-inject``.
        source: Name of the file the content came from, for progress output.
        namespace: Target namespace, or None for the default namespace.
    """
    ns_args = ["-n", namespace] if namespace else []
    sh.kubectl("apply", *ns_args, "-f", "-", _in=content)
    where = f" (namespace {namespace})" if namespace else ""
    console.print(f"[green]  \u2713 Applied injected {source}{where}[/green]")


def cluster_role_binding_exists(name: str = CLUSTER_ADMIN_BINDING) -> bool:
    """Check whether a ClusterRoleBinding with the given name exists.

    Args:
        name: ClusterRoleBinding name.
    """
    names = str(sh.kubectl(
        "get", "clusterrolebinding",
        "--field-selector", f"metadata.name={name}",
        "-o", "jsonpath={.items[*].metadata.name}",
    )).split()
    return name in names


def ensure_cluster_admin_binding(account: str, name: str = CLUSTER_ADMIN_BINDING) -> bool:
    """Grant cluster-admin to the operator's account unless the binding exists.

    The check and the create are separate calls; concurrent runs against one
    cluster may both attempt the create.

    Args:
        account: Authenticated gcloud account to bind.
        name: ClusterRoleBinding name.

    Returns:
        True if the binding was created, False if it already existed.
    """
    if cluster_role_binding_exists(name):
        console.print(f"[yellow]   ClusterRoleBinding '{name}' already exists[/yellow]")
        return False
    sh.kubectl(
        "create", "clusterrolebinding", name,
        f"--clusterrole={CLUSTER_ADMIN_ROLE}",
        f"--user={account}",
    )
    console.print(f"[green]  \u2713 Bound {CLUSTER_ADMIN_ROLE} to {account}[/green]")
    return True
