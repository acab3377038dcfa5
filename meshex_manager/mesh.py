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

"""Istio control-plane installation and mesh expansion to the VM."""

from __future__ import annotations

import os
from pathlib import Path

import sh
import yaml

from meshex_manager import console, logger
from meshex_manager.cluster import apply_manifest, apply_manifest_text
from meshex_manager.cluster_env import disable_control_plane_mtls
from meshex_manager.config import MeshExpansionConfig
from meshex_manager.constants import (
    AUTH_POLICY_KEY,
    CLUSTER_ENV_FILE,
    DEFAULT_BOOKINFO_NAMESPACE,
    DEFAULT_VM_NAMESPACE,
    NAMESPACES_MANIFEST,
    REL_ISTIOCTL,
    REL_SETUP_MESH_EX,
    dep_value,
)
from meshex_manager.utils import gcp_opts


def istioctl(istio_dir: Path) -> sh.Command:
    """Return the istioctl binary shipped with the release."""
    return sh.Command(str(istio_dir / REL_ISTIOCTL))


def _setup_mesh_ex(istio_dir: Path, cfg: MeshExpansionConfig, project: str, *args: str) -> None:
    """Run setupMeshEx.sh from the release root with GCP_OPTS aimed at *project*.

    The script resolves its inputs relative to the release root, so it always
    runs with that directory as its working directory.
    """
    env = {
        **os.environ,
        "GCP_OPTS": gcp_opts(cfg.zone, project),
        "SERVICE_NAMESPACE": cfg.vm_namespace,
        "PATH": f"{istio_dir / 'bin'}{os.pathsep}{os.environ.get('PATH', '')}",
    }
    logger.debug("setupMeshEx.sh %s (GCP_OPTS=%s)", " ".join(args), env["GCP_OPTS"])
    script = sh.Command(str(istio_dir / REL_SETUP_MESH_EX))
    script(*args, _cwd=str(istio_dir), _env=env)


# ============================================================================
# Control plane
# ============================================================================

def install_control_plane(istio_dir: Path) -> None:
    """Apply the Istio control plane and the mesh-expansion load balancers.

    Args:
        istio_dir: Root of the extracted Istio release.
    """
    apply_manifest(istio_dir / dep_value("istio", "manifests", "control_plane"))
    apply_manifest(istio_dir / dep_value("istio", "manifests", "mesh_expansion"))


# ============================================================================
# Mesh expansion
# ============================================================================

def generate_cluster_env(cfg: MeshExpansionConfig, istio_dir: Path) -> Path:
    """Generate cluster.env describing the cluster to the expansion VM.

    Returns:
        Path of the generated file.
    """
    _setup_mesh_ex(istio_dir, cfg, cfg.istio_project, "generateClusterEnv", cfg.istio_cluster)
    return istio_dir / CLUSTER_ENV_FILE


def disable_cluster_env_mtls(istio_dir: Path) -> None:
    """Turn off control-plane mutual TLS in the generated cluster.env.

    Raises:
        FileNotFoundError: If cluster.env has not been generated.
    """
    path = istio_dir / CLUSTER_ENV_FILE
    if disable_control_plane_mtls(path):
        console.print(f"[green]  \u2713 {AUTH_POLICY_KEY} set to NONE in {path.name}[/green]")


def generate_dnsmasq(cfg: MeshExpansionConfig, istio_dir: Path) -> None:
    """Generate the dnsmasq configuration the VM uses to resolve mesh services."""
    _setup_mesh_ex(istio_dir, cfg, cfg.istio_project, "generateDnsmasq")


def render_namespaces(cfg: MeshExpansionConfig, manifest: Path = NAMESPACES_MANIFEST) -> str:
    """Return the namespace manifest with the configured namespace names.

    The bundled documents are named after the default VM and Bookinfo
    namespaces; those names are replaced with ``cfg.vm_namespace`` and
    ``cfg.bookinfo_namespace``. Labels are kept as they are.
    """
    names = {
        DEFAULT_VM_NAMESPACE: cfg.vm_namespace,
        DEFAULT_BOOKINFO_NAMESPACE: cfg.bookinfo_namespace,
    }
    docs = [doc for doc in yaml.safe_load_all(manifest.read_text()) if doc]
    for doc in docs:
        metadata = doc["metadata"]
        metadata["name"] = names.get(metadata["name"], metadata["name"])
    return yaml.safe_dump_all(docs, sort_keys=False)


def create_namespaces(cfg: MeshExpansionConfig, manifest: Path = NAMESPACES_MANIFEST) -> None:
    """Create the namespaces for VM-hosted services and namespaced Bookinfo rules."""
    apply_manifest_text(render_namespaces(cfg, manifest), manifest.name)


def setup_vm(cfg: MeshExpansionConfig, istio_dir: Path) -> None:
    """Install the Istio sidecar and node agent on the expansion VM.

    GCP_OPTS targets the VM's project for this call only.
    """
    _setup_mesh_ex(istio_dir, cfg, cfg.gce_project, "gceMachineSetup", cfg.gce_vm)


def expand_mesh(cfg: MeshExpansionConfig, istio_dir: Path) -> None:
    """Prepare cluster-side mesh expansion artifacts for the VM.

    Generates cluster.env, disables control-plane mutual TLS in it, generates
    the dnsmasq configuration and creates the VM namespaces, in that order.
    """
    generate_cluster_env(cfg, istio_dir)
    disable_cluster_env_mtls(istio_dir)
    generate_dnsmasq(cfg, istio_dir)
    create_namespaces(cfg)


def register_vm_service(cfg: MeshExpansionConfig, istio_dir: Path, vm_ip: str) -> None:
    """Register the VM-hosted database as a service in the mesh registry.

    Args:
        cfg: Installer configuration with the service name, namespace and port.
        istio_dir: Root of the extracted Istio release.
        vm_ip: Private network address of the VM.
    """
    istioctl(istio_dir)(
        "register", "-n", cfg.vm_namespace,
        cfg.vm_service_name, vm_ip, str(cfg.vm_service_port),
    )
    console.print(
        f"[green]  \u2713 Registered {cfg.vm_service_name}.{cfg.vm_namespace} "
        f"at {vm_ip}:{cfg.vm_service_port}[/green]"
    )


def kube_inject(istio_dir: Path, manifest: Path, namespace: str | None = None) -> str:
    """Return *manifest* with the Istio sidecar injected.

    Args:
        istio_dir: Root of the extracted Istio release.
        manifest: Deployment manifest to inject.
        namespace: Namespace to inject for, or None for the default namespace.
    """
    ns_args = ["-n", namespace] if namespace else []
    return str(istioctl(istio_dir)("kube-inject", *ns_args, "-f", str(manifest)))
