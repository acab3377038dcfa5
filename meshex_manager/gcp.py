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

"""gcloud operations: project APIs, cluster credentials, and the expansion VM."""

from __future__ import annotations

import sys
from pathlib import Path

import sh

from meshex_manager import console, logger
from meshex_manager.config import MeshExpansionConfig
from meshex_manager.constants import dep_value


# ============================================================================
# Project APIs
# ============================================================================

def enable_project_api(project: str, api: str) -> None:
    """Enable a service API for a project. Enabling is idempotent.

    Args:
        project: Project id in which to enable the API.
        api: Name of the API, e.g. ``compute.googleapis.com``.
    """
    console.print(f"[yellow]\u2139\ufe0f  Enabling {api} in {project}...[/yellow]")
    sh.gcloud("services", "enable", api, "--project", project)


def enable_required_apis(cfg: MeshExpansionConfig) -> None:
    """Enable every API listed in dependencies.yaml for its project.

    Args:
        cfg: Installer configuration holding the project ids.
    """
    for project_field, apis in dep_value("apis", default={}).items():
        project = getattr(cfg, project_field)
        for api in apis:
            enable_project_api(project, api)
    console.print("[green]\u2705 Project APIs enabled[/green]")


# ============================================================================
# Cluster access
# ============================================================================

def get_cluster_credentials(cfg: MeshExpansionConfig) -> None:
    """Write credentials for the Istio cluster into the local kubeconfig.

    Args:
        cfg: Installer configuration with cluster name, zone and project.
    """
    sh.gcloud(
        "container", "clusters", "get-credentials", cfg.istio_cluster,
        "--zone", cfg.zone,
        "--project", cfg.istio_project,
    )
    console.print(f"[green]  \u2713 kubectl context set to cluster '{cfg.istio_cluster}'[/green]")


def get_active_account() -> str:
    """Return the account gcloud is authenticated as.

    Raises:
        RuntimeError: If gcloud has no active account.
    """
    account = str(sh.gcloud("config", "get-value", "core/account")).strip()
    if not account:
        raise RuntimeError("No active gcloud account; run 'gcloud auth login' first")
    return account


# ============================================================================
# Expansion VM
# ============================================================================

def get_instance_ip(cfg: MeshExpansionConfig) -> str:
    """Return the private network address of the expansion VM.

    Args:
        cfg: Installer configuration with VM name, project and zone.

    Raises:
        RuntimeError: If the instance reports no network address.
    """
    ip = str(sh.gcloud(
        "compute", "instances", "describe", cfg.gce_vm,
        "--format=value(networkInterfaces[].networkIP)",
        "--project", cfg.gce_project,
        "--zone", cfg.zone,
    )).strip()
    if not ip:
        raise RuntimeError(f"Instance '{cfg.gce_vm}' has no internal IP address")
    logger.debug("Instance %s has internal IP %s", cfg.gce_vm, ip)
    return ip


def run_remote_script(cfg: MeshExpansionConfig, script: Path) -> None:
    """Run a local script's contents on the expansion VM over ``gcloud compute ssh``.

    Args:
        cfg: Installer configuration with VM name, project and zone.
        script: Path of the script whose contents become the remote command.
    """
    console.print(f"[yellow]\u2139\ufe0f  Running {script.name} on {cfg.gce_vm}...[/yellow]")
    sh.gcloud(
        "compute", "ssh", cfg.gce_vm,
        f"--project={cfg.gce_project}",
        "--zone", cfg.zone,
        "--", script.read_text(),
        _out=sys.stderr,
        _err=sys.stderr,
    )
