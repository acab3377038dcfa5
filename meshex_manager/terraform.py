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

"""Terraform invocation for the cluster, networks, and expansion VM."""

from __future__ import annotations

import sys
from pathlib import Path

import sh

from meshex_manager import console
from meshex_manager.config import MeshExpansionConfig

# Terraform variables, each filled from the config field of the same name.
TERRAFORM_VARIABLES = (
    "istio_project",
    "gce_project",
    "istio_cluster",
    "zone",
    "region",
    "gce_network",
    "gce_subnet",
    "gce_subnet_cidr",
    "istio_network",
    "istio_subnet",
    "istio_subnet_cidr",
    "istio_subnet_cluster_cidr",
    "istio_subnet_services_cidr",
    "gce_vm",
)


def terraform_var_args(cfg: MeshExpansionConfig) -> list[str]:
    """Build ``-var name=value`` arguments for every plan variable.

    Args:
        cfg: Installer configuration supplying the variable values.

    Returns:
        Flat list of terraform CLI arguments.
    """
    return [arg for name in TERRAFORM_VARIABLES for arg in ("-var", f"{name}={getattr(cfg, name)}")]


def _terraform(terraform_dir: Path, *args: str) -> None:
    sh.terraform(*args, _cwd=str(terraform_dir), _out=sys.stderr, _err=sys.stderr)


def init(terraform_dir: Path) -> None:
    """Initialize terraform providers and local state."""
    _terraform(terraform_dir, "init", "-input=false")


def apply(cfg: MeshExpansionConfig, terraform_dir: Path) -> None:
    """Initialize and apply the infrastructure plan without prompting.

    Args:
        cfg: Installer configuration supplying the plan variables.
        terraform_dir: Directory holding the terraform plan.
    """
    init(terraform_dir)
    _terraform(terraform_dir, "apply", "-input=false", *terraform_var_args(cfg), "-auto-approve")
    console.print("[green]\u2705 Infrastructure provisioned[/green]")


def destroy(cfg: MeshExpansionConfig, terraform_dir: Path) -> None:
    """Destroy everything the plan created.

    Args:
        cfg: Installer configuration supplying the plan variables.
        terraform_dir: Directory holding the terraform plan and state.
    """
    init(terraform_dir)
    _terraform(terraform_dir, "destroy", "-input=false", *terraform_var_args(cfg), "-auto-approve")
    console.print("[green]\u2705 Infrastructure destroyed[/green]")
