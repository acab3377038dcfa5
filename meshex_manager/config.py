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

"""Configuration model, loading from istio.env, and config display."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from meshex_manager import console, logger
from meshex_manager.constants import (
    DEFAULT_BOOKINFO_NAMESPACE,
    DEFAULT_ENV_FILE,
    DEFAULT_INGRESS_POLL_INTERVAL_SECONDS,
    DEFAULT_INGRESS_WAIT_ATTEMPTS,
    DEFAULT_VM_NAMESPACE,
    DEFAULT_VM_SERVICE_NAME,
    DEFAULT_VM_SERVICE_PORT,
)
from meshex_manager.errors import ConfigurationError

# Checked in this order; the first unset name is the one reported.
REQUIRED_SETTINGS = (
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
    "istio_project",
    "gce_project",
    "istio_version",
)


# ============================================================================
# Configuration class
# ============================================================================

class MeshExpansionConfig(BaseSettings):
    """Installer configuration, loaded from istio.env and the environment.

    Environment variables override values from the env file. Every required
    field must be non-empty; the record is frozen once loaded.

    Attributes:
        istio_cluster: Name of the GKE cluster that runs the Istio control plane.
        zone: Compute zone for the cluster and the VM.
        region: Compute region for the subnets.
        gce_network: VPC network that hosts the VM.
        gce_subnet: Subnet of gce_network.
        gce_subnet_cidr: CIDR range of gce_subnet.
        istio_network: VPC network that hosts the cluster.
        istio_subnet: Subnet of istio_network.
        istio_subnet_cidr: Primary CIDR range of istio_subnet.
        istio_subnet_cluster_cidr: Secondary range for pod addresses.
        istio_subnet_services_cidr: Secondary range for service addresses.
        gce_vm: Name of the VM joined to the mesh.
        istio_project: Project id hosting the cluster.
        gce_project: Project id hosting the VM.
        istio_version: Istio release to download and install.
        vm_namespace: Namespace for services hosted on the VM.
        vm_service_name: Mesh service name registered for the VM database.
        vm_service_port: Port of the VM database.
        bookinfo_namespace: Namespace for the namespaced Bookinfo routing variants.
        ingress_wait_attempts: Polls of the ingress gateway before giving up.
        ingress_poll_interval_seconds: Seconds between ingress polls.
    """

    model_config = SettingsConfigDict(
        env_file=DEFAULT_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        str_strip_whitespace=True,
    )

    istio_cluster: str = Field(min_length=1)
    zone: str = Field(min_length=1)
    region: str = Field(min_length=1)
    gce_network: str = Field(min_length=1)
    gce_subnet: str = Field(min_length=1)
    gce_subnet_cidr: str = Field(min_length=1)
    istio_network: str = Field(min_length=1)
    istio_subnet: str = Field(min_length=1)
    istio_subnet_cidr: str = Field(min_length=1)
    istio_subnet_cluster_cidr: str = Field(min_length=1)
    istio_subnet_services_cidr: str = Field(min_length=1)
    gce_vm: str = Field(min_length=1)
    istio_project: str = Field(min_length=1)
    gce_project: str = Field(min_length=1)
    istio_version: str = Field(min_length=1, pattern=r"^[\w.-]+$")

    vm_namespace: str = Field(default=DEFAULT_VM_NAMESPACE, min_length=1)
    vm_service_name: str = Field(default=DEFAULT_VM_SERVICE_NAME, min_length=1)
    vm_service_port: int = Field(default=DEFAULT_VM_SERVICE_PORT, ge=1, le=65535)
    bookinfo_namespace: str = Field(default=DEFAULT_BOOKINFO_NAMESPACE, min_length=1)
    ingress_wait_attempts: int = Field(default=DEFAULT_INGRESS_WAIT_ATTEMPTS, ge=1, le=360)
    ingress_poll_interval_seconds: int = Field(default=DEFAULT_INGRESS_POLL_INTERVAL_SECONDS, ge=0, le=300)


# ============================================================================
# Loading
# ============================================================================

def _unset_required(err: ValidationError) -> list[str]:
    """Return required setting names reported as missing or empty, in check order."""
    reported = {
        str(item["loc"][0])
        for item in err.errors()
        if item["loc"] and item["type"] in ("missing", "string_too_short")
    }
    return [name for name in REQUIRED_SETTINGS if name in reported]


def load_config(env_file: Path | None = None, **overrides) -> MeshExpansionConfig:
    """Load and validate the installer configuration.

    Resolution priority: keyword overrides > environment variables > env file.

    Args:
        env_file: Path to the env file, or None for ``istio.env`` in the current directory.
        **overrides: Field values that take precedence over every other source.

    Returns:
        The validated, frozen configuration.

    Raises:
        ConfigurationError: If a required setting is unset or empty, or a value is invalid.
    """
    env_path = Path(env_file) if env_file is not None else Path(DEFAULT_ENV_FILE)
    if not env_path.is_file():
        logger.warning("Env file %s not found; reading settings from the environment only", env_path)

    try:
        cfg = MeshExpansionConfig(_env_file=env_path)
    except ValidationError as err:
        missing = _unset_required(err)
        if missing:
            names = tuple(name.upper() for name in missing)
            raise ConfigurationError(
                f"{names[0]} is not set. Please check your {env_path.name} file "
                f"(unset: {', '.join(names)})",
                missing=names,
            ) from err
        raise ConfigurationError(f"Invalid configuration in {env_path.name}: {err}") from err

    overrides = {key: value for key, value in overrides.items() if value is not None}
    if overrides:
        try:
            cfg = MeshExpansionConfig.model_validate({**cfg.model_dump(), **overrides})
        except ValidationError as err:
            raise ConfigurationError(f"Invalid override: {err}") from err
    return cfg


# ============================================================================
# Display
# ============================================================================

def display_config(cfg: MeshExpansionConfig) -> None:
    """Print the resolved configuration grouped by concern.

    Args:
        cfg: Resolved installer configuration.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))

    console.print("[yellow]Projects:[/yellow]")
    console.print(f"  istio_project              : {cfg.istio_project}")
    console.print(f"  gce_project                : {cfg.gce_project}")

    console.print("[yellow]Cluster:[/yellow]")
    console.print(f"  istio_cluster              : {cfg.istio_cluster}")
    console.print(f"  zone                       : {cfg.zone}")
    console.print(f"  region                     : {cfg.region}")

    console.print("[yellow]Networks:[/yellow]")
    console.print(f"  istio_network              : {cfg.istio_network}")
    console.print(f"  istio_subnet               : {cfg.istio_subnet} ({cfg.istio_subnet_cidr})")
    console.print(f"  istio_subnet_cluster_cidr  : {cfg.istio_subnet_cluster_cidr}")
    console.print(f"  istio_subnet_services_cidr : {cfg.istio_subnet_services_cidr}")
    console.print(f"  gce_network                : {cfg.gce_network}")
    console.print(f"  gce_subnet                 : {cfg.gce_subnet} ({cfg.gce_subnet_cidr})")

    console.print("[yellow]Mesh expansion:[/yellow]")
    console.print(f"  istio_version              : {cfg.istio_version}")
    console.print(f"  gce_vm                     : {cfg.gce_vm}")
    console.print(f"  vm service                 : {cfg.vm_service_name}.{cfg.vm_namespace}:{cfg.vm_service_port}")
