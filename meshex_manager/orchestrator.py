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

"""Orchestration functions that compose domain modules into workflows."""

from __future__ import annotations

from rich.panel import Panel

from meshex_manager import console
from meshex_manager import terraform
from meshex_manager.cluster import ensure_cluster_admin_binding
from meshex_manager.constants import VM_SETUP_SCRIPT
from meshex_manager.gcp import (
    enable_required_apis,
    get_active_account,
    get_cluster_credentials,
    get_instance_ip,
    run_remote_script,
)
from meshex_manager.ingress import GatewayAddress, wait_for_gateway_address
from meshex_manager.mesh import expand_mesh, install_control_plane, register_vm_service, setup_vm
from meshex_manager.pipeline import InstallContext, Step, StepOutcome, run_pipeline
from meshex_manager.release import ensure_istio_release
from meshex_manager.sample_app import deploy_bookinfo, update_routing
from meshex_manager.utils import check_dependencies

# ============================================================================
# Step actions
# ============================================================================


def _check_prerequisites(ctx: InstallContext) -> None:
    check_dependencies()
    console.print("[green]\u2705 All required tools are available[/green]")


def _enable_apis(ctx: InstallContext) -> None:
    enable_required_apis(ctx.config)


def _provision_infrastructure(ctx: InstallContext) -> None:
    terraform.apply(ctx.config, ctx.terraform_dir)


def _fetch_istio(ctx: InstallContext) -> None:
    ensure_istio_release(ctx.config.istio_version, ctx.workdir)


def _bootstrap_cluster(ctx: InstallContext) -> bool:
    get_cluster_credentials(ctx.config)
    return ensure_cluster_admin_binding(get_active_account())


def _install_control_plane(ctx: InstallContext) -> None:
    install_control_plane(ctx.istio_dir)


def _expand_mesh(ctx: InstallContext) -> None:
    expand_mesh(ctx.config, ctx.istio_dir)


def _setup_vm(ctx: InstallContext) -> None:
    setup_vm(ctx.config, ctx.istio_dir)


def _register_vm_service(ctx: InstallContext) -> str:
    vm_ip = get_instance_ip(ctx.config)
    register_vm_service(ctx.config, ctx.istio_dir, vm_ip)
    return vm_ip


def _deploy_bookinfo(ctx: InstallContext) -> None:
    deploy_bookinfo(ctx.istio_dir)


def _update_routing(ctx: InstallContext) -> None:
    update_routing(ctx.istio_dir, ctx.config.bookinfo_namespace)


def _setup_vm_database(ctx: InstallContext) -> None:
    run_remote_script(ctx.config, VM_SETUP_SCRIPT)


def _discover_ingress(ctx: InstallContext) -> GatewayAddress:
    return wait_for_gateway_address(
        ctx.config.ingress_wait_attempts,
        ctx.config.ingress_poll_interval_seconds,
    )


# ============================================================================
# Public API
# ============================================================================

STEP_DISCOVER_INGRESS = "discover-ingress"

_INFRASTRUCTURE_STEPS = ("enable-apis", "provision-infrastructure")
_VM_SETUP_STEPS = ("setup-vm", "setup-vm-database")


def install_steps(*, skip_infrastructure: bool = False, skip_vm_setup: bool = False) -> list[Step]:
    """Return the install workflow's steps in execution order.

    Args:
        skip_infrastructure: Whether to leave out API enablement and terraform.
        skip_vm_setup: Whether to leave out the sidecar and database setup on the VM.
    """
    steps = [
        Step("check-prerequisites", "Checking prerequisites", _check_prerequisites),
        Step("enable-apis", "Enabling project APIs", _enable_apis),
        Step("provision-infrastructure", "Provisioning infrastructure with terraform", _provision_infrastructure),
        Step("fetch-istio", "Fetching the Istio release", _fetch_istio),
        Step("bootstrap-cluster", "Configuring cluster access", _bootstrap_cluster),
        Step("install-control-plane", "Installing the Istio control plane", _install_control_plane),
        Step("expand-mesh", "Preparing mesh expansion", _expand_mesh),
        Step("setup-vm", "Joining the VM to the mesh", _setup_vm),
        Step("register-vm-service", "Registering the VM service", _register_vm_service),
        Step("deploy-bookinfo", "Deploying Bookinfo", _deploy_bookinfo),
        Step("update-routing", "Routing to the latest Bookinfo versions", _update_routing),
        Step("setup-vm-database", "Installing the database on the VM", _setup_vm_database),
        Step(STEP_DISCOVER_INGRESS, "Discovering the ingress gateway", _discover_ingress),
    ]
    skipped: tuple[str, ...] = ()
    if skip_infrastructure:
        skipped += _INFRASTRUCTURE_STEPS
    if skip_vm_setup:
        skipped += _VM_SETUP_STEPS
    return [step for step in steps if step.name not in skipped]


def run_install(
    ctx: InstallContext,
    *,
    skip_infrastructure: bool = False,
    skip_vm_setup: bool = False,
) -> GatewayAddress:
    """Run the full install workflow and return the ingress gateway address.

    Args:
        ctx: Shared immutable context.
        skip_infrastructure: Whether the cluster and VM already exist.
        skip_vm_setup: Whether the VM already runs the sidecar and the database.

    Raises:
        StepFailedError: If any step fails; no later step runs.
    """
    steps = install_steps(skip_infrastructure=skip_infrastructure, skip_vm_setup=skip_vm_setup)
    outcomes = run_pipeline(steps, ctx)
    return _outcome_value(outcomes, STEP_DISCOVER_INGRESS)


def run_teardown(ctx: InstallContext) -> None:
    """Destroy the infrastructure created by the install workflow.

    Raises:
        StepFailedError: If the dependency check or terraform destroy fails.
    """
    run_pipeline([
        Step("check-prerequisites", "Checking prerequisites", _check_prerequisites),
        Step("destroy-infrastructure", "Destroying infrastructure with terraform",
             lambda c: terraform.destroy(c.config, c.terraform_dir)),
    ], ctx)


def show_gateway(ctx: InstallContext) -> GatewayAddress:
    """Discover the ingress gateway of an already installed cluster."""
    console.print(Panel.fit("Discovering the ingress gateway", style="bold blue"))
    return _discover_ingress(ctx)


def _outcome_value(outcomes: list[StepOutcome], name: str):
    for outcome in outcomes:
        if outcome.name == name:
            return outcome.value
    raise KeyError(name)
