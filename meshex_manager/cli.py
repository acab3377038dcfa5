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

"""
cli.py - Istio mesh expansion installer for GKE and Compute Engine.

Commands:
    install      Provision infrastructure, install Istio, join the VM, deploy Bookinfo
    teardown     Destroy the terraform-managed infrastructure
    url          Print the Bookinfo product page URL
    validate     Probe the Bookinfo product page through the ingress gateway
    fetch-istio  Download and extract the configured Istio release
    config       Show the resolved configuration

Configuration is read from istio.env (override with --env-file); environment
variables with the same upper-case names take precedence over the file.

Examples:
    # Full install
    meshex install

    # Re-run the cluster-side steps against existing infrastructure
    meshex install --skip-infrastructure

    # Re-apply only the cluster-side configuration
    meshex install --skip-infrastructure --skip-vm-setup

    # Tear everything down
    meshex teardown
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

import typer

from meshex_manager import console
from meshex_manager.config import display_config, load_config
from meshex_manager.constants import DEFAULT_ENV_FILE
from meshex_manager.errors import StepFailedError
from meshex_manager.ingress import product_page_status
from meshex_manager.orchestrator import run_install, run_teardown, show_gateway
from meshex_manager.pipeline import InstallContext
from meshex_manager.release import ensure_istio_release
from meshex_manager.utils import check_dependencies

T = TypeVar("T")

app = typer.Typer(
    help="Istio mesh expansion installer for GKE and Compute Engine.",
    no_args_is_help=True,
)

ENV_FILE_OPTION = typer.Option(
    Path(DEFAULT_ENV_FILE), "--env-file", help="Env file with the installer settings")
WORKDIR_OPTION = typer.Option(
    Path("."), "--workdir", help="Directory the Istio release is downloaded into")
TERRAFORM_DIR_OPTION = typer.Option(
    None, "--terraform-dir", help="Directory holding the terraform plan (default: --workdir)")

# Tools fetch-istio needs; install checks the full list from dependencies.yaml.
FETCH_TOOLS = ["curl", "tar"]


@app.callback()
def _main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Initialize logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _run(fn: Callable[[], T]) -> T:
    """Run a command body, reporting any failure in red and exiting 1."""
    try:
        return fn()
    except StepFailedError as e:
        console.print(f"[red]\u274c {e.step} failed: {e.cause}[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]\u274c {e}[/red]")
        sys.exit(1)


def _context(
    env_file: Path,
    workdir: Path,
    terraform_dir: Path | None,
    **overrides,
) -> InstallContext:
    cfg = load_config(env_file, **overrides)
    workdir = workdir.resolve()
    return InstallContext(
        config=cfg,
        workdir=workdir,
        terraform_dir=terraform_dir.resolve() if terraform_dir else workdir,
    )


@app.command()
def install(
    env_file: Path = ENV_FILE_OPTION,
    workdir: Path = WORKDIR_OPTION,
    terraform_dir: Path | None = TERRAFORM_DIR_OPTION,
    skip_infrastructure: bool = typer.Option(
        False, "--skip-infrastructure", help="Skip API enablement and terraform apply"),
    skip_vm_setup: bool = typer.Option(
        False, "--skip-vm-setup", help="Skip the sidecar and database setup on the VM"),
    ingress_wait_attempts: int | None = typer.Option(
        None, "--ingress-wait-attempts", min=1,
        help="Polls of the ingress gateway before giving up (overrides INGRESS_WAIT_ATTEMPTS)"),
) -> None:
    """Provision infrastructure, install Istio, join the VM, and deploy Bookinfo.

    Prints the product page URL on stdout when done.
    """
    def _body() -> None:
        ctx = _context(env_file, workdir, terraform_dir, ingress_wait_attempts=ingress_wait_attempts)
        display_config(ctx.config)
        address = run_install(ctx, skip_infrastructure=skip_infrastructure, skip_vm_setup=skip_vm_setup)
        console.print("[green]\u2705 Mesh expansion complete[/green]")
        console.print("You can view the service at:")
        typer.echo(address.url)

    _run(_body)


@app.command()
def teardown(
    env_file: Path = ENV_FILE_OPTION,
    workdir: Path = WORKDIR_OPTION,
    terraform_dir: Path | None = TERRAFORM_DIR_OPTION,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Destroy the cluster, networks, and VM created by install."""
    ctx = _run(lambda: _context(env_file, workdir, terraform_dir))
    if not yes:
        typer.confirm(
            f"Destroy cluster '{ctx.config.istio_cluster}' and VM '{ctx.config.gce_vm}'?",
            abort=True,
        )
    _run(lambda: run_teardown(ctx))


@app.command()
def url(
    env_file: Path = ENV_FILE_OPTION,
    ingress_wait_attempts: int | None = typer.Option(
        None, "--ingress-wait-attempts", min=1, help="Polls of the ingress gateway before giving up"),
) -> None:
    """Print the Bookinfo product page URL."""
    def _body() -> None:
        ctx = _context(env_file, Path("."), None, ingress_wait_attempts=ingress_wait_attempts)
        typer.echo(show_gateway(ctx).url)

    _run(_body)


@app.command()
def validate(
    env_file: Path = ENV_FILE_OPTION,
) -> None:
    """Check that the Bookinfo product page answers through the ingress gateway."""
    def _body() -> None:
        ctx = _context(env_file, Path("."), None)
        address = show_gateway(ctx)
        status = product_page_status(address)
        if status != 200:
            raise RuntimeError(f"{address.url} returned HTTP {status or 'no response'}")
        console.print(f"[green]\u2705 {address.url} returned HTTP 200[/green]")

    _run(_body)


@app.command("fetch-istio")
def fetch_istio(
    env_file: Path = ENV_FILE_OPTION,
    workdir: Path = WORKDIR_OPTION,
) -> None:
    """Download and extract the configured Istio release if not already present."""
    def _body() -> None:
        ctx = _context(env_file, workdir, None)
        check_dependencies(FETCH_TOOLS)
        typer.echo(str(ensure_istio_release(ctx.config.istio_version, ctx.workdir)))

    _run(_body)


@app.command("config")
def show_config(
    env_file: Path = ENV_FILE_OPTION,
) -> None:
    """Show the resolved configuration."""
    _run(lambda: display_config(load_config(env_file)))


def main() -> None:
    app()
