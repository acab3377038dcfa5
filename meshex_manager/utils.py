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

"""Utility functions for command checks, kubectl queries, and release URLs."""

from __future__ import annotations

import platform
import subprocess

import sh

from meshex_manager import logger
from meshex_manager.constants import OS_TYPES, dep_value
from meshex_manager.errors import MissingDependencyError, UnsupportedPlatformError


def require_command(cmd: str) -> str:
    """Return the PATH location of *cmd*.

    Depending on the sh release, ``sh.which`` returns None for an unknown
    program or runs ``which``, which exits non-zero. Both count as missing.

    Raises:
        MissingDependencyError: If *cmd* is not on PATH.
    """
    try:
        location = sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise MissingDependencyError(cmd) from err
    if not location:
        raise MissingDependencyError(cmd)
    return str(location).strip()


def check_dependencies(tools: list[str] | None = None) -> None:
    """Verify every required tool is installed, stopping at the first missing one.

    Args:
        tools: Command names to check, or None for the list in dependencies.yaml.

    Raises:
        MissingDependencyError: If any command is not found.
    """
    for cmd in tools if tools is not None else dep_value("tools", default=[]):
        logger.debug("Found %s at %s", cmd, require_command(cmd))


def run_kubectl(args: list[str], timeout: int = 30) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Used for queries whose empty output is meaningful, where the caller
    decides what a failure means instead of sh raising.

    Args:
        args: kubectl arguments (e.g. ``["get", "svc", "-n", "istio-system"]``).
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def detect_os_type(system: str | None = None) -> str:
    """Map the host OS name to the Istio release artifact suffix.

    Args:
        system: ``uname -s`` style name, or None to detect the current host.

    Returns:
        ``linux`` or ``osx``.

    Raises:
        UnsupportedPlatformError: If no Istio release exists for the host OS.
    """
    system = system or platform.system()
    try:
        return OS_TYPES[system]
    except KeyError:
        raise UnsupportedPlatformError(
            f"No Istio release for host OS '{system}' (supported: {', '.join(OS_TYPES)})"
        ) from None


def istio_release_url(version: str, os_type: str) -> str:
    """Build the GitHub release download URL for an Istio archive.

    Args:
        version: Istio release version (e.g. ``1.0.2``).
        os_type: Release OS suffix from :func:`detect_os_type`.

    Returns:
        Full archive download URL.
    """
    base_url = dep_value("istio", "release_base_url")
    return f"{base_url}/{version}/istio-{version}-{os_type}.tar.gz"


def gcp_opts(zone: str, project: str) -> str:
    """Build the ``GCP_OPTS`` value consumed by the mesh expansion script."""
    return f"--zone {zone} --project {project}"
