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

"""Istio release download and extraction."""

from __future__ import annotations

from pathlib import Path

import sh

from meshex_manager import console, logger
from meshex_manager.utils import detect_os_type, istio_release_url


def istio_dir_for(workdir: Path, version: str) -> Path:
    """Return the directory an Istio release extracts to."""
    return workdir / f"istio-{version}"


def ensure_istio_release(version: str, workdir: Path, system: str | None = None) -> Path:
    """Download and extract an Istio release unless its directory already exists.

    An existing directory is trusted as-is; its contents are not checked.

    Args:
        version: Istio release version.
        workdir: Directory to download into and extract under.
        system: Host OS name override, or None to detect it.

    Returns:
        Path of the extracted release directory.

    Raises:
        UnsupportedPlatformError: If the host OS has no release artifact.
        RuntimeError: If extraction does not produce the release directory.
    """
    istio_dir = istio_dir_for(workdir, version)
    if istio_dir.is_dir():
        console.print(f"[yellow]   Istio {version} already present at {istio_dir}[/yellow]")
        return istio_dir

    os_type = detect_os_type(system)
    url = istio_release_url(version, os_type)
    archive = workdir / f"istio-{version}-{os_type}.tar.gz"

    console.print(f"[yellow]\u2139\ufe0f  Downloading Istio {version} ({os_type})...[/yellow]")
    logger.info("Downloading %s", url)
    try:
        sh.curl("-L", "--fail", "--silent", "--show-error", "--output", str(archive), url)
        sh.tar("-xzf", str(archive), "-C", str(workdir))
    finally:
        archive.unlink(missing_ok=True)

    if not istio_dir.is_dir():
        raise RuntimeError(f"Extracting {archive.name} did not produce {istio_dir}")
    console.print(f"[green]\u2705 Istio {version} extracted to {istio_dir}[/green]")
    return istio_dir
