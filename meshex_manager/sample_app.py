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

"""Bookinfo sample application deployment and routing rules."""

from __future__ import annotations

from pathlib import Path

from meshex_manager import console
from meshex_manager.cluster import apply_manifest, apply_manifest_text
from meshex_manager.constants import (
    REL_BOOKINFO_APP,
    REL_BOOKINFO_GATEWAY,
    REL_BOOKINFO_RATINGS_MYSQL_VM,
    REL_DR_ALL,
    REL_VS_ALL_V1,
    REL_VS_RATINGS_MYSQL_VM,
    REL_VS_REVIEWS_V3,
)
from meshex_manager.mesh import istioctl, kube_inject


def _inject_and_apply(istio_dir: Path, rel_manifest: str, namespace: str | None = None) -> None:
    manifest = istio_dir / rel_manifest
    apply_manifest_text(kube_inject(istio_dir, manifest, namespace), manifest.name, namespace)


def deploy_bookinfo(istio_dir: Path) -> None:
    """Deploy Bookinfo with sidecars and create the gateway and v1 routing.

    Args:
        istio_dir: Root of the extracted Istio release.
    """
    _inject_and_apply(istio_dir, REL_BOOKINFO_APP)
    _inject_and_apply(istio_dir, REL_BOOKINFO_RATINGS_MYSQL_VM)
    for rel in (REL_BOOKINFO_GATEWAY, REL_VS_ALL_V1):
        istioctl(istio_dir)("create", "-f", str(istio_dir / rel))
        console.print(f"[green]  \u2713 Created {Path(rel).name}[/green]")


def update_routing(istio_dir: Path, bookinfo_namespace: str) -> None:
    """Move traffic to the newest Bookinfo versions.

    Ratings are served from the VM database and reviews from v3. Both the
    default-namespace and the *bookinfo_namespace* variants are applied as
    separate operations.

    Args:
        istio_dir: Root of the extracted Istio release.
        bookinfo_namespace: Namespace for the explicitly namespaced variants.
    """
    for rel in (REL_VS_RATINGS_MYSQL_VM, REL_VS_REVIEWS_V3):
        istioctl(istio_dir)("replace", "-f", str(istio_dir / rel))
        console.print(f"[green]  \u2713 Replaced {Path(rel).name}[/green]")

    apply_manifest(istio_dir / REL_DR_ALL)
    apply_manifest(istio_dir / REL_VS_ALL_V1)
    _inject_and_apply(istio_dir, REL_BOOKINFO_RATINGS_MYSQL_VM, bookinfo_namespace)
    apply_manifest(istio_dir / REL_VS_RATINGS_MYSQL_VM, bookinfo_namespace)
    apply_manifest(istio_dir / REL_VS_REVIEWS_V3)
