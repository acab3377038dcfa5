"""Shared pytest fixtures: isolated settings and a fake ``sh`` module."""

from __future__ import annotations

from contextlib import ExitStack
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import sh

from meshex_manager.config import MeshExpansionConfig, load_config

SETTINGS = {
    "ISTIO_CLUSTER": "istio-cluster",
    "ZONE": "z1",
    "REGION": "r1",
    "GCE_NETWORK": "gce-network",
    "GCE_SUBNET": "gce-subnet",
    "GCE_SUBNET_CIDR": "10.160.0.0/20",
    "ISTIO_NETWORK": "istio-network",
    "ISTIO_SUBNET": "istio-subnet",
    "ISTIO_SUBNET_CIDR": "10.142.0.0/20",
    "ISTIO_SUBNET_CLUSTER_CIDR": "10.32.0.0/14",
    "ISTIO_SUBNET_SERVICES_CIDR": "10.36.0.0/20",
    "GCE_VM": "vm1",
    "ISTIO_PROJECT": "p1",
    "GCE_PROJECT": "p2",
    "ISTIO_VERSION": "1.0.2",
}

ACCOUNT = "operator@example.com"
VM_IP = "10.160.0.2"

# Modules that call external tools through ``sh``.
SH_MODULES = (
    "meshex_manager.utils",
    "meshex_manager.gcp",
    "meshex_manager.terraform",
    "meshex_manager.release",
    "meshex_manager.cluster",
    "meshex_manager.mesh",
    "meshex_manager.ingress",
)

CLUSTER_ENV = (
    "# Generated by setupMeshEx.sh\n"
    "ISTIO_SERVICE_CIDR=10.36.0.0/20\n"
    "ISTIO_SYSTEM_NAMESPACE=istio-system\n"
    "CONTROL_PLANE_AUTH_POLICY=MUTUAL_TLS\n"
)


def write_env_file(path: Path, settings: dict[str, str]) -> Path:
    path.write_text("".join(f"{key}={value}\n" for key, value in settings.items()))
    return path


def command_error(cmd: str) -> sh.ErrorReturnCode:
    """A non-zero exit from *cmd*, as sh raises it for exit status 1."""
    return sh.ErrorReturnCode_1(cmd, b"", b"failed")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep host environment variables and files out of config loading."""
    for name in MeshExpansionConfig.model_fields:
        monkeypatch.delenv(name.upper(), raising=False)
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def env_file(tmp_path) -> Path:
    return write_env_file(tmp_path / "istio.env", {**SETTINGS, "INGRESS_POLL_INTERVAL_SECONDS": "0"})


@pytest.fixture
def cfg(env_file) -> MeshExpansionConfig:
    return load_config(env_file)


@pytest.fixture
def istio_dir(tmp_path, cfg) -> Path:
    """An already extracted Istio release with a generated cluster.env."""
    path = tmp_path / f"istio-{cfg.istio_version}"
    path.mkdir()
    (path / "cluster.env").write_text(CLUSTER_ENV)
    return path


def _gcloud(*args, **kwargs):
    if args[:3] == ("config", "get-value", "core/account"):
        return f"{ACCOUNT}\n"
    if args[:3] == ("compute", "instances", "describe"):
        return f"{VM_IP}\n"
    return ""


@pytest.fixture
def fake_sh():
    """Replace ``sh`` in every module that shells out with one shared mock.

    ``fake_sh.commands`` maps the basename of each ``sh.Command`` path
    (``istioctl``, ``setupMeshEx.sh``) to its own mock.
    """
    mock = MagicMock(name="sh")
    mock.ErrorReturnCode = sh.ErrorReturnCode
    mock.gcloud.side_effect = _gcloud
    mock.which.side_effect = lambda cmd: f"/usr/bin/{cmd}\n"
    for tool in ("kubectl", "terraform", "curl", "tar"):
        getattr(mock, tool).return_value = ""

    commands: dict[str, MagicMock] = {}

    def _command(path: str) -> MagicMock:
        name = Path(path).name
        if name not in commands:
            commands[name] = MagicMock(name=name, return_value="")
        return commands[name]

    mock.Command.side_effect = _command
    mock.commands = commands

    with ExitStack() as stack:
        for module in SH_MODULES:
            stack.enter_context(patch(f"{module}.sh", mock))
        yield mock


@pytest.fixture
def fake_ingress():
    """Answer ingress gateway queries with an assigned load balancer address."""
    def _run_kubectl(args, timeout=30):
        if "status.loadBalancer" in args[-1]:
            return True, "35.1.2.3", ""
        return True, "80", ""

    with patch("meshex_manager.ingress.run_kubectl", side_effect=_run_kubectl) as mock:
        yield mock
