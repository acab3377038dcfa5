"""Tests for meshex_manager.utils."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest
import sh

from meshex_manager.errors import MissingDependencyError, UnsupportedPlatformError
from meshex_manager.utils import (
    check_dependencies,
    detect_os_type,
    gcp_opts,
    istio_release_url,
    require_command,
    run_kubectl,
)
from tests.conftest import command_error


class TestRequireCommand:

    def test_present_command_returns_location(self, fake_sh):
        assert require_command("kubectl") == "/usr/bin/kubectl"
        fake_sh.which.assert_called_once_with("kubectl")

    def test_missing_command_raises(self, fake_sh):
        fake_sh.which.side_effect = command_error("which kubectl")
        with pytest.raises(MissingDependencyError) as excinfo:
            require_command("kubectl")
        assert excinfo.value.command == "kubectl"

    def test_unresolved_lookup_raises(self, fake_sh):
        fake_sh.which.side_effect = None
        fake_sh.which.return_value = None
        with pytest.raises(MissingDependencyError, match="Required command 'kubectl' not found"):
            require_command("kubectl")

    def test_exit_status_error_is_a_command_error(self):
        err = command_error("which kubectl")
        assert isinstance(err, sh.ErrorReturnCode)
        assert err.exit_code == 1


class TestCheckDependencies:

    def test_checks_tools_from_dependencies_yaml(self, fake_sh):
        check_dependencies()
        checked = [call.args[0] for call in fake_sh.which.call_args_list]
        assert {"gcloud", "kubectl", "curl", "terraform"} <= set(checked)

    def test_stops_at_first_missing_tool(self, fake_sh):
        def which(cmd):
            if cmd == "kubectl":
                raise command_error("which kubectl")
            return f"/usr/bin/{cmd}"

        fake_sh.which.side_effect = which
        with pytest.raises(MissingDependencyError, match="kubectl"):
            check_dependencies(["gcloud", "kubectl", "curl"])
        checked = [call.args[0] for call in fake_sh.which.call_args_list]
        assert checked == ["gcloud", "kubectl"]


class TestDetectOsType:

    @pytest.mark.parametrize("system,expected", [("Linux", "linux"), ("Darwin", "osx")])
    def test_known_systems(self, system, expected):
        assert detect_os_type(system) == expected

    def test_unknown_system_raises(self):
        with pytest.raises(UnsupportedPlatformError, match="Windows"):
            detect_os_type("Windows")

    @patch("meshex_manager.utils.platform.system", return_value="Linux")
    def test_detects_current_host(self, _mock_system):
        assert detect_os_type() == "linux"


def test_istio_release_url():
    assert istio_release_url("1.0.2", "linux") == (
        "https://github.com/istio/istio/releases/download/1.0.2/istio-1.0.2-linux.tar.gz"
    )


def test_gcp_opts():
    assert gcp_opts("z1", "p1") == "--zone z1 --project p1"


class TestRunKubectl:

    @patch("meshex_manager.utils.subprocess.run")
    def test_returns_output(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(["kubectl"], 0, stdout="out", stderr="")
        assert run_kubectl(["get", "ns"]) == (True, "out", "")
        assert mock_run.call_args.args[0] == ["kubectl", "get", "ns"]

    @patch("meshex_manager.utils.subprocess.run", side_effect=FileNotFoundError("kubectl"))
    def test_missing_binary_is_a_failure(self, _mock_run):
        ok, stdout, stderr = run_kubectl(["get", "ns"])
        assert not ok
        assert stdout == ""
        assert "kubectl" in stderr
