"""Tests for meshex_manager.cluster_env."""

from __future__ import annotations

import pytest

from meshex_manager.cluster_env import ClusterEnv, disable_control_plane_mtls, load_cluster_env
from tests.conftest import CLUSTER_ENV


class TestClusterEnvParse:

    def test_render_round_trips_unchanged(self):
        content = "# comment\r\n\nexport A=1\r\nB='two words'\nC=\"x\"\nnot an assignment"
        assert ClusterEnv.parse(content).render() == content

    def test_get_unquotes_values(self):
        env = ClusterEnv.parse("A='one'\nB=\"two\"\nC=three\n")
        assert (env.get("A"), env.get("B"), env.get("C")) == ("one", "two", "three")

    def test_get_missing_key(self):
        assert ClusterEnv.parse("A=1\n").get("B") is None

    def test_with_value_keeps_prefix_and_quotes(self):
        env = ClusterEnv.parse("  export A='old'\r\n")
        assert env.with_value("A", "new").render() == "  export A='new'\r\n"

    def test_with_value_unknown_key_raises(self):
        with pytest.raises(KeyError):
            ClusterEnv.parse("A=1\n").with_value("B", "2")

    def test_with_value_is_not_in_place(self):
        env = ClusterEnv.parse("A=1\n")
        env.with_value("A", "2")
        assert env.get("A") == "1"


class TestDisableControlPlaneMtls:

    def test_changes_only_the_auth_policy_line(self, tmp_path):
        path = tmp_path / "cluster.env"
        path.write_bytes(CLUSTER_ENV.encode())

        assert disable_control_plane_mtls(path) is True

        before = CLUSTER_ENV.encode().splitlines(keepends=True)
        after = path.read_bytes().splitlines(keepends=True)
        assert len(before) == len(after)
        changed = [(b, a) for b, a in zip(before, after) if b != a]
        assert changed == [(b"CONTROL_PLANE_AUTH_POLICY=MUTUAL_TLS\n", b"CONTROL_PLANE_AUTH_POLICY=NONE\n")]

    def test_preserves_crlf_and_missing_final_newline(self, tmp_path):
        path = tmp_path / "cluster.env"
        path.write_bytes(b"A=1\r\nCONTROL_PLANE_AUTH_POLICY=MUTUAL_TLS\r\nB=2")
        disable_control_plane_mtls(path)
        assert path.read_bytes() == b"A=1\r\nCONTROL_PLANE_AUTH_POLICY=NONE\r\nB=2"

    def test_already_disabled_is_left_alone(self, tmp_path):
        path = tmp_path / "cluster.env"
        path.write_text("CONTROL_PLANE_AUTH_POLICY=NONE\n")
        assert disable_control_plane_mtls(path) is False
        assert path.read_text() == "CONTROL_PLANE_AUTH_POLICY=NONE\n"

    def test_similar_keys_are_untouched(self, tmp_path):
        path = tmp_path / "cluster.env"
        path.write_text("MY_CONTROL_PLANE_AUTH_POLICY=MUTUAL_TLS\nCONTROL_PLANE_AUTH_POLICY=MUTUAL_TLS\n")
        disable_control_plane_mtls(path)
        env = load_cluster_env(path)
        assert env.get("MY_CONTROL_PLANE_AUTH_POLICY") == "MUTUAL_TLS"
        assert env.get("CONTROL_PLANE_AUTH_POLICY") == "NONE"

    def test_missing_policy_raises(self, tmp_path):
        path = tmp_path / "cluster.env"
        path.write_text("A=1\n")
        with pytest.raises(KeyError):
            disable_control_plane_mtls(path)
