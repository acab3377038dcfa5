"""Tests for meshex_manager.cluster."""

from __future__ import annotations

from pathlib import Path

from meshex_manager.cluster import (
    apply_manifest,
    apply_manifest_text,
    cluster_role_binding_exists,
    ensure_cluster_admin_binding,
)


def _kubectl_verbs(fake_sh) -> list[str]:
    return [call.args[0] for call in fake_sh.kubectl.call_args_list]


class TestClusterAdminBinding:

    def test_existing_binding_is_not_recreated(self, fake_sh):
        fake_sh.kubectl.return_value = "cluster-admin-binding"
        assert ensure_cluster_admin_binding("operator@example.com") is False
        assert _kubectl_verbs(fake_sh) == ["get"]

    def test_missing_binding_is_created_for_account(self, fake_sh):
        fake_sh.kubectl.return_value = ""
        assert ensure_cluster_admin_binding("operator@example.com") is True
        create = fake_sh.kubectl.call_args_list[-1]
        assert create.args == (
            "create", "clusterrolebinding", "cluster-admin-binding",
            "--clusterrole=cluster-admin",
            "--user=operator@example.com",
        )

    def test_lookup_uses_field_selector(self, fake_sh):
        fake_sh.kubectl.return_value = ""
        assert cluster_role_binding_exists("my-binding") is False
        args = fake_sh.kubectl.call_args.args
        assert "metadata.name=my-binding" in args


class TestApplyManifest:

    def test_default_namespace(self, fake_sh):
        apply_manifest(Path("/istio/app.yaml"))
        fake_sh.kubectl.assert_called_once_with("apply", "-f", "/istio/app.yaml")

    def test_explicit_namespace(self, fake_sh):
        apply_manifest(Path("/istio/app.yaml"), namespace="bookinfo")
        fake_sh.kubectl.assert_called_once_with("apply", "-n", "bookinfo", "-f", "/istio/app.yaml")

    def test_text_is_piped_to_stdin(self, fake_sh):
        apply_manifest_text("kind: Deployment\n", "app.yaml", namespace="bookinfo")
        fake_sh.kubectl.assert_called_once_with(
            "apply", "-n", "bookinfo", "-f", "-", _in="kind: Deployment\n",
        )
