"""Tests for meshex_manager.release."""

from __future__ import annotations

from pathlib import Path

import pytest
import sh

from meshex_manager.errors import UnsupportedPlatformError
from meshex_manager.release import ensure_istio_release, istio_dir_for
from tests.conftest import command_error

VERSION = "1.0.2"


def _fake_download(fake_sh, workdir: Path, extract: bool = True):
    """Make curl write the archive and tar create the release directory."""
    def curl(*args, **kwargs):
        Path(args[args.index("--output") + 1]).write_bytes(b"archive")
        return ""

    def tar(*args, **kwargs):
        if extract:
            (workdir / f"istio-{VERSION}").mkdir()
        return ""

    fake_sh.curl.side_effect = curl
    fake_sh.tar.side_effect = tar


class TestEnsureIstioRelease:

    def test_existing_directory_skips_download(self, fake_sh, tmp_path):
        (tmp_path / f"istio-{VERSION}").mkdir()
        assert ensure_istio_release(VERSION, tmp_path) == tmp_path / f"istio-{VERSION}"
        fake_sh.curl.assert_not_called()
        fake_sh.tar.assert_not_called()

    def test_downloads_extracts_and_removes_archive(self, fake_sh, tmp_path):
        _fake_download(fake_sh, tmp_path)
        istio_dir = ensure_istio_release(VERSION, tmp_path, system="Linux")

        assert istio_dir == istio_dir_for(tmp_path, VERSION)
        assert fake_sh.curl.call_count == 1
        assert fake_sh.tar.call_count == 1
        url = fake_sh.curl.call_args.args[-1]
        assert url.endswith(f"/{VERSION}/istio-{VERSION}-linux.tar.gz")
        archive = tmp_path / f"istio-{VERSION}-linux.tar.gz"
        assert fake_sh.tar.call_args.args[:2] == ("-xzf", str(archive))
        assert not archive.exists()

    def test_osx_artifact_on_darwin(self, fake_sh, tmp_path):
        _fake_download(fake_sh, tmp_path)
        ensure_istio_release(VERSION, tmp_path, system="Darwin")
        assert fake_sh.curl.call_args.args[-1].endswith(f"istio-{VERSION}-osx.tar.gz")

    def test_archive_removed_when_extraction_fails(self, fake_sh, tmp_path):
        _fake_download(fake_sh, tmp_path)
        fake_sh.tar.side_effect = command_error("tar")
        with pytest.raises(sh.ErrorReturnCode):
            ensure_istio_release(VERSION, tmp_path, system="Linux")
        assert not (tmp_path / f"istio-{VERSION}-linux.tar.gz").exists()

    def test_partial_download_removed_when_curl_fails(self, fake_sh, tmp_path):
        def curl(*args, **kwargs):
            Path(args[args.index("--output") + 1]).write_bytes(b"partial")
            raise command_error("curl")

        fake_sh.curl.side_effect = curl
        with pytest.raises(sh.ErrorReturnCode):
            ensure_istio_release(VERSION, tmp_path, system="Linux")
        assert list(tmp_path.iterdir()) == []
        fake_sh.tar.assert_not_called()

    def test_missing_directory_after_extraction_raises(self, fake_sh, tmp_path):
        _fake_download(fake_sh, tmp_path, extract=False)
        with pytest.raises(RuntimeError, match="did not produce"):
            ensure_istio_release(VERSION, tmp_path, system="Linux")

    def test_unsupported_os_makes_no_calls(self, fake_sh, tmp_path):
        with pytest.raises(UnsupportedPlatformError):
            ensure_istio_release(VERSION, tmp_path, system="Windows")
        fake_sh.curl.assert_not_called()
