import json

import pytest

from dxvk_manager import cli
from dxvk_manager.models import Release


@pytest.fixture
def base_dir(tmp_path):
    return str(tmp_path / "home")


def run(base_dir, *args):
    return cli.main(["--base-dir", base_dir, *args])


class TestCli:
    """Test the command-line interface"""

    def test_no_command_prints_help(self, capsys):
        assert cli.main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_requirements(self, base_dir, capsys):
        assert run(base_dir, "requirements", "Direct3D 9") == 0
        assert capsys.readouterr().out.strip() == "Direct3D 9: d3d9.dll (x64)"

    def test_requirements_32bit(self, base_dir, capsys):
        assert run(base_dir, "requirements", "Direct3D 11", "--x32") == 0
        assert capsys.readouterr().out.strip() == "Direct3D 11: dxgi.dll, d3d11.dll (x32)"

    def test_register_and_status(self, base_dir, game_dir, capsys):
        assert run(base_dir, "register", "570", str(game_dir), "--name", "Dota 2",
                   "--direct3d", "Direct3D 11", "--x64bit", "true") == 0
        capsys.readouterr()

        assert run(base_dir, "status", "570") == 0

        status = json.loads(capsys.readouterr().out)
        assert status["patched"] is False
        assert status["backupFilesPresent"] is False

    def test_cached(self, base_dir, capsys):
        assert run(base_dir, "cached") == 0
        out = capsys.readouterr().out
        assert "dxvk: (none)" in out
        assert "dxvk-gplasync: (none)" in out

    def test_restore_without_backup_suggests_remove(self, base_dir, game_dir, capsys):
        run(base_dir, "register", "570", str(game_dir))
        capsys.readouterr()

        assert run(base_dir, "restore", "570") == 1

        out = capsys.readouterr().out
        assert "No backups found" in out
        assert "dxvk-manager remove 570" in out

    def test_releases_offline(self, mocker, base_dir, capsys):
        mocker.patch("dxvk_manager.manager.DxvkManager.list_catalog", return_value=[])
        assert run(base_dir, "releases", "dxvk") == 1
        assert "Could not fetch releases" in capsys.readouterr().out

    def test_download_looks_up_catalog(self, mocker, base_dir, capsys):
        release = Release(version="v2.6", name="Version 2.6", download_url="https://example.com/dxvk-2.6.tar.gz")
        mocker.patch("dxvk_manager.manager.DxvkManager.list_catalog", return_value=[release])
        mock_fetch = mocker.patch("dxvk_manager.manager.DxvkManager.fetch_and_cache", return_value=True)

        assert run(base_dir, "download", "dxvk", "v2.6") == 0
        mock_fetch.assert_called_once_with("dxvk", "v2.6", "https://example.com/dxvk-2.6.tar.gz")

    def test_download_unknown_version(self, mocker, base_dir, capsys):
        mocker.patch("dxvk_manager.manager.DxvkManager.list_catalog", return_value=[])
        assert run(base_dir, "download", "dxvk", "v0.1") == 1
        assert "not found" in capsys.readouterr().out

    def test_unexpected_error(self, mocker, base_dir, capsys):
        mocker.patch("dxvk_manager.manager.DxvkManager.get_patch_state", side_effect=RuntimeError("boom"))
        assert run(base_dir, "status", "570") == 1
        assert "boom" in capsys.readouterr().out
