import pytest

from dxvk_manager.channels import DXVK, GPLASYNC
from dxvk_manager.manager import DxvkManager
from dxvk_manager.models import ErrorKind, InstallationTarget


@pytest.fixture
def manager(mocker, config):
    session = mocker.Mock()
    session.headers = {}
    return DxvkManager(config, session=session)


class TestDxvkManager:
    """Test the facade wiring"""

    def test_creates_cache_dirs(self, manager, config):
        assert (config.base_path / "dxvk-cache").is_dir()
        assert (config.base_path / "dxvk-gplasync-cache").is_dir()

    def test_resolve_requirements_default(self):
        info = DxvkManager.resolve_requirements(None)
        assert info == {
            "requiredDlls": ["d3d9.dll", "dxgi.dll", "d3d11.dll"],
            "description": "Unknown",
            "arch": "x64",
        }

    def test_resolve_requirements_32bit(self):
        info = DxvkManager.resolve_requirements("Direct3D 11", "false", "true")
        assert info["requiredDlls"] == ["dxgi.dll", "d3d11.dll"]
        assert info["arch"] == "x32"

    def test_unknown_channel(self, manager):
        with pytest.raises(ValueError, match="Unknown channel"):
            manager.list_cached_versions("vkd3d")

    def test_fetch_skips_cached_version(self, mocker, manager):
        manager.cache.version_dir(DXVK, "v2.6").mkdir()
        mock_fetch = mocker.patch.object(manager.fetcher, "download_and_extract")

        assert manager.fetch_and_cache("dxvk", "v2.6", "https://example.com/dxvk-2.6.tar.gz")
        mock_fetch.assert_not_called()

    def test_fetch_downloads_into_version_dir(self, mocker, manager):
        mock_fetch = mocker.patch.object(manager.fetcher, "download_and_extract", return_value=True)

        assert manager.fetch_and_cache(GPLASYNC, "v2.6-1", "https://example.com/dxvk-gplasync-2.6-1.tar.gz")

        mock_fetch.assert_called_once_with(
            "v2.6-1",
            "https://example.com/dxvk-gplasync-2.6-1.tar.gz",
            manager.cache.cache_dir(GPLASYNC),
            manager.cache.cache_dir(GPLASYNC) / "2.6-1",
        )

    def test_fetch_failure(self, mocker, manager):
        mocker.patch.object(manager.fetcher, "download_and_extract", return_value=False)
        assert not manager.fetch_and_cache("dxvk", "v2.6", None)
        assert not manager.is_cached("dxvk", "v2.6")

    def test_unknown_game(self, manager):
        assert manager.apply("404", "dxvk", "v2.6").error == ErrorKind.NOT_FOUND
        assert manager.restore("404").error == ErrorKind.NOT_FOUND
        assert manager.force_remove("404").error == ErrorKind.NOT_FOUND
        assert manager.has_backups("404") is False

    def test_apply_and_restore_by_app_id(self, manager, make_package, game_dir):
        make_package(manager.cache.version_dir(DXVK, "v2.6") / "dxvk-2.6")
        (game_dir / "d3d11.dll").write_bytes(b"vendor d3d11")
        (game_dir / "dxgi.dll").write_bytes(b"vendor dxgi")
        manager.register_target(InstallationTarget(
            app_id="570", name="Dota 2", install_dir=str(game_dir),
            executable_64bit="true", executable_32bit="false", direct3d_versions="Direct3D 11",
        ))

        applied = manager.apply("570", "dxvk", "v2.6")
        assert applied.success
        assert manager.has_backups("570")
        assert manager.get_patch_state("570").dxvk_version == "v2.6"

        restored = manager.restore("570")
        assert restored.success
        assert (game_dir / "d3d11.dll").read_bytes() == b"vendor d3d11"
        assert manager.get_patch_state("570").patched is False

    def test_custom_metadata_changes_requirements(self, manager, make_package, game_dir):
        make_package(manager.cache.version_dir(DXVK, "v2.6") / "dxvk-2.6")
        manager.register_target(InstallationTarget(app_id="570", name="Dota 2", install_dir=str(game_dir)))

        manager.save_custom_metadata("570", {"direct3dVersions": "Direct3D 9", "patched": True})

        assert manager.get_patch_state("570").patched is False
        assert manager.apply("570", "dxvk", "v2.6").copied_files == ["d3d9.dll"]
