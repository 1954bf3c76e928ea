import sys
from pathlib import Path

import pytest

# Add the project root directory to sys.path so the package imports without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from dxvk_manager.cache import VersionCache
from dxvk_manager.config import Config
from dxvk_manager.metadata import MetadataStore
from dxvk_manager.models import InstallationTarget
from dxvk_manager.patcher import PatchEngine


@pytest.fixture
def config(tmp_path):
    """Configuration rooted in a temporary directory"""
    return Config(base_path=tmp_path / "home")


@pytest.fixture
def cache(config):
    cache = VersionCache(config)
    cache.ensure_cache_dirs()
    return cache


@pytest.fixture
def store(config):
    return MetadataStore(config)


@pytest.fixture
def engine(cache, store):
    return PatchEngine(cache, store)


@pytest.fixture
def game_dir(tmp_path):
    """Empty game install directory"""
    path = tmp_path / "games" / "SomeGame"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def make_target(store, game_dir):
    """Register a game and return its InstallationTarget"""

    def _make(direct3d="Direct3D 9", x64="true", x32="false", app_id="570", install_dir=None):
        target = InstallationTarget(
            app_id=app_id,
            name="Some Game",
            install_dir=str(install_dir or game_dir),
            executable_64bit=x64,
            executable_32bit=x32,
            direct3d_versions=direct3d,
        )
        store.register_target(target)
        return target

    return _make


@pytest.fixture
def make_package():
    """Create a fake extracted DXVK package with tagged DLL contents"""

    def _make(root, dlls=("d3d9.dll", "d3d11.dll", "dxgi.dll", "d3d10core.dll", "d3d8.dll"),
              arch_dirs=("x32", "x64")):
        root = Path(root)
        for arch in arch_dirs:
            arch_dir = root / arch
            arch_dir.mkdir(parents=True, exist_ok=True)
            for dll in dlls:
                (arch_dir / dll).write_bytes(f"dxvk {arch} {dll}".encode())
        return root

    return _make
