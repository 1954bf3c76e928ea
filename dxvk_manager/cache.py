"""
Local cache of downloaded DXVK versions

Each channel has its own cache directory holding one directory per version.
Upstream archives usually unpack into an extra directory (dxvk-2.6/x64/...),
so lookups descend one level when a version directory holds a single folder.
"""

import logging
from pathlib import Path
from typing import List, Optional

from dxvk_manager import constants, utils
from dxvk_manager.channels import ALL_CHANNELS
from dxvk_manager.config import Config
from dxvk_manager.models import Channel, DxvkFiles


class VersionCache:
    """
    Per-channel directory of installed DXVK versions.

    Presence is a plain directory check; locate() is what validates the
    x32/x64 layout.
    """

    def __init__(self, config: Config):
        """
        Initialize the cache.

        Args:
            config: Configuration providing the base path
        """
        self.config = config
        self.logger = logging.getLogger("dxvk_manager.cache")

    def ensure_cache_dirs(self) -> None:
        """Create the cache directory of every channel."""
        for channel in ALL_CHANNELS:
            path = self.cache_dir(channel)
            if not path.exists():
                utils.ensure_directory(path)
                self.logger.info(f"Created {channel.display_name} cache directory: {path}")

    def cache_dir(self, channel: Channel) -> Path:
        """Cache directory of a channel."""
        return self.config.cache_path(channel.cache_dir_name)

    def version_dir(self, channel: Channel, version: str) -> Path:
        """Directory a version is (or will be) extracted into."""
        return self.cache_dir(channel) / channel.safe_version(version)

    def is_present(self, channel: Channel, version: str) -> bool:
        """Check if a version has been downloaded."""
        return self.version_dir(channel, version).is_dir()

    def list_versions(self, channel: Channel) -> List[str]:
        """
        List the version directories present in a channel cache.

        Args:
            channel: Channel to inspect

        Returns:
            Sorted directory names
        """
        cache_dir = self.cache_dir(channel)
        if not cache_dir.is_dir():
            return []
        return sorted(entry.name for entry in cache_dir.iterdir() if entry.is_dir())

    def _package_root(self, version_dir: Path) -> Path:
        # A single folder inside the version directory is the unpacked archive root
        entries = list(version_dir.iterdir())
        if len(entries) == 1 and entries[0].is_dir():
            return entries[0]
        return version_dir

    def locate(self, channel: Channel, version: str) -> Optional[DxvkFiles]:
        """
        Find the DLLs of a cached version.

        Args:
            channel: Channel the version belongs to
            version: Version string

        Returns:
            DxvkFiles with x32 and x64 DLL paths, or None if the version is not
            cached or lacks either architecture folder
        """
        version_dir = self.version_dir(channel, version)
        if not version_dir.is_dir():
            self.logger.error(f"Version directory not found: {version_dir}")
            return None

        try:
            root = self._package_root(version_dir)
            x32_dir = utils.find_arch_dir(root, constants.ARCH_X32)
            x64_dir = utils.find_arch_dir(root, constants.ARCH_X64)
            if x32_dir is None or x64_dir is None:
                self.logger.error(f"Version {version} doesn't have expected directory structure")
                return None

            return DxvkFiles(root=root, x32=utils.list_dlls(x32_dir), x64=utils.list_dlls(x64_dir))
        except OSError as e:
            self.logger.error(f"Error getting DXVK files for {version}: {e}")
            return None

    def candidate_bin_dirs(self, channel: Channel, version: str, arch: str) -> List[Path]:
        """
        Ordered list of directories that may hold a version's DLLs for one architecture.

        Tried in order: <version dir>/<arch>, <version dir>/<nested name>/<arch>,
        for channels with extra_version_variant <version dir>/<version>/<arch>,
        and finally the root found by locate().

        Args:
            channel: Channel the version belongs to
            version: Version string
            arch: "x64" or "x32"

        Returns:
            Candidate directories, without duplicates
        """
        version_dir = self.version_dir(channel, version)
        bases = [version_dir, version_dir / channel.nested_dir_name(version)]
        if channel.extra_version_variant:
            bases.append(version_dir / version)

        candidates: List[Path] = []
        for base in bases:
            found = utils.find_arch_dir(base, arch)
            candidates.append(found if found is not None else base / arch)

        if version_dir.is_dir():
            root = self._package_root(version_dir)
            found = utils.find_arch_dir(root, arch)
            if found is not None:
                candidates.append(found)

        unique: List[Path] = []
        for candidate in candidates:
            if candidate not in unique:
                unique.append(candidate)
        return unique

    def resolve_bin_dir(self, channel: Channel, version: str, arch: str) -> Optional[Path]:
        """First existing candidate directory, or None."""
        for candidate in self.candidate_bin_dirs(channel, version, arch):
            if candidate.is_dir():
                return candidate
        return None
