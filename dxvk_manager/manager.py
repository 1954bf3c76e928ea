"""
DXVK Manager facade

Wires the cache, catalog, downloader, metadata store and patch engine
together from one Config and exposes the operations used by front-ends.
"""

import logging
from typing import Any, Dict, List, Optional, Union

import requests

from dxvk_manager.cache import VersionCache
from dxvk_manager.catalog import ReleaseCatalog
from dxvk_manager.channels import get_channel
from dxvk_manager.config import Config
from dxvk_manager.dlls import Flag, get_arch_subfolder, resolve_requirements
from dxvk_manager.downloader import ArchiveFetcher
from dxvk_manager.metadata import MetadataStore
from dxvk_manager.models import (
    ApplyResult,
    Channel,
    DllRequirements,
    ErrorKind,
    InstallationTarget,
    PatchState,
    Release,
    RemoveResult,
    RestoreResult,
)
from dxvk_manager.patcher import PatchEngine

ChannelRef = Union[Channel, str]


class DxvkManager:
    """
    Entry point for managing DXVK versions and game patches.

    Example:
        >>> manager = DxvkManager(Config.from_environment())
        >>> releases = manager.list_catalog("dxvk")
        >>> manager.fetch_and_cache("dxvk", releases[0].version, releases[0].download_url)
        >>> manager.apply("570", "dxvk", releases[0].version)
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        """
        Initialize the manager.

        Args:
            config: Configuration shared by all components
            session: Optional requests session shared by catalog and downloader
        """
        self.config = config
        self.logger = logging.getLogger("dxvk_manager.manager")

        self.cache = VersionCache(config)
        self.cache.ensure_cache_dirs()
        self.store = MetadataStore(config)
        self.catalog = ReleaseCatalog(config, self.cache, session=session)
        self.fetcher = ArchiveFetcher(config, session=session)
        self.patcher = PatchEngine(self.cache, self.store)

    @staticmethod
    def _channel(channel: ChannelRef) -> Channel:
        return channel if isinstance(channel, Channel) else get_channel(channel)

    # ========== Requirements ==========

    @staticmethod
    def resolve_requirements(descriptor: Optional[str], executable_64bit: Flag = None,
                             executable_32bit: Flag = None) -> Dict[str, Any]:
        """
        DLLs and architecture folder for a Direct3D version and bitness.

        Returns:
            Dict with "requiredDlls", "description" and "arch"
        """
        requirements: DllRequirements = resolve_requirements(descriptor)
        return {
            "requiredDlls": requirements.required_dlls,
            "description": requirements.description,
            "arch": get_arch_subfolder(executable_64bit, executable_32bit),
        }

    # ========== Versions ==========

    def list_catalog(self, channel: ChannelRef) -> List[Release]:
        """Releases offered by a channel, empty if the index could not be fetched."""
        return self.catalog.list_releases(self._channel(channel))

    def fetch_and_cache(self, channel: ChannelRef, version: str, download_url: Optional[str]) -> bool:
        """
        Download and unpack a version into the cache.

        Returns:
            True if the version is cached afterwards
        """
        channel = self._channel(channel)
        if self.cache.is_present(channel, version):
            self.logger.info(f"{channel.display_name} {version} is already cached")
            return True
        return self.fetcher.download_and_extract(
            version,
            download_url,
            self.cache.cache_dir(channel),
            self.cache.version_dir(channel, version),
        )

    def is_cached(self, channel: ChannelRef, version: str) -> bool:
        return self.cache.is_present(self._channel(channel), version)

    def list_cached_versions(self, channel: ChannelRef) -> List[str]:
        return self.cache.list_versions(self._channel(channel))

    # ========== Games ==========

    def register_target(self, target: InstallationTarget) -> bool:
        """Store or update a game's install information."""
        return self.store.register_target(target)

    def save_custom_metadata(self, app_id: str, updates: Dict[str, Any]) -> bool:
        return self.store.save_custom_metadata(app_id, updates)

    def get_patch_state(self, app_id: str) -> PatchState:
        return self.store.get_patch_state(app_id)

    def has_backups(self, app_id: str) -> bool:
        target = self.store.get_target(app_id)
        return target is not None and self.patcher.has_backups(target)

    def apply(self, app_id: str, channel: ChannelRef, version: str) -> ApplyResult:
        """Apply a cached version to a registered game."""
        target = self.store.get_target(app_id)
        if target is None:
            return ApplyResult(success=False, message=f"Game with ID {app_id} not found",
                               error=ErrorKind.NOT_FOUND)
        return self.patcher.apply(target, self._channel(channel), version)

    def restore(self, app_id: str) -> RestoreResult:
        """Restore a registered game's original DLLs from backup."""
        target = self.store.get_target(app_id)
        if target is None:
            return RestoreResult(success=False, message=f"Game with ID {app_id} not found",
                                 error=ErrorKind.NOT_FOUND)
        return self.patcher.restore(target)

    def force_remove(self, app_id: str) -> RemoveResult:
        """Delete DXVK DLLs from a registered game without restoring backups."""
        target = self.store.get_target(app_id)
        if target is None:
            return RemoveResult(success=False, message=f"Game with ID {app_id} not found",
                                error=ErrorKind.NOT_FOUND)
        return self.patcher.force_remove(target)
