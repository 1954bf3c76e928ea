"""
Runtime configuration for dxvk_manager

All paths the components need are derived from a single base directory,
handed to each component explicitly instead of living in module state.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dxvk_manager import __version__, constants


@dataclass
class Config:
    """
    Configuration shared by the cache, catalog, downloader and metadata store.

    Attributes:
        base_path: Root directory for caches and metadata
        timeout: Timeout in seconds for release index requests
        download_timeout: Timeout in seconds for archive downloads
        max_redirects: Maximum number of redirects followed by a download
        user_agent: User-Agent header sent with every request
    """
    base_path: Path
    timeout: int = constants.DEFAULT_TIMEOUT
    download_timeout: int = constants.DOWNLOAD_TIMEOUT
    max_redirects: int = constants.MAX_REDIRECTS
    user_agent: str = constants.USER_AGENT.format(version=__version__)

    def __post_init__(self):
        self.base_path = Path(self.base_path)

    @classmethod
    def from_environment(cls, base_path: Optional[str] = None) -> "Config":
        """
        Build a configuration from an explicit path, the environment or the default.

        Args:
            base_path: Base directory. If None, uses DXVK_MANAGER_HOME or
                ~/.config/dxvk_manager

        Returns:
            Config instance
        """
        if base_path is None:
            base_path = os.environ.get(constants.HOME_ENV_VAR)
        if not base_path:
            base_path = str(Path.home() / ".config" / "dxvk_manager")
        return cls(base_path=Path(base_path))

    @property
    def metadata_path(self) -> Path:
        """Directory holding one JSON record per installation."""
        return self.base_path / constants.METADATA_DIR / constants.METADATA_RECORDS_DIR

    def cache_path(self, cache_dir_name: str) -> Path:
        """Cache directory for a channel."""
        return self.base_path / cache_dir_name
