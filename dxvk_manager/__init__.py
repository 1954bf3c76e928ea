"""
DXVK Manager - A Python library for managing DXVK installs in game directories

This library downloads DXVK and DXVK-gplasync releases into a local cache and
swaps the required Direct3D DLLs in and out of game install directories,
keeping a backup of the original files and per-game patch state.
"""

__version__ = "0.1.0"
__author__ = "dxvk-manager Contributors"
__license__ = "MIT"

from dxvk_manager.config import Config
from dxvk_manager.manager import DxvkManager
from dxvk_manager.models import (
    ApplyResult,
    InstallationTarget,
    PatchState,
    Release,
    RemoveResult,
    RestoreResult,
)

__all__ = [
    "Config",
    "DxvkManager",
    "ApplyResult",
    "InstallationTarget",
    "PatchState",
    "Release",
    "RemoveResult",
    "RestoreResult",
]
