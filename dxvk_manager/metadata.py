"""
Per-game metadata records

Stores one JSON document per game holding the install information (install
directory, executable bitness, Direct3D version) together with the DXVK
patch state. Updates merge into the stored record so fields owned by other
tools are preserved.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from dxvk_manager import constants, utils
from dxvk_manager.config import Config
from dxvk_manager.models import InstallationTarget, PatchState


class MetadataStore:
    """
    JSON file store for game metadata.

    Provides the record persistence (load/save/update) and install directory
    lookup used by the patch engine.
    """

    def __init__(self, config: Config):
        """
        Initialize the store.

        Args:
            config: Configuration providing the metadata directory
        """
        self.logger = logging.getLogger("dxvk_manager.metadata")
        self.metadata_path = config.metadata_path

    def _record_path(self, app_id: str) -> Path:
        return self.metadata_path / f"{app_id}.json"

    def exists(self, app_id: str) -> bool:
        return self._record_path(app_id).exists()

    def load(self, app_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a game's record.

        Args:
            app_id: Game identifier

        Returns:
            Record dict, or None if missing or unreadable
        """
        path = self._record_path(app_id)
        try:
            data = utils.load_json_file(path)
        except (ValueError, OSError) as e:
            self.logger.error(f"Error loading metadata for {app_id}: {e}")
            return None

        if data is None:
            return None
        if not isinstance(data, dict):
            self.logger.error(f"Metadata for {app_id} is not an object")
            return None

        self.logger.debug(f"Loaded metadata for {app_id}")
        return data

    def save(self, app_id: str, record: Dict[str, Any]) -> bool:
        """
        Write a game's record, replacing the file.

        Args:
            app_id: Game identifier
            record: Full record to store

        Returns:
            True if saved, False otherwise
        """
        path = self._record_path(app_id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            utils.ensure_directory(path.parent)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2)
            tmp_path.replace(path)
        except (IOError, OSError, TypeError, ValueError) as e:
            self.logger.error(f"Error saving metadata for {app_id}: {e}")
            tmp_path.unlink(missing_ok=True)
            return False

        self.logger.debug(f"Saved metadata for {app_id}")
        return True

    def update(self, app_id: str, fields: Dict[str, Any]) -> bool:
        """
        Merge fields into a game's record.

        Args:
            app_id: Game identifier
            fields: Fields to set; other stored fields are kept

        Returns:
            True if saved, False otherwise
        """
        record = self.load(app_id) or {}
        record.update(fields)
        return self.save(app_id, record)

    # ========== Installation targets ==========

    def get_target(self, app_id: str) -> Optional[InstallationTarget]:
        """Build the InstallationTarget of a stored game, or None if unknown."""
        record = self.load(app_id)
        if record is None:
            return None
        return InstallationTarget.from_record(app_id, record)

    def register_target(self, target: InstallationTarget) -> bool:
        """Create or update a game's install information, keeping its patch state."""
        return self.update(target.app_id, target.to_record())

    def save_custom_metadata(self, app_id: str, updates: Dict[str, Any]) -> bool:
        """
        Apply user-provided corrections (Direct3D version, bitness, ...).

        Patch state keys are owned by the patch engine and are ignored here.

        Args:
            app_id: Game identifier
            updates: Fields to merge

        Returns:
            True if saved, False otherwise
        """
        ignored = [key for key in updates if key in constants.PATCH_STATE_KEYS]
        if ignored:
            self.logger.warning(f"Ignoring patch state fields in custom metadata for {app_id}: {ignored}")
        fields = {key: value for key, value in updates.items() if key not in constants.PATCH_STATE_KEYS}
        return self.update(app_id, fields)

    # ========== Patch state ==========

    def get_patch_state(self, app_id: str) -> PatchState:
        """Patch state of a game, unpatched when no record exists."""
        return PatchState.from_record(self.load(app_id))

    def save_patch_state(self, app_id: str, state: PatchState) -> bool:
        """Merge a patch state into a game's record."""
        return self.update(app_id, state.to_record())
