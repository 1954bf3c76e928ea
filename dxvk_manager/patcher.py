"""
DXVK patch engine

Applies a cached DXVK version to a game install directory (backup then copy),
restores the original DLLs from their backups, or removes the DXVK DLLs when
no backup exists. The patch state of each game is persisted through the
metadata store.

File operations are processed one DLL at a time; an error on one file is
logged and collected without aborting the others.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from dxvk_manager import constants
from dxvk_manager.cache import VersionCache
from dxvk_manager.dlls import get_arch_subfolder, resolve_requirements
from dxvk_manager.metadata import MetadataStore
from dxvk_manager.models import (
    ApplyResult,
    Channel,
    DllRequirements,
    ErrorKind,
    InstallationTarget,
    PatchState,
    RemoveResult,
    RestoreResult,
)

NO_DLLS_WARNING = "No Direct3D DLLs were found in the game directory. DXVK may not work properly."
STATE_WARNING = "DXVK was applied but the patch state could not be saved; status may be inaccurate."


def backup_path(dll_path: Path) -> Path:
    """Path of the backup copy of a DLL (d3d9.dll -> d3d9.dll.bkp)."""
    return dll_path.with_name(dll_path.name + constants.BACKUP_SUFFIX)


class PatchEngine:
    """
    Patch state machine for game installations.

    A game is either unpatched, or patched with one channel/version and
    possibly a backup of its original DLLs. Callers must not run two
    operations on the same game concurrently.
    """

    def __init__(self, cache: VersionCache, store: MetadataStore):
        """
        Initialize the patch engine.

        Args:
            cache: Version cache holding the DXVK packages
            store: Metadata store used to read and persist patch state
        """
        self.cache = cache
        self.store = store
        self.logger = logging.getLogger("dxvk_manager.patcher")

    def _requirements(self, target: InstallationTarget) -> Tuple[DllRequirements, str]:
        requirements = resolve_requirements(target.direct3d_versions)
        arch = get_arch_subfolder(target.executable_64bit, target.executable_32bit)
        return requirements, arch

    def _install_dir(self, target: InstallationTarget) -> Optional[Path]:
        if not target.install_dir:
            return None
        path = Path(target.install_dir)
        return path if path.is_dir() else None

    # ========== Apply ==========

    def find_existing_dlls(self, install_dir: Path, required_dlls: List[str]) -> List[str]:
        """Required DLLs already present in the install directory."""
        return [dll for dll in required_dlls if (install_dir / dll).exists()]

    def backup_dlls(self, install_dir: Path, dlls: List[str]) -> Tuple[List[str], List[str]]:
        """
        Copy DLLs to their backup path, never overwriting an existing backup.

        Args:
            install_dir: Game install directory
            dlls: DLL names to back up

        Returns:
            Tuple of (DLLs backed up by this call, DLLs whose backup failed)
        """
        backed_up = []
        failed = []
        for dll in dlls:
            source = install_dir / dll
            backup = backup_path(source)

            # An existing backup is the original vendor DLL, keep it
            if backup.exists():
                self.logger.info(f"Backup already exists for {dll}, skipping")
                continue

            try:
                shutil.copy2(source, backup)
                self.logger.info(f"Backed up {dll} to {backup}")
                backed_up.append(dll)
            except OSError as e:
                self.logger.error(f"Error backing up {dll}: {e}")
                failed.append(dll)
        return backed_up, failed

    def apply(self, target: InstallationTarget, channel: Channel, version: str) -> ApplyResult:
        """
        Apply a cached DXVK version to a game.

        Args:
            target: Game installation
            channel: Channel the version belongs to
            version: Cached version to apply

        Returns:
            ApplyResult; success means at least one DLL was copied
        """
        self.logger.info(f"Applying {channel.display_name} version {version} to {target.name}...")

        install_dir = self._install_dir(target)
        if install_dir is None:
            return ApplyResult(
                success=False,
                message=f"Game installation directory not found: {target.install_dir}",
                error=ErrorKind.NOT_FOUND,
            )

        requirements, arch = self._requirements(target)
        self.logger.info(
            f"Game uses {requirements.description}, requires DLLs {requirements.required_dlls} ({arch})"
        )

        bin_dir = self.cache.resolve_bin_dir(channel, version, arch)
        if bin_dir is None:
            attempted = ", ".join(str(p) for p in self.cache.candidate_bin_dirs(channel, version, arch))
            self.logger.error(f"DXVK bin directory not found. Tried: {attempted}")
            return ApplyResult(
                success=False,
                message=f"{channel.display_name} {version} files not found. Tried: {attempted}",
                error=ErrorKind.NOT_FOUND,
            )
        self.logger.info(f"Using DXVK bin directory: {bin_dir}")

        state = self.store.get_patch_state(target.app_id)
        existing = self.find_existing_dlls(install_dir, requirements.required_dlls)

        backuped = state.backuped
        backed_up: List[str] = []
        backup_failed: List[str] = []
        if not existing:
            self.logger.warning(f"No Direct3D DLLs found in {install_dir}. DXVK may not work properly.")
        elif not state.patched:
            backed_up, backup_failed = self.backup_dlls(install_dir, existing)
            backuped = backuped or any(backup_path(install_dir / dll).exists() for dll in existing)
            self.logger.info(f"Backups present: {backuped} (game was not previously patched)")
        else:
            # The DLLs in place are DXVK's own, backing them up would lose the originals
            self.logger.info("Skipping backup creation as the game is already patched with DXVK")

        copied = []
        missing = []
        failed = list(backup_failed)
        for dll in requirements.required_dlls:
            if dll in backup_failed:
                self.logger.error(f"Not replacing {dll}, its original could not be backed up")
                continue

            source = bin_dir / dll
            if not source.exists():
                self.logger.error(f"Source DLL not found: {source}")
                missing.append(dll)
                continue

            try:
                shutil.copy2(source, install_dir / dll)
                self.logger.info(f"Copied {dll} to {install_dir}")
                copied.append(dll)
            except OSError as e:
                self.logger.error(f"Error copying {dll}: {e}")
                failed.append(dll)

        if not copied:
            return ApplyResult(
                success=False,
                message=f"Failed to copy DXVK DLLs to {target.name}",
                missing_files=missing,
                failed_files=failed,
                backed_up_files=backed_up,
                error=ErrorKind.PARTIAL_FAILURE if failed else ErrorKind.NOT_FOUND,
            )

        new_state = PatchState.applied(channel.name, version, backuped)
        state_recorded = self.store.save_patch_state(target.app_id, new_state)

        warnings = []
        if not existing:
            warnings.append(NO_DLLS_WARNING)
        if not state_recorded:
            self.logger.warning(f"Patch state for {target.name} was not saved, status may be inconsistent")
            warnings.append(STATE_WARNING)
        else:
            self.logger.info(f"Updated metadata for {target.name} with DXVK information")

        message = f"Successfully applied {channel.display_name} version {version} to {target.name}"
        error = None
        if missing or failed:
            message += f" ({len(copied)} of {len(requirements.required_dlls)} DLLs copied)"
            error = ErrorKind.PARTIAL_FAILURE
        elif not state_recorded:
            error = ErrorKind.PERSISTENCE_FAILURE

        return ApplyResult(
            success=True,
            message=message,
            warning=" ".join(warnings) or None,
            state_recorded=state_recorded,
            copied_files=copied,
            missing_files=missing,
            failed_files=failed,
            backed_up_files=backed_up,
            error=error,
        )

    # ========== Restore ==========

    def restore(self, target: InstallationTarget) -> RestoreResult:
        """
        Restore the original DLLs of a game from their backups.

        The DLL list is recomputed from the game's current Direct3D version.

        Args:
            target: Game installation

        Returns:
            RestoreResult; patch state is cleared only if a DLL was restored
        """
        self.logger.info(f"Restoring original DLL files for {target.name}...")

        state = self.store.get_patch_state(target.app_id)
        if not state.backuped:
            return RestoreResult(
                success=False,
                message=f"No backups found for {target.name}. Cannot restore original DLLs.",
                error=ErrorKind.PRECONDITION_FAILURE,
            )

        install_dir = self._install_dir(target)
        if install_dir is None:
            return RestoreResult(
                success=False,
                message=f"Game installation directory not found: {target.install_dir}",
                error=ErrorKind.NOT_FOUND,
            )

        requirements, _ = self._requirements(target)

        restored = []
        failed = []
        for dll in requirements.required_dlls:
            dll_path = install_dir / dll
            backup = backup_path(dll_path)
            if not backup.exists():
                self.logger.info(f"No backup found for {dll}")
                continue

            try:
                if dll_path.exists():
                    dll_path.unlink()
                    self.logger.debug(f"Removed DXVK DLL: {dll_path}")
                backup.rename(dll_path)
                self.logger.info(f"Restored original DLL from backup: {backup} -> {dll_path}")
                restored.append(dll)
            except OSError as e:
                self.logger.error(f"Error restoring {dll}: {e}")
                failed.append(dll)

        if not restored:
            return RestoreResult(
                success=False,
                message=f"Could not find any backups to restore for {target.name}",
                failed_files=failed,
                error=ErrorKind.PARTIAL_FAILURE if failed else ErrorKind.NOT_FOUND,
            )

        message = f"Successfully restored original DLLs for {target.name}"
        error = ErrorKind.PARTIAL_FAILURE if failed else None
        if not self.store.save_patch_state(target.app_id, PatchState()):
            self.logger.warning(f"Patch state for {target.name} was not cleared, status may be inconsistent")
            message += " (patch state could not be saved)"
            error = error or ErrorKind.PERSISTENCE_FAILURE

        return RestoreResult(
            success=True,
            message=message,
            restored_files=restored,
            failed_files=failed,
            error=error,
        )

    # ========== Remove ==========

    def force_remove(self, target: InstallationTarget) -> RemoveResult:
        """
        Delete the DXVK DLLs of a game without restoring anything.

        Used when no backup exists. Patch state is cleared unless every
        deletion failed.

        Args:
            target: Game installation

        Returns:
            RemoveResult
        """
        self.logger.info(f"Removing DXVK DLLs from {target.name} without backup...")

        install_dir = self._install_dir(target)
        if install_dir is None:
            return RemoveResult(
                success=False,
                message=f"Game installation directory not found: {target.install_dir}",
                error=ErrorKind.NOT_FOUND,
            )

        requirements, _ = self._requirements(target)

        removed = []
        failed = []
        for dll in requirements.required_dlls:
            dll_path = install_dir / dll
            if not dll_path.exists():
                continue
            try:
                dll_path.unlink()
                self.logger.info(f"Removed {dll_path}")
                removed.append(dll)
            except OSError as e:
                self.logger.error(f"Error removing {dll}: {e}")
                failed.append(dll)

        if failed and not removed:
            return RemoveResult(
                success=False,
                message=f"Failed to remove DXVK DLLs from {target.name}",
                failed_files=failed,
                error=ErrorKind.PARTIAL_FAILURE,
            )

        if removed:
            message = f"Successfully removed DXVK DLLs from {target.name}"
        else:
            message = f"No DXVK DLLs found in {target.name}, patch state cleared"
        error = ErrorKind.PARTIAL_FAILURE if failed else None

        if not self.store.save_patch_state(target.app_id, PatchState()):
            self.logger.warning(f"Patch state for {target.name} was not cleared, status may be inconsistent")
            message += " (patch state could not be saved)"
            error = error or ErrorKind.PERSISTENCE_FAILURE

        return RemoveResult(
            success=True,
            message=message,
            removed_files=removed,
            failed_files=failed,
            error=error,
        )

    def has_backups(self, target: InstallationTarget) -> bool:
        """Whether any required DLL of the game has a backup on disk."""
        install_dir = self._install_dir(target)
        if install_dir is None:
            return False
        requirements, _ = self._requirements(target)
        return any(backup_path(install_dir / dll).exists() for dll in requirements.required_dlls)
