"""
Data models for DXVK channels, releases, cached packages and patch state
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Dict, Any

from dxvk_manager import constants


class ErrorKind(str, Enum):
    """Failure categories reported in operation results."""
    NOT_FOUND = "not_found"
    NETWORK_FAILURE = "network_failure"
    EXTRACTION_FAILURE = "extraction_failure"
    PARTIAL_FAILURE = "partial_failure"
    PERSISTENCE_FAILURE = "persistence_failure"
    PRECONDITION_FAILURE = "precondition_failure"


@dataclass(frozen=True)
class Channel:
    """
    Static description of one DXVK distribution channel.

    Attributes:
        name: Channel identifier stored in patch state
        display_name: Human-readable channel name
        index_url: Release index endpoint
        index_format: "releases" (GitHub releases JSON) or "tree" (GitLab tree listing)
        cache_dir_name: Directory name of the channel cache below the base path
        archive_pattern: Regex extracting the version token from an archive file name
        download_url_template: Download URL template for indexes without asset links
        strip_version_prefix: Drop a leading "v" when mapping a version to a directory
        nested_dir_template: Name of the directory upstream archives unpack into
        extra_version_variant: Also try <version dir>/<version>/<arch> when locating
    """
    name: str
    display_name: str
    index_url: str
    index_format: str
    cache_dir_name: str
    archive_pattern: Optional[str] = None
    download_url_template: Optional[str] = None
    strip_version_prefix: bool = False
    nested_dir_template: str = "{bare}"
    extra_version_variant: bool = False

    def safe_version(self, version: str) -> str:
        """
        Turn a free-form version string into a safe directory name.

        Args:
            version: Version string, e.g. "v2.6" or "v2.4-1"

        Returns:
            Directory name for the version
        """
        safe = version
        if self.strip_version_prefix:
            safe = re.sub(r"^v", "", safe)
        return re.sub(r"[/\\]", "-", safe)

    def nested_dir_name(self, version: str) -> str:
        """Name of the directory an archive of this version unpacks into."""
        return self.nested_dir_template.format(version=version, bare=re.sub(r"^v", "", version))


@dataclass
class Release:
    """
    A release offered by a channel's remote index.

    Attributes:
        version: Version string (e.g. "v2.6")
        name: Display name
        published_at: Publication date, None when the index does not provide one
        download_url: Archive URL, None when no suitable asset exists
        file_name: Archive file name (tree indexes only)
        is_downloaded: Whether the version is present in the local cache
    """
    version: str
    name: str
    published_at: Optional[datetime] = None
    download_url: Optional[str] = None
    file_name: Optional[str] = None
    is_downloaded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "name": self.name,
            "date": self.published_at.isoformat() if self.published_at else None,
            "downloadUrl": self.download_url,
            "isDownloaded": self.is_downloaded,
        }


@dataclass
class DxvkFiles:
    """
    DLL payload of a cached DXVK version.

    Attributes:
        root: Directory holding the architecture subfolders
        x32: Absolute paths of the 32-bit DLLs, in lexical order
        x64: Absolute paths of the 64-bit DLLs, in lexical order
    """
    root: Path
    x32: List[Path] = field(default_factory=list)
    x64: List[Path] = field(default_factory=list)


@dataclass
class DllRequirements:
    """DLLs a game needs for its Direct3D version."""
    required_dlls: List[str]
    description: str


@dataclass
class InstallationTarget:
    """
    One tracked game installation.

    Bitness flags are kept as the metadata reports them: "true", "false"
    or "Unknown".
    """
    app_id: str
    name: str
    install_dir: Optional[str] = None
    executable_64bit: str = constants.UNKNOWN_VALUE
    executable_32bit: str = constants.UNKNOWN_VALUE
    direct3d_versions: str = constants.UNKNOWN_VALUE

    @classmethod
    def from_record(cls, app_id: str, record: Dict[str, Any]) -> "InstallationTarget":
        """Create an InstallationTarget from a stored metadata record."""
        return cls(
            app_id=str(app_id),
            name=record.get("name") or f"Game {app_id}",
            install_dir=record.get("installDir"),
            executable_64bit=str(record.get("executable64bit", constants.UNKNOWN_VALUE)),
            executable_32bit=str(record.get("executable32bit", constants.UNKNOWN_VALUE)),
            direct3d_versions=record.get("direct3dVersions") or constants.UNKNOWN_VALUE,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "installDir": self.install_dir,
            "executable64bit": self.executable_64bit,
            "executable32bit": self.executable_32bit,
            "direct3dVersions": self.direct3d_versions,
        }


@dataclass
class PatchState:
    """
    Patch status of an installation, stored inside its metadata record.

    When patched is False the applied channel, version and timestamp are None.
    """
    patched: bool = False
    backuped: bool = False
    dxvk_type: Optional[str] = None
    dxvk_version: Optional[str] = None
    dxvk_timestamp: Optional[str] = None

    @classmethod
    def from_record(cls, record: Optional[Dict[str, Any]]) -> "PatchState":
        if not record:
            return cls()
        patched = bool(record.get("patched", False))
        return cls(
            patched=patched,
            backuped=bool(record.get("backuped", False)),
            dxvk_type=record.get("dxvk_type") if patched else None,
            dxvk_version=record.get("dxvk_version") if patched else None,
            dxvk_timestamp=record.get("dxvk_timestamp") if patched else None,
        )

    @classmethod
    def applied(cls, channel: str, version: str, backuped: bool) -> "PatchState":
        return cls(
            patched=True,
            backuped=backuped,
            dxvk_type=channel,
            dxvk_version=version,
            dxvk_timestamp=datetime.now().isoformat(),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "patched": self.patched,
            "backuped": self.backuped,
            "dxvk_type": self.dxvk_type,
            "dxvk_version": self.dxvk_version,
            "dxvk_timestamp": self.dxvk_timestamp,
        }


@dataclass
class ApplyResult:
    """
    Outcome of applying a DXVK version to a game.

    Attributes:
        success: Whether at least one DLL was copied
        message: Human-readable summary
        warning: Set when the game had none of the required DLLs, or state was not recorded
        state_recorded: False when the files were patched but metadata could not be saved
        copied_files: DLLs copied into the install directory
        missing_files: Required DLLs absent from the DXVK package
        failed_files: DLLs whose copy raised an error
        backed_up_files: DLLs backed up during this call
        error: Failure category, if any
    """
    success: bool
    message: str
    warning: Optional[str] = None
    state_recorded: bool = True
    copied_files: List[str] = field(default_factory=list)
    missing_files: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)
    backed_up_files: List[str] = field(default_factory=list)
    error: Optional[ErrorKind] = None


@dataclass
class RestoreResult:
    """Outcome of restoring original DLLs from backups."""
    success: bool
    message: str
    restored_files: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)
    error: Optional[ErrorKind] = None


@dataclass
class RemoveResult:
    """Outcome of removing DXVK DLLs without a backup."""
    success: bool
    message: str
    removed_files: List[str] = field(default_factory=list)
    failed_files: List[str] = field(default_factory=list)
    error: Optional[ErrorKind] = None
