"""
Archive downloader and extractor for DXVK packages

Downloads release archives with plain streamed HTTP requests and unpacks the
tar.gz payload, trying the tarfile module first and external tools after it.
"""

import logging
import os
import shutil
import subprocess
import sys
import tarfile
import zlib
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from urllib.parse import urljoin

import requests

from dxvk_manager import constants, utils
from dxvk_manager.config import Config


class DxvkManagerError(Exception):
    """Base exception for dxvk_manager."""
    pass


class DownloadError(DxvkManagerError):
    """Exception raised when a download fails."""
    pass


class ExtractionError(DxvkManagerError):
    """Exception raised when no extraction strategy produced a DXVK package."""
    pass


# (name, callable(archive, destination) -> bool)
Strategy = Tuple[str, Callable[[Path, Path], bool]]

# Raised by tarfile on truncated or corrupt gzip streams
EXTRACTION_ERRORS = (OSError, EOFError, zlib.error, tarfile.TarError)


class ArchiveFetcher:
    """
    Downloads and unpacks DXVK release archives.

    Downloads always start from zero; a failed download never leaves a
    partial file behind.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        """
        Initialize the fetcher.

        Args:
            config: Configuration with timeouts and user agent
            session: Optional requests session (created if not provided)
        """
        self.config = config
        self.logger = logging.getLogger("dxvk_manager.downloader")

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": config.user_agent})

    # ========== Download ==========

    def download_file(self, url: str, destination: Path,
                      progress_callback: Optional[Callable[[int, int], None]] = None) -> Path:
        """
        Download a file from a URL, following redirects.

        Args:
            url: URL to download from
            destination: Local file path to save to
            progress_callback: Optional callback(downloaded_bytes, total_bytes)

        Returns:
            Path to the downloaded file

        Raises:
            DownloadError: On non-2xx status, too many redirects, timeout or
                connection errors. The partial file is removed first.
        """
        destination = Path(destination)
        self.logger.info(f"Starting download from {url} to {destination}")

        try:
            utils.ensure_directory(destination.parent)

            # Clean up any existing file first
            if destination.exists():
                destination.unlink()
                self.logger.debug(f"Removed existing file at {destination}")

            downloaded = self._download(url, destination, progress_callback, redirects=0)
        except Exception as e:
            self.logger.error(f"Download failed: {e}")
            if destination.exists():
                destination.unlink()
                self.logger.info(f"Deleted incomplete download: {destination}")
            if isinstance(e, DownloadError):
                raise
            raise DownloadError(f"Download of {url} failed: {e}") from e

        self.logger.info(f"Download complete: {destination} ({utils.format_size(downloaded)})")
        return destination

    def _download(self, url: str, destination: Path,
                  progress_callback: Optional[Callable[[int, int], None]],
                  redirects: int) -> int:
        response = self.session.get(
            url,
            stream=True,
            allow_redirects=False,
            timeout=self.config.download_timeout,
        )
        try:
            location = response.headers.get("Location")
            if 300 <= response.status_code < 400 and location:
                if redirects >= self.config.max_redirects:
                    raise DownloadError(f"Too many redirects (>{self.config.max_redirects}) for {url}")
                next_url = urljoin(url, location)
                self.logger.debug(f"Following redirect from {url} to {next_url}")
                return self._download(next_url, destination, progress_callback, redirects + 1)

            if not 200 <= response.status_code < 300:
                raise DownloadError(f"Server returned status code {response.status_code}")

            total_size = int(response.headers.get("content-length", 0))
            downloaded = 0
            with open(destination, "wb") as f:
                for chunk in response.iter_content(chunk_size=constants.CHUNK_READ_SIZE):
                    if chunk:
                        f.write(chunk)
                        downloaded += len(chunk)
                        if progress_callback:
                            progress_callback(downloaded, total_size)
            return downloaded
        finally:
            response.close()

    # ========== Extraction ==========

    def extract_archive(self, archive_path: Path, destination: Path) -> Path:
        """
        Extract a tar.gz archive into a directory.

        Strategies are tried in order: the tarfile module, 7z (Windows only),
        system tar. If all of them report failure the destination is probed
        for the DXVK x32/x64 layout, since tools sometimes exit nonzero after
        writing correct output. The archive is deleted on success.

        Args:
            archive_path: Path to the tar.gz file
            destination: Directory to extract into

        Returns:
            The destination directory

        Raises:
            ExtractionError: If every strategy failed and no DXVK layout was found
        """
        archive_path = Path(archive_path)
        destination = Path(destination)
        utils.ensure_directory(destination)

        self.logger.info(f"Extracting {archive_path} to {destination}")

        extracted = False
        for name, strategy in self._strategies():
            try:
                if strategy(archive_path, destination):
                    self.logger.info(f"Extraction complete using {name}")
                    extracted = True
                    break
                self.logger.warning(f"Extraction with {name} failed")
            except EXTRACTION_ERRORS as e:
                self.logger.warning(f"Extraction with {name} failed: {e}")

        if not extracted:
            self.logger.info("Verifying if extraction was successful despite reported errors...")
            if not self.verify_extraction(destination):
                self.logger.error("Extraction verification failed: no valid DXVK structure found")
                raise ExtractionError(f"Extraction of {archive_path} failed or resulted in invalid structure")
            self.logger.warning("DXVK directory structure verified, considering extraction successful")

        self._remove_archive(archive_path)
        return destination

    def _strategies(self) -> List[Strategy]:
        strategies: List[Strategy] = [("tarfile", self.extract_with_tarfile)]
        if sys.platform == "win32":
            strategies.append(("7z", self.extract_with_7z))
        strategies.append(("tar", self.extract_with_system_tar))
        return strategies

    def extract_with_tarfile(self, archive_path: Path, destination: Path) -> bool:
        """Extract archive using the tarfile module."""
        with tarfile.open(archive_path, "r:gz") as tar:
            tar.extractall(path=destination, filter="data")
        return True

    def extract_with_7z(self, archive_path: Path, destination: Path) -> bool:
        """Extract archive using 7z (gz layer and tar layer in one pass)."""
        if not shutil.which("7z"):
            self.logger.debug("7z not found")
            return False
        gz = self._run(["7z", "x", str(archive_path), f"-o{destination}", "-y"])
        if gz.returncode != 0:
            return False
        inner = destination / archive_path.name[: -len(".gz")]
        if not inner.exists():
            return False
        result = self._run(["7z", "x", str(inner), f"-o{destination}", "-y"])
        inner.unlink()
        return result.returncode == 0

    def extract_with_system_tar(self, archive_path: Path, destination: Path) -> bool:
        """Extract archive using the system tar command."""
        if not shutil.which("tar"):
            self.logger.debug("tar not found")
            return False
        result = self._run(["tar", "-xzf", str(archive_path), "-C", str(destination)])
        return result.returncode == 0

    def _run(self, cmd: List[str]) -> subprocess.CompletedProcess:
        result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        if result.returncode != 0:
            self.logger.error(f"{cmd[0]} exited with code {result.returncode}: {result.stderr.strip()}")
        return result

    def verify_extraction(self, destination: Path) -> bool:
        """
        Check for the DXVK layout directly in a directory or one level below.

        Args:
            destination: Extraction directory

        Returns:
            True if x32 (or x86) and x64 folders were found
        """
        if not destination.is_dir():
            return False
        if utils.has_arch_structure(destination):
            return True
        return any(
            entry.is_dir() and utils.has_arch_structure(entry)
            for entry in destination.iterdir()
        )

    def _remove_archive(self, archive_path: Path) -> None:
        try:
            if archive_path.exists():
                archive_path.unlink()
                self.logger.debug(f"Removed archive: {archive_path}")
        except OSError as e:
            self.logger.warning(f"Failed to delete archive {archive_path}: {e}")

    # ========== Pipeline ==========

    def download_and_extract(self, version: str, download_url: Optional[str],
                             cache_dir: Path, version_dir: Path) -> bool:
        """
        Download a DXVK archive and unpack it into its version directory.

        Args:
            version: Version identifier (for logging)
            download_url: Archive URL
            cache_dir: Channel cache directory, holds the archive while downloading
            version_dir: Target directory for this version

        Returns:
            True if the version was downloaded and extracted
        """
        if not download_url:
            self.logger.error(f"No download URL for version {version}")
            return False

        file_name = os.path.basename(download_url.split("?")[0])
        archive_path = Path(cache_dir) / file_name

        try:
            self.logger.info(f"Starting download of version {version}")
            self.download_file(download_url, archive_path)
            self.extract_archive(archive_path, Path(version_dir))
        except (DxvkManagerError, EOFError, zlib.error, tarfile.TarError, OSError) as e:
            self.logger.error(f"Error downloading or extracting version {version}: {e}")
            # An existing version directory marks the version as cached
            shutil.rmtree(version_dir, ignore_errors=True)
            return False

        self.logger.info(f"Successfully downloaded and extracted version {version}")
        return True
