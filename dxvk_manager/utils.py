"""
Utility functions for DXVK downloads and cache handling
"""

import json
import re
from pathlib import Path
from typing import Any, List, Optional, Tuple

import requests

from dxvk_manager import constants


def get_json(session: requests.Session, url: str, timeout: int = constants.DEFAULT_TIMEOUT) -> Any:
    """
    Fetch JSON data from a URL.

    Unlike a fail-soft helper this raises, so callers can tell an empty
    index apart from a failed request.

    Args:
        session: Requests session to use
        url: URL to fetch
        timeout: Request timeout in seconds

    Returns:
        Parsed JSON data

    Raises:
        requests.RequestException: On connection errors or non-2xx status
        json.JSONDecodeError: If the body is not valid JSON
    """
    response = session.get(url, headers={"Accept": "application/json"}, timeout=timeout)
    response.raise_for_status()
    return response.json()


def version_sort_key(version: str) -> Tuple[int, ...]:
    """
    Split a version string into numeric components.

    "v2.10" -> (2, 10), "v2.1-1" -> (2, 1, 1). Non-numeric parts count as 0.

    Args:
        version: Version string, with or without a leading "v"

    Returns:
        Tuple of integers
    """
    parts = re.split(r"[.-]", re.sub(r"^v", "", version))
    return tuple(int(part) if part.isdigit() else 0 for part in parts)


def compare_versions(a: str, b: str) -> int:
    """
    Compare two version strings numerically, right-padding with zeros.

    Returns:
        Negative if a < b, zero if equal, positive if a > b
    """
    key_a = version_sort_key(a)
    key_b = version_sort_key(b)
    length = max(len(key_a), len(key_b))
    key_a = key_a + (0,) * (length - len(key_a))
    key_b = key_b + (0,) * (length - len(key_b))
    return (key_a > key_b) - (key_a < key_b)


def get_readable_size(size_bytes: int) -> Tuple[float, str]:
    """
    Convert bytes to human-readable size.

    Args:
        size_bytes: Size in bytes

    Returns:
        Tuple of (size value, unit string)
    """
    power = 1024
    n = 0
    labels = {0: "B", 1: "KB", 2: "MB", 3: "GB", 4: "TB"}

    size = float(size_bytes)
    while size > power and n < 4:
        size /= power
        n += 1

    return round(size, 2), labels[n]


def format_size(size_bytes: int) -> str:
    """Format bytes as human-readable string (e.g. "1.5 MB")."""
    size, unit = get_readable_size(size_bytes)
    return f"{size} {unit}"


def ensure_directory(path) -> None:
    """Ensure directory exists, creating it if necessary."""
    Path(path).mkdir(parents=True, exist_ok=True)


def find_arch_dir(base: Path, arch: str) -> Optional[Path]:
    """
    Find the architecture subfolder of a package directory.

    Accepts the alias names listed in constants.ARCH_DIR_NAMES (x32 / x86).

    Args:
        base: Directory expected to contain the architecture folders
        arch: Canonical architecture name ("x64" or "x32")

    Returns:
        Path of the folder, or None if none of the names exist
    """
    for name in constants.ARCH_DIR_NAMES.get(arch, [arch]):
        candidate = base / name
        if candidate.is_dir():
            return candidate
    return None


def has_arch_structure(base: Path) -> bool:
    """Whether a directory holds both architecture folders."""
    return all(find_arch_dir(base, arch) is not None for arch in constants.ARCH_DIR_NAMES)


def list_dlls(directory: Path) -> List[Path]:
    """List DLL files of a directory in lexical order."""
    return sorted(
        (entry for entry in directory.iterdir()
         if entry.is_file() and entry.name.lower().endswith(constants.DLL_EXTENSION)),
        key=lambda entry: entry.name,
    )


def load_json_file(path: Path) -> Optional[Any]:
    """
    Read a JSON document from disk.

    Returns:
        Parsed data, or None if the file does not exist

    Raises:
        json.JSONDecodeError, OSError: If the file exists but cannot be read
    """
    if not path.exists():
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
