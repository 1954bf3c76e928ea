"""
Direct3D DLL requirements

Maps the free-text Direct3D version reported for a game to the DLLs DXVK
has to replace, and the executable bitness to the package subfolder.
"""

import logging
import re
from typing import List, Optional, Union

from dxvk_manager import constants
from dxvk_manager.models import DllRequirements

logger = logging.getLogger("dxvk_manager.dlls")

# Tried in order, the first match gives the primary version (9.0c -> 9, 11.4 -> 11)
VERSION_PATTERNS = [
    re.compile(r"direct3d\s*(\d+)(?:\.\d+)?"),  # Direct3D 11.0
    re.compile(r"d3d\s*(\d+)(?:\.\d+)?"),       # D3D 9.0c
    re.compile(r"dx\s*(\d+)(?:\.\d+)?"),        # DX 11
    re.compile(r"(\d+)(?:\.\d+)?"),             # 9.0
]

# version -> (dlls, description)
DLLS_BY_VERSION = {
    8: (["d3d8.dll", "d3d9.dll"], "Direct3D 8"),
    9: (["d3d9.dll"], "Direct3D 9"),
    10: (["dxgi.dll", "d3d11.dll", "d3d10core.dll"], "Direct3D 10"),
    11: (["dxgi.dll", "d3d11.dll"], "Direct3D 11"),
    # D3D12 is handled by vkd3d-proton, not DXVK, but the files are still listed
    12: (["dxgi.dll", "d3d12.dll"], "Direct3D 12 (may not work with DXVK)"),
}

Flag = Union[bool, str, None]


def parse_primary_version(descriptor: str) -> Optional[int]:
    """
    Extract the major Direct3D version from a descriptor.

    Args:
        descriptor: Lowercased descriptor, e.g. "direct3d 9.0c"

    Returns:
        Major version number, or None if no pattern matched
    """
    for pattern in VERSION_PATTERNS:
        match = pattern.search(descriptor)
        if match and match.group(1):
            return int(match.group(1))
    return None


def _mentions_version(version: int, descriptor: str) -> bool:
    return f"direct3d {version}" in descriptor or f"d3d{version}" in descriptor


def _dedupe(names: List[str]) -> List[str]:
    seen = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


def resolve_requirements(descriptor: Optional[str]) -> DllRequirements:
    """
    Determine which DLLs a game needs based on its Direct3D version.

    Args:
        descriptor: Direct3D version text from the game metadata, may be None
            or "Unknown"

    Returns:
        DllRequirements with the ordered DLL list and a description
    """
    if not descriptor or descriptor.strip().lower() == constants.UNKNOWN_VALUE.lower():
        return DllRequirements(list(constants.DEFAULT_DLLS), constants.UNKNOWN_DESCRIPTION)

    normalized = descriptor.lower()
    primary = parse_primary_version(normalized)
    logger.debug(f'Normalized Direct3D version: "{normalized}" -> primary version: {primary}')

    version = primary if primary in DLLS_BY_VERSION else None
    if version is None:
        # Substring checks catch descriptors whose leading number is not a D3D version
        version = next((v for v in sorted(DLLS_BY_VERSION) if _mentions_version(v, normalized)), None)

    if version is not None:
        dlls, description = DLLS_BY_VERSION[version]
        return DllRequirements(_dedupe(dlls), description)

    return DllRequirements(list(constants.DEFAULT_DLLS), constants.UNKNOWN_DESCRIPTION)


def _is_true(flag: Flag) -> bool:
    if isinstance(flag, bool):
        return flag
    if flag is None:
        return False
    return str(flag).strip().lower() == "true"


def get_arch_subfolder(executable_64bit: Flag = None, executable_32bit: Flag = None) -> str:
    """
    Get the package architecture subfolder for a game's executable bitness.

    Args:
        executable_64bit: True / "true" when the game ships a 64-bit executable
        executable_32bit: True / "true" when the game ships a 32-bit executable

    Returns:
        "x64" or "x32", defaulting to "x64" when the bitness is unknown
    """
    if _is_true(executable_64bit):
        return constants.ARCH_X64
    if _is_true(executable_32bit):
        return constants.ARCH_X32
    return constants.ARCH_X64
