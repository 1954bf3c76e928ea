"""
Constants for DXVK release endpoints and cache configuration
Based on the upstream DXVK (GitHub) and DXVK-gplasync (GitLab) layouts
"""

# Release index endpoints
DXVK_RELEASES_URL = "https://api.github.com/repos/doitsujin/dxvk/releases"
GPLASYNC_TREE_URL = (
    "https://gitlab.com/api/v4/projects/Ph42oN%2Fdxvk-gplasync/repository/tree"
    "?path=releases&ref=main"
)
# The tree endpoint does not return download links, build them from the file name
GPLASYNC_DOWNLOAD_URL = "https://gitlab.com/Ph42oN/dxvk-gplasync/-/raw/main/releases/{file_name}"

# Channel names (also used as the applied channel in patch state)
CHANNEL_DXVK = "dxvk"
CHANNEL_GPLASYNC = "dxvk-gplasync"

CHANNELS = [CHANNEL_DXVK, CHANNEL_GPLASYNC]

# Cache directory names (one per channel, below the base path)
DXVK_CACHE_DIR = "dxvk-cache"
GPLASYNC_CACHE_DIR = "dxvk-gplasync-cache"

# Metadata layout (below the base path)
METADATA_DIR = "games-meta"
METADATA_RECORDS_DIR = "metadata"

# Default values
DEFAULT_TIMEOUT = 10
DOWNLOAD_TIMEOUT = 180  # 3 minutes, large archives on slow links
MAX_REDIRECTS = 10

# Download read size (64KB)
CHUNK_READ_SIZE = 64 * 1024

# Architecture subfolders inside a DXVK package
ARCH_X64 = "x64"
ARCH_X32 = "x32"

# Folder names accepted for each architecture, first one is canonical
ARCH_DIR_NAMES = {
    ARCH_X64: ["x64"],
    ARCH_X32: ["x32", "x86"],
}

DLL_EXTENSION = ".dll"
ARCHIVE_EXTENSION = ".tar.gz"
NATIVE_MARKER = "native"

# Suffix appended to original game DLLs before they are replaced
BACKUP_SUFFIX = ".bkp"

# Default DLL set when the Direct3D version is unknown
DEFAULT_DLLS = ["d3d9.dll", "dxgi.dll", "d3d11.dll"]
UNKNOWN_DESCRIPTION = "Unknown"

# Metadata values reported for unknown fields
UNKNOWN_VALUE = "Unknown"

# PatchState keys inside a metadata record
PATCH_STATE_KEYS = ["patched", "backuped", "dxvk_type", "dxvk_version", "dxvk_timestamp"]

# User agent
USER_AGENT = "dxvk-manager/{version} (Python)"

# Environment variable overriding the base directory
HOME_ENV_VAR = "DXVK_MANAGER_HOME"
