"""
The two DXVK distribution channels

DXVK is published as GitHub releases; DXVK-gplasync keeps its archives in a
"releases" folder of a GitLab repository.
"""

from typing import List

from dxvk_manager import constants
from dxvk_manager.models import Channel


DXVK = Channel(
    name=constants.CHANNEL_DXVK,
    display_name="DXVK",
    index_url=constants.DXVK_RELEASES_URL,
    index_format="releases",
    cache_dir_name=constants.DXVK_CACHE_DIR,
    # dxvk-cache/v2.6/dxvk-2.6/x64
    nested_dir_template="dxvk-{bare}",
)

GPLASYNC = Channel(
    name=constants.CHANNEL_GPLASYNC,
    display_name="DXVK-gplasync",
    index_url=constants.GPLASYNC_TREE_URL,
    index_format="tree",
    cache_dir_name=constants.GPLASYNC_CACHE_DIR,
    archive_pattern=r"dxvk-gplasync-([0-9.]+(?:-[0-9]+)?)\.tar\.gz",
    download_url_template=constants.GPLASYNC_DOWNLOAD_URL,
    strip_version_prefix=True,
    # dxvk-gplasync-cache/2.6-1/dxvk-gplasync-v2.6-1/x64
    nested_dir_template="dxvk-gplasync-{version}",
    extra_version_variant=True,
)

ALL_CHANNELS: List[Channel] = [DXVK, GPLASYNC]


def get_channel(name: str) -> Channel:
    """
    Look up a channel by name.

    Args:
        name: Channel name ("dxvk" or "dxvk-gplasync")

    Returns:
        The matching Channel

    Raises:
        ValueError: If no channel has that name
    """
    for channel in ALL_CHANNELS:
        if channel.name == name:
            return channel
    raise ValueError(f"Unknown channel: {name} (expected one of {', '.join(constants.CHANNELS)})")
