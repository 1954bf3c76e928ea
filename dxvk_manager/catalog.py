"""
Release catalog for the DXVK channels

Queries the remote release index of a channel and normalizes the entries
into Release records. GitHub returns releases with assets; GitLab only
returns a file listing, from which versions and URLs are derived.
"""

import functools
import json
import logging
import re
from datetime import datetime
from typing import Any, List, Optional

import requests

from dxvk_manager import constants, utils
from dxvk_manager.cache import VersionCache
from dxvk_manager.config import Config
from dxvk_manager.models import Channel, Release


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as returned by GitHub ("2024-01-01T10:00:00Z")."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def sort_releases(releases: List[Release]) -> List[Release]:
    """
    Sort releases by numeric version, highest first.

    "v2.10" > "v2.2" > "v2.1-1"; missing components count as zero.
    """
    return sorted(
        releases,
        key=functools.cmp_to_key(lambda a, b: utils.compare_versions(a.version, b.version)),
        reverse=True,
    )


class ReleaseCatalog:
    """
    Client for the channel release indexes.

    Any network or parse error yields an empty list; an empty catalog means
    "unknown, try again", not "no releases".
    """

    def __init__(self, config: Config, cache: VersionCache,
                 session: Optional[requests.Session] = None):
        """
        Initialize the catalog.

        Args:
            config: Configuration with timeouts and user agent
            cache: Version cache used to flag downloaded releases
            session: Optional requests session (created if not provided)
        """
        self.config = config
        self.cache = cache
        self.logger = logging.getLogger("dxvk_manager.catalog")

        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    def list_releases(self, channel: Channel) -> List[Release]:
        """
        Fetch and normalize the releases of a channel.

        Args:
            channel: Channel to query

        Returns:
            List of Release objects, empty on any failure
        """
        self.logger.info(f"Fetching {channel.display_name} releases from {channel.index_url}")
        try:
            data = utils.get_json(self.session, channel.index_url, timeout=self.config.timeout)
            if channel.index_format == "releases":
                releases = self._parse_github_releases(channel, data)
            elif channel.index_format == "tree":
                releases = sort_releases(self._parse_tree(channel, data))
            else:
                raise ValueError(f"Unsupported index format: {channel.index_format}")
        except (requests.RequestException, json.JSONDecodeError, ValueError, KeyError,
                TypeError, AttributeError) as e:
            self.logger.error(f"Error fetching {channel.display_name} releases: {e}")
            return []

        self.logger.info(f"Found {len(releases)} {channel.display_name} releases")
        return releases

    def _parse_github_releases(self, channel: Channel, data: Any) -> List[Release]:
        if not isinstance(data, list):
            raise ValueError("Invalid response format from GitHub API")

        releases = []
        for entry in data:
            tag = entry["tag_name"]
            # The main asset is dxvk-<version>.tar.gz, not the dxvk-native build
            marker = f"dxvk-{re.sub(r'^v', '', tag)}"
            asset = next(
                (a for a in entry.get("assets", [])
                 if marker in a.get("browser_download_url", "")
                 and constants.NATIVE_MARKER not in a.get("browser_download_url", "")),
                None,
            )
            if asset is None:
                self.logger.debug(f"No usable asset for {tag}")

            releases.append(Release(
                version=tag,
                name=entry.get("name") or tag,
                published_at=parse_date(entry.get("published_at")),
                download_url=asset["browser_download_url"] if asset else None,
                is_downloaded=self.cache.is_present(channel, tag),
            ))
        return releases

    def _parse_tree(self, channel: Channel, data: Any) -> List[Release]:
        if not isinstance(data, list):
            raise ValueError("Invalid response format from GitLab API")

        releases = []
        for entry in data:
            file_name = entry["name"]
            if not file_name.endswith(constants.ARCHIVE_EXTENSION) or constants.NATIVE_MARKER in file_name:
                continue

            match = re.search(channel.archive_pattern, file_name) if channel.archive_pattern else None
            if match:
                version = f"v{match.group(1)}"
            else:
                version = file_name[: -len(constants.ARCHIVE_EXTENSION)]

            releases.append(Release(
                version=version,
                name=f"{channel.display_name} {version}",
                # The tree listing carries no publication date
                published_at=None,
                download_url=channel.download_url_template.format(file_name=file_name),
                file_name=file_name,
                is_downloaded=self.cache.is_present(channel, version),
            ))
        return releases
