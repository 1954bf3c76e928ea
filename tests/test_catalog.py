from datetime import datetime, timezone

import pytest
import requests

from dxvk_manager.catalog import ReleaseCatalog, sort_releases
from dxvk_manager.channels import DXVK, GPLASYNC
from dxvk_manager.models import Release


GITHUB_RELEASES = [
    {
        "tag_name": "v2.6",
        "name": "Version 2.6",
        "published_at": "2025-03-01T12:00:00Z",
        "assets": [
            {"browser_download_url": "https://github.com/doitsujin/dxvk/releases/download/v2.6/dxvk-native-2.6-steamrt-sniper.tar.gz"},
            {"browser_download_url": "https://github.com/doitsujin/dxvk/releases/download/v2.6/dxvk-2.6.tar.gz"},
        ],
    },
    {
        "tag_name": "v2.5",
        "name": "Version 2.5",
        "published_at": "2024-11-10T08:30:00Z",
        "assets": [
            {"browser_download_url": "https://github.com/doitsujin/dxvk/releases/download/v2.5/dxvk-native-2.5.tar.gz"},
        ],
    },
]

GITLAB_TREE = [
    {"name": "dxvk-gplasync-v2.2.tar.gz", "type": "blob"},
    {"name": "dxvk-gplasync-2.10.tar.gz", "type": "blob"},
    {"name": "dxvk-gplasync-2.1-1.tar.gz", "type": "blob"},
    {"name": "dxvk-gplasync-2.2.tar.gz", "type": "blob"},
    {"name": "dxvk-gplasync-native-2.10.tar.gz", "type": "blob"},
    {"name": "README.md", "type": "blob"},
]


@pytest.fixture
def session(mocker):
    session = mocker.Mock()
    session.headers = {}
    return session


def _respond(mocker, session, data):
    response = mocker.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = data
    session.get.return_value = response
    return response


class TestGithubCatalog:
    """Test the DXVK (GitHub releases) catalog"""

    def test_selects_main_asset(self, mocker, session, config, cache):
        _respond(mocker, session, GITHUB_RELEASES)
        catalog = ReleaseCatalog(config, cache, session=session)

        releases = catalog.list_releases(DXVK)

        assert [r.version for r in releases] == ["v2.6", "v2.5"]
        assert releases[0].download_url.endswith("/dxvk-2.6.tar.gz")
        assert releases[0].name == "Version 2.6"
        assert releases[0].published_at == datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def test_release_without_main_asset_has_no_url(self, mocker, session, config, cache):
        _respond(mocker, session, GITHUB_RELEASES)
        catalog = ReleaseCatalog(config, cache, session=session)

        releases = catalog.list_releases(DXVK)

        assert releases[1].download_url is None

    def test_is_downloaded_reflects_cache(self, mocker, session, config, cache):
        _respond(mocker, session, GITHUB_RELEASES)
        cache.version_dir(DXVK, "v2.5").mkdir(parents=True)
        catalog = ReleaseCatalog(config, cache, session=session)

        releases = catalog.list_releases(DXVK)

        assert [r.is_downloaded for r in releases] == [False, True]

    def test_sends_user_agent(self, mocker, session, config, cache):
        _respond(mocker, session, GITHUB_RELEASES)
        ReleaseCatalog(config, cache, session=session)
        assert session.headers["User-Agent"].startswith("dxvk-manager/")


class TestGitlabCatalog:
    """Test the DXVK-gplasync (GitLab tree) catalog"""

    def test_filters_and_sorts_numerically(self, mocker, session, config, cache):
        _respond(mocker, session, GITLAB_TREE)
        catalog = ReleaseCatalog(config, cache, session=session)

        releases = catalog.list_releases(GPLASYNC)
        versions = [r.version for r in releases]

        assert "v2.10" == versions[0]
        assert versions.index("v2.10") < versions.index("v2.2") < versions.index("v2.1-1")
        assert not any("native" in (r.file_name or "") for r in releases)
        assert len(releases) == 4

    def test_builds_download_url(self, mocker, session, config, cache):
        _respond(mocker, session, GITLAB_TREE)
        catalog = ReleaseCatalog(config, cache, session=session)

        release = catalog.list_releases(GPLASYNC)[0]

        assert release.download_url == (
            "https://gitlab.com/Ph42oN/dxvk-gplasync/-/raw/main/releases/dxvk-gplasync-2.10.tar.gz"
        )
        assert release.name == "DXVK-gplasync v2.10"
        assert release.published_at is None

    def test_unmatched_name_falls_back_to_stripped_extension(self, mocker, session, config, cache):
        _respond(mocker, session, [{"name": "dxvk-gplasync-v2.2.tar.gz"}])
        catalog = ReleaseCatalog(config, cache, session=session)

        releases = catalog.list_releases(GPLASYNC)

        assert releases[0].version == "dxvk-gplasync-v2.2"

    def test_is_downloaded_uses_sanitized_directory(self, mocker, session, config, cache):
        _respond(mocker, session, [{"name": "dxvk-gplasync-2.6-1.tar.gz"}])
        (cache.cache_dir(GPLASYNC) / "2.6-1").mkdir(parents=True)
        catalog = ReleaseCatalog(config, cache, session=session)

        releases = catalog.list_releases(GPLASYNC)

        assert releases[0].version == "v2.6-1"
        assert releases[0].is_downloaded is True


class TestCatalogFailures:
    """Any failure yields an empty catalog"""

    def test_network_error(self, session, config, cache):
        session.get.side_effect = requests.ConnectionError("offline")
        catalog = ReleaseCatalog(config, cache, session=session)
        assert catalog.list_releases(DXVK) == []

    def test_http_error(self, mocker, session, config, cache):
        response = _respond(mocker, session, None)
        response.raise_for_status.side_effect = requests.HTTPError("403 rate limited")
        catalog = ReleaseCatalog(config, cache, session=session)
        assert catalog.list_releases(GPLASYNC) == []

    def test_unexpected_shape(self, mocker, session, config, cache):
        _respond(mocker, session, {"message": "Not Found"})
        catalog = ReleaseCatalog(config, cache, session=session)
        assert catalog.list_releases(DXVK) == []

    def test_malformed_entry(self, mocker, session, config, cache):
        _respond(mocker, session, [{"name": "no tag here"}])
        catalog = ReleaseCatalog(config, cache, session=session)
        assert catalog.list_releases(DXVK) == []


def test_sort_releases_numeric_not_lexical():
    releases = [Release(version=v, name=v) for v in ["v2.2", "v2.1-1", "v2.10"]]
    assert [r.version for r in sort_releases(releases)] == ["v2.10", "v2.2", "v2.1-1"]


def test_sort_releases_pads_missing_components():
    releases = [Release(version=v, name=v) for v in ["v2.1", "v2.1-1", "v2"]]
    assert [r.version for r in sort_releases(releases)] == ["v2.1-1", "v2.1", "v2"]


def test_release_to_dict():
    release = Release(version="v2.6", name="Version 2.6",
                      published_at=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
                      download_url="https://example.com/dxvk-2.6.tar.gz", is_downloaded=True)
    assert release.to_dict() == {
        "version": "v2.6",
        "name": "Version 2.6",
        "date": "2025-03-01T12:00:00+00:00",
        "downloadUrl": "https://example.com/dxvk-2.6.tar.gz",
        "isDownloaded": True,
    }
