"""Tests for the OData feed client and its query URLs."""

import logging
from unittest.mock import patch

import pytest

from conftest import feed_xml
from nugetfu.exceptions import MalformedVersionError, NetworkError, UnsupportedApiError
from nugetfu.package import PackageIdentifier
from nugetfu.registry.client import (
    FeedClient,
    build_find_packages_by_id_url,
    build_get_updates_url,
    build_search_url,
    format_version_constraints,
)

ENDPOINT = "https://feed.example/api/v2/"


class TestUrlBuilders:
    """Test query URL construction."""

    def test_find_packages_by_id(self):
        assert build_find_packages_by_id_url(ENDPOINT, "Foo") == (
            "https://feed.example/api/v2/FindPackagesById()?$orderby=Version asc&id='Foo'"
        )

    def test_search_latest_only(self):
        url = build_search_url(ENDPOINT, "newtonsoft", take=30)
        assert url == (
            "https://feed.example/api/v2/Search()?$filter=IsLatestVersion&$orderby=DownloadCount desc"
            "&$skip=0&$top=30&searchTerm='newtonsoft'&targetFramework=''&includePrerelease=false"
        )

    def test_search_prerelease_uses_absolute_latest(self):
        url = build_search_url(ENDPOINT, "x", include_prerelease=True)
        assert "$filter=IsAbsoluteLatestVersion" in url
        assert url.endswith("includePrerelease=true")

    def test_search_all_versions_has_no_filter(self):
        url = build_search_url(ENDPOINT, "x", include_all_versions=True, skip=15)
        assert "$filter" not in url
        assert "$skip=15" in url

    def test_get_updates(self):
        """Ids and versions are pipe-joined in matching order."""
        url = build_get_updates_url(
            ENDPOINT,
            [PackageIdentifier("A", "1.0.0"), PackageIdentifier("B", "2.0.0")],
            include_prerelease=True,
            target_frameworks="net45",
            version_constraints=["[1.0,2.0)", ""],
        )
        assert url == (
            "https://feed.example/api/v2/GetUpdates()?packageIds='A|B'&versions='1.0.0|2.0.0'"
            "&includePrerelease=true&includeAllVersions=false&targetFrameworks='net45'"
            "&versionConstraints='[1.0,2.0)|'"
        )

    def test_version_constraints_formatting(self):
        assert format_version_constraints(None) == ""
        assert format_version_constraints("[1.0,)") == "[1.0,)"
        assert format_version_constraints(["a", "b"]) == "a|b"


class TestFeedClient:
    """Test FeedClient queries with the HTTP layer mocked."""

    @patch('nugetfu.registry.client.fetch_text')
    def test_find_packages_by_id_filters_locally(self, mock_fetch):
        """Versions come back ascending and are filtered against the range."""
        mock_fetch.return_value = feed_xml([("Foo", "10.0.0"), ("Foo", "9.0.0"), ("Foo", "1.0.0")])
        client = FeedClient(ENDPOINT, username="user", password="pw", context="test")

        found = client.find_packages_by_id(PackageIdentifier("Foo", "[2.0,)"))

        assert [p.version for p in found] == ["9.0.0", "10.0.0"]
        args, kwargs = mock_fetch.call_args
        assert args[0] == build_find_packages_by_id_url(ENDPOINT, "Foo")
        assert kwargs["username"] == "user"
        assert kwargs["password"] == "pw"

    @patch('nugetfu.registry.client.fetch_text')
    def test_find_packages_by_id_closest_newer(self, mock_fetch):
        mock_fetch.return_value = feed_xml([("Foo", "1.0.0"), ("Foo", "2.0.0"), ("Foo", "3.0.0")])
        found = FeedClient(ENDPOINT).find_packages_by_id(PackageIdentifier("Foo", "1.5.0"))
        assert [p.version for p in found] == ["2.0.0"]

    @patch('nugetfu.registry.client.fetch_text')
    def test_find_follows_next_links(self, mock_fetch):
        mock_fetch.side_effect = [
            feed_xml([("Foo", "1.0.0")], next_link=ENDPOINT + "page2"),
            feed_xml([("Foo", "2.0.0")]),
        ]
        found = FeedClient(ENDPOINT).find_packages_by_id(PackageIdentifier("Foo", "[0.0,)"))
        assert [p.version for p in found] == ["1.0.0", "2.0.0"]
        assert mock_fetch.call_args_list[1][0][0] == ENDPOINT + "page2"

    @patch('nugetfu.registry.client.fetch_text')
    def test_failed_later_page_keeps_earlier_pages(self, mock_fetch, caplog):
        """A failing next page is logged; versions from earlier pages still resolve."""
        mock_fetch.side_effect = [
            feed_xml([("Foo", "1.0.0"), ("Foo", "2.0.0")], next_link=ENDPOINT + "page2"),
            NetworkError("gateway timeout", status=504),
        ]
        with caplog.at_level(logging.ERROR):
            found = FeedClient(ENDPOINT).find_packages_by_id(PackageIdentifier("Foo", "[0.0,)"))

        assert [p.version for p in found] == ["1.0.0", "2.0.0"]
        assert mock_fetch.call_count == 2
        assert "gateway timeout" in caplog.text

    @patch('nugetfu.registry.client.fetch_text')
    def test_failed_first_page_raises(self, mock_fetch):
        mock_fetch.side_effect = NetworkError("gateway timeout", status=504)
        with pytest.raises(NetworkError):
            FeedClient(ENDPOINT).get_packages_from_url(ENDPOINT + "Packages()", follow_next=True)

    @patch('nugetfu.registry.client.fetch_text')
    def test_malformed_range_raises_before_request(self, mock_fetch):
        with pytest.raises(MalformedVersionError):
            FeedClient(ENDPOINT).find_packages_by_id(PackageIdentifier("Foo", "(,1.0]"))
        mock_fetch.assert_not_called()

    @patch('nugetfu.registry.client.fetch_text')
    def test_network_error_yields_empty(self, mock_fetch, caplog):
        mock_fetch.side_effect = NetworkError("boom", status=500)
        with caplog.at_level(logging.ERROR):
            assert FeedClient(ENDPOINT).find_packages_by_id(PackageIdentifier("Foo", "1.0")) == []
            assert FeedClient(ENDPOINT).search("foo") == []
        assert "Unable to retrieve package list" in caplog.text

    @patch('nugetfu.registry.client.fetch_text')
    def test_invalid_feed_is_network_error(self, mock_fetch):
        mock_fetch.return_value = "<html>not a feed"
        with pytest.raises(NetworkError):
            FeedClient(ENDPOINT).get_packages_from_url(ENDPOINT + "Packages()")

    @patch('nugetfu.registry.client.fetch_text')
    def test_search_does_not_follow_next(self, mock_fetch):
        mock_fetch.return_value = feed_xml([("Foo", "1.0.0")], next_link=ENDPOINT + "page2")
        found = FeedClient(ENDPOINT).search("foo")
        assert [p.id for p in found] == ["Foo"]
        assert mock_fetch.call_count == 1


class TestFeedClientGetUpdates:
    """Test batched GetUpdates queries."""

    @staticmethod
    def _installed(count):
        return [PackageIdentifier(f"Pkg{i}", "1.0.0") for i in range(count)]

    @patch('nugetfu.registry.client.fetch_text')
    def test_batches_of_ten(self, mock_fetch):
        """25 packages are sent as groups of 10, 10 and 5."""
        mock_fetch.return_value = feed_xml([])

        FeedClient(ENDPOINT).get_updates(self._installed(25))

        urls = [c[0][0] for c in mock_fetch.call_args_list]
        assert len(urls) == 3
        assert urls[0].count("Pkg") == 10
        assert urls[2].count("Pkg") == 5
        assert "Pkg20|Pkg21|Pkg22|Pkg23|Pkg24" in urls[2]

    @patch('nugetfu.registry.client.fetch_text')
    def test_failing_group_skipped(self, mock_fetch, caplog):
        """A non-404 failure drops only the affected group."""
        mock_fetch.side_effect = [
            feed_xml([("Pkg1", "2.0.0")]),
            NetworkError("server error", status=500),
        ]
        with caplog.at_level(logging.ERROR):
            updates = FeedClient(ENDPOINT).get_updates(self._installed(15))
        assert [(p.id, p.version) for p in updates] == [("Pkg1", "2.0.0")]
        assert "server error" in caplog.text

    @patch('nugetfu.registry.client.fetch_text')
    def test_not_found_raises_unsupported(self, mock_fetch):
        mock_fetch.side_effect = NetworkError("not found", status=404)
        with pytest.raises(UnsupportedApiError) as excinfo:
            FeedClient(ENDPOINT).get_updates(self._installed(3))
        assert excinfo.value.status == 404

    @patch('nugetfu.registry.client.fetch_text')
    def test_no_installed_packages(self, mock_fetch):
        assert FeedClient(ENDPOINT).get_updates([]) == []
        mock_fetch.assert_not_called()
