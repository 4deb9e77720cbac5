"""Tests for the archive fetcher."""

import threading
from unittest.mock import Mock

import pytest
import requests
from conftest import FakeHTTPGetter, FakeResponse, make_chart_archive

from chart_tracker.archive_fetcher import ArchiveFetcher, resolve_content_url
from chart_tracker.errors import ArchiveParseError, UnexpectedStatusError
from chart_tracker.rate_limiter import UnlimitedLimiter


class TestResolveContentUrl:
    def test_relative_url_joined_to_repository_path(self):
        assert (
            resolve_content_url("https://example.com/repo", "charts/foo-1.0.0.tgz")
            == "https://example.com/repo/charts/foo-1.0.0.tgz"
        )

    def test_repository_url_with_trailing_slash(self):
        assert (
            resolve_content_url("https://example.com/repo/", "foo-1.0.0.tgz")
            == "https://example.com/repo/foo-1.0.0.tgz"
        )

    def test_repository_url_without_path(self):
        assert (
            resolve_content_url("https://example.com", "foo-1.0.0.tgz")
            == "https://example.com/foo-1.0.0.tgz"
        )

    def test_leading_slash_is_still_joined(self):
        assert (
            resolve_content_url("https://example.com/repo", "/foo-1.0.0.tgz")
            == "https://example.com/repo/foo-1.0.0.tgz"
        )

    def test_absolute_url_used_verbatim(self):
        url = "https://github.com/org/charts/releases/download/foo-1.0.0/foo-1.0.0.tgz"
        assert resolve_content_url("https://example.com/repo", url) == url

    def test_scheme_relative_url_keeps_its_host(self):
        assert (
            resolve_content_url("https://example.com/repo", "//cdn.example.org/foo-1.0.0.tgz")
            == "https://cdn.example.org/foo-1.0.0.tgz"
        )

    def test_invalid_repository_url(self):
        with pytest.raises(ValueError, match="invalid repository url"):
            resolve_content_url("not a url", "foo-1.0.0.tgz")


class TestArchiveFetcher:
    def test_load_archive_success(self):
        url = "https://example.com/repo/foo-1.0.0.tgz"
        response = FakeResponse(200, make_chart_archive())
        fetcher = ArchiveFetcher(FakeHTTPGetter({url: response}), UnlimitedLimiter())

        archive = fetcher.load_archive(url)

        assert archive.metadata.name == "foo"
        assert response.closed

    def test_load_archive_unexpected_status(self):
        url = "https://example.com/repo/foo-1.0.0.tgz"
        fetcher = ArchiveFetcher(
            FakeHTTPGetter({url: FakeResponse(500)}), UnlimitedLimiter()
        )

        with pytest.raises(UnexpectedStatusError, match="500") as exc_info:
            fetcher.load_archive(url)
        assert exc_info.value.status_code == 500

    def test_load_archive_parse_error(self):
        url = "https://example.com/repo/foo-1.0.0.tgz"
        fetcher = ArchiveFetcher(
            FakeHTTPGetter({url: FakeResponse(200, b"garbage")}), UnlimitedLimiter()
        )

        with pytest.raises(ArchiveParseError):
            fetcher.load_archive(url)

    def test_load_archive_transport_error(self):
        url = "https://example.com/repo/foo-1.0.0.tgz"
        fetcher = ArchiveFetcher(
            FakeHTTPGetter({url: requests.ConnectionError("connection refused")}),
            UnlimitedLimiter(),
        )

        with pytest.raises(requests.ConnectionError):
            fetcher.load_archive(url)

    def test_rate_limited_host_acquires_token(self):
        url = "https://github.com/org/repo/releases/download/foo.tgz"
        limiter = Mock()
        cancel = threading.Event()
        fetcher = ArchiveFetcher(
            FakeHTTPGetter({url: FakeResponse(200, make_chart_archive())}),
            limiter,
            cancel=cancel,
        )

        fetcher.load_archive(url)

        limiter.acquire.assert_called_once_with(cancel)

    def test_other_hosts_are_not_rate_limited(self):
        url = "https://example.com/repo/foo-1.0.0.tgz"
        limiter = Mock()
        fetcher = ArchiveFetcher(
            FakeHTTPGetter({url: FakeResponse(200, make_chart_archive())}), limiter
        )

        fetcher.load_archive(url)

        limiter.acquire.assert_not_called()

    def test_cancelled_token_wait_still_fetches(self):
        url = "https://github.com/org/repo/foo.tgz"
        limiter = Mock()
        limiter.acquire.return_value = False
        getter = FakeHTTPGetter({url: FakeResponse(200, make_chart_archive())})
        fetcher = ArchiveFetcher(getter, limiter)

        fetcher.load_archive(url)

        assert getter.requested == [url]


class TestHasProvenance:
    def test_provenance_present(self):
        url = "https://example.com/repo/foo-1.0.0.tgz"
        getter = FakeHTTPGetter({url + ".prov": FakeResponse(200, b"-----BEGIN PGP")})
        fetcher = ArchiveFetcher(getter, UnlimitedLimiter())

        assert fetcher.has_provenance(url) is True
        assert getter.requested == [url + ".prov"]

    def test_provenance_missing(self):
        fetcher = ArchiveFetcher(FakeHTTPGetter(), UnlimitedLimiter())

        assert fetcher.has_provenance("https://example.com/repo/foo-1.0.0.tgz") is False

    def test_provenance_transport_error_propagates(self):
        url = "https://example.com/repo/foo-1.0.0.tgz"
        fetcher = ArchiveFetcher(
            FakeHTTPGetter({url + ".prov": requests.Timeout("timed out")}),
            UnlimitedLimiter(),
        )

        with pytest.raises(requests.Timeout):
            fetcher.has_provenance(url)
