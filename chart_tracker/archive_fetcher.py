"""Fetcher for remote chart archives and their provenance files."""

import logging
import posixpath
import threading
from collections.abc import Iterable
from urllib.parse import urlparse, urlunparse

from chart_tracker.chart_loader import load_archive
from chart_tracker.config import DEFAULT_RATE_LIMITED_HOSTS
from chart_tracker.errors import UnexpectedStatusError
from chart_tracker.http_client import HTTPGetter
from chart_tracker.models import ParsedArchive
from chart_tracker.rate_limiter import RateLimiter, is_rate_limited

logger = logging.getLogger(__name__)


def resolve_content_url(base_url: str, ref: str) -> str:
    """Resolve a chart content reference against the repository url.

    Absolute references are returned verbatim. Scheme relative ones
    (``//host/path``) keep their host and take the scheme of ``base_url``.
    Relative ones are joined onto the path of ``base_url``.

    Args:
        base_url: Repository url, e.g. ``https://example.com/repo``
        ref: Content url as listed in the repository index

    Returns:
        Absolute url to fetch the archive from

    Raises:
        ValueError: If the reference is relative and the base url is invalid
    """
    parsed_ref = urlparse(ref)
    if parsed_ref.scheme and parsed_ref.netloc:
        return ref

    base = urlparse(base_url)
    if not base.scheme or not base.netloc:
        raise ValueError(f"invalid repository url: {base_url!r}")

    if parsed_ref.netloc:
        return urlunparse(parsed_ref._replace(scheme=base.scheme))

    path = posixpath.normpath(posixpath.join(base.path or "/", parsed_ref.path.lstrip("/")))
    return urlunparse(base._replace(path=path, query=parsed_ref.query, fragment=""))


class ArchiveFetcher:
    """Downloads chart archives, throttling requests to busy hosts."""

    def __init__(
        self,
        http_getter: HTTPGetter,
        rate_limiter: RateLimiter,
        cancel: threading.Event | None = None,
        rate_limited_hosts: Iterable[str] = DEFAULT_RATE_LIMITED_HOSTS,
    ):
        """Initialize the fetcher.

        Args:
            http_getter: Client used for every request
            rate_limiter: Limiter shared by all workers of the process
            cancel: Shutdown signal, releases callers waiting on the limiter
            rate_limited_hosts: Hosts whose requests go through the limiter
        """
        self.http_getter = http_getter
        self.rate_limiter = rate_limiter
        self.cancel = cancel
        self.rate_limited_hosts = tuple(rate_limited_hosts)

    def load_archive(self, url: str) -> ParsedArchive:
        """Download and parse the chart archive located at ``url``.

        Raises:
            requests.RequestException: If the request fails
            UnexpectedStatusError: If the response status is not 200
            ArchiveParseError: If the archive cannot be parsed
        """
        if is_rate_limited(url, self.rate_limited_hosts):
            # Advisory only: a cancelled wait lets the request through
            self.rate_limiter.acquire(self.cancel)

        response = self.http_getter.get(url)
        try:
            if response.status_code != 200:
                raise UnexpectedStatusError(url, response.status_code)
            return load_archive(response.content)
        finally:
            response.close()

    def has_provenance(self, url: str) -> bool:
        """Check if a provenance file is published next to the chart archive.

        Raises:
            requests.RequestException: If the request fails
        """
        response = self.http_getter.get(url + ".prov")
        try:
            return response.status_code == 200
        finally:
            response.close()
