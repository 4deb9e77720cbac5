"""HTTP access used by the tracker workers."""

import logging
from typing import Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from chart_tracker.config import DEFAULT_HTTP_TIMEOUT

logger = logging.getLogger(__name__)


class HTTPGetter(Protocol):
    def get(self, url: str) -> requests.Response:
        """Issue a GET request for ``url``."""


class TimeoutHTTPGetter:
    """GET-only client with a fixed per request deadline and no retries."""

    def __init__(
        self,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: requests.Session | None = None,
    ):
        """Initialize the getter.

        Args:
            timeout: Request timeout in seconds
            session: Session to use, a new one is created when omitted
        """
        self.timeout = timeout
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session that never retries.

        Retrying failed fetches is left to the next scan cycle.
        """
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=Retry(total=0, raise_on_status=False))
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def get(self, url: str) -> requests.Response:
        """Issue a GET request for ``url``.

        Raises:
            requests.RequestException: On transport failures and timeouts
        """
        logger.debug(f"GET {url}")
        return self.session.get(url, timeout=self.timeout)

    def close(self) -> None:
        self.session.close()
