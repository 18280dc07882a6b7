"""HTTP helpers: configured connections, downloads and redirect resolution."""

from __future__ import annotations

import logging
from http.cookiejar import DefaultCookiePolicy
from typing import Any, BinaryIO, Dict, Optional, Union
from urllib.parse import urljoin, urlsplit

import requests

from ..fs.base import as_path, filesystem_for
from ..models.config import RequestConfig
from ..models.options import CopyOption, replace_existing
from .url_utils import encode_url_path, is_valid_url

CHUNK_SIZE = 1 << 14
DEFAULT_MAX_HOPS = 100

Destination = Union[str, Any, BinaryIO]


def raise_for_status(response: requests.Response, encoding: str) -> None:
    """Raises for an error status, folding the error body into the message.

    If the body cannot be read the original :class:`requests.HTTPError` is
    raised unchanged.
    """

    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        try:
            body = response.content.decode(encoding, errors="replace")
        except requests.RequestException as body_exc:
            logging.debug("Could not read error body from %s: %s", response.url, body_exc)
            raise exc from None
        if not body:
            raise
        raise requests.HTTPError(f"Failed to read from {response.url}: {body}", response=response) from exc


def write_body(response: requests.Response, destination: Destination, *options: CopyOption) -> None:
    """Streams ``response``'s body to a writable binary sink or a path."""

    if hasattr(destination, "write"):
        _copy_chunks(response, destination)
        return

    path = as_path(destination)
    filesystem = filesystem_for(path)
    if filesystem.exists(path) and not replace_existing(options):
        raise FileExistsError(f"Target already exists: {path}")
    with filesystem.open_write(path) as file_obj:
        _copy_chunks(response, file_obj)


def _copy_chunks(response: requests.Response, sink: BinaryIO) -> None:
    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
        if chunk:
            sink.write(chunk)


class HttpFetcher:
    """Opens connections with a shared :class:`RequestConfig`.

    Redirects are followed by ``requests`` except in
    :meth:`resolve_redirects`, which walks them one hop at a time. The session
    keeps no cookies of its own.
    """

    def __init__(self, config: Optional[RequestConfig] = None) -> None:
        self.config = config or RequestConfig()
        self._session = requests.Session()
        self._session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    @property
    def user_agent(self) -> Optional[str]:
        return self.config.get_header("User-Agent")

    @user_agent.setter
    def user_agent(self, value: Optional[str]) -> None:
        self.config.set_header("User-Agent", value)

    @property
    def accept_language(self) -> Optional[str]:
        return self.config.get_header("Accept-Language")

    @accept_language.setter
    def accept_language(self, value: Optional[str]) -> None:
        self.config.set_header("Accept-Language", value)

    @property
    def referer(self) -> Optional[str]:
        return self.config.get_header("Referer")

    @referer.setter
    def referer(self, value: Optional[str]) -> None:
        self.config.set_header("Referer", value)

    @property
    def upgrade_insecure_requests(self) -> bool:
        return self.config.get_header("Upgrade-Insecure-Requests") == "1"

    @upgrade_insecure_requests.setter
    def upgrade_insecure_requests(self, value: bool) -> None:
        self.config.set_header("Upgrade-Insecure-Requests", "1" if value else "0")

    @property
    def headers(self) -> Dict[str, str]:
        return self.config.headers

    def get_header(self, key: str) -> Optional[str]:
        return self.config.get_header(key)

    def set_header(self, key: str, value: Optional[str]) -> Optional[str]:
        return self.config.set_header(key, value)

    @property
    def connect_timeout(self) -> int:
        return self.config.connect_timeout

    @connect_timeout.setter
    def connect_timeout(self, milliseconds: int) -> None:
        self.config.connect_timeout = milliseconds

    @property
    def read_timeout(self) -> int:
        return self.config.read_timeout

    @read_timeout.setter
    def read_timeout(self, milliseconds: int) -> None:
        self.config.read_timeout = milliseconds

    @property
    def encoding(self) -> str:
        return self.config.encoding

    @encoding.setter
    def encoding(self, value: str) -> None:
        self.config.encoding = value

    def connect(
        self,
        url: str,
        follow_redirects: bool = True,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        """Sends a streamed GET with the configured headers and timeouts.

        The caller owns the returned response and must close it.
        """

        if url is None:
            raise ValueError("url should not be None")
        headers = dict(self.config.headers)
        if extra_headers:
            headers.update(extra_headers)
        try:
            return self._session.get(
                url,
                headers=headers,
                timeout=self.config.timeout,
                allow_redirects=follow_redirects,
                stream=True,
            )
        except requests.RequestException as exc:
            logging.error("HTTP GET to %s failed: %s", url, exc)
            raise

    def read(self, url: str) -> str:
        """Fetches ``url`` and decodes the body with the configured encoding."""

        with self.connect(url) as response:
            raise_for_status(response, self.config.encoding)
            return response.content.decode(self.config.encoding, errors="replace")

    def download(self, url: str, destination: Destination, *options: CopyOption) -> None:
        """Streams ``url`` to a path (local or archive entry) or a binary sink."""

        if destination is None:
            raise ValueError("destination should not be None")
        with self.connect(url) as response:
            raise_for_status(response, self.config.encoding)
            write_body(response, destination, *options)
        logging.info("Downloaded %s", url)

    def get_download_info(self, url: str):
        """Opens ``url`` and wraps the response for inspection before downloading."""

        from ..downloader.download_info import DownloadDescriptor

        return DownloadDescriptor(self.connect(url), self.config.encoding)

    def resolve_redirects(
        self,
        url: str,
        max_hops: int = DEFAULT_MAX_HOPS,
        keep_encoded_plus: bool = False,
    ) -> str:
        """Follows ``Location`` headers by hand and returns the final URL.

        Any ``Set-Cookie`` received on one hop is sent back as a ``Set-Cookie``
        request header on the next. Resolution stops when there is no
        ``Location``, when it repeats the previous one, or after ``max_hops``.
        An unusable ``Location`` ends resolution at the URL reached so far.
        """

        if url is None:
            raise ValueError("url should not be None")
        if max_hops <= 0:
            raise ValueError("max_hops should be positive")

        previous_location: Optional[str] = None
        cookies: Optional[str] = None

        for _ in range(max_hops):
            extra_headers = {"Set-Cookie": cookies} if cookies is not None else None
            with self.connect(url, follow_redirects=False, extra_headers=extra_headers) as response:
                cookies = response.headers.get("Set-Cookie")
                location = response.headers.get("Location")

            if keep_encoded_plus and location is not None:
                location = location.replace("%2B", "+")
            if location is None or location == previous_location:
                break

            previous_location = location
            previous_url = url
            url = self._url_from_location(previous_url, location, keep_encoded_plus)
            if url is None:
                return previous_url
            logging.debug("Redirect %s -> %s", previous_url, url)

        return url

    def _url_from_location(self, current: str, location: str, keep_encoded_plus: bool) -> Optional[str]:
        candidate: Optional[str]
        try:
            parts = urlsplit(location)
            candidate = location if parts.scheme and parts.netloc else urljoin(current, location)
        except ValueError:
            candidate = None

        if is_valid_url(candidate):
            return candidate

        # Some servers send unencoded paths, so retry with the current URL's
        # file name encoded.
        encoded = encode_url_path(current, self.config.encoding, keep_encoded_plus)
        if is_valid_url(encoded):
            return encoded
        logging.warning("Invalid location %s for URL: %s", location, current)
        return None

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HttpFetcher":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
