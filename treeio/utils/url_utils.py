"""URL validation, path encoding and download file name helpers."""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import quote_plus, unquote_plus, urlsplit, urlunsplit

import requests

# Characters a URI may not contain unescaped.
_INVALID_URI_CHARS = re.compile(r"[\x00-\x20\x7f\"<>\\^`{|}]")
_BAD_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_EXTENDED_VALUE = re.compile(r"^[A-Za-z0-9!#$&+.^_`|~-]+'[^']*'(.*)$")


def is_valid_url(url: Optional[str]) -> bool:
    """Whether ``url`` is an absolute URL that is also a syntactically valid URI."""

    if not url:
        return False
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError for a malformed port
    except ValueError:
        return False
    if not parts.scheme or not parts.netloc:
        return False
    return not _INVALID_URI_CHARS.search(url) and not _BAD_PERCENT_ESCAPE.search(url)


def url_of(value: str) -> Optional[str]:
    """Returns ``value`` if it is a valid URL, otherwise ``None``."""

    if value is None:
        raise ValueError("url should not be None")
    return value if is_valid_url(value) else None


def encode_url_path(url: str, encoding: str = "utf-8", keep_encoded_plus: bool = False) -> str:
    """Form-encodes the last segment of ``url``'s path.

    Query and fragment are dropped. With ``keep_encoded_plus`` a literal ``+``
    in the file name stays ``+`` instead of becoming ``%2B``.
    """

    if url is None or encoding is None:
        raise ValueError("url and encoding should not be None")
    parts = urlsplit(url)
    directory, _, name = parts.path.rpartition("/")
    encoded_name = quote_plus(name, safe="", encoding=encoding)
    if keep_encoded_plus:
        encoded_name = encoded_name.replace("%2B", "+")
    path = f"{directory}/{encoded_name}" if directory or parts.path.startswith("/") else encoded_name
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def content_disposition_directive(disposition: str, directive: str) -> Optional[str]:
    """Returns the value of ``directive`` in a Content-Disposition header.

    >>> content_disposition_directive('attachment; filename="a b.txt"', "filename")
    'a b.txt'
    """

    if disposition is None or directive is None:
        raise ValueError("disposition and directive should not be None")
    if not directive:
        raise ValueError("directive should not be empty")
    match = re.fullmatch(
        r".*; " + re.escape(directive) + r"=\"?([^\"]+)\"?.*",
        disposition,
        flags=re.IGNORECASE | re.DOTALL,
    )
    return match.group(1) if match else None


def file_name_from_url(url: str, encoding: str = "utf-8") -> Optional[str]:
    """Decodes the last segment of ``url``'s path, or ``None`` if there is none."""

    if url is None or encoding is None:
        raise ValueError("url and encoding should not be None")
    # Some servers put tabs in their file names; urlsplit would drop them.
    path = urlsplit(url.replace("\t", " ")).path
    if not path:
        return None
    name = PurePosixPath(path).name
    if not name:
        return None
    return _decode(name, encoding)


def file_name_from_response(response: requests.Response, encoding: str = "utf-8") -> Optional[str]:
    """Picks a download file name: ``filename*``, then ``filename``, then the URL."""

    if response is None or encoding is None:
        raise ValueError("response and encoding should not be None")
    disposition = response.headers.get("Content-Disposition")
    if disposition is None:
        return file_name_from_url(response.url, encoding)

    name = content_disposition_directive(disposition, "filename*")
    if name is not None:
        extended = _EXTENDED_VALUE.match(name)
        if extended:
            name = extended.group(1)
    else:
        name = content_disposition_directive(disposition, "filename")

    if name is not None:
        return _decode(name, encoding)
    return file_name_from_url(response.url, encoding)


def mac_address(separator: str = ":") -> Optional[str]:
    """Hardware address of this host, or ``None`` if none could be found."""

    if separator is None:
        raise ValueError("separator should not be None")
    node = uuid.getnode()
    # getnode falls back to a random number with the multicast bit set
    if (node >> 40) & 1:
        logging.debug("No hardware address found for this host")
        return None
    return separator.join(f"{(node >> shift) & 0xFF:02X}" for shift in range(40, -8, -8))


def _decode(value: str, encoding: str) -> str:
    try:
        return unquote_plus(value, encoding=encoding, errors="strict")
    except (LookupError, UnicodeDecodeError) as exc:
        logging.warning("Could not decode %r as %s: %s", value, encoding, exc)
        return value
