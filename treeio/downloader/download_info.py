"""Deferred inspection of an HTTP download before its body is saved."""

from __future__ import annotations

import logging
from typing import Optional

import requests

from ..fs.base import as_path, filesystem_for
from ..models.config import DEFAULT_ENCODING
from ..models.options import CopyOption
from ..utils import sizes
from ..utils.file_utils import sanitize_filename
from ..utils.http_client import Destination, raise_for_status, write_body
from ..utils.url_utils import content_disposition_directive, file_name_from_response


class DownloadDescriptor:
    """Wraps an open response; every property is read from its headers on access.

    ``encoding`` decodes percent-encoded file names and error bodies.
    """

    def __init__(self, response: requests.Response, encoding: str = DEFAULT_ENCODING) -> None:
        if response is None:
            raise ValueError("response should not be None")
        self.response = response
        self.encoding = encoding

    @property
    def url(self) -> str:
        return self.response.url

    @property
    def content_type(self) -> Optional[str]:
        return self.response.headers.get("Content-Type")

    @property
    def content_disposition(self) -> Optional[str]:
        return self.response.headers.get("Content-Disposition")

    def directive(self, name: str) -> Optional[str]:
        """Looks up a Content-Disposition directive such as ``filename``."""

        if name is None:
            raise ValueError("name should not be None")
        disposition = self.content_disposition
        if disposition is None:
            return None
        return content_disposition_directive(disposition, name)

    @property
    def size(self) -> int:
        """The Content-Length, or ``-1`` if unknown."""

        try:
            return int(self.response.headers.get("Content-Length", -1))
        except ValueError:
            return -1

    @property
    def decimal_size(self) -> str:
        return sizes.decimal(self.size)

    @property
    def binary_size(self) -> str:
        return sizes.binary(self.size)

    def file_name(self, encoding: Optional[str] = None) -> Optional[str]:
        return file_name_from_response(self.response, encoding or self.encoding)

    def download(self, destination: Destination, *options: CopyOption) -> None:
        raise_for_status(self.response, self.encoding)
        write_body(self.response, destination, *options)
        logging.info("Downloaded %s", self.url)

    def download_to_directory(self, directory, *options: CopyOption):
        """Saves the body in ``directory`` under :meth:`file_name` and returns the path."""

        if directory is None:
            raise ValueError("directory should not be None")
        directory = as_path(directory)
        if not filesystem_for(directory).is_dir(directory):
            raise NotADirectoryError(f"directory should be a directory: {directory}")
        target = directory / sanitize_filename(self.file_name() or "", default="download")
        self.download(target, *options)
        return target

    def close(self) -> None:
        self.response.close()

    def __enter__(self) -> "DownloadDescriptor":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"DownloadDescriptor({self.url!r}, size={self.size})"
