"""treeio - directory tree, zip archive, byte size and HTTP download utilities."""

from .downloader import DownloadDescriptor
from .fs import ArchivePath, InvalidArchiveError, ZipFileSystem, open_archive
from .models import CopyOption, RequestConfig
from .utils import HttpFetcher

__version__ = "0.1.0"
__all__ = [
    "ArchivePath",
    "CopyOption",
    "DownloadDescriptor",
    "HttpFetcher",
    "InvalidArchiveError",
    "RequestConfig",
    "ZipFileSystem",
    "open_archive",
]
