"""Filesystem backends: the local disk and zip archives."""

from .archive import (
    ArchiveClosedError,
    ArchiveInUseError,
    ArchivePath,
    InvalidArchiveError,
    ZipFileSystem,
    open_archive,
)
from .base import LOCAL, FileSystem, LocalFileSystem, NotAFileError, filesystem_for

__all__ = [
    "FileSystem",
    "LocalFileSystem",
    "LOCAL",
    "NotAFileError",
    "filesystem_for",
    "ArchivePath",
    "ZipFileSystem",
    "open_archive",
    "InvalidArchiveError",
    "ArchiveClosedError",
    "ArchiveInUseError",
]
