"""Filesystem capability interface shared by local disks and zip archives.

Tree operations never touch the disk through ``os`` or ``pathlib``. They
ask :func:`filesystem_for` which backend owns a path and call the small set
of primitives below, so a directory inside a zip archive can be copied, walked
or deleted with the same code as a directory on disk.
"""

from __future__ import annotations

import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, List, Union

if TYPE_CHECKING:
    from .archive import ArchivePath

AnyPath = Union[str, "os.PathLike[str]", "ArchivePath"]


class NotAFileError(OSError):
    """Raised when a regular file was expected but something else was found."""


class FileSystem(ABC):
    """Primitives a backend must provide for the tree operations."""

    @abstractmethod
    def exists(self, path) -> bool:
        ...

    @abstractmethod
    def is_dir(self, path) -> bool:
        ...

    @abstractmethod
    def is_file(self, path) -> bool:
        ...

    @abstractmethod
    def list_dir(self, path) -> list:
        """Returns the direct children of ``path`` sorted by name."""
        ...

    @abstractmethod
    def open_read(self, path) -> BinaryIO:
        ...

    @abstractmethod
    def open_write(self, path) -> BinaryIO:
        """Opens ``path`` for writing, truncating it. The parent must exist."""
        ...

    @abstractmethod
    def make_dir(self, path) -> None:
        """Creates one directory; the parent must exist."""
        ...

    @abstractmethod
    def remove_file(self, path) -> None:
        ...

    @abstractmethod
    def remove_dir(self, path) -> None:
        """Removes an empty directory."""
        ...

    @abstractmethod
    def get_mtime(self, path) -> float:
        ...

    @abstractmethod
    def set_mtime(self, path, mtime: float) -> None:
        ...

    def is_link(self, path) -> bool:
        return False

    def make_dirs(self, path) -> None:
        """Creates ``path`` and any missing parents."""

        missing = []
        current = path
        while not self.exists(current):
            missing.append(current)
            parent = current.parent
            if parent == current:
                break
            current = parent
        for directory in reversed(missing):
            self.make_dir(directory)
        if not self.is_dir(path):
            raise FileExistsError(f"Not a directory: {path}")

    def read_bytes(self, path) -> bytes:
        with self.open_read(path) as handle:
            return handle.read()

    def write_bytes(self, path, data: bytes) -> None:
        with self.open_write(path) as handle:
            handle.write(data)


class LocalFileSystem(FileSystem):
    """The operating system's filesystem, addressed with :class:`pathlib.Path`."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_file(self, path: Path) -> bool:
        return path.is_file()

    def is_link(self, path: Path) -> bool:
        return path.is_symlink()

    def list_dir(self, path: Path) -> List[Path]:
        if not path.is_dir():
            raise NotADirectoryError(f"Not a directory: {path}")
        return sorted(path.iterdir())

    def open_read(self, path: Path) -> BinaryIO:
        return open(path, "rb")

    def open_write(self, path: Path) -> BinaryIO:
        return open(path, "wb")

    def make_dir(self, path: Path) -> None:
        path.mkdir()

    def make_dirs(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def remove_file(self, path: Path) -> None:
        path.unlink()

    def remove_dir(self, path: Path) -> None:
        path.rmdir()

    def get_mtime(self, path: Path) -> float:
        return path.stat().st_mtime

    def set_mtime(self, path: Path, mtime: float) -> None:
        os.utime(path, (path.stat().st_atime, mtime))

    def copy_file(self, source: Path, target: Path, copy_attributes: bool) -> None:
        if copy_attributes:
            shutil.copy2(source, target)
        else:
            shutil.copyfile(source, target)


LOCAL = LocalFileSystem()


def as_path(path: AnyPath):
    """Returns archive paths unchanged and everything else as a ``Path``."""

    from .archive import ArchivePath

    if isinstance(path, ArchivePath):
        return path
    if path is None:
        raise ValueError("path should not be None")
    return Path(path)


def filesystem_for(path) -> FileSystem:
    """Returns the backend that owns ``path``."""

    from .archive import ArchivePath

    if isinstance(path, ArchivePath):
        return path.filesystem
    return LOCAL
