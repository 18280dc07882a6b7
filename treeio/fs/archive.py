"""Zip archives exposed as a filesystem of :class:`ArchivePath` entries.

Opening a :class:`ZipFileSystem` reads the central directory only. Entry
contents are streamed from the original archive until they are replaced, and
the archive on disk is rewritten once, on :meth:`ZipFileSystem.close`, when
anything changed.
"""

from __future__ import annotations

import io
import logging
import os
import posixpath
import tempfile
import threading
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable, Dict, Iterable, List, Optional, Set

from ..models.options import CopyOption
from .base import FileSystem, NotAFileError, as_path

ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

_OPEN_ARCHIVES: Set[str] = set()
_OPEN_ARCHIVES_LOCK = threading.Lock()


class InvalidArchiveError(OSError):
    """Raised when an existing, non-empty file is not a zip archive."""


class ArchiveClosedError(OSError):
    """Raised when an archive is used after it has been closed."""


class ArchiveInUseError(OSError):
    """Raised when an archive file is already open through another handle."""


class ArchivePath:
    """An absolute path to an entry inside an open :class:`ZipFileSystem`."""

    __slots__ = ("filesystem", "_path")

    def __init__(self, filesystem: "ZipFileSystem", path: str | PurePosixPath = "/") -> None:
        self.filesystem = filesystem
        normalized = posixpath.normpath("/" + str(path).replace("\\", "/"))
        # normpath keeps a leading "//" as-is
        self._path = PurePosixPath("/" + normalized.lstrip("/"))

    @property
    def posix(self) -> PurePosixPath:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def parts(self) -> tuple:
        return self._path.parts

    @property
    def parent(self) -> "ArchivePath":
        return ArchivePath(self.filesystem, self._path.parent)

    @property
    def entry_name(self) -> str:
        """The name used inside the zip file, without a leading slash."""

        return str(self._path)[1:]

    def is_absolute(self) -> bool:
        return True

    def joinpath(self, *segments) -> "ArchivePath":
        return ArchivePath(self.filesystem, self._path.joinpath(*[str(s) for s in segments]))

    def __truediv__(self, segment) -> "ArchivePath":
        return self.joinpath(segment)

    def relative_to(self, other: "ArchivePath") -> PurePosixPath:
        return self._path.relative_to(other._path)

    def exists(self) -> bool:
        return self.filesystem.exists(self)

    def is_dir(self) -> bool:
        return self.filesystem.is_dir(self)

    def is_file(self) -> bool:
        return self.filesystem.is_file(self)

    def iterdir(self):
        return iter(self.filesystem.list_dir(self))

    def read_bytes(self) -> bytes:
        return self.filesystem.read_bytes(self)

    def write_bytes(self, data: bytes) -> None:
        self.filesystem.write_bytes(self, data)

    def read_text(self, encoding: str = "utf-8") -> str:
        return self.read_bytes().decode(encoding)

    def write_text(self, text: str, encoding: str = "utf-8") -> None:
        self.write_bytes(text.encode(encoding))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArchivePath):
            return NotImplemented
        return self.filesystem is other.filesystem and self._path == other._path

    def __lt__(self, other: "ArchivePath") -> bool:
        return self._path < other._path

    def __hash__(self) -> int:
        return hash((id(self.filesystem), self._path))

    def __str__(self) -> str:
        return str(self._path)

    def __repr__(self) -> str:
        return f"ArchivePath({self.filesystem.path.name}:{self._path})"


@dataclass
class _Entry:
    info: Optional[zipfile.ZipInfo]
    data: Optional[bytes]
    mtime: float


class _EntryWriter(io.BytesIO):
    """Buffers a new entry and commits it to the archive when closed."""

    def __init__(self, commit: Callable[[bytes], None]) -> None:
        super().__init__()
        self._commit = commit

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._commit(self.getvalue())
        finally:
            super().close()


class ZipFileSystem(FileSystem):
    """An open zip archive; the ArchiveHandle of this package.

    Only one handle may have a given file open at a time. Always close the
    handle (or use it as a context manager): the file on disk is only
    guaranteed to be consistent after :meth:`close`.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        if path is None:
            raise ValueError("path should not be None")
        self.path = Path(path)
        self._key = os.path.normcase(os.path.abspath(self.path))
        self._entries: Dict[str, _Entry] = {}
        self._dirs: Set[str] = {""}
        self._source: Optional[zipfile.ZipFile] = None
        self._comment = b""
        self._dirty = False
        self._closed = False

        with _OPEN_ARCHIVES_LOCK:
            if self._key in _OPEN_ARCHIVES:
                raise ArchiveInUseError(f"Archive is already open: {self.path}")
            _OPEN_ARCHIVES.add(self._key)

        try:
            if not self.path.exists() or self.path.stat().st_size == 0:
                self._write_empty()
            self._load()
        except BaseException:
            self._release()
            raise

    @classmethod
    def create_new(cls, path: str | os.PathLike[str]) -> "ZipFileSystem":
        """Deletes any file at ``path`` and opens a fresh, empty archive."""

        if path is None:
            raise ValueError("path should not be None")
        Path(path).unlink(missing_ok=True)
        return cls(path)

    def _write_empty(self) -> None:
        logging.debug("Creating empty zip archive %s", self.path)
        with zipfile.ZipFile(self.path, "w"):
            pass

    def _load(self) -> None:
        try:
            source = zipfile.ZipFile(self.path, "r")
        except zipfile.BadZipFile as exc:
            raise InvalidArchiveError(f"Not a valid zip archive: {self.path}") from exc
        self._source = source
        self._comment = source.comment
        for info in source.infolist():
            name = posixpath.normpath("/" + info.filename.replace("\\", "/")).lstrip("/")
            if not name:
                continue
            self._add_parents(name)
            if info.is_dir():
                self._dirs.add(name)
            else:
                mtime = time.mktime(info.date_time + (0, 0, -1))
                self._entries[name] = _Entry(info=info, data=None, mtime=mtime)
        logging.debug("Opened zip archive %s with %s entries", self.path, len(self._entries))

    def _add_parents(self, name: str) -> None:
        parent = posixpath.dirname(name)
        while parent and parent not in self._dirs:
            self._dirs.add(parent)
            parent = posixpath.dirname(parent)

    def _check_open(self) -> None:
        if self._closed:
            raise ArchiveClosedError(f"Archive is closed: {self.path}")

    def _name(self, path: ArchivePath) -> str:
        self._check_open()
        if not isinstance(path, ArchivePath) or path.filesystem is not self:
            raise ValueError(f"{path!r} does not belong to archive {self.path}")
        return path.entry_name

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def comment(self) -> str:
        self._check_open()
        return self._comment.decode("utf-8", errors="replace")

    def entry_path(self, entry_name: str) -> ArchivePath:
        """Resolves ``entry_name`` against the archive root."""

        if entry_name is None:
            raise ValueError("entry_name should not be None")
        self._check_open()
        return ArchivePath(self, entry_name)

    def root(self) -> ArchivePath:
        return self.entry_path("/")

    def exists(self, path: ArchivePath) -> bool:
        name = self._name(path)
        return name in self._dirs or name in self._entries

    def is_dir(self, path: ArchivePath) -> bool:
        return self._name(path) in self._dirs

    def is_file(self, path: ArchivePath) -> bool:
        return self._name(path) in self._entries

    def list_dir(self, path: ArchivePath) -> List[ArchivePath]:
        name = self._name(path)
        if name not in self._dirs:
            raise NotADirectoryError(f"Not a directory: {path}")
        children = [
            child
            for child in list(self._dirs) + list(self._entries)
            if child and posixpath.dirname(child) == name
        ]
        return [ArchivePath(self, "/" + child) for child in sorted(children)]

    def open_read(self, path: ArchivePath) -> BinaryIO:
        name = self._name(path)
        entry = self._entries.get(name)
        if entry is None:
            if name in self._dirs:
                raise IsADirectoryError(f"Is a directory: {path}")
            raise FileNotFoundError(f"No such entry: {path}")
        if entry.data is not None:
            return io.BytesIO(entry.data)
        return self._source.open(entry.info)

    def open_write(self, path: ArchivePath) -> BinaryIO:
        name = self._name(path)
        if name in self._dirs:
            raise IsADirectoryError(f"Is a directory: {path}")
        if posixpath.dirname(name) not in self._dirs:
            raise FileNotFoundError(f"Parent directory does not exist: {path}")

        def commit(data: bytes) -> None:
            self._check_open()
            self._entries[name] = _Entry(info=None, data=data, mtime=time.time())
            self._dirty = True

        return _EntryWriter(commit)

    def make_dir(self, path: ArchivePath) -> None:
        name = self._name(path)
        if name in self._dirs or name in self._entries:
            raise FileExistsError(f"Entry already exists: {path}")
        if posixpath.dirname(name) not in self._dirs:
            raise FileNotFoundError(f"Parent directory does not exist: {path}")
        self._dirs.add(name)
        self._dirty = True

    def remove_file(self, path: ArchivePath) -> None:
        name = self._name(path)
        if name in self._dirs:
            raise IsADirectoryError(f"Is a directory: {path}")
        if self._entries.pop(name, None) is None:
            raise FileNotFoundError(f"No such entry: {path}")
        self._dirty = True

    def remove_dir(self, path: ArchivePath) -> None:
        name = self._name(path)
        if name not in self._dirs:
            raise NotADirectoryError(f"Not a directory: {path}")
        if not name:
            raise PermissionError("The archive root cannot be removed")
        if self.list_dir(path):
            raise OSError(f"Directory not empty: {path}")
        self._dirs.discard(name)
        self._dirty = True

    def get_mtime(self, path: ArchivePath) -> float:
        name = self._name(path)
        entry = self._entries.get(name)
        if entry is None:
            raise NotAFileError(f"Not a file entry: {path}")
        return entry.mtime

    def set_mtime(self, path: ArchivePath, mtime: float) -> None:
        name = self._name(path)
        entry = self._entries.get(name)
        if entry is None:
            raise NotAFileError(f"Not a file entry: {path}")
        entry.mtime = mtime
        self._dirty = True

    def add_entry(self, path, entry_name: Optional[str] = None) -> ArchivePath:
        """Copies a file into the archive, replacing any existing entry."""

        from ..tree.operations import copy_file, ensure_parent_exists

        if path is None:
            raise ValueError("path should not be None")
        source = as_path(path)
        if entry_name is None:
            if not source.name:
                raise ValueError(f"Invalid path: {path}")
            entry_name = source.name
        target = self.entry_path(entry_name)
        ensure_parent_exists(target)
        copy_file(source, target, CopyOption.REPLACE_EXISTING)
        return target

    def add_entries(self, paths: Iterable, preserve_structure: bool = True) -> None:
        """Adds several files, keeping their layout below their common ancestor."""

        from ..utils.paths import absolute_normalized, common_ancestor_of

        if paths is None:
            raise ValueError("paths should not be None")
        files = list(dict.fromkeys(absolute_normalized(as_path(path)) for path in paths))
        if not files:
            return
        if len(files) == 1:
            self.add_entry(files[0])
            return
        if not preserve_structure:
            self.add_entries_mapped(files, lambda file: as_path(file).name)
            return

        root = common_ancestor_of(files)
        self.add_entries_mapped(files, lambda file: file.relative_to(root).as_posix())

    def add_entries_mapped(self, paths: Iterable, mapper: Callable[[Path], str]) -> None:
        if paths is None or mapper is None:
            raise ValueError("paths and mapper should not be None")
        for path in paths:
            self.add_entry(path, mapper(path))

    def add_all(self, source_dir) -> None:
        """Adds every file below ``source_dir``, relative to it."""

        from ..tree.operations import copy_tree

        if source_dir is None:
            raise ValueError("source_dir should not be None")
        if not as_path(source_dir).is_dir():
            raise NotADirectoryError(f"Not a directory: {source_dir}")
        copy_tree(source_dir, self.root(), CopyOption.REPLACE_EXISTING)

    def extract(self, entry_name: str, location, *options: CopyOption) -> None:
        """Copies an entry, or a whole directory of entries, to ``location``."""

        from ..tree.operations import copy_file, copy_tree

        if location is None:
            raise ValueError("location should not be None")
        source = self.entry_path(entry_name)
        if self.is_dir(source):
            copy_tree(source, location, *options)
        else:
            copy_file(source, location, *options)

    def extract_all(self, location) -> None:
        self.extract("/", location)

    def walk(self, entry_name: str, **callbacks) -> None:
        """Runs :func:`treeio.tree.walk.walk_tree` from an entry."""

        from ..tree.walk import walk_tree

        walk_tree(self.entry_path(entry_name), **callbacks)

    def close(self) -> None:
        """Writes pending changes to disk and releases the archive."""

        if self._closed:
            return
        try:
            if self._dirty:
                self._rewrite()
        finally:
            self._closed = True
            if self._source is not None:
                self._source.close()
                self._source = None
            self._release()

    def _rewrite(self) -> None:
        logging.debug("Writing %s entries to %s", len(self._entries), self.path)
        directory = self.path.parent
        handle, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=directory)
        os.close(handle)
        try:
            with zipfile.ZipFile(tmp_name, "w", compression=zipfile.ZIP_DEFLATED) as target:
                target.comment = self._comment
                for name in sorted(self._dirs):
                    if name and not self._has_file_below(name):
                        target.writestr(zipfile.ZipInfo(name + "/", _date_time(time.time())), b"")
                for name in sorted(self._entries):
                    entry = self._entries[name]
                    if entry.data is None:
                        info = entry.info
                        data = self._source.read(info)
                        if info.filename != name or abs(time.mktime(info.date_time + (0, 0, -1)) - entry.mtime) >= 2:
                            info = _new_info(name, entry.mtime, info.compress_type)
                        target.writestr(info, data)
                    else:
                        target.writestr(_new_info(name, entry.mtime, zipfile.ZIP_DEFLATED), entry.data)
            self._source.close()
            self._source = None
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _has_file_below(self, name: str) -> bool:
        prefix = name + "/"
        return any(entry.startswith(prefix) for entry in self._entries)

    def _release(self) -> None:
        with _OPEN_ARCHIVES_LOCK:
            _OPEN_ARCHIVES.discard(self._key)

    def __enter__(self) -> "ZipFileSystem":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"ZipFileSystem({str(self.path)!r}, {state})"


def _date_time(mtime: float) -> tuple:
    stamp = time.localtime(mtime)[:6]
    return max(stamp, ZIP_EPOCH)


def _new_info(name: str, mtime: float, compress_type: int) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(name, _date_time(mtime))
    info.compress_type = compress_type
    info.external_attr = 0o644 << 16
    return info


def open_archive(path: str | os.PathLike[str]) -> ZipFileSystem:
    """Opens the zip file at ``path``, creating an empty one if it is missing."""

    return ZipFileSystem(path)
