"""Single-file helpers: safe names, timestamps and whole-file text IO."""

from __future__ import annotations

import os
import re
import time

from ..fs.base import NotAFileError, as_path, filesystem_for

INVALID_FILENAME_CHARS = re.compile(r"[\\/:*?\"<>|\x00-\x1f]")


def sanitize_filename(value: str, default: str = "file") -> str:
    """Removes characters that are invalid on most filesystems."""

    sanitized = INVALID_FILENAME_CHARS.sub("", value or "").strip()
    if sanitized in {".", ".."}:
        sanitized = ""
    return sanitized or default


def touch(path) -> None:
    """Creates ``path`` if missing and sets its modification time to now."""

    path = as_path(path)
    filesystem = filesystem_for(path)
    if not filesystem.exists(path):
        filesystem.write_bytes(path, b"")

    now = time.time()
    filesystem.set_mtime(path, now)
    if abs(filesystem.get_mtime(path) - now) > 1:
        raise OSError(f"Could not set last modification time: {path}")


def can_touch(path) -> bool:
    """Whether the modification time of ``path`` can be changed; restores it after."""

    path = as_path(path)
    filesystem = filesystem_for(path)
    try:
        original = filesystem.get_mtime(path)
        touch(path)
        filesystem.set_mtime(path, original)
        return True
    except OSError:
        return False


def read_file(path, encoding: str = "utf-8") -> str:
    path = as_path(path)
    filesystem = filesystem_for(path)
    if not filesystem.is_file(path):
        raise NotAFileError(f"path should be a file: {path}")
    return filesystem.read_bytes(path).decode(encoding)


def write_file(path, content: str, encoding: str = "utf-8", force_end_newline: bool = True):
    """Writes ``content``, appending a line separator unless it already ends with one."""

    if content is None:
        raise ValueError("content should not be None")
    path = as_path(path)
    if force_end_newline and not content.endswith("\n"):
        content += os.linesep
    filesystem_for(path).write_bytes(path, content.encode(encoding))
    return path
