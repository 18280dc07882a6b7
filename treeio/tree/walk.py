"""Depth-first directory traversal driven by per-node callbacks."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Iterator, List, Optional

from ..fs.base import FileSystem, as_path, filesystem_for


class VisitResult(Enum):
    CONTINUE = "continue"
    SKIP_SUBTREE = "skip_subtree"
    TERMINATE = "terminate"


DirectoryCallback = Callable[[object], Optional[VisitResult]]
FileCallback = Callable[[object], Optional[VisitResult]]
PostDirectoryCallback = Callable[[object, Optional[OSError]], Optional[VisitResult]]


def raise_error(directory, error: Optional[OSError]) -> None:
    """Default post-directory callback: surfaces listing failures."""

    if error is not None:
        raise error


class _Frame:
    def __init__(self, filesystem: FileSystem, directory) -> None:
        self.directory = directory
        self.error: Optional[OSError] = None
        children: List = []
        try:
            children = filesystem.list_dir(directory)
        except OSError as exc:
            self.error = exc
        self.children: Iterator = iter(children)


def walk_tree(
    root,
    *,
    pre_directory: Optional[DirectoryCallback] = None,
    on_file: Optional[FileCallback] = None,
    post_directory: Optional[PostDirectoryCallback] = None,
) -> VisitResult:
    """Walks ``root`` depth-first, children of a directory in name order.

    ``pre_directory`` runs before a directory's children and may return
    ``SKIP_SUBTREE``; ``post_directory`` runs after them and receives the
    ``OSError`` raised while listing the directory, if any. Any callback may
    return ``TERMINATE`` to stop the walk. A ``root`` that is not a directory
    is passed to ``on_file`` alone.
    """

    root = as_path(root)
    filesystem = filesystem_for(root)
    post_directory = post_directory or raise_error

    if not filesystem.is_dir(root):
        if not filesystem.exists(root):
            raise FileNotFoundError(f"No such file or directory: {root}")
        return _outcome(on_file, root)

    result = _outcome(pre_directory, root)
    if result is not VisitResult.CONTINUE:
        return VisitResult.TERMINATE if result is VisitResult.TERMINATE else VisitResult.CONTINUE

    stack = [_Frame(filesystem, root)]
    while stack:
        frame = stack[-1]
        child = next(frame.children, None)

        if child is None:
            stack.pop()
            if post_directory(frame.directory, frame.error) is VisitResult.TERMINATE:
                return VisitResult.TERMINATE
            continue

        if filesystem.is_dir(child) and not filesystem.is_link(child):
            result = _outcome(pre_directory, child)
            if result is VisitResult.TERMINATE:
                return result
            if result is VisitResult.CONTINUE:
                stack.append(_Frame(filesystem, child))
        elif _outcome(on_file, child) is VisitResult.TERMINATE:
            return VisitResult.TERMINATE

    return VisitResult.CONTINUE


def _outcome(callback, path) -> VisitResult:
    if callback is None:
        return VisitResult.CONTINUE
    return callback(path) or VisitResult.CONTINUE
