"""Copy, delete and glob operations over directory trees.

Every function accepts local paths (``str`` or ``os.PathLike``) as well as
:class:`~treeio.fs.archive.ArchivePath` entries, and copies work across the
two in either direction.
"""

from __future__ import annotations

import logging
import shutil
from collections import deque
from typing import Callable, Iterable, List

from ..fs.base import LOCAL, NotAFileError, as_path, filesystem_for
from ..models.options import CopyOption, copy_attributes, replace_existing
from ..utils.paths import absolute_normalized, common_ancestor_of, compile_glob, normalize_separators
from .walk import walk_tree

FileTreeFilter = Callable[[object], bool]


def _require_directory(path, name: str = "directory"):
    if path is None:
        raise ValueError(f"{name} should not be None")
    path = as_path(path)
    if not filesystem_for(path).is_dir(path):
        raise NotADirectoryError(f"{name} should be a directory: {path}")
    return path


def list_children(directory) -> List:
    """Lists the direct children of ``directory``."""

    directory = _require_directory(directory)
    return filesystem_for(directory).list_dir(directory)


def is_tree_empty(directory) -> bool:
    """Returns ``True`` if no file exists anywhere below ``directory``."""

    directory = _require_directory(directory)
    filesystem = filesystem_for(directory)
    pending = deque([directory])
    while pending:
        for child in filesystem.list_dir(pending.popleft()):
            if not filesystem.is_dir(child) or filesystem.is_link(child):
                return False
            pending.append(child)
    return True


def ensure_parent_exists(path) -> None:
    """Creates every missing directory above ``path``."""

    path = as_path(path)
    parent = path.parent
    if parent != path:
        filesystem_for(parent).make_dirs(parent)


def copy_file(source, target, *options: CopyOption) -> None:
    """Copies one file, possibly between a zip archive and the local disk."""

    source = as_path(source)
    target = as_path(target)
    source_fs = filesystem_for(source)
    target_fs = filesystem_for(target)

    if not source_fs.is_file(source):
        if not source_fs.exists(source):
            raise FileNotFoundError(f"No such file: {source}")
        raise NotAFileError(f"Not a file: {source}")
    if target_fs.exists(target):
        if not replace_existing(options):
            raise FileExistsError(f"Target already exists: {target}")
        if target_fs.is_dir(target):
            raise IsADirectoryError(f"Cannot replace directory: {target}")

    if source_fs is LOCAL and target_fs is LOCAL:
        LOCAL.copy_file(source, target, copy_attributes(options))
        return

    with source_fs.open_read(source) as reader, target_fs.open_write(target) as writer:
        shutil.copyfileobj(reader, writer)
    if copy_attributes(options):
        target_fs.set_mtime(target, source_fs.get_mtime(source))


def copy_tree(source_dir, target_dir, *options: CopyOption) -> None:
    """Mirrors ``source_dir`` below ``target_dir``.

    Stops at the first error and leaves whatever was already copied in place.
    """

    source_dir = _require_directory(source_dir, "source_dir")
    if target_dir is None:
        raise ValueError("target_dir should not be None")
    target_dir = as_path(target_dir)
    source_fs = filesystem_for(source_dir)
    target_fs = filesystem_for(target_dir)
    logging.debug("Copying tree %s to %s", source_dir, target_dir)

    def mirror(path):
        return target_dir.joinpath(*path.relative_to(source_dir).parts)

    def create_directory(directory) -> None:
        target_fs.make_dirs(mirror(directory))

    def copy(file) -> None:
        if source_fs.is_link(file) and source_fs.is_dir(file):
            # linked directories are recreated empty, never entered
            target_fs.make_dirs(mirror(file))
            return
        copy_file(file, mirror(file), *options)

    walk_tree(source_dir, pre_directory=create_directory, on_file=copy)


def copy_preserving_structure(files: Iterable, target_dir, *options: CopyOption) -> None:
    """Copies ``files`` below ``target_dir`` relative to their common ancestor.

    A single file is copied straight into ``target_dir`` under its own name.
    """

    if files is None or target_dir is None:
        raise ValueError("files and target_dir should not be None")
    sources = list(dict.fromkeys(absolute_normalized(as_path(file)) for file in files))
    target_dir = as_path(target_dir)
    if not sources:
        return
    if len({type(filesystem_for(source)) for source in sources}) > 1:
        raise ValueError("files should all belong to the same filesystem")

    target_fs = filesystem_for(target_dir)
    target_fs.make_dirs(target_dir)

    if len(sources) == 1:
        source = sources[0]
        copy_file(source, target_dir / source.name, *options)
        return

    root = common_ancestor_of(sources)
    logging.debug("Copying %s files below %s to %s", len(sources), root, target_dir)
    for source in sources:
        target = target_dir.joinpath(*source.relative_to(root).parts)
        ensure_parent_exists(target)
        copy_file(source, target, *options)


def delete_tree(directory) -> None:
    """Deletes ``directory`` and everything below it."""

    directory = _require_directory(directory)
    filesystem = filesystem_for(directory)
    if filesystem.list_dir(directory):
        delete_matching(directory, lambda path: True)
    filesystem.remove_dir(directory)
    logging.debug("Deleted tree %s", directory)


def delete_matching(directory, file_filter: FileTreeFilter) -> None:
    """Deletes the files below ``directory`` accepted by ``file_filter``.

    Subdirectories accepted by ``file_filter`` are then removed together with
    all of their contents, whether or not the filter accepted those.
    ``directory`` itself is never removed.
    """

    directory = _require_directory(directory)
    if file_filter is None:
        raise ValueError("file_filter should not be None")
    filesystem = filesystem_for(directory)

    def delete_file(file) -> None:
        if file_filter(file):
            filesystem.remove_file(file)

    def delete_directory(path, error) -> None:
        if error is not None:
            raise error
        if path != directory and file_filter(path):
            delete_tree(path)

    walk_tree(directory, on_file=delete_file, post_directory=delete_directory)


def delete_tree_if_exists(directory) -> bool:
    """Deletes ``directory`` if it exists and returns whether it did."""

    if directory is None:
        raise ValueError("directory should not be None")
    directory = as_path(directory)
    if not filesystem_for(directory).exists(directory):
        return False
    delete_tree(directory)
    return True


def match_glob(directory, pattern: str) -> List:
    """Returns the absolute paths below ``directory`` that match ``pattern``."""

    directory = _require_directory(directory)
    if pattern is None:
        raise ValueError("pattern should not be None")
    base = absolute_normalized(directory)
    matcher = compile_glob(normalize_separators(pattern), normalize_separators(base))
    matches: List = []

    def visit(path) -> None:
        if path != base and matcher.fullmatch(normalize_separators(path)):
            matches.append(path)

    walk_tree(base, pre_directory=visit, on_file=visit)
    return matches
