"""Pure path helpers: validity, ancestry, separators and glob compilation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Iterable, Optional

from ..fs.archive import ArchivePath
from ..fs.base import as_path

UNIX_DIRECTORY_SEPARATOR = "/"
WINDOWS_DIRECTORY_SEPARATOR = "\\"


def is_valid_path(value: Optional[str]) -> bool:
    """Returns whether ``value`` can be parsed as a path on this platform."""

    if value is None:
        return False
    try:
        Path(value)
    except (TypeError, ValueError):
        return False
    # pathlib accepts NUL but no OS call will
    return "\0" not in value


def file_name(path) -> str:
    """The last segment of ``path``, or ``""`` if it has none."""

    if path is None:
        raise ValueError("path should not be None")
    return as_path(path).name


def normalize(path):
    """Lexically removes ``.`` and ``..`` segments without touching the disk."""

    if isinstance(path, ArchivePath):
        return path
    return Path(os.path.normpath(path))


def absolute_normalized(path):
    if isinstance(path, ArchivePath):
        return path
    return Path(os.path.normpath(os.path.abspath(path)))


def is_ancestor(ancestor, child) -> bool:
    """Whether ``ancestor`` is a strict parent of ``child``."""

    if ancestor is None or child is None:
        raise ValueError("ancestor and child should not be None")
    ancestor = normalize(ancestor)
    current = normalize(child)
    while True:
        parent = current.parent
        if parent == current:
            return False
        if parent == ancestor:
            return True
        current = parent


def common_ancestor(first, second):
    """The deepest path that is equal to or above both ``first`` and ``second``.

    Unrelated absolute paths share only their root. Unrelated relative paths
    share nothing and yield the empty relative path ``Path(".")``.
    """

    if first is None or second is None:
        raise ValueError("paths should not be None")
    if first == second:
        return first

    first = normalize(first)
    second = normalize(second)
    shared = 0
    for left, right in zip(first.parts, second.parts):
        if left != right:
            break
        shared += 1

    ancestor = first
    for _ in range(len(first.parts) - shared):
        ancestor = ancestor.parent
    return ancestor


def common_ancestor_of(paths: Iterable):
    """Folds :func:`common_ancestor` over at least two distinct paths."""

    if paths is None:
        raise ValueError("paths should not be None")
    unique = list(dict.fromkeys(paths))
    if len(unique) < 2:
        raise ValueError("paths should contain at least two distinct elements")

    ancestor = unique[0]
    for path in unique[1:]:
        ancestor = common_ancestor(ancestor, path)
    return ancestor


def normalize_separators(path) -> str:
    """Replaces Windows directory separators with forward slashes."""

    if path is None:
        raise ValueError("path should not be None")
    return str(path).replace(WINDOWS_DIRECTORY_SEPARATOR, UNIX_DIRECTORY_SEPARATOR)


def compile_glob(pattern: str, anchor: Optional[str] = None) -> re.Pattern:
    """Translates a glob into a regular expression matched against whole paths.

    ``*`` matches within one segment, ``**`` crosses segments, ``?`` is one
    character other than ``/``, ``[...]`` is a character class (``!`` or ``^``
    negates it), ``{a,b}`` is an alternation and ``\\`` escapes. ``anchor``
    is prefixed literally, followed by a separator.
    """

    if pattern is None:
        raise ValueError("pattern should not be None")

    regex = []
    if anchor is not None:
        regex.append(re.escape(anchor.rstrip(UNIX_DIRECTORY_SEPARATOR)))
        regex.append(re.escape(UNIX_DIRECTORY_SEPARATOR))

    in_group = False
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        index += 1

        if char == "\\":
            if index >= length:
                raise ValueError(f"Trailing escape in glob: {pattern}")
            regex.append(re.escape(pattern[index]))
            index += 1
        elif char == "*":
            if index < length and pattern[index] == "*":
                regex.append(".*")
                index += 1
            else:
                regex.append("[^/]*")
        elif char == "?":
            regex.append("[^/]")
        elif char == "[":
            index = _translate_class(pattern, index, regex)
        elif char == "{":
            if in_group:
                raise ValueError(f"Nested groups are not supported in glob: {pattern}")
            regex.append("(?:(?:")
            in_group = True
        elif char == "}" and in_group:
            regex.append("))")
            in_group = False
        elif char == "," and in_group:
            regex.append(")|(?:")
        else:
            regex.append(re.escape(char))

    if in_group:
        raise ValueError(f"Missing '}}' in glob: {pattern}")
    return re.compile("".join(regex), re.DOTALL)


def _translate_class(pattern: str, index: int, regex: list) -> int:
    start = index + 1 if pattern[index:index + 1] in ("!", "^") else index
    if pattern[start:start + 1] == "]":
        start += 1
    end = pattern.find("]", start)
    if end == -1:
        raise ValueError(f"Missing ']' in glob: {pattern}")
    body = pattern[index:end]
    if "/" in body:
        raise ValueError(f"Explicit separator in glob class: {pattern}")

    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]
    escaped = "".join("\\" + c if c in "\\^[]" else c for c in body)
    regex.append("(?:(?!/)[" + ("^" if negate else "") + escaped + "])")
    return end + 1