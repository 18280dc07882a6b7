"""Flags that control how files are copied between filesystems."""

from __future__ import annotations

from enum import Enum
from typing import Iterable


class CopyOption(Enum):
    """Overwrite and attribute policy for a single copy call."""

    REPLACE_EXISTING = "replace_existing"
    COPY_ATTRIBUTES = "copy_attributes"


def replace_existing(options: Iterable[CopyOption]) -> bool:
    return CopyOption.REPLACE_EXISTING in options


def copy_attributes(options: Iterable[CopyOption]) -> bool:
    return CopyOption.COPY_ATTRIBUTES in options
