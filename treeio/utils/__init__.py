"""Utility helpers for paths, sizes, URLs and HTTP."""

from .http_client import HttpFetcher
from .file_utils import sanitize_filename
from .paths import common_ancestor, common_ancestor_of, is_ancestor, normalize_separators

__all__ = [
    "HttpFetcher",
    "sanitize_filename",
    "common_ancestor",
    "common_ancestor_of",
    "is_ancestor",
    "normalize_separators",
]
