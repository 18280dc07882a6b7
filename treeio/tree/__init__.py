"""Directory tree traversal, copy, delete and glob matching."""

from .operations import (
    copy_file,
    copy_preserving_structure,
    copy_tree,
    delete_matching,
    delete_tree,
    delete_tree_if_exists,
    ensure_parent_exists,
    is_tree_empty,
    list_children,
    match_glob,
)
from .walk import VisitResult, walk_tree

__all__ = [
    "walk_tree",
    "VisitResult",
    "list_children",
    "is_tree_empty",
    "ensure_parent_exists",
    "copy_file",
    "copy_tree",
    "copy_preserving_structure",
    "delete_tree",
    "delete_matching",
    "delete_tree_if_exists",
    "match_glob",
]
