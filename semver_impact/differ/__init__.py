"""Structural differ for declaration trees."""

from .classification import Classification, classify_pair, node_kind_to_target
from .core import diff, flatten_changes, group_changes_by_descriptor
from .options import DiffOptions
from .renames import RenameCandidate, detect_renames, rename_similarity

__all__ = [
    "Classification",
    "DiffOptions",
    "RenameCandidate",
    "classify_pair",
    "detect_renames",
    "diff",
    "flatten_changes",
    "group_changes_by_descriptor",
    "node_kind_to_target",
    "rename_similarity",
]
