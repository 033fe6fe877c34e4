from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class DiffOptions:
    """Knobs for the structural differ.

    rename_threshold: minimum similarity for a removed/added pair to be
        reported as a single rename
    include_nested_changes: descend into members of matched declarations
    resolve_type_relationships: ask the type oracle for widening/narrowing
        verdicts; when off, differing types are ``undetermined``
    max_nesting_depth: deepest nested change depth that is still reported
    detect_parameter_reordering: run the reorder detector on signatures
    """

    rename_threshold: float = 0.8
    include_nested_changes: bool = True
    resolve_type_relationships: bool = True
    max_nesting_depth: int = 10
    detect_parameter_reordering: bool = True

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiffOptions":
        """Build options from a config table, ignoring unknown keys.

        Raises:
            ValueError: if a value is out of range
        """
        defaults = cls()
        threshold = float(data.get("rename_threshold", defaults.rename_threshold))
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("rename_threshold must be between 0 and 1")

        depth = int(data.get("max_nesting_depth", defaults.max_nesting_depth))
        if depth < 0:
            raise ValueError("max_nesting_depth must not be negative")

        return cls(
            rename_threshold=threshold,
            include_nested_changes=bool(data.get("include_nested_changes", defaults.include_nested_changes)),
            resolve_type_relationships=bool(
                data.get("resolve_type_relationships", defaults.resolve_type_relationships)
            ),
            max_nesting_depth=depth,
            detect_parameter_reordering=bool(
                data.get("detect_parameter_reordering", defaults.detect_parameter_reordering)
            ),
        )
