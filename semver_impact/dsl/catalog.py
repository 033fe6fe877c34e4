"""
The pattern catalog: which templates can express which dimension values.

Read-only module data. Entries are tried in this order; equal scores keep
catalog order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class PatternMapping:
    """One catalog entry.

    required: dimension name -> values; the rule must list at least one of them
    optional: dimension name -> values; checked only when the rule sets the
        dimension. ``nested`` is a single bool the rule must equal.
    """

    template: str
    required: Mapping[str, tuple[str, ...]]
    priority: int
    description: str
    optional: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    nested: bool | None = None


def _entry(
    template: str,
    priority: int,
    description: str,
    nested: bool | None = None,
    optional: dict[str, tuple[str, ...]] | None = None,
    **required: tuple[str, ...],
) -> PatternMapping:
    return PatternMapping(
        template=template,
        required=MappingProxyType(required),
        priority=priority,
        description=description,
        optional=MappingProxyType(optional or {}),
        nested=nested,
    )


PATTERN_CATALOG: tuple[PatternMapping, ...] = (
    # action + modifier
    _entry("added required {target}", 10, "Adding a required element", action=("added",), impact=("narrowing",)),
    _entry("added optional {target}", 10, "Adding an optional element", action=("added",), impact=("widening",)),
    _entry("removed optional {target}", 10, "Removing an optional element", action=("removed",), impact=("widening",)),
    _entry("added required {target}", 10, "Adding a required element", action=("added",), tags=("now-required",)),
    _entry("added optional {target}", 10, "Adding an optional element", action=("added",), tags=("now-optional",)),
    _entry("removed optional {target}", 10, "Removing an optional element", action=("removed",), tags=("was-optional",)),
    # aspect
    _entry(
        "{target} type narrowed",
        9,
        "Type became more restrictive",
        action=("modified",),
        aspect=("type",),
        impact=("narrowing",),
    ),
    _entry(
        "{target} type widened",
        9,
        "Type became less restrictive",
        action=("modified",),
        aspect=("type",),
        impact=("widening",),
    ),
    _entry(
        "{target} made optional",
        9,
        "Changed from required to optional",
        action=("modified",),
        aspect=("optionality",),
        impact=("widening",),
    ),
    _entry(
        "{target} made required",
        9,
        "Changed from optional to required",
        action=("modified",),
        aspect=("optionality",),
        impact=("narrowing",),
    ),
    _entry(
        "{target} deprecated",
        8,
        "Element was marked as deprecated",
        optional={"impact": ("widening",)},
        action=("modified",),
        aspect=("deprecation",),
    ),
    _entry(
        "{target} undeprecated",
        8,
        "Deprecation was removed",
        optional={"impact": ("narrowing",)},
        action=("modified",),
        aspect=("deprecation",),
    ),
    # nested-member context
    _entry("removed {target} when {condition}", 6, "Nested member was removed", nested=True, action=("removed",)),
    _entry("added {target} when {condition}", 6, "Nested member was added", nested=True, action=("added",)),
    # bare actions
    _entry("added {target}", 5, "Element was added", action=("added",)),
    _entry("removed {target}", 5, "Element was removed", action=("removed",)),
    _entry("renamed {target}", 5, "Element was renamed", action=("renamed",)),
    _entry("reordered {target}", 5, "Element order changed", action=("reordered",)),
    _entry("modified {target}", 3, "Element was modified", action=("modified",)),
)

# Templates usable without a catalog match.
FALLBACK_TEMPLATES: Mapping[str, str] = MappingProxyType(
    {
        "added": "added {target}",
        "removed": "removed {target}",
        "renamed": "renamed {target}",
        "reordered": "reordered {target}",
        "modified": "modified {target}",
    }
)
