"""
Policy records.

A policy is an ordered list of rules plus a default release type. Rules are
evaluated in order and the first match decides; unmatched changes get the
default.

Policies may mix engine rules (PolicyRule) with DSL rules at any level;
``compile_policy`` reduces everything to PolicyRule once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from ..changes import ApiChange, ReleaseType
from ..dsl.rules import DSLRule, as_tuple


@dataclass(frozen=True)
class PolicyRule:
    """A named matcher over change dimensions.

    Dimension tuples are OR'd within themselves and AND'd across each other.
    ``tags`` must all be present, ``any_tags`` needs at least one, and
    ``not_tags`` must all be absent. An empty tuple matches anything.
    """

    name: str
    returns: ReleaseType
    action: tuple[str, ...] = ()
    target: tuple[str, ...] = ()
    aspect: tuple[str, ...] = ()
    impact: tuple[str, ...] = ()
    node_kind: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    not_tags: tuple[str, ...] = ()
    any_tags: tuple[str, ...] = ()
    nested: bool | None = None
    rationale: str | None = None

    def __post_init__(self) -> None:
        for name in ("action", "target", "aspect", "impact", "node_kind", "tags", "not_tags", "any_tags"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, as_tuple(value))

    def matches(self, change: ApiChange) -> bool:
        descriptor = change.descriptor

        if self.target and descriptor.target not in self.target:
            return False
        if self.action and descriptor.action not in self.action:
            return False
        if self.aspect and descriptor.aspect not in self.aspect:
            return False
        if self.impact and descriptor.impact not in self.impact:
            return False
        if self.node_kind and change.node_kind not in self.node_kind:
            return False
        if any(tag not in descriptor.tags for tag in self.tags):
            return False
        if self.any_tags and not any(tag in descriptor.tags for tag in self.any_tags):
            return False
        if any(tag in descriptor.tags for tag in self.not_tags):
            return False
        if self.nested is not None and change.context.is_nested != self.nested:
            return False
        return True

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name}
        for name in ("action", "target", "aspect", "impact", "node_kind", "tags", "not_tags", "any_tags"):
            values = getattr(self, name)
            if values:
                data[name] = list(values)
        if self.nested is not None:
            data["nested"] = self.nested
        data["returns"] = self.returns
        if self.rationale:
            data["rationale"] = self.rationale
        return data


AnyRule = Union[PolicyRule, DSLRule]


@dataclass(frozen=True)
class Policy:
    name: str
    rules: tuple[AnyRule, ...] = ()
    default_release_type: ReleaseType = "major"
    description: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.rules, tuple):
            object.__setattr__(self, "rules", tuple(self.rules))


@dataclass(frozen=True)
class CompiledPolicy:
    """A policy whose rules are all PolicyRule.

    ``errors`` lists the DSL rules that could not be compiled and were left
    out.
    """

    name: str
    rules: tuple[PolicyRule, ...] = ()
    default_release_type: ReleaseType = "major"
    description: str | None = None
    errors: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "default": self.default_release_type,
            "rules": [rule.to_dict() for rule in self.rules],
            "errors": list(self.errors),
        }
