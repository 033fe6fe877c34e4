"""
Change model shared by the differ, the rule DSL and the policy engine.

A detected change is described along independent dimensions:

- target: what kind of API element changed (export, parameter, property, ...)
- action: what happened to it (added, removed, modified, renamed, reordered)
- aspect: which facet changed; only meaningful for ``modified``
- impact: the compatibility direction of a modification
- tags: extra facts (was-optional, has-default, is-nested-change, ...)

These capture what a change did to the API surface, not what text changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Literal, Optional, get_args

from .declarations import DeclarationNode, NodeKind, SourceRange
from .exceptions import InvalidDescriptorError

ChangeTarget = Literal[
    "export",
    "parameter",
    "return-type",
    "type-parameter",
    "property",
    "method",
    "enum-member",
    "index-signature",
    "constructor",
    "accessor",
]

ChangeAction = Literal["added", "removed", "modified", "renamed", "reordered"]

ChangeAspect = Literal[
    "type",
    "optionality",
    "readonly",
    "visibility",
    "abstractness",
    "staticness",
    "deprecation",
    "default-value",
    "constraint",
    "default-type",
    "enum-value",
    "extends-clause",
    "implements-clause",
]

ChangeImpact = Literal["widening", "narrowing", "equivalent", "unrelated", "undetermined"]

ChangeTag = Literal[
    "was-required",
    "now-required",
    "was-optional",
    "now-optional",
    "is-rest-parameter",
    "was-rest-parameter",
    "has-default",
    "had-default",
    "is-nested-change",
    "has-nested-changes",
    "affects-type-parameter",
]

ReleaseType = Literal["major", "minor", "patch", "none"]

TARGETS: frozenset[str] = frozenset(get_args(ChangeTarget))
ACTIONS: frozenset[str] = frozenset(get_args(ChangeAction))
ASPECTS: frozenset[str] = frozenset(get_args(ChangeAspect))
IMPACTS: frozenset[str] = frozenset(get_args(ChangeImpact))
TAGS: frozenset[str] = frozenset(get_args(ChangeTag))
RELEASE_TYPES: frozenset[str] = frozenset(get_args(ReleaseType))

# Higher is more severe.
RELEASE_SEVERITY: dict[str, int] = {"none": 0, "patch": 1, "minor": 2, "major": 3}


def most_severe(release_types: Iterable[str]) -> ReleaseType:
    """Return the most severe release type in ``release_types`` ("none" if empty)."""
    highest: ReleaseType = "none"
    for release_type in release_types:
        if RELEASE_SEVERITY.get(release_type, 0) > RELEASE_SEVERITY[highest]:
            highest = release_type  # type: ignore[assignment]
    return highest


@dataclass(frozen=True)
class ChangeDescriptor:
    """Multi-dimensional description of one change.

    ``modified`` descriptors must carry both ``aspect`` and ``impact``; every
    other action must carry neither. Violations raise InvalidDescriptorError.
    """

    target: ChangeTarget
    action: ChangeAction
    aspect: Optional[ChangeAspect] = None
    impact: Optional[ChangeImpact] = None
    tags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", frozenset(self.tags))

        if self.target not in TARGETS:
            raise InvalidDescriptorError(f"unknown change target '{self.target}'")
        if self.action not in ACTIONS:
            raise InvalidDescriptorError(f"unknown change action '{self.action}'")
        unknown_tags = self.tags - TAGS
        if unknown_tags:
            raise InvalidDescriptorError(f"unknown change tags: {', '.join(sorted(unknown_tags))}")

        if self.action == "modified":
            if self.aspect is None or self.impact is None:
                raise InvalidDescriptorError(
                    "modified changes require both aspect and impact",
                    details={"target": self.target, "aspect": str(self.aspect), "impact": str(self.impact)},
                )
            if self.aspect not in ASPECTS:
                raise InvalidDescriptorError(f"unknown change aspect '{self.aspect}'")
            if self.impact not in IMPACTS:
                raise InvalidDescriptorError(f"unknown change impact '{self.impact}'")
        elif self.aspect is not None or self.impact is not None:
            raise InvalidDescriptorError(
                f"'{self.action}' changes carry no aspect or impact",
                details={"target": self.target, "aspect": str(self.aspect), "impact": str(self.impact)},
            )

    @classmethod
    def simple(
        cls,
        target: ChangeTarget,
        action: Literal["added", "removed", "renamed", "reordered"],
        tags: Iterable[str] = (),
    ) -> "ChangeDescriptor":
        return cls(target=target, action=action, tags=frozenset(tags))

    @classmethod
    def modified(
        cls,
        target: ChangeTarget,
        aspect: ChangeAspect,
        impact: ChangeImpact,
        tags: Iterable[str] = (),
    ) -> "ChangeDescriptor":
        return cls(target=target, action="modified", aspect=aspect, impact=impact, tags=frozenset(tags))

    def with_tags(self, *tags: str) -> "ChangeDescriptor":
        """Return a copy with ``tags`` added."""
        return replace(self, tags=self.tags | frozenset(tags))

    @property
    def key(self) -> str:
        """Grouping key: ``target:action`` or ``target:action:aspect``."""
        if self.aspect:
            return f"{self.target}:{self.action}:{self.aspect}"
        return f"{self.target}:{self.action}"

    def to_dict(self) -> dict:
        data: dict = {"target": self.target, "action": self.action}
        if self.action == "modified":
            data["aspect"] = self.aspect
            data["impact"] = self.impact
        data["tags"] = sorted(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ChangeDescriptor":
        return cls(
            target=data["target"],
            action=data["action"],
            aspect=data.get("aspect"),
            impact=data.get("impact"),
            tags=frozenset(data.get("tags", [])),
        )


@dataclass(frozen=True)
class ChangeContext:
    """Where a change sits in the tree and how it was detected."""

    is_nested: bool = False
    depth: int = 0
    ancestors: tuple[str, ...] = ()
    rename_confidence: Optional[float] = None
    modifier_change: Optional[str] = None
    old_type: Optional[str] = None
    new_type: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "is_nested": self.is_nested,
            "depth": self.depth,
            "ancestors": list(self.ancestors),
            "rename_confidence": self.rename_confidence,
            "modifier_change": self.modifier_change,
            "old_type": self.old_type,
            "new_type": self.new_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ChangeContext":
        confidence = data.get("rename_confidence")
        return cls(
            is_nested=bool(data.get("is_nested", False)),
            depth=int(data.get("depth", 0)),
            ancestors=tuple(data.get("ancestors", [])),
            rename_confidence=float(confidence) if confidence is not None else None,
            modifier_change=data.get("modifier_change"),
            old_type=data.get("old_type"),
            new_type=data.get("new_type"),
        )


@dataclass(frozen=True)
class ApiChange:
    """A single detected change between two module versions.

    Produced by the differ and never mutated afterwards. Nested changes roll
    up under their parent (e.g. a parameter type change under its function).
    """

    descriptor: ChangeDescriptor
    path: str
    node_kind: NodeKind
    explanation: str
    context: ChangeContext = field(default_factory=ChangeContext)
    old_location: Optional[SourceRange] = None
    new_location: Optional[SourceRange] = None
    old_node: Optional[DeclarationNode] = field(default=None, compare=False, repr=False)
    new_node: Optional[DeclarationNode] = field(default=None, compare=False, repr=False)
    nested_changes: tuple["ApiChange", ...] = ()
    parameter_analysis: Optional[dict] = field(default=None, compare=False)

    @property
    def action(self) -> str:
        return self.descriptor.action

    @property
    def target(self) -> str:
        return self.descriptor.target

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict. Nodes are referenced by path."""
        return {
            "descriptor": self.descriptor.to_dict(),
            "path": self.path,
            "node_kind": self.node_kind,
            "explanation": self.explanation,
            "context": self.context.to_dict(),
            "old_location": self.old_location.to_dict() if self.old_location else None,
            "new_location": self.new_location.to_dict() if self.new_location else None,
            "old_path": self.old_node.path if self.old_node else None,
            "new_path": self.new_node.path if self.new_node else None,
            "nested_changes": [c.to_dict() for c in self.nested_changes],
            "parameter_analysis": self.parameter_analysis,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ApiChange":
        """Reconstruct from JSON dict. Node references are not restored."""
        old_location = data.get("old_location")
        new_location = data.get("new_location")
        return cls(
            descriptor=ChangeDescriptor.from_dict(data["descriptor"]),
            path=data["path"],
            node_kind=data["node_kind"],
            explanation=data.get("explanation", ""),
            context=ChangeContext.from_dict(data.get("context", {})),
            old_location=SourceRange.from_dict(old_location) if old_location else None,
            new_location=SourceRange.from_dict(new_location) if new_location else None,
            nested_changes=tuple(cls.from_dict(c) for c in data.get("nested_changes", [])),
            parameter_analysis=data.get("parameter_analysis"),
        )


@dataclass(frozen=True)
class MatchedRule:
    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class ClassifiedChange:
    """An ApiChange with the release type a policy assigned to it."""

    change: ApiChange
    release_type: ReleaseType
    matched_rule: Optional[MatchedRule] = None

    @property
    def path(self) -> str:
        return self.change.path

    @property
    def descriptor(self) -> ChangeDescriptor:
        return self.change.descriptor

    def __str__(self) -> str:
        rule = f" [{self.matched_rule.name}]" if self.matched_rule else ""
        return f"{self.release_type.upper()}:{rule} {self.change.path} - {self.change.explanation}"

    def to_dict(self) -> dict:
        return {
            "change": self.change.to_dict(),
            "release_type": self.release_type,
            "matched_rule": (
                {"name": self.matched_rule.name, "description": self.matched_rule.description}
                if self.matched_rule
                else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ClassifiedChange":
        matched = data.get("matched_rule")
        return cls(
            change=ApiChange.from_dict(data["change"]),
            release_type=data["release_type"],
            matched_rule=MatchedRule(name=matched["name"], description=matched.get("description")) if matched else None,
        )
