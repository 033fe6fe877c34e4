"""
Rule records for the three DSL levels and the results of moving between them.

- IntentRule: a natural-language expression ("export removal is breaking")
- PatternRule: a template with placeholders ("removed {target}")
- DimensionalRule: explicit value lists per change dimension

An empty dimension tuple is a wildcard; a non-empty one matches if any of
its values matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from ..changes import RELEASE_TYPES, ReleaseType

RuleLevel = Literal["intent", "pattern", "dimensional"]
VariableType = Literal["target", "nodeKind", "condition", "pattern"]

_DIMENSIONS = ("action", "target", "aspect", "impact", "node_kind", "tags", "not_tags")


def as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class IntentRule:
    expression: str
    returns: ReleaseType
    description: str | None = None

    level: RuleLevel = field(default="intent", init=False, repr=False)

    def to_dict(self) -> dict:
        return _drop_none(
            {"type": "intent", "expression": self.expression, "returns": self.returns, "description": self.description}
        )


@dataclass(frozen=True)
class PatternVariable:
    name: str
    value: str
    type: VariableType = "target"

    def to_dict(self) -> dict:
        return {"name": self.name, "value": self.value, "type": self.type}


@dataclass(frozen=True)
class PatternRule:
    template: str
    variables: tuple[PatternVariable, ...] = ()
    returns: ReleaseType = "none"
    description: str | None = None

    level: RuleLevel = field(default="pattern", init=False, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.variables, tuple):
            object.__setattr__(self, "variables", tuple(self.variables))

    def variable(self, name: str) -> PatternVariable | None:
        for variable in self.variables:
            if variable.name == name:
                return variable
        return None

    def variable_of_type(self, kind: VariableType) -> PatternVariable | None:
        for variable in self.variables:
            if variable.type == kind:
                return variable
        return None

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "type": "pattern",
                "template": self.template,
                "variables": [v.to_dict() for v in self.variables],
                "returns": self.returns,
                "description": self.description,
            }
        )


@dataclass(frozen=True)
class DimensionalRule:
    """Explicit dimension constraints.

    ``returns`` may be None only for rules loaded from incomplete input;
    transforms reject such rules instead of raising.
    """

    returns: ReleaseType | None = None
    action: tuple[str, ...] = ()
    target: tuple[str, ...] = ()
    aspect: tuple[str, ...] = ()
    impact: tuple[str, ...] = ()
    node_kind: tuple[str, ...] = ()
    tags: tuple[str, ...] = ()
    not_tags: tuple[str, ...] = ()
    nested: bool | None = None
    description: str | None = None

    level: RuleLevel = field(default="dimensional", init=False, repr=False)

    def __post_init__(self) -> None:
        for name in _DIMENSIONS:
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, as_tuple(value))

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"type": "dimensional"}
        for name in _DIMENSIONS:
            values = getattr(self, name)
            if values:
                data[name] = list(values)
        if self.nested is not None:
            data["nested"] = self.nested
        data["returns"] = self.returns
        if self.description is not None:
            data["description"] = self.description
        return data


DSLRule = Union[IntentRule, PatternRule, DimensionalRule]


@dataclass(frozen=True)
class DSLPolicy:
    name: str
    rules: tuple[DSLRule, ...] = ()
    default_release_type: ReleaseType = "none"
    description: str | None = None

    def to_dict(self) -> dict:
        return _drop_none(
            {
                "name": self.name,
                "description": self.description,
                "default": self.default_release_type,
                "rules": [r.to_dict() for r in self.rules],
            }
        )


@dataclass(frozen=True)
class IntentParseResult:
    success: bool
    pattern: PatternRule | None = None
    errors: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class PatternCompileResult:
    success: bool
    dimensional: DimensionalRule | None = None
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class PatternDecompileResult:
    success: bool
    confidence: float = 0.0
    pattern: PatternRule | None = None
    alternatives: tuple[PatternRule, ...] = ()


@dataclass(frozen=True)
class IntentSynthesisResult:
    success: bool
    confidence: float = 0.0
    intent: IntentRule | None = None
    alternatives: tuple[IntentRule, ...] = ()


def rule_from_dict(data: dict[str, Any]) -> DSLRule:
    """Build a rule from its dict form, dispatching on ``type``.

    ``type`` may be omitted when the shape is unambiguous: ``expression``
    means intent, ``template`` means pattern, anything else dimensional.
    A missing or unknown ``returns`` is kept as None on dimensional rules
    so that transforms can report it.

    Raises:
        ValueError: for an unknown ``type`` or a missing required field
    """
    kind = data.get("type")
    if kind is None:
        if "expression" in data:
            kind = "intent"
        elif "template" in data:
            kind = "pattern"
        else:
            kind = "dimensional"

    returns = data.get("returns")
    if returns is not None and returns not in RELEASE_TYPES:
        raise ValueError(f"unknown release type '{returns}'")
    description = data.get("description")

    if kind == "intent":
        if not data.get("expression") or returns is None:
            raise ValueError("intent rules need 'expression' and 'returns'")
        return IntentRule(expression=str(data["expression"]), returns=returns, description=description)

    if kind == "pattern":
        if not data.get("template") or returns is None:
            raise ValueError("pattern rules need 'template' and 'returns'")
        raw_vars = data.get("variables") or []
        if isinstance(raw_vars, dict):
            variables = tuple(infer_variable(name, str(value)) for name, value in raw_vars.items())
        else:
            variables = tuple(
                PatternVariable(name=str(v["name"]), value=str(v["value"]), type=v.get("type", "target"))
                for v in raw_vars
                if isinstance(v, dict)
            )
        return PatternRule(template=str(data["template"]), variables=variables, returns=returns, description=description)

    if kind == "dimensional":
        nested = data.get("nested")
        return DimensionalRule(
            returns=returns,
            action=as_tuple(data.get("action")),
            target=as_tuple(data.get("target")),
            aspect=as_tuple(data.get("aspect")),
            impact=as_tuple(data.get("impact")),
            node_kind=as_tuple(data.get("node_kind", data.get("nodeKind"))),
            tags=as_tuple(data.get("tags")),
            not_tags=as_tuple(data.get("not_tags", data.get("notTags"))),
            nested=bool(nested) if nested is not None else None,
            description=description,
        )

    raise ValueError(f"unknown rule type '{kind}'")


# Node kinds a bare pattern variable value is read as.
_NODE_KIND_VALUES = frozenset({"function", "class", "interface", "enum", "type-alias"})


def infer_variable(name: str, value: str) -> PatternVariable:
    """Guess a variable's type from its name and value."""
    if name == "nodeKind" or value in _NODE_KIND_VALUES:
        return PatternVariable(name, value, "nodeKind")
    if name == "condition":
        return PatternVariable(name, value, "condition")
    if name == "pattern":
        return PatternVariable(name, value, "pattern")
    return PatternVariable(name, value, "target")


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}
