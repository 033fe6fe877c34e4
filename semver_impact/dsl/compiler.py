"""Pattern -> dimensional compilation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from ..changes import RELEASE_TYPES, TARGETS
from ..declarations import NODE_KINDS
from .rules import DimensionalRule, PatternCompileResult, PatternRule, PatternVariable

logger = logging.getLogger(__name__)

_ACTION_PREFIXES = ("added", "removed", "renamed", "reordered", "modified")

# (phrase, aspect, impact), checked in order; "undeprecated" before "deprecated".
_ASPECT_PHRASES = (
    (" type narrowed", "type", "narrowing"),
    (" type widened", "type", "widening"),
    (" made optional", "optionality", "widening"),
    (" made required", "optionality", "narrowing"),
    (" undeprecated", "deprecation", "narrowing"),
    (" deprecated", "deprecation", "widening"),
)

_NESTED_CONDITIONS = frozenset({"nested", "member", "nested member", "members"})


@dataclass
class ParsedTemplate:
    action: str | None = None
    aspect: str | None = None
    impact: str | None = None
    target: str | None = None
    node_kind: str | None = None
    tags: list[str] = field(default_factory=list)
    conditional: str | None = None  # "when" | "unless"
    condition: str | None = None
    nested: bool | None = None


def expand_template(template: str, variables: Sequence[PatternVariable]) -> str:
    """Substitute variable values into the template (``{pattern}`` first)."""
    expanded = template
    for variable in variables:
        if variable.name == "pattern":
            expanded = expanded.replace("{pattern}", variable.value)
    for variable in variables:
        if variable.name != "pattern":
            expanded = expanded.replace(f"{{{variable.name}}}", variable.value)
    return expanded


def parse_template(template: str, variables: Sequence[PatternVariable] = ()) -> ParsedTemplate:
    """Read the dimension values a template expresses."""
    parsed = ParsedTemplate()
    expanded = expand_template(template, variables)

    for prefix in _ACTION_PREFIXES:
        if expanded.startswith(prefix + " "):
            parsed.action = prefix
            break

    if expanded.startswith("added required "):
        parsed.tags.append("now-required")
    elif expanded.startswith("added optional "):
        parsed.tags.append("now-optional")
    elif expanded.startswith("removed optional "):
        parsed.tags.append("was-optional")

    for phrase, aspect, impact in _ASPECT_PHRASES:
        if phrase in expanded:
            parsed.action = parsed.action or "modified"
            parsed.aspect = aspect
            parsed.impact = impact
            break

    for variable in variables:
        if variable.type == "target" and parsed.target is None:
            parsed.target = variable.value
        elif variable.type == "nodeKind" and parsed.node_kind is None:
            parsed.node_kind = variable.value
        elif variable.type == "condition" and parsed.condition is None:
            parsed.condition = variable.value

    if " when " in template:
        parsed.conditional = "when"
    elif " unless " in template:
        parsed.conditional = "unless"

    if parsed.conditional:
        condition = (parsed.condition or "nested").strip().lower()
        if condition in _NESTED_CONDITIONS:
            parsed.nested = parsed.conditional == "when"
        elif condition in NODE_KINDS and parsed.conditional == "when":
            parsed.node_kind = parsed.node_kind or condition

    return parsed


def _dimensional_fields(pattern: PatternRule, parsed: ParsedTemplate) -> dict[str, Any]:
    fields: dict[str, Any] = {"returns": pattern.returns}
    if parsed.action:
        fields["action"] = (parsed.action,)
    if parsed.aspect:
        fields["aspect"] = (parsed.aspect,)
    if parsed.target:
        fields["target"] = (parsed.target,)
    if parsed.impact:
        fields["impact"] = (parsed.impact,)
    if parsed.node_kind:
        fields["node_kind"] = (parsed.node_kind,)
    if parsed.tags:
        fields["tags"] = tuple(parsed.tags)
    if parsed.nested is not None:
        fields["nested"] = parsed.nested
    return fields


def compile_pattern(pattern: PatternRule) -> PatternCompileResult:
    """Compile a pattern rule to a dimensional rule.

    Impact comes from the template wording only ("type narrowed" is
    narrowing); the rule's release type never implies an impact.

    Returns:
        PatternCompileResult; ``success`` is False with ``errors`` when the
        template names no dimension or a variable has an unknown value
    """
    if not isinstance(pattern, PatternRule):
        return PatternCompileResult(success=False, errors=("Expected a pattern rule",))

    errors: list[str] = []
    warnings: list[str] = []

    if pattern.returns not in RELEASE_TYPES:
        errors.append(f"Unknown release type '{pattern.returns}'")

    parsed = parse_template(pattern.template, pattern.variables)

    if parsed.target is not None and parsed.target not in TARGETS:
        errors.append(f"Unknown target '{parsed.target}'")
    if parsed.node_kind is not None and parsed.node_kind not in NODE_KINDS:
        errors.append(f"Unknown node kind '{parsed.node_kind}'")
    if parsed.conditional and parsed.nested is None:
        condition = (parsed.condition or "").strip().lower()
        if not (parsed.conditional == "when" and condition in NODE_KINDS):
            warnings.append(
                f"Condition '{parsed.conditional} {parsed.condition}' has no dimensional form and was ignored"
            )

    unresolved = re.findall(r"\{([^}]+)\}", expand_template(pattern.template, pattern.variables))
    for name in unresolved:
        if name not in ("target", "condition"):
            warnings.append(f"Placeholder '{{{name}}}' has no variable")

    if not (parsed.action or parsed.aspect or parsed.target):
        errors.append("Pattern must specify at least one dimension (action, aspect, or target)")

    if errors:
        return PatternCompileResult(success=False, errors=tuple(errors), warnings=tuple(warnings))

    for warning in warnings:
        logger.debug("%s: %s", pattern.template, warning)

    dimensional = DimensionalRule(description=pattern.description, **_dimensional_fields(pattern, parsed))
    return PatternCompileResult(success=True, dimensional=dimensional, warnings=tuple(warnings))


def infer_constraints(pattern: PatternRule) -> dict[str, Any]:
    """The dimension constraints a pattern implies, without validation."""
    return _dimensional_fields(pattern, parse_template(pattern.template, pattern.variables))


_TEMPLATE_SHAPES = (
    re.compile(r"^(added|removed|renamed|reordered|modified)\s+"),
    re.compile(r"\s+(type narrowed|type widened|made optional|made required|deprecated|undeprecated)$"),
    re.compile(r"\{[^}]+\}"),
    re.compile(r"when\s+\{[^}]+\}"),
    re.compile(r"unless\s+\{[^}]+\}"),
)


def is_valid_pattern_template(template: str) -> bool:
    return any(shape.search(template) for shape in _TEMPLATE_SHAPES)
