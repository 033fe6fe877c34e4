"""
Pattern -> intent synthesis.

Known templates map to intent expressions, some only for particular
variable values. Conditional templates reuse the mapping of their base
template at reduced confidence; anything else gets a generated phrase.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence

from .rules import IntentRule, IntentSynthesisResult, PatternRule, PatternVariable


@dataclass(frozen=True)
class IntentMapping:
    expression: str
    confidence: float
    constraints: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


def _m(expression: str, confidence: float, **constraints: str) -> IntentMapping:
    return IntentMapping(expression, confidence, MappingProxyType({k: (v,) for k, v in constraints.items()}))


PATTERN_TO_INTENT: Mapping[str, tuple[IntentMapping, ...]] = MappingProxyType(
    {
        "removed {target}": (
            _m("breaking removal", 1.0, target="export"),
            _m("export removal is breaking", 1.0, target="export"),
            _m("member removal is breaking", 1.0, target="property"),
            _m("breaking removal", 0.8),
        ),
        "removed optional {target}": (
            _m("safe removal", 1.0, target="parameter"),
            _m("optional addition is safe", 0.7),
        ),
        "added optional {target}": (
            _m("safe addition", 1.0, target="parameter"),
            _m("optional addition is safe", 1.0, target="parameter"),
            _m("safe addition", 0.8),
        ),
        "added required {target}": (
            _m("required addition is breaking", 1.0, target="parameter"),
            _m("required addition is breaking", 0.9),
        ),
        "added {target}": (),
        "{target} type narrowed": (
            _m("type narrowing is breaking", 1.0, target="parameter"),
            _m("type narrowing is breaking", 0.9),
        ),
        "{target} type widened": (
            _m("type widening is safe", 1.0, target="parameter"),
            _m("type widening is safe", 0.9),
        ),
        "modified {target}": (
            _m("type change is breaking", 0.9, target="export"),
            _m("type change is breaking", 0.7),
        ),
        "{target} made optional": (
            _m("making optional is breaking", 1.0, target="return-type"),
            _m("making optional is breaking", 0.9),
        ),
        "{target} made required": (
            _m("making required is breaking", 1.0, target="parameter"),
            _m("making required is breaking", 0.9),
        ),
        "{target} deprecated": (
            _m("deprecation is patch", 1.0, target="export"),
            _m("deprecation is patch", 0.95),
        ),
        "renamed {target}": (
            _m("rename is breaking", 1.0, target="export"),
            _m("rename is breaking", 0.95),
        ),
        "reordered {target}": (
            _m("reorder is breaking", 1.0, target="parameter"),
            _m("reorder is breaking", 0.9),
        ),
        "{target} undeprecated": (),
    }
)

CONDITIONAL_FACTOR = 0.9
SCOPED_FACTOR = 0.5
GENERATED_CONFIDENCE = 0.3

_SEVERITY_WORDS = {"major": "breaking", "minor": "minor", "patch": "patch", "none": "safe"}
_SEVERITY_PREFIX = re.compile(r"^(breaking|safe|minor|patch)\s+(.)", re.IGNORECASE)
_CONDITIONAL = re.compile(r"^(?P<base>.+?) (?P<keyword>when|unless) \{condition\}$")
_SCOPED = re.compile(r"^(?P<base>.+?) for \{nodeKind\}$")


def matches_constraints(variables: Sequence[PatternVariable], constraints: Mapping[str, tuple[str, ...]]) -> bool:
    values = {v.name: v.value for v in variables}
    for name, allowed in constraints.items():
        if values.get(name) not in allowed:
            return False
    return True


def _matching_intents(template: str, variables: Sequence[PatternVariable]) -> list[IntentMapping]:
    candidates = [m for m in PATTERN_TO_INTENT.get(template, ()) if matches_constraints(variables, m.constraints)]
    # sorted() is stable: equal confidence keeps mapping order.
    return sorted(candidates, key=lambda m: m.confidence, reverse=True)


def _split_conditional(pattern: PatternRule) -> tuple[str, str, str, float] | None:
    """(base template, keyword, condition value, factor) for conditional templates."""
    template = pattern.template
    base_var = pattern.variable("pattern")

    match = _CONDITIONAL.match(template)
    if match:
        condition = pattern.variable("condition")
        base = match.group("base")
        if base == "{pattern}":
            if base_var is None:
                return None
            base = base_var.value
        return base, match.group("keyword"), condition.value if condition else "nested", CONDITIONAL_FACTOR

    match = _SCOPED.match(template)
    if match:
        node_kind = pattern.variable("nodeKind")
        base = match.group("base")
        if base == "{pattern}":
            if base_var is None:
                return None
            base = base_var.value
        if node_kind is None:
            return None
        return base, "when", node_kind.value, SCOPED_FACTOR
    return None


def generate_intent_expression(pattern: PatternRule) -> str:
    """A readable expression for any pattern.

    Known templates use their first mapped expression; others are phrased
    from the template with the release type as a severity word.
    """
    mappings = PATTERN_TO_INTENT.get(pattern.template, ())
    if mappings:
        for mapping in mappings:
            if matches_constraints(pattern.variables, mapping.constraints):
                return mapping.expression
        return mappings[0].expression

    expression = pattern.template
    for variable in pattern.variables:
        readable = variable.value.replace("-", " ").replace("_", " ").lower()
        expression = expression.replace(f"{{{variable.name}}}", readable)

    severity = _SEVERITY_WORDS.get(pattern.returns, "")
    if severity and severity not in expression:
        if "removed" in expression:
            expression = expression.replace("removed", f"{severity} removal of", 1)
        elif "added" in expression:
            expression = expression.replace("added", f"{severity} addition of", 1)
        elif "modified" in expression:
            expression = expression.replace("modified", f"{severity} change to", 1)
        else:
            expression = f"{severity} {expression}"

    expression = re.sub(r"\s+", " ", expression).strip()
    return _SEVERITY_PREFIX.sub(lambda m: f"{m.group(1)} {m.group(2).lower()}", expression)


def synthesize_intent(pattern: PatternRule) -> IntentSynthesisResult:
    """Turn a pattern rule into an intent rule.

    Returns:
        IntentSynthesisResult. Mapped templates score their mapping
        confidence (reduced for conditions); generated phrases score 0.3.
    """
    if not isinstance(pattern, PatternRule):
        return IntentSynthesisResult(success=False)

    conditional = _split_conditional(pattern)
    if conditional is not None:
        base, keyword, condition, factor = conditional
        intents = _matching_intents(base, pattern.variables)
        if intents:
            best = intents[0]
            return IntentSynthesisResult(
                success=True,
                confidence=best.confidence * factor,
                intent=IntentRule(f"{best.expression} {keyword} {condition}", pattern.returns, pattern.description),
            )

    if not PATTERN_TO_INTENT.get(pattern.template):
        expression = generate_intent_expression(pattern)
        if not expression:
            return IntentSynthesisResult(success=False)
        return IntentSynthesisResult(
            success=True,
            confidence=GENERATED_CONFIDENCE,
            intent=IntentRule(expression, pattern.returns, pattern.description),
        )

    intents = _matching_intents(pattern.template, pattern.variables)
    if not intents:
        return IntentSynthesisResult(success=False)

    best, rest = intents[0], intents[1:]
    alternatives: list[IntentRule] = []
    for mapping in rest:
        if mapping.expression == best.expression or any(a.expression == mapping.expression for a in alternatives):
            continue
        alternatives.append(IntentRule(mapping.expression, pattern.returns, pattern.description))

    return IntentSynthesisResult(
        success=True,
        confidence=best.confidence,
        intent=IntentRule(best.expression, pattern.returns, pattern.description),
        alternatives=tuple(alternatives[:3]),
    )


def detect_common_pattern(pattern: PatternRule) -> str | None:
    """Name the family a pattern belongs to ("removal-pattern", ...)."""
    for mapping in PATTERN_TO_INTENT.get(pattern.template, ()):
        if not matches_constraints(pattern.variables, mapping.constraints):
            continue
        expression = mapping.expression
        if "removal" in expression:
            return "removal-pattern"
        if "addition" in expression:
            return "addition-pattern"
        if "type" in expression:
            return "type-change-pattern"
        if "optional" in expression or "required" in expression:
            return "optionality-pattern"
        if "deprecation" in expression:
            return "deprecation-pattern"
        if "rename" in expression:
            return "rename-pattern"
        if "reorder" in expression:
            return "reorder-pattern"

    template = pattern.template
    if " when " in template:
        return "conditional-when-pattern"
    if " unless " in template:
        return "conditional-unless-pattern"
    if " for " in template:
        return "scoped-pattern"
    if " and " in template:
        return "compound-and-pattern"
    if " or " in template:
        return "compound-or-pattern"
    return None
