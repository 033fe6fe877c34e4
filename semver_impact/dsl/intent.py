"""
Intent -> pattern parsing.

An intent expression is one of a fixed set of phrases, optionally followed
by ``when <condition>`` or ``unless <condition>``. Conditions are
``nested`` (member-level changes) or, for ``when``, a node kind.
"""

from __future__ import annotations

import re
from types import MappingProxyType

from ..changes import RELEASE_TYPES
from ..declarations import NODE_KINDS
from ..similarity import edit_distance
from .rules import IntentParseResult, IntentRule, PatternRule, PatternVariable

# expression -> (template, target)
INTENT_PATTERNS = MappingProxyType(
    {
        "breaking removal": ("removed {target}", "export"),
        "export removal is breaking": ("removed {target}", "export"),
        "member removal is breaking": ("removed {target}", "property"),
        "safe removal": ("removed optional {target}", "parameter"),
        "safe addition": ("added optional {target}", "parameter"),
        "optional addition is safe": ("added optional {target}", "parameter"),
        "required addition is breaking": ("added required {target}", "parameter"),
        "type narrowing is breaking": ("{target} type narrowed", "parameter"),
        "type widening is safe": ("{target} type widened", "parameter"),
        "type change is breaking": ("modified {target}", "export"),
        "making optional is breaking": ("{target} made optional", "return-type"),
        "making required is breaking": ("{target} made required", "parameter"),
        "deprecation is patch": ("{target} deprecated", "export"),
        "rename is breaking": ("renamed {target}", "export"),
        "reorder is breaking": ("reordered {target}", "parameter"),
    }
)

NESTED_CONDITIONS = frozenset({"nested", "member", "members", "nested member"})

_CONDITIONAL = re.compile(r"^(?P<base>.+?)\s+(?P<keyword>when|unless)\s+(?P<condition>.+)$")
_WHITESPACE = re.compile(r"\s+")


def _normalize(expression: str) -> str:
    return _WHITESPACE.sub(" ", expression).strip().lower()


def _split(expression: str) -> tuple[str, str | None, str | None]:
    """Split into (base, keyword, condition)."""
    normalized = _normalize(expression)
    match = _CONDITIONAL.match(normalized)
    if match is None:
        return normalized, None, None
    return match.group("base"), match.group("keyword"), match.group("condition")


def _condition_error(keyword: str, condition: str) -> str | None:
    if condition in NESTED_CONDITIONS:
        return None
    if keyword == "when" and condition in NODE_KINDS:
        return None
    if keyword == "unless":
        return f"'unless' supports only the 'nested' condition, got '{condition}'"
    return f"Unknown condition '{condition}'"


def is_valid_intent_expression(expression: str) -> bool:
    base, keyword, condition = _split(expression)
    if base not in INTENT_PATTERNS:
        return False
    if keyword is None:
        return True
    return _condition_error(keyword, condition or "") is None


def suggest_intent_corrections(expression: str, limit: int = 3) -> list[str]:
    """Known expressions closest to ``expression`` by edit distance.

    A trailing condition is kept and re-attached to each suggestion.
    """
    base, keyword, condition = _split(expression)
    if not base:
        return []

    ranked = sorted(INTENT_PATTERNS, key=lambda known: (edit_distance(base, known), known))
    cutoff = max(3, len(base) // 2)
    suggestions = [known for known in ranked if edit_distance(base, known) <= cutoff]

    # Keyword overlap catches reworded phrases edit distance misses.
    words = set(base.split())
    for known in ranked:
        if known not in suggestions and len(words & set(known.split())) >= 2:
            suggestions.append(known)

    if keyword:
        suggestions = [f"{s} {keyword} {condition}" for s in suggestions]
    return suggestions[:limit]


def parse_intent(rule: IntentRule) -> IntentParseResult:
    """Translate an intent rule into a pattern rule.

    Returns:
        IntentParseResult; on failure ``errors`` explains why and
        ``suggestions`` lists close known expressions
    """
    if not isinstance(rule, IntentRule):
        return IntentParseResult(success=False, errors=("Expected an intent rule",))
    if rule.returns not in RELEASE_TYPES:
        return IntentParseResult(success=False, errors=(f"Unknown release type '{rule.returns}'",))

    base, keyword, condition = _split(rule.expression)
    mapped = INTENT_PATTERNS.get(base)
    if mapped is None:
        return IntentParseResult(
            success=False,
            errors=(f"Unrecognized intent expression '{rule.expression}'",),
            suggestions=tuple(suggest_intent_corrections(rule.expression)),
        )

    template, target = mapped
    variables = [PatternVariable("target", target, "target")]

    if keyword is not None:
        error = _condition_error(keyword, condition or "")
        if error:
            return IntentParseResult(success=False, errors=(error,))
        if condition in NESTED_CONDITIONS:
            template = f"{template} {keyword} {{condition}}"
            variables.append(PatternVariable("condition", "nested", "condition"))
        else:
            template = f"{template} for {{nodeKind}}"
            variables.append(PatternVariable("nodeKind", condition or "", "nodeKind"))

    return IntentParseResult(
        success=True,
        pattern=PatternRule(
            template=template,
            variables=tuple(variables),
            returns=rule.returns,
            description=rule.description,
        ),
    )
