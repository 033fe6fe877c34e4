"""
Dimensional -> pattern decompilation.

Every catalog entry whose dimensions the rule satisfies is scored, and the
best-scoring template wins. This is an exploratory search, unlike policy
matching where the first matching rule wins.

Score (at most 1.0):
    priority / 10 * 0.4
    + captured / populated dimensions * 0.3
    + 0.1 each when the entry requires an aspect or an impact
    + 0.05 each when the template reflects the rule's node kind or nesting
"""

from __future__ import annotations

from ..changes import RELEASE_TYPES
from .catalog import FALLBACK_TEMPLATES, PATTERN_CATALOG, PatternMapping
from .rules import DimensionalRule, PatternDecompileResult, PatternRule, PatternVariable

# Winners below this are replaced by the action-only fallback.
MIN_CONFIDENCE = 0.3
ALTERNATIVE_CONFIDENCE = 0.4
MAX_ALTERNATIVES = 3

ACTION_FALLBACK_CONFIDENCE = 0.3
GENERIC_FALLBACK_CONFIDENCE = 0.2


def matches_dimensions(rule: DimensionalRule, mapping: PatternMapping) -> bool:
    for dimension, values in mapping.required.items():
        rule_values = getattr(rule, dimension)
        if not rule_values or not set(values) & set(rule_values):
            return False

    if mapping.nested is not None and rule.nested != mapping.nested:
        return False

    for dimension, values in mapping.optional.items():
        rule_values = getattr(rule, dimension)
        if rule_values and not set(values) & set(rule_values):
            return False
    return True


def mapping_confidence(rule: DimensionalRule, mapping: PatternMapping) -> float:
    populated = sum(
        1 for values in (rule.action, rule.aspect, rule.impact, rule.target, rule.node_kind, rule.tags) if values
    )
    if rule.nested:
        populated += 1

    captured = len(mapping.required)
    if mapping.nested is not None and rule.nested == mapping.nested:
        captured += 1
    captured += sum(1 for dimension in mapping.optional if getattr(rule, dimension))

    score = mapping.priority / 10 * 0.4
    if populated:
        score += min(1.0, captured / populated) * 0.3
    if "aspect" in mapping.required:
        score += 0.1
    if "impact" in mapping.required:
        score += 0.1
    if "{nodeKind}" in mapping.template and rule.node_kind:
        score += 0.05
    if " when " in mapping.template and rule.nested:
        score += 0.05
    return min(1.0, score)


def find_matching_patterns(rule: DimensionalRule) -> list[tuple[PatternMapping, float]]:
    """Matching catalog entries by descending confidence, one per template."""
    scored = [(mapping, mapping_confidence(rule, mapping)) for mapping in PATTERN_CATALOG if matches_dimensions(rule, mapping)]
    scored.sort(key=lambda item: item[1], reverse=True)

    seen: set[str] = set()
    unique = []
    for mapping, confidence in scored:
        if mapping.template in seen:
            continue
        seen.add(mapping.template)
        unique.append((mapping, confidence))
    return unique


def extract_variables(rule: DimensionalRule, template: str) -> tuple[PatternVariable, ...]:
    variables = []
    if "{target}" in template:
        variables.append(PatternVariable("target", rule.target[0] if rule.target else "export", "target"))
    if rule.node_kind:
        variables.append(PatternVariable("nodeKind", rule.node_kind[0], "nodeKind"))
    if "when {condition}" in template and rule.nested:
        variables.append(PatternVariable("condition", "nested", "condition"))
    return tuple(variables)


def _pattern(rule: DimensionalRule, template: str, description: str) -> PatternRule:
    return PatternRule(
        template=template,
        variables=extract_variables(rule, template),
        returns=rule.returns,  # type: ignore[arg-type]
        description=rule.description or description,
    )


def _fallback(rule: DimensionalRule) -> PatternDecompileResult:
    if rule.action:
        action = rule.action[0]
        template = FALLBACK_TEMPLATES.get(action, "modified {target}")
        return PatternDecompileResult(
            success=True,
            confidence=ACTION_FALLBACK_CONFIDENCE,
            pattern=_pattern(rule, template, f"Generic {action} pattern"),
        )
    return PatternDecompileResult(
        success=True,
        confidence=GENERIC_FALLBACK_CONFIDENCE,
        pattern=_pattern(rule, "modified {target}", "Unspecified modification"),
    )


def decompile_to_pattern(rule: DimensionalRule) -> PatternDecompileResult:
    """Find the pattern template that best expresses a dimensional rule.

    Args:
        rule: Rule to decompile

    Returns:
        PatternDecompileResult with the winning pattern, its confidence and up
        to three alternatives scoring above 0.4. Rules that are not
        dimensional or have no valid ``returns`` give ``success=False`` and
        confidence 0.
    """
    if not isinstance(rule, DimensionalRule) or rule.returns not in RELEASE_TYPES:
        return PatternDecompileResult(success=False, confidence=0.0)

    matches = find_matching_patterns(rule)
    if not matches or matches[0][1] < MIN_CONFIDENCE:
        return _fallback(rule)

    (best, confidence), rest = matches[0], matches[1:]
    alternatives = tuple(
        _pattern(rule, mapping.template, mapping.description)
        for mapping, score in rest
        if score > ALTERNATIVE_CONFIDENCE
    )[:MAX_ALTERNATIVES]

    return PatternDecompileResult(
        success=True,
        confidence=confidence,
        pattern=_pattern(rule, best.template, best.description),
        alternatives=alternatives,
    )


def find_best_pattern(rule: DimensionalRule) -> str | None:
    """Template of the best decompilation, or None for invalid rules."""
    result = decompile_to_pattern(rule)
    if not result.success or result.pattern is None:
        return None
    return result.pattern.template
