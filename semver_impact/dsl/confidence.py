from __future__ import annotations

from .compiler import parse_template
from .rules import DimensionalRule, PatternRule

# Weight of each dimension a rule may constrain.
WEIGHTS = {
    "action": 3.0,
    "aspect": 2.5,
    "target": 2.0,
    "impact": 2.0,
    "node_kind": 1.5,
    "nested": 1.0,
    "returns": 2.0,
    "description": 0.5,
}


def infer_impact(pattern: PatternRule) -> str:
    """Impact a pattern implies, from its wording, then its release type."""
    parsed = parse_template(pattern.template, pattern.variables)
    if parsed.impact:
        return parsed.impact
    if "now-required" in parsed.tags:
        return "narrowing"
    if "now-optional" in parsed.tags or "was-optional" in parsed.tags:
        return "widening"
    if parsed.action == "removed":
        return "narrowing"
    if parsed.action == "added":
        return "narrowing" if pattern.returns == "major" else "widening"
    return {"major": "narrowing", "minor": "widening", "patch": "equivalent", "none": "equivalent"}.get(
        pattern.returns, "unrelated"
    )


def calculate_pattern_confidence(rule: DimensionalRule | None, pattern: PatternRule | None) -> float:
    """Score how faithfully ``pattern`` expresses ``rule``, in [0, 1].

    Only dimensions the rule constrains count. A matching value earns the
    dimension's full weight; a value the pattern states but that the rule
    does not list earns half.
    """
    if not isinstance(rule, DimensionalRule) or not isinstance(pattern, PatternRule):
        return 0.0

    parsed = parse_template(pattern.template, pattern.variables)
    score = 0.0
    max_score = 0.0

    def weigh(name: str, allowed: tuple[str, ...], value: str | None) -> None:
        nonlocal score, max_score
        if not allowed:
            return
        max_score += WEIGHTS[name]
        if value is None:
            return
        score += WEIGHTS[name] if value in allowed else WEIGHTS[name] / 2

    target_var = pattern.variable_of_type("target")
    node_kind_var = pattern.variable_of_type("nodeKind")

    weigh("action", rule.action, parsed.action)
    weigh("aspect", rule.aspect, parsed.aspect)
    weigh("target", rule.target, target_var.value if target_var else None)
    weigh("impact", rule.impact, infer_impact(pattern))
    weigh("node_kind", rule.node_kind, node_kind_var.value if node_kind_var else None)

    if rule.nested is not None:
        max_score += WEIGHTS["nested"]
        if rule.nested == (" when " in pattern.template):
            score += WEIGHTS["nested"]

    if rule.returns and pattern.returns:
        max_score += WEIGHTS["returns"]
        if rule.returns == pattern.returns:
            score += WEIGHTS["returns"]
        else:
            score += WEIGHTS["returns"] / 2

    if rule.description and pattern.description:
        max_score += WEIGHTS["description"]
        if rule.description == pattern.description:
            score += WEIGHTS["description"]
        elif (
            rule.description.lower() in pattern.description.lower()
            or pattern.description.lower() in rule.description.lower()
        ):
            score += WEIGHTS["description"] / 2

    if max_score == 0:
        return 0.0
    return max(0.0, min(1.0, score / max_score))
