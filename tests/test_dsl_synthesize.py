from __future__ import annotations

import pytest

from semver_impact.dsl import (
    DimensionalRule,
    IntentRule,
    PatternRule,
    PatternVariable,
    compile_pattern,
    decompile_to_pattern,
    detect_common_pattern,
    generate_intent_expression,
    parse_intent,
    synthesize_intent,
)


def _pattern(template: str, returns: str = "major", **variables: str) -> PatternRule:
    types = {"condition": "condition", "nodeKind": "nodeKind"}
    return PatternRule(
        template,
        tuple(PatternVariable(name, value, types.get(name, "target")) for name, value in variables.items()),
        returns,  # type: ignore[arg-type]
    )


def test_mapped_template_picks_constrained_expression() -> None:
    result = synthesize_intent(_pattern("removed {target}", target="export"))

    assert result.success
    assert result.confidence == pytest.approx(1.0)
    assert result.intent == IntentRule("breaking removal", "major")
    assert [a.expression for a in result.alternatives] == ["export removal is breaking"]


def test_constraints_select_member_removal() -> None:
    result = synthesize_intent(_pattern("removed {target}", target="property"))

    assert result.intent is not None
    assert result.intent.expression == "member removal is breaking"


def test_conditional_templates_reuse_base_mapping() -> None:
    result = synthesize_intent(_pattern("removed {target} when {condition}", target="property", condition="nested"))

    assert result.intent is not None
    assert result.intent.expression == "member removal is breaking when nested"
    assert result.confidence == pytest.approx(0.9)


def test_scoped_templates_are_discounted() -> None:
    result = synthesize_intent(_pattern("modified {target} for {nodeKind}", target="export", nodeKind="function"))

    assert result.intent is not None
    assert result.intent.expression == "type change is breaking when function"
    assert result.confidence == pytest.approx(0.45)


def test_unmapped_template_generates_expression() -> None:
    result = synthesize_intent(_pattern("added {target}", target="export"))

    assert result.success
    assert result.confidence == pytest.approx(0.3)
    assert result.intent is not None
    assert result.intent.expression == "breaking addition of export"


def test_generated_expression_prefixes_severity() -> None:
    assert generate_intent_expression(_pattern("{target} undeprecated", "patch", target="enum-member")) == (
        "patch enum member undeprecated"
    )
    assert generate_intent_expression(_pattern("{target} type widened", "minor", target="parameter")) == (
        "type widening is safe"
    )


def test_non_pattern_input_fails() -> None:
    assert not synthesize_intent(IntentRule("breaking removal", "major")).success  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("template", "variables", "family"),
    [
        ("removed {target}", {"target": "export"}, "removal-pattern"),
        ("added optional {target}", {"target": "parameter"}, "addition-pattern"),
        ("{target} type narrowed", {"target": "parameter"}, "type-change-pattern"),
        ("{target} made optional", {"target": "return-type"}, "optionality-pattern"),
        ("{target} deprecated", {"target": "export"}, "deprecation-pattern"),
        ("renamed {target}", {"target": "export"}, "rename-pattern"),
        ("reordered {target}", {"target": "parameter"}, "reorder-pattern"),
        ("removed {target} when {condition}", {"target": "property"}, "conditional-when-pattern"),
        ("{target} undeprecated", {"target": "export"}, None),
    ],
)
def test_detect_common_pattern(template: str, variables: dict[str, str], family: str | None) -> None:
    assert detect_common_pattern(_pattern(template, **variables)) == family


def test_intent_survives_a_trip_through_every_level() -> None:
    pattern = parse_intent(IntentRule("export removal is breaking", "major")).pattern
    assert pattern is not None
    dimensional = compile_pattern(pattern).dimensional
    assert dimensional == DimensionalRule(returns="major", action=("removed",), target=("export",))

    back = decompile_to_pattern(dimensional)
    assert back.pattern is not None
    assert back.pattern.template == "removed {target}"

    intent = synthesize_intent(back.pattern).intent
    assert intent is not None
    assert intent.expression in ("breaking removal", "export removal is breaking")
