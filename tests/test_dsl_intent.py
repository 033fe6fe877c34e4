from __future__ import annotations

from semver_impact.dsl import (
    IntentRule,
    PatternVariable,
    compile_pattern,
    is_valid_intent_expression,
    parse_intent,
    suggest_intent_corrections,
)


def test_known_expression_maps_to_template() -> None:
    result = parse_intent(IntentRule("export removal is breaking", "major", "Removing exports breaks importers"))

    assert result.success
    assert result.pattern is not None
    assert result.pattern.template == "removed {target}"
    assert result.pattern.variables == (PatternVariable("target", "export", "target"),)
    assert result.pattern.returns == "major"
    assert result.pattern.description == "Removing exports breaks importers"


def test_expressions_are_normalized() -> None:
    result = parse_intent(IntentRule("  Member   Removal is BREAKING ", "major"))

    assert result.pattern is not None
    assert result.pattern.variable("target") == PatternVariable("target", "property", "target")


def test_nested_condition_becomes_conditional_template() -> None:
    result = parse_intent(IntentRule("export removal is breaking when nested", "major"))

    assert result.pattern is not None
    assert result.pattern.template == "removed {target} when {condition}"
    assert result.pattern.variable("condition") == PatternVariable("condition", "nested", "condition")

    compiled = compile_pattern(result.pattern)
    assert compiled.dimensional is not None
    assert compiled.dimensional.nested is True
    assert compiled.dimensional.action == ("removed",)


def test_unless_nested_compiles_to_top_level_only() -> None:
    result = parse_intent(IntentRule("safe addition unless nested", "none"))

    assert result.pattern is not None
    assert result.pattern.template == "added optional {target} unless {condition}"
    compiled = compile_pattern(result.pattern)
    assert compiled.dimensional is not None and compiled.dimensional.nested is False


def test_node_kind_condition_scopes_the_rule() -> None:
    result = parse_intent(IntentRule("type change is breaking when function", "major"))

    assert result.pattern is not None
    assert result.pattern.template == "modified {target} for {nodeKind}"
    compiled = compile_pattern(result.pattern)
    assert compiled.dimensional is not None and compiled.dimensional.node_kind == ("function",)


def test_invalid_conditions() -> None:
    unless_kind = parse_intent(IntentRule("rename is breaking unless function", "major"))
    unknown = parse_intent(IntentRule("breaking removal when tuesday", "major"))

    assert not unless_kind.success
    assert unless_kind.errors == ("'unless' supports only the 'nested' condition, got 'function'",)
    assert unknown.errors == ("Unknown condition 'tuesday'",)


def test_unknown_expression_suggests_corrections() -> None:
    result = parse_intent(IntentRule("export removel is breaking", "major"))

    assert not result.success
    assert "Unrecognized intent expression" in result.errors[0]
    assert result.suggestions[0] == "export removal is breaking"
    assert len(result.suggestions) <= 3


def test_invalid_release_type() -> None:
    result = parse_intent(IntentRule("breaking removal", "huge"))  # type: ignore[arg-type]

    assert result.errors == ("Unknown release type 'huge'",)


def test_expression_validation() -> None:
    assert is_valid_intent_expression("deprecation is patch")
    assert is_valid_intent_expression("deprecation is patch when members")
    assert is_valid_intent_expression("rename is breaking when class")
    assert not is_valid_intent_expression("rename is breaking unless class")
    assert not is_valid_intent_expression("everything is fine")


def test_suggestions_keep_the_condition() -> None:
    suggestions = suggest_intent_corrections("type narowing is breaking when nested")

    assert suggestions[0] == "type narrowing is breaking when nested"
    assert suggest_intent_corrections("   ") == []
