from __future__ import annotations

import pytest

from semver_impact.dsl import (
    DimensionalRule,
    PatternRule,
    PatternVariable,
    calculate_pattern_confidence,
    decompile_to_pattern,
    find_best_pattern,
)
from semver_impact.dsl.decompiler import find_matching_patterns


def test_required_addition_prefers_the_specific_template() -> None:
    rule = DimensionalRule(returns="major", action=("added",), impact=("narrowing",))

    result = decompile_to_pattern(rule)

    assert result.success
    assert result.pattern is not None
    assert result.pattern.template == "added required {target}"
    assert result.confidence == pytest.approx(0.8)
    assert result.pattern.variables == (PatternVariable("target", "export", "target"),)
    assert result.pattern.returns == "major"
    assert result.alternatives == ()

    scores = {mapping.template: score for mapping, score in find_matching_patterns(rule)}
    assert scores["added {target}"] == pytest.approx(0.35)
    assert scores["added required {target}"] > scores["added {target}"]


def test_nested_removal_uses_the_conditional_template() -> None:
    rule = DimensionalRule(returns="major", action=("removed",), nested=True, description="nested-removal")

    result = decompile_to_pattern(rule)

    assert result.pattern is not None
    assert result.pattern.template == "removed {target} when {condition}"
    assert result.pattern.variable("condition") == PatternVariable("condition", "nested", "condition")
    assert result.pattern.description == "nested-removal"
    assert result.confidence == pytest.approx(0.59)


def test_optional_dimension_must_agree_when_set() -> None:
    undeprecated = DimensionalRule(
        returns="none", action=("modified",), aspect=("deprecation",), impact=("narrowing",)
    )

    assert find_best_pattern(undeprecated) == "{target} undeprecated"


def test_weak_match_falls_back_to_action_template() -> None:
    rule = DimensionalRule(returns="major", action=("modified",), aspect=("visibility",))

    result = decompile_to_pattern(rule)

    assert result.success
    assert result.confidence == pytest.approx(0.3)
    assert result.pattern is not None
    assert result.pattern.template == "modified {target}"
    assert result.pattern.description == "Generic modified pattern"


def test_rule_without_action_gets_generic_fallback() -> None:
    rule = DimensionalRule(returns="minor", target=("property",))

    result = decompile_to_pattern(rule)

    assert result.confidence == pytest.approx(0.2)
    assert result.pattern is not None
    assert result.pattern.variables == (PatternVariable("target", "property", "target"),)


def test_invalid_rules_do_not_decompile() -> None:
    missing_returns = DimensionalRule(action=("added",))

    result = decompile_to_pattern(missing_returns)

    assert not result.success
    assert result.confidence == 0.0
    assert find_best_pattern(missing_returns) is None
    assert not decompile_to_pattern(PatternRule("removed {target}", returns="major")).success  # type: ignore[arg-type]


def test_matches_are_unique_per_template() -> None:
    rule = DimensionalRule(returns="minor", action=("added",), impact=("widening",), tags=("now-optional",))

    templates = [mapping.template for mapping, _ in find_matching_patterns(rule)]

    assert templates == ["added optional {target}", "added {target}"]


def test_confidence_of_exact_decompilation_is_full() -> None:
    rule = DimensionalRule(returns="major", action=("added",), impact=("narrowing",))
    pattern = decompile_to_pattern(rule).pattern

    assert calculate_pattern_confidence(rule, pattern) == pytest.approx(1.0)


def test_confidence_gives_half_credit_for_mismatched_values() -> None:
    rule = DimensionalRule(returns="major", action=("removed",))
    pattern = PatternRule("added {target}", (PatternVariable("target", "export"),), "minor")

    assert calculate_pattern_confidence(rule, pattern) == pytest.approx(0.5)
    assert calculate_pattern_confidence(None, pattern) == 0.0


@pytest.mark.parametrize(
    "rule",
    [
        DimensionalRule(returns="major", action=("added",), impact=("narrowing",)),
        DimensionalRule(returns="major", action=("modified",), aspect=("type",), impact=("narrowing",)),
        DimensionalRule(returns="major", action=("removed",), nested=True),
        DimensionalRule(returns="major", action=("renamed",), target=("export",)),
        DimensionalRule(returns="patch", action=("modified",), aspect=("deprecation",), impact=("widening",)),
    ],
)
def test_catalog_decompilations_score_well(rule: DimensionalRule) -> None:
    result = decompile_to_pattern(rule)

    assert result.pattern is not None
    assert find_best_pattern(rule) == result.pattern.template
    assert 0.0 <= result.confidence <= 1.0
    assert calculate_pattern_confidence(rule, result.pattern) > 0.5
