from __future__ import annotations

import logging

import pytest

from semver_impact.dsl import (
    DimensionalRule,
    IntentRule,
    PatternRule,
    ProgressiveRuleBuilder,
    create_progressive_policy,
    create_standard_policy,
)


def _mixed() -> ProgressiveRuleBuilder:
    return (
        create_progressive_policy()
        .intent("export removal is breaking", "major")
        .pattern("added optional {target}", {"target": "parameter"}, "none")
        .dimensional("nested-removal")
        .action("removed")
        .nested()
        .returns("major")
    )


def test_build_parses_intents_into_patterns() -> None:
    policy = _mixed().build("mixed", "minor", "Mixed levels")

    assert policy.name == "mixed"
    assert policy.default_release_type == "minor"
    assert [rule.level for rule in policy.rules] == ["pattern", "pattern", "dimensional"]
    assert policy.to_dict()["rules"][0]["template"] == "removed {target}"


def test_transform_down_to_dimensional() -> None:
    builder = _mixed().transform("dimensional")

    rules = builder.rules
    assert all(isinstance(rule, DimensionalRule) for rule in rules)
    assert rules[0] == DimensionalRule(returns="major", action=("removed",), target=("export",))
    assert rules[1].tags == ("now-optional",)  # type: ignore[union-attr]
    assert rules[2].description == "nested-removal"  # type: ignore[union-attr]


def test_transform_up_to_intent() -> None:
    rules = _mixed().transform("intent").rules

    assert all(isinstance(rule, IntentRule) for rule in rules)
    assert rules[0] == IntentRule("export removal is breaking", "major")
    assert rules[1].expression == "safe addition"  # type: ignore[union-attr]
    assert rules[2].expression == "breaking removal when nested"  # type: ignore[union-attr]
    assert rules[2].description == "nested-removal"  # type: ignore[union-attr]


def test_failed_transforms_keep_the_rule(caplog: pytest.LogCaptureFixture) -> None:
    builder = create_progressive_policy().intent("everything is fine", "none")

    with caplog.at_level(logging.WARNING, logger="semver_impact"):
        rules = builder.transform("dimensional").rules

    assert rules == (IntentRule("everything is fine", "none"),)
    assert "Failed to parse intent 'everything is fine'" in caplog.text


def test_transform_rejects_unknown_level() -> None:
    with pytest.raises(ValueError):
        create_progressive_policy().transform("regex")  # type: ignore[arg-type]


def test_clone_and_clear_are_independent() -> None:
    original = _mixed()
    copy = original.clone().clear()

    assert len(original.rules) == 3
    assert copy.rules == ()

    copy.add_rule(PatternRule("renamed {target}", returns="major"))
    assert len(original.rules) == 3


def test_standard_policy() -> None:
    policy = create_standard_policy("standard")

    assert len(policy.rules) == 6
    assert all(isinstance(rule, PatternRule) for rule in policy.rules)
    assert policy.default_release_type == "none"

    empty = create_standard_policy(
        "empty", breaking_removals=False, safe_additions=False, deprecations=False, type_narrowing=False
    )
    assert empty.rules == ()
