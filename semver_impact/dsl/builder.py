"""Fluent construction of mixed-level DSL policies."""

from __future__ import annotations

import logging

from ..changes import ReleaseType
from .compiler import compile_pattern
from .decompiler import decompile_to_pattern
from .intent import parse_intent
from .rules import (
    DimensionalRule,
    DSLPolicy,
    DSLRule,
    IntentRule,
    PatternRule,
    RuleLevel,
    infer_variable,
)
from .synthesizer import synthesize_intent

logger = logging.getLogger(__name__)

_LEVEL_ORDER = {"intent": 0, "pattern": 1, "dimensional": 2}


class DimensionalRuleBuilder:
    """Builds one dimensional rule and hands it back to its parent builder."""

    def __init__(self, name: str, parent: "ProgressiveRuleBuilder"):
        self._parent = parent
        self._fields: dict = {"description": name}

    def action(self, *actions: str) -> "DimensionalRuleBuilder":
        self._fields["action"] = actions
        return self

    def target(self, *targets: str) -> "DimensionalRuleBuilder":
        self._fields["target"] = targets
        return self

    def aspect(self, *aspects: str) -> "DimensionalRuleBuilder":
        self._fields["aspect"] = aspects
        return self

    def impact(self, *impacts: str) -> "DimensionalRuleBuilder":
        self._fields["impact"] = impacts
        return self

    def node_kind(self, *kinds: str) -> "DimensionalRuleBuilder":
        self._fields["node_kind"] = kinds
        return self

    def has_tag(self, *tags: str) -> "DimensionalRuleBuilder":
        self._fields["tags"] = tags
        return self

    def not_tag(self, *tags: str) -> "DimensionalRuleBuilder":
        self._fields["not_tags"] = tags
        return self

    def nested(self, value: bool = True) -> "DimensionalRuleBuilder":
        self._fields["nested"] = value
        return self

    def returns(self, release_type: ReleaseType) -> "ProgressiveRuleBuilder":
        self._parent.add_rule(DimensionalRule(returns=release_type, **self._fields))
        return self._parent


class ProgressiveRuleBuilder:
    """Accumulates intent, pattern and dimensional rules in order.

    Example:
        policy = (
            ProgressiveRuleBuilder()
            .intent("export removal is breaking", "major")
            .pattern("added optional {target}", {"target": "parameter"}, "none")
            .dimensional("nested-removal").action("removed").nested().returns("major")
            .build("my-policy", "none")
        )
    """

    def __init__(self) -> None:
        self._rules: list[DSLRule] = []

    def intent(self, expression: str, returns: ReleaseType, description: str | None = None) -> "ProgressiveRuleBuilder":
        self._rules.append(IntentRule(expression, returns, description))
        return self

    def pattern(
        self,
        template: str,
        variables: dict[str, str],
        returns: ReleaseType,
        description: str | None = None,
    ) -> "ProgressiveRuleBuilder":
        pattern_vars = tuple(infer_variable(name, str(value)) for name, value in variables.items())
        self._rules.append(PatternRule(template, pattern_vars, returns, description))
        return self

    def dimensional(self, name: str) -> DimensionalRuleBuilder:
        return DimensionalRuleBuilder(name, self)

    def add_rule(self, rule: DSLRule) -> "ProgressiveRuleBuilder":
        self._rules.append(rule)
        return self

    @property
    def rules(self) -> tuple[DSLRule, ...]:
        return tuple(self._rules)

    def clear(self) -> "ProgressiveRuleBuilder":
        self._rules = []
        return self

    def clone(self) -> "ProgressiveRuleBuilder":
        cloned = ProgressiveRuleBuilder()
        cloned._rules = list(self._rules)
        return cloned

    def transform(self, target_level: RuleLevel) -> "ProgressiveRuleBuilder":
        """Move every rule to ``target_level``.

        Rules that cannot be transformed are kept at their current level and
        a warning is logged.
        """
        if target_level not in _LEVEL_ORDER:
            raise ValueError(f"unknown rule level '{target_level}'")
        self._rules = [_transform_rule(rule, target_level) for rule in self._rules]
        return self

    def build(self, name: str, default_release_type: ReleaseType = "none", description: str | None = None) -> DSLPolicy:
        """Build a policy. Intent rules are parsed to patterns where possible."""
        rules: list[DSLRule] = []
        for rule in self._rules:
            if isinstance(rule, IntentRule):
                result = parse_intent(rule)
                rules.append(result.pattern if result.success and result.pattern else rule)
            else:
                rules.append(rule)
        return DSLPolicy(name=name, rules=tuple(rules), default_release_type=default_release_type, description=description)


def _transform_rule(rule: DSLRule, target_level: RuleLevel) -> DSLRule:
    current = rule
    while _LEVEL_ORDER[current.level] != _LEVEL_ORDER[target_level]:
        step = _step_down(current) if _LEVEL_ORDER[current.level] < _LEVEL_ORDER[target_level] else _step_up(current)
        if step is None:
            return rule
        current = step
    return current


def _step_down(rule: DSLRule) -> DSLRule | None:
    if isinstance(rule, IntentRule):
        parsed = parse_intent(rule)
        if parsed.success and parsed.pattern:
            return parsed.pattern
        logger.warning("Failed to parse intent '%s': %s", rule.expression, ", ".join(parsed.errors))
        return None
    if isinstance(rule, PatternRule):
        compiled = compile_pattern(rule)
        if compiled.success and compiled.dimensional:
            return compiled.dimensional
        logger.warning("Failed to compile pattern '%s': %s", rule.template, ", ".join(compiled.errors))
        return None
    return None


def _step_up(rule: DSLRule) -> DSLRule | None:
    if isinstance(rule, DimensionalRule):
        decompiled = decompile_to_pattern(rule)
        if decompiled.success and decompiled.pattern:
            return decompiled.pattern
        logger.warning("Cannot decompile dimensional rule '%s'", rule.description or "<unnamed>")
        return None
    if isinstance(rule, PatternRule):
        synthesized = synthesize_intent(rule)
        if synthesized.success and synthesized.intent:
            return synthesized.intent
        logger.warning("Cannot synthesize an intent for pattern '%s'", rule.template)
        return None
    return None


def create_progressive_policy() -> ProgressiveRuleBuilder:
    return ProgressiveRuleBuilder()


def create_standard_policy(
    name: str,
    *,
    breaking_removals: bool = True,
    safe_additions: bool = True,
    deprecations: bool = True,
    type_narrowing: bool = True,
    default_release_type: ReleaseType = "none",
) -> DSLPolicy:
    """A ready-made policy assembled from common intents."""
    builder = create_progressive_policy()

    if breaking_removals:
        builder.intent("export removal is breaking", "major")
        builder.intent("member removal is breaking", "major")

    if safe_additions:
        builder.intent("optional addition is safe", "none")

    if deprecations:
        builder.intent("deprecation is patch", "patch")

    if type_narrowing:
        builder.intent("type narrowing is breaking", "major")
        builder.intent("type widening is safe", "none")

    return builder.build(name, default_release_type)
