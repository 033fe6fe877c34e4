"""Fluent construction of policy rules and policies."""

from __future__ import annotations

from ..changes import ReleaseType
from .schema import AnyRule, Policy, PolicyRule


class RuleBuilder:
    """Accumulates match conditions for one rule.

    Repeated calls to the same condition extend it rather than replace it.
    ``returns`` finishes the rule.
    """

    def __init__(self, name: str):
        self._name = name
        self._conditions: dict[str, list[str]] = {
            "action": [],
            "target": [],
            "aspect": [],
            "impact": [],
            "node_kind": [],
            "tags": [],
            "not_tags": [],
            "any_tags": [],
        }
        self._nested: bool | None = None
        self._rationale: str | None = None

    def action(self, *actions: str) -> "RuleBuilder":
        self._conditions["action"].extend(actions)
        return self

    def target(self, *targets: str) -> "RuleBuilder":
        self._conditions["target"].extend(targets)
        return self

    def aspect(self, *aspects: str) -> "RuleBuilder":
        self._conditions["aspect"].extend(aspects)
        return self

    def impact(self, *impacts: str) -> "RuleBuilder":
        self._conditions["impact"].extend(impacts)
        return self

    def node_kind(self, *kinds: str) -> "RuleBuilder":
        self._conditions["node_kind"].extend(kinds)
        return self

    def has_tag(self, *tags: str) -> "RuleBuilder":
        """Require every one of ``tags``."""
        self._conditions["tags"].extend(tags)
        return self

    def has_any_tag(self, *tags: str) -> "RuleBuilder":
        """Require at least one of ``tags``."""
        self._conditions["any_tags"].extend(tags)
        return self

    def not_tag(self, *tags: str) -> "RuleBuilder":
        self._conditions["not_tags"].extend(tags)
        return self

    def nested(self, is_nested: bool = True) -> "RuleBuilder":
        self._nested = is_nested
        return self

    def rationale(self, text: str) -> "RuleBuilder":
        self._rationale = text
        return self

    def returns(self, release_type: ReleaseType) -> PolicyRule:
        return PolicyRule(
            name=self._name,
            returns=release_type,
            nested=self._nested,
            rationale=self._rationale,
            **{key: tuple(values) for key, values in self._conditions.items()},
        )


def rule(name: str) -> RuleBuilder:
    return RuleBuilder(name)


class PolicyBuilder:
    def __init__(self, name: str, default_release_type: ReleaseType, description: str | None = None):
        self._name = name
        self._default = default_release_type
        self._description = description
        self._rules: list[AnyRule] = []

    def add_rule(self, policy_rule: AnyRule) -> "PolicyBuilder":
        """Append a rule; rules are evaluated in insertion order."""
        self._rules.append(policy_rule)
        return self

    def add_rules(self, *rules: AnyRule) -> "PolicyBuilder":
        self._rules.extend(rules)
        return self

    def build(self) -> Policy:
        return Policy(
            name=self._name,
            rules=tuple(self._rules),
            default_release_type=self._default,
            description=self._description,
        )


def create_policy(name: str, default_release_type: ReleaseType, description: str | None = None) -> PolicyBuilder:
    return PolicyBuilder(name, default_release_type, description)
