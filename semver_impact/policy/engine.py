from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from ..changes import ApiChange, ClassifiedChange, MatchedRule, ReleaseType, most_severe
from ..declarations import ModuleAnalysis
from ..differ import DiffOptions, diff, flatten_changes
from ..dsl.compiler import compile_pattern
from ..dsl.intent import parse_intent
from ..dsl.rules import DimensionalRule, DSLPolicy, IntentRule, PatternRule
from ..oracle import TypeOracle
from .builtin import SEMVER_DEFAULT
from .schema import AnyRule, CompiledPolicy, Policy, PolicyRule

logger = logging.getLogger(__name__)

PolicyLike = Union[Policy, DSLPolicy, CompiledPolicy]


def _rule_name(rule: AnyRule, index: int) -> str:
    if isinstance(rule, IntentRule):
        return rule.description or rule.expression
    if isinstance(rule, PatternRule):
        return rule.description or rule.template
    if isinstance(rule, DimensionalRule) and rule.description:
        return rule.description
    return f"rule-{index + 1}"


def _from_dimensional(rule: DimensionalRule, name: str, rationale: str | None) -> PolicyRule:
    return PolicyRule(
        name=name,
        returns=rule.returns,  # type: ignore[arg-type]
        action=rule.action,
        target=rule.target,
        aspect=rule.aspect,
        impact=rule.impact,
        node_kind=rule.node_kind,
        any_tags=rule.tags,
        not_tags=rule.not_tags,
        nested=rule.nested,
        rationale=rationale,
    )


def _compile_rule(rule: AnyRule, index: int) -> tuple[PolicyRule | None, str | None]:
    """Reduce one rule to a PolicyRule, or return the reason it cannot be."""
    if isinstance(rule, PolicyRule):
        return rule, None

    name = _rule_name(rule, index)
    current = rule

    if isinstance(current, IntentRule):
        parsed = parse_intent(current)
        if not parsed.success or parsed.pattern is None:
            return None, f"{name}: {'; '.join(parsed.errors) or 'unrecognized intent'}"
        current = parsed.pattern

    if isinstance(current, PatternRule):
        compiled = compile_pattern(current)
        if not compiled.success or compiled.dimensional is None:
            return None, f"{name}: {'; '.join(compiled.errors) or 'pattern did not compile'}"
        current = compiled.dimensional

    if isinstance(current, DimensionalRule):
        if current.returns is None:
            return None, f"{name}: rule has no release type"
        return _from_dimensional(current, name, rule.description), None

    return None, f"{name}: unsupported rule type {type(rule).__name__}"


def compile_policy(policy: PolicyLike) -> CompiledPolicy:
    """Reduce every rule of ``policy`` to a PolicyRule.

    Rules that fail to compile are skipped, logged, and listed on
    ``CompiledPolicy.errors``; rule order is otherwise preserved.
    """
    if isinstance(policy, CompiledPolicy):
        return policy

    rules: list[PolicyRule] = []
    errors: list[str] = []
    for index, rule in enumerate(policy.rules):
        compiled, error = _compile_rule(rule, index)
        if compiled is None:
            logger.warning("Policy '%s': skipping rule %s", policy.name, error)
            errors.append(error or f"rule-{index + 1}")
            continue
        rules.append(compiled)

    return CompiledPolicy(
        name=policy.name,
        rules=tuple(rules),
        default_release_type=policy.default_release_type,
        description=policy.description,
        errors=tuple(errors),
    )


def classify_change(change: ApiChange, policy: PolicyLike) -> ClassifiedChange:
    """Assign a release type to one change. The first matching rule wins."""
    compiled = compile_policy(policy)
    for rule in compiled.rules:
        if rule.matches(change):
            return ClassifiedChange(
                change=change,
                release_type=rule.returns,
                matched_rule=MatchedRule(name=rule.name, description=rule.rationale),
            )
    return ClassifiedChange(change=change, release_type=compiled.default_release_type)


def classify_changes(
    changes: Iterable[ApiChange],
    policy: PolicyLike,
    *,
    flatten: bool = True,
) -> list[ClassifiedChange]:
    """Classify a list of changes.

    Args:
        changes: Top-level changes as returned by ``diff``
        policy: Policy to apply; compiled once for the whole list
        flatten: Also classify nested changes (tagged ``is-nested-change``)

    Returns:
        One ClassifiedChange per change, in pre-order when flattened
    """
    compiled = compile_policy(policy)
    items = flatten_changes(changes) if flatten else list(changes)
    return [classify_change(change, compiled) for change in items]


def determine_overall_release(results: Iterable[ClassifiedChange]) -> ReleaseType:
    """The most severe release type among ``results`` (``none`` when empty)."""
    return most_severe(result.release_type for result in results)


@dataclass(frozen=True)
class AnalysisResult:
    policy: str
    release_type: ReleaseType
    changes: tuple[ApiChange, ...]
    results: tuple[ClassifiedChange, ...]
    policy_errors: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "policy": self.policy,
            "release_type": self.release_type,
            "changes": [change.to_dict() for change in self.changes],
            "results": [
                {
                    "path": result.path,
                    "release_type": result.release_type,
                    "rule": result.matched_rule.name if result.matched_rule else None,
                    "descriptor": result.descriptor.to_dict(),
                    "explanation": result.change.explanation,
                }
                for result in self.results
            ],
            "policy_errors": list(self.policy_errors),
        }


def analyze(
    old: ModuleAnalysis,
    new: ModuleAnalysis,
    policy: PolicyLike = SEMVER_DEFAULT,
    options: Optional[DiffOptions] = None,
    *,
    oracle: Optional[TypeOracle] = None,
) -> AnalysisResult:
    """Diff two module analyses and classify the result under ``policy``."""
    compiled = compile_policy(policy)
    changes = diff(old, new, options, oracle=oracle)
    results = classify_changes(changes, compiled)
    release_type = determine_overall_release(results)
    logger.info("%s: %d changes, overall release %s", compiled.name, len(results), release_type)
    return AnalysisResult(
        policy=compiled.name,
        release_type=release_type,
        changes=tuple(changes),
        results=tuple(results),
        policy_errors=compiled.errors,
    )
