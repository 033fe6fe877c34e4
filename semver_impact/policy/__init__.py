"""Policy engine: ordered rules that map changes to release types."""

from .builder import PolicyBuilder, RuleBuilder, create_policy, rule
from .builtin import BUILTIN_POLICIES, SEMVER_DEFAULT, SEMVER_READ_ONLY, SEMVER_WRITE_ONLY, get_builtin_policy
from .engine import (
    AnalysisResult,
    analyze,
    classify_change,
    classify_changes,
    compile_policy,
    determine_overall_release,
)
from .load import PolicyConfig, load_config, load_policy
from .schema import CompiledPolicy, Policy, PolicyRule

__all__ = [
    "BUILTIN_POLICIES",
    "SEMVER_DEFAULT",
    "SEMVER_READ_ONLY",
    "SEMVER_WRITE_ONLY",
    "AnalysisResult",
    "CompiledPolicy",
    "Policy",
    "PolicyBuilder",
    "PolicyConfig",
    "PolicyRule",
    "RuleBuilder",
    "analyze",
    "classify_change",
    "classify_changes",
    "compile_policy",
    "create_policy",
    "determine_overall_release",
    "get_builtin_policy",
    "load_config",
    "load_policy",
    "rule",
]
