"""Three-level rule DSL: intent, pattern and dimensional rules."""

from .builder import DimensionalRuleBuilder, ProgressiveRuleBuilder, create_progressive_policy, create_standard_policy
from .catalog import PATTERN_CATALOG, PatternMapping
from .compiler import compile_pattern, infer_constraints, is_valid_pattern_template
from .confidence import calculate_pattern_confidence
from .decompiler import decompile_to_pattern, find_best_pattern
from .intent import is_valid_intent_expression, parse_intent, suggest_intent_corrections
from .rules import (
    DimensionalRule,
    DSLPolicy,
    DSLRule,
    IntentParseResult,
    IntentRule,
    IntentSynthesisResult,
    PatternCompileResult,
    PatternDecompileResult,
    PatternRule,
    PatternVariable,
    rule_from_dict,
)
from .synthesizer import detect_common_pattern, generate_intent_expression, synthesize_intent

__all__ = [
    "PATTERN_CATALOG",
    "DSLPolicy",
    "DSLRule",
    "DimensionalRule",
    "DimensionalRuleBuilder",
    "IntentParseResult",
    "IntentRule",
    "IntentSynthesisResult",
    "PatternCompileResult",
    "PatternDecompileResult",
    "PatternMapping",
    "PatternRule",
    "PatternVariable",
    "ProgressiveRuleBuilder",
    "calculate_pattern_confidence",
    "compile_pattern",
    "create_progressive_policy",
    "create_standard_policy",
    "decompile_to_pattern",
    "detect_common_pattern",
    "find_best_pattern",
    "generate_intent_expression",
    "infer_constraints",
    "is_valid_intent_expression",
    "is_valid_pattern_template",
    "parse_intent",
    "rule_from_dict",
    "suggest_intent_corrections",
    "synthesize_intent",
]
