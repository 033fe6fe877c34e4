"""semver-impact: classify API changes between two module versions into release types."""

__version__ = "0.1.0"

from .changes import ApiChange, ChangeDescriptor, ClassifiedChange
from .declarations import DeclarationNode, ModuleAnalysis, load_module
from .differ import DiffOptions, diff, flatten_changes
from .policy import SEMVER_DEFAULT, analyze, classify_changes, determine_overall_release, load_policy

__all__ = [
    "SEMVER_DEFAULT",
    "ApiChange",
    "ChangeDescriptor",
    "ClassifiedChange",
    "DeclarationNode",
    "DiffOptions",
    "ModuleAnalysis",
    "__version__",
    "analyze",
    "classify_changes",
    "determine_overall_release",
    "diff",
    "flatten_changes",
    "load_module",
    "load_policy",
]
