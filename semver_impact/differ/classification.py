"""
Classification of a matched old/new declaration pair.

Checks run in a fixed order and the first one that finds something wins:
parameter reordering, type parameters, enum values, the type or signature,
modifiers and heritage clauses, deprecation, and default values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..changes import ChangeDescriptor, ChangeImpact, ChangeTarget
from ..declarations import CALLABLE_KINDS, DeclarationNode, NodeKind
from ..reorder import ReorderAnalysis, detect_reordering
from ..similarity import normalize_signature
from .options import DiffOptions
from .signatures import SignatureDifference, TypeComparer, compare_signatures, primary_signature
from .type_params import classify_type_parameter_change

_KIND_TARGETS: dict[str, ChangeTarget] = {
    "property": "property",
    "method": "method",
    "parameter": "parameter",
    "type-parameter": "type-parameter",
    "enum-member": "enum-member",
    "index-signature": "index-signature",
    "getter": "accessor",
    "setter": "accessor",
    "construct-signature": "constructor",
}

# Parents whose members every implementer must provide.
_CONTRACT_KINDS = frozenset({"interface", "type-alias"})


def node_kind_to_target(kind: NodeKind) -> ChangeTarget:
    return _KIND_TARGETS.get(kind, "export")


@dataclass(frozen=True)
class Classification:
    descriptor: ChangeDescriptor
    explanation: str
    signature_changes: tuple[SignatureDifference, ...] = ()
    parameter_analysis: Optional[ReorderAnalysis] = None
    modifier_change: Optional[str] = None
    # (side, message) pairs; side is "old" or "new"
    anomalies: tuple[tuple[str, str], ...] = ()

    @property
    def is_equivalent(self) -> bool:
        return self.descriptor.aspect == "type" and self.descriptor.impact == "equivalent"


def membership_tags(node: DeclarationNode, parent: Optional[DeclarationNode], removed: bool) -> set[str]:
    """Optionality, rest and default tags for an added or removed member."""
    tags: set[str] = set()
    if parent is None:
        return tags

    if node.has("optional"):
        tags.add("was-optional" if removed else "now-optional")
    elif parent.kind in _CONTRACT_KINDS or node.has("abstract"):
        tags.add("was-required" if removed else "now-required")

    if node.default_value is not None:
        tags.add("had-default" if removed else "has-default")
    return tags


def _detect_reorder(old: DeclarationNode, new: DeclarationNode) -> Optional[ReorderAnalysis]:
    old_sig = primary_signature(old)
    new_sig = primary_signature(new)
    if old_sig is None or new_sig is None:
        return None
    analysis = detect_reordering(old_sig.parameters, new_sig.parameters)
    return analysis if analysis.has_reordering else None


def _type_explanation(path: str, impact: ChangeImpact, old_type: str, new_type: str) -> str:
    if impact == "equivalent":
        return f"Type of '{path}' changed syntax but is semantically equivalent"
    if impact == "widening":
        return f"Widened type of '{path}' from '{old_type}' to '{new_type}'"
    if impact == "narrowing":
        return f"Narrowed type of '{path}' from '{old_type}' to '{new_type}'"
    return f"Changed type of '{path}' from '{old_type}' to '{new_type}'"


def _classify_type(
    old: DeclarationNode,
    new: DeclarationNode,
    target: ChangeTarget,
    compare_types: TypeComparer,
) -> Optional[Classification]:
    old_info, new_info = old.type_info, new.type_info
    old_resolved = old_info is not None and old_info.is_resolved
    new_resolved = new_info is not None and new_info.is_resolved

    if not (old_resolved and new_resolved):
        old_raw = normalize_signature(old_info.raw if old_info else "")
        new_raw = normalize_signature(new_info.raw if new_info else "")
        if old_raw == new_raw:
            return None
        anomalies = []
        if not old_resolved:
            anomalies.append(("old", f"'{old.path}': type information unavailable; compared raw text"))
        if not new_resolved:
            anomalies.append(("new", f"'{new.path}': type information unavailable; compared raw text"))
        return Classification(
            descriptor=ChangeDescriptor.modified(target, "type", "undetermined"),
            explanation=_type_explanation(old.path, "undetermined", old_raw, new_raw),
            anomalies=tuple(anomalies),
        )

    assert old_info is not None and new_info is not None
    if old_info.signature == new_info.signature:
        return None

    old_sig = primary_signature(old)
    new_sig = primary_signature(new)
    if old_sig is not None and new_sig is not None:
        differences = compare_signatures(old.path, old_sig, new_sig, compare_types)
        if not differences:
            return Classification(
                descriptor=ChangeDescriptor.modified(target, "type", "equivalent"),
                explanation=_type_explanation(old.path, "equivalent", old_info.signature, new_info.signature),
            )
        first = differences[0]
        return Classification(
            descriptor=ChangeDescriptor.modified(target, first.aspect, first.impact, first.tags),
            explanation=f"Signature of '{old.path}' changed: {first.explanation}",
            signature_changes=tuple(differences),
        )

    impact = compare_types(old_info.signature, new_info.signature)
    return Classification(
        descriptor=ChangeDescriptor.modified(target, "type", impact),
        explanation=_type_explanation(old.path, impact, old_info.signature, new_info.signature),
    )


def _classify_modifiers(old: DeclarationNode, new: DeclarationNode, target: ChangeTarget) -> Optional[Classification]:
    added = new.modifiers - old.modifiers
    removed = old.modifiers - new.modifiers

    def modified(aspect, impact, explanation, change, tags=()):
        return Classification(
            descriptor=ChangeDescriptor.modified(target, aspect, impact, tags),
            explanation=explanation,
            modifier_change=change,
        )

    if "readonly" in added:
        return modified("readonly", "narrowing", f"Made '{old.path}' readonly", "+readonly")
    if "readonly" in removed:
        return modified("readonly", "widening", f"Made '{old.path}' writable (removed readonly)", "-readonly")

    if "optional" in added:
        return modified(
            "optionality",
            "widening",
            f"Made '{old.path}' optional (was required)",
            "+optional",
            ["was-required", "now-optional"],
        )
    if "optional" in removed:
        return modified(
            "optionality",
            "narrowing",
            f"Made '{old.path}' required (was optional)",
            "-optional",
            ["was-optional", "now-required"],
        )

    if "abstract" in added:
        return modified("abstractness", "narrowing", f"Made '{old.path}' abstract", "+abstract")
    if "abstract" in removed:
        return modified("abstractness", "widening", f"Made '{old.path}' concrete (removed abstract)", "-abstract")

    if "static" in added:
        return modified("staticness", "unrelated", f"Made '{old.path}' static", "+static")
    if "static" in removed:
        return modified(
            "staticness", "unrelated", f"Made '{old.path}' an instance member (removed static)", "-static"
        )

    for visibility in ("public", "protected", "private"):
        if visibility in added:
            return modified(
                "visibility",
                "undetermined",
                f"Changed visibility of '{old.path}' to {visibility}",
                f"+{visibility}",
            )
    return None


def _classify_clause(
    old: DeclarationNode,
    new: DeclarationNode,
    target: ChangeTarget,
    keyword: str,
) -> Optional[Classification]:
    old_names: tuple[str, ...] = getattr(old, keyword)
    new_names: tuple[str, ...] = getattr(new, keyword)
    if old_names == new_names:
        return None

    aspect = "extends-clause" if keyword == "extends" else "implements-clause"
    if not old_names:
        impact: ChangeImpact = "narrowing"
        explanation = f"Added {keyword} clause to '{new.path}': now {keyword} {', '.join(new_names)}"
    elif not new_names:
        impact = "widening"
        explanation = f"Removed {keyword} clause from '{old.path}' (no longer {keyword} {', '.join(old_names)})"
    else:
        impact = "undetermined"
        explanation = (
            f"Changed {keyword} clause of '{old.path}' from '{', '.join(old_names)}' to '{', '.join(new_names)}'"
        )
    return Classification(ChangeDescriptor.modified(target, aspect, impact), explanation)


def _classify_default_value(
    old: DeclarationNode, new: DeclarationNode, target: ChangeTarget
) -> Optional[Classification]:
    old_default, new_default = old.default_value, new.default_value
    if old_default == new_default:
        return None
    if old_default is None:
        return Classification(
            ChangeDescriptor.modified(target, "default-value", "widening", ["has-default"]),
            f"Added default value '{new_default}' to '{old.path}'",
        )
    if new_default is None:
        return Classification(
            ChangeDescriptor.modified(target, "default-value", "narrowing", ["had-default"]),
            f"Removed default value from '{old.path}' (was '{old_default}')",
        )
    return Classification(
        ChangeDescriptor.modified(target, "default-value", "undetermined", ["had-default", "has-default"]),
        f"Changed default value of '{old.path}' from '{old_default}' to '{new_default}'",
    )


def classify_pair(
    old: DeclarationNode,
    new: DeclarationNode,
    options: DiffOptions,
    compare_types: TypeComparer,
) -> Classification:
    """Classify what changed between two versions of one declaration.

    Args:
        old: Declaration in the old module
        new: Declaration with the same path (or a detected rename) in the new module
        options: Diff options; controls reorder detection
        compare_types: Impact of replacing one type text by another

    Returns:
        Classification; ``type``/``equivalent`` when nothing was found
    """
    target = node_kind_to_target(old.kind)

    # Runs even when the signature text is unchanged: swapping two
    # same-typed parameters leaves the types identical.
    if options.detect_parameter_reordering and old.kind in CALLABLE_KINDS:
        analysis = _detect_reorder(old, new)
        if analysis is not None:
            return Classification(
                descriptor=ChangeDescriptor.simple("parameter", "reordered"),
                explanation=f"Parameters reordered in '{old.name}': {analysis.summary}",
                parameter_analysis=analysis,
            )

    type_param_change = classify_type_parameter_change(old, new)
    if type_param_change is not None:
        descriptor, explanation = type_param_change
        return Classification(descriptor, explanation)

    if old.kind == "enum-member" and old.signature != new.signature:
        return Classification(
            ChangeDescriptor.modified("enum-member", "enum-value", "unrelated"),
            f"Changed value of enum member '{old.name}' from '{old.signature}' to '{new.signature}'",
        )

    type_result = _classify_type(old, new, target, compare_types)
    if type_result is not None and not type_result.is_equivalent:
        return type_result

    for check in (
        _classify_modifiers(old, new, target),
        _classify_clause(old, new, target, "extends"),
        _classify_clause(old, new, target, "implements"),
    ):
        if check is not None:
            return check

    if not old.deprecated and new.deprecated:
        message = new.metadata.deprecation_message if new.metadata else None
        suffix = f": {message}" if message else ""
        return Classification(
            ChangeDescriptor.modified(target, "deprecation", "widening"),
            f"Marked '{old.path}' as @deprecated{suffix}",
        )
    if old.deprecated and not new.deprecated:
        return Classification(
            ChangeDescriptor.modified(target, "deprecation", "narrowing"),
            f"Removed @deprecated from '{old.path}'",
        )

    default_change = _classify_default_value(old, new, target)
    if default_change is not None:
        return default_change

    if type_result is not None:
        return type_result
    return Classification(ChangeDescriptor.modified(target, "type", "equivalent"), "No significant change detected")
