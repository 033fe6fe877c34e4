"""Position-by-position comparison of call and construct signatures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional

from ..changes import ChangeAspect, ChangeDescriptor, ChangeImpact, ChangeTarget
from ..declarations import DeclarationNode, ParameterInfo, SignatureInfo
from ..similarity import normalize_signature

TypeComparer = Callable[[str, str], ChangeImpact]

_VERBS = {"widening": "Widened", "narrowing": "Narrowed"}


@dataclass(frozen=True)
class SignatureDifference:
    """One differing parameter position or return type."""

    target: ChangeTarget
    action: Literal["added", "removed", "modified"]
    aspect: ChangeAspect
    impact: ChangeImpact
    name: str
    explanation: str
    tags: frozenset[str] = frozenset()
    old_type: Optional[str] = None
    new_type: Optional[str] = None

    @property
    def descriptor(self) -> ChangeDescriptor:
        """Descriptor of the nested change this difference becomes."""
        if self.action == "modified":
            return ChangeDescriptor.modified(self.target, self.aspect, self.impact, self.tags)
        return ChangeDescriptor.simple(self.target, self.action, self.tags)


def primary_signature(node: DeclarationNode) -> Optional[SignatureInfo]:
    """First construct signature for classes, first call signature otherwise."""
    if node.type_info is None:
        return None
    if node.kind in ("class", "construct-signature"):
        signatures = node.type_info.construct_signatures or node.type_info.call_signatures
    else:
        signatures = node.type_info.call_signatures or node.type_info.construct_signatures
    return signatures[0] if signatures else None


def _added_tags(param: ParameterInfo) -> set[str]:
    tags = {"now-required"} if param.is_required else {"now-optional"}
    if param.rest:
        tags.add("is-rest-parameter")
    if param.default_value is not None:
        tags.add("has-default")
    return tags


def _removed_tags(param: ParameterInfo) -> set[str]:
    tags = {"was-required"} if param.is_required else {"was-optional"}
    if param.rest:
        tags.add("was-rest-parameter")
    if param.default_value is not None:
        tags.add("had-default")
    return tags


def _compare_parameter(
    path: str,
    old: ParameterInfo,
    new: ParameterInfo,
    compare_types: TypeComparer,
) -> Optional[SignatureDifference]:
    if normalize_signature(old.type) != normalize_signature(new.type):
        impact = compare_types(old.type, new.type)
        if impact != "equivalent":
            verb = _VERBS.get(impact, "Changed")
            return SignatureDifference(
                target="parameter",
                action="modified",
                aspect="type",
                impact=impact,
                name=new.name,
                explanation=f"{verb} type of parameter '{new.name}' in '{path}' from '{old.type}' to '{new.type}'",
                old_type=old.type,
                new_type=new.type,
            )

    if old.is_required and not new.is_required:
        tags = {"was-required", "now-optional"}
        if new.default_value is not None:
            tags.add("has-default")
        return SignatureDifference(
            target="parameter",
            action="modified",
            aspect="optionality",
            impact="widening",
            name=new.name,
            explanation=f"Made parameter '{new.name}' of '{path}' optional (was required)",
            tags=frozenset(tags),
        )
    if not old.is_required and new.is_required:
        tags = {"was-optional", "now-required"}
        if old.default_value is not None:
            tags.add("had-default")
        return SignatureDifference(
            target="parameter",
            action="modified",
            aspect="optionality",
            impact="narrowing",
            name=new.name,
            explanation=f"Made parameter '{new.name}' of '{path}' required (was optional)",
            tags=frozenset(tags),
        )
    return None


def compare_signatures(
    path: str,
    old: SignatureInfo,
    new: SignatureInfo,
    compare_types: TypeComparer,
) -> list[SignatureDifference]:
    """Compare parameters by position, then the return type.

    Parameter names are ignored; renames and reorders are detected
    elsewhere. Removed parameters are narrowing. Added parameters are
    narrowing when required and widening when optional or rest.

    Args:
        path: Path of the declaration owning the signatures
        old: Signature before the change
        new: Signature after the change
        compare_types: Returns the impact of replacing one type text by another

    Returns:
        Differences in positional order, return type last
    """
    differences: list[SignatureDifference] = []

    for position in range(max(len(old.parameters), len(new.parameters))):
        old_param = old.parameters[position] if position < len(old.parameters) else None
        new_param = new.parameters[position] if position < len(new.parameters) else None

        if old_param is not None and new_param is not None:
            difference = _compare_parameter(path, old_param, new_param, compare_types)
            if difference is not None:
                differences.append(difference)
        elif new_param is not None:
            required = new_param.is_required
            kind = "rest parameter" if new_param.rest else ("required parameter" if required else "optional parameter")
            differences.append(
                SignatureDifference(
                    target="parameter",
                    action="added",
                    aspect="type",
                    impact="narrowing" if required else "widening",
                    name=new_param.name,
                    explanation=f"Added {kind} '{new_param.name}' to '{path}'",
                    tags=frozenset(_added_tags(new_param)),
                    new_type=new_param.type,
                )
            )
        elif old_param is not None:
            differences.append(
                SignatureDifference(
                    target="parameter",
                    action="removed",
                    aspect="type",
                    impact="narrowing",
                    name=old_param.name,
                    explanation=f"Removed parameter '{old_param.name}' from '{path}'",
                    tags=frozenset(_removed_tags(old_param)),
                    old_type=old_param.type,
                )
            )

    if normalize_signature(old.return_type) != normalize_signature(new.return_type):
        impact = compare_types(old.return_type, new.return_type)
        if impact != "equivalent":
            verb = _VERBS.get(impact, "Changed")
            differences.append(
                SignatureDifference(
                    target="return-type",
                    action="modified",
                    aspect="type",
                    impact=impact,
                    name="return",
                    explanation=f"{verb} return type of '{path}' from '{old.return_type}' to '{new.return_type}'",
                    old_type=old.return_type,
                    new_type=new.return_type,
                )
            )

    return differences
