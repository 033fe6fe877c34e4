from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from ..changes import ChangeDescriptor, ChangeImpact
from ..declarations import DeclarationNode, TypeParameterInfo

TypeParameterChangeKind = Literal["added", "removed", "constraint-changed", "default-changed"]


@dataclass(frozen=True)
class TypeParameterChange:
    kind: TypeParameterChangeKind
    name: str
    old_value: Optional[str] = None
    new_value: Optional[str] = None


def type_parameters_of(node: DeclarationNode) -> tuple[TypeParameterInfo, ...]:
    """Generic parameters declared on the node, or on its primary signature."""
    if node.type_info is None:
        return ()
    if node.type_info.type_parameters:
        return node.type_info.type_parameters
    signatures = node.type_info.call_signatures or node.type_info.construct_signatures
    if signatures:
        return signatures[0].type_parameters
    return ()


def detect_type_parameter_changes(old: DeclarationNode, new: DeclarationNode) -> list[TypeParameterChange]:
    """List type parameter changes: removals, then additions, then edits."""
    old_params = type_parameters_of(old)
    new_params = type_parameters_of(new)
    old_by_name = {tp.name: tp for tp in old_params}
    new_by_name = {tp.name: tp for tp in new_params}

    changes = [TypeParameterChange("removed", tp.name) for tp in old_params if tp.name not in new_by_name]
    changes.extend(TypeParameterChange("added", tp.name) for tp in new_params if tp.name not in old_by_name)

    for old_tp in old_params:
        new_tp = new_by_name.get(old_tp.name)
        if new_tp is None:
            continue
        if old_tp.constraint != new_tp.constraint:
            changes.append(
                TypeParameterChange("constraint-changed", old_tp.name, old_tp.constraint, new_tp.constraint)
            )
        if old_tp.default != new_tp.default:
            changes.append(TypeParameterChange("default-changed", old_tp.name, old_tp.default, new_tp.default))
    return changes


def classify_type_parameter_change(
    old: DeclarationNode,
    new: DeclarationNode,
) -> Optional[tuple[ChangeDescriptor, str]]:
    """Describe the first type parameter change, or None if there is none."""
    changes = detect_type_parameter_changes(old, new)
    if not changes:
        return None

    first = changes[0]
    tag = "affects-type-parameter"

    if first.kind == "added":
        return (
            ChangeDescriptor.simple("type-parameter", "added", [tag]),
            f"Added type parameter '{first.name}' to '{old.path}'",
        )
    if first.kind == "removed":
        return (
            ChangeDescriptor.simple("type-parameter", "removed", [tag]),
            f"Removed type parameter '{first.name}' from '{old.path}'",
        )

    if first.kind == "constraint-changed":
        impact: ChangeImpact
        if not first.new_value:
            impact = "widening"
            explanation = (
                f"Removed constraint from type parameter '{first.name}' in '{old.path}' "
                f"(was '{first.old_value}')"
            )
        elif not first.old_value:
            impact = "narrowing"
            explanation = f"Added constraint '{first.new_value}' to type parameter '{first.name}' in '{old.path}'"
        else:
            impact = "undetermined"
            explanation = (
                f"Changed constraint on type parameter '{first.name}' in '{old.path}' "
                f"from '{first.old_value}' to '{first.new_value}'"
            )
        return ChangeDescriptor.modified("type-parameter", "constraint", impact, [tag]), explanation

    # default-changed: a new default makes the argument optional
    if not first.old_value:
        impact = "widening"
        explanation = f"Added default type '{first.new_value}' to type parameter '{first.name}' in '{old.path}'"
    elif not first.new_value:
        impact = "narrowing"
        explanation = (
            f"Removed default type from type parameter '{first.name}' in '{old.path}' "
            f"(was '{first.old_value}')"
        )
    else:
        impact = "undetermined"
        explanation = (
            f"Changed default type of type parameter '{first.name}' in '{old.path}' "
            f"from '{first.old_value}' to '{first.new_value}'"
        )
    return ChangeDescriptor.modified("type-parameter", "default-type", impact, [tag]), explanation
