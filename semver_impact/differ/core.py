from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Mapping, Optional

from ..changes import ApiChange, ChangeContext, ChangeDescriptor, ChangeImpact
from ..declarations import DeclarationNode, ModuleAnalysis
from ..exceptions import InvalidDescriptorError
from ..oracle import DEFAULT_ORACLE, TypeOracle
from ..similarity import normalize_signature
from .classification import Classification, classify_pair, membership_tags, node_kind_to_target
from .matching import match_nodes
from .options import DiffOptions
from .renames import detect_renames
from .signatures import primary_signature

logger = logging.getLogger(__name__)


class _Differ:
    """Walks two module analyses in lock-step. One instance per ``diff`` call."""

    def __init__(
        self,
        old: ModuleAnalysis,
        new: ModuleAnalysis,
        options: DiffOptions,
        oracle: TypeOracle,
    ):
        self.old = old
        self.new = new
        self.options = options
        self.oracle = oracle

    def compare_types(self, old_type: str, new_type: str) -> ChangeImpact:
        if normalize_signature(old_type) == normalize_signature(new_type):
            return "equivalent"
        if not self.options.resolve_type_relationships:
            return "undetermined"
        return self.oracle.compare(old_type, new_type).impact

    def run(self) -> list[ApiChange]:
        return self._diff_level(self.old.exports, self.new.exports, None, None, depth=0, ancestors=())

    def _diff_level(
        self,
        old_nodes: Mapping[str, DeclarationNode],
        new_nodes: Mapping[str, DeclarationNode],
        old_parent: Optional[DeclarationNode],
        new_parent: Optional[DeclarationNode],
        depth: int,
        ancestors: tuple[str, ...],
    ) -> list[ApiChange]:
        nested = old_parent is not None
        match = match_nodes(old_nodes, new_nodes)
        renames = detect_renames(match.removed, match.added, self.options.rename_threshold)
        renamed_old = {r.old.path for r in renames}
        renamed_new = {r.new.path for r in renames}

        changes: list[ApiChange] = []

        for rename in renames:
            old_node, new_node = rename.old, rename.new
            children = self._nested_changes(old_node, new_node, depth, ancestors)
            target = node_kind_to_target(old_node.kind) if nested else "export"
            descriptor = ChangeDescriptor.simple(target, "renamed")
            if children:
                descriptor = descriptor.with_tags("has-nested-changes")
            changes.append(
                ApiChange(
                    descriptor=descriptor,
                    path=old_node.path,
                    node_kind=old_node.kind,
                    explanation=f"'{old_node.name}' renamed to '{new_node.name}'",
                    context=ChangeContext(
                        is_nested=nested,
                        depth=depth,
                        ancestors=ancestors,
                        rename_confidence=rename.confidence,
                    ),
                    old_location=old_node.location,
                    new_location=new_node.location,
                    old_node=old_node,
                    new_node=new_node,
                    nested_changes=tuple(children),
                )
            )

        for old_node in match.removed:
            if old_node.path in renamed_old:
                continue
            if old_parent is None:
                target = "export"
                explanation = f"Export '{old_node.name}' removed"
            else:
                target = node_kind_to_target(old_node.kind)
                explanation = f"Member '{old_node.name}' removed from {old_parent.kind} '{old_parent.name}'"
            changes.append(
                ApiChange(
                    descriptor=ChangeDescriptor.simple(
                        target, "removed", membership_tags(old_node, old_parent, removed=True)
                    ),
                    path=old_node.path,
                    node_kind=old_node.kind,
                    explanation=explanation,
                    context=ChangeContext(is_nested=nested, depth=depth, ancestors=ancestors),
                    old_location=old_node.location,
                    old_node=old_node,
                )
            )

        for new_node in match.added:
            if new_node.path in renamed_new:
                continue
            if new_parent is None:
                target = "export"
                explanation = f"Export '{new_node.name}' added"
            else:
                target = node_kind_to_target(new_node.kind)
                explanation = f"Member '{new_node.name}' added to {new_parent.kind} '{new_parent.name}'"
            changes.append(
                ApiChange(
                    descriptor=ChangeDescriptor.simple(
                        target, "added", membership_tags(new_node, new_parent, removed=False)
                    ),
                    path=new_node.path,
                    node_kind=new_node.kind,
                    explanation=explanation,
                    context=ChangeContext(is_nested=nested, depth=depth, ancestors=ancestors),
                    new_location=new_node.location,
                    new_node=new_node,
                )
            )

        for old_node, new_node in match.matched:
            change = self._modified(old_node, new_node, depth, ancestors)
            if change is not None:
                changes.append(change)

        return changes

    def _modified(
        self,
        old_node: DeclarationNode,
        new_node: DeclarationNode,
        depth: int,
        ancestors: tuple[str, ...],
    ) -> Optional[ApiChange]:
        try:
            classification = classify_pair(old_node, new_node, self.options, self.compare_types)
        except InvalidDescriptorError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Could not compare '%s': %s", old_node.path, exc)
            self.new.errors.append(f"'{old_node.path}': comparison failed: {exc}")
            return None

        for side, message in classification.anomalies:
            (self.old if side == "old" else self.new).errors.append(message)
            logger.debug(message)

        children = self._signature_changes(old_node, new_node, classification, depth, ancestors)
        children.extend(self._nested_changes(old_node, new_node, depth, ancestors))

        if classification.is_equivalent and not children:
            return None

        descriptor = classification.descriptor
        if children:
            descriptor = descriptor.with_tags("has-nested-changes")

        return ApiChange(
            descriptor=descriptor,
            path=old_node.path,
            node_kind=old_node.kind,
            explanation=classification.explanation,
            context=ChangeContext(
                is_nested=depth > 0,
                depth=depth,
                ancestors=ancestors,
                modifier_change=classification.modifier_change,
                old_type=old_node.signature,
                new_type=new_node.signature,
            ),
            old_location=old_node.location,
            new_location=new_node.location,
            old_node=old_node,
            new_node=new_node,
            nested_changes=tuple(children),
            parameter_analysis=(
                classification.parameter_analysis.to_dict() if classification.parameter_analysis else None
            ),
        )

    def _signature_changes(
        self,
        old_node: DeclarationNode,
        new_node: DeclarationNode,
        classification: Classification,
        depth: int,
        ancestors: tuple[str, ...],
    ) -> list[ApiChange]:
        if not self.options.include_nested_changes:
            return []
        context = ChangeContext(is_nested=True, depth=depth + 1, ancestors=ancestors + (old_node.path,))
        changes = []
        for difference in classification.signature_changes:
            if difference.target == "return-type":
                path = f"{old_node.path}.return"
                kind = old_node.kind
            else:
                path = f"{old_node.path}.{difference.name}"
                kind = "parameter"
            changes.append(
                ApiChange(
                    descriptor=difference.descriptor,
                    path=path,
                    node_kind=kind,
                    explanation=difference.explanation,
                    context=replace(context, old_type=difference.old_type, new_type=difference.new_type),
                    old_location=old_node.location,
                    new_location=new_node.location,
                )
            )
        return changes

    def _nested_changes(
        self,
        old_node: DeclarationNode,
        new_node: DeclarationNode,
        depth: int,
        ancestors: tuple[str, ...],
    ) -> list[ApiChange]:
        if not self.options.include_nested_changes:
            return []
        if not old_node.children and not new_node.children:
            return []
        if depth >= self.options.max_nesting_depth or old_node.path in ancestors:
            logger.debug("Not descending into '%s' at depth %d", old_node.path, depth)
            return []

        old_children = dict(old_node.children)
        new_children = dict(new_node.children)
        # Parameters already compared through the structured signature.
        if primary_signature(old_node) is not None and primary_signature(new_node) is not None:
            old_children = {k: v for k, v in old_children.items() if v.kind != "parameter"}
            new_children = {k: v for k, v in new_children.items() if v.kind != "parameter"}

        return self._diff_level(
            old_children,
            new_children,
            old_node,
            new_node,
            depth=depth + 1,
            ancestors=ancestors + (old_node.path,),
        )


def diff(
    old: ModuleAnalysis,
    new: ModuleAnalysis,
    options: Optional[DiffOptions] = None,
    *,
    oracle: Optional[TypeOracle] = None,
) -> list[ApiChange]:
    """Compare two module analyses and describe every API change.

    Never raises for malformed trees: anomalies are appended to the
    ``errors`` list of the module they were found in.

    Args:
        old: Baseline module analysis
        new: Module analysis to compare against the baseline
        options: Diff options (defaults apply when omitted)
        oracle: Type oracle for widening/narrowing verdicts

    Returns:
        Top-level changes in the order renamed, removed, added, modified,
        with member changes under ``nested_changes``
    """
    differ = _Differ(old, new, options or DiffOptions(), oracle or DEFAULT_ORACLE)
    changes = differ.run()
    logger.debug("Found %d top-level changes between %s and %s", len(changes), old.filename, new.filename)
    return changes


def flatten_changes(changes: Iterable[ApiChange]) -> list[ApiChange]:
    """Pre-order list of changes and their nested changes.

    Nested entries are copies tagged ``is-nested-change``; the input is
    left untouched.
    """
    result: list[ApiChange] = []

    def visit(change: ApiChange, is_nested: bool) -> None:
        if is_nested:
            result.append(replace(change, descriptor=change.descriptor.with_tags("is-nested-change")))
        else:
            result.append(change)
        for child in change.nested_changes:
            visit(child, True)

    for change in changes:
        visit(change, False)
    return result


def group_changes_by_descriptor(changes: Iterable[ApiChange]) -> dict[str, list[ApiChange]]:
    """Group changes by ``target:action`` (plus ``:aspect`` for modifications)."""
    groups: dict[str, list[ApiChange]] = {}
    for change in changes:
        groups.setdefault(change.descriptor.key, []).append(change)
    return groups
