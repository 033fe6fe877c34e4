"""Heuristic rename detection among removed/added declarations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..declarations import DeclarationNode
from ..similarity import modifier_similarity, name_similarity, signature_similarity


@dataclass(frozen=True)
class RenameCandidate:
    old: DeclarationNode
    new: DeclarationNode
    confidence: float


def rename_similarity(old: DeclarationNode, new: DeclarationNode) -> float:
    """Weighted likeness of two declarations in [0, 1].

    40% name, 40% signature text, 10% modifier overlap, 10% member count.
    """
    old_children = len(old.children)
    new_children = len(new.children)
    if old_children == new_children:
        children_score = 1.0
    elif old_children == 0 or new_children == 0:
        children_score = 0.0
    else:
        children_score = min(old_children, new_children) / max(old_children, new_children)

    score = (
        0.4 * name_similarity(old.name, new.name)
        + 0.4 * signature_similarity(old.signature, new.signature)
        + 0.1 * modifier_similarity(old.modifiers, new.modifiers)
        + 0.1 * children_score
    )
    return max(0.0, min(1.0, score))


def detect_renames(
    removed: Sequence[DeclarationNode],
    added: Sequence[DeclarationNode],
    threshold: float,
) -> list[RenameCandidate]:
    """Pair removed and added nodes of the same kind that look like renames.

    Candidates at or above ``threshold`` are matched greedily by descending
    score; equal scores keep the order in which pairs were encountered.
    """
    candidates: list[RenameCandidate] = []
    for old in removed:
        for new in added:
            if old.kind != new.kind:
                continue
            confidence = rename_similarity(old, new)
            if confidence >= threshold:
                candidates.append(RenameCandidate(old, new, confidence))

    # sort() is stable, so ties resolve to the earliest pair.
    candidates.sort(key=lambda c: c.confidence, reverse=True)

    used_old: set[str] = set()
    used_new: set[str] = set()
    renames: list[RenameCandidate] = []
    for candidate in candidates:
        if candidate.old.path in used_old or candidate.new.path in used_new:
            continue
        renames.append(candidate)
        used_old.add(candidate.old.path)
        used_new.add(candidate.new.path)
    return renames
