"""
Parameter reorder detection.

Given two parameter lists of equal length whose types match position by
position, decide whether names moved between positions (a reorder, which
silently breaks positional callers) or were merely renamed in place.

This component never judges type changes; mismatched types or counts are
left to the signature comparison in the differ.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Sequence

from .declarations import ParameterInfo
from .similarity import interpret_name_change, name_resemblance, name_similarity

ReorderConfidence = Literal["high", "medium", "low"]

# Positions scoring below this are treated as a real name change, not a rename.
LOW_SIMILARITY = 0.6
# A new name must resemble an old one from another position at least this much.
CROSS_MATCH = 0.7


@dataclass(frozen=True)
class ParameterPosition:
    position: int
    old_name: str
    new_name: str
    type: str
    similarity: float
    interpretation: str

    def to_dict(self) -> dict:
        return {
            "position": self.position,
            "old_name": self.old_name,
            "new_name": self.new_name,
            "type": self.type,
            "similarity": self.similarity,
            "interpretation": self.interpretation,
        }


@dataclass(frozen=True)
class ReorderAnalysis:
    has_reordering: bool
    confidence: ReorderConfidence
    summary: str
    position_analysis: tuple[ParameterPosition, ...] = ()
    old_params: tuple[ParameterInfo, ...] = field(default=(), repr=False)
    new_params: tuple[ParameterInfo, ...] = field(default=(), repr=False)

    def to_dict(self) -> dict:
        return {
            "has_reordering": self.has_reordering,
            "confidence": self.confidence,
            "summary": self.summary,
            "position_analysis": [p.to_dict() for p in self.position_analysis],
            "old_params": [p.to_dict() for p in self.old_params],
            "new_params": [p.to_dict() for p in self.new_params],
        }


def detect_reordering(
    old_params: Sequence[ParameterInfo],
    new_params: Sequence[ParameterInfo],
) -> ReorderAnalysis:
    """Classify a parameter list change as reorder, rename, or neither.

    Evidence is weighed in priority order:

    1. high: two or more identical names appear at different positions
    2. medium: two or more positions changed beyond recognition, and their
       new names resemble old names from other positions
    3. every changed position still resembles its old name: benign renames
    4. otherwise: unresolved name changes, no reordering asserted

    Args:
        old_params: Parameters of the old signature, in order
        new_params: Parameters of the new signature, in order

    Returns:
        ReorderAnalysis with a human-readable summary and per-position detail
    """
    old_params = tuple(old_params)
    new_params = tuple(new_params)

    positions: list[ParameterPosition] = []
    for i, (old, new) in enumerate(zip(old_params, new_params)):
        similarity = name_similarity(old.name, new.name)
        positions.append(
            ParameterPosition(
                position=i,
                old_name=old.name,
                new_name=new.name,
                type=old.type,
                similarity=similarity,
                interpretation=interpret_name_change(old.name, new.name, similarity),
            )
        )

    def negative(summary: str) -> ReorderAnalysis:
        return ReorderAnalysis(
            has_reordering=False,
            confidence="low",
            summary=summary,
            position_analysis=tuple(positions),
            old_params=old_params,
            new_params=new_params,
        )

    def positive(confidence: ReorderConfidence, summary: str) -> ReorderAnalysis:
        return ReorderAnalysis(
            has_reordering=True,
            confidence=confidence,
            summary=summary,
            position_analysis=tuple(positions),
            old_params=old_params,
            new_params=new_params,
        )

    if len(old_params) != len(new_params):
        return negative("Parameter count changed; not analyzing for reordering")
    if len(old_params) < 2:
        return negative("Single parameter; reordering not applicable")
    if any(old.type != new.type for old, new in zip(old_params, new_params)):
        return negative("Types differ at some positions; type analysis will handle this")

    old_order = ", ".join(p.name for p in old_params)
    new_order = ", ".join(p.name for p in new_params)

    # Exact identity: the same names at different positions.
    old_pos = {p.name: i for i, p in enumerate(old_params)}
    new_pos = {p.name: i for i, p in enumerate(new_params)}
    moved = [name for name in old_pos if name in new_pos and old_pos[name] != new_pos[name]]
    if len(moved) >= 2:
        return positive(
            "high",
            f"Parameters reordered: ({old_order}) → ({new_order}). "
            "The same parameter names appear at different positions.",
        )

    # Cross-position resemblance.
    low = [p for p in positions if p.old_name != p.new_name and p.similarity < LOW_SIMILARITY]
    if len(low) >= 2:
        cross_matches: list[str] = []
        for pos in low:
            for i, old in enumerate(old_params):
                if i == pos.position:
                    continue
                if name_resemblance(old.name, pos.new_name) >= CROSS_MATCH:
                    cross_matches.append(
                        f'"{pos.new_name}" at position {pos.position} resembles "{old.name}" '
                        f"which was at position {i}"
                    )
                    break
        if len(cross_matches) >= 2:
            return positive(
                "medium",
                f"Parameters appear reordered: ({old_order}) → ({new_order}). "
                "Names at each position are dissimilar, but new names resemble old names "
                "from other positions. " + "; ".join(cross_matches) + ".",
            )

    changed = [p for p in positions if p.old_name != p.new_name]
    if all(name_resemblance(p.old_name, p.new_name) >= LOW_SIMILARITY for p in changed):
        if not changed:
            return negative("No parameter name changes detected")
        renames = ", ".join(f'"{p.old_name}" → "{p.new_name}" ({p.interpretation})' for p in changed)
        return negative(f"Parameter names changed but appear to be renames rather than reordering: {renames}")

    unresolved = ", ".join(
        f'position {p.position}: "{p.old_name}" → "{p.new_name}" (similarity: {p.similarity * 100:.0f}%)'
        for p in low
    )
    return negative(f"Significant name changes detected but no clear reordering pattern: {unresolved}")
