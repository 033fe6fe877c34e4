"""
Type-impact oracles.

The differ never decides assignability itself; it asks an oracle whether a
type moved from ``old`` to ``new`` widened, narrowed, or stayed equivalent.
Oracles must be total: when they cannot tell, they answer ``undetermined``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from .changes import ChangeImpact
from .similarity import normalize_signature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeComparison:
    impact: ChangeImpact
    reason: str = ""


class TypeOracle(Protocol):
    def compare(self, old_signature: str, new_signature: str) -> TypeComparison:
        ...


def split_union(signature: str) -> list[str]:
    """Split a type on top-level ``|`` only (not inside brackets or strings)."""
    members: list[str] = []
    depth = 0
    quote: str | None = None
    current: list[str] = []
    for ch in signature:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in "'\"`":
            quote = ch
        elif ch in "([{<":
            depth += 1
        elif ch in ")]}>" and depth > 0:
            depth -= 1
        elif ch == "|" and depth == 0:
            members.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    members.append("".join(current).strip())
    return [m for m in members if m]


class HeuristicTypeOracle:
    """String-based impact heuristics for when no type checker is available.

    Rules, first match wins:
    - identical after whitespace normalization: equivalent
    - both unions: member subset/superset decides widening/narrowing/equivalent
    - new union contains the old type: widening
    - old union contains the new type: narrowing
    - ``?`` marker disappeared: narrowing; appeared: widening
    - anything else: undetermined
    """

    def compare(self, old_signature: str, new_signature: str) -> TypeComparison:
        try:
            return self._compare(old_signature, new_signature)
        except (AttributeError, TypeError) as exc:
            logger.debug("Type comparison failed for %r -> %r: %s", old_signature, new_signature, exc)
            return TypeComparison("undetermined", f"comparison failed: {exc}")

    def _compare(self, old_signature: str, new_signature: str) -> TypeComparison:
        old_norm = normalize_signature(old_signature or "")
        new_norm = normalize_signature(new_signature or "")

        if old_norm == new_norm:
            return TypeComparison("equivalent", "identical after normalization")
        if not old_norm or not new_norm:
            return TypeComparison("undetermined", "missing type text")

        old_members = split_union(old_norm)
        new_members = split_union(new_norm)

        if len(old_members) > 1 and len(new_members) > 1:
            old_set = set(old_members)
            new_set = set(new_members)
            if old_set == new_set:
                return TypeComparison("equivalent", "same union members")
            if old_set < new_set:
                return TypeComparison("widening", "union gained members")
            if new_set < old_set:
                return TypeComparison("narrowing", "union lost members")

        if len(new_members) > 1 and old_norm in new_members:
            return TypeComparison("widening", "new union includes the old type")
        if len(old_members) > 1 and new_norm in old_members:
            return TypeComparison("narrowing", "old union includes the new type")

        if "?" in old_norm and "?" not in new_norm:
            return TypeComparison("narrowing", "optional marker removed")
        if "?" not in old_norm and "?" in new_norm:
            return TypeComparison("widening", "optional marker added")

        return TypeComparison("undetermined", "no structural relationship found")


DEFAULT_ORACLE = HeuristicTypeOracle()
