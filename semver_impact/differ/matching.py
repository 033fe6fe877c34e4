from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from ..declarations import DeclarationNode


@dataclass
class NodeMatch:
    matched: list[tuple[DeclarationNode, DeclarationNode]] = field(default_factory=list)
    removed: list[DeclarationNode] = field(default_factory=list)
    added: list[DeclarationNode] = field(default_factory=list)


def match_nodes(
    old_nodes: Mapping[str, DeclarationNode],
    new_nodes: Mapping[str, DeclarationNode],
) -> NodeMatch:
    """Set-difference two keyed node maps, preserving declaration order."""
    result = NodeMatch()
    for key, old in old_nodes.items():
        new = new_nodes.get(key)
        if new is None:
            result.removed.append(old)
        else:
            result.matched.append((old, new))
    for key, new in new_nodes.items():
        if key not in old_nodes:
            result.added.append(new)
    return result
