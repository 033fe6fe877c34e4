"""
Normalized declaration trees.

A parser (outside this package) turns declaration-only source into a
ModuleAnalysis: a path-keyed map of DeclarationNode records plus the subset
that forms the public export surface. The differ only ever reads these.

Records round-trip through ``to_dict`` / ``from_dict`` so trees can be stored
as JSON or YAML documents and loaded with ``load_module``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_args

import yaml

from .exceptions import ModuleLoadError

logger = logging.getLogger(__name__)


NodeKind = Literal[
    "function",
    "class",
    "interface",
    "type-alias",
    "enum",
    "namespace",
    "variable",
    "property",
    "method",
    "parameter",
    "type-parameter",
    "enum-member",
    "call-signature",
    "construct-signature",
    "index-signature",
    "getter",
    "setter",
]

Modifier = Literal[
    "exported",
    "default-export",
    "readonly",
    "optional",
    "abstract",
    "static",
    "private",
    "protected",
    "public",
    "const",
    "declare",
    "async",
]

NODE_KINDS: frozenset[str] = frozenset(get_args(NodeKind))
MODIFIERS: frozenset[str] = frozenset(get_args(Modifier))

CALLABLE_KINDS: frozenset[str] = frozenset(
    {"function", "method", "call-signature", "construct-signature", "class"}
)


@dataclass(frozen=True)
class SourcePosition:
    """A point in source text: 1-based line, 0-based column, byte offset."""

    line: int
    column: int
    offset: int = 0

    def to_dict(self) -> dict:
        return {"line": self.line, "column": self.column, "offset": self.offset}

    @classmethod
    def from_dict(cls, data: dict) -> "SourcePosition":
        return cls(
            line=int(data.get("line", 1)),
            column=int(data.get("column", 0)),
            offset=int(data.get("offset", 0)),
        )


@dataclass(frozen=True)
class SourceRange:
    """Half-open range [start, end)."""

    start: SourcePosition
    end: SourcePosition

    def to_dict(self) -> dict:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> "SourceRange":
        return cls(
            start=SourcePosition.from_dict(_coerce_dict(data.get("start"))),
            end=SourcePosition.from_dict(_coerce_dict(data.get("end"))),
        )


@dataclass(frozen=True)
class TypeParameterInfo:
    name: str
    constraint: Optional[str] = None
    default: Optional[str] = None

    def to_dict(self) -> dict:
        return {"name": self.name, "constraint": self.constraint, "default": self.default}

    @classmethod
    def from_dict(cls, data: dict) -> "TypeParameterInfo":
        return cls(
            name=str(data["name"]),
            constraint=_optional_str(data.get("constraint")),
            default=_optional_str(data.get("default")),
        )


@dataclass(frozen=True)
class ParameterInfo:
    """One parameter of a call or construct signature."""

    name: str
    type: str
    optional: bool = False
    rest: bool = False
    default_value: Optional[str] = None

    @property
    def is_required(self) -> bool:
        return not (self.optional or self.rest or self.default_value is not None)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "type": self.type,
            "optional": self.optional,
            "rest": self.rest,
            "default_value": self.default_value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ParameterInfo":
        return cls(
            name=str(data["name"]),
            type=str(data.get("type", "")),
            optional=bool(data.get("optional", False)),
            rest=bool(data.get("rest", False)),
            default_value=_optional_str(data.get("default_value", data.get("defaultValue"))),
        )


@dataclass(frozen=True)
class SignatureInfo:
    parameters: tuple[ParameterInfo, ...] = ()
    return_type: str = ""
    type_parameters: tuple[TypeParameterInfo, ...] = ()
    normalized: str = ""

    def to_dict(self) -> dict:
        return {
            "parameters": [p.to_dict() for p in self.parameters],
            "return_type": self.return_type,
            "type_parameters": [tp.to_dict() for tp in self.type_parameters],
            "normalized": self.normalized,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SignatureInfo":
        return cls(
            parameters=tuple(ParameterInfo.from_dict(p) for p in _coerce_list(data.get("parameters"))),
            return_type=str(data.get("return_type", data.get("returnType", ""))),
            type_parameters=tuple(
                TypeParameterInfo.from_dict(tp)
                for tp in _coerce_list(data.get("type_parameters", data.get("typeParameters")))
            ),
            normalized=str(data.get("normalized", "")),
        )


@dataclass(frozen=True)
class PropertyInfo:
    name: str
    type: str
    optional: bool = False
    readonly: bool = False

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.type, "optional": self.optional, "readonly": self.readonly}

    @classmethod
    def from_dict(cls, data: dict) -> "PropertyInfo":
        return cls(
            name=str(data["name"]),
            type=str(data.get("type", "")),
            optional=bool(data.get("optional", False)),
            readonly=bool(data.get("readonly", False)),
        )


@dataclass(frozen=True)
class TypeInfo:
    """Normalized signature text plus its structured breakdown.

    ``signature`` is the normalized text used for equality checks; ``raw`` is
    the text as written. An empty signature means the parser could not
    resolve the type.
    """

    signature: str = ""
    raw: str = ""
    union_members: tuple[str, ...] = ()
    intersection_members: tuple[str, ...] = ()
    call_signatures: tuple[SignatureInfo, ...] = ()
    construct_signatures: tuple[SignatureInfo, ...] = ()
    properties: tuple[PropertyInfo, ...] = ()
    type_parameters: tuple[TypeParameterInfo, ...] = ()
    string_index_type: Optional[str] = None
    number_index_type: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return bool(self.signature.strip())

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "raw": self.raw,
            "union_members": list(self.union_members),
            "intersection_members": list(self.intersection_members),
            "call_signatures": [s.to_dict() for s in self.call_signatures],
            "construct_signatures": [s.to_dict() for s in self.construct_signatures],
            "properties": [p.to_dict() for p in self.properties],
            "type_parameters": [tp.to_dict() for tp in self.type_parameters],
            "string_index_type": self.string_index_type,
            "number_index_type": self.number_index_type,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TypeInfo":
        return cls(
            signature=str(data.get("signature", "")),
            raw=str(data.get("raw", data.get("signature", ""))),
            union_members=tuple(str(m) for m in _coerce_list(data.get("union_members"))),
            intersection_members=tuple(str(m) for m in _coerce_list(data.get("intersection_members"))),
            call_signatures=tuple(
                SignatureInfo.from_dict(s) for s in _coerce_list(data.get("call_signatures", data.get("callSignatures")))
            ),
            construct_signatures=tuple(
                SignatureInfo.from_dict(s)
                for s in _coerce_list(data.get("construct_signatures", data.get("constructSignatures")))
            ),
            properties=tuple(PropertyInfo.from_dict(p) for p in _coerce_list(data.get("properties"))),
            type_parameters=tuple(
                TypeParameterInfo.from_dict(tp)
                for tp in _coerce_list(data.get("type_parameters", data.get("typeParameters")))
            ),
            string_index_type=_optional_str(data.get("string_index_type")),
            number_index_type=_optional_str(data.get("number_index_type")),
        )


@dataclass(frozen=True)
class NodeMetadata:
    deprecated: bool = False
    deprecation_message: Optional[str] = None
    default_value: Optional[str] = None
    raw_comment: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "deprecated": self.deprecated,
            "deprecation_message": self.deprecation_message,
            "default_value": self.default_value,
            "raw_comment": self.raw_comment,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NodeMetadata":
        return cls(
            deprecated=bool(data.get("deprecated", False)),
            deprecation_message=_optional_str(data.get("deprecation_message", data.get("deprecationMessage"))),
            default_value=_optional_str(data.get("default_value", data.get("defaultValue"))),
            raw_comment=_optional_str(data.get("raw_comment", data.get("rawComment"))),
        )


@dataclass(frozen=True)
class DeclarationNode:
    """One declaration or member of a declaration.

    ``path`` is the dot-delimited identifier that joins a declaration across
    versions. ``parent`` is the parent's path, never the parent object.
    ``children`` maps local member names to nodes owned by this node.
    """

    path: str
    name: str
    kind: NodeKind
    location: Optional[SourceRange] = None
    parent: Optional[str] = None
    type_info: Optional[TypeInfo] = None
    modifiers: frozenset[str] = frozenset()
    metadata: Optional[NodeMetadata] = None
    children: dict[str, "DeclarationNode"] = field(default_factory=dict)
    extends: tuple[str, ...] = ()
    implements: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        return self.type_info.signature if self.type_info else ""

    @property
    def deprecated(self) -> bool:
        return bool(self.metadata and self.metadata.deprecated)

    @property
    def default_value(self) -> Optional[str]:
        return self.metadata.default_value if self.metadata else None

    def has(self, modifier: str) -> bool:
        return modifier in self.modifiers

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children.values():
            yield from child.walk()

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "name": self.name,
            "kind": self.kind,
            "location": self.location.to_dict() if self.location else None,
            "parent": self.parent,
            "type_info": self.type_info.to_dict() if self.type_info else None,
            "modifiers": sorted(self.modifiers),
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "children": {name: child.to_dict() for name, child in self.children.items()},
            "extends": list(self.extends),
            "implements": list(self.implements),
        }

    @classmethod
    def from_dict(cls, data: dict, parent: Optional[str] = None) -> "DeclarationNode":
        """Reconstruct a node and its children.

        Raises:
            ValueError: if the node has no name or an unknown kind
        """
        name = str(data.get("name", "")).strip()
        if not name:
            raise ValueError("declaration node without a name")

        kind = str(data.get("kind", "")).strip()
        if kind not in NODE_KINDS:
            raise ValueError(f"unknown node kind '{kind}' for '{name}'")

        path = str(data.get("path") or (f"{parent}.{name}" if parent else name))

        modifiers = set()
        for raw in _coerce_list(data.get("modifiers")):
            if str(raw) in MODIFIERS:
                modifiers.add(str(raw))
            else:
                logger.debug("Ignoring unknown modifier %r on %s", raw, path)

        children_raw = data.get("children")
        child_items: list[tuple[str | None, Any]]
        if isinstance(children_raw, dict):
            child_items = list(children_raw.items())
        else:
            child_items = [(None, c) for c in _coerce_list(children_raw)]

        children: dict[str, DeclarationNode] = {}
        for local_name, child_raw in child_items:
            if not isinstance(child_raw, dict):
                continue
            if local_name is not None and "name" not in child_raw:
                child_raw = {**child_raw, "name": local_name}
            child = cls.from_dict(child_raw, parent=path)
            children[local_name or child.name] = child

        location = data.get("location")
        type_info = data.get("type_info", data.get("typeInfo"))
        metadata = data.get("metadata")

        return cls(
            path=path,
            name=name,
            kind=kind,  # type: ignore[arg-type]
            location=SourceRange.from_dict(location) if isinstance(location, dict) else None,
            parent=_optional_str(data.get("parent")) or parent,
            type_info=TypeInfo.from_dict(type_info) if isinstance(type_info, dict) else None,
            modifiers=frozenset(modifiers),
            metadata=NodeMetadata.from_dict(metadata) if isinstance(metadata, dict) else None,
            children=children,
            extends=tuple(str(e) for e in _coerce_list(data.get("extends"))),
            implements=tuple(str(i) for i in _coerce_list(data.get("implements"))),
        )


@dataclass
class ModuleAnalysis:
    """One side of a comparison.

    ``nodes`` holds every declaration of the module keyed by path;
    ``exports`` is the public surface. ``errors`` collects parse problems and
    anomalies found while diffing.
    """

    filename: str
    source: str = ""
    nodes: dict[str, DeclarationNode] = field(default_factory=dict)
    exports: dict[str, DeclarationNode] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_exports(
        cls,
        exports: list[DeclarationNode],
        filename: str = "<memory>",
        source: str = "",
    ) -> "ModuleAnalysis":
        """Build an analysis whose node map is every export and its descendants."""
        nodes: dict[str, DeclarationNode] = {}
        for node in exports:
            for item in node.walk():
                nodes[item.path] = item
        return cls(
            filename=filename,
            source=source,
            nodes=nodes,
            exports={node.path: node for node in exports},
        )

    def to_dict(self) -> dict:
        return {
            "filename": self.filename,
            "source": self.source,
            "exports": [node.to_dict() for node in self.exports.values()],
            "errors": list(self.errors),
        }

    @classmethod
    def from_dict(cls, data: dict, filename: str | None = None) -> "ModuleAnalysis":
        """Reconstruct from a JSON-like dict.

        Malformed export entries are skipped and reported on ``errors``.
        """
        errors = [str(e) for e in _coerce_list(data.get("errors"))]
        exports_raw = data.get("exports")
        entries = list(exports_raw.values()) if isinstance(exports_raw, dict) else _coerce_list(exports_raw)

        exports: list[DeclarationNode] = []
        seen: set[str] = set()
        for index, raw in enumerate(entries):
            if not isinstance(raw, dict):
                errors.append(f"export #{index}: expected an object, got {type(raw).__name__}")
                continue
            try:
                node = DeclarationNode.from_dict(raw)
            except (KeyError, TypeError, ValueError) as exc:
                errors.append(f"export #{index}: {exc}")
                continue
            if node.path in seen:
                errors.append(f"duplicate export path '{node.path}'")
                continue
            seen.add(node.path)
            exports.append(node)

        analysis = cls.from_exports(
            exports,
            filename=filename or str(data.get("filename", "<memory>")),
            source=str(data.get("source", "")),
        )
        analysis.errors.extend(errors)
        return analysis


def load_module(path: Path) -> ModuleAnalysis:
    """Load a ModuleAnalysis from a ``.json``, ``.yaml`` or ``.yml`` document."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ModuleLoadError(str(path), str(exc)) from exc

    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ModuleLoadError(str(path), f"unparseable document: {exc}") from exc

    if not isinstance(data, dict):
        raise ModuleLoadError(str(path), "top-level value must be an object")

    analysis = ModuleAnalysis.from_dict(data, filename=str(data.get("filename") or path.name))
    for error in analysis.errors:
        logger.warning("%s: %s", path.name, error)
    return analysis


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _coerce_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
