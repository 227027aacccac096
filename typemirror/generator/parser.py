"""Schema definition parser using Lark."""

import os
from dataclasses import dataclass, field
from typing import Any, TypeVar

from lark import Lark
from lark.exceptions import UnexpectedInput
from lark.visitors import Transformer

from .types import (
    SCALAR_KINDS,
    UNSUPPORTED_KINDS,
    FieldDescriptor,
    Kind,
    TypeDescriptor,
    array_of,
    map_of,
    pointer_to,
    slice_of,
    struct,
)

_g_parser: Lark | None = None

# Type names that denote a kind rather than a declared type
KIND_NAMES = {kind.value: kind for kind in SCALAR_KINDS | UNSUPPORTED_KINDS}


class SchemaError(RuntimeError):
    """Raised when a schema definition is malformed or inconsistent."""


@dataclass
class _Ref:
    namespace: str | None
    name: str


@dataclass
class _Composite:
    kind: Kind
    args: list[Any]
    length: int | None = None


@dataclass
class _Tag:
    source: str
    value: str


@dataclass
class _Field:
    name: str
    type: Any
    embedded: bool
    tags: list[_Tag]


@dataclass
class _Struct:
    name: str
    fields: list[_Field]


@dataclass
class _Alias:
    name: str
    type: Any


@dataclass
class _Namespace:
    alias: str
    identifier: str
    declarations: list[_Struct | _Alias]


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _unquote(token: Any) -> str:
    return str(token)[1:-1]


class TreeTransformer(Transformer):
    """Transform parse tree into intermediate schema records."""

    def schema(self, args: list[Any]) -> list[_Namespace]:
        return _filter(args, _Namespace)

    def type_start(self, args: list[Any]) -> Any:
        return args[0]

    def namespace(self, args: list[Any]) -> _Namespace:
        return _Namespace(
            alias=str(args[0]),
            identifier=_unquote(args[1]),
            declarations=[d for d in args[2:] if isinstance(d, (_Struct, _Alias))],
        )

    def struct(self, args: list[Any]) -> _Struct:
        return _Struct(name=str(args[0]), fields=_filter(args, _Field))

    def alias(self, args: list[Any]) -> _Alias:
        return _Alias(name=str(args[0]), type=args[1])

    def member(self, args: list[Any]) -> _Field:
        return _Field(name=str(args[0]), type=args[1], embedded=False, tags=_filter(args, _Tag))

    def embedded(self, args: list[Any]) -> _Field:
        ref: _Ref = args[0]
        return _Field(name=ref.name, type=ref, embedded=True, tags=_filter(args, _Tag))

    def marker(self, args: list[Any]) -> _Field:
        return _Field(name="_", type=None, embedded=False, tags=_filter(args, _Tag))

    def tag(self, args: list[Any]) -> _Tag:
        return _Tag(source=str(args[0]), value=_unquote(args[1]))

    def list_type(self, args: list[Any]) -> _Composite:
        return _Composite(Kind.SLICE, [args[0]])

    def array_type(self, args: list[Any]) -> _Composite:
        return _Composite(Kind.ARRAY, [args[0]], length=int(args[1]))

    def map_type(self, args: list[Any]) -> _Composite:
        return _Composite(Kind.MAP, [args[0], args[1]])

    def ptr_type(self, args: list[Any]) -> _Composite:
        return _Composite(Kind.POINTER, [args[0]])

    def type_ref(self, args: list[Any]) -> _Ref:
        if len(args) == 2:
            return _Ref(namespace=str(args[0]), name=str(args[1]))
        return _Ref(namespace=None, name=str(args[0]))


@dataclass
class Namespace:
    """A namespace of the schema and the types declared in it."""

    alias: str
    identifier: str
    structs: dict[str, TypeDescriptor] = field(default_factory=dict)
    aliases: dict[str, Any] = field(default_factory=dict)


class Schema:
    """Linked type graph of a parsed schema.

    Every declared struct is represented by exactly one TypeDescriptor, so
    descriptor identity doubles as type identity.
    """

    def __init__(self, namespaces: list[_Namespace]):
        self.namespaces: dict[str, Namespace] = {}
        self._by_identifier: dict[str, Namespace] = {}
        self._resolved_aliases: dict[tuple[str, str], TypeDescriptor] = {}
        self._resolving: set[tuple[str, str]] = set()

        for ns in namespaces:
            self._declare(ns)
        for ns in namespaces:
            self._link(ns)

    def lookup(self, name: str) -> TypeDescriptor:
        """Find a declared type by ``alias.Name`` or ``identifier.Name``."""
        if "." not in name:
            raise SchemaError(f"type name {name!r} must be qualified by its namespace")
        qualifier, type_name = name.rsplit(".", 1)
        ns = self.namespaces.get(qualifier) or self._by_identifier.get(qualifier)
        if ns is None:
            raise SchemaError(f"unknown namespace {qualifier!r}")
        return self._lookup_in(ns, type_name)

    def parse_type(self, text: str) -> TypeDescriptor:
        """Parse a type expression; named types must be namespace qualified."""
        expr = TreeTransformer().transform(_parse(text, "type_start"))
        return self._build(expr, None)

    def _declare(self, ns: _Namespace) -> None:
        if ns.alias in self.namespaces:
            raise SchemaError(f"namespace {ns.alias} declared twice")
        if ns.identifier in self._by_identifier:
            raise SchemaError(f"namespace {ns.identifier!r} declared twice")

        namespace = Namespace(alias=ns.alias, identifier=ns.identifier)
        for decl in ns.declarations:
            if decl.name in namespace.structs or decl.name in namespace.aliases:
                raise SchemaError(f"{ns.alias}.{decl.name} declared twice")
            if isinstance(decl, _Struct):
                namespace.structs[decl.name] = struct(ns.identifier, decl.name)
            else:
                namespace.aliases[decl.name] = decl.type

        self.namespaces[ns.alias] = namespace
        self._by_identifier[ns.identifier] = namespace

    def _link(self, ns: _Namespace) -> None:
        namespace = self.namespaces[ns.alias]
        for decl in _filter(ns.declarations, _Struct):
            descriptor = namespace.structs[decl.name]
            for f in decl.fields:
                tags: dict[str, str] = {}
                for tag in f.tags:
                    if tag.source in tags:
                        raise SchemaError(
                            f"duplicate {tag.source} tag on {ns.alias}.{decl.name}.{f.name}"
                        )
                    tags[tag.source] = tag.value

                if f.type is None:
                    # Marker fields are typed as the anonymous empty struct
                    field_type = struct("", "")
                else:
                    field_type = self._build(f.type, namespace)
                descriptor.fields.append(
                    FieldDescriptor(type=field_type, name=f.name, embedded=f.embedded, tags=tags)
                )

    def _build(self, expr: Any, current: Namespace | None) -> TypeDescriptor:
        if isinstance(expr, _Composite):
            args = [self._build(arg, current) for arg in expr.args]
            if expr.kind == Kind.SLICE:
                return slice_of(args[0])
            if expr.kind == Kind.ARRAY:
                if expr.length is None:
                    raise SchemaError("array type without a length")
                return array_of(args[0], expr.length)
            if expr.kind == Kind.MAP:
                return map_of(args[0], args[1])
            return pointer_to(args[0])

        if expr.namespace is None:
            if expr.name in KIND_NAMES:
                return TypeDescriptor(KIND_NAMES[expr.name])
            if current is None:
                raise SchemaError(f"type name {expr.name!r} must be qualified by its namespace")
            return self._lookup_in(current, expr.name)

        ns = self.namespaces.get(expr.namespace)
        if ns is None:
            raise SchemaError(f"unknown namespace {expr.namespace!r}")
        return self._lookup_in(ns, expr.name)

    def _lookup_in(self, ns: Namespace, name: str) -> TypeDescriptor:
        if name in ns.structs:
            return ns.structs[name]
        if name not in ns.aliases:
            raise SchemaError(f"unknown type {ns.alias}.{name}")

        key = (ns.alias, name)
        if key in self._resolved_aliases:
            return self._resolved_aliases[key]
        if key in self._resolving:
            raise SchemaError(f"alias {ns.alias}.{name} refers to itself")

        self._resolving.add(key)
        try:
            resolved = self._build(ns.aliases[name], ns)
        finally:
            self._resolving.discard(key)
        self._resolved_aliases[key] = resolved
        return resolved


def _parse(text: str, start: str) -> Any:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/schema.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar, start=["schema", "type_start"])

    try:
        return _g_parser.parse(text, start=start)
    except UnexpectedInput as e:
        raise SchemaError(f"syntax error at line {e.line}, column {e.column}") from e


def parse(text: str) -> Schema:
    """Parse a schema definition into a linked type graph."""
    tree = _parse(text, "schema")
    namespaces = TreeTransformer().transform(tree)
    return Schema(namespaces)
