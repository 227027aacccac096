"""Type graph visitor producing TypeScript declarations."""

import logging
from dataclasses import dataclass
from enum import StrEnum, auto

from .config import NamespaceMap
from .types import FieldDescriptor, Kind, RenderedType, TypeDescriptor

logger = logging.getLogger(__name__)

# Map scalar kinds to TypeScript types
PRIMITIVE_TYPE_MAP = {
    Kind.BOOL: "boolean",
    Kind.INT: "number",
    Kind.INT8: "number",
    Kind.INT16: "number",
    Kind.INT32: "number",
    Kind.UINT: "number",
    Kind.UINT8: "number",
    Kind.UINT16: "number",
    Kind.UINT32: "number",
    Kind.FLOAT32: "number",
    Kind.FLOAT64: "number",
    # Kept apart from number, which cannot hold every 64-bit integer
    Kind.INT64: "longnum",
    Kind.UINT64: "longnum",
    Kind.UINTPTR: "longnum",
    Kind.STRING: "string",
}

BYTES_TYPE = "Uint8Array"

# Directive sources in priority order, only the first present one is used
DIRECTIVE_SOURCES = ("cbor", "json")

INDENT = "    "


class TranslationError(RuntimeError):
    """Raised when a type graph cannot be translated faithfully."""


class UnmappedNamespace(TranslationError):
    """A struct type lives in a namespace without a configured prefix."""

    def __init__(self, namespace: str, name: str):
        super().__init__(f"unset namespace prefix {namespace!r} (needed by {name})")
        self.namespace = namespace


class AmbiguousEmbedding(TranslationError):
    """A struct type has more than one embedded member."""


class UnsupportedDirective(TranslationError):
    """A field carries a serialization directive that is not understood."""

    def __init__(self, source: str, flag: str, field_name: str):
        super().__init__(f"unhandled {source} tag {flag!r} on field {field_name}")
        self.source = source
        self.flag = flag


class ShapeConflict(TranslationError):
    """A declaration is asked for two incompatible shapes."""


class UnsupportedKind(TranslationError):
    """A type kind has no faithful TypeScript rendering."""

    def __init__(self, kind: Kind):
        super().__init__(f"unhandled kind {kind}")
        self.kind = kind


class StaleConfiguration(TranslationError):
    """Configured namespace prefixes were never needed."""

    def __init__(self, namespaces: list[str]):
        super().__init__(f"unused namespace prefix {', '.join(namespaces)}")
        self.namespaces = namespaces


class Shape(StrEnum):
    """Shape of a struct declaration."""

    RECORD = auto()
    TUPLE = auto()
    EMPTY_MAP = auto()


@dataclass
class _Directives:
    """Effective naming of a field after reading its tags.

    name is None for marker fields, which only carry declaration flags.
    """

    name: str | None
    optional: bool = False
    to_tuple: bool = False


def _read_directives(f: FieldDescriptor) -> _Directives:
    source = next((s for s in DIRECTIVE_SOURCES if s in f.tags), None)
    if source is None:
        return _Directives(name=f.name)

    name, *flags = f.tags[source].split(",")

    if source == "cbor":
        if name:
            if flags:
                raise UnsupportedDirective(source, flags[0], f.name)
            return _Directives(name=name)
        directives = _Directives(name=None)
        for flag in flags:
            if flag != "toarray":
                raise UnsupportedDirective(source, flag, f.name)
            if directives.to_tuple:
                raise ShapeConflict(f"field {f.name} requests tuple shape twice")
            directives.to_tuple = True
        return directives

    directives = _Directives(name=name or f.name)
    for flag in flags:
        if flag != "omitempty":
            raise UnsupportedDirective(source, flag, f.name)
        directives.optional = True
    return directives


def _part(t: TypeDescriptor, part: TypeDescriptor | None, role: str) -> TypeDescriptor:
    if part is None:
        raise TranslationError(f"{t.kind} type without {role} type")
    return part


class TypeVisitor:
    """Resolve source types to TypeScript, collecting struct declarations.

    One visitor holds the state of one run: declarations in the order their
    types were completed, and a memo of every struct type already seen.
    """

    def __init__(
        self,
        namespaces: NamespaceMap,
        substitutions: dict[str, TypeDescriptor] | None = None,
    ):
        self.namespaces = namespaces
        self.substitutions = substitutions or {}
        self._declarations: list[RenderedType] = []
        self._memo: dict[TypeDescriptor, RenderedType] = {}
        self._in_progress: set[TypeDescriptor] = set()
        self._referenced_early: set[TypeDescriptor] = set()

    @property
    def declarations(self) -> list[RenderedType]:
        """Rendered declarations in emission order."""
        return list(self._declarations)

    def resolve(self, t: TypeDescriptor) -> str:
        """Return the TypeScript spelling of a type, declaring it if needed."""
        if t.kind == Kind.STRUCT and t.qualified_name in self.substitutions:
            t = self.substitutions[t.qualified_name]

        rendered = self._memo.get(t)
        if rendered is not None:
            if t in self._in_progress:
                self._referenced_early.add(t)
            return rendered.ref

        if t.kind in PRIMITIVE_TYPE_MAP:
            return PRIMITIVE_TYPE_MAP[t.kind]

        if t.kind in (Kind.ARRAY, Kind.SLICE):
            elem = _part(t, t.elem, "element")
            if elem.kind == Kind.UINT8:
                return BYTES_TYPE
            return f"{self.resolve(elem)}[]"

        if t.kind == Kind.MAP:
            key = _part(t, t.key, "key")
            elem = _part(t, t.elem, "value")
            if key.kind == Kind.STRING:
                return f"{{[key: string]: {self.resolve(elem)}}}"
            return f"Map<{self.resolve(key)}, {self.resolve(elem)}>"

        if t.kind == Kind.POINTER:
            return self.resolve(_part(t, t.elem, "pointee"))

        if t.kind == Kind.STRUCT:
            return self._resolve_struct(t)

        raise UnsupportedKind(t.kind)

    def check_consulted(self) -> None:
        """Fail if any configured namespace prefix was never needed."""
        unused = self.namespaces.unconsulted()
        if unused:
            raise StaleConfiguration(unused)

    def _reference(self, t: TypeDescriptor) -> str:
        prefix = self.namespaces.lookup(t.namespace)
        if prefix is None:
            raise UnmappedNamespace(t.namespace, t.name)
        if prefix == t.name:
            return t.name
        return prefix + t.name

    def _resolve_struct(self, t: TypeDescriptor) -> str:
        ref = self._reference(t)

        # Registered before the fields so self references resolve to the name
        rendered = RenderedType(ref)
        self._memo[t] = rendered
        self._in_progress.add(t)

        extends: str | None = None
        lines: list[str] = []
        shape = Shape.RECORD

        for f in t.fields:
            if f.embedded:
                if extends is not None:
                    raise AmbiguousEmbedding(f"multiple embedded types in {t.qualified_name}")
                extends = self.resolve(f.type)
                continue

            directives = _read_directives(f)
            if directives.to_tuple:
                if lines:
                    raise ShapeConflict(
                        f"changing {t.qualified_name} to tuple shape after fields are rendered"
                    )
                if shape == Shape.TUPLE:
                    raise ShapeConflict(f"{t.qualified_name} requests tuple shape twice")
                shape = Shape.TUPLE
            if directives.name is None:
                continue

            field_ref = self.resolve(f.type)
            if shape == Shape.TUPLE:
                if directives.optional:
                    raise ShapeConflict(
                        f"optional field {directives.name} in tuple {t.qualified_name}"
                    )
                lines.append(f"{INDENT}{directives.name}: {field_ref},")
            else:
                optional = "?" if directives.optional else ""
                lines.append(f"{INDENT}{directives.name}{optional}: {field_ref};")

        self._in_progress.discard(t)

        if not lines and extends is not None:
            if t in self._referenced_early:
                raise ShapeConflict(
                    f"{t.qualified_name} was referenced as {ref} but aliases {extends}"
                )
            logger.debug("%s is an alias of %s", t.qualified_name, extends)
            self._memo[t] = RenderedType(extends)
            return extends

        if shape == Shape.RECORD and not lines:
            shape = Shape.EMPTY_MAP

        rendered.source = self._render(ref, shape, extends, lines)
        self._declarations.append(rendered)
        logger.debug("declared %s as %s (%s)", t.qualified_name, ref, shape)
        return ref

    def _render(self, ref: str, shape: Shape, extends: str | None, lines: list[str]) -> str:
        if shape != Shape.RECORD and extends is not None:
            raise ShapeConflict(f"{ref} cannot extend {extends} in {shape} shape")

        body = "".join(f"{line}\n" for line in lines)
        if shape == Shape.TUPLE:
            return f"export type {ref} = [\n{body}];"
        if shape == Shape.EMPTY_MAP:
            return f"export type {ref} = Map<never, never>;"
        heritage = f" extends {extends}" if extends is not None else ""
        return f"export interface {ref}{heritage} {{\n{body}}}"
