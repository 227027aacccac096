"""Type definitions for schema introspection and declaration rendering."""

from dataclasses import dataclass, field
from enum import StrEnum


class Kind(StrEnum):
    """Kind of a source type."""

    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    UINTPTR = "uintptr"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STRING = "string"
    ARRAY = "array"
    SLICE = "slice"
    MAP = "map"
    POINTER = "pointer"
    STRUCT = "struct"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"
    CHAN = "chan"
    FUNC = "func"
    INTERFACE = "interface"
    UNSAFE_POINTER = "unsafe_pointer"
    INVALID = "invalid"


# Kinds that carry no sub-descriptors
SCALAR_KINDS = frozenset(
    [
        Kind.BOOL,
        Kind.INT,
        Kind.INT8,
        Kind.INT16,
        Kind.INT32,
        Kind.INT64,
        Kind.UINT,
        Kind.UINT8,
        Kind.UINT16,
        Kind.UINT32,
        Kind.UINT64,
        Kind.UINTPTR,
        Kind.FLOAT32,
        Kind.FLOAT64,
        Kind.STRING,
    ]
)

UNSUPPORTED_KINDS = frozenset(
    [
        Kind.COMPLEX64,
        Kind.COMPLEX128,
        Kind.CHAN,
        Kind.FUNC,
        Kind.INTERFACE,
        Kind.UNSAFE_POINTER,
        Kind.INVALID,
    ]
)


@dataclass(eq=False)
class TypeDescriptor:
    """Describes a type in the source type system.

    Descriptors compare and hash by identity: two descriptors are the same
    type only if they are the same object. The parser hands out one object
    per declared struct, so every reference to a struct shares it.

    - elem: element type of array/slice/map/pointer kinds
    - key: key type of map kinds
    - length: element count of fixed arrays
    - namespace/name/fields: struct kinds only
    """

    kind: Kind
    elem: "TypeDescriptor | None" = None
    key: "TypeDescriptor | None" = None
    length: int | None = None
    namespace: str = ""
    name: str = ""
    fields: list["FieldDescriptor"] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def __repr__(self) -> str:
        if self.kind == Kind.STRUCT:
            return f"TypeDescriptor(struct {self.qualified_name})"
        return f"TypeDescriptor({self.kind})"


@dataclass(eq=False)
class FieldDescriptor:
    """Describes a single field of a struct type.

    Tags hold the serialization directives of the field keyed by their
    source (``json``, ``cbor``), in declaration order.
    """

    type: TypeDescriptor
    name: str
    embedded: bool = False
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class RenderedType:
    """A struct type as seen by the output.

    ref is the name other declarations use to refer to the type; source is
    the full declaration, or empty when the type needs none.
    """

    ref: str
    source: str = ""


def primitive(kind: Kind) -> TypeDescriptor:
    """Build a descriptor for a scalar kind."""
    if kind not in SCALAR_KINDS and kind not in UNSUPPORTED_KINDS:
        raise ValueError(f"{kind} is not a scalar kind")
    return TypeDescriptor(kind)


def slice_of(elem: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(Kind.SLICE, elem=elem)


def array_of(elem: TypeDescriptor, length: int) -> TypeDescriptor:
    return TypeDescriptor(Kind.ARRAY, elem=elem, length=length)


def map_of(key: TypeDescriptor, elem: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(Kind.MAP, elem=elem, key=key)


def pointer_to(elem: TypeDescriptor) -> TypeDescriptor:
    return TypeDescriptor(Kind.POINTER, elem=elem)


def struct(
    namespace: str, name: str, fields: list[FieldDescriptor] | None = None
) -> TypeDescriptor:
    return TypeDescriptor(Kind.STRUCT, namespace=namespace, name=name, fields=fields or [])
