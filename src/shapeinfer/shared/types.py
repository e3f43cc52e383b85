"""
Type System

Element types, tensor types and the auxiliary value types (tuple, token)
that operands and results of the tensor IR are described with.

Convention: a tensor's shape is a tuple of extents where ``None`` marks an
unknown extent. ``shape=None`` marks a fully unranked tensor (rank unknown).
All types are immutable and compared by value.
"""

from dataclasses import dataclass
from typing import Tuple, Optional, Iterable
from enum import Enum

from typing_extensions import TypeAlias


class TypeKind(Enum):
    """Discriminant of every type the engine reasons about."""
    INTEGER = "integer"
    BOOLEAN = "boolean"
    FLOAT = "float"
    COMPLEX = "complex"
    QUANTIZED = "quantized"
    TENSOR = "tensor"
    TUPLE = "tuple"
    TOKEN = "token"


ELEMENT_KINDS = frozenset({
    TypeKind.INTEGER, TypeKind.BOOLEAN, TypeKind.FLOAT,
    TypeKind.COMPLEX, TypeKind.QUANTIZED,
})

# An extent is a non-negative size or None (unknown)
Extent: TypeAlias = Optional[int]
Shape: TypeAlias = Tuple[Extent, ...]

_FLOAT_WIDTHS = {
    "f8E4M3FN": 8,
    "f8E5M2": 8,
    "bf16": 16,
    "f16": 16,
    "f32": 32,
    "f64": 64,
}


@dataclass(frozen=True)
class Type:
    """Base of all value types."""
    kind: TypeKind

    @property
    def is_element(self) -> bool:
        return self.kind in ELEMENT_KINDS


@dataclass(frozen=True)
class IntegerType(Type):
    """Signed or unsigned integer of a fixed bitwidth (i32, ui8, ...)."""
    width: int
    signed: bool = True

    def __init__(self, width: int, signed: bool = True):
        super().__init__(kind=TypeKind.INTEGER)
        if width not in (2, 4, 8, 16, 32, 64):
            raise ValueError(f"unsupported integer bitwidth: {width}")
        object.__setattr__(self, 'width', width)
        object.__setattr__(self, 'signed', signed)

    @property
    def bitwidth(self) -> int:
        return self.width

    def __str__(self) -> str:
        return f"{'i' if self.signed else 'ui'}{self.width}"

    __repr__ = __str__


@dataclass(frozen=True)
class BooleanType(Type):
    """Predicate element type (i1)."""

    def __init__(self):
        super().__init__(kind=TypeKind.BOOLEAN)

    @property
    def bitwidth(self) -> int:
        return 1

    def __str__(self) -> str:
        return "i1"

    __repr__ = __str__


@dataclass(frozen=True)
class FloatType(Type):
    """Floating-point element type, identified by its MLIR-style name."""
    name: str

    def __init__(self, name: str):
        super().__init__(kind=TypeKind.FLOAT)
        if name not in _FLOAT_WIDTHS:
            raise ValueError(f"unsupported floating-point type: {name}")
        object.__setattr__(self, 'name', name)

    @property
    def bitwidth(self) -> int:
        return _FLOAT_WIDTHS[self.name]

    def __str__(self) -> str:
        return self.name

    __repr__ = __str__


@dataclass(frozen=True)
class ComplexType(Type):
    """Complex number with floating-point components."""
    component: FloatType

    def __init__(self, component: FloatType):
        super().__init__(kind=TypeKind.COMPLEX)
        if not isinstance(component, FloatType):
            raise ValueError(f"complex component must be a float type, got {component}")
        object.__setattr__(self, 'component', component)

    @property
    def bitwidth(self) -> int:
        """Width of one component; use ``2 * bitwidth`` for the whole value."""
        return self.component.bitwidth

    def __str__(self) -> str:
        return f"complex<{self.component}>"

    __repr__ = __str__


@dataclass(frozen=True)
class QuantizedType(Type):
    """
    Uniform quantized element type.

    Values are stored as ``storage_type`` integers and represent
    ``(stored - zero_point) * scale`` in ``expressed_type``.
    """
    storage_type: IntegerType
    expressed_type: FloatType
    scale: float = 1.0
    zero_point: int = 0

    def __init__(self, storage_type: IntegerType, expressed_type: FloatType,
                 scale: float = 1.0, zero_point: int = 0):
        super().__init__(kind=TypeKind.QUANTIZED)
        object.__setattr__(self, 'storage_type', storage_type)
        object.__setattr__(self, 'expressed_type', expressed_type)
        object.__setattr__(self, 'scale', float(scale))
        object.__setattr__(self, 'zero_point', int(zero_point))

    @property
    def bitwidth(self) -> int:
        return self.storage_type.bitwidth

    def __str__(self) -> str:
        return (f"!quant.uniform<{self.storage_type}:{self.expressed_type}, "
                f"{self.scale:g}:{self.zero_point}>")

    __repr__ = __str__


ElementType: TypeAlias = Type


def _normalize_shape(shape: Optional[Iterable[Extent]]) -> Optional[Shape]:
    if shape is None:
        return None
    dims = tuple(shape)
    for d in dims:
        if d is None:
            continue
        if isinstance(d, bool) or not isinstance(d, int) or d < 0:
            raise ValueError(f"tensor extents must be non-negative integers or None, got {d!r}")
    return dims


@dataclass(frozen=True)
class TensorType(Type):
    """
    Tensor descriptor: element type plus shape.

    ``shape`` is None for a fully unranked tensor; otherwise its length is
    the rank and each entry is an extent (None when unknown).
    """
    element_type: Type
    shape: Optional[Shape] = None

    def __init__(self, element_type: Type, shape: Optional[Iterable[Extent]] = None):
        super().__init__(kind=TypeKind.TENSOR)
        if not isinstance(element_type, Type) or not element_type.is_element:
            raise ValueError(f"tensor element type must be an element type, got {element_type!r}")
        object.__setattr__(self, 'element_type', element_type)
        object.__setattr__(self, 'shape', _normalize_shape(shape))

    @property
    def has_rank(self) -> bool:
        return self.shape is not None

    @property
    def rank(self) -> Optional[int]:
        return None if self.shape is None else len(self.shape)

    def dim(self, index: int) -> Extent:
        if self.shape is None:
            return None
        return self.shape[index]

    def is_dynamic_dim(self, index: int) -> bool:
        return self.dim(index) is None

    @property
    def has_static_shape(self) -> bool:
        return self.shape is not None and all(d is not None for d in self.shape)

    @property
    def num_elements(self) -> Optional[int]:
        if not self.has_static_shape:
            return None
        count = 1
        for d in self.shape:
            count *= d
        return count

    def with_shape(self, shape: Optional[Iterable[Extent]]) -> 'TensorType':
        return TensorType(self.element_type, shape)

    def with_element_type(self, element_type: Type) -> 'TensorType':
        return TensorType(element_type, self.shape)

    def __str__(self) -> str:
        if self.shape is None:
            return f"tensor<*x{self.element_type}>"
        if not self.shape:
            return f"tensor<{self.element_type}>"
        dims = 'x'.join('?' if d is None else str(d) for d in self.shape)
        return f"tensor<{dims}x{self.element_type}>"

    __repr__ = __str__


@dataclass(frozen=True)
class TupleType(Type):
    """Tuple of value types."""
    element_types: Tuple[Type, ...]

    def __init__(self, element_types: Iterable[Type]):
        super().__init__(kind=TypeKind.TUPLE)
        object.__setattr__(self, 'element_types', tuple(element_types))

    def __len__(self) -> int:
        return len(self.element_types)

    def __str__(self) -> str:
        return f"tuple<{', '.join(str(t) for t in self.element_types)}>"

    __repr__ = __str__


@dataclass(frozen=True)
class TokenType(Type):
    """Ordering token threaded through side-effecting ops."""

    def __init__(self):
        super().__init__(kind=TypeKind.TOKEN)

    def __str__(self) -> str:
        return "!token"

    __repr__ = __str__


def is_dynamic(extent: Extent) -> bool:
    """True for an unknown extent."""
    return extent is None


def format_dims(dims: Optional[Iterable[Extent]]) -> str:
    """Render a shape or dimension list for error messages."""
    if dims is None:
        return "*"
    return "[" + ", ".join('?' if d is None else str(d) for d in dims) + "]"


# Common element types
I1 = BOOL = BooleanType()
I4 = IntegerType(4)
I8 = IntegerType(8)
I16 = IntegerType(16)
I32 = IntegerType(32)
I64 = IntegerType(64)
UI8 = IntegerType(8, signed=False)
UI16 = IntegerType(16, signed=False)
UI32 = IntegerType(32, signed=False)
UI64 = IntegerType(64, signed=False)
F8E4M3FN = FloatType("f8E4M3FN")
F8E5M2 = FloatType("f8E5M2")
BF16 = FloatType("bf16")
F16 = FloatType("f16")
F32 = FloatType("f32")
F64 = FloatType("f64")
C64 = ComplexType(F32)
C128 = ComplexType(F64)
TOKEN = TokenType()
