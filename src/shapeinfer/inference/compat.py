"""
Compatibility and unification primitives.

Two extents are compatible when equal or either is unknown; two shapes when
either is unranked or they have one rank and pairwise compatible extents.
Element types are compatible when equal or, under the relaxed
floating-point policy, both floating point.

Unification ("most specific") keeps the most refined information of a set
of compatible types: a static extent wins over an unknown one, a ranked
shape over an unranked one.
"""

from typing import Optional, Sequence

from ..shared.errors import IncompatibleShape, IncompatibleElementType, InvalidOperand
from ..shared.types import (
    Type, TypeKind, TensorType, TupleType, Extent, Shape, FloatType, IntegerType,
    ComplexType, QuantizedType, BooleanType, format_dims,
)


# ============================================================================
# Element classes
# ============================================================================

def is_float(t: Type) -> bool:
    return isinstance(t, FloatType)


def is_integer(t: Type) -> bool:
    """Signed or unsigned integers, excluding i1."""
    return isinstance(t, IntegerType)


def is_bool(t: Type) -> bool:
    return isinstance(t, BooleanType)


def is_complex(t: Type) -> bool:
    return isinstance(t, ComplexType)


def is_quantized(t: Type) -> bool:
    return isinstance(t, QuantizedType)


def element_type_of(t: Type) -> Type:
    """Element type of a tensor; element types map to themselves."""
    if isinstance(t, TensorType):
        return t.element_type
    return t


def require_tensor(t: Type, what: str) -> TensorType:
    if not isinstance(t, TensorType):
        raise InvalidOperand(f"expects {what} to be a tensor, but got {t}")
    return t


# ============================================================================
# Compatibility predicates
# ============================================================================

def compatible_extents(a: Extent, b: Extent) -> bool:
    return a is None or b is None or a == b


def compatible_shapes(a: Optional[Shape], b: Optional[Shape]) -> bool:
    if a is None or b is None:
        return True
    if len(a) != len(b):
        return False
    return all(compatible_extents(x, y) for x, y in zip(a, b))


def compatible_element_types(a: Type, b: Type, ignore_fp_precision: bool = False) -> bool:
    """Equal element types, or two floats when ``ignore_fp_precision`` is set."""
    a = element_type_of(a)
    b = element_type_of(b)
    if a == b:
        return True
    if ignore_fp_precision and is_float(a) and is_float(b):
        return True
    if isinstance(a, QuantizedType) and isinstance(b, QuantizedType):
        return (a.storage_type == b.storage_type
                and compatible_element_types(a.expressed_type, b.expressed_type,
                                             ignore_fp_precision))
    return False


def is_compatible_type(a: Type, b: Type, ignore_fp_precision: bool = False) -> bool:
    """Structural compatibility of any two value types."""
    if isinstance(a, TensorType) and isinstance(b, TensorType):
        return (compatible_shapes(a.shape, b.shape)
                and compatible_element_types(a.element_type, b.element_type,
                                             ignore_fp_precision))
    if isinstance(a, TupleType) and isinstance(b, TupleType):
        return (len(a) == len(b)
                and all(is_compatible_type(x, y, ignore_fp_precision)
                        for x, y in zip(a.element_types, b.element_types)))
    if a.kind == TypeKind.TOKEN and b.kind == TypeKind.TOKEN:
        return True
    if a.is_element and b.is_element:
        return compatible_element_types(a, b, ignore_fp_precision)
    return False


# ============================================================================
# Unification
# ============================================================================

def refine_extent(a: Extent, b: Extent) -> Extent:
    return b if a is None else a


def refine_shape(a: Optional[Shape], b: Optional[Shape]) -> Optional[Shape]:
    if a is None:
        return b
    if b is None:
        return a
    return tuple(refine_extent(x, y) for x, y in zip(a, b))


def most_specific_type(types: Sequence[Type], what: str = "types",
                       ignore_fp_precision: bool = False) -> Type:
    """
    Pointwise most specific unification of mutually compatible types.

    Raises IncompatibleElementType when element types differ and
    IncompatibleShape when ranks, extents or structure disagree.
    """
    if not types:
        raise InvalidOperand(f"expects at least one of {what} to unify")
    result = types[0]
    for other in types[1:]:
        result = _unify_pair(result, other, what, ignore_fp_precision)
    return result


def _unify_pair(a: Type, b: Type, what: str, ignore_fp_precision: bool) -> Type:
    if isinstance(a, TensorType) and isinstance(b, TensorType):
        if not compatible_element_types(a.element_type, b.element_type, ignore_fp_precision):
            raise IncompatibleElementType(
                f"{what} have different element types: {a.element_type} and {b.element_type}")
        if not compatible_shapes(a.shape, b.shape):
            raise IncompatibleShape(
                f"{what} have incompatible shapes: {format_dims(a.shape)} and "
                f"{format_dims(b.shape)}")
        return TensorType(a.element_type, refine_shape(a.shape, b.shape))
    if isinstance(a, TupleType) and isinstance(b, TupleType):
        if len(a) != len(b):
            raise IncompatibleShape(f"{what} have tuples of different sizes: {a} and {b}")
        return TupleType(_unify_pair(x, y, what, ignore_fp_precision)
                         for x, y in zip(a.element_types, b.element_types))
    if a.kind == TypeKind.TOKEN and b.kind == TypeKind.TOKEN:
        return a
    if a.is_element and b.is_element:
        if not compatible_element_types(a, b, ignore_fp_precision):
            raise IncompatibleElementType(f"{what} have different element types: {a} and {b}")
        return a
    raise IncompatibleShape(f"{what} have incompatible kinds: {a} and {b}")


def unify_type_lists(type_lists: Sequence[Sequence[Type]], what: str) -> list:
    """Unify several equally long type lists position by position."""
    sizes = {len(types) for types in type_lists}
    if len(sizes) > 1:
        raise IncompatibleShape(
            f"{what} return different numbers of values: {[len(t) for t in type_lists]}")
    return [most_specific_type([types[i] for types in type_lists], f"{what} result {i}")
            for i in range(sizes.pop() if sizes else 0)]


def verify_declared_result(inferred: Type, declared: Optional[Type], op_name: str) -> Type:
    """
    Check a declared result against the inferred one and return the more
    refined of the two.
    """
    if declared is None:
        return inferred
    if not is_compatible_type(inferred, declared):
        raise IncompatibleShape(
            f"{op_name}: inferred type {inferred} is incompatible with declared "
            f"result type {declared}")
    return most_specific_type([declared, inferred], f"{op_name} result")
