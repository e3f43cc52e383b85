"""
Elementwise shape rules

Shape-preserving ops: results keep the (unified) operand shape and derive
their element type from the operands. Binary ops optionally broadcast
numpy-style.
"""

import logging
from typing import Callable, Dict, List, Optional

from ...ir.ops import (
    UnaryKind, BinaryKind, UnaryElementwiseOp, BinaryElementwiseOp, AbsOp, RealOp,
    ImagOp, ComplexOp, CompareOp, ConvertOp, IsFiniteOp, SelectOp, ClampOp,
    UniformDequantizeOp, BitcastConvertOp,
)
from ...shared.errors import (
    IncompatibleElementType, IncompatibleShape, InvalidAttributeValue,
)
from ...shared.types import (
    Type, TensorType, Extent, Shape, ComplexType, QuantizedType, format_dims,
)
from ...utils.config import (
    PREDICATE_ELEMENT_TYPE, COMPARISON_DIRECTIONS, COMPARISON_TYPES,
    COMPLEX_COMPONENT_TYPES,
)
from ..compat import (
    require_tensor, most_specific_type, is_float, is_integer, is_bool, is_complex,
    is_quantized, compatible_shapes,
)

logger = logging.getLogger(__name__)

ElementClass = Callable[[Type], bool]


def _is_numeric(t: Type) -> bool:
    return is_integer(t) or is_float(t) or is_complex(t) or is_quantized(t)


def _is_float_like(t: Type) -> bool:
    return is_float(t) or is_complex(t) or is_quantized(t)


def _is_int_or_bool(t: Type) -> bool:
    return is_integer(t) or is_bool(t)


def _is_any(t: Type) -> bool:
    return True


def _is_real_float(t: Type) -> bool:
    return is_float(t) or is_quantized(t)


_UNARY_ELEMENTS: Dict[UnaryKind, ElementClass] = {
    UnaryKind.NEGATE: _is_numeric,
    UnaryKind.SIGN: _is_numeric,
    UnaryKind.EXPONENTIAL: _is_float_like,
    UnaryKind.EXPONENTIAL_MINUS_ONE: _is_float_like,
    UnaryKind.LOG: _is_float_like,
    UnaryKind.LOG_PLUS_ONE: _is_float_like,
    UnaryKind.SQRT: _is_float_like,
    UnaryKind.RSQRT: _is_float_like,
    UnaryKind.CBRT: _is_float_like,
    UnaryKind.TANH: _is_float_like,
    UnaryKind.LOGISTIC: _is_float_like,
    UnaryKind.SINE: _is_float_like,
    UnaryKind.COSINE: _is_float_like,
    UnaryKind.FLOOR: _is_real_float,
    UnaryKind.CEIL: _is_real_float,
    UnaryKind.ROUND_NEAREST_AFZ: _is_real_float,
    UnaryKind.ROUND_NEAREST_EVEN: _is_real_float,
    UnaryKind.NOT: _is_int_or_bool,
    UnaryKind.POPCNT: is_integer,
    UnaryKind.COUNT_LEADING_ZEROS: is_integer,
}

_BINARY_ELEMENTS: Dict[BinaryKind, ElementClass] = {
    BinaryKind.ADD: _is_any,
    BinaryKind.SUBTRACT: _is_numeric,
    BinaryKind.MULTIPLY: _is_any,
    BinaryKind.DIVIDE: _is_numeric,
    BinaryKind.REMAINDER: _is_numeric,
    BinaryKind.MAXIMUM: _is_any,
    BinaryKind.MINIMUM: _is_any,
    BinaryKind.POWER: _is_numeric,
    BinaryKind.ATAN2: _is_float_like,
    BinaryKind.AND: _is_int_or_bool,
    BinaryKind.OR: _is_int_or_bool,
    BinaryKind.XOR: _is_int_or_bool,
    BinaryKind.SHIFT_LEFT: is_integer,
    BinaryKind.SHIFT_RIGHT_ARITHMETIC: is_integer,
    BinaryKind.SHIFT_RIGHT_LOGICAL: is_integer,
}


def _check_element(t: TensorType, allowed: ElementClass, op_name: str) -> None:
    if not allowed(t.element_type):
        raise IncompatibleElementType(
            f"{op_name} does not support element type {t.element_type}")


def element_bitwidth(t: Type) -> int:
    """Storage width of one element; complex counts both components."""
    if isinstance(t, ComplexType):
        return 2 * t.bitwidth
    return t.bitwidth


def broadcast_shapes(lhs: Optional[Shape], rhs: Optional[Shape]) -> Optional[Shape]:
    """
    numpy-style broadcast of two shapes, right aligned.

    An extent of 1 stretches to the other side; an unknown extent against a
    known one > 1 takes the known one. An unranked side makes the result
    unranked.
    """
    if lhs is None or rhs is None:
        return None
    rank = max(len(lhs), len(rhs))
    lhs = (1,) * (rank - len(lhs)) + tuple(lhs)
    rhs = (1,) * (rank - len(rhs)) + tuple(rhs)
    result = []
    for i, (a, b) in enumerate(zip(lhs, rhs)):
        if a == 1:
            result.append(b)
        elif b == 1:
            result.append(a)
        elif a is None:
            result.append(b)
        elif b is None or a == b:
            result.append(a)
        else:
            raise IncompatibleShape(
                f"operands could not be broadcast together with shapes "
                f"{format_dims(lhs)} {format_dims(rhs)} (dimension {i}: {a} vs {b})")
    return tuple(result)


def unify_operands(operands: List[Type], what: str) -> TensorType:
    """Most specific tensor type of operands that must share shape and element type."""
    tensors = [require_tensor(t, what) for t in operands]
    return most_specific_type(tensors, what)


# ============================================================================
# Rules
# ============================================================================

def infer_unary(op: UnaryElementwiseOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    _check_element(operand, _UNARY_ELEMENTS[op.kind], op.kind.value)
    return [operand]


def infer_binary(op: BinaryElementwiseOp) -> List[Type]:
    lhs = require_tensor(op.lhs, "lhs")
    rhs = require_tensor(op.rhs, "rhs")
    allowed = _BINARY_ELEMENTS[op.kind]
    _check_element(lhs, allowed, op.kind.value)
    if lhs.element_type != rhs.element_type:
        raise IncompatibleElementType(
            f"{op.kind.value} operands have different element types: "
            f"{lhs.element_type} and {rhs.element_type}")
    if op.broadcast:
        shape = broadcast_shapes(lhs.shape, rhs.shape)
        logger.debug(f"{op.kind.value}: broadcast {lhs} and {rhs} to {format_dims(shape)}")
        return [TensorType(lhs.element_type, shape)]
    return [unify_operands([lhs, rhs], f"{op.kind.value} operands")]


def infer_abs(op: AbsOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    _check_element(operand, _is_numeric, "abs")
    element = operand.element_type
    if isinstance(element, ComplexType):
        return [TensorType(element.component, operand.shape)]
    return [operand]


def _infer_complex_part(operand: Type, op_name: str) -> List[Type]:
    operand = require_tensor(operand, "operand")
    element = operand.element_type
    if isinstance(element, ComplexType):
        return [TensorType(element.component, operand.shape)]
    if is_float(element):
        return [operand]
    raise IncompatibleElementType(
        f"{op_name} expects a floating-point or complex operand, got {element}")


def infer_real(op: RealOp) -> List[Type]:
    return _infer_complex_part(op.operand, "real")


def infer_imag(op: ImagOp) -> List[Type]:
    return _infer_complex_part(op.operand, "imag")


def infer_complex(op: ComplexOp) -> List[Type]:
    unified = unify_operands([op.lhs, op.rhs], "complex operands")
    element = unified.element_type
    if not is_float(element) or element.name not in COMPLEX_COMPONENT_TYPES:
        raise IncompatibleElementType(
            f"complex expects f32 or f64 components, got {element}")
    return [TensorType(ComplexType(element), unified.shape)]


def infer_compare(op: CompareOp) -> List[Type]:
    if op.comparison_direction not in COMPARISON_DIRECTIONS:
        raise InvalidAttributeValue(
            f"unknown comparison_direction {op.comparison_direction!r}, expected one of "
            f"{', '.join(COMPARISON_DIRECTIONS)}")
    if op.compare_type is not None and op.compare_type not in COMPARISON_TYPES:
        raise InvalidAttributeValue(
            f"unknown compare_type {op.compare_type!r}, expected one of "
            f"{', '.join(COMPARISON_TYPES)}")
    unified = unify_operands([op.lhs, op.rhs], "compare operands")
    return [TensorType(PREDICATE_ELEMENT_TYPE, unified.shape)]


def infer_convert(op: ConvertOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    if not op.element_type.is_element:
        raise IncompatibleElementType(f"convert target must be an element type, got {op.element_type}")
    return [TensorType(op.element_type, operand.shape)]


def infer_is_finite(op: IsFiniteOp) -> List[Type]:
    x = require_tensor(op.x, "x")
    _check_element(x, _is_real_float, "is_finite")
    return [TensorType(PREDICATE_ELEMENT_TYPE, x.shape)]


def infer_select(op: SelectOp) -> List[Type]:
    pred = require_tensor(op.pred, "pred")
    if pred.element_type != PREDICATE_ELEMENT_TYPE:
        raise IncompatibleElementType(f"select expects an i1 predicate, got {pred.element_type}")
    result = unify_operands([op.on_true, op.on_false], "select branches")
    if pred.has_rank and pred.rank == 0:
        return [result]
    if not compatible_shapes(pred.shape, result.shape):
        raise IncompatibleShape(
            f"requires the same shape for all operands: pred {format_dims(pred.shape)} "
            f"vs {format_dims(result.shape)}")
    refined = most_specific_type([result, TensorType(result.element_type, pred.shape)],
                                 "select operands")
    return [refined]


def infer_clamp(op: ClampOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    for name, bound in (("min", op.min), ("max", op.max)):
        bound = require_tensor(bound, name)
        if bound.element_type != operand.element_type:
            raise IncompatibleElementType(
                f"clamp {name} has element type {bound.element_type}, operand has "
                f"{operand.element_type}")
        if bound.has_rank and bound.rank == 0:
            continue
        if not compatible_shapes(bound.shape, operand.shape):
            raise IncompatibleShape(
                f"{name} shape {format_dims(bound.shape)} is not scalar and is not "
                f"compatible with operand shape {format_dims(operand.shape)}")
    return [operand]


def infer_uniform_dequantize(op: UniformDequantizeOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    element = operand.element_type
    if not isinstance(element, QuantizedType):
        raise IncompatibleElementType(f"uniform_dequantize expects a quantized operand, got {element}")
    return [TensorType(element.expressed_type, operand.shape)]


def infer_bitcast_convert(op: BitcastConvertOp) -> List[Type]:
    """
    Same-width conversions keep the shape. Narrowing adds a trailing
    dimension of size ``operand_width / result_width``; widening consumes
    one of size ``result_width / operand_width``.
    """
    operand = require_tensor(op.operand, "operand")
    result = require_tensor(op.result, "result")
    operand_width = element_bitwidth(operand.element_type)
    result_width = element_bitwidth(result.element_type)
    if not operand.has_rank or not result.has_rank:
        return [result]

    if operand_width == result_width:
        if not compatible_shapes(operand.shape, result.shape):
            raise IncompatibleShape(
                f"operand shape {format_dims(operand.shape)} and result shape "
                f"{format_dims(result.shape)} don't match")
        return [result]

    # the narrower element type carries the extra trailing dimension
    if operand_width > result_width:
        wide, narrow, ratio = operand.shape, result.shape, operand_width // result_width
    else:
        wide, narrow, ratio = result.shape, operand.shape, result_width // operand_width
    if len(narrow) != len(wide) + 1:
        raise IncompatibleShape(
            f"rank of smaller element type should be 1 more than rank of larger element "
            f"type, got {operand} and {result}")
    if not compatible_shapes(tuple(narrow[:-1]), tuple(wide)):
        raise IncompatibleShape(
            f"operand shape {format_dims(operand.shape)} and result shape "
            f"{format_dims(result.shape)} don't match")
    trailing: Extent = narrow[-1]
    if trailing is not None and trailing != ratio:
        raise IncompatibleShape(
            f"requires compatible bitwidths: trailing dimension must be {ratio}, got {trailing}")
    return [result]


RULES = {
    UnaryElementwiseOp: infer_unary,
    BinaryElementwiseOp: infer_binary,
    AbsOp: infer_abs,
    RealOp: infer_real,
    ImagOp: infer_imag,
    ComplexOp: infer_complex,
    CompareOp: infer_compare,
    ConvertOp: infer_convert,
    IsFiniteOp: infer_is_finite,
    SelectOp: infer_select,
    ClampOp: infer_clamp,
    UniformDequantizeOp: infer_uniform_dequantize,
    BitcastConvertOp: infer_bitcast_convert,
}
