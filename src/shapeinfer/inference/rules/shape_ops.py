"""
Shape manipulation rules

broadcast, concatenate, transpose, reshape, pad, slice, reverse, iota,
get_dimension_size and constant. Ops whose result cannot be inferred from
operands (broadcast_in_dim, dynamic_broadcast_in_dim, reshape,
dynamic_reshape, iota) verify the declared result and return it.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from ...ir.ops import (
    BroadcastOp, BroadcastInDimOp, DynamicBroadcastInDimOp, ConcatenateOp, TransposeOp,
    ReshapeOp, DynamicReshapeOp, PadOp, SliceOp, RealDynamicSliceOp, ReverseOp, IotaOp,
    GetDimensionSizeOp, ConstantOp,
)
from ...shared.errors import (
    IncompatibleShape, IncompatibleElementType, InvalidAttributeValue,
    InvalidDimensionMapping, InvalidOperand, MalformedAttribute, AttributeArityMismatch,
)
from ...shared.types import (
    Type, TensorType, Extent, I1, I8, I16, I32, I64, UI8, UI16, UI32, UI64,
    F16, F32, F64, C64, C128, format_dims,
)
from ...utils.config import DIMENSION_SIZE_ELEMENT_TYPE
from ..attributes import decode_1d
from ..compat import (
    require_tensor, compatible_extents, is_integer, most_specific_type,
)

logger = logging.getLogger(__name__)

_DTYPE_ELEMENT_TYPES = {
    np.dtype(np.bool_): I1,
    np.dtype(np.int8): I8,
    np.dtype(np.int16): I16,
    np.dtype(np.int32): I32,
    np.dtype(np.int64): I64,
    np.dtype(np.uint8): UI8,
    np.dtype(np.uint16): UI16,
    np.dtype(np.uint32): UI32,
    np.dtype(np.uint64): UI64,
    np.dtype(np.float16): F16,
    np.dtype(np.float32): F32,
    np.dtype(np.float64): F64,
    np.dtype(np.complex64): C64,
    np.dtype(np.complex128): C128,
}


def _check_dims_in_range(dims: Sequence[int], rank: Optional[int], name: str) -> None:
    if len(set(dims)) != len(dims):
        raise InvalidDimensionMapping(f"{name} should not have duplicates: {list(dims)}")
    for d in dims:
        if d < 0 or (rank is not None and d >= rank):
            raise InvalidDimensionMapping(
                f"{name} contains dimension {d} which is out of range [0, {rank})")


def _verify_broadcast_dimensions(operand: TensorType, result: TensorType,
                                 broadcast_dimensions: Sequence[int]) -> None:
    if not operand.has_rank:
        return
    if len(broadcast_dimensions) != operand.rank:
        raise AttributeArityMismatch(
            f"broadcast_dimensions size ({len(broadcast_dimensions)}) does not match "
            f"operand rank ({operand.rank})")
    if not result.has_rank:
        _check_dims_in_range(broadcast_dimensions, None, "broadcast_dimensions")
        return
    if result.rank < operand.rank:
        raise IncompatibleShape(
            f"result rank ({result.rank}) is less than operand rank ({operand.rank})")
    _check_dims_in_range(broadcast_dimensions, result.rank, "broadcast_dimensions")
    for i, d in enumerate(broadcast_dimensions):
        operand_extent, result_extent = operand.dim(i), result.dim(d)
        if operand_extent == 1 or compatible_extents(operand_extent, result_extent):
            continue
        raise IncompatibleShape(
            f"size of operand dimension {i} ({operand_extent}) is not equal to 1 or size "
            f"of result dimension {d} ({result_extent})")


def infer_broadcast(op: BroadcastOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    sizes = decode_1d(op.broadcast_sizes, "broadcast_sizes")
    for size in sizes:
        if size < 0:
            raise InvalidAttributeValue(f"broadcast_sizes contains negative size {size}")
    if not operand.has_rank:
        return [TensorType(operand.element_type)]
    return [TensorType(operand.element_type, tuple(sizes) + operand.shape)]


def infer_broadcast_in_dim(op: BroadcastInDimOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    result = require_tensor(op.result, "result")
    if operand.element_type != result.element_type:
        raise IncompatibleElementType(
            f"broadcast_in_dim result element type {result.element_type} differs from "
            f"operand element type {operand.element_type}")
    dims = decode_1d(op.broadcast_dimensions, "broadcast_dimensions")
    _verify_broadcast_dimensions(operand, result, dims)
    return [result]


def infer_dynamic_broadcast_in_dim(op: DynamicBroadcastInDimOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    result = require_tensor(op.result, "result")
    output_dimensions = require_tensor(op.output_dimensions, "output_dimensions")
    if output_dimensions.has_rank and output_dimensions.rank != 1:
        raise IncompatibleShape(
            f"output_dimensions must be a 1-D tensor, got rank {output_dimensions.rank}")
    if not is_integer(output_dimensions.element_type):
        raise IncompatibleElementType(
            f"output_dimensions must hold integers, got {output_dimensions.element_type}")
    num_dims = output_dimensions.dim(0) if output_dimensions.has_rank else None
    if num_dims is not None and result.has_rank and num_dims != result.rank:
        raise IncompatibleShape(
            f"result rank ({result.rank}) does not match output_dimensions size ({num_dims})")
    if operand.element_type != result.element_type:
        raise IncompatibleElementType(
            f"dynamic_broadcast_in_dim result element type {result.element_type} differs "
            f"from operand element type {operand.element_type}")

    dims = decode_1d(op.broadcast_dimensions, "broadcast_dimensions")
    _verify_broadcast_dimensions(operand, result, dims)

    expanding = decode_1d(op.known_expanding_dimensions, "known_expanding_dimensions")
    nonexpanding = decode_1d(op.known_nonexpanding_dimensions, "known_nonexpanding_dimensions")
    _check_dims_in_range(expanding, operand.rank, "known_expanding_dimensions")
    _check_dims_in_range(nonexpanding, operand.rank, "known_nonexpanding_dimensions")
    both = sorted(set(expanding) & set(nonexpanding))
    if both:
        raise InvalidDimensionMapping(
            f"duplicate expansion hint for at least one operand dimension: {both[0]}")
    return [result]


def infer_concatenate(op: ConcatenateOp) -> List[Type]:
    if not op.inputs:
        raise InvalidOperand("expects at least one input")
    inputs = [require_tensor(t, "concatenate input") for t in op.inputs]
    if op.dimension < 0:
        raise InvalidDimensionMapping(f"dimension {op.dimension} is negative")

    element_type = inputs[0].element_type
    for i, t in enumerate(inputs[1:], start=1):
        if t.element_type != element_type:
            raise IncompatibleElementType(
                f"inputs have different element types: input 0 has {element_type}, "
                f"input {i} has {t.element_type}")

    ranked = [t for t in inputs if t.has_rank]
    if not ranked:
        return [TensorType(element_type)]
    rank = ranked[0].rank
    for t in ranked:
        if t.rank != rank:
            raise IncompatibleShape(
                f"operands ({inputs[0]}) and ({t}) do not match rank")
    if op.dimension >= rank:
        raise InvalidDimensionMapping(
            "rank-0 values cannot be concatenated" if rank == 0 else
            f"dimension {op.dimension} is out-of-bounds for input rank {rank}")

    shape: List[Extent] = []
    for d in range(rank):
        extents = [t.dim(d) for t in ranked]
        if d == op.dimension:
            if any(e is None for e in extents) or len(ranked) != len(inputs):
                shape.append(None)
            else:
                shape.append(sum(extents))
            continue
        known = [e for e in extents if e is not None]
        if any(e != known[0] for e in known):
            raise IncompatibleShape(
                f"shapes of operands differ at non-concatenated dimension {d}: "
                f"{[format_dims(t.shape) for t in ranked]}")
        shape.append(known[0] if known else None)
    return [TensorType(element_type, shape)]


def infer_transpose(op: TransposeOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    permutation = decode_1d(op.permutation, "permutation")
    if sorted(permutation) != list(range(len(permutation))):
        raise InvalidDimensionMapping(
            f"permutation {list(permutation)} is not a permutation of "
            f"[0, {len(permutation)})")
    if not operand.has_rank:
        return [TensorType(operand.element_type, (None,) * len(permutation))]
    if len(permutation) != operand.rank:
        raise AttributeArityMismatch(
            f"TransposeOp operand rank {operand.rank} does not match permutation size "
            f"{len(permutation)}")
    return [TensorType(operand.element_type, tuple(operand.shape[p] for p in permutation))]


def infer_reshape(op: ReshapeOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    result = require_tensor(op.result, "result")
    if operand.element_type != result.element_type:
        raise IncompatibleElementType(
            f"reshape result element type {result.element_type} differs from operand "
            f"element type {operand.element_type}")
    if operand.has_static_shape and result.has_static_shape:
        if operand.num_elements != result.num_elements:
            raise IncompatibleShape(
                f"number of output elements ({result.num_elements}) doesn't match expected "
                f"number of elements ({operand.num_elements})")
    return [result]


def infer_dynamic_reshape(op: DynamicReshapeOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    output_shape = require_tensor(op.output_shape, "output_shape")
    if output_shape.has_rank and output_shape.rank != 1:
        raise IncompatibleShape(f"output_shape must be a 1-D tensor, got rank {output_shape.rank}")
    if not is_integer(output_shape.element_type):
        raise IncompatibleElementType(
            f"output_shape must hold integers, got {output_shape.element_type}")
    rank = output_shape.dim(0) if output_shape.has_rank else None
    inferred = TensorType(operand.element_type,
                          None if rank is None else (None,) * rank)
    if op.result is None:
        return [inferred]

    result = require_tensor(op.result, "result")
    if result.element_type != operand.element_type:
        raise IncompatibleElementType(
            f"dynamic_reshape result element type {result.element_type} differs from "
            f"operand element type {operand.element_type}")
    if rank is not None and result.has_rank and result.rank != rank:
        raise IncompatibleShape(
            f"result should have a rank of {rank}, got {result.rank}")
    if operand.has_static_shape and result.has_static_shape:
        if operand.num_elements != result.num_elements:
            raise IncompatibleShape(
                f"number of output elements ({result.num_elements}) doesn't match expected "
                f"number of elements ({operand.num_elements})")
    return [result]


def infer_pad(op: PadOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    padding_value = require_tensor(op.padding_value, "padding_value")
    if padding_value.has_rank and padding_value.rank != 0:
        raise IncompatibleShape(
            f"padding value type should be a rank-0 tensor, is rank {padding_value.rank}")
    if padding_value.element_type != operand.element_type:
        raise IncompatibleElementType(
            f"padding value element type {padding_value.element_type} differs from operand "
            f"element type {operand.element_type}")

    rank = operand.rank
    if rank is None:
        rank = len(decode_1d(op.edge_padding_low, "edge_padding_low"))
        if rank == 0:
            return [TensorType(operand.element_type)]
    low = decode_1d(op.edge_padding_low, "edge_padding_low", rank, 0)
    high = decode_1d(op.edge_padding_high, "edge_padding_high", rank, 0)
    interior = decode_1d(op.interior_padding, "interior_padding", rank, 0)

    shape: List[Extent] = []
    for i in range(rank):
        if interior[i] < 0:
            raise InvalidAttributeValue(
                f"Interior padding cannot be negative: {interior[i]}")
        extent = operand.dim(i)
        if extent is None:
            shape.append(None)
            continue
        interior_total = (extent - 1) * interior[i] if extent > 0 else 0
        padded = extent + low[i] + high[i] + interior_total
        if padded < 0:
            raise InvalidAttributeValue(
                f"Padding result in negative size for dimension {i}")
        shape.append(padded)
    return [TensorType(operand.element_type, shape)]


def infer_slice(op: SliceOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    start = decode_1d(op.start_indices, "start_indices", operand.rank)
    rank = len(start) if operand.rank is None else operand.rank
    limit = decode_1d(op.limit_indices, "limit_indices", rank)
    strides = decode_1d(op.strides, "strides", rank, 1)
    for name, values in (("start_indices", start), ("limit_indices", limit)):
        if len(values) != rank:
            raise AttributeArityMismatch(f"{name} must have {rank} elements, but got {len(values)}.")

    shape: List[Extent] = []
    for i in range(rank):
        if start[i] < 0:
            raise InvalidAttributeValue(f"negative start index {start[i]} in dimension {i}")
        if strides[i] <= 0:
            raise InvalidAttributeValue(f"stride must be positive but got {strides[i]} in dimension {i}")
        bound = operand.dim(i)
        if bound is not None and limit[i] > bound:
            raise InvalidAttributeValue(
                f"limit index {limit[i]} is larger than dimension size {bound} in dimension {i}")
        if start[i] > limit[i]:
            raise InvalidAttributeValue(
                f"start index {start[i]} is larger than limit index {limit[i]} in dimension {i}")
        shape.append(-(-(limit[i] - start[i]) // strides[i]))
    return [TensorType(operand.element_type, shape)]


def infer_real_dynamic_slice(op: RealDynamicSliceOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    index_types = []
    for name, value in (("start_indices", op.start_indices),
                        ("limit_indices", op.limit_indices),
                        ("strides", op.strides)):
        value = require_tensor(value, name)
        if value.has_rank and value.rank != 1:
            raise IncompatibleShape(f"{name} must be a 1-D tensor, got rank {value.rank}")
        if not is_integer(value.element_type):
            raise IncompatibleElementType(f"{name} must hold integers, got {value.element_type}")
        extent = value.dim(0) if value.has_rank else None
        if extent is not None and operand.has_rank and extent != operand.rank:
            raise IncompatibleShape(
                f"has mismatched number of {name} ({extent}) and the rank of operand "
                f"({operand.rank})")
        index_types.append(value)
    most_specific_type(index_types, "start_indices, limit_indices and strides")
    if not operand.has_rank:
        return [TensorType(operand.element_type)]
    return [TensorType(operand.element_type, (None,) * operand.rank)]


def infer_reverse(op: ReverseOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    dims = decode_1d(op.dimensions, "dimensions")
    _check_dims_in_range(dims, operand.rank, "dimensions")
    return [operand]


def infer_iota(op: IotaOp) -> List[Type]:
    result = require_tensor(op.result, "result")
    if not result.has_rank:
        return [result]
    if result.rank == 0:
        raise IncompatibleShape("does not support scalars.")
    if op.iota_dimension < 0 or op.iota_dimension >= result.rank:
        raise InvalidDimensionMapping(
            f"iota dimension cannot go beyond the output rank or be negative: "
            f"{op.iota_dimension}")
    return [result]


def infer_get_dimension_size(op: GetDimensionSizeOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    if op.dimension < 0 or (operand.has_rank and op.dimension >= operand.rank):
        raise InvalidDimensionMapping(
            f"requires dimension attribute in range [0, {operand.rank}); found "
            f"({op.dimension})")
    return [TensorType(DIMENSION_SIZE_ELEMENT_TYPE, ())]


def infer_constant(op: ConstantOp) -> List[Type]:
    value = np.asarray(op.value)
    if op.element_type is not None:
        if not op.element_type.is_element:
            raise IncompatibleElementType(
                f"constant element type must be an element type, got {op.element_type}")
        return [TensorType(op.element_type, value.shape)]
    element_type = _DTYPE_ELEMENT_TYPES.get(value.dtype)
    if element_type is None:
        raise MalformedAttribute(f"constant value has unsupported dtype {value.dtype}")
    logger.debug(f"constant of dtype {value.dtype} is {element_type}")
    return [TensorType(element_type, value.shape)]


RULES = {
    BroadcastOp: infer_broadcast,
    BroadcastInDimOp: infer_broadcast_in_dim,
    DynamicBroadcastInDimOp: infer_dynamic_broadcast_in_dim,
    ConcatenateOp: infer_concatenate,
    TransposeOp: infer_transpose,
    ReshapeOp: infer_reshape,
    DynamicReshapeOp: infer_dynamic_reshape,
    PadOp: infer_pad,
    SliceOp: infer_slice,
    RealDynamicSliceOp: infer_real_dynamic_slice,
    ReverseOp: infer_reverse,
    IotaOp: infer_iota,
    GetDimensionSizeOp: infer_get_dimension_size,
    ConstantOp: infer_constant,
}
