"""
Convolution, dot and windowed-reduction rules.

These are the consumers of the window arithmetic: convolution windows over
the input spatial dimensions with the kernel spatial extents as window
sizes; reduce_window and select_and_scatter window over every dimension.
"""

import logging
from typing import Any, List, Optional, Sequence

from ...ir.ops import (
    ConvolutionOp, DotOp, DotGeneralOp, ReduceWindowOp, SelectAndScatterOp,
)
from ...ir.dimension_numbers import ConvDimensionNumbers
from ...ir.region import Region
from ...shared.errors import (
    IncompatibleShape, IncompatibleElementType, InvalidAttributeValue,
    InvalidDimensionMapping, InvalidOperand, InvalidRegion, AttributeArityMismatch,
)
from ...shared.types import Type, TensorType, Extent, format_dims
from ...utils.config import (
    PRECISION_VALUES, MAX_PRECISION_CONFIG_SIZE, PREDICATE_ELEMENT_TYPE,
)
from ..attributes import decode_1d, is_absent
from ..compat import (
    require_tensor, compatible_extents, compatible_shapes, refine_extent,
    verify_declared_result, most_specific_type,
)
from ..reducer import verify_reducer_shape
from ..window import decode_window, infer_window_output_shape

logger = logging.getLogger(__name__)


def verify_precision_config(precision_config: Any) -> None:
    if is_absent(precision_config):
        return
    values = list(precision_config)
    if len(values) > MAX_PRECISION_CONFIG_SIZE:
        raise AttributeArityMismatch(
            f"expects precision config to be empty or have <= {MAX_PRECISION_CONFIG_SIZE} "
            f"elements, got {len(values)}")
    for value in values:
        if value not in PRECISION_VALUES:
            raise InvalidAttributeValue(
                f"unknown precision {value!r}, expected one of {', '.join(PRECISION_VALUES)}")


# ============================================================================
# Convolution
# ============================================================================

def _check_role_dims(dims: Sequence[int], rank: int, what: str) -> None:
    if len(set(dims)) != len(dims):
        raise InvalidDimensionMapping(
            f"expects {what} dimensions to be unique, got {{{', '.join(str(d) for d in dims)}}}.")
    for d in dims:
        if d < 0 or d >= rank:
            raise InvalidDimensionMapping(
                f"expects {what} dimension-numbers to be in-range [0, {rank}), got: {d}.")


def verify_conv_dimension_numbers(dn: ConvDimensionNumbers, rank: int) -> None:
    """Every role must name a distinct dimension and cover the whole rank."""
    num_spatial = rank - 2
    for what, spatial in (("input", dn.input_spatial_dimensions),
                          ("kernel", dn.kernel_spatial_dimensions),
                          ("output", dn.output_spatial_dimensions)):
        if len(spatial) != num_spatial:
            raise InvalidDimensionMapping(
                f"expects {what} spatial dimensions to have {num_spatial} entries, got "
                f"{len(spatial)}")
    _check_role_dims((dn.input_batch_dimension, dn.input_feature_dimension)
                     + dn.input_spatial_dimensions, rank, "input")
    _check_role_dims((dn.kernel_input_feature_dimension, dn.kernel_output_feature_dimension)
                     + dn.kernel_spatial_dimensions, rank, "kernel")
    _check_role_dims((dn.output_batch_dimension, dn.output_feature_dimension)
                     + dn.output_spatial_dimensions, rank, "output")


def _divisible(extent: Extent, divisor: int) -> bool:
    return extent is None or extent % divisor == 0


def infer_convolution(op: ConvolutionOp) -> List[Type]:
    lhs = require_tensor(op.lhs, "lhs")
    rhs = require_tensor(op.rhs, "rhs")
    verify_precision_config(op.precision_config)

    fgc, bgc = op.feature_group_count, op.batch_group_count
    if fgc <= 0:
        raise InvalidAttributeValue(f"expects feature_group_count to be a positive number, got {fgc}.")
    if bgc <= 0:
        raise InvalidAttributeValue(f"expects batch_group_count to be a positive number, got {bgc}.")
    if fgc > 1 and bgc > 1:
        raise InvalidAttributeValue(
            f"expects batch_group_count and feature_group_count not to be both greater "
            f"than 1. Got {bgc} and {fgc} resp.")

    if not lhs.has_rank or not rhs.has_rank:
        inferred = TensorType(lhs.element_type)
        return [verify_declared_result(inferred, op.result, "convolution")]

    if lhs.rank != rhs.rank:
        raise IncompatibleShape(
            f"expects convolution arguments to have same number of dimensions. Got: "
            f"{lhs} and {rhs}.")
    if lhs.rank < 2:
        raise IncompatibleShape(
            f"expects convolution arguments to have >= 2 dimensions. Got: {lhs} and {rhs}.")

    dn = op.dimension_numbers
    rank = lhs.rank
    verify_conv_dimension_numbers(dn, rank)

    input_batch = lhs.dim(dn.input_batch_dimension)
    input_features = lhs.dim(dn.input_feature_dimension)
    kernel_input_features = rhs.dim(dn.kernel_input_feature_dimension)
    kernel_output_features = rhs.dim(dn.kernel_output_feature_dimension)

    if not _divisible(input_features, fgc):
        raise IncompatibleShape(
            f"expects input feature dimension ({input_features}) to be a multiple of "
            f"feature_group_count. Got feature_group_count = {fgc}.")
    if (input_features is not None and kernel_input_features is not None
            and input_features // fgc != kernel_input_features):
        raise IncompatibleShape(
            f"expects input feature dimension ({input_features}) / feature_group_count = "
            f"kernel input feature dimension ({kernel_input_features}). Got "
            f"feature_group_count = {fgc}.")
    if not _divisible(input_batch, bgc):
        raise IncompatibleShape(
            f"expects input batch dimension ({input_batch}) to be divisible by "
            f"batch_group_count. Got batch_group_count = {bgc}.")
    if not _divisible(kernel_output_features, bgc):
        raise IncompatibleShape(
            f"expects output feature dimension size ({kernel_output_features}) to be a "
            f"multiple of batch_group_count. Got batch_group_count = {bgc}.")
    if not _divisible(kernel_output_features, fgc):
        raise IncompatibleShape(
            f"expects kernel output feature dimension ({kernel_output_features}) to be "
            f"divisible by feature_group_count. For feature_group_count = {fgc}.")

    num_spatial = rank - 2
    window_sizes = [rhs.dim(d) for d in dn.kernel_spatial_dimensions]
    window = decode_window(window_sizes, num_spatial, op.window_strides, op.padding,
                           op.lhs_dilation, op.rhs_dilation, op.window_reversal)
    spatial = infer_window_output_shape(
        [lhs.dim(d) for d in dn.input_spatial_dimensions], window)

    shape: List[Extent] = [None] * rank
    shape[dn.output_batch_dimension] = None if input_batch is None else input_batch // bgc
    shape[dn.output_feature_dimension] = kernel_output_features
    for d, extent in zip(dn.output_spatial_dimensions, spatial):
        shape[d] = extent
    inferred = TensorType(lhs.element_type, shape)
    logger.debug(f"convolution {lhs} * {rhs} -> {inferred}")
    return [verify_declared_result(inferred, op.result, "convolution")]


# ============================================================================
# Dot
# ============================================================================

def infer_dot(op: DotOp) -> List[Type]:
    lhs = require_tensor(op.lhs, "lhs")
    rhs = require_tensor(op.rhs, "rhs")
    verify_precision_config(op.precision_config)
    if not lhs.has_rank or not rhs.has_rank:
        return [verify_declared_result(TensorType(lhs.element_type), op.result, "dot")]

    if lhs.rank not in (1, 2) or rhs.rank not in (1, 2):
        raise IncompatibleShape(
            f"expects lhs and rhs to be of rank 1 or 2, got {lhs} and {rhs}")
    contracting_lhs = lhs.dim(lhs.rank - 1)
    contracting_rhs = rhs.dim(0)
    if not compatible_extents(contracting_lhs, contracting_rhs):
        raise IncompatibleShape(
            f"dot contracting dimensions differ: {contracting_lhs} and {contracting_rhs}")

    shape: List[Extent] = []
    if lhs.rank == 2:
        shape.append(lhs.dim(0))
    if rhs.rank == 2:
        shape.append(rhs.dim(1))
    inferred = TensorType(lhs.element_type, shape)
    return [verify_declared_result(inferred, op.result, "dot")]


def _check_dot_dims(dims: Sequence[int], rank: Optional[int], what: str) -> None:
    for d in dims:
        if d < 0:
            raise InvalidDimensionMapping(f"{what} cannot contain negative dimension {d}")
        if rank is not None and d >= rank:
            raise InvalidDimensionMapping(f"{what} value {d} is out of range [0, {rank})")


def infer_dot_general(op: DotGeneralOp) -> List[Type]:
    lhs = require_tensor(op.lhs, "lhs")
    rhs = require_tensor(op.rhs, "rhs")
    verify_precision_config(op.precision_config)
    dn = op.dot_dimension_numbers

    if len(dn.lhs_batching_dimensions) != len(dn.rhs_batching_dimensions):
        raise InvalidDimensionMapping(
            "lhs and rhs should have the same number of batching dimensions")
    if len(dn.lhs_contracting_dimensions) != len(dn.rhs_contracting_dimensions):
        raise InvalidDimensionMapping(
            "lhs and rhs should have the same number of contracting dimensions")
    for side, batching, contracting, operand in (
            ("lhs", dn.lhs_batching_dimensions, dn.lhs_contracting_dimensions, lhs),
            ("rhs", dn.rhs_batching_dimensions, dn.rhs_contracting_dimensions, rhs)):
        combined = batching + contracting
        if len(set(combined)) != len(combined):
            raise InvalidDimensionMapping(
                f"has duplicated dimension from {side}_batching_dimensions and "
                f"{side}_contracting_dimensions: {list(combined)}")
        _check_dot_dims(batching, operand.rank, f"{side}_batching_dimensions")
        _check_dot_dims(contracting, operand.rank, f"{side}_contracting_dimensions")

    if not lhs.has_rank or not rhs.has_rank:
        return [verify_declared_result(TensorType(lhs.element_type), op.result, "dot_general")]

    for l, r in zip(dn.lhs_batching_dimensions, dn.rhs_batching_dimensions):
        if not compatible_extents(lhs.dim(l), rhs.dim(r)):
            raise IncompatibleShape(
                f"batching dimension sizes must match for lhs/rhs: {lhs.dim(l)} vs {rhs.dim(r)}")
    for l, r in zip(dn.lhs_contracting_dimensions, dn.rhs_contracting_dimensions):
        if not compatible_extents(lhs.dim(l), rhs.dim(r)):
            raise IncompatibleShape(
                f"contracting dimension sizes must match for lhs/rhs: "
                f"{lhs.dim(l)} vs {rhs.dim(r)}")

    shape: List[Extent] = [refine_extent(lhs.dim(l), rhs.dim(r))
                           for l, r in zip(dn.lhs_batching_dimensions,
                                           dn.rhs_batching_dimensions)]
    lhs_used = set(dn.lhs_batching_dimensions) | set(dn.lhs_contracting_dimensions)
    rhs_used = set(dn.rhs_batching_dimensions) | set(dn.rhs_contracting_dimensions)
    shape.extend(lhs.dim(i) for i in range(lhs.rank) if i not in lhs_used)
    shape.extend(rhs.dim(i) for i in range(rhs.rank) if i not in rhs_used)
    inferred = TensorType(lhs.element_type, shape)
    return [verify_declared_result(inferred, op.result, "dot_general")]


# ============================================================================
# Windowed reductions
# ============================================================================

def infer_reduce_window(op: ReduceWindowOp) -> List[Type]:
    num_inputs = len(op.inputs)
    if num_inputs == 0:
        raise InvalidOperand("expects at least one input")
    if len(op.init_values) != num_inputs:
        raise InvalidOperand(
            f"expects {num_inputs} init values, got {len(op.init_values)}")
    inputs = [require_tensor(t, "reduce_window input") for t in op.inputs]
    init_values = [require_tensor(t, "init value") for t in op.init_values]

    base = most_specific_type([t.with_element_type(inputs[0].element_type) for t in inputs],
                              "reduce_window inputs")
    for init_value in init_values:
        if init_value.has_rank and init_value.rank != 0:
            raise IncompatibleShape(f"expects init values to be rank-0 tensors, got {init_value}")

    window_sizes = decode_1d(op.window_dimensions, "window_dimensions")
    if base.has_rank and len(window_sizes) != base.rank:
        raise AttributeArityMismatch(
            f"expects window-dimensions size == input rank, but got window-dimensions size: "
            f"{len(window_sizes)} and input: {base} with rank = {base.rank}.")
    window = decode_window(window_sizes, len(window_sizes), op.window_strides, op.padding,
                           op.base_dilations, op.window_dilations)

    accumulators = verify_reducer_shape(
        op.body, inputs, init_values, num_inputs, window_sizes,
        all(not t.has_rank for t in inputs), op_name="reduce_window")

    base_shape = base.shape if base.has_rank else (None,) * len(window_sizes)
    shape = infer_window_output_shape(base_shape, window)
    return [TensorType(acc.element_type, shape) for acc in accumulators]


def _verify_select_region(select: Region, operand: TensorType) -> None:
    scalar = TensorType(operand.element_type, ())
    if select.num_arguments != 2:
        raise InvalidRegion(
            f"expects the select-region to take 2 parameters, but takes "
            f"{select.num_arguments}")
    for i, arg in enumerate(select.arguments):
        if arg != scalar:
            raise InvalidRegion(
                f"expects the type of select-region's parameter at index {i} to be {scalar}, "
                f"but got {arg}")
    expected = TensorType(PREDICATE_ELEMENT_TYPE, ())
    if len(select.results) != 1 or select.results[0] != expected:
        raise InvalidRegion(
            f"expects the return-type of select-region to be {expected}, but got "
            f"{', '.join(str(t) for t in select.results) or 'nothing'}")


def infer_select_and_scatter(op: SelectAndScatterOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    source = require_tensor(op.source, "source")
    init_value = require_tensor(op.init_value, "init_value")
    if init_value.has_rank and init_value.rank != 0:
        raise IncompatibleShape(f"expects init_value to be a rank-0 tensor, got {init_value}")

    _verify_select_region(op.select, operand)
    verify_reducer_shape(op.scatter, [source], [init_value], 1, (),
                         not source.has_rank, op_name="select_and_scatter")
    if source.element_type != operand.element_type:
        raise IncompatibleElementType(
            f"expects source element type {source.element_type} to match operand element "
            f"type {operand.element_type}")

    if not operand.has_rank:
        return [operand]
    window_attr = None if is_absent(op.window_dimensions) else op.window_dimensions
    window_sizes = decode_1d(window_attr, "window_dimensions", operand.rank, 1)
    window = decode_window(window_sizes, operand.rank, op.window_strides, op.padding)
    windowed = infer_window_output_shape(operand.shape, window)
    if not compatible_shapes(source.shape, windowed):
        raise IncompatibleShape(
            f"expects source-type to be {format_dims(windowed)}, but got "
            f"{format_dims(source.shape)}")
    return [operand]


RULES = {
    ConvolutionOp: infer_convolution,
    DotOp: infer_dot,
    DotGeneralOp: infer_dot_general,
    ReduceWindowOp: infer_reduce_window,
    SelectAndScatterOp: infer_select_and_scatter,
}
