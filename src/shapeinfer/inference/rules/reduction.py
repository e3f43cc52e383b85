"""
Reduction rules: reduce, map and sort.
"""

import logging
from typing import List

from ...ir.ops import ReduceOp, MapOp, SortOp
from ...shared.errors import (
    IncompatibleShape, InvalidDimensionMapping, InvalidOperand, InvalidRegion,
)
from ...shared.types import Type, TensorType
from ...utils.config import PREDICATE_ELEMENT_TYPE
from ..attributes import decode_1d
from ..compat import require_tensor, most_specific_type
from ..reducer import verify_reducer_shape

logger = logging.getLogger(__name__)


def _unify_input_shapes(inputs: List[TensorType], what: str) -> TensorType:
    """Most specific shape of inputs that may differ in element type."""
    element_type = inputs[0].element_type
    return most_specific_type([t.with_element_type(element_type) for t in inputs], what)


def infer_reduce(op: ReduceOp) -> List[Type]:
    """
    The result drops the reduced dimensions. Element types come from the
    body's accumulators, or from the init values when no body is given.
    """
    num_inputs = len(op.inputs)
    if num_inputs == 0:
        raise InvalidOperand("expects at least one input")
    if len(op.init_values) != num_inputs:
        raise InvalidOperand(f"expects {num_inputs} init values, got {len(op.init_values)}")
    inputs = [require_tensor(t, "reduce input") for t in op.inputs]
    init_values = [require_tensor(t, "init value") for t in op.init_values]
    base = _unify_input_shapes(inputs, "reduce inputs")

    for init_value in init_values:
        if init_value.has_rank and init_value.rank != 0:
            raise IncompatibleShape(f"expects init values to be rank-0 tensors, got {init_value}")

    dimensions = decode_1d(op.dimensions, "dimensions")
    if len(set(dimensions)) != len(dimensions):
        raise InvalidDimensionMapping(f"Duplicate reduction dimension: {list(dimensions)}")
    for d in dimensions:
        if d < 0 or (base.has_rank and d >= base.rank):
            raise InvalidDimensionMapping(
                f"Out-of-bounds dimension {d}, expected to be in range [0, {base.rank})")

    kept = None
    if base.has_rank:
        kept = tuple(base.shape[i] for i in range(base.rank) if i not in dimensions)
    logger.debug(f"reduce over {list(dimensions)} of {base} keeps {kept}")

    if op.body is None:
        element_types = [t.element_type for t in init_values]
    else:
        accumulators = verify_reducer_shape(
            op.body, inputs, init_values, num_inputs, kept or (),
            all(not t.has_rank for t in inputs), op_name="reduce")
        element_types = [acc.element_type for acc in accumulators]
    return [TensorType(element_type, kept) for element_type in element_types]


def infer_map(op: MapOp) -> List[Type]:
    if not op.inputs:
        raise InvalidOperand("expects at least one input")
    inputs = [require_tensor(t, "map input") for t in op.inputs]
    base = _unify_input_shapes(inputs, "map inputs")
    computation = op.computation

    if computation.num_arguments != len(inputs):
        raise InvalidRegion(
            f"expects number of operands to match the arity of map computation, but got: "
            f"{len(inputs)} and {computation.num_arguments}")
    for i, (arg, operand) in enumerate(zip(computation.arguments, inputs)):
        expected = TensorType(operand.element_type, ())
        if arg != expected:
            raise InvalidRegion(
                f"expects computation parameter {i} to be {expected}, but got {arg}")
    if len(computation.results) != 1:
        raise InvalidRegion(
            f"computation must return single output, but got: {len(computation.results)}")
    result = computation.results[0]
    if not isinstance(result, TensorType) or result.rank != 0:
        raise InvalidRegion(f"computation must return 0-rank tensor type, but got: {result}")

    dimensions = decode_1d(op.dimensions, "dimensions")
    if base.has_rank:
        if list(dimensions) != list(range(base.rank)):
            raise InvalidDimensionMapping(
                f"requires monotonically increasing dimension numbers, but got: "
                f"{list(dimensions)}")
    elif list(dimensions) != list(range(len(dimensions))):
        raise InvalidDimensionMapping(
            f"requires monotonically increasing dimension numbers, but got: {list(dimensions)}")
    return [TensorType(result.element_type, base.shape)]


def infer_sort(op: SortOp) -> List[Type]:
    if not op.inputs:
        raise InvalidOperand("requires at least one input")
    inputs = [require_tensor(t, "sort input") for t in op.inputs]
    base = _unify_input_shapes(inputs, "sort inputs")

    if base.has_rank and base.rank > 0:
        rank = base.rank
        if op.dimension < -rank or op.dimension >= rank:
            raise InvalidDimensionMapping(
                f"dimension attribute value must be in range [-{rank}, {rank}), but found "
                f"{op.dimension}")

    comparator = op.comparator
    if comparator is not None:
        if comparator.num_arguments != 2 * len(inputs):
            raise InvalidRegion(
                f"comparator block should have {2 * len(inputs)} arguments, got "
                f"{comparator.num_arguments}")
        for i, operand in enumerate(inputs):
            expected = TensorType(operand.element_type, ())
            for j in (2 * i, 2 * i + 1):
                if comparator.arguments[j] != expected:
                    raise InvalidRegion(
                        f"comparator block argument #{j} should be of type {expected} but "
                        f"got {comparator.arguments[j]}")
        expected = TensorType(PREDICATE_ELEMENT_TYPE, ())
        if len(comparator.results) != 1 or comparator.results[0] != expected:
            raise InvalidRegion(
                f"comparator must return {expected} but got "
                f"{', '.join(str(t) for t in comparator.results) or 'nothing'}")
    return [t.with_shape(base.shape) for t in inputs]


RULES = {
    ReduceOp: infer_reduce,
    MapOp: infer_map,
    SortOp: infer_sort,
}
