"""
Indexing rules: gather, dynamic_gather, scatter, dynamic_slice and
dynamic_update_slice.
"""

from typing import List

from ...ir.ops import (
    GatherOp, DynamicGatherOp, ScatterOp, DynamicSliceOp, DynamicUpdateSliceOp,
)
from ...shared.types import Type, TensorType
from ..attributes import decode_1d, is_absent
from ..compat import require_tensor
from ..indexing import (
    infer_gather, infer_dynamic_gather, verify_scatter, infer_dynamic_slice,
    infer_dynamic_update_slice,
)
from ..reducer import verify_reducer_shape


def infer_gather_op(op: GatherOp) -> List[Type]:
    slice_sizes = decode_1d(op.slice_sizes, "slice_sizes")
    return [infer_gather(op.operand, op.start_indices, op.dimension_numbers, slice_sizes)]


def infer_dynamic_gather_op(op: DynamicGatherOp) -> List[Type]:
    values = None
    if not is_absent(op.slice_size_values):
        values = decode_1d(op.slice_size_values, "slice_sizes")
    return [infer_dynamic_gather(op.operand, op.start_indices, op.slice_sizes,
                                 op.dimension_numbers, values)]


def infer_scatter_op(op: ScatterOp) -> List[Type]:
    """Results mirror the inputs; the update computation reduces scalars."""
    verify_scatter(op.inputs, op.scatter_indices, op.updates, op.dimension_numbers)
    inputs = [require_tensor(t, "scatter input") for t in op.inputs]
    updates = [require_tensor(t, "scatter update") for t in op.updates]
    verify_reducer_shape(
        op.update_computation,
        [u.element_type for u in updates],
        [TensorType(t.element_type, ()) for t in inputs],
        len(inputs),
        (),
        all(not t.has_rank for t in inputs),
        op_name="scatter",
    )
    return list(inputs)


def infer_dynamic_slice_op(op: DynamicSliceOp) -> List[Type]:
    slice_sizes = None
    if not is_absent(op.slice_sizes):
        slice_sizes = decode_1d(op.slice_sizes, "slice_sizes")
    return [infer_dynamic_slice(op.operand, op.start_indices, slice_sizes)]


def infer_dynamic_update_slice_op(op: DynamicUpdateSliceOp) -> List[Type]:
    return [infer_dynamic_update_slice(op.operand, op.update, op.start_indices)]


RULES = {
    GatherOp: infer_gather_op,
    DynamicGatherOp: infer_dynamic_gather_op,
    ScatterOp: infer_scatter_op,
    DynamicSliceOp: infer_dynamic_slice_op,
    DynamicUpdateSliceOp: infer_dynamic_update_slice_op,
}
