"""
Collective communication rules: all_reduce, all_to_all, reduce_scatter and
collective_permute.
"""

import logging
from typing import List

from ...ir.ops import AllReduceOp, AllToAllOp, ReduceScatterOp, CollectivePermuteOp
from ...shared.errors import (
    IncompatibleShape, InvalidAttributeValue, InvalidDimensionMapping,
)
from ...shared.types import Type, TensorType
from ..attributes import decode_2d
from ..collectives import verify_replica_groups, group_size
from ..compat import require_tensor, verify_declared_result
from ..reducer import verify_reducer_shape

logger = logging.getLogger(__name__)


def _reduce_scalar(operand: TensorType, computation, op_name: str) -> Type:
    """Check a scalar reduction region over ``operand`` and return the accumulator."""
    scalar = TensorType(operand.element_type, ())
    accumulators = verify_reducer_shape(
        computation, [operand], [scalar], 1, (), not operand.has_rank, op_name=op_name)
    return accumulators[0]


def infer_all_reduce(op: AllReduceOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    verify_replica_groups(op.replica_groups, all_groups_must_have_same_size=False)
    accumulator = _reduce_scalar(operand, op.computation, "all_reduce")
    return [operand.with_element_type(accumulator.element_type)]


def infer_all_to_all(op: AllToAllOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    if op.split_count <= 0:
        raise InvalidAttributeValue(f"AllToAll split_count must be > 0, got {op.split_count}")
    verify_replica_groups(op.replica_groups, all_groups_must_have_same_size=True,
                          expected_group_size=op.split_count)
    if not operand.has_rank:
        return [operand]

    rank = operand.rank
    for name, dim in (("split_dimension", op.split_dimension),
                      ("concat_dimension", op.concat_dimension)):
        if dim < 0 or dim >= rank:
            raise InvalidDimensionMapping(
                f"AllToAll {name} {dim} is out-of-bounds for input rank {rank}")

    split_extent = operand.dim(op.split_dimension)
    if split_extent is not None and split_extent % op.split_count != 0:
        raise IncompatibleShape(
            f"split dimension has size {split_extent}, expected to be a multiple of "
            f"split_count {op.split_count}")

    shape = list(operand.shape)
    if split_extent is not None:
        shape[op.split_dimension] = split_extent // op.split_count
    concat_extent = shape[op.concat_dimension]
    if concat_extent is not None:
        shape[op.concat_dimension] = concat_extent * op.split_count
    return [TensorType(operand.element_type, shape)]


def infer_reduce_scatter(op: ReduceScatterOp) -> List[Type]:
    """
    The scatter dimension is divided by the group size; the operand's
    other dimensions are kept.
    """
    operand = require_tensor(op.operand, "operand")
    if op.scatter_dimension < 0:
        raise InvalidDimensionMapping("expects scatter_dimension >= 0")
    rows = verify_replica_groups(op.replica_groups, all_groups_must_have_same_size=True)
    accumulator = _reduce_scalar(operand, op.computation, "reduce_scatter")

    if not operand.has_rank:
        inferred = TensorType(accumulator.element_type)
        return [verify_declared_result(inferred, op.result, "reduce_scatter")]
    if operand.rank == 0:
        raise IncompatibleShape("operand cannot be a scalar")
    if op.scatter_dimension >= operand.rank:
        raise InvalidDimensionMapping(
            f"scatter dim should be less than operand rank: {op.scatter_dimension} vs "
            f"{operand.rank}")

    size = group_size(rows)
    shape = list(operand.shape)
    extent = shape[op.scatter_dimension]
    if extent is not None:
        if extent % size != 0:
            raise IncompatibleShape(
                f"operand scatter dimension has size {extent}, expected to be a multiple "
                f"of replica group size {size}")
        shape[op.scatter_dimension] = extent // size
    logger.debug(f"reduce_scatter over groups of {size}: {operand} -> {shape}")
    inferred = TensorType(accumulator.element_type, shape)
    return [verify_declared_result(inferred, op.result, "reduce_scatter")]


def infer_collective_permute(op: CollectivePermuteOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    pairs = decode_2d(op.source_target_pairs, "source_target_pairs", columns=2)
    sources, targets = set(), set()
    for source, target in pairs:
        if source < 0 or target < 0:
            raise InvalidAttributeValue(
                f"replica ids in source_target_pairs must be >= 0, got ({source}, {target})")
        if source in sources:
            raise InvalidAttributeValue(f"duplicate sources not allowed: {source}")
        if target in targets:
            raise InvalidAttributeValue(f"duplicate targets not allowed: {target}")
        sources.add(source)
        targets.add(target)
    return [operand]


RULES = {
    AllReduceOp: infer_all_reduce,
    AllToAllOp: infer_all_to_all,
    ReduceScatterOp: infer_reduce_scatter,
    CollectivePermuteOp: infer_collective_permute,
}
