"""
Control-flow, tuple and token rules.

Branching ops (if, case) and while produce the pointwise most specific
unification of the types their regions can yield.
"""

import logging
from typing import List, Sequence

from ...ir.ops import (
    IfOp, CaseOp, WhileOp, TupleOp, GetTupleElementOp, OptimizationBarrierOp, ReturnOp,
    AfterAllOp, CreateTokenOp, SendOp, OutfeedOp, PartitionIdOp, ReplicaIdOp,
)
from ...ir.region import Region
from ...shared.errors import (
    InvalidAttributeValue, InvalidOperand, InvalidRegion,
)
from ...shared.types import Type, TensorType, TupleType, TokenType, TOKEN
from ...utils.config import (
    PREDICATE_ELEMENT_TYPE, CASE_INDEX_ELEMENT_TYPE, PROCESS_ID_ELEMENT_TYPE,
)
from ..compat import is_compatible_type, unify_type_lists, require_tensor

logger = logging.getLogger(__name__)


def _require_scalar(t: Type, element_type: Type, what: str) -> None:
    t = require_tensor(t, what)
    if t.element_type != element_type or (t.has_rank and t.rank != 0):
        raise InvalidOperand(f"{what} should be a rank-0 tensor of {element_type}, got {t}")


def _unify_branches(branches: Sequence[Region], what: str) -> List[Type]:
    for i, branch in enumerate(branches):
        if branch.num_arguments != 0:
            raise InvalidRegion(
                f"{what} {i} must have no arguments, but has {branch.num_arguments}")
    return unify_type_lists([branch.results for branch in branches], what)


def infer_if(op: IfOp) -> List[Type]:
    _require_scalar(op.pred, PREDICATE_ELEMENT_TYPE, "pred")
    return _unify_branches([op.true_branch, op.false_branch], "branch")


def infer_case(op: CaseOp) -> List[Type]:
    _require_scalar(op.index, CASE_INDEX_ELEMENT_TYPE, "index")
    if not op.branches:
        raise InvalidRegion("expect at least one branch")
    return _unify_branches(list(op.branches), "branch")


def _check_region_types(actual: Sequence[Type], expected: Sequence[Type], what: str) -> None:
    if len(actual) != len(expected):
        raise InvalidRegion(f"expect {what} to have {len(expected)} values, got {len(actual)}")
    for i, (a, e) in enumerate(zip(actual, expected)):
        if not is_compatible_type(a, e):
            raise InvalidRegion(f"type mismatch in {what} at #{i}: {a} vs {e}")


def infer_while(op: WhileOp) -> List[Type]:
    """Loop-carried values: operands, cond arguments, body arguments and body results agree."""
    operands = list(op.operands)
    _check_region_types(op.cond.arguments, operands, "cond arguments")
    if len(op.cond.results) != 1:
        raise InvalidRegion(f"expect condition body to return a single value, got {len(op.cond.results)}")
    cond_result = op.cond.results[0]
    if not (isinstance(cond_result, TensorType) and cond_result.rank in (0, None)
            and cond_result.element_type == PREDICATE_ELEMENT_TYPE):
        raise InvalidRegion(
            f"expect condition block return a zero-ranked tensor of i1 but got {cond_result}")
    _check_region_types(op.body.arguments, operands, "body arguments")
    _check_region_types(op.body.results, operands, "body results")
    result = unify_type_lists([operands, list(op.body.results)], "while")
    logger.debug(f"while carries {len(result)} value(s)")
    return result


def infer_tuple(op: TupleOp) -> List[Type]:
    return [TupleType(op.values)]


def infer_get_tuple_element(op: GetTupleElementOp) -> List[Type]:
    if not isinstance(op.operand, TupleType):
        raise InvalidOperand(f"get_tuple_element expects a tuple operand, got {op.operand}")
    if op.index < 0 or op.index >= len(op.operand):
        raise InvalidAttributeValue(
            f"index {op.index} is out of bounds of operand with size {len(op.operand)}")
    return [op.operand.element_types[op.index]]


def infer_optimization_barrier(op: OptimizationBarrierOp) -> List[Type]:
    return list(op.operands)


def infer_return(op: ReturnOp) -> List[Type]:
    """A terminator forwards its operands to the enclosing op and has no results."""
    for i, value in enumerate(op.results):
        if not isinstance(value, (TensorType, TupleType, TokenType)):
            raise InvalidOperand(f"return operand #{i} must be a value type, got {value}")
    return []


def _require_tokens(values: Sequence[Type], what: str) -> None:
    for i, value in enumerate(values):
        if not isinstance(value, TokenType):
            raise InvalidOperand(f"{what} #{i} must be a token, got {value}")


def infer_after_all(op: AfterAllOp) -> List[Type]:
    _require_tokens(op.inputs, "after_all input")
    return [TOKEN]


def infer_create_token(op: CreateTokenOp) -> List[Type]:
    return [TOKEN]


def infer_send(op: SendOp) -> List[Type]:
    _require_tokens([op.token], "send token")
    return [TOKEN]


def infer_outfeed(op: OutfeedOp) -> List[Type]:
    _require_tokens([op.token], "outfeed token")
    return [TOKEN]


def infer_partition_id(op: PartitionIdOp) -> List[Type]:
    return [TensorType(PROCESS_ID_ELEMENT_TYPE, ())]


def infer_replica_id(op: ReplicaIdOp) -> List[Type]:
    return [TensorType(PROCESS_ID_ELEMENT_TYPE, ())]


RULES = {
    IfOp: infer_if,
    CaseOp: infer_case,
    WhileOp: infer_while,
    TupleOp: infer_tuple,
    GetTupleElementOp: infer_get_tuple_element,
    OptimizationBarrierOp: infer_optimization_barrier,
    ReturnOp: infer_return,
    AfterAllOp: infer_after_all,
    CreateTokenOp: infer_create_token,
    SendOp: infer_send,
    OutfeedOp: infer_outfeed,
    PartitionIdOp: infer_partition_id,
    ReplicaIdOp: infer_replica_id,
}
