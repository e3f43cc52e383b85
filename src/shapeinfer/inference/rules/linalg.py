"""
Normalization and linear algebra rules: batch_norm_{training, inference,
grad}, cholesky and triangular_solve.
"""

from typing import List, Sequence

from ...ir.ops import (
    BatchNormTrainingOp, BatchNormInferenceOp, BatchNormGradOp, CholeskyOp,
    TriangularSolveOp,
)
from ...shared.errors import (
    IncompatibleShape, IncompatibleElementType, InvalidAttributeValue,
    InvalidDimensionMapping,
)
from ...shared.types import Type, TensorType, Extent
from ...utils.config import TRANSPOSE_VALUES
from ..compat import (
    require_tensor, compatible_extents, is_float, is_complex, most_specific_type,
)


def _verify_batch_norm(operand: TensorType, feature_index: int,
                       features: Sequence[TensorType], names: Sequence[str]) -> Extent:
    """Check per-feature operands against the operand; returns the feature extent."""
    if not is_float(operand.element_type):
        raise IncompatibleElementType(
            f"batch norm expects a floating-point operand, got {operand.element_type}")
    if operand.has_rank:
        if operand.rank < 1:
            raise IncompatibleShape("expects operand to have rank >= 1")
        if feature_index < 0 or feature_index >= operand.rank:
            raise InvalidDimensionMapping(
                f"expects feature_index to be smaller than the rank of operand type; got "
                f"feature_index {feature_index}, and rank {operand.rank}.")
    elif feature_index < 0:
        raise InvalidDimensionMapping(f"expects feature_index to be non-negative, got {feature_index}")

    feature_extent = operand.dim(feature_index) if operand.has_rank else None
    for name, t in zip(names, features):
        if t.element_type != operand.element_type:
            raise IncompatibleElementType(
                f"expects {name} to have element type {operand.element_type}, got "
                f"{t.element_type}")
        if t.has_rank and t.rank != 1:
            raise IncompatibleShape(f"expects {name} to be a 1-D tensor, got {t}")
        extent = t.dim(0) if t.has_rank else None
        if not compatible_extents(extent, feature_extent):
            raise IncompatibleShape(
                f"expects the size of {name} to be the same as feature count, but the size "
                f"of {name} is {extent} and the feature count is {feature_extent}.")
        if extent is not None:
            feature_extent = extent
    return feature_extent


def _check_epsilon(epsilon: float) -> None:
    if epsilon <= 0:
        raise InvalidAttributeValue(f"epsilon must be positive, got {epsilon}")


def infer_batch_norm_training(op: BatchNormTrainingOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    features = [require_tensor(op.scale, "scale"), require_tensor(op.offset, "offset")]
    _check_epsilon(op.epsilon)
    extent = _verify_batch_norm(operand, op.feature_index, features, ("scale", "offset"))
    per_feature = TensorType(operand.element_type, (extent,))
    return [operand, per_feature, per_feature]


def infer_batch_norm_inference(op: BatchNormInferenceOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    names = ("scale", "offset", "mean", "variance")
    features = [require_tensor(t, name) for t, name in
                zip((op.scale, op.offset, op.mean, op.variance), names)]
    _check_epsilon(op.epsilon)
    _verify_batch_norm(operand, op.feature_index, features, names)
    return [operand]


def infer_batch_norm_grad(op: BatchNormGradOp) -> List[Type]:
    operand = require_tensor(op.operand, "operand")
    grad_output = require_tensor(op.grad_output, "grad_output")
    operand = most_specific_type([operand, grad_output], "operand and grad_output")
    names = ("scale", "mean", "variance")
    features = [require_tensor(t, name) for t, name in
                zip((op.scale, op.mean, op.variance), names)]
    _check_epsilon(op.epsilon)
    extent = _verify_batch_norm(operand, op.feature_index, features, names)
    per_feature = TensorType(operand.element_type, (extent,))
    return [operand, per_feature, per_feature]


def _verify_square_batch(a: TensorType, what: str) -> None:
    if not a.has_rank:
        return
    if a.rank < 2:
        raise IncompatibleShape(f"{what} must have rank >= 2, got {a}")
    rows, cols = a.dim(a.rank - 2), a.dim(a.rank - 1)
    if not compatible_extents(rows, cols):
        raise IncompatibleShape(
            f"minor dimensions of {what} must have equal size, got shape {a}")


def infer_cholesky(op: CholeskyOp) -> List[Type]:
    a = require_tensor(op.a, "a")
    if not (is_float(a.element_type) or is_complex(a.element_type)):
        raise IncompatibleElementType(
            f"cholesky expects a floating-point or complex operand, got {a.element_type}")
    _verify_square_batch(a, "a")
    return [a]


def infer_triangular_solve(op: TriangularSolveOp) -> List[Type]:
    a = require_tensor(op.a, "a")
    b = require_tensor(op.b, "b")
    if op.transpose_a not in TRANSPOSE_VALUES:
        raise InvalidAttributeValue(
            f"unknown transpose_a {op.transpose_a!r}, expected one of "
            f"{', '.join(TRANSPOSE_VALUES)}")
    if a.element_type != b.element_type:
        raise IncompatibleElementType(
            f"a and b must have the same element type, got {a.element_type} and "
            f"{b.element_type}")
    _verify_square_batch(a, "a")
    if not a.has_rank or not b.has_rank:
        return [b]

    if b.rank != a.rank:
        raise IncompatibleShape(
            f"operands must have equal rank, but got {a} and {b}")
    rank = a.rank
    for i in range(rank - 2):
        if not compatible_extents(a.dim(i), b.dim(i)):
            raise IncompatibleShape(
                f"batch dimensions of the operands must be same, but got {a} and {b}")
    shared = b.dim(rank - 2) if op.left_side else b.dim(rank - 1)
    if not compatible_extents(a.dim(rank - 1), shared):
        raise IncompatibleShape(
            f"shared dimension of operands 'a' and 'b' does not match, but got {a} and {b}")
    return [b]


RULES = {
    BatchNormTrainingOp: infer_batch_norm_training,
    BatchNormInferenceOp: infer_batch_norm_inference,
    BatchNormGradOp: infer_batch_norm_grad,
    CholeskyOp: infer_cholesky,
    TriangularSolveOp: infer_triangular_solve,
}
