"""
Operation Catalog

One frozen dataclass per operation kind. The class is the variant tag and
its fields are the operation's operand descriptors, raw attribute payloads
and nested region signatures. Attribute payloads are passed through
undecoded (lists, tuples or numpy arrays); the shape rules decode them.

Ops that can only be verified (not inferred) carry their declared
``result`` type; ops whose result is inferable accept an optional declared
``result`` that is checked against the inferred one.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Optional, Sequence

from ..shared.types import Type
from .region import Region
from .dimension_numbers import (
    GatherDimensionMapping, ScatterDimensionMapping,
    ConvDimensionNumbers, DotDimensionNumbers,
)


@dataclass(frozen=True)
class Op:
    """Base of every catalog entry."""
    op_name: ClassVar[str] = "op"


# ============================================================================
# Elementwise
# ============================================================================

class UnaryKind(Enum):
    """Shape-preserving unary elementwise ops"""
    NEGATE = "negate"
    EXPONENTIAL = "exponential"
    EXPONENTIAL_MINUS_ONE = "exponential_minus_one"
    LOG = "log"
    LOG_PLUS_ONE = "log_plus_one"
    SQRT = "sqrt"
    RSQRT = "rsqrt"
    CBRT = "cbrt"
    TANH = "tanh"
    LOGISTIC = "logistic"
    SINE = "sine"
    COSINE = "cosine"
    FLOOR = "floor"
    CEIL = "ceil"
    ROUND_NEAREST_AFZ = "round_nearest_afz"
    ROUND_NEAREST_EVEN = "round_nearest_even"
    SIGN = "sign"
    NOT = "not"
    POPCNT = "popcnt"
    COUNT_LEADING_ZEROS = "count_leading_zeros"


class BinaryKind(Enum):
    """Binary elementwise ops"""
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    REMAINDER = "remainder"
    MAXIMUM = "maximum"
    MINIMUM = "minimum"
    POWER = "power"
    ATAN2 = "atan2"
    AND = "and"
    OR = "or"
    XOR = "xor"
    SHIFT_LEFT = "shift_left"
    SHIFT_RIGHT_ARITHMETIC = "shift_right_arithmetic"
    SHIFT_RIGHT_LOGICAL = "shift_right_logical"


@dataclass(frozen=True)
class UnaryElementwiseOp(Op):
    op_name: ClassVar[str] = "unary_elementwise"
    kind: UnaryKind
    operand: Type


@dataclass(frozen=True)
class BinaryElementwiseOp(Op):
    """``broadcast=True`` enables numpy-style implicit broadcasting of the operands."""
    op_name: ClassVar[str] = "binary_elementwise"
    kind: BinaryKind
    lhs: Type
    rhs: Type
    broadcast: bool = False


@dataclass(frozen=True)
class AbsOp(Op):
    op_name: ClassVar[str] = "abs"
    operand: Type


@dataclass(frozen=True)
class RealOp(Op):
    op_name: ClassVar[str] = "real"
    operand: Type


@dataclass(frozen=True)
class ImagOp(Op):
    op_name: ClassVar[str] = "imag"
    operand: Type


@dataclass(frozen=True)
class ComplexOp(Op):
    op_name: ClassVar[str] = "complex"
    lhs: Type
    rhs: Type


@dataclass(frozen=True)
class CompareOp(Op):
    op_name: ClassVar[str] = "compare"
    lhs: Type
    rhs: Type
    comparison_direction: str = "EQ"
    compare_type: Optional[str] = None


@dataclass(frozen=True)
class ConvertOp(Op):
    op_name: ClassVar[str] = "convert"
    operand: Type
    element_type: Type


@dataclass(frozen=True)
class IsFiniteOp(Op):
    op_name: ClassVar[str] = "is_finite"
    x: Type


@dataclass(frozen=True)
class SelectOp(Op):
    op_name: ClassVar[str] = "select"
    pred: Type
    on_true: Type
    on_false: Type


@dataclass(frozen=True)
class ClampOp(Op):
    op_name: ClassVar[str] = "clamp"
    min: Type
    operand: Type
    max: Type


@dataclass(frozen=True)
class UniformDequantizeOp(Op):
    op_name: ClassVar[str] = "uniform_dequantize"
    operand: Type


@dataclass(frozen=True)
class BitcastConvertOp(Op):
    op_name: ClassVar[str] = "bitcast_convert"
    operand: Type
    result: Type


# ============================================================================
# Shape manipulation
# ============================================================================

@dataclass(frozen=True)
class BroadcastOp(Op):
    op_name: ClassVar[str] = "broadcast"
    operand: Type
    broadcast_sizes: Any = None


@dataclass(frozen=True)
class BroadcastInDimOp(Op):
    op_name: ClassVar[str] = "broadcast_in_dim"
    operand: Type
    broadcast_dimensions: Any
    result: Type


@dataclass(frozen=True)
class DynamicBroadcastInDimOp(Op):
    op_name: ClassVar[str] = "dynamic_broadcast_in_dim"
    operand: Type
    output_dimensions: Type
    broadcast_dimensions: Any
    result: Type
    known_expanding_dimensions: Any = None
    known_nonexpanding_dimensions: Any = None


@dataclass(frozen=True)
class ConcatenateOp(Op):
    op_name: ClassVar[str] = "concatenate"
    inputs: Sequence[Type]
    dimension: int


@dataclass(frozen=True)
class TransposeOp(Op):
    op_name: ClassVar[str] = "transpose"
    operand: Type
    permutation: Any


@dataclass(frozen=True)
class ReshapeOp(Op):
    op_name: ClassVar[str] = "reshape"
    operand: Type
    result: Type


@dataclass(frozen=True)
class DynamicReshapeOp(Op):
    op_name: ClassVar[str] = "dynamic_reshape"
    operand: Type
    output_shape: Type
    result: Optional[Type] = None


@dataclass(frozen=True)
class PadOp(Op):
    op_name: ClassVar[str] = "pad"
    operand: Type
    padding_value: Type
    edge_padding_low: Any = None
    edge_padding_high: Any = None
    interior_padding: Any = None


@dataclass(frozen=True)
class SliceOp(Op):
    op_name: ClassVar[str] = "slice"
    operand: Type
    start_indices: Any
    limit_indices: Any
    strides: Any = None


@dataclass(frozen=True)
class RealDynamicSliceOp(Op):
    op_name: ClassVar[str] = "real_dynamic_slice"
    operand: Type
    start_indices: Type
    limit_indices: Type
    strides: Type


@dataclass(frozen=True)
class ReverseOp(Op):
    op_name: ClassVar[str] = "reverse"
    operand: Type
    dimensions: Any


@dataclass(frozen=True)
class IotaOp(Op):
    op_name: ClassVar[str] = "iota"
    iota_dimension: int
    result: Type


@dataclass(frozen=True)
class GetDimensionSizeOp(Op):
    op_name: ClassVar[str] = "get_dimension_size"
    operand: Type
    dimension: int


@dataclass(frozen=True)
class ConstantOp(Op):
    """``element_type`` overrides the element type derived from the value's dtype."""
    op_name: ClassVar[str] = "constant"
    value: Any
    element_type: Optional[Type] = None


# ============================================================================
# Indexing
# ============================================================================

@dataclass(frozen=True)
class GatherOp(Op):
    op_name: ClassVar[str] = "gather"
    operand: Type
    start_indices: Type
    dimension_numbers: GatherDimensionMapping
    slice_sizes: Any
    indices_are_sorted: bool = False


@dataclass(frozen=True)
class DynamicGatherOp(Op):
    """``slice_sizes`` is a 1-D tensor operand; ``slice_size_values`` its value when known."""
    op_name: ClassVar[str] = "dynamic_gather"
    operand: Type
    start_indices: Type
    slice_sizes: Type
    dimension_numbers: GatherDimensionMapping
    slice_size_values: Any = None
    indices_are_sorted: bool = False


@dataclass(frozen=True)
class ScatterOp(Op):
    op_name: ClassVar[str] = "scatter"
    inputs: Sequence[Type]
    scatter_indices: Type
    updates: Sequence[Type]
    dimension_numbers: ScatterDimensionMapping
    update_computation: Region
    indices_are_sorted: bool = False
    unique_indices: bool = False


@dataclass(frozen=True)
class DynamicSliceOp(Op):
    op_name: ClassVar[str] = "dynamic_slice"
    operand: Type
    start_indices: Sequence[Type]
    slice_sizes: Any = None


@dataclass(frozen=True)
class DynamicUpdateSliceOp(Op):
    op_name: ClassVar[str] = "dynamic_update_slice"
    operand: Type
    update: Type
    start_indices: Sequence[Type]


# ============================================================================
# Convolution, dot and windowed reductions
# ============================================================================

@dataclass(frozen=True)
class ConvolutionOp(Op):
    op_name: ClassVar[str] = "convolution"
    lhs: Type
    rhs: Type
    dimension_numbers: ConvDimensionNumbers
    window_strides: Any = None
    padding: Any = None
    lhs_dilation: Any = None
    rhs_dilation: Any = None
    window_reversal: Any = None
    feature_group_count: int = 1
    batch_group_count: int = 1
    precision_config: Any = None
    result: Optional[Type] = None


@dataclass(frozen=True)
class DotOp(Op):
    op_name: ClassVar[str] = "dot"
    lhs: Type
    rhs: Type
    precision_config: Any = None
    result: Optional[Type] = None


@dataclass(frozen=True)
class DotGeneralOp(Op):
    op_name: ClassVar[str] = "dot_general"
    lhs: Type
    rhs: Type
    dot_dimension_numbers: DotDimensionNumbers
    precision_config: Any = None
    result: Optional[Type] = None


@dataclass(frozen=True)
class ReduceWindowOp(Op):
    op_name: ClassVar[str] = "reduce_window"
    inputs: Sequence[Type]
    init_values: Sequence[Type]
    window_dimensions: Any
    body: Region
    window_strides: Any = None
    base_dilations: Any = None
    window_dilations: Any = None
    padding: Any = None


@dataclass(frozen=True)
class SelectAndScatterOp(Op):
    op_name: ClassVar[str] = "select_and_scatter"
    operand: Type
    source: Type
    init_value: Type
    select: Region
    scatter: Region
    window_dimensions: Any = None
    window_strides: Any = None
    padding: Any = None


# ============================================================================
# Reductions
# ============================================================================

@dataclass(frozen=True)
class ReduceOp(Op):
    op_name: ClassVar[str] = "reduce"
    inputs: Sequence[Type]
    init_values: Sequence[Type]
    dimensions: Any
    body: Optional[Region] = None


@dataclass(frozen=True)
class MapOp(Op):
    op_name: ClassVar[str] = "map"
    inputs: Sequence[Type]
    dimensions: Any
    computation: Region


@dataclass(frozen=True)
class SortOp(Op):
    op_name: ClassVar[str] = "sort"
    inputs: Sequence[Type]
    comparator: Optional[Region] = None
    dimension: int = -1
    is_stable: bool = False


# ============================================================================
# Collectives
# ============================================================================

@dataclass(frozen=True)
class AllReduceOp(Op):
    op_name: ClassVar[str] = "all_reduce"
    operand: Type
    replica_groups: Any
    computation: Region
    use_global_device_ids: bool = False


@dataclass(frozen=True)
class AllToAllOp(Op):
    op_name: ClassVar[str] = "all_to_all"
    operand: Type
    split_dimension: int
    concat_dimension: int
    split_count: int
    replica_groups: Any


@dataclass(frozen=True)
class ReduceScatterOp(Op):
    op_name: ClassVar[str] = "reduce_scatter"
    operand: Type
    scatter_dimension: int
    replica_groups: Any
    computation: Region
    use_global_device_ids: bool = False
    result: Optional[Type] = None


@dataclass(frozen=True)
class CollectivePermuteOp(Op):
    op_name: ClassVar[str] = "collective_permute"
    operand: Type
    source_target_pairs: Any


# ============================================================================
# Normalization and linear algebra
# ============================================================================

@dataclass(frozen=True)
class BatchNormTrainingOp(Op):
    op_name: ClassVar[str] = "batch_norm_training"
    operand: Type
    scale: Type
    offset: Type
    feature_index: int
    epsilon: float = 1e-5


@dataclass(frozen=True)
class BatchNormInferenceOp(Op):
    op_name: ClassVar[str] = "batch_norm_inference"
    operand: Type
    scale: Type
    offset: Type
    mean: Type
    variance: Type
    feature_index: int
    epsilon: float = 1e-5


@dataclass(frozen=True)
class BatchNormGradOp(Op):
    op_name: ClassVar[str] = "batch_norm_grad"
    operand: Type
    scale: Type
    mean: Type
    variance: Type
    grad_output: Type
    feature_index: int
    epsilon: float = 1e-5


@dataclass(frozen=True)
class CholeskyOp(Op):
    op_name: ClassVar[str] = "cholesky"
    a: Type
    lower: bool = False


@dataclass(frozen=True)
class TriangularSolveOp(Op):
    op_name: ClassVar[str] = "triangular_solve"
    a: Type
    b: Type
    left_side: bool = True
    lower: bool = True
    unit_diagonal: bool = False
    transpose_a: str = "NO_TRANSPOSE"


# ============================================================================
# Control flow and tuples
# ============================================================================

@dataclass(frozen=True)
class IfOp(Op):
    op_name: ClassVar[str] = "if"
    pred: Type
    true_branch: Region
    false_branch: Region


@dataclass(frozen=True)
class CaseOp(Op):
    op_name: ClassVar[str] = "case"
    index: Type
    branches: Sequence[Region]


@dataclass(frozen=True)
class WhileOp(Op):
    op_name: ClassVar[str] = "while"
    operands: Sequence[Type]
    cond: Region
    body: Region


@dataclass(frozen=True)
class TupleOp(Op):
    op_name: ClassVar[str] = "tuple"
    values: Sequence[Type]


@dataclass(frozen=True)
class GetTupleElementOp(Op):
    op_name: ClassVar[str] = "get_tuple_element"
    operand: Type
    index: int


@dataclass(frozen=True)
class OptimizationBarrierOp(Op):
    op_name: ClassVar[str] = "optimization_barrier"
    operands: Sequence[Type]


@dataclass(frozen=True)
class ReturnOp(Op):
    op_name: ClassVar[str] = "return"
    results: Sequence[Type] = field(default=())


# ============================================================================
# Tokens and process ids
# ============================================================================

@dataclass(frozen=True)
class AfterAllOp(Op):
    op_name: ClassVar[str] = "after_all"
    inputs: Sequence[Type] = field(default=())


@dataclass(frozen=True)
class CreateTokenOp(Op):
    op_name: ClassVar[str] = "create_token"


@dataclass(frozen=True)
class SendOp(Op):
    op_name: ClassVar[str] = "send"
    inputs: Sequence[Type]
    token: Type


@dataclass(frozen=True)
class OutfeedOp(Op):
    op_name: ClassVar[str] = "outfeed"
    inputs: Sequence[Type]
    token: Type
    outfeed_config: str = ""


@dataclass(frozen=True)
class PartitionIdOp(Op):
    op_name: ClassVar[str] = "partition_id"


@dataclass(frozen=True)
class ReplicaIdOp(Op):
    op_name: ClassVar[str] = "replica_id"


def catalog_classes():
    """Every concrete op class, in definition order."""
    found = []
    pending = list(Op.__subclasses__())
    while pending:
        cls = pending.pop(0)
        found.append(cls)
        pending.extend(cls.__subclasses__())
    return found


__all__ = [name for name, value in list(globals().items())
           if isinstance(value, type) and issubclass(value, Op)] + [
    "UnaryKind", "BinaryKind", "catalog_classes",
]
