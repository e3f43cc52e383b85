"""
Configuration constants to replace magic values throughout shapeinfer
"""

from ..shared.types import I1, I32, UI32

# Result element types of ops whose output type is fixed
PREDICATE_ELEMENT_TYPE = I1          # compare, is_finite, select/sort predicates
DIMENSION_SIZE_ELEMENT_TYPE = I32    # get_dimension_size
PROCESS_ID_ELEMENT_TYPE = UI32       # partition_id, replica_id
CASE_INDEX_ELEMENT_TYPE = I32        # case branch index

# Replica groups of unequal size are stored padded with this id
REPLICA_ID_PADDING = -1

# Window defaults for absent attributes
DEFAULT_WINDOW_STRIDE = 1
DEFAULT_DILATION = 1
DEFAULT_PADDING = (0, 0)

# Enumerated attribute values
COMPARISON_DIRECTIONS = ("EQ", "NE", "GE", "GT", "LE", "LT")
COMPARISON_TYPES = ("NOTYPE", "FLOAT", "TOTALORDER", "SIGNED", "UNSIGNED")
PRECISION_VALUES = ("DEFAULT", "HIGH", "HIGHEST")
MAX_PRECISION_CONFIG_SIZE = 2
TRANSPOSE_VALUES = ("NO_TRANSPOSE", "TRANSPOSE", "ADJOINT")
COMPLEX_COMPONENT_TYPES = ("f32", "f64")

# Relaxed floating-point comparison policy, per op.
#
# When True, the op's reducer accepts an operand parameter / init value whose
# floating-point element type differs in bitwidth from the accumulator (e.g.
# an f32 accumulator reducing bf16 data). Everything not listed compares
# element types exactly.
IGNORE_FP_PRECISION = {
    "reduce": True,
    "reduce_window": True,
    "scatter": True,
    "select_and_scatter": True,
    "all_reduce": True,
    "reduce_scatter": True,
}


def ignore_fp_precision(op_name: str) -> bool:
    """Relaxed floating-point comparison flag for ``op_name``."""
    return IGNORE_FP_PRECISION.get(op_name, False)
