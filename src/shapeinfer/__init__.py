"""
shapeinfer - shape and type inference for a StableHLO-style tensor IR

Given one operation's operand descriptors, attributes and nested region
signatures, ``infer_op`` computes the operation's result types or returns
a structured InferenceError.
"""

__version__ = "0.1.0"

from .shared import *  # noqa: F401,F403
from .ir import *  # noqa: F401,F403
from .inference import (  # noqa: F401
    infer_op, infer_op_types, WindowDimension,
    verify_window_attributes_and_infer_window_dimensions, infer_window_output_shape,
    infer_gather_shape, verify_replica_groups, verify_reducer_shape,
    compatible_element_types,
)
from .utils import Result, ResultTag  # noqa: F401
