"""
Shape and type inference components and the per-op engine.
"""

from .attributes import decode_1d, decode_bool_1d, decode_padding, decode_2d, decode_rows
from .window import (
    WindowDimension, verify_window_attributes_and_infer_window_dimensions,
    infer_window_output_shape, decode_window,
)
from .indexing import (
    infer_gather_shape, verify_gather, infer_gather, infer_dynamic_gather,
    validate_scatter_dimension_numbers, verify_scatter, infer_dynamic_slice,
    infer_dynamic_update_slice,
)
from .collectives import verify_replica_groups
from .reducer import verify_reducer_shape
from .compat import (
    compatible_element_types, compatible_shapes, is_compatible_type, most_specific_type,
)
from .engine import infer_op, infer_op_types, DISPATCH
