"""
Per-operation shape rules, grouped by op family.

Each family module exposes ``RULES``: op class -> rule function.
"""

from . import (
    elementwise, shape_ops, indexing_ops, convolution, reduction, collective_ops,
    linalg, control_flow,
)

FAMILIES = (
    elementwise, shape_ops, indexing_ops, convolution, reduction, collective_ops,
    linalg, control_flow,
)
