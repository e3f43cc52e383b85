"""
Reducer Signature Validator

A reduction body over N inputs takes 2N parameters (N accumulators, then
N operand elements) and returns N accumulators. Used by reduce,
reduce_window, scatter, select_and_scatter, all_reduce and reduce_scatter.
"""

import logging
from typing import List, Sequence

from ..ir.region import Region
from ..shared.errors import ReducerSignatureMismatch, InvalidOperand
from ..shared.types import Extent, TensorType, Type
from ..utils.config import ignore_fp_precision
from .compat import compatible_element_types, is_compatible_type

logger = logging.getLogger(__name__)


def _is_subsequence(shape: Sequence[Extent], allowed: Sequence[Extent]) -> bool:
    """True when ``shape`` can be matched in order against ``allowed``."""
    index = 0
    for extent in allowed:
        if index == len(shape):
            break
        if extent is None or shape[index] is None or extent == shape[index]:
            index += 1
    return index == len(shape)


def verify_reducer_shape(body: Region,
                         input_arg_types: Sequence[Type],
                         init_value_types: Sequence[Type],
                         num_inputs: int,
                         allowed_dimensions: Sequence[Extent],
                         all_inputs_unranked: bool = False,
                         op_name: str = "reduce") -> List[Type]:
    """
    Check ``body`` against the accumulator/operand contract and return the
    accumulator types (the body's result types).

    ``allowed_dimensions`` lists the extents an operand parameter may keep,
    in order: empty for reduce (scalar parameters), the window extents for
    reduce_window. The relaxed floating-point policy of ``op_name`` applies
    to operand parameters and init values.
    """
    if len(input_arg_types) != num_inputs or len(init_value_types) != num_inputs:
        raise InvalidOperand(
            f"expects {num_inputs} inputs and init values, got {len(input_arg_types)} and "
            f"{len(init_value_types)}")
    relaxed = ignore_fp_precision(op_name)
    params = body.arguments
    results = body.results

    if len(params) != 2 * num_inputs:
        raise ReducerSignatureMismatch(
            f"Reduction-region must take {2 * num_inputs} parameters, but takes "
            f"{len(params)} parameter(s)", reason="parameter-count")

    if len(results) != num_inputs:
        raise ReducerSignatureMismatch(
            f"Reduction-region here must produce {num_inputs} tensors, but produces "
            f"{len(results)} instead", reason="result-count")

    for i, result in enumerate(results):
        if not isinstance(result, TensorType):
            raise ReducerSignatureMismatch(
                f"Reduction-region here must produce tensor-typed result(s), but produces "
                f"{result} instead", reason="result-kind")

    for i in range(num_inputs):
        accumulator = results[i]
        accumulator_param = params[i]
        operand_param = params[num_inputs + i]

        if not is_compatible_type(accumulator, accumulator_param):
            raise ReducerSignatureMismatch(
                f"The type of reduction-region's parameter at index {i} is different than "
                f"the corresponding result type: {accumulator_param} vs {accumulator}",
                parameter_index=i, reason="accumulator-type")

        if not is_compatible_type(accumulator, operand_param, relaxed):
            raise ReducerSignatureMismatch(
                f"The type of reduction-region's parameter at index {num_inputs + i} is "
                f"different than the corresponding result type: {operand_param} vs "
                f"{accumulator}", parameter_index=num_inputs + i, reason="operand-type")

        if not is_compatible_type(accumulator, init_value_types[i], relaxed):
            raise ReducerSignatureMismatch(
                f"The type of reduction-region's result type at index {i} differs from the "
                f"op's corresponding init-value type: {accumulator} vs {init_value_types[i]}",
                parameter_index=i, reason="init-type")

        input_element = input_arg_types[i]
        if isinstance(input_element, TensorType):
            input_element = input_element.element_type
        if not compatible_element_types(input_element, operand_param.element_type, relaxed):
            raise ReducerSignatureMismatch(
                f"The element-type of reduction-region's argument at index {num_inputs + i} "
                f"is expected to be {input_element}, but got {operand_param} as its type.",
                parameter_index=num_inputs + i, reason="element-type")

        if all_inputs_unranked or not operand_param.has_rank:
            continue
        if not _is_subsequence(operand_param.shape, allowed_dimensions):
            raise ReducerSignatureMismatch(
                f"The shape of reduction-region's argument at index {num_inputs + i} is not "
                f"compatible with that of {op_name}-op's input-parameter at index {i}",
                parameter_index=num_inputs + i, reason="shape")

    logger.debug(f"{op_name} body {body} accepted for {num_inputs} input(s)")
    return list(results)
