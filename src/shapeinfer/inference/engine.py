"""
Inference Engine

Dispatches an operation to its shape rule and turns rule failures into
``Result.err`` values. The dispatch table is assembled from the family
rule modules and checked against the op catalog at import time.
"""

import logging
from typing import Callable, Dict, List, Optional, Type as PyType

from ..ir.ops import Op, catalog_classes
from ..shared.errors import InferenceError
from ..shared.source_location import SourceLocation
from ..shared.types import Type
from ..utils.base import Result
from .rules import FAMILIES

logger = logging.getLogger(__name__)

Rule = Callable[[Op], List[Type]]


def _build_dispatch_table() -> Dict[PyType[Op], Rule]:
    table: Dict[PyType[Op], Rule] = {}
    for family in FAMILIES:
        for op_class, rule in family.RULES.items():
            if op_class in table:
                raise RuntimeError(
                    f"{op_class.__name__} has rules in more than one family "
                    f"({family.__name__})")
            table[op_class] = rule
    missing = [cls.__name__ for cls in catalog_classes() if cls not in table]
    if missing:
        raise RuntimeError(f"no shape rule for: {', '.join(missing)}")
    return table


DISPATCH: Dict[PyType[Op], Rule] = _build_dispatch_table()


def rule_for(op: Op) -> Rule:
    try:
        return DISPATCH[type(op)]
    except KeyError:
        raise TypeError(f"not a catalog operation: {op!r}") from None


def infer_op(op: Op, location: Optional[SourceLocation] = None) -> Result:
    """
    Infer the result types of ``op``.

    Returns ``Result.ok(list of result types)`` or ``Result.err(error)``
    where the error is an InferenceError tagged with ``location``. Anything
    that is not an InferenceError (a non-op argument, a bug) propagates.
    """
    rule = rule_for(op)
    logger.debug(f"[infer] {op.op_name} via {rule.__name__}")
    try:
        types = rule(op)
    except InferenceError as e:
        logger.debug(f"[infer] {op.op_name} failed: {e.kind}: {e.message}")
        return Result.err(e.with_location(location))
    logger.debug(f"[infer] {op.op_name} -> {', '.join(str(t) for t in types) or '()'}")
    return Result.ok(types)


def infer_op_types(op: Op, location: Optional[SourceLocation] = None) -> List[Type]:
    """Like ``infer_op`` but raises the InferenceError instead of returning it."""
    return infer_op(op, location).unwrap()
