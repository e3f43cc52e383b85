"""
Region signatures

Nested computations (reducer bodies, branches, loop bodies, comparators)
are described only by the types flowing in and out of their single block.
"""

from dataclasses import dataclass
from typing import Iterable, Tuple

from ..shared.types import Type


@dataclass(frozen=True)
class Region:
    """
    Signature of a single-block region.

    ``arguments`` are the block argument types, ``results`` the operand
    types of the block terminator.
    """
    arguments: Tuple[Type, ...] = ()
    results: Tuple[Type, ...] = ()

    def __init__(self, arguments: Iterable[Type] = (), results: Iterable[Type] = ()):
        object.__setattr__(self, 'arguments', tuple(arguments))
        object.__setattr__(self, 'results', tuple(results))

    @property
    def num_arguments(self) -> int:
        return len(self.arguments)

    def __str__(self) -> str:
        args = ", ".join(str(t) for t in self.arguments)
        results = ", ".join(str(t) for t in self.results)
        return f"({args}) -> ({results})"
