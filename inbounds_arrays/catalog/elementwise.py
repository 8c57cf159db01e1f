"""Rules for NumPy ufuncs on dense storage.

Every ufunc exported by NumPy gets rules for its ``__call__`` method, and
binary ufuncs also for their ``reduce``, ``accumulate``, ``outer`` and ``at``
methods.  Patterns cover each combination of dense and arbitrary operands
so that mixed calls such as ``w + 1.0`` or ``1.0 + w`` have a unique most specific rule.
"""

from __future__ import annotations

import itertools
from typing import Iterator, Tuple

import numpy as np

from ..dispatch import RuleRegistry

_BINARY_METHODS = ("reduce", "accumulate", "outer", "at")


def iter_ufuncs() -> Iterator[np.ufunc]:
    seen = set()
    for _name, candidate in sorted(vars(np).items()):
        if isinstance(candidate, np.ufunc) and candidate not in seen:
            seen.add(candidate)
            yield candidate


def operand_patterns(nin: int) -> Tuple[Tuple[type, ...], ...]:
    """Patterns with at least one dense operand, most specific first."""

    combos = itertools.product((np.ndarray, object), repeat=nin)
    return tuple(combo for combo in combos if np.ndarray in combo)


def register_defaults(registry: RuleRegistry) -> None:
    for ufunc in iter_ufuncs():
        for pattern in operand_patterns(ufunc.nin):
            registry.register(ufunc, *pattern)(ufunc)
        if ufunc.nin == 2 and ufunc.nout == 1:
            for method in _BINARY_METHODS:
                registry.register((ufunc, method), np.ndarray)(getattr(ufunc, method))
