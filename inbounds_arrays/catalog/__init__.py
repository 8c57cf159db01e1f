"""Default forwarding rules for NumPy and SciPy storage."""

from __future__ import annotations

from ..dispatch import RuleRegistry
from . import dense, elementwise, fft, linalg, sparse, stats


def register_defaults(registry: RuleRegistry) -> None:
    """Register every default rule on ``registry``.

    Dense rules go first so that the sparse mixed-operand patterns find the
    dense ones already in place.
    """

    elementwise.register_defaults(registry)
    dense.register_defaults(registry)
    linalg.register_defaults(registry)
    sparse.register_defaults(registry)
    fft.register_defaults(registry)
    stats.register_defaults(registry)


__all__ = ["dense", "elementwise", "fft", "linalg", "register_defaults", "sparse", "stats"]
