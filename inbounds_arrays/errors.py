"""Structured error types raised by the dispatch layer."""

from __future__ import annotations

from typing import Any, Sequence, Tuple


class InboundsArraysError(Exception):
    """Base class for inbounds-arrays errors."""


def _type_names(types: Sequence[type]) -> str:
    return ", ".join(getattr(tp, "__qualname__", repr(tp)) for tp in types)


def op_name(op: Any) -> str:
    if isinstance(op, str):
        return op
    if isinstance(op, tuple):
        return ".".join(op_name(part) for part in op)
    module = getattr(op, "__module__", None)
    name = getattr(op, "__name__", None)
    if name is None:
        return repr(op)
    if module and module != "numpy" and not module.startswith("numpy."):
        return f"{module}.{name}"
    return name


class NoMatchingRuleError(InboundsArraysError, TypeError):
    """Raised when no forwarding rule matches and no fallback is allowed."""

    def __init__(self, op: Any, signature: Tuple[type, ...], reason: str | None = None) -> None:
        self.op = op
        self.signature = tuple(signature)
        message = f"no forwarding rule for {op_name(op)}({_type_names(self.signature)})"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class AmbiguousRuleError(InboundsArraysError, TypeError):
    """Raised when two forwarding rules have equal specificity for one call."""

    def __init__(self, op: Any, patterns: Sequence[Tuple[type, ...]]) -> None:
        self.op = op
        self.patterns = tuple(tuple(p) for p in patterns)
        candidates = "; ".join(f"({_type_names(p)})" for p in self.patterns)
        super().__init__(f"ambiguous forwarding rules for {op_name(op)}: {candidates}")


class PreferencesError(InboundsArraysError, ValueError):
    """Raised when persisted preferences cannot be interpreted."""
